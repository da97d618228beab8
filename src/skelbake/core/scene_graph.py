"""
Scene Graph

Read-only node hierarchy handed to the baker by a scene parser.

Nodes live in a flat arena and refer to each other by index, so walking up
or down the tree never follows object references.
"""

from typing import Dict, Iterator, List, Optional
from pyrr import Matrix44
import numpy as np


class SceneNode:
    """
    Single node in the source transform hierarchy.

    Node names are not guaranteed to be unique.
    """

    def __init__(self, name: str, index: int, transform: Optional[Matrix44] = None,
                 parent: Optional[int] = None):
        """
        Initialize scene node.

        Args:
            name: Node name as authored
            index: Stable index of this node in its SceneGraph
            transform: Local transform (pyrr row-vector convention)
            parent: Index of the parent node (None for the root)
        """
        self.name = name
        self.index = index
        self.transform = Matrix44(transform) if transform is not None else Matrix44.identity()
        self.parent = parent
        self.children: List[int] = []

    def __repr__(self):
        return f"SceneNode(name='{self.name}', index={self.index}, children={len(self.children)})"


class SceneGraph:
    """
    Arena of SceneNodes addressed by index.

    Index 0 is the root once the first node has been added.
    """

    def __init__(self):
        self.nodes: List[SceneNode] = []

    def add_node(self, name: str, transform: Optional[Matrix44] = None,
                 parent: Optional[int] = None) -> SceneNode:
        """
        Append a node to the arena.

        Args:
            name: Node name
            transform: Local transform (identity if omitted)
            parent: Index of an existing parent node, None for the root

        Returns:
            The created SceneNode
        """
        if parent is None and self.nodes:
            raise ValueError(f"Scene graph already has a root; node '{name}' needs a parent")
        if parent is not None and not 0 <= parent < len(self.nodes):
            raise IndexError(f"Parent index {parent} out of range for node '{name}'")

        node = SceneNode(name, len(self.nodes), transform, parent)
        self.nodes.append(node)
        if parent is not None:
            self.nodes[parent].children.append(node.index)
        return node

    @property
    def root(self) -> SceneNode:
        if not self.nodes:
            raise ValueError("Scene graph is empty")
        return self.nodes[0]

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> SceneNode:
        return self.nodes[index]

    def iter_depth_first(self) -> Iterator[SceneNode]:
        """
        Walk the tree in pre-order, visiting children in authored order.

        Uses an explicit stack so deep hierarchies cannot hit the recursion limit.
        """
        if not self.nodes:
            return

        stack = [0]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def find_by_name(self, name: str) -> Optional[SceneNode]:
        """First node with the given name in depth-first order."""
        for node in self.iter_depth_first():
            if node.name == name:
                return node
        return None

    def world_transform(self, index: int) -> Matrix44:
        """Compose local transforms from the root down to the given node."""
        world = np.identity(4, dtype=np.float64)
        current: Optional[int] = index
        while current is not None:
            node = self.nodes[current]
            world = world @ node.transform
            current = node.parent
        return Matrix44(world)

    def __repr__(self):
        return f"SceneGraph(nodes={len(self.nodes)})"


class MeshInfo:
    """
    Skinned mesh as seen by the baker: only the names of its bones matter.
    """

    def __init__(self, name: str, bone_names: Optional[List[str]] = None):
        self.name = name
        self.bone_names: List[str] = list(bone_names) if bone_names else []

    def __repr__(self):
        return f"MeshInfo(name='{self.name}', bones={len(self.bone_names)})"


class Scene:
    """
    Everything a scene parser hands over: nodes, meshes and animations.

    Attributes:
        graph: Node hierarchy
        meshes: Mesh list, addressed by index from node_meshes
        node_meshes: Node index -> indices into meshes
        animations: Source animations in authored order
    """

    def __init__(self, graph: SceneGraph, meshes: Optional[List[MeshInfo]] = None,
                 node_meshes: Optional[Dict[int, List[int]]] = None,
                 animations: Optional[list] = None, name: str = "Scene"):
        self.name = name
        self.graph = graph
        self.meshes: List[MeshInfo] = meshes if meshes is not None else []
        self.node_meshes: Dict[int, List[int]] = node_meshes if node_meshes is not None else {}
        self.animations = animations if animations is not None else []

    def attach_mesh(self, node_index: int, mesh: MeshInfo) -> int:
        """
        Add a mesh and reference it from a node.

        Returns:
            Index of the mesh in self.meshes
        """
        self.meshes.append(mesh)
        mesh_index = len(self.meshes) - 1
        self.node_meshes.setdefault(node_index, []).append(mesh_index)
        return mesh_index

    def mesh_node_indices(self) -> List[int]:
        """Indices of all nodes that reference at least one mesh, in index order."""
        return sorted(index for index, meshes in self.node_meshes.items() if meshes)

    def __repr__(self):
        return (f"Scene(name='{self.name}', nodes={len(self.graph)}, "
                f"meshes={len(self.meshes)}, animations={len(self.animations)})")
