"""
Skeleton

Canonical bone ordering derived from the resolved animation hierarchy.
"""

from typing import Dict, List, Optional
from pyrr import Matrix44, Quaternion, Vector3, quaternion
import numpy as np

from ..config.settings import ATTACHMENT_PREFIX
from ..core.scene_graph import SceneGraph
from ..core.transforms import decompose_transform
from .hierarchy import NodeAnimationInfo


class Bone:
    """
    Single joint in the exported skeleton.

    Each bone has:
    - A stable index in the canonical ordering
    - An optional parent bone (always at a smaller index)
    - A rest pose relative to its parent bone
    """

    def __init__(self, name: str, index: int, node_index: int, parent: Optional['Bone'] = None):
        """
        Initialize a bone.

        Args:
            name: Name of the scene node the bone was made from
            index: Bone index in the skeleton
            node_index: Index of the source SceneNode
            parent: Parent bone (None for a root bone)
        """
        self.name = name
        self.index = index
        self.node_index = node_index
        self.parent = parent
        self.children: List['Bone'] = []

        self.rest_position = Vector3([0.0, 0.0, 0.0])
        self.rest_rotation = Quaternion()
        self.rest_scale = Vector3([1.0, 1.0, 1.0])

    def add_child(self, child: 'Bone'):
        """Add a child bone to this bone's hierarchy."""
        self.children.append(child)
        child.parent = self

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def __repr__(self):
        parent = self.parent.index if self.parent is not None else None
        return f"Bone(name='{self.name}', index={self.index}, parent={parent})"


class BoneHierarchy:
    """
    Ordered set of bones shared by the rest pose, parent table and every clip.
    """

    def __init__(self):
        self.bones: List[Bone] = []
        self.bone_by_node: Dict[int, Bone] = {}

    def add_bone(self, bone: Bone):
        """
        Append a bone; its index must equal its position.

        Args:
            bone: Bone to add
        """
        if bone.index != len(self.bones):
            raise ValueError(f"Bone '{bone.name}' has index {bone.index}, expected {len(self.bones)}")
        self.bones.append(bone)
        self.bone_by_node[bone.node_index] = bone

    @classmethod
    def from_node_info(cls, graph: SceneGraph, info: NodeAnimationInfo,
                       root_rotation: Optional[Quaternion] = None) -> 'BoneHierarchy':
        """
        Build the canonical skeleton from resolved animation nodes.

        Args:
            graph: Source node hierarchy
            info: Resolved animation nodes in visitation order
            root_rotation: Orientation correction folded into root rest poses

        Returns:
            BoneHierarchy with one bone per resolved node
        """
        hierarchy = cls()

        for node_info in info:
            node = graph[node_info.node_index]
            parent = None
            if node_info.parent_index is not None:
                parent = hierarchy.bone_by_node.get(node_info.parent_index)
                if parent is None:
                    raise ValueError(f"Parent of bone '{node.name}' was not resolved before it")

            bone = Bone(node.name, len(hierarchy.bones), node.index)
            if parent is not None:
                parent.add_child(bone)

            rest = np.asarray(node.transform, dtype=np.float64) @ np.asarray(node_info.relative_transform)
            position, rotation, scale = decompose_transform(Matrix44(rest))
            if bone.is_root and root_rotation is not None:
                position = Vector3(quaternion.apply_to_vector(root_rotation, position))
                rotation = Quaternion(quaternion.cross(root_rotation, rotation))

            bone.rest_position = position
            bone.rest_rotation = rotation
            bone.rest_scale = scale
            hierarchy.add_bone(bone)

        return hierarchy

    @property
    def bone_count(self) -> int:
        return len(self.bones)

    def __len__(self) -> int:
        return len(self.bones)

    def __iter__(self):
        return iter(self.bones)

    def bone_by_index(self, index: int) -> Bone:
        return self.bones[index]

    def bone_by_name(self, name: str) -> Optional[Bone]:
        """First bone with the given name."""
        for bone in self.bones:
            if bone.name == name:
                return bone
        return None

    @property
    def root_bones(self) -> List[Bone]:
        return [bone for bone in self.bones if bone.parent is None]

    def attachment_bones(self, prefix: str = ATTACHMENT_PREFIX) -> List[Bone]:
        """Bones whose name marks an attachment slot, in bone order."""
        return [bone for bone in self.bones if bone.name.startswith(prefix)]

    def __repr__(self):
        return f"BoneHierarchy(bones={len(self.bones)}, roots={len(self.root_bones)})"
