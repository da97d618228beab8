"""
Animation Hierarchy

Finds the scene nodes that matter for skeletal animation and expresses each
one relative to its nearest animation-relevant ancestor.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from pyrr import Matrix44
import numpy as np

from ..core.scene_graph import Scene, SceneGraph

logger = logging.getLogger(__name__)


class AnimationNodeInfo:
    """
    Resolved placement of one animation-relevant node.

    Attributes:
        node_index: Index of the node in the SceneGraph
        parent_index: Index of the nearest relevant ancestor (None at the top)
        relative_transform: Product of the transforms of every irrelevant
            ancestor between the node and parent_index (model scale included
            when the walk reached the scene root)
    """

    def __init__(self, node_index: int, parent_index: Optional[int], relative_transform: Matrix44):
        self.node_index = node_index
        self.parent_index = parent_index
        self.relative_transform = relative_transform

    def __repr__(self):
        return f"AnimationNodeInfo(node={self.node_index}, parent={self.parent_index})"


class NodeAnimationInfo:
    """Relevant nodes in depth-first visitation order."""

    def __init__(self, nodes_with_animation: Optional[List[AnimationNodeInfo]] = None):
        self.nodes_with_animation: List[AnimationNodeInfo] = nodes_with_animation or []

    def __len__(self) -> int:
        return len(self.nodes_with_animation)

    def __iter__(self):
        return iter(self.nodes_with_animation)

    def find(self, node_index: int) -> Optional[AnimationNodeInfo]:
        for info in self.nodes_with_animation:
            if info.node_index == node_index:
                return info
        return None

    def __repr__(self):
        return f"NodeAnimationInfo(nodes={len(self.nodes_with_animation)})"


def collect_animated_node_names(scene: Scene, used_node_indices: Optional[Iterable[int]] = None) -> Set[str]:
    """
    Gather the names of nodes that are animated or used as mesh bones.

    Args:
        scene: Source scene
        used_node_indices: Nodes whose meshes are exported (all mesh nodes if None)

    Returns:
        Union of channel target names and bone names of the used meshes
    """
    names: Set[str] = set()

    for animation in scene.animations:
        names.update(track.node_name for track in animation.tracks)

    if used_node_indices is None:
        used_node_indices = scene.mesh_node_indices()

    used_meshes: Dict[int, None] = {}
    for node_index in used_node_indices:
        for mesh_index in scene.node_meshes.get(node_index, ()):
            used_meshes[mesh_index] = None

    for mesh_index in used_meshes:
        names.update(scene.meshes[mesh_index].bone_names)

    return names


def find_nodes_with_animation(graph: SceneGraph, animated_names: Iterable[str],
                              model_scale: float = 1.0) -> NodeAnimationInfo:
    """
    Resolve the animation hierarchy of a scene.

    Args:
        graph: Source node hierarchy
        animated_names: Names of animation-relevant nodes
        model_scale: Uniform scale applied above nodes that have no relevant ancestor

    Returns:
        NodeAnimationInfo sorted by depth-first visitation order
    """
    animated_names = set(animated_names)

    node_order: Dict[int, int] = {}
    relevant: Set[int] = set()
    for node in graph.iter_depth_first():
        if node.name in animated_names:
            relevant.add(node.index)
        node_order[node.index] = len(node_order)

    scale_transform = Matrix44.from_scale([model_scale, model_scale, model_scale])

    result = NodeAnimationInfo()
    for node_index in relevant:
        relative = np.identity(4, dtype=np.float64)
        current = graph[node_index]

        while current.parent is not None and current.parent not in relevant:
            current = graph[current.parent]
            relative = relative @ current.transform

        if current.parent is None:
            relative = relative @ scale_transform

        result.nodes_with_animation.append(
            AnimationNodeInfo(node_index, current.parent, Matrix44(relative))
        )

    result.nodes_with_animation.sort(key=lambda info: node_order[info.node_index])

    logger.debug("Resolved %d animation nodes out of %d scene nodes",
                 len(result), len(graph))
    return result
