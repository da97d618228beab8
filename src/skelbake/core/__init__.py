"""
Core

Scene graph data model and output naming shared by the bake stages.
"""

from .scene_graph import SceneNode, SceneGraph, MeshInfo, Scene
from .naming import UniqueNameRegistry, sanitize_identifier

__all__ = [
    'SceneNode',
    'SceneGraph',
    'MeshInfo',
    'Scene',
    'UniqueNameRegistry',
    'sanitize_identifier',
]
