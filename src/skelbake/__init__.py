"""
skelbake - Skeletal Animation Baker

Offline asset stage that turns a parsed scene graph with skinned meshes and
keyframe animation into compact, fixed-rate, fixed-point clip data for a
resource-constrained runtime.
"""

# Configuration
from .config.settings import ExportSettings, InvalidSettingsError, load_settings

# Core
from .core.scene_graph import SceneNode, SceneGraph, MeshInfo, Scene
from .core.naming import UniqueNameRegistry

# Animation
from .animation import (
    AnimationTrack,
    SourceAnimation,
    BoneHierarchy,
    AnimationResults,
    generate_animation_for_scene,
)

# Loaders
from .loaders import GltfSceneLoader

__version__ = "0.1.0"
__all__ = [
    # Config
    "ExportSettings",
    "InvalidSettingsError",
    "load_settings",
    # Core
    "SceneNode",
    "SceneGraph",
    "MeshInfo",
    "Scene",
    "UniqueNameRegistry",
    # Animation
    "AnimationTrack",
    "SourceAnimation",
    "BoneHierarchy",
    "AnimationResults",
    "generate_animation_for_scene",
    # Loaders
    "GltfSceneLoader",
]
