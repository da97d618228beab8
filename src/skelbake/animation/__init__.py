"""
Animation System

Resolves skeletal hierarchies and bakes keyframe animation into fixed-rate,
fixed-point clips.
"""

from .animation import Keyframe, AnimationTrack, SourceAnimation
from .keyframes import evaluate_vector_at, evaluate_quaternion_at, find_start_key, slerp
from .hierarchy import (
    AnimationNodeInfo, NodeAnimationInfo, collect_animated_node_names, find_nodes_with_animation
)
from .skeleton import Bone, BoneHierarchy
from .resampler import (
    BoneFrame, ResampledClip, compute_frame_count, decode_rotation,
    quantize_position, quantize_rotation, resample_animation, resample_animations
)
from .packager import (
    AnimationClipRecord, AnimationHeaderEntry, AnimationResults, ClipPackager, RestPoseEntry
)
from .generator import build_bone_hierarchy, generate_animation_for_scene

__all__ = [
    'Keyframe',
    'AnimationTrack',
    'SourceAnimation',
    'evaluate_vector_at',
    'evaluate_quaternion_at',
    'find_start_key',
    'slerp',
    'AnimationNodeInfo',
    'NodeAnimationInfo',
    'collect_animated_node_names',
    'find_nodes_with_animation',
    'Bone',
    'BoneHierarchy',
    'BoneFrame',
    'ResampledClip',
    'compute_frame_count',
    'decode_rotation',
    'quantize_position',
    'quantize_rotation',
    'resample_animation',
    'resample_animations',
    'AnimationClipRecord',
    'AnimationHeaderEntry',
    'AnimationResults',
    'ClipPackager',
    'RestPoseEntry',
    'build_bone_hierarchy',
    'generate_animation_for_scene',
]
