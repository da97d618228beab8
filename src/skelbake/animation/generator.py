"""
Animation Generator

Runs the whole animation bake for one scene: hierarchy, skeleton tables,
resampled clips and the clip header table.
"""

import logging
from typing import Iterable, Optional

from ..config.settings import ExportSettings
from ..core.naming import UniqueNameRegistry
from ..core.scene_graph import Scene
from .hierarchy import collect_animated_node_names, find_nodes_with_animation
from .packager import AnimationResults, ClipPackager
from .resampler import resample_animations
from .skeleton import BoneHierarchy

logger = logging.getLogger(__name__)


def build_bone_hierarchy(scene: Scene, settings: ExportSettings,
                         used_node_indices: Optional[Iterable[int]] = None) -> BoneHierarchy:
    """
    Resolve the animation-relevant nodes of a scene into a canonical skeleton.

    Args:
        scene: Source scene
        settings: Export settings (model scale and root rotation are used)
        used_node_indices: Nodes whose meshes are exported (all mesh nodes if None)
    """
    animated_names = collect_animated_node_names(scene, used_node_indices)
    info = find_nodes_with_animation(scene.graph, animated_names, settings.model_scale)
    return BoneHierarchy.from_node_info(scene.graph, info, settings.root_rotation)


def generate_animation_for_scene(scene: Scene, settings: Optional[ExportSettings] = None,
                                 names: Optional[UniqueNameRegistry] = None,
                                 used_node_indices: Optional[Iterable[int]] = None,
                                 bones: Optional[BoneHierarchy] = None) -> AnimationResults:
    """
    Bake every animation of a scene.

    Args:
        scene: Source scene
        settings: Export settings (defaults if None)
        names: Naming authority for the output file (a fresh one if None)
        used_node_indices: Nodes whose meshes are exported (all mesh nodes if None)
        bones: Precomputed canonical skeleton (resolved from the scene if None)

    Returns:
        AnimationResults with one clip per animation that drives at least one bone
    """
    settings = (settings or ExportSettings()).validate()
    names = names or UniqueNameRegistry()

    if bones is None:
        bones = build_bone_hierarchy(scene, settings, used_node_indices)

    packager = ClipPackager(names)

    bones_name = names.get_unique_name("default_bones")
    bone_parent_name = names.get_unique_name("bone_parent")
    bone_count_macro = names.claim(f"{bones_name}_COUNT".upper())
    animations_name = names.get_unique_name("animations")

    attachment_constants, attachment_count_macro = packager.build_attachment_constants(bones)

    results = AnimationResults(
        bones_name=bones_name,
        bone_parent_name=bone_parent_name,
        animations_name=animations_name,
        bone_count_macro=bone_count_macro,
        attachment_count_macro=attachment_count_macro,
        rest_pose=packager.build_rest_pose_table(bones, settings),
        bone_parents=packager.build_bone_parent_table(bones),
    )
    results.constants[bone_count_macro] = bones.bone_count

    clips = resample_animations(scene.animations, bones, settings)
    for clip in clips:
        if clip is None:
            continue
        record, header, (index_macro, index) = packager.package_clip(clip)
        results.clips.append(record)
        results.headers.append(header)
        results.constants[index_macro] = index

    results.constants.update(attachment_constants)

    logger.info("Baked %d of %d animations over %d bones",
                len(results.clips), len(scene.animations), bones.bone_count)
    return results
