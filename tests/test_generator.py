"""Tests for the end-to-end animation bake"""

import pytest
import numpy as np
from pyrr import Matrix44

from skelbake.animation.animation import AnimationTrack, SourceAnimation
from skelbake.animation.generator import build_bone_hierarchy, generate_animation_for_scene
from skelbake.config.settings import ExportSettings, InvalidSettingsError, NO_PARENT_INDEX
from skelbake.core.naming import UniqueNameRegistry
from skelbake.core.scene_graph import MeshInfo, Scene, SceneGraph


def track(name, *positions):
    t = AnimationTrack(name)
    for time, position in positions:
        t.add_position_key(time, position)
    return t


def build_scene(animations):
    graph = SceneGraph()
    armature = graph.add_node("Armature")
    hips = graph.add_node("hips", Matrix44.from_translation([0.0, 1.0, 0.0]), armature.index)
    spine = graph.add_node("spine", parent=hips.index)
    graph.add_node("attachment hand", parent=spine.index)
    body = graph.add_node("body", parent=armature.index)

    scene = Scene(graph, animations=animations)
    scene.attach_mesh(body.index, MeshInfo("body", ["hips", "spine", "attachment hand"]))
    return scene


def test_full_bake():
    """Test a scene bakes into clips, tables and constants"""
    scene = build_scene([
        SourceAnimation("walk", 30.0, 30.0, [
            track("hips", (0.0, [0.0, 0.0, 0.0]), (30.0, [0.0, 0.0, 1.0])),
            track("spine", (0.0, [0.0, 0.5, 0.0])),
        ]),
        SourceAnimation("blink", 10.0, 30.0, [track("eyelid", (0.0, [0.0, 0.0, 0.0]))]),
        SourceAnimation("idle", 60.0, 30.0, [track("spine", (0.0, [0.0, 0.5, 0.0]))]),
    ])
    results = generate_animation_for_scene(scene, ExportSettings(ticks_per_second=15))

    assert [clip.name for clip in results.clips] == ["walk_clip", "idle_clip"]
    assert [clip.frame_count for clip in results.clips] == [15, 30]
    assert all(clip.bone_count == 3 for clip in results.clips)
    assert [h.data_reference for h in results.headers] == ["walk_data", "idle_data"]
    assert [h.ticks_per_second for h in results.headers] == [15, 15]

    assert results.bones_name == "default_bones"
    assert results.bone_parent_name == "bone_parent"
    assert results.animations_name == "animations"
    assert results.bone_parents == [NO_PARENT_INDEX, 0, 1]
    assert len(results.rest_pose) == 3

    assert results.constants == {
        "DEFAULT_BONES_COUNT": 3,
        "WALK_INDEX": 0,
        "IDLE_INDEX": 1,
        "ATTACHMENT_HAND": 0,
        "ATTACHMENT_COUNT": 1,
    }


def test_clip_with_no_bone_channels_produces_nothing():
    """Test a scene whose only clip targets no bone yields zero clips"""
    scene = build_scene([SourceAnimation("blink", 10.0, 30.0, [track("eyelid", (0.0, [1.0, 0.0, 0.0]))])])
    results = generate_animation_for_scene(scene)

    assert results.clips == []
    assert results.headers == []
    assert "BLINK_INDEX" not in results.constants


def test_names_come_from_injected_registry():
    """Test every generated name goes through the supplied registry"""
    names = UniqueNameRegistry("hero")
    names.reserve("hero_walk_data")
    scene = build_scene([SourceAnimation("walk", 30.0, 30.0, [track("hips", (0.0, [0.0, 0.0, 0.0]))])])

    results = generate_animation_for_scene(scene, names=names)

    assert results.bones_name == "hero_default_bones"
    assert results.clips[0].name == "hero_walk_clip"
    assert results.clips[0].frames_name == "hero_walk_data_1"
    assert results.headers[0].data_reference == "hero_walk_data_1"
    assert set(results.constants) == {
        "HERO_DEFAULT_BONES_COUNT",
        "HERO_WALK_INDEX",
        "HERO_ATTACHMENT_HAND",
        "HERO_ATTACHMENT_COUNT",
    }


def test_build_bone_hierarchy_respects_used_nodes():
    """Test only meshes on used nodes contribute bones"""
    scene = build_scene([])
    bones = build_bone_hierarchy(scene, ExportSettings(), used_node_indices=[])
    assert bones.bone_count == 0

    bones = build_bone_hierarchy(scene, ExportSettings())
    assert [b.name for b in bones] == ["hips", "spine", "attachment hand"]


def test_invalid_settings_rejected():
    """Test invalid settings are surfaced to the caller"""
    scene = build_scene([])
    with pytest.raises(InvalidSettingsError):
        generate_animation_for_scene(scene, ExportSettings(ticks_per_second=0))
