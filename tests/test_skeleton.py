"""Tests for skeleton construction and transform helpers"""

import math

import pytest
import numpy as np
from pyrr import Matrix44, Quaternion

from skelbake.animation.hierarchy import find_nodes_with_animation
from skelbake.animation.skeleton import Bone, BoneHierarchy
from skelbake.core.scene_graph import SceneGraph
from skelbake.core.transforms import decompose_transform, trs_to_matrix


def build_graph():
    graph = SceneGraph()
    armature = graph.add_node("Armature", Matrix44.from_translation([1.0, 0.0, 0.0]))
    hips = graph.add_node("hips", Matrix44.from_translation([0.0, 1.0, 0.0]), armature.index)
    spine = graph.add_node("spine", Matrix44.from_translation([0.0, 0.0, 3.0]), hips.index)
    graph.add_node("attachment hand", Matrix44.from_translation([0.5, 0.0, 0.0]), spine.index)
    graph.add_node("tail", parent=hips.index)
    return graph


def test_bones_follow_resolved_order():
    """Test bone indices and parents come from the resolved hierarchy"""
    graph = build_graph()
    info = find_nodes_with_animation(graph, {"hips", "spine", "attachment hand", "tail"})
    bones = BoneHierarchy.from_node_info(graph, info)

    assert [b.name for b in bones] == ["hips", "spine", "attachment hand", "tail"]
    assert [b.index for b in bones] == [0, 1, 2, 3]
    assert bones.bone_by_name("spine").parent.name == "hips"
    assert bones.bone_by_name("tail").parent.name == "hips"
    assert [b.name for b in bones.root_bones] == ["hips"]

    for bone in bones:
        if bone.parent is not None:
            assert bone.parent.index < bone.index


def test_rest_pose_includes_relative_transform():
    """Test root rest pose folds in irrelevant ancestors and model scale"""
    graph = build_graph()
    info = find_nodes_with_animation(graph, {"hips", "spine"}, model_scale=2.0)
    bones = BoneHierarchy.from_node_info(graph, info)

    hips = bones.bone_by_index(0)
    assert np.allclose(np.asarray(hips.rest_position), [2.0, 2.0, 0.0])
    assert np.allclose(np.asarray(hips.rest_scale), [2.0, 2.0, 2.0])
    assert np.allclose(np.asarray(hips.rest_rotation), [0.0, 0.0, 0.0, 1.0])

    spine = bones.bone_by_index(1)
    assert np.allclose(np.asarray(spine.rest_position), [0.0, 0.0, 3.0])
    assert np.allclose(np.asarray(spine.rest_scale), [1.0, 1.0, 1.0])


def test_root_rest_pose_rotated():
    """Test root rotation applies to root rest poses only"""
    graph = build_graph()
    info = find_nodes_with_animation(graph, {"hips", "spine"})
    flip = Quaternion([0.0, 0.0, 1.0, 0.0])  # 180 degrees about Z
    bones = BoneHierarchy.from_node_info(graph, info, root_rotation=flip)

    hips = bones.bone_by_index(0)
    assert np.allclose(np.asarray(hips.rest_position), [-1.0, -1.0, 0.0])
    assert np.allclose(np.asarray(hips.rest_rotation), [0.0, 0.0, 1.0, 0.0])

    spine = bones.bone_by_index(1)
    assert np.allclose(np.asarray(spine.rest_position), [0.0, 0.0, 3.0])


def test_attachment_bones():
    """Test attachment bones are found by name prefix"""
    graph = build_graph()
    info = find_nodes_with_animation(graph, {"hips", "spine", "attachment hand"})
    bones = BoneHierarchy.from_node_info(graph, info)

    assert [b.name for b in bones.attachment_bones()] == ["attachment hand"]


def test_add_bone_requires_sequential_index():
    """Test bones must be appended in index order"""
    bones = BoneHierarchy()
    bones.add_bone(Bone("a", 0, node_index=0))
    with pytest.raises(ValueError):
        bones.add_bone(Bone("b", 5, node_index=1))


def test_trs_matrix_rotates_row_vectors():
    """Test TRS matrices transform row vectors scale-rotate-translate"""
    half = math.radians(90.0) / 2.0
    m = trs_to_matrix([10.0, 0.0, 0.0], [0.0, 0.0, math.sin(half), math.cos(half)], [2.0, 2.0, 2.0])

    point = np.array([1.0, 0.0, 0.0, 1.0]) @ np.asarray(m)
    assert np.allclose(point[:3], [10.0, 2.0, 0.0])


def test_decompose_round_trip():
    """Test decomposition recovers translation, rotation and scale"""
    half = math.radians(60.0) / 2.0
    rotation = [0.0, math.sin(half), 0.0, math.cos(half)]
    m = trs_to_matrix([1.0, 2.0, 3.0], rotation, [1.5, 2.0, 0.5])

    translation, q, scale = decompose_transform(m)
    assert np.allclose(np.asarray(translation), [1.0, 2.0, 3.0])
    assert np.allclose(np.asarray(q), np.asarray(rotation))
    assert np.allclose(np.asarray(scale), [1.5, 2.0, 0.5])
