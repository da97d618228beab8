"""Tests for the scene graph and naming"""

import pytest
import numpy as np
from pyrr import Matrix44

from skelbake.core.naming import UniqueNameRegistry, sanitize_identifier
from skelbake.core.scene_graph import MeshInfo, Scene, SceneGraph


def test_scene_graph_links_by_index():
    """Test nodes reference parents and children by index"""
    graph = SceneGraph()
    root = graph.add_node("root")
    child = graph.add_node("child", parent=root.index)

    assert graph.root is root
    assert child.parent == 0
    assert root.children == [1]
    assert len(graph) == 2


def test_scene_graph_rejects_second_root():
    """Test only one root is allowed"""
    graph = SceneGraph()
    graph.add_node("root")
    with pytest.raises(ValueError):
        graph.add_node("other")
    with pytest.raises(IndexError):
        graph.add_node("orphan", parent=7)


def test_depth_first_order():
    """Test traversal is pre-order with children in authored order"""
    graph = SceneGraph()
    root = graph.add_node("root")
    a = graph.add_node("a", parent=root.index)
    graph.add_node("b", parent=root.index)
    graph.add_node("a1", parent=a.index)

    assert [n.name for n in graph.iter_depth_first()] == ["root", "a", "a1", "b"]
    assert graph.find_by_name("a1").index == 3
    assert graph.find_by_name("missing") is None


def test_world_transform():
    """Test world transforms compose local transforms up to the root"""
    graph = SceneGraph()
    root = graph.add_node("root", Matrix44.from_translation([1.0, 0.0, 0.0]))
    child = graph.add_node("child", Matrix44.from_translation([0.0, 2.0, 0.0]), root.index)

    world = np.asarray(graph.world_transform(child.index))
    assert np.allclose(world[3, :3], [1.0, 2.0, 0.0])


def test_scene_mesh_nodes():
    """Test mesh attachment records node references"""
    graph = SceneGraph()
    root = graph.add_node("root")
    body = graph.add_node("body", parent=root.index)
    scene = Scene(graph)

    mesh_index = scene.attach_mesh(body.index, MeshInfo("body", ["hips"]))
    assert mesh_index == 0
    assert scene.mesh_node_indices() == [body.index]


def test_sanitize_identifier():
    """Test names become valid identifiers"""
    assert sanitize_identifier("Walk Cycle.001") == "Walk_Cycle_001"
    assert sanitize_identifier("2hand") == "_2hand"
    assert sanitize_identifier("") == "_"


def test_unique_names():
    """Test repeated requests get numbered suffixes"""
    names = UniqueNameRegistry()
    assert names.get_unique_name("walk") == "walk"
    assert names.get_unique_name("walk") == "walk_1"
    assert names.get_unique_name("walk") == "walk_2"
    assert names.get_macro_name("walk_index") == "WALK_INDEX"
    assert names.get_macro_name("walk_index") == "WALK_INDEX_1"


def test_unique_names_prefix():
    """Test the file prefix is applied once"""
    names = UniqueNameRegistry("hero")
    assert names.get_unique_name("bones") == "hero_bones"
    assert names.get_macro_name("bones_count") == "HERO_BONES_COUNT"
    assert names.claim("HERO_BONES_COUNT") == "HERO_BONES_COUNT_1"
