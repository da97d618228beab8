"""Tests for keyframe evaluation"""

import math

import pytest
import numpy as np
from pyrr import Quaternion, Vector3

from skelbake.animation.animation import Keyframe
from skelbake.animation.keyframes import (
    evaluate_quaternion_at,
    evaluate_vector_at,
    find_start_key,
    slerp,
)


def z_rotation(degrees):
    """Quaternion (x, y, z, w) for a rotation about +Z."""
    half = math.radians(degrees) / 2.0
    return np.array([0.0, 0.0, math.sin(half), math.cos(half)])


def vector_keys(*pairs):
    return [Keyframe(t, Vector3(np.array(v, dtype=np.float64))) for t, v in pairs]


def rotation_keys(*pairs):
    return [Keyframe(t, Quaternion(np.array(q, dtype=np.float64))) for t, q in pairs]


def test_empty_vector_track_is_zero():
    """Test empty position track evaluates to the zero vector"""
    assert np.array_equal(evaluate_vector_at([], 12.0), [0.0, 0.0, 0.0])


def test_empty_rotation_track_is_identity():
    """Test empty rotation track evaluates to the identity quaternion"""
    assert np.array_equal(evaluate_quaternion_at([], 12.0), [0.0, 0.0, 0.0, 1.0])


@pytest.mark.parametrize("at", [-5.0, 0.0, 3.0, 100.0])
def test_single_key_returned_for_any_time(at):
    """Test a single key is returned regardless of query time"""
    keys = vector_keys((4.0, [1.0, 2.0, 3.0]))
    assert np.array_equal(evaluate_vector_at(keys, at), [1.0, 2.0, 3.0])

    rotation = z_rotation(30.0)
    rkeys = rotation_keys((4.0, rotation))
    assert np.array_equal(evaluate_quaternion_at(rkeys, at), rotation)


def test_linear_midpoint():
    """Test position halfway between two keys is the exact midpoint"""
    keys = vector_keys((0.0, [0.0, 0.0, 0.0]), (10.0, [2.0, 4.0, -6.0]))
    assert np.allclose(np.asarray(evaluate_vector_at(keys, 5.0)), [1.0, 2.0, -3.0])


def test_spherical_midpoint():
    """Test rotation halfway between two keys is the spherical midpoint"""
    keys = rotation_keys((0.0, z_rotation(0.0)), (10.0, z_rotation(90.0)))
    result = evaluate_quaternion_at(keys, 5.0)

    assert np.allclose(np.asarray(result), z_rotation(45.0))
    assert np.isclose(np.linalg.norm(result), 1.0)


def test_last_key_returned_exactly_past_end():
    """Test queries at or beyond the last key return its value without extrapolation"""
    keys = vector_keys((0.0, [0.0, 0.0, 0.0]), (10.0, [0.1, 0.7, 0.3]))
    assert np.array_equal(evaluate_vector_at(keys, 10.0), [0.1, 0.7, 0.3])
    assert np.array_equal(evaluate_vector_at(keys, 25.0), [0.1, 0.7, 0.3])

    end = z_rotation(73.0)
    rkeys = rotation_keys((0.0, z_rotation(0.0)), (10.0, end))
    assert np.array_equal(evaluate_quaternion_at(rkeys, 10.0), end)
    assert np.array_equal(evaluate_quaternion_at(rkeys, 11.0), end)


def test_before_first_key_clamps_to_first():
    """Test queries before the first key hold the first value"""
    keys = vector_keys((5.0, [1.0, 1.0, 1.0]), (10.0, [2.0, 2.0, 2.0]))
    assert np.allclose(np.asarray(evaluate_vector_at(keys, 0.0)), [1.0, 1.0, 1.0])


def test_one_tick_gap_holds_earlier_key():
    """Test keys exactly one tick apart do not interpolate"""
    keys = vector_keys((2.0, [0.0, 0.0, 0.0]), (3.0, [10.0, 10.0, 10.0]), (8.0, [20.0, 20.0, 20.0]))
    assert np.array_equal(evaluate_vector_at(keys, 2.5), [0.0, 0.0, 0.0])

    # Other gaps interpolate normally
    assert np.allclose(np.asarray(evaluate_vector_at(keys, 5.5)), [15.0, 15.0, 15.0])


def test_find_start_key():
    """Test bracket search results"""
    keys = vector_keys((0.0, [0.0, 0.0, 0.0]), (10.0, [1.0, 1.0, 1.0]))

    assert find_start_key(keys, -1.0) == (0, 0.0)
    assert find_start_key(keys, 0.0) == (0, 0.0)
    index, factor = find_start_key(keys, 4.0)
    assert index == 0
    assert factor == pytest.approx(0.4)
    assert find_start_key(keys, 20.0) == (2, 0.0)


def test_slerp_takes_shortest_path():
    """Test slerp flips the end quaternion onto the start hemisphere"""
    result = slerp(z_rotation(0.0), -z_rotation(90.0), 0.5)
    assert np.allclose(np.asarray(result), z_rotation(45.0))


def test_evaluation_is_repeatable():
    """Test evaluation does not modify keys and gives identical results"""
    keys = rotation_keys((0.0, z_rotation(10.0)), (4.0, z_rotation(50.0)), (9.0, z_rotation(-20.0)))
    first = evaluate_quaternion_at(keys, 6.0)
    second = evaluate_quaternion_at(keys, 6.0)

    assert np.array_equal(first, second)
    assert np.array_equal(keys[1].value, z_rotation(50.0))
