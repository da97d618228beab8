"""
Keyframe Evaluation

Samples sparse position and rotation tracks at arbitrary source times.

All functions are pure; they never modify the keys they are given.
"""

from typing import Sequence, Tuple
from pyrr import Quaternion, Vector3, quaternion
import numpy as np

from .animation import Keyframe


def find_start_key(keys: Sequence[Keyframe], at: float) -> Tuple[int, float]:
    """
    Locate the key pair bracketing `at`.

    Args:
        keys: Keys sorted by time
        at: Query time in source ticks

    Returns:
        (index, factor): interpolate from keys[index] towards keys[index + 1]
        by factor. index == len(keys) means `at` lies past every key.
    """
    for index, key in enumerate(keys):
        if key.time >= at:
            if index == 0:
                return 0, 0.0

            start = index - 1
            delta = key.time - keys[start].time
            # Keys exactly one tick apart hold the earlier value
            if delta == 1.0:
                return start, 0.0
            return start, (at - keys[start].time) / delta

    return len(keys), 0.0


def lerp(start, end, factor: float) -> Vector3:
    """Component-wise linear interpolation."""
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    return Vector3((end - start) * factor + start)


def slerp(start, end, factor: float) -> Quaternion:
    """
    Spherical interpolation along the shortest arc.

    Args:
        start: Quaternion (x, y, z, w) at factor 0
        end: Quaternion (x, y, z, w) at factor 1
        factor: Interpolation factor in [0, 1]

    Returns:
        Unit quaternion
    """
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)

    # q and -q are the same rotation; pick the one on start's hemisphere
    if np.dot(start, end) < 0.0:
        end = -end

    result = quaternion.slerp(start, end, factor)
    return Quaternion(quaternion.normalize(np.asarray(result, dtype=np.float64)))


def evaluate_vector_at(keys: Sequence[Keyframe], at: float) -> Vector3:
    """
    Evaluate a position track at `at`.

    Returns:
        Zero vector for an empty track, otherwise the interpolated position
    """
    if not keys:
        return Vector3()

    if len(keys) == 1 or at >= keys[-1].time:
        return Vector3(np.asarray(keys[-1].value, dtype=np.float64))

    index, factor = find_start_key(keys, at)
    if index == len(keys):
        return Vector3(np.asarray(keys[-1].value, dtype=np.float64))

    return lerp(keys[index].value, keys[index + 1].value, factor)


def evaluate_quaternion_at(keys: Sequence[Keyframe], at: float) -> Quaternion:
    """
    Evaluate a rotation track at `at`.

    Returns:
        Identity for an empty track, otherwise the interpolated unit quaternion
    """
    if not keys:
        return Quaternion()

    if len(keys) == 1 or at >= keys[-1].time:
        return Quaternion(np.asarray(keys[-1].value, dtype=np.float64))

    index, factor = find_start_key(keys, at)
    if index == len(keys):
        return Quaternion(np.asarray(keys[-1].value, dtype=np.float64))

    if factor == 0.0:
        return Quaternion(np.asarray(keys[index].value, dtype=np.float64))

    return slerp(keys[index].value, keys[index + 1].value, factor)
