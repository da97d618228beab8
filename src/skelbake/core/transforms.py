"""
Transform helpers

Conversions between translation/rotation/scale and 4x4 matrices.

Matrices follow pyrr's row-vector convention (v' = v @ M, translation in
the last row). Quaternions are (x, y, z, w).
"""

from typing import Sequence, Tuple
from pyrr import Matrix44, Quaternion, Vector3
import numpy as np


def trs_to_matrix(translation: Sequence[float] = (0.0, 0.0, 0.0),
                  rotation: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
                  scale: Sequence[float] = (1.0, 1.0, 1.0)) -> Matrix44:
    """Build a row-vector matrix that scales, then rotates, then translates."""
    x, y, z, w = (float(c) for c in rotation)
    sx, sy, sz = (float(c) for c in scale)

    m = np.identity(4, dtype=np.float64)
    # Column-vector rotation, columns scaled
    m[0, 0] = (1 - 2 * (y * y + z * z)) * sx
    m[0, 1] = (2 * (x * y - z * w)) * sy
    m[0, 2] = (2 * (x * z + y * w)) * sz
    m[1, 0] = (2 * (x * y + z * w)) * sx
    m[1, 1] = (1 - 2 * (x * x + z * z)) * sy
    m[1, 2] = (2 * (y * z - x * w)) * sz
    m[2, 0] = (2 * (x * z - y * w)) * sx
    m[2, 1] = (2 * (y * z + x * w)) * sy
    m[2, 2] = (1 - 2 * (x * x + y * y)) * sz
    m[0, 3] = translation[0]
    m[1, 3] = translation[1]
    m[2, 3] = translation[2]

    return Matrix44(m.T)


def matrix_to_quaternion(m: np.ndarray) -> Quaternion:
    """Convert a column-vector 3x3 rotation matrix to a unit quaternion (x, y, z, w)."""
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (m[2, 1] - m[1, 2]) * s
        y = (m[0, 2] - m[2, 0]) * s
        z = (m[1, 0] - m[0, 1]) * s
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * np.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        w = (m[2, 1] - m[1, 2]) / s
        x = 0.25 * s
        y = (m[0, 1] + m[1, 0]) / s
        z = (m[0, 2] + m[2, 0]) / s
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * np.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        w = (m[0, 2] - m[2, 0]) / s
        x = (m[0, 1] + m[1, 0]) / s
        y = 0.25 * s
        z = (m[1, 2] + m[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        w = (m[1, 0] - m[0, 1]) / s
        x = (m[0, 2] + m[2, 0]) / s
        y = (m[1, 2] + m[2, 1]) / s
        z = 0.25 * s

    q = np.array([x, y, z, w], dtype=np.float64)
    return Quaternion(q / np.linalg.norm(q))


def decompose_transform(matrix) -> Tuple[Vector3, Quaternion, Vector3]:
    """
    Split a row-vector matrix built as scale, rotate, translate.

    Assumes no shear. A negative determinant is folded into the x scale.

    Returns:
        (translation, rotation, scale)
    """
    m = np.asarray(matrix, dtype=np.float64)
    translation = Vector3(m[3, :3].copy())

    upper = m[:3, :3]
    scale = np.linalg.norm(upper, axis=1)
    if np.linalg.det(upper) < 0.0:
        scale[0] = -scale[0]

    safe_scale = np.where(scale == 0.0, 1.0, scale)
    rotation = matrix_to_quaternion((upper / safe_scale[:, None]).T)

    return translation, rotation, Vector3(scale)
