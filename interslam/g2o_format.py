"""Rigid transforms, quaternions and the text lines of the g2o graph format."""

from __future__ import annotations

import math

import numpy as np


def _num(value: float) -> str:
    return format(float(value), "g")


def isometry(rotation, translation) -> np.ndarray:
    """A 4x4 rigid transform from a 3x3 rotation and a translation."""
    rot = np.asarray(rotation, dtype=np.float64)
    trans = np.asarray(translation, dtype=np.float64).reshape(-1)
    if rot.shape != (3, 3):
        raise ValueError("rotation must be a 3x3 matrix")
    if trans.shape != (3,):
        raise ValueError("translation must have three components")
    pose = np.eye(4)
    pose[:3, :3] = rot
    pose[:3, 3] = trans
    return pose


def quaternion_to_matrix(quat) -> np.ndarray:
    """Rotation matrix of a quaternion given as (x, y, z, w); it is normalised first."""
    q = np.asarray(quat, dtype=np.float64).reshape(-1)
    if q.shape != (4,):
        raise ValueError("a quaternion has four components")
    norm = np.linalg.norm(q)
    if norm == 0.0:
        raise ValueError("a zero quaternion has no rotation")
    x, y, z, w = q / norm
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ]
    )


def matrix_to_quaternion(rotation) -> np.ndarray:
    """Unit quaternion (x, y, z, w) of a rotation matrix, with w >= 0."""
    m = np.asarray(rotation, dtype=np.float64)
    if m.shape != (3, 3):
        raise ValueError("rotation must be a 3x3 matrix")
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        w, x = 0.25 * s, (m[2, 1] - m[1, 2]) / s
        y, z = (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2.0
        w, x = (m[2, 1] - m[1, 2]) / s, 0.25 * s
        y, z = (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s
    elif m[1, 1] > m[2, 2]:
        s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2.0
        w, x = (m[0, 2] - m[2, 0]) / s, (m[0, 1] + m[1, 0]) / s
        y, z = 0.25 * s, (m[1, 2] + m[2, 1]) / s
    else:
        s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2.0
        w, x = (m[1, 0] - m[0, 1]) / s, (m[0, 2] + m[2, 0]) / s
        y, z = (m[1, 2] + m[2, 1]) / s, 0.25 * s
    q = np.array([x, y, z, w])
    q /= np.linalg.norm(q)
    if q[3] < 0.0:
        q = -q
    return q


def rotation_angle(rotation) -> float:
    """Angle in [0, pi] of the rotation about its axis."""
    q = matrix_to_quaternion(rotation)
    return 2.0 * math.atan2(float(np.linalg.norm(q[:3])), abs(float(q[3])))


def _pose_values(pose) -> list[float]:
    p = np.asarray(pose, dtype=np.float64)
    if p.shape != (4, 4):
        raise ValueError("a pose must be a 4x4 matrix")
    return list(p[:3, 3]) + list(matrix_to_quaternion(p[:3, :3]))


def format_vertex_se3(index: int, pose) -> str:
    """A ``VERTEX_SE3:QUAT`` line: id, translation, quaternion x y z w."""
    values = " ".join(_num(v) for v in _pose_values(pose))
    return f"VERTEX_SE3:QUAT {index} {values}"


def format_edge_se3(source: int, target: int, measurement, information) -> str:
    """An ``EDGE_SE3:QUAT`` line: ids, measured pose, upper triangle of the 6x6 information."""
    info = np.asarray(information, dtype=np.float64)
    if info.shape != (6, 6):
        raise ValueError("information must be a 6x6 matrix")
    values = _pose_values(measurement) + list(info[np.triu_indices(6)])
    return f"EDGE_SE3:QUAT {source} {target} " + " ".join(_num(v) for v in values)


def format_matrix(matrix) -> str:
    """Rows of the matrix on separate lines, values right-aligned to a common width."""
    m = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    if m.ndim != 2:
        raise ValueError("a matrix must be two-dimensional")
    texts = [[_num(v) for v in row] for row in m]
    width = max((len(text) for row in texts for text in row), default=0)
    return "\n".join(" ".join(text.rjust(width) for text in row) for row in texts)