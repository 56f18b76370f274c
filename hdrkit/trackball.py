"""Virtual trackball: map mouse drags to rotation quaternions.

Quaternions are ``(x, y, z, w)`` tuples, with the vector part first and the
scalar part last.
"""

from __future__ import annotations

import math
from typing import Sequence

Quaternion = tuple[float, float, float, float]
Vector = tuple[float, float, float]
Matrix = tuple[
    tuple[float, float, float, float],
    tuple[float, float, float, float],
    tuple[float, float, float, float],
    tuple[float, float, float, float],
]

TRACKBALL_SIZE = 0.8
"""Radius of the virtual ball in normalised screen units."""

RENORM_COUNT = 97
"""A :class:`Trackball` renormalises after this many accumulated rotations."""

IDENTITY: Quaternion = (0.0, 0.0, 0.0, 1.0)


def _cross(a: Sequence[float], b: Sequence[float]) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _length(v: Sequence[float]) -> float:
    return math.sqrt(_dot(v, v))


def _project_to_sphere(r: float, x: float, y: float) -> float:
    """Project ``(x, y)`` onto a sphere of radius ``r``, or onto a hyperbolic
    sheet when the point lies away from the centre."""
    d = math.hypot(x, y)
    if d < r * math.sqrt(0.5):
        return math.sqrt(r * r - d * d)
    t = r / math.sqrt(2.0)
    return t * t / d


def trackball(p1x: float, p1y: float, p2x: float, p2y: float) -> Quaternion:
    """Return the rotation for a drag from ``(p1x, p1y)`` to ``(p2x, p2y)``.

    Coordinates are expected in the range -1.0 to 1.0.
    """
    if p1x == p2x and p1y == p2y:
        return IDENTITY

    p1 = (p1x, p1y, _project_to_sphere(TRACKBALL_SIZE, p1x, p1y))
    p2 = (p2x, p2y, _project_to_sphere(TRACKBALL_SIZE, p2x, p2y))

    axis = _cross(p2, p1)
    diff = (p1[0] - p2[0], p1[1] - p2[1], p1[2] - p2[2])
    t = _length(diff) / (2.0 * TRACKBALL_SIZE)
    t = max(-1.0, min(1.0, t))
    phi = 2.0 * math.asin(t)
    return axis_to_quat(axis, phi)


def axis_to_quat(axis: Sequence[float], phi: float) -> Quaternion:
    """Return the quaternion rotating by ``phi`` radians about ``axis``."""
    length = _length(axis)
    if length == 0.0:
        raise ValueError("rotation axis must not be the zero vector")
    s = math.sin(phi / 2.0) / length
    return (axis[0] * s, axis[1] * s, axis[2] * s, math.cos(phi / 2.0))


def add_quats(q1: Sequence[float], q2: Sequence[float]) -> Quaternion:
    """Combine two rotations: apply ``q2`` first, then ``q1``."""
    t1 = [c * q2[3] for c in q1[:3]]
    t2 = [c * q1[3] for c in q2[:3]]
    t3 = _cross(q2, q1)
    return (
        t1[0] + t2[0] + t3[0],
        t1[1] + t2[1] + t3[1],
        t1[2] + t2[2] + t3[2],
        q1[3] * q2[3] - _dot(q1, q2),
    )


def normalize_quat(q: Sequence[float]) -> Quaternion:
    """Divide every component by the sum of the squared components."""
    mag = sum(c * c for c in q[:4])
    if mag == 0.0:
        raise ValueError("cannot normalise a zero quaternion")
    return (q[0] / mag, q[1] / mag, q[2] / mag, q[3] / mag)


def build_rotmatrix(q: Sequence[float]) -> Matrix:
    """Return the 4x4 rotation matrix of quaternion ``q``."""
    x, y, z, w = q[0], q[1], q[2], q[3]
    return (
        (
            1.0 - 2.0 * (y * y + z * z),
            2.0 * (x * y - z * w),
            2.0 * (z * x + y * w),
            0.0,
        ),
        (
            2.0 * (x * y + z * w),
            1.0 - 2.0 * (z * z + x * x),
            2.0 * (y * z - x * w),
            0.0,
        ),
        (
            2.0 * (z * x - y * w),
            2.0 * (y * z + x * w),
            1.0 - 2.0 * (y * y + x * x),
            0.0,
        ),
        (0.0, 0.0, 0.0, 1.0),
    )


class Trackball:
    """Accumulated rotation that is renormalised periodically to limit drift."""

    def __init__(self) -> None:
        self.quat: Quaternion = IDENTITY
        self._count = 0

    def add(self, q: Sequence[float]) -> Quaternion:
        """Apply rotation ``q`` on top of the current one and return the result."""
        self.quat = add_quats(q, self.quat)
        self._count += 1
        if self._count > RENORM_COUNT:
            self._count = 0
            self.quat = normalize_quat(self.quat)
        return self.quat