"""Small 3D vector helpers shared by the geometry stages."""

import numpy as np

EPSILON = 1e-9


def normalize(v: np.ndarray, fallback=None) -> np.ndarray:
    """
    Return ``v`` scaled to unit length.

    Near-zero vectors return ``fallback`` (or +X) instead of dividing by a
    vanishing norm.
    """
    v = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(v)
    if n < EPSILON:
        if fallback is None:
            fallback = np.array([1.0, 0.0, 0.0])
        return np.asarray(fallback, dtype=np.float64)
    return v / n


def perpendicular_unit(v: np.ndarray) -> np.ndarray:
    """Deterministic unit vector perpendicular to ``v``."""
    v = np.asarray(v, dtype=np.float64)
    if np.linalg.norm(v) < EPSILON:
        return np.array([1.0, 0.0, 0.0])
    if abs(v[0]) < 0.9:
        other = np.array([1.0, 0.0, 0.0])
    else:
        other = np.array([0.0, 1.0, 0.0])
    return normalize(np.cross(v, other), fallback=np.array([0.0, 0.0, 1.0]))


def axis_angle_matrix(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rodrigues rotation matrix for a unit axis and an angle in radians."""
    x, y, z = axis
    k = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    return np.eye(3) + np.sin(angle) * k + (1.0 - np.cos(angle)) * (k @ k)


def rotation_between(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Shortest-arc rotation matrix taking direction ``a`` onto direction ``b``.

    Parallel inputs give the identity. Antiparallel inputs rotate by pi about
    ``perpendicular_unit(a)`` so the result is deterministic.
    """
    a = normalize(a)
    b = normalize(b)
    axis = np.cross(a, b)
    s = np.linalg.norm(axis)
    c = float(np.clip(np.dot(a, b), -1.0, 1.0))
    if s < 1e-12:
        if c > 0.0:
            return np.eye(3)
        return axis_angle_matrix(perpendicular_unit(a), np.pi)
    return axis_angle_matrix(axis / s, np.arctan2(s, c))
