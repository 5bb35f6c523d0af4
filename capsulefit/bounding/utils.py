"""
Geometric primitives for capsule fitting.

All functions operate on float64 numpy arrays and return new values; inputs
are never modified.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def segment_parameter(p, a, b):
    """Unclamped parameter t of the projection of ``p`` on the line a + t (b - a).

    Returns 0.0 when ``a == b``.
    """
    d = b - a
    length_sq = float(np.dot(d, d))
    if length_sq == 0.0:
        return 0.0
    return float(np.dot(p - a, d) / length_sq)


def projection_on_segment(p, a, b):
    """Closest point to ``p`` on the clamped segment [a, b]."""
    t = min(max(segment_parameter(p, a, b), 0.0), 1.0)
    return a + t * (b - a)


def distance_point_to_segment(p, a, b):
    """Distance from ``p`` to the closest point on the clamped segment [a, b].

    Reduces to point-to-point distance when ``a == b``.
    """
    return float(np.linalg.norm(p - projection_on_segment(p, a, b)))


def distance_point_to_line(point, line_point, direction):
    """Distance from ``point`` to the infinite line through ``line_point`` along ``direction``.

    ``direction`` is normalized here. A zero direction degenerates to the
    distance between ``point`` and ``line_point``.
    """
    v = point - line_point
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        return float(np.linalg.norm(v))
    u = direction / norm
    perp = v - np.dot(v, u) * u
    return float(np.linalg.norm(perp))


def distances_to_line(points, line_point, direction):
    """Vectorized ``distance_point_to_line`` over an (N, 3) array."""
    v = points - line_point
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        return np.linalg.norm(v, axis=1)
    u = direction / norm
    perp = v - np.outer(v @ u, u)
    return np.linalg.norm(perp, axis=1)


def covariance_matrix(points):
    """Population covariance (1/N) sum (p_i - c)(p_i - c)^T of an (N, 3) array."""
    centered = points - points.mean(axis=0)
    cov = centered.T @ centered / points.shape[0]
    # Symmetrize away rounding
    return 0.5 * (cov + cov.T)


def extreme_points_along_direction(direction, points):
    """
    Indices of the points with minimum and maximum projection on ``direction``.

    Ties are resolved by the first occurrence in input order.

    Returns:
        tuple: (imin, imax)
    """
    projections = points @ direction
    return int(np.argmin(projections)), int(np.argmax(projections))


def principal_direction(covariance):
    """
    Unit eigenvector of the largest eigenvalue of a symmetric 3x3 matrix.

    The sign is fixed so the component with the largest magnitude is positive,
    which makes the estimator's P0/P1 ordering reproducible.

    Returns:
        tuple: (direction (3,), eigenvalues (3,) in descending order)
    """
    eigenvals, eigenvecs = np.linalg.eigh(covariance)
    # eigh returns eigenvalues in ascending order
    direction = eigenvecs[:, -1]
    if direction[np.argmax(np.abs(direction))] < 0:
        direction = -direction
    return direction / np.linalg.norm(direction), eigenvals[::-1].copy()


def construct_capsule_basis(axis_vector):
    """Construct an orthonormal basis whose third column is the capsule axis.

    Args:
        axis_vector: (3,) array, the capsule axis (will be normalized). A zero
            vector yields the identity basis.

    Returns:
        np.ndarray: (3, 3) rotation matrix with columns [x_local, y_local, z_local]
    """
    norm = np.linalg.norm(axis_vector)
    if norm == 0.0:
        return np.eye(3)
    axis = axis_vector / norm

    # Use the coordinate axis that is least aligned with our axis
    abs_axis = np.abs(axis)
    if abs_axis[0] < abs_axis[1] and abs_axis[0] < abs_axis[2]:
        up = np.array([1.0, 0.0, 0.0])
    elif abs_axis[1] < abs_axis[2]:
        up = np.array([0.0, 1.0, 0.0])
    else:
        up = np.array([0.0, 0.0, 1.0])

    # Gram-Schmidt
    z_local = axis
    x_local = up - np.dot(up, z_local) * z_local
    x_local = x_local / np.linalg.norm(x_local)
    y_local = np.cross(z_local, x_local)

    return np.column_stack([x_local, y_local, z_local])
