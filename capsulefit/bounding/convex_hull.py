"""
Convex hull reduction of point sets.

The hull is computed with Qhull (``scipy.spatial.ConvexHull``). Degenerate
spreads are detected up front from the singular values of the centered
points so that coincident, collinear and coplanar inputs still produce a
hull (a single point, a segment, or a planar polygon) rather than a Qhull
error:

- rank 0: all points coincide, the first point is returned
- rank 1: collinear points, the two extreme points along the line
- rank 2: coplanar points, Qhull runs on in-plane 2-D coordinates
- rank 3: full 3-D Qhull

Hull vertices are always rows of the input, returned in input order.
"""

import logging

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from ..schemas import validate_point_set
from .config import DEFAULT_TOLERANCES

logger = logging.getLogger(__name__)


class HullComputationError(RuntimeError):
    """Raised when Qhull cannot compute the hull of a point set."""

    def __init__(self, message, n_points=None):
        super().__init__(message)
        self.n_points = n_points


def spread_rank(points, tol=None):
    """
    Number of independent directions spanned by the point set (0 to 3).

    Args:
        points: (N, 3) array
        tol: Relative singular value tolerance. Defaults to
            ``DEFAULT_TOLERANCES['hull_rank']``.

    Returns:
        tuple: (rank, vt) where ``vt`` holds the principal directions as rows
    """
    if tol is None:
        tol = DEFAULT_TOLERANCES["hull_rank"]

    centered = points - points.mean(axis=0)
    _, s, vt = np.linalg.svd(centered, full_matrices=False)
    if s.size == 0 or s[0] == 0.0:
        return 0, vt
    # Absolute floor relative to the coordinate scale guards against pure rounding spread
    scale = max(s[0], np.abs(points).max() * np.sqrt(points.shape[0]) * np.finfo(float).eps)
    return int(np.sum(s > tol * scale)), vt


def convex_hull_indices(points, tol=None):
    """
    Indices of the convex hull vertices of ``points``, sorted ascending.

    Raises:
        ValidationError: If ``points`` is empty or malformed.
        HullComputationError: If Qhull fails on a non-degenerate input.
    """
    points = validate_point_set(points)
    n_points = points.shape[0]
    rank, vt = spread_rank(points, tol)

    if rank == 0:
        logger.debug(f"All {n_points} points coincide; hull is a single point")
        return np.array([0])

    if rank == 1:
        projections = points @ vt[0]
        imin, imax = int(np.argmin(projections)), int(np.argmax(projections))
        logger.debug(f"{n_points} points are collinear; hull is a segment")
        return np.array(sorted({imin, imax}))

    if rank == 2:
        # In-plane coordinates along the two principal directions
        coords = (points - points.mean(axis=0)) @ vt[:2].T
        logger.debug(f"{n_points} points are coplanar; computing a 2-D hull")
    else:
        coords = points

    try:
        hull = ConvexHull(coords)
    except (QhullError, ValueError) as e:
        raise HullComputationError(
            f"Convex hull computation failed for {n_points} points: {e}", n_points=n_points
        ) from e

    return np.sort(hull.vertices)


def convex_hull_from_points(points, tol=None):
    """
    Reduce a point set to the vertices of its convex hull.

    Args:
        points: (N, 3) array-like or mesh with ``.points``; must be non-empty.
        tol: Relative tolerance used for degeneracy detection.

    Returns:
        np.ndarray: (M, 3) hull vertices, each one an input point, in input order.

    Raises:
        ValidationError: If ``points`` is empty or malformed.
        HullComputationError: If Qhull fails.
    """
    points = validate_point_set(points)
    indices = convex_hull_indices(points, tol)
    logger.debug(f"Convex hull kept {len(indices)} of {points.shape[0]} points")
    return points[indices]
