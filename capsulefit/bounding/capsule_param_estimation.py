"""
PCA-based initial estimate of a bounding capsule.

The axis is the line through the centroid along the direction of maximal
spread. Its endpoints are the projections of the two extreme points along
that direction, and the radius is the largest distance from any point to the
infinite axis line. Every input point therefore lies within the cylindrical
part of the capsule. The hemispherical caps are not tightened; shortening
the segment is left to the optimizer.
"""

import logging

import numpy as np

from ..schemas import validate_point_set
from .config import DEFAULT_TOLERANCES
from .main import Capsule
from .utils import (
    covariance_matrix,
    distances_to_line,
    extreme_points_along_direction,
    principal_direction,
)

logger = logging.getLogger(__name__)


def fit_capsule_pca(points):
    """
    Estimate capsule axis parameters using PCA.

    Args:
        points: (N, 3) array of points to bound.

    Returns:
        dict: Dictionary containing
            - 'centroid': (3,) mean of the points
            - 'direction': (3,) unit axis direction (zero vector if degenerate)
            - 'eigenvalues': (3,) covariance eigenvalues, descending
            - 'extreme_indices': (imin, imax) or None if degenerate
            - 'p0', 'p1': (3,) axis endpoints
            - 'radius': float, >= 0
            - 'success': bool, False when the spread is degenerate
    """
    points = validate_point_set(points)
    centroid = points.mean(axis=0)
    cov = covariance_matrix(points)
    direction, eigenvalues = principal_direction(cov)

    if eigenvalues[0] <= DEFAULT_TOLERANCES["degenerate_eigenvalue"]:
        logger.debug("Covariance is zero; falling back to a zero-length axis at the first point")
        return {
            "centroid": centroid,
            "direction": np.zeros(3),
            "eigenvalues": eigenvalues,
            "extreme_indices": None,
            "p0": points[0].copy(),
            "p1": points[0].copy(),
            "radius": 0.0,
            "success": False,
        }

    imin, imax = extreme_points_along_direction(direction, points)
    t_min = float(np.dot(points[imin] - centroid, direction))
    t_max = float(np.dot(points[imax] - centroid, direction))
    p0 = centroid + t_min * direction
    p1 = centroid + t_max * direction

    radius = float(np.max(distances_to_line(points, p0, direction)))
    # Collinear input can give tiny rounding noise; never negative
    radius = max(radius, 0.0)

    return {
        "centroid": centroid,
        "direction": direction,
        "eigenvalues": eigenvalues,
        "extreme_indices": (imin, imax),
        "p0": p0,
        "p1": p1,
        "radius": radius,
        "success": True,
    }


def capsule_from_points(points):
    """
    Initial bounding capsule of a point set.

    Args:
        points: (N, 3) array-like, usually convex hull vertices; must be non-empty.

    Returns:
        Capsule: capsule whose axis follows the principal direction of the points.

    Raises:
        ValidationError: If ``points`` is empty or malformed.
    """
    result = fit_capsule_pca(points)
    capsule = Capsule(result["p0"], result["p1"], result["radius"])
    logger.debug(
        f"PCA capsule: length={capsule.length:.6g}, radius={capsule.radius:.6g}, "
        f"eigenvalues={result['eigenvalues']}"
    )
    return capsule
