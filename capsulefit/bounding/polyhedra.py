"""
Bounding a collection of convex polyhedra.

A polyhedron is anything accepted as a point set: an (N, 3) array-like or a
mesh exposing ``.points`` (e.g. ``pyvista.PolyData``). The polyhedra are
merged into a single point set, reduced to its convex hull, and the initial
capsule is estimated from the hull vertices only.
"""

import logging
from typing import List, Sequence

import numpy as np

from ..schemas import ValidationError, validate_point_set, validate_polyhedra
from .capsule_param_estimation import capsule_from_points
from .convex_hull import convex_hull_from_points
from .main import Capsule

logger = logging.getLogger(__name__)


def merge_polyhedra(polyhedra: Sequence) -> np.ndarray:
    """
    Concatenate the points of several polyhedra, preserving order.

    Args:
        polyhedra: List or tuple of point sets / meshes. Individual entries may
            be empty.

    Returns:
        np.ndarray: (N, 3) points of polyhedra[0], then polyhedra[1], ...

    Raises:
        ValidationError: If the collection is empty, an entry is malformed, or
            the polyhedra contribute no points at all.
    """
    validate_polyhedra(polyhedra)

    arrays = [
        validate_point_set(poly, name=f"polyhedra[{i}]", allow_empty=True)
        for i, poly in enumerate(polyhedra)
    ]
    merged = np.concatenate(arrays, axis=0)
    if merged.shape[0] == 0:
        raise ValidationError(f"{len(polyhedra)} polyhedra contain no points")

    logger.debug(f"Merged {len(polyhedra)} polyhedra into {merged.shape[0]} points")
    return merged


def compute_convex_polyhedron(polyhedra: Sequence) -> List[np.ndarray]:
    """
    Convex hull of the union of the polyhedra.

    Returns:
        list: a single-element list holding the (M, 3) hull vertices
    """
    hull = convex_hull_from_points(merge_polyhedra(polyhedra))
    return [hull]


def compute_bounding_capsule_polyhedron(polyhedra: Sequence) -> Capsule:
    """
    Initial bounding capsule of the union of the polyhedra.

    The estimator runs on the hull vertices, never on the full merged set.
    The result is the starting point for the volume-minimizing refinement in
    ``capsulefit.bounding.fitting``.
    """
    merged = merge_polyhedra(polyhedra)
    hull = convex_hull_from_points(merged)
    logger.info(f"Convex hull: {hull.shape[0]} vertices from {merged.shape[0]} points")

    capsule = capsule_from_points(hull)
    logger.info(f"Initial capsule: {capsule}")
    return capsule
