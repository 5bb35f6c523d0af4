"""
Validation functions for capsulefit input data structures.

Validates point sets, polyhedra collections and 7-element parameter
vectors before they reach the geometry core, so structural errors surface
early with a message naming the offending input.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when an input data structure fails validation."""

    pass


# ── point sets ──────────────────────────────────────────────────────────────

# Number of scalars in a capsule parameter vector: P0 (3), P1 (3), radius (1)
N_CAPSULE_PARAMS = 7


def validate_point_set(points, name="points", allow_empty=False):
    """
    Validate and normalize a point set.

    Accepts anything ``np.asarray`` understands, or a mesh object exposing a
    ``.points`` array (e.g. ``pyvista.PolyData``). A single point of shape
    (3,) is promoted to (1, 3).

    Args:
        points: Array-like of shape (N, 3) or (3,), or a mesh with ``.points``.
        name: Name used in error messages.
        allow_empty: Accept an (0, 3) array instead of raising.

    Returns:
        np.ndarray: float64 array of shape (N, 3).

    Raises:
        ValidationError: If the shape is wrong, the set is empty, or any
            coordinate is not finite.
    """
    if hasattr(points, "points"):
        points = points.points

    try:
        arr = np.array(points, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} could not be converted to a float array: {e}") from e

    if arr.ndim == 1 and arr.shape[0] == 3:
        arr = arr.reshape(1, 3)
    elif arr.ndim == 1 and arr.shape[0] == 0:
        arr = arr.reshape(0, 3)

    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValidationError(f"{name} must have shape (N, 3), got {arr.shape}")

    if arr.shape[0] == 0 and not allow_empty:
        raise ValidationError(f"{name} is empty")

    if not np.all(np.isfinite(arr)):
        n_bad = int(np.sum(~np.all(np.isfinite(arr), axis=1)))
        raise ValidationError(f"{name} contains {n_bad} point(s) with non-finite coordinates")

    return arr


def validate_point(point, name="point"):
    """Validate a single 3-D point and return it as a float64 (3,) array."""
    arr = np.asarray(point, dtype=np.float64)
    if arr.shape != (3,):
        raise ValidationError(f"{name} must have shape (3,), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValidationError(f"{name} has non-finite coordinates: {arr}")
    return arr


# ── polyhedra ───────────────────────────────────────────────────────────────


def validate_polyhedra(polyhedra):
    """
    Check that a polyhedra collection is a non-empty sequence.

    Individual polyhedra are validated as point sets when they are merged;
    an empty individual polyhedron is allowed as long as the collection as a
    whole contributes at least one point.

    Raises:
        ValidationError: If ``polyhedra`` is not a list/tuple or is empty.
    """
    if isinstance(polyhedra, np.ndarray) or hasattr(polyhedra, "points"):
        raise ValidationError(
            "polyhedra must be a sequence of point sets or meshes, "
            f"got a single {type(polyhedra).__name__}"
        )
    if not isinstance(polyhedra, (list, tuple)):
        raise ValidationError(
            f"polyhedra must be a list or tuple, got {type(polyhedra).__name__}"
        )
    if len(polyhedra) == 0:
        raise ValidationError("polyhedra is empty")


# ── parameter vectors ───────────────────────────────────────────────────────


def validate_parameter_vector(params, name="params"):
    """
    Validate a capsule parameter vector ``[P0x, P0y, P0z, P1x, P1y, P1z, r]``.

    Only the structure is checked. A negative radius is accepted here because
    optimizers may probe infeasible iterates; ``Capsule`` enforces ``r >= 0``.

    Returns:
        np.ndarray: float64 array of shape (7,).

    Raises:
        ValidationError: If the vector does not hold exactly 7 finite scalars.
    """
    arr = np.asarray(params, dtype=np.float64)
    if arr.ndim != 1 or arr.shape[0] != N_CAPSULE_PARAMS:
        raise ValidationError(
            f"{name} must be a flat vector of {N_CAPSULE_PARAMS} values, got shape {arr.shape}"
        )
    if not np.all(np.isfinite(arr)):
        raise ValidationError(f"{name} contains non-finite values: {arr}")
    return arr


def validate_radius(radius, name="radius"):
    """Validate a capsule radius and return it as a float."""
    try:
        value = float(radius)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a scalar, got {type(radius).__name__}") from e
    if not np.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}")
    if value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}")
    return value
