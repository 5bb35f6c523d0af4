"""
Conversions between capsules and their flat parameter vectors.

The optimizer only ever sees the 7-element vector
``[P0x, P0y, P0z, P1x, P1y, P1z, radius]``; these functions are the single
place that layout is defined. ``capsule_to_params`` and ``params_to_capsule``
copy values without arithmetic, so a round trip is exact.
"""

from typing import Dict

import numpy as np
from scipy.spatial.transform import Rotation

from ..schemas import validate_parameter_vector, validate_point
from .utils import construct_capsule_basis

# Slices into the parameter vector
P0_SLICE = slice(0, 3)
P1_SLICE = slice(3, 6)
RADIUS_INDEX = 6


def capsule_to_params(p0, p1, radius) -> np.ndarray:
    """
    Pack capsule endpoints and radius into a parameter vector.

    Args:
        p0: (3,) first endpoint of the axis segment
        p1: (3,) second endpoint of the axis segment
        radius: capsule radius

    Returns:
        np.ndarray: (7,) float64 vector [P0, P1, radius]

    Example:
        params = capsule_to_params([0, 0, 0], [0, 0, 1], 0.5)
        # array([0., 0., 0., 0., 0., 1., 0.5])
    """
    params = np.empty(7, dtype=np.float64)
    params[P0_SLICE] = validate_point(p0, name="p0")
    params[P1_SLICE] = validate_point(p1, name="p1")
    params[RADIUS_INDEX] = float(radius)
    return params


def params_to_capsule(params):
    """
    Unpack a parameter vector into ``(p0, p1, radius)``.

    The returned arrays are copies; modifying them never touches ``params``.

    Raises:
        ValidationError: If ``params`` is not a flat vector of 7 finite values.
    """
    params = validate_parameter_vector(params)
    return params[P0_SLICE].copy(), params[P1_SLICE].copy(), float(params[RADIUS_INDEX])


def capsule_to_cylinder_params(capsule) -> Dict:
    """
    Express a capsule as a posed cylinder with hemispherical caps.

    The local Z axis is aligned with P1 - P0 and the pose is given as
    extrinsic ``xyz`` Euler angles, the same convention used to rotate
    meshes axis by axis (X, then Y, then Z about the world frame).

    Args:
        capsule: Object with ``p0``, ``p1`` and ``radius`` attributes.

    Returns:
        Dictionary with keys:
        - 'translation': segment midpoint as list
        - 'xyz_body_rotation': euler angles in radians as list
        - 'radius': capsule radius
        - 'length': segment length (excluding the caps)
        - 'half_length': half the segment length

    Example:
        pose = capsule_to_cylinder_params(Capsule([0, 0, -1], [0, 0, 1], 0.5))
        # pose['translation'] == [0.0, 0.0, 0.0], pose['length'] == 2.0
    """
    p0 = np.asarray(capsule.p0, dtype=np.float64)
    p1 = np.asarray(capsule.p1, dtype=np.float64)
    axis = p1 - p0
    length = float(np.linalg.norm(axis))

    rotation_matrix = construct_capsule_basis(axis)
    euler_xyz = Rotation.from_matrix(rotation_matrix).as_euler("xyz", degrees=False)

    return {
        "translation": (0.5 * (p0 + p1)).tolist(),
        "xyz_body_rotation": euler_xyz.tolist(),
        "radius": float(capsule.radius),
        "length": length,
        "half_length": 0.5 * length,
    }
