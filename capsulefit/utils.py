"""PyVista mesh helpers for capsules and convex hulls."""

import logging

import numpy as np
import pyvista as pv
from scipy.spatial import ConvexHull, QhullError

from .bounding.convex_hull import HullComputationError
from .bounding.utils import construct_capsule_basis
from .schemas import validate_point_set

logger = logging.getLogger(__name__)


def _capsule_local_rings(length, radius, resolution, n_lat):
    """Local-frame rings (z along the axis) from the bottom pole to the top pole.

    Returns:
        tuple: (south pole (3,), rings (2 * n_lat, resolution, 3), north pole (3,))
    """
    half = 0.5 * length
    theta = np.linspace(0.0, 2.0 * np.pi, resolution, endpoint=False)
    bottom_phi = np.linspace(-0.5 * np.pi, 0.0, n_lat + 1)[1:]
    top_phi = np.linspace(0.0, 0.5 * np.pi, n_lat + 1)[:-1]

    rings = []
    for phis, z_offset in ((bottom_phi, -half), (top_phi, half)):
        for phi in phis:
            ring_radius = radius * np.cos(phi)
            z = z_offset + radius * np.sin(phi)
            rings.append(
                np.column_stack(
                    [ring_radius * np.cos(theta), ring_radius * np.sin(theta), np.full(resolution, z)]
                )
            )

    south = np.array([0.0, 0.0, -half - radius])
    north = np.array([0.0, 0.0, half + radius])
    return south, np.stack(rings), north


def capsule_surface_points(capsule, resolution=32):
    """
    Points on the surface of a capsule.

    Args:
        capsule: Object with ``p0``, ``p1`` and ``radius`` attributes.
        resolution: Number of points around each latitude ring.

    Returns:
        np.ndarray: (K, 3) surface points in world coordinates.
    """
    if resolution < 3:
        raise ValueError(f"resolution must be >= 3, got {resolution}")
    p0 = np.asarray(capsule.p0, dtype=np.float64)
    p1 = np.asarray(capsule.p1, dtype=np.float64)
    axis = p1 - p0
    n_lat = max(resolution // 4, 2)

    south, rings, north = _capsule_local_rings(
        float(np.linalg.norm(axis)), float(capsule.radius), resolution, n_lat
    )
    local = np.vstack([south, rings.reshape(-1, 3), north])

    basis = construct_capsule_basis(axis)
    return local @ basis.T + 0.5 * (p0 + p1)


def capsule_to_polydata(capsule, resolution=32):
    """
    Triangulated PyVista surface of a capsule.

    The surface is a UV sphere split at its equator, with the two halves
    moved apart along the axis. Works for degenerate capsules (a sphere when
    p0 == p1).

    Args:
        capsule: Object with ``p0``, ``p1`` and ``radius`` attributes.
        resolution: Number of points around each latitude ring.

    Returns:
        pv.PolyData: closed triangle/quad surface mesh
    """
    points = capsule_surface_points(capsule, resolution=resolution)
    n_rings = max(resolution // 4, 2) * 2
    south_idx = 0
    north_idx = points.shape[0] - 1

    def ring_index(ring, j):
        return 1 + ring * resolution + (j % resolution)

    faces = []
    for j in range(resolution):
        faces.append([3, south_idx, ring_index(0, j + 1), ring_index(0, j)])
    for ring in range(n_rings - 1):
        for j in range(resolution):
            faces.append(
                [
                    4,
                    ring_index(ring, j),
                    ring_index(ring, j + 1),
                    ring_index(ring + 1, j + 1),
                    ring_index(ring + 1, j),
                ]
            )
    last = n_rings - 1
    for j in range(resolution):
        faces.append([3, north_idx, ring_index(last, j), ring_index(last, j + 1)])

    return pv.PolyData(points, np.hstack(faces))


def hull_to_polydata(vertices):
    """
    Triangulated PyVista surface of the convex hull of ``vertices``.

    Args:
        vertices: (M, 3) hull vertices (or any point set) spanning 3-D space.

    Returns:
        pv.PolyData: triangle mesh whose points are ``vertices``

    Raises:
        HullComputationError: If the points are degenerate (coplanar or less).
    """
    vertices = validate_point_set(vertices, name="vertices")
    try:
        hull = ConvexHull(vertices)
    except (QhullError, ValueError) as e:
        raise HullComputationError(
            f"Cannot triangulate the hull of {vertices.shape[0]} points: {e}",
            n_points=vertices.shape[0],
        ) from e

    # Qhull does not orient simplices; flip those facing against the facet normal
    simplices = hull.simplices.copy()
    tri = vertices[simplices]
    normals = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    flip = np.einsum("ij,ij->i", normals, hull.equations[:, :3]) < 0
    simplices[flip] = simplices[flip][:, [0, 2, 1]]

    faces = np.column_stack([np.full(len(simplices), 3), simplices]).ravel()
    mesh = pv.PolyData(vertices, faces)
    logger.debug(f"Hull mesh: {mesh.n_points} points, {mesh.n_cells} faces")
    return mesh
