"""Shared pytest fixtures for capsulefit tests."""

import numpy as np
import pytest

from capsulefit.bounding.main import Capsule

# ---------------------------------------------------------------------------
# Simple point clouds
# ---------------------------------------------------------------------------


@pytest.fixture
def rng():
    """Deterministic random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def unit_sphere_points():
    """100 points uniformly-ish sampled on a unit sphere (numpy)."""
    rng = np.random.default_rng(42)
    pts = rng.standard_normal((100, 3))
    pts = pts / np.linalg.norm(pts, axis=1, keepdims=True)
    return pts


@pytest.fixture
def elongated_cloud():
    """500 points in a box stretched along a tilted axis.

    Extent 10 along the axis, 1 across it, so the principal direction is
    well separated.
    """
    rng = np.random.default_rng(7)
    local = rng.uniform(-0.5, 0.5, (500, 3)) * np.array([1.0, 1.0, 10.0])
    # Rotate the Z axis onto (1, 1, 1) / sqrt(3)
    axis = np.array([1.0, 1.0, 1.0]) / np.sqrt(3.0)
    x = np.array([1.0, -1.0, 0.0]) / np.sqrt(2.0)
    y = np.cross(axis, x)
    R = np.column_stack([x, y, axis])
    return local @ R.T + np.array([2.0, -1.0, 0.5])


@pytest.fixture
def origin_point():
    """Single point at the origin."""
    return np.zeros((1, 3))


# ---------------------------------------------------------------------------
# Polyhedra
# ---------------------------------------------------------------------------


def cube_vertices(center=(0.0, 0.0, 0.0), size=1.0):
    """8 vertices of an axis-aligned cube."""
    half = 0.5 * size
    corners = np.array(
        [[x, y, z] for x in (-half, half) for y in (-half, half) for z in (-half, half)]
    )
    return corners + np.asarray(center, dtype=np.float64)


@pytest.fixture
def make_cube():
    """Factory for cube vertex arrays: make_cube(center, size)."""
    return cube_vertices


@pytest.fixture
def two_cubes():
    """A unit cube at the origin and a cube of size 2 centered at (5, 0, 0).

    The near corners of the small cube fall strictly inside the joint hull,
    so the hull has exactly 12 vertices.
    """
    return [cube_vertices((0.0, 0.0, 0.0)), cube_vertices((5.0, 0.0, 0.0), 2.0)]


# ---------------------------------------------------------------------------
# Capsules
# ---------------------------------------------------------------------------


@pytest.fixture
def unit_capsule():
    """Capsule from the origin to (0, 0, 1) with radius 1 (volume 7/3 pi)."""
    return Capsule([0.0, 0.0, 0.0], [0.0, 0.0, 1.0], 1.0)


@pytest.fixture
def tilted_capsule():
    """Non axis-aligned capsule used for gradient checks."""
    return Capsule([0.3, -0.2, 0.1], [1.4, 0.9, -0.6], 0.45)
