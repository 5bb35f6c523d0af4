"""Tests for convex hull reduction, including degenerate spreads."""

import numpy as np
import pytest
from scipy.spatial import Delaunay

from capsulefit.bounding import convex_hull
from capsulefit.bounding.convex_hull import (
    HullComputationError,
    convex_hull_from_points,
    convex_hull_indices,
    spread_rank,
)
from capsulefit.schemas import ValidationError


def _rows_subset(subset, full):
    """True if every row of ``subset`` is exactly a row of ``full``."""
    full_rows = {tuple(row) for row in full}
    return all(tuple(row) in full_rows for row in subset)


# ---------------------------------------------------------------------------
# General position
# ---------------------------------------------------------------------------


class TestGeneralPosition:
    @pytest.fixture
    def cloud(self, rng):
        return rng.normal(size=(400, 3))

    def test_vertices_are_input_points(self, cloud):
        hull = convex_hull_from_points(cloud)
        assert _rows_subset(hull, cloud)

    def test_hull_contains_every_point(self, cloud):
        hull = convex_hull_from_points(cloud)
        tri = Delaunay(hull)
        assert np.all(tri.find_simplex(cloud, tol=1e-9) >= 0)

    def test_reduces_point_count(self, cloud):
        assert convex_hull_from_points(cloud).shape[0] < cloud.shape[0]

    def test_input_order_preserved(self, cloud):
        idx = convex_hull_indices(cloud)
        assert np.all(np.diff(idx) > 0)
        np.testing.assert_array_equal(convex_hull_from_points(cloud), cloud[idx])

    def test_interior_points_dropped(self, make_cube):
        cube = make_cube(size=2.0)
        pts = np.vstack([cube, [[0.0, 0.0, 0.0], [0.5, -0.5, 0.2]]])
        hull = convex_hull_from_points(pts)
        assert hull.shape == (8, 3)
        np.testing.assert_array_equal(hull, cube)

    def test_input_not_modified(self, cloud):
        before = cloud.copy()
        convex_hull_from_points(cloud)
        np.testing.assert_array_equal(cloud, before)


# ---------------------------------------------------------------------------
# Degenerate spreads
# ---------------------------------------------------------------------------


class TestDegenerate:
    def test_single_point(self):
        hull = convex_hull_from_points([[1.0, 2.0, 3.0]])
        np.testing.assert_array_equal(hull, [[1.0, 2.0, 3.0]])

    def test_coincident_points(self):
        pts = np.tile([0.5, -1.0, 2.0], (5, 1))
        hull = convex_hull_from_points(pts)
        assert hull.shape == (1, 3)
        np.testing.assert_array_equal(hull[0], pts[0])

    def test_collinear_returns_extremes(self):
        t = np.array([0.3, -2.0, 1.0, 4.0, 0.0])
        pts = np.outer(t, [1.0, 2.0, -1.0]) + np.array([1.0, 1.0, 1.0])
        idx = convex_hull_indices(pts)
        np.testing.assert_array_equal(idx, [1, 3])

    def test_two_points(self):
        pts = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
        np.testing.assert_array_equal(convex_hull_from_points(pts), pts)

    def test_coplanar_square_with_center(self):
        pts = np.array(
            [
                [0.0, 0.0, 1.0],
                [1.0, 0.0, 1.0],
                [0.5, 0.5, 1.0],
                [1.0, 1.0, 1.0],
                [0.0, 1.0, 1.0],
            ]
        )
        idx = convex_hull_indices(pts)
        np.testing.assert_array_equal(idx, [0, 1, 3, 4])

    def test_coplanar_tilted(self, rng):
        uv = rng.uniform(-1, 1, (50, 2))
        e1 = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        e2 = np.array([0.0, 0.0, 1.0])
        pts = uv[:, :1] * e1 + uv[:, 1:] * e2 + np.array([3.0, -1.0, 2.0])
        hull = convex_hull_from_points(pts)
        assert 3 <= hull.shape[0] < 50
        assert _rows_subset(hull, pts)

    @pytest.mark.parametrize(
        "pts, expected",
        [
            (np.zeros((4, 3)), 0),
            (np.array([[0.0, 0, 0], [1, 0, 0], [2, 0, 0]]), 1),
            (np.array([[0.0, 0, 0], [1, 0, 0], [0, 1, 0]]), 2),
            (np.array([[0.0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]), 3),
        ],
    )
    def test_spread_rank(self, pts, expected):
        rank, _ = spread_rank(pts)
        assert rank == expected


# ---------------------------------------------------------------------------
# Large inputs
# ---------------------------------------------------------------------------


class TestLargeInputs:
    def test_spread_rank_large_cloud(self, rng):
        """Rank detection works on clouds far too large for an N x N factor."""
        pts = rng.normal(size=(200_000, 3))
        rank, vt = spread_rank(pts)
        assert rank == 3
        assert vt.shape == (3, 3)

    def test_large_cloud_hull(self, rng):
        pts = rng.normal(size=(200_000, 3))
        vertices = convex_hull_from_points(pts)
        assert 4 <= vertices.shape[0] < 2000
        assert _rows_subset(vertices, pts)

    def test_large_flat_cloud_hull(self, rng):
        pts = np.column_stack([rng.normal(size=(200_000, 2)), np.zeros(200_000)])
        vertices = convex_hull_from_points(pts)
        np.testing.assert_array_equal(vertices[:, 2], 0.0)
        assert _rows_subset(vertices, pts)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_empty_raises(self):
        with pytest.raises(ValidationError, match="empty"):
            convex_hull_from_points(np.zeros((0, 3)))

    def test_qhull_failure_wrapped(self, monkeypatch, rng):
        def failing_hull(*args, **kwargs):
            raise convex_hull.QhullError("QH6154 initial simplex is flat")

        monkeypatch.setattr(convex_hull, "ConvexHull", failing_hull)
        pts = rng.normal(size=(20, 3))
        with pytest.raises(HullComputationError, match="20 points") as excinfo:
            convex_hull_from_points(pts)
        assert excinfo.value.n_points == 20
        assert isinstance(excinfo.value.__cause__, convex_hull.QhullError)

    def test_hull_error_is_runtime_error(self):
        assert issubclass(HullComputationError, RuntimeError)
