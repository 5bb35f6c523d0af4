"""Tests for the PyVista mesh helpers in capsulefit.utils."""

import numpy as np
import pytest
import pyvista as pv

from capsulefit.bounding.convex_hull import HullComputationError
from capsulefit.bounding.main import Capsule
from capsulefit.utils import capsule_surface_points, capsule_to_polydata, hull_to_polydata


class TestCapsuleSurfacePoints:
    def test_points_on_surface(self, tilted_capsule):
        pts = capsule_surface_points(tilted_capsule, resolution=24)
        np.testing.assert_allclose(tilted_capsule.signed_distance(pts), 0.0, atol=1e-12)

    def test_point_count(self, unit_capsule):
        # 2 poles + 2 hemispheres x 4 rings x 16 points
        assert capsule_surface_points(unit_capsule, resolution=16).shape == (130, 3)

    def test_extent_along_axis(self, unit_capsule):
        pts = capsule_surface_points(unit_capsule)
        assert pts[:, 2].min() == pytest.approx(-1.0)
        assert pts[:, 2].max() == pytest.approx(2.0)

    def test_resolution_too_small(self, unit_capsule):
        with pytest.raises(ValueError, match="resolution"):
            capsule_surface_points(unit_capsule, resolution=2)


class TestCapsuleToPolydata:
    def test_returns_polydata(self, tilted_capsule):
        mesh = capsule_to_polydata(tilted_capsule, resolution=16)
        assert isinstance(mesh, pv.PolyData)
        assert mesh.n_points == 130
        # 16 triangles at each pole + 7 bands of 16 quads
        assert mesh.n_cells == 2 * 16 + 7 * 16

    def test_closed_surface(self, unit_capsule):
        mesh = capsule_to_polydata(unit_capsule, resolution=16).triangulate()
        assert mesh.n_open_edges == 0

    def test_volume_approaches_exact(self, unit_capsule):
        mesh = capsule_to_polydata(unit_capsule, resolution=64).triangulate()
        assert mesh.volume == pytest.approx(unit_capsule.volume, rel=0.02)

    def test_sphere_capsule(self):
        mesh = capsule_to_polydata(Capsule([0, 0, 0], [0, 0, 0], 1.0), resolution=32)
        np.testing.assert_allclose(np.linalg.norm(mesh.points, axis=1), 1.0, atol=1e-6)


class TestHullToPolydata:
    def test_cube_hull(self, make_cube):
        mesh = hull_to_polydata(make_cube(size=2.0))
        assert mesh.n_points == 8
        assert mesh.n_open_edges == 0
        assert mesh.volume == pytest.approx(8.0)

    def test_flat_points_raise(self):
        pts = np.array([[0.0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]])
        with pytest.raises(HullComputationError):
            hull_to_polydata(pts)
