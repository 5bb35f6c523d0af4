import math
from dataclasses import dataclass

import numpy as np

from ..schemas import validate_point, validate_point_set, validate_radius
from .parameter_extraction import capsule_to_params, params_to_capsule


@dataclass(frozen=True)
class Capsule:
    """
    The volume swept by a sphere of radius ``radius`` moving along [p0, p1].

    Instances are immutable: the endpoint arrays are copied and flagged
    read-only on construction. ``p0 == p1`` is allowed and describes a sphere.

    Attributes:
        p0 (numpy.ndarray): (3,) first endpoint of the axis segment.
        p1 (numpy.ndarray): (3,) second endpoint of the axis segment.
        radius (float): Sphere radius, >= 0.
    """

    p0: np.ndarray
    p1: np.ndarray
    radius: float

    def __post_init__(self):
        p0 = validate_point(self.p0, name="p0").copy()
        p1 = validate_point(self.p1, name="p1").copy()
        p0.flags.writeable = False
        p1.flags.writeable = False
        object.__setattr__(self, "p0", p0)
        object.__setattr__(self, "p1", p1)
        object.__setattr__(self, "radius", validate_radius(self.radius))

    @classmethod
    def from_params(cls, params):
        """Build a capsule from a 7-element parameter vector."""
        p0, p1, radius = params_to_capsule(params)
        return cls(p0, p1, radius)

    def to_params(self):
        return capsule_to_params(self.p0, self.p1, self.radius)

    @property
    def axis(self):
        return self.p1 - self.p0

    @property
    def length(self):
        return float(np.linalg.norm(self.axis))

    @property
    def center(self):
        return 0.5 * (self.p0 + self.p1)

    @property
    def direction(self):
        """Unit axis direction; the zero vector for a degenerate (spherical) capsule."""
        length = self.length
        if length == 0.0:
            return np.zeros(3)
        return self.axis / length

    @property
    def volume(self):
        r = self.radius
        return math.pi * r**2 * self.length + 4.0 / 3.0 * math.pi * r**3

    def signed_distance(self, points):
        """Signed distance of each point to the capsule surface (negative inside)."""
        points = validate_point_set(points)
        d = self.axis
        length_sq = float(np.dot(d, d))
        if length_sq == 0.0:
            t = np.zeros(points.shape[0])
        else:
            t = np.clip((points - self.p0) @ d / length_sq, 0.0, 1.0)
        closest = self.p0 + t[:, None] * d
        return np.linalg.norm(points - closest, axis=1) - self.radius

    def contains(self, points, tol=0.0):
        """Boolean mask of the points whose signed distance is <= ``tol``."""
        return self.signed_distance(points) <= tol

    def __eq__(self, other):
        if not isinstance(other, Capsule):
            return NotImplemented
        return (
            np.array_equal(self.p0, other.p0)
            and np.array_equal(self.p1, other.p1)
            and self.radius == other.radius
        )

    def __hash__(self):
        return hash((tuple(self.p0), tuple(self.p1), self.radius))

    def __repr__(self):
        return (
            f"Capsule(p0={self.p0.tolist()}, p1={self.p1.tolist()}, radius={self.radius:.6g})"
        )
