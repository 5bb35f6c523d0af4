"""
Differentiable scalar functions of the capsule parameter vector.

These are the building blocks handed to a constrained optimizer:

- ``Volume``: the objective, pi r^2 L + 4/3 pi r^3
- ``DistanceCapsulePoint``: signed distance from a fixed point to the capsule
  surface, one inequality constraint ``distance <= 0`` per hull vertex

Both take the 7-element vector ``[P0, P1, radius]`` and return plain floats
and (7,) numpy gradients. Each function has a single output, so
``function_index`` must be 0.

Example:
    params = capsule_to_params([0, 0, 0], [0, 0, 1], 1.0)
    Volume()(params)                        # 7/3 pi
    DistanceCapsulePoint([0, 0, 0.5]).gradient(params)
"""

import logging
import math
from abc import ABC, abstractmethod

import numpy as np

from ..schemas import validate_point
from .config import DEFAULT_TOLERANCES
from .parameter_extraction import params_to_capsule
from .utils import projection_on_segment, segment_parameter

logger = logging.getLogger(__name__)


class DifferentiableFunction(ABC):
    """Scalar function R^7 -> R with an analytic gradient.

    Subclasses implement ``_compute`` and ``_gradient`` on the decoded
    ``(p0, p1, radius)``; decoding and index checks happen here.
    """

    input_size = 7
    output_size = 1

    def __init__(self, name):
        self.name = name

    def evaluate(self, params):
        p0, p1, radius = params_to_capsule(params)
        return float(self._compute(p0, p1, radius))

    def gradient(self, params, function_index=0):
        if function_index != 0:
            raise IndexError(
                f"{self.name} has a single output; function_index must be 0, got {function_index}"
            )
        p0, p1, radius = params_to_capsule(params)
        return self._gradient(p0, p1, radius)

    def __call__(self, params):
        return self.evaluate(params)

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"

    @abstractmethod
    def _compute(self, p0, p1, radius):
        pass

    @abstractmethod
    def _gradient(self, p0, p1, radius):
        pass


class DistanceCapsulePoint(DifferentiableFunction):
    """Signed distance from a fixed point to the capsule surface.

    Negative inside, zero on the surface, positive outside.
    """

    def __init__(self, point, name="distance to point"):
        super().__init__(name)
        point = validate_point(point).copy()
        point.flags.writeable = False
        self.point = point

    def _compute(self, p0, p1, radius):
        q = projection_on_segment(self.point, p0, p1)
        return np.linalg.norm(self.point - q) - radius

    def _gradient(self, p0, p1, radius):
        grad = np.zeros(7)
        grad[6] = -1.0

        p = self.point
        q = projection_on_segment(p, p0, p1)
        diff = p - q
        dist = np.linalg.norm(diff)
        if dist <= DEFAULT_TOLERANCES["axis_singularity"]:
            # Point on the axis: distance is not differentiable, use the zero sub-gradient
            logger.debug(f"{self.name}: point lies on the capsule axis, zero endpoint gradient")
            return grad
        u = diff / dist

        d = p1 - p0
        length_sq = float(np.dot(d, d))
        t = segment_parameter(p, p0, p1)

        if length_sq == 0.0 or t <= 0.0:
            dq_dp0 = np.eye(3)
            dq_dp1 = np.zeros((3, 3))
        elif t >= 1.0:
            dq_dp0 = np.zeros((3, 3))
            dq_dp1 = np.eye(3)
        else:
            w = p - p0
            dt_dp0 = ((2.0 * t - 1.0) * d - w) / length_sq
            dt_dp1 = (w - 2.0 * t * d) / length_sq
            dq_dp0 = (1.0 - t) * np.eye(3) + np.outer(d, dt_dp0)
            dq_dp1 = t * np.eye(3) + np.outer(d, dt_dp1)

        # d|p - q| / dq = -u
        grad[0:3] = -dq_dp0.T @ u
        grad[3:6] = -dq_dp1.T @ u
        return grad


class Volume(DifferentiableFunction):
    """Capsule volume pi r^2 L + 4/3 pi r^3 with L = |P1 - P0|."""

    def __init__(self, name="capsule volume"):
        super().__init__(name)

    def _compute(self, p0, p1, radius):
        length = np.linalg.norm(p1 - p0)
        return math.pi * radius**2 * length + 4.0 / 3.0 * math.pi * radius**3

    def _gradient(self, p0, p1, radius):
        grad = np.zeros(7)
        axis = p1 - p0
        length = float(np.linalg.norm(axis))
        grad[6] = 2.0 * math.pi * radius * length + 4.0 * math.pi * radius**2
        if length > 0.0:
            scale = math.pi * radius**2 / length
            grad[0:3] = -scale * axis
            grad[3:6] = scale * axis
        return grad


def finite_difference_gradient(function, params, step=1e-6):
    """
    Central-difference gradient of ``function.evaluate`` at ``params``.

    Used to check analytic gradients; accurate to O(step^2) away from the
    non-differentiable regime boundaries of the distance function.
    """
    params = np.asarray(params, dtype=np.float64)
    grad = np.zeros(params.shape[0])
    for i in range(params.shape[0]):
        forward = params.copy()
        backward = params.copy()
        forward[i] += step
        backward[i] -= step
        grad[i] = (function.evaluate(forward) - function.evaluate(backward)) / (2.0 * step)
    return grad
