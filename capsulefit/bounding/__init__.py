from . import (
    capsule_param_estimation,
    capsule_signed_distances,
    config,
    convex_hull,
    fitting,
    functions,
    parameter_extraction,
    polyhedra,
    utils,
)
from .capsule_param_estimation import capsule_from_points
from .convex_hull import HullComputationError, convex_hull_from_points
from .fitting import CapsuleFitter, CapsuleProblem, fit_bounding_capsule
from .functions import DistanceCapsulePoint, Volume
from .main import Capsule
from .parameter_extraction import capsule_to_params, params_to_capsule
from .polyhedra import compute_bounding_capsule_polyhedron, compute_convex_polyhedron, merge_polyhedra

__all__ = [
    "capsule_param_estimation",
    "capsule_signed_distances",
    "config",
    "convex_hull",
    "fitting",
    "functions",
    "parameter_extraction",
    "polyhedra",
    "utils",
    "Capsule",
    "CapsuleFitter",
    "CapsuleProblem",
    "DistanceCapsulePoint",
    "HullComputationError",
    "Volume",
    "capsule_from_points",
    "capsule_to_params",
    "compute_bounding_capsule_polyhedron",
    "compute_convex_polyhedron",
    "convex_hull_from_points",
    "fit_bounding_capsule",
    "merge_polyhedra",
    "params_to_capsule",
]
