"""
Configuration constants for bounding capsule fitting.

Configuration includes:
- DEFAULT_TOLERANCES: Numerical tolerances for degenerate-geometry handling
- DEFAULT_FITTING_CONFIG: Default parameters for the scipy and torch solvers
"""

import copy
from typing import Any, Dict, Optional

# Numerical tolerances shared by the geometry core
DEFAULT_TOLERANCES = {
    "hull_rank": 1e-9,  # Singular values below this (relative to the largest) count as zero spread
    "degenerate_eigenvalue": 1e-18,  # Largest covariance eigenvalue below this => coincident points
    "axis_singularity": 1e-12,  # |point - q| below this => point on the axis, zero endpoint gradient
    "containment": 1e-9,  # Distance slack when checking that points lie inside a capsule
}

# Default fitting parameters for each solver backend
# Each entry holds keyword arguments passed to the solver constructor
DEFAULT_FITTING_CONFIG = {
    "scipy": {
        "maxiter": 500,  # Maximum SLSQP iterations
        "ftol": 1e-10,  # SLSQP precision goal on the objective
    },
    "torch": {
        "outer_iterations": 8,  # Penalty rounds; the weight grows after each one
        "lbfgs_steps": 20,  # L-BFGS steps per penalty round
        "lbfgs_lr": 1.0,  # Learning rate for L-BFGS
        "penalty_weight": 1e3,  # Initial weight on squared constraint violation
        "penalty_growth": 10.0,  # Multiplier applied to the weight after each round
        "dtype": "float64",  # Torch dtype used for the parameters and points
    },
}


def get_fitting_config(method: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Return a copy of the default configuration for ``method`` merged with overrides.

    Args:
        method: Solver backend name, 'scipy' or 'torch'.
        overrides: Optional dict of keys to replace in the defaults.

    Raises:
        ValueError: If ``method`` is unknown or an override key is not recognized.
    """
    if method not in DEFAULT_FITTING_CONFIG:
        raise ValueError(
            f"Unknown fitting method: {method}. Must be one of {list(DEFAULT_FITTING_CONFIG.keys())}"
        )

    config = copy.deepcopy(DEFAULT_FITTING_CONFIG[method])
    if overrides:
        unknown = set(overrides) - set(config)
        if unknown:
            raise ValueError(f"Unknown {method} config keys: {sorted(unknown)}")
        config.update(overrides)
    return config
