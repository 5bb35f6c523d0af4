"""
Volume-minimizing refinement of a bounding capsule.

The initial PCA capsule is refined by solving

    minimize    Volume(params)
    subject to  DistanceCapsulePoint(v)(params) <= 0   for every hull vertex v
                radius >= 0

The optimizer is pluggable: any ``CapsuleSolver`` receives a
``CapsuleProblem`` and returns a ``SolverResult``. Two solvers are provided:

- ``ScipyCapsuleSolver``: SLSQP with the analytic gradients of ``Volume`` and
  ``DistanceCapsulePoint`` (the default)
- ``TorchCapsuleSolver``: quadratic-penalty formulation minimized with L-BFGS
  on the batched signed distance, using autograd

Example usage:
    # Default SLSQP refinement
    fitter = CapsuleFitter()
    capsule = fitter.fit([bone_mesh, cartilage_mesh])
    print(capsule.p0, capsule.p1, capsule.radius)

    # Penalty / L-BFGS refinement with more rounds
    fitter = CapsuleFitter(method='torch', config={'outer_iterations': 12})
    capsule = fitter.fit([points_a, points_b])

    # Bring your own solver
    class MySolver(CapsuleSolver):
        def solve(self, problem):
            ...
    capsule = CapsuleFitter(solver=MySolver()).fit(polyhedra)

    # Inspect the optimization problem directly
    problem = build_capsule_problem([points])
    problem.constraint_values(problem.initial_params)  # all <= 0
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

import numpy as np
import torch
from scipy.optimize import minimize

from ..schemas import validate_point_set
from .capsule_param_estimation import capsule_from_points
from .capsule_signed_distances import capsule_volume, sd_capsule
from .config import DEFAULT_TOLERANCES, get_fitting_config
from .convex_hull import convex_hull_from_points
from .functions import DistanceCapsulePoint, Volume
from .main import Capsule
from .parameter_extraction import RADIUS_INDEX
from .polyhedra import merge_polyhedra

logger = logging.getLogger(__name__)


# ── problem definition ──────────────────────────────────────────────────────


@dataclass
class CapsuleProblem:
    """
    Constrained minimization problem handed to a ``CapsuleSolver``.

    Attributes:
        objective (Volume): Function to minimize.
        constraints (list): One ``DistanceCapsulePoint`` per hull vertex,
            feasible when <= 0.
        initial_params (numpy.ndarray): (7,) starting parameter vector.
        points (numpy.ndarray): (M, 3) hull vertices the constraints refer to.
    """

    objective: Volume
    constraints: List[DistanceCapsulePoint]
    initial_params: np.ndarray
    points: np.ndarray

    @classmethod
    def from_points(cls, points, initial_capsule=None):
        """Build the problem for a set of (hull) points.

        If ``initial_capsule`` is None it is estimated with ``capsule_from_points``.
        """
        points = validate_point_set(points)
        if initial_capsule is None:
            initial_capsule = capsule_from_points(points)
        constraints = [
            DistanceCapsulePoint(point, name=f"distance to vertex {i}")
            for i, point in enumerate(points)
        ]
        return cls(
            objective=Volume(),
            constraints=constraints,
            initial_params=initial_capsule.to_params(),
            points=points,
        )

    @property
    def n_constraints(self):
        return len(self.constraints)

    @property
    def initial_capsule(self):
        return Capsule.from_params(self.initial_params)

    def constraint_values(self, params):
        """(M,) signed distances of every hull vertex, feasible when <= 0."""
        return np.array([c.evaluate(params) for c in self.constraints])

    def constraint_jacobian(self, params):
        """(M, 7) gradients of the constraint values."""
        return np.vstack([c.gradient(params, 0) for c in self.constraints])

    def max_violation(self, params):
        """Largest positive constraint value, 0.0 when every vertex is contained."""
        return max(float(np.max(self.constraint_values(params))), 0.0)


def build_capsule_problem(polyhedra):
    """
    Merge the polyhedra, reduce them to their convex hull, estimate the
    initial capsule and pack everything into a ``CapsuleProblem``.
    """
    merged = merge_polyhedra(polyhedra)
    hull = convex_hull_from_points(merged)
    logger.info(f"Convex hull: {hull.shape[0]} vertices from {merged.shape[0]} points")
    initial = capsule_from_points(hull)
    logger.info(f"Initial capsule: {initial}, volume={initial.volume:.6g}")
    return CapsuleProblem.from_points(hull, initial_capsule=initial)


@dataclass
class SolverResult:
    """Outcome of a ``CapsuleSolver.solve`` call."""

    params: np.ndarray
    success: bool
    message: str = ""
    n_iterations: int = 0
    objective: float = float("nan")
    max_violation: float = float("nan")
    history: List[float] = field(default_factory=list)

    @property
    def capsule(self):
        return Capsule.from_params(self.params)


# ── solvers ─────────────────────────────────────────────────────────────────


class CapsuleSolver(ABC):
    """Interface for optimizers that refine a ``CapsuleProblem``."""

    @abstractmethod
    def solve(self, problem: CapsuleProblem) -> SolverResult:
        pass

    @staticmethod
    def _finalize(problem, params, success, message, n_iterations, history=None):
        params = np.asarray(params, dtype=np.float64).copy()
        params[RADIUS_INDEX] = max(params[RADIUS_INDEX], 0.0)
        return SolverResult(
            params=params,
            success=bool(success),
            message=str(message),
            n_iterations=int(n_iterations),
            objective=problem.objective.evaluate(params),
            max_violation=problem.max_violation(params),
            history=list(history or []),
        )


class ScipyCapsuleSolver(CapsuleSolver):
    """SLSQP refinement using the analytic gradients.

    Args:
        maxiter: Maximum SLSQP iterations.
        ftol: SLSQP precision goal on the objective.
    """

    def __init__(self, maxiter=500, ftol=1e-10):
        self.maxiter = maxiter
        self.ftol = ftol

    def solve(self, problem):
        constraints = [
            {
                "type": "ineq",
                # scipy expects fun(x) >= 0
                "fun": lambda x: -problem.constraint_values(x),
                "jac": lambda x: -problem.constraint_jacobian(x),
            }
        ]
        bounds = [(None, None)] * 6 + [(0.0, None)]

        logger.info(
            f"Starting SLSQP with {problem.n_constraints} constraints, "
            f"initial volume {problem.objective.evaluate(problem.initial_params):.6g}"
        )
        res = minimize(
            problem.objective.evaluate,
            problem.initial_params,
            jac=problem.objective.gradient,
            method="SLSQP",
            bounds=bounds,
            constraints=constraints,
            options={"maxiter": self.maxiter, "ftol": self.ftol},
        )
        result = self._finalize(problem, res.x, res.success, res.message, res.nit)
        logger.info(
            f"SLSQP finished: success={result.success}, iterations={result.n_iterations}, "
            f"volume={result.objective:.6g}, max violation={result.max_violation:.3g}"
        )
        return result


class TorchCapsuleSolver(CapsuleSolver):
    """Quadratic-penalty refinement minimized with L-BFGS.

    The loss is ``volume + weight * mean(relu(sd)^2)`` over the hull vertices.
    The weight is multiplied by ``penalty_growth`` after each outer round and
    L-BFGS is restarted. Points are centered and scaled to unit size before
    optimizing so the weights do not depend on the units of the input.

    Args:
        outer_iterations: Number of penalty rounds.
        lbfgs_steps: L-BFGS steps per round.
        lbfgs_lr: Learning rate for L-BFGS.
        penalty_weight: Initial penalty weight.
        penalty_growth: Multiplier applied to the weight after each round.
        dtype: Torch dtype name, e.g. 'float64'.
        device: Torch device.
    """

    def __init__(
        self,
        outer_iterations=8,
        lbfgs_steps=20,
        lbfgs_lr=1.0,
        penalty_weight=1e3,
        penalty_growth=10.0,
        dtype="float64",
        device="cpu",
    ):
        self.outer_iterations = outer_iterations
        self.lbfgs_steps = lbfgs_steps
        self.lbfgs_lr = lbfgs_lr
        self.penalty_weight = penalty_weight
        self.penalty_growth = penalty_growth
        self.dtype = getattr(torch, dtype) if isinstance(dtype, str) else dtype
        self.device = device

    def _tensor(self, value):
        return torch.tensor(value, dtype=self.dtype, device=self.device)

    def solve(self, problem):
        points = problem.points
        offset = points.mean(axis=0)
        scale = float(np.max(np.linalg.norm(points - offset, axis=1)))
        if scale == 0.0:
            scale = 1.0

        x0 = problem.initial_params
        x = self._tensor((points - offset) / scale)
        p0 = self._tensor((x0[0:3] - offset) / scale).requires_grad_(True)
        p1 = self._tensor((x0[3:6] - offset) / scale).requires_grad_(True)
        r_raw = self._tensor(x0[RADIUS_INDEX] / scale).requires_grad_(True)
        parameters = [p0, p1, r_raw]

        def compute_loss(weight):
            radius = torch.abs(r_raw)
            sd = sd_capsule(x, p0, p1, radius)
            violation = torch.relu(sd).pow(2).mean()
            return capsule_volume(p0, p1, radius) + weight * violation

        weight = self.penalty_weight
        history = []
        n_steps = 0
        with torch.no_grad():
            current_loss = compute_loss(weight).item()
        success = True
        message = "penalty rounds completed"

        logger.info(
            f"Starting L-BFGS penalty refinement: {self.outer_iterations} rounds x "
            f"{self.lbfgs_steps} steps, {problem.n_constraints} points"
        )
        for round_idx in range(self.outer_iterations):
            # Restart L-BFGS every round since the loss changes with the weight
            lbfgs_opt = torch.optim.LBFGS(
                parameters,
                lr=self.lbfgs_lr,
                max_iter=20,
                max_eval=25,
                tolerance_grad=1e-12,
                tolerance_change=1e-14,
                history_size=50,
                line_search_fn="strong_wolfe",
            )

            def closure():
                lbfgs_opt.zero_grad()
                loss = compute_loss(weight)
                if torch.isfinite(loss):
                    loss.backward()
                    return loss
                return torch.tensor(float("inf"), dtype=self.dtype, device=self.device)

            for _ in range(self.lbfgs_steps):
                loss = lbfgs_opt.step(closure)
                n_steps += 1
                current_loss = loss.item() if loss is not None else float("inf")
                if not np.isfinite(current_loss):
                    break

            if not np.isfinite(current_loss):
                logger.warning(f"L-BFGS stopping in round {round_idx} due to non-finite loss")
                success = False
                message = f"non-finite loss in round {round_idx}"
                break

            history.append(current_loss)
            logger.debug(
                f"Penalty round {round_idx + 1}: weight={weight:.3g}, loss={current_loss:.6g}"
            )
            weight *= self.penalty_growth

        with torch.no_grad():
            params = np.concatenate(
                [
                    p0.detach().cpu().numpy() * scale + offset,
                    p1.detach().cpu().numpy() * scale + offset,
                    [abs(r_raw.item()) * scale],
                ]
            )

        if not np.all(np.isfinite(params)):
            logger.warning("L-BFGS produced non-finite parameters; returning the initial guess")
            params = x0
            success = False
            message = "non-finite parameters"

        result = self._finalize(problem, params, success, message, n_steps, history)
        logger.info(
            f"L-BFGS finished: success={result.success}, volume={result.objective:.6g}, "
            f"max violation={result.max_violation:.3g}"
        )
        return result


SOLVERS = {
    "scipy": ScipyCapsuleSolver,
    "torch": TorchCapsuleSolver,
}


def make_solver(method="scipy", config=None):
    """Instantiate a built-in solver with defaults from ``DEFAULT_FITTING_CONFIG``."""
    solver_config = get_fitting_config(method, config)
    return SOLVERS[method](**solver_config)


# ── orchestration ───────────────────────────────────────────────────────────


class CapsuleFitter:
    """
    Fit a minimal-volume capsule around a collection of polyhedra.

    Steps: merge the polyhedra, reduce to the convex hull, estimate an
    initial capsule with PCA, refine it with the solver, then make sure every
    hull vertex is contained.

    Args:
        method: Built-in solver name ('scipy' or 'torch'); ignored when
            ``solver`` is given.
        solver: Optional ``CapsuleSolver`` instance.
        config: Optional overrides for the built-in solver configuration.
        inflate_to_contain: Grow the radius by the largest remaining
            constraint violation so the result bounds every hull vertex.

    Attributes set by ``fit``:
        problem (CapsuleProblem), result (SolverResult),
        initial_capsule (Capsule), capsule (Capsule)
    """

    def __init__(self, method="scipy", solver=None, config=None, inflate_to_contain=True):
        if solver is None:
            solver = make_solver(method, config)
        elif config is not None:
            raise ValueError(
                "config is only used with built-in solvers; configure the solver instance instead"
            )
        self.solver = solver
        self.inflate_to_contain = inflate_to_contain

        self.problem = None
        self.result = None
        self.initial_capsule = None
        self.capsule = None

    def _contain(self, params):
        params = params.copy()
        violation = self.problem.max_violation(params)
        if violation > 0.0:
            logger.debug(f"Inflating radius by {violation:.3g} to contain all hull vertices")
            params[RADIUS_INDEX] += violation + DEFAULT_TOLERANCES["containment"]
        return params

    def fit(self, polyhedra):
        """
        Args:
            polyhedra: List of point sets / meshes with ``.points``.

        Returns:
            Capsule: the refined bounding capsule.
        """
        self.problem = build_capsule_problem(polyhedra)
        self.initial_capsule = self.problem.initial_capsule
        initial_params = self.problem.initial_params

        self.result = self.solver.solve(self.problem)
        if self.result.success:
            params = self.result.params
        else:
            logger.warning(
                f"Capsule refinement failed ({self.result.message}); keeping the initial capsule"
            )
            params = initial_params

        if self.inflate_to_contain:
            params = self._contain(params)
            initial_params = self._contain(initial_params)

        objective = self.problem.objective
        if objective.evaluate(params) > objective.evaluate(initial_params):
            logger.warning(
                "Refined capsule is larger than the initial estimate; keeping the initial capsule"
            )
            params = initial_params

        self.capsule = Capsule.from_params(params)
        logger.info(f"Bounding capsule: {self.capsule}, volume={self.capsule.volume:.6g}")
        return self.capsule


def fit_bounding_capsule(polyhedra, method="scipy", config=None):
    """Convenience wrapper: ``CapsuleFitter(method, config=config).fit(polyhedra)``."""
    return CapsuleFitter(method=method, config=config).fit(polyhedra)
