"""
MPC Controller
==============

Receding horizon controller solving the fully condensed QP of a
constrained LQR problem with the Fast Gradient Method.

Classes:
- CondensedMPC: condenses once, then solves one QP per initial state
- MPCResult: predicted trajectory and input sequence of one solve
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import warnings
import numpy as np

from ..exceptions import DimensionError, InvalidInputError
from ..fgm import Best, ConstantStep, StepSize, VariableStep, fast_gradient_method, identity_projection
from ..result import Status
from .condensing import CondensedQP, condense
from .constraints import BoxConstraints
from .problem import ConstrainedLQR


@dataclass
class MPCResult:
    """
    MPC solution result.

    Attributes:
        x: Predicted state trajectory (N+1, n_x)
        u: Applied control sequence (N, n_u)
        cost: Condensed objective ``v'Hv + 2 x0'J'v`` at the solution
        status: Solver status
        solve_time: Computation time (seconds)
        iterations: Solver iterations
        v: Free QP variables (equal to u without a prestabilizing controller)
    """
    x: np.ndarray
    u: np.ndarray
    cost: float
    status: str
    solve_time: float
    iterations: int
    v: Optional[np.ndarray] = None

    @property
    def optimal_control(self) -> np.ndarray:
        """First control action to apply (n_u,)."""
        return self.u[0]

    @property
    def predicted_trajectory(self) -> np.ndarray:
        """Predicted state trajectory (N+1, n_x)."""
        return self.x

    @property
    def is_optimal(self) -> bool:
        """Whether a stopping condition was met."""
        return self.status == str(Status.OPTIMAL)

    def __repr__(self) -> str:
        return (
            f"MPCResult(\n"
            f"  status={self.status},\n"
            f"  cost={self.cost:.4f},\n"
            f"  solve_time={self.solve_time*1000:.2f}ms,\n"
            f"  horizon={len(self.u)}\n"
            f")"
        )


_STEPS = {
    "constant": ConstantStep,
    "variable": VariableStep,
}


class CondensedMPC:
    """
    Linear MPC on the fully condensed QP, solved with the Fast Gradient Method.

    At each call to ``solve`` the controller minimizes

        v' H v + 2 x0' J' v   s.t.   v ∈ X

    where X is given by ``projection``. Without a prestabilizing controller
    the projection defaults to clipping onto the input bounds. The stage
    constraints ``E x + F u <= g`` and state bounds are not representable by
    a simple projection and are only enforced by a user supplied one.

    Args:
        problem: Constrained LQR problem
        projection: Projection onto the feasible set of the free variables
        params: Solver parameters
            - max_iterations: Iteration bound (default 100)
            - tolerance: ``Best`` stopping tolerance (default 1e-4)
            - step: "constant", "variable" or a StepSize (default "constant")
            - verbose: Print FGM progress every iteration (default False)

    Raises:
        InvalidInputError: Input bounds on a prestabilized problem without an
            explicit projection, or an unknown step name

    Example:
        >>> system = LinearSystem(np.array([[0.9, 1.0], [0.0, 0.9]]), np.array([[0.0], [1.0]]))
        >>> problem = ConstrainedLQR(system, N=10, Q=np.eye(2), R=1.0, u_lower=-1.0, u_upper=1.0)
        >>> mpc = CondensedMPC(problem)
        >>> result = mpc.solve(np.array([1.0, 0.5]))
        >>> u_apply = result.optimal_control
    """

    def __init__(
        self,
        problem: ConstrainedLQR,
        projection: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.problem = problem
        self.horizon = problem.N
        self.n_x = problem.n_states
        self.n_u = problem.n_inputs

        params = params or {}
        self.max_iterations = params.get('max_iterations', 100)
        self.tolerance = params.get('tolerance', 1e-4)
        self.verbose = params.get('verbose', False)
        self.step = self._setup_step(params.get('step', 'constant'))

        self.projection = self._setup_projection(projection)

        self.qp: CondensedQP = condense(problem)

        # Eigenvalues are fixed by the problem, so compute them once
        eig = np.linalg.eigvalsh(self.qp.H.data)
        self._L = float(eig[-1])
        self._mu = max(float(eig[0]), 0.0)

    @staticmethod
    def _setup_step(step) -> StepSize:
        if isinstance(step, StepSize):
            return step
        try:
            return _STEPS[step]()
        except KeyError:
            raise InvalidInputError(
                f"Unknown step {step!r}. Allowed values are {sorted(_STEPS)} or a StepSize"
            ) from None

    def _setup_projection(self, projection):
        problem = self.problem

        if projection is None and (problem.has_constraints or problem.has_state_bounds):
            warnings.warn(
                "Stage constraints and state bounds are not enforced without an explicit projection",
                UserWarning,
                stacklevel=3,
            )

        if projection is not None:
            return projection

        if not problem.has_input_bounds:
            return identity_projection

        if problem.is_prestabilized:
            raise InvalidInputError(
                "Input bounds of a prestabilized problem cannot be applied as a box "
                "projection on the free variables; pass an explicit projection"
            )

        box = BoxConstraints(problem.u_lower, problem.u_upper)
        return box.repeat(self.horizon)

    def solve(
        self,
        x0: np.ndarray,
        warm_start: Optional[np.ndarray] = None,
    ) -> MPCResult:
        """
        Solve the MPC problem from the current state.

        Args:
            x0: Current state (n_x,)
            warm_start: Initial FGM iterate for the free variables (N*n_u,)

        Returns:
            MPCResult with the predicted trajectory and inputs
        """
        x0 = np.asarray(x0, dtype=np.float64)

        if x0.shape != (self.n_x,):
            raise DimensionError(f"x0 must have shape ({self.n_x},), got {x0.shape}")

        N = self.horizon
        H = self.qp.H.data
        b = self.qp.linear_term(x0)

        result = fast_gradient_method(
            H,
            b,
            self.projection,
            x0=warm_start,
            L=self._L,
            mu=self._mu,
            step=self.step,
            stop_conditions=[Best(self.tolerance)],
            max_iter=self.max_iterations,
            display_interval=1 if self.verbose else 0,
        )

        if result.status == Status.MAX_ITERATIONS:
            warnings.warn(
                f"FGM stopped at the iteration limit ({result.iterations}) before converging",
                RuntimeWarning,
                stacklevel=2,
            )

        v = result.x
        x_traj, u_seq = self._rollout(x0, v.reshape(N, self.n_u))
        cost = float(v @ H @ v + 2 * b @ v)

        return MPCResult(
            x=x_traj,
            u=u_seq,
            cost=cost,
            status=str(result.status),
            solve_time=result.solve_time,
            iterations=result.iterations,
            v=v,
        )

    def _rollout(self, x0: np.ndarray, v_seq: np.ndarray):
        """Predict states and applied inputs ``u_k = v_k - K x_k``."""
        system = self.problem.system
        K = self.problem.K
        N = self.horizon

        x_traj = np.zeros((N + 1, self.n_x))
        u_seq = np.zeros((N, self.n_u))
        x_traj[0] = x0

        for k in range(N):
            u_seq[k] = v_seq[k] - K @ x_traj[k]
            x_traj[k + 1] = system.step(x_traj[k], u_seq[k])

        return x_traj, u_seq

    def simulate(
        self,
        x0: np.ndarray,
        n_steps: int,
        disturbance: Optional[np.ndarray] = None,
    ) -> Dict[str, np.ndarray]:
        """
        Simulate closed-loop MPC control.

        Args:
            x0: Initial state
            n_steps: Number of simulation steps
            disturbance: Additive disturbance (n_steps, n_x)

        Returns:
            Dictionary with 'x' (states), 'u' (inputs), 'cost' (per step)
        """
        x = np.zeros((n_steps + 1, self.n_x))
        u = np.zeros((n_steps, self.n_u))
        costs = np.zeros(n_steps)

        x[0] = x0

        for k in range(n_steps):
            result = self.solve(x[k])

            u[k] = result.optimal_control
            costs[k] = result.cost

            x[k + 1] = self.problem.system.step(x[k], u[k])

            if disturbance is not None:
                x[k + 1] += disturbance[k]

        return {'x': x, 'u': u, 'cost': costs}
