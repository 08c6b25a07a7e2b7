"""
predictivecontrol Model Predictive Control (MPC)
================================================

Condensed quadratic programs for constrained linear MPC.

The state trajectory of a constrained LQR problem is eliminated with the
dynamics, leaving a dense QP in the input sequence alone. Its Hessian is
fixed by the problem, so it is built once and reused for every initial
state.

Quick Start
-----------
>>> from predictivecontrol.mpc import LinearSystem, ConstrainedLQR, condense
>>>
>>> # Define system dynamics: x_{k+1} = A @ x_k + B @ u_k
>>> A = np.array([[0.9, 1.0], [0.0, 0.9]])
>>> B = np.array([[0.0], [1.0]])
>>> system = LinearSystem(A, B)
>>>
>>> # Stage constraints -1 <= u_k <= 1 written as F u_k <= g
>>> problem = ConstrainedLQR(
...     system, N=10,
...     Q=np.eye(2), R=1.0, P="dare",
...     F=np.array([[1.0], [-1.0]]), g=np.array([1.0, 1.0]),
... )
>>>
>>> qp = condense(problem)
>>> qp.H.block(0, 0)         # Stage (1, 1) block of the Hessian

Closed Loop
-----------
>>> from predictivecontrol.mpc import CondensedMPC
>>>
>>> mpc = CondensedMPC(problem, projection=lambda u: np.clip(u, -1.0, 1.0))
>>> result = mpc.solve(np.array([1.0, 0.5]))
>>> u_apply = result.optimal_control

Classes
-------
LinearSystem
    Linear time-invariant dynamics
ConstrainedLQR
    Problem data, validated once and immutable
CondensedQP
    Hessian, linear term map and inequality system of the condensed QP
CondensedMPC
    Receding horizon controller solving the condensed QP with the FGM
MPCResult
    Predicted trajectory and inputs of one solve

Theory
------
With ``x = Γ u + Φ x0`` the problem becomes

    minimize    u' H u + 2 x0' J' u
    subject to  G u <= g + L x0

See Also
--------
- Jerez, Kerrigan & Constantinides (2011): "A condensed and sparse QP
  formulation for predictive control"
- Richter, Jones & Morari (2012): "Computational Complexity Certification
  for Real-Time MPC With Input Constraints Based on the Fast Gradient Method"
"""

from .dynamics import LinearSystem
from .constraints import BoxConstraints, PolytopeConstraints
from .problem import ConstrainedLQR, TerminalWeight, dlqr_gain
from .condensing import (
    CondensedQP,
    condense,
    prediction,
    initial_propagation,
    input_prediction,
    input_initial_propagation,
    hessian,
    linear_coefficients,
    inequality_constraints,
    equality_constraints,
)
from .analysis import condition_number, condition_bound
from .controller import CondensedMPC, MPCResult

__all__ = [
    # Dynamics and problem
    "LinearSystem",
    "ConstrainedLQR",
    "TerminalWeight",
    "dlqr_gain",
    # Constraints
    "BoxConstraints",
    "PolytopeConstraints",
    # Condensing
    "CondensedQP",
    "condense",
    "prediction",
    "initial_propagation",
    "input_prediction",
    "input_initial_propagation",
    "hessian",
    "linear_coefficients",
    "inequality_constraints",
    "equality_constraints",
    # Analysis
    "condition_number",
    "condition_bound",
    # Controllers
    "CondensedMPC",
    "MPCResult",
]
