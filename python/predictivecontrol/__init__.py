"""
predictivecontrol: Condensed QPs and Fast Gradient Methods for Linear MPC
=========================================================================

predictivecontrol turns a constrained linear-quadratic regulator problem
into a dense quadratic program over the input sequence ("full condensing")
and solves it with Nesterov's Fast Gradient Method.

Quick Start
-----------
>>> import numpy as np
>>> import predictivecontrol as pc
>>>
>>> system = pc.LinearSystem(np.array([[0.9, 1.0], [0.0, 0.9]]), np.array([[0.0], [1.0]]))
>>> problem = pc.ConstrainedLQR(system, N=10, Q=np.eye(2), R=1.0, u_lower=-1.0, u_upper=1.0)
>>> qp = pc.condense(problem)
>>> result = pc.fast_gradient_method(qp.H, qp.linear_term(np.array([1.0, 0.0])),
...                                  lambda u: np.clip(u, -1.0, 1.0))
>>> print(result.status, result.iterations)

Complexity certification of a cold start:

>>> G, L, g = pc.inequality_constraints(problem)
>>> pc.upper_iteration_bound(1e-4, G, g, H=qp.H)
"""

__version__ = "0.1.0"
__author__ = "predictivecontrol Contributors"

# Import public API
from .mpc import (
    LinearSystem,
    ConstrainedLQR,
    TerminalWeight,
    CondensedQP,
    CondensedMPC,
    MPCResult,
    condense,
    hessian,
    linear_coefficients,
    inequality_constraints,
    equality_constraints,
    condition_number,
    condition_bound,
)
from .fgm import (
    fast_gradient_method,
    ConstantStep,
    VariableStep,
    Gradient,
    Conjugate,
    Best,
    cold_start_delta,
    upper_iteration_bound,
)
from .result import FGMResult, Status
from .utils import BlockMatrix, block_kron
from .exceptions import (
    PredictiveControlError,
    DimensionError,
    DomainError,
    InvalidInputError,
    InfeasibleError,
    NumericalError,
)

__all__ = [
    # Version
    "__version__",

    # Problem building
    "LinearSystem",
    "ConstrainedLQR",
    "TerminalWeight",

    # Condensing
    "CondensedQP",
    "condense",
    "hessian",
    "linear_coefficients",
    "inequality_constraints",
    "equality_constraints",
    "BlockMatrix",
    "block_kron",

    # Solving
    "fast_gradient_method",
    "ConstantStep",
    "VariableStep",
    "Gradient",
    "Conjugate",
    "Best",
    "CondensedMPC",
    "MPCResult",

    # Analysis
    "cold_start_delta",
    "upper_iteration_bound",
    "condition_number",
    "condition_bound",

    # Results
    "FGMResult",
    "Status",

    # Exceptions
    "PredictiveControlError",
    "DimensionError",
    "DomainError",
    "InvalidInputError",
    "InfeasibleError",
    "NumericalError",
]


def info() -> str:
    """Return information about the predictivecontrol installation."""
    import platform

    import numpy
    import scipy

    lines = [
        f"predictivecontrol version: {__version__}",
        f"Python version: {platform.python_version()}",
        f"Platform: {platform.platform()}",
        f"NumPy version: {numpy.__version__}",
        f"SciPy version: {scipy.__version__}",
    ]

    return "\n".join(lines)
