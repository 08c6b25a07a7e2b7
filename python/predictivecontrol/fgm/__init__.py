"""
Fast Gradient Method (FGM)
==========================

Nesterov's fast gradient method for QPs whose feasible set is given by a
projection operator, with a priori iteration bounds for cold starts.

Quick Start
-----------
>>> from predictivecontrol.fgm import fast_gradient_method, Best
>>>
>>> H = np.diag([10.0, 2.0])
>>> b = np.array([2.0, 4.0])
>>> clip = lambda x: np.clip(x, -1.0, 1.0)
>>> result = fast_gradient_method(H, b, clip, stop_conditions=[Best(1e-8)])
>>> result.x
array([-0.2, -1. ])

Components
----------
fast_gradient_method
    Driving function returning an FGMResult
FastGradientIterator
    Lazy sequence of FGMState iteration snapshots
ConstantStep, VariableStep
    Momentum step size strategies
Gradient, Conjugate, Best
    Early stopping conditions
halt, apply, loop
    Generic iteration wrappers
cold_start_delta, upper_iteration_bound
    Complexity certification for cold-started solves
"""

from .iteration import FGMState, FastGradientIterator, identity_projection, halt, apply, loop
from .stepping import StepSize, ConstantStep, VariableStep
from .stopping import StopCondition, Gradient, Conjugate, Best, conjugate_residual
from .solver import fast_gradient_method
from .analysis import cold_start_delta, upper_iteration_bound, solve_inequality_qp

__all__ = [
    # Solver
    "fast_gradient_method",
    # Iteration
    "FGMState",
    "FastGradientIterator",
    "identity_projection",
    "halt",
    "apply",
    "loop",
    # Step sizes
    "StepSize",
    "ConstantStep",
    "VariableStep",
    # Stopping
    "StopCondition",
    "Gradient",
    "Conjugate",
    "Best",
    "conjugate_residual",
    # Analysis
    "cold_start_delta",
    "upper_iteration_bound",
    "solve_inequality_qp",
]
