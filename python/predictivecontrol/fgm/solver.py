"""Fast Gradient Method solver interface."""

from __future__ import annotations

import itertools
import time
from typing import Callable, Optional, Sequence, Union
import numpy as np

from ..exceptions import DimensionError, InvalidInputError
from ..result import FGMResult, Status
from .iteration import FastGradientIterator, FGMState, apply, halt, identity_projection, loop
from .stepping import ConstantStep, StepSize
from .stopping import Best, conjugate_residual

_DEFAULT = object()

StopFunction = Callable[[FGMState], bool]


def _initialize(condition: StopFunction, n: int, L: float, mu: float) -> StopFunction:
    initialize = getattr(condition, "initialize", None)
    if initialize is None:
        return condition
    return initialize(n, L, mu)


def _print_header() -> None:
    print("Iteration | Residual (Conjugate)")


def _print_state(state: FGMState) -> None:
    print(f"   {state.iteration:3d}    |   {conjugate_residual(state):.4e}")


def fast_gradient_method(
    H: np.ndarray,
    b: np.ndarray,
    proj: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    x0: Optional[np.ndarray] = None,
    L: Optional[float] = None,
    mu: Optional[float] = None,
    step: Optional[StepSize] = None,
    stop_conditions: Union[Sequence[StopFunction], StopFunction, None] = _DEFAULT,
    max_iter: int = 100,
    display_interval: int = 0,
    callback: Optional[Callable[[FGMState], None]] = None,
) -> FGMResult:
    """
    Solve ``min ½x'Hx + b'x  s.t.  x ∈ X`` with the Fast Gradient Method.

    The feasible set X is given implicitly by ``proj``, a function mapping a
    point onto X (identity when omitted, i.e. an unconstrained problem).

    Args:
        H: Symmetric positive semidefinite Hessian (n, n)
        b: Linear term (n,)
        proj: Projection onto the feasible set
        x0: Initial iterate (default: zeros)
        L: Largest eigenvalue of H (computed with ``eigvalsh`` if omitted)
        mu: Smallest eigenvalue of H (computed with ``eigvalsh`` if omitted)
        step: Step size strategy (default: ``ConstantStep()``)
        stop_conditions: Conditions combined with logical OR (default:
            ``(Best(1e-4),)``); ``None`` only uses the iteration bound.
            Plain ``state -> bool`` callables are accepted; objects with an
            ``initialize(n, L, mu)`` method are initialized first
        max_iter: Maximum number of iterations
        display_interval: Print progress every k iterations (0 disables)
        callback: Called with the iteration state every ``display_interval``
            iterations (every iteration when printing is disabled)

    Returns:
        FGMResult; unpacks as ``(x, iterations)``

    Raises:
        DimensionError: If H, b or x0 do not conform
        InvalidInputError: If max_iter or display_interval is negative

    Example:
        >>> H = np.diag([10.0, 2.0])
        >>> b = np.array([2.0, 4.0])
        >>> x, iters = fast_gradient_method(H, b, stop_conditions=[Conjugate(1e-8)])
        >>> np.round(x, 6)
        array([-0.2, -2. ])
    """
    start_time = time.perf_counter()

    H = np.asarray(H, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64).ravel()
    n = b.shape[0]

    if H.shape != (n, n):
        raise DimensionError(f"H must be ({n}, {n}), got {H.shape}")

    if x0 is None:
        x0 = np.zeros(n)
    else:
        x0 = np.asarray(x0, dtype=np.float64).ravel()
        if x0.shape != (n,):
            raise DimensionError(f"x0 must have shape ({n},), got {x0.shape}")

    if max_iter < 0:
        raise InvalidInputError(f"max_iter must be non-negative, got {max_iter}")
    if display_interval < 0:
        raise InvalidInputError(f"display_interval must be non-negative, got {display_interval}")

    if proj is None:
        proj = identity_projection

    if L is None or mu is None:
        eig = np.linalg.eigvalsh(H)
        if L is None:
            L = float(eig[-1])
        if mu is None:
            # Round-off can push the smallest eigenvalue of a singular H below zero
            mu = max(float(eig[0]), 0.0)

    step = (step if step is not None else ConstantStep()).initialize(L, mu)

    if stop_conditions is _DEFAULT:
        stop_conditions = (Best(1e-4),)
    elif callable(stop_conditions):
        stop_conditions = (stop_conditions,)

    states = FastGradientIterator(H, b, x0, proj, step, L)

    conditions = ()
    if stop_conditions is not None:
        conditions = tuple(_initialize(cond, n, L, mu) for cond in stop_conditions)
        states = halt(states, conditions)

    states = itertools.islice(states, max_iter)

    if display_interval > 0:
        _print_header()
        states = apply(states, _print_state, display_interval)

    if callback is not None:
        states = apply(states, callback, display_interval or 1)

    final, _ = loop(states)

    if final is None:
        x, iterations, converged = x0.copy(), 0, False
    else:
        x, iterations = final.x_next, final.iteration
        converged = any(cond(final) for cond in conditions)

    return FGMResult(
        x=x,
        iterations=iterations,
        status=Status.OPTIMAL if converged else Status.MAX_ITERATIONS,
        solve_time=time.perf_counter() - start_time,
        L=float(L),
        mu=float(mu),
        problem_info={"n": n, "step": type(step).__name__, "conditions": len(conditions)},
    )
