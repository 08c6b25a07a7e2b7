"""
FGM Iteration Core
==================

The Fast Gradient Method as a lazy, pull-based sequence of iteration states,
plus the generic generator wrappers that bound, stop and observe it.

Every pulled element is a new immutable ``FGMState``; the first one has
``iteration == 1``. Wrappers never modify the sequence they decorate:

    states = FastGradientIterator(H, b, x0, proj, step, L)
    states = halt(states, conditions)
    states = itertools.islice(states, max_iter)
    states = apply(states, display, period)
    final, count = loop(states)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, Tuple, TypeVar, Union
import numpy as np

T = TypeVar("T")


@dataclass(frozen=True)
class FGMState:
    """
    Snapshot of one Fast Gradient Method iteration.

    Attributes:
        iteration: 1-based iteration counter
        x: Previous projected iterate
        x_next: New projected iterate
        y: Momentum point the gradient step was taken from
        y_next: Momentum point for the next iteration
        grad_y: Gradient ``H y + b``
        grad_x_next: Gradient ``H x_next + b`` (stopping conditions only)
        trial: Unprojected gradient step ``y - grad_y / L``
        step_state: Opaque state of the step size strategy
    """
    iteration: int
    x: np.ndarray
    x_next: np.ndarray
    y: np.ndarray
    y_next: np.ndarray
    grad_y: np.ndarray
    grad_x_next: np.ndarray
    trial: np.ndarray
    step_state: Any = None


def identity_projection(x: np.ndarray) -> np.ndarray:
    """Projection onto the whole space (unconstrained problems)."""
    return x


class FastGradientIterator:
    """
    Iterable producing the FGM iteration states for ``min ½x'Hx + b'x``.

    Each iteration computes

        grad_y = H y + b
        t      = y - grad_y / L
        x_next = proj(t)
        y_next = x_next + beta (x_next - x)

    with ``beta`` supplied by an initialized step size strategy. Iterating
    the object twice restarts from ``x0``.

    Args:
        H: Hessian (n, n)
        b: Linear term (n,)
        x0: Initial iterate (n,)
        proj: Projection onto the feasible set
        step: Initialized step size strategy (see ``fgm.stepping``)
        L: Upper bound on the largest eigenvalue of H
    """

    def __init__(
        self,
        H: np.ndarray,
        b: np.ndarray,
        x0: np.ndarray,
        proj: Callable[[np.ndarray], np.ndarray],
        step: Any,
        L: float,
    ) -> None:
        self.H = H
        self.b = b
        self.x0 = x0
        self.proj = proj
        self.step = step
        self.L = L

    def __iter__(self) -> Iterator[FGMState]:
        H, b, L = self.H, self.b, self.L

        x = self.x0
        y = self.x0
        step_state = self.step.initial_state()
        iteration = 0

        while True:
            iteration += 1

            grad_y = H @ y + b
            trial = y - grad_y / L
            x_next = np.asarray(self.proj(trial))

            beta, step_state = self.step.next_step(step_state)
            y_next = x_next + beta * (x_next - x)

            grad_x_next = H @ x_next + b

            yield FGMState(
                iteration=iteration,
                x=x,
                x_next=x_next,
                y=y,
                y_next=y_next,
                grad_y=grad_y,
                grad_x_next=grad_x_next,
                trial=trial,
                step_state=step_state,
            )

            x, y = x_next, y_next


def halt(
    iterable: Iterable[T],
    conditions: Union[Callable[[T], bool], Sequence[Callable[[T], bool]]],
) -> Iterator[T]:
    """
    Stop ``iterable`` at the first element satisfying any of ``conditions``.

    The triggering element is still yielded. A single callable is accepted
    in place of a sequence.
    """
    if callable(conditions):
        conditions = (conditions,)

    for item in iterable:
        yield item
        if any(condition(item) for condition in conditions):
            return


def apply(
    iterable: Iterable[T],
    fn: Callable[[T], Any],
    period: int = 1,
) -> Iterator[T]:
    """
    Call ``fn`` on every ``period``-th element of ``iterable``.

    The elements are passed through unchanged and the return value of ``fn``
    is ignored.
    """
    if period < 1:
        raise ValueError(f"period must be positive, got {period}")

    for count, item in enumerate(iterable, start=1):
        if count % period == 0:
            fn(item)
        yield item


def loop(iterable: Iterable[T]) -> Tuple[Optional[T], int]:
    """Exhaust ``iterable``, returning its last element and the element count."""
    last = None
    count = 0

    for item in iterable:
        last = item
        count += 1

    return last, count
