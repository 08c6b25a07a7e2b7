"""
FGM Stopping Conditions
=======================

Early termination criteria from §6.4 of S. Richter, "Computational
complexity certification of gradient methods for real-time model predictive
control", ETH Zurich, 2012.

A condition is configured with ``initialize(n, L, mu)``, which returns a new
instance, and evaluated on an ``FGMState`` with ``evaluate`` or by calling it.
Scaled conditions divide their tolerance by the number of variables.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional
import numpy as np

from .iteration import FGMState


def conjugate_residual(state: FGMState) -> float:
    """``|x_next' grad_x_next + ||grad_x_next||_1|``."""
    return float(abs(state.x_next @ state.grad_x_next + np.linalg.norm(state.grad_x_next, 1)))


class StopCondition:
    """Base class for stopping conditions."""

    def initialize(self, n: int, L: float, mu: float) -> "StopCondition":
        return self

    def evaluate(self, state: FGMState) -> bool:
        raise NotImplementedError

    def __call__(self, state: FGMState) -> bool:
        return self.evaluate(state)


@dataclass(frozen=True)
class Gradient(StopCondition):
    """
    Stop when ``0.5 (1/mu - 1/L) ||L (y - x_next)||² < eps``.

    Args:
        eps: Tolerance
        scaled: Divide ``eps`` by the number of variables
    """
    eps: float
    scaled: bool = True
    n: int = 1
    L: float = 1.0
    mu: float = 1.0

    def initialize(self, n: int, L: float, mu: float) -> "Gradient":
        return replace(self, n=int(n), L=float(L), mu=float(mu))

    @property
    def threshold(self) -> float:
        return self.eps / self.n if self.scaled else self.eps

    @property
    def coefficient(self) -> float:
        if self.mu <= 0:
            return np.inf
        return 0.5 * (1.0 / self.mu - 1.0 / self.L)

    def value(self, state: FGMState) -> float:
        dist = np.linalg.norm(self.L * (state.y - state.x_next)) ** 2
        if dist == 0:
            return 0.0
        return float(abs(self.coefficient * dist))

    def evaluate(self, state: FGMState) -> bool:
        return self.value(state) < self.threshold


@dataclass(frozen=True)
class Conjugate(StopCondition):
    """
    Stop when ``|x_next' grad_x_next + ||grad_x_next||_1| < eps``.

    Args:
        eps: Tolerance
        scaled: Divide ``eps`` by the number of variables
    """
    eps: float
    scaled: bool = True
    n: int = 1

    def initialize(self, n: int, L: float, mu: float) -> "Conjugate":
        return replace(self, n=int(n))

    @property
    def threshold(self) -> float:
        return self.eps / self.n if self.scaled else self.eps

    def evaluate(self, state: FGMState) -> bool:
        return conjugate_residual(state) < self.threshold


@dataclass(frozen=True)
class Best(StopCondition):
    """
    Stop when either the gradient criterion with ``eps1`` or the conjugate
    criterion with ``eps2`` (default ``eps1``) holds.
    """
    eps1: float
    eps2: Optional[float] = None
    scaled: bool = True
    gradient: Optional[Gradient] = None
    conjugate: Optional[Conjugate] = None

    def __post_init__(self):
        if self.gradient is None:
            object.__setattr__(self, "gradient", Gradient(self.eps1, scaled=self.scaled))
        if self.conjugate is None:
            eps2 = self.eps1 if self.eps2 is None else self.eps2
            object.__setattr__(self, "conjugate", Conjugate(eps2, scaled=self.scaled))

    def initialize(self, n: int, L: float, mu: float) -> "Best":
        return replace(
            self,
            gradient=self.gradient.initialize(n, L, mu),
            conjugate=self.conjugate.initialize(n, L, mu),
        )

    def evaluate(self, state: FGMState) -> bool:
        return self.gradient.evaluate(state) or self.conjugate.evaluate(state)
