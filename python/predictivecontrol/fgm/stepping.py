"""
FGM Step Size Strategies
========================

Momentum coefficients ``beta`` for the Fast Gradient Method.

Strategies are immutable: ``initialize(L, mu)`` returns a configured copy,
``initial_state()`` gives the strategy's private recurrence state and
``next_step(state)`` returns ``(beta, new_state)``.

References:
    S. Richter, C. N. Jones and M. Morari, "Computational Complexity
    Certification for Real-Time MPC With Input Constraints Based on the Fast
    Gradient Method", IEEE TAC 57(6), 2012. Algorithm II.1.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Tuple
import numpy as np
from scipy.optimize import brentq

from ..exceptions import DomainError, NumericalError


class StepSize:
    """Base class for step size strategies."""

    def initialize(self, L: float, mu: float) -> "StepSize":
        raise NotImplementedError

    def initial_state(self) -> Any:
        return None

    def next_step(self, state: Any) -> Tuple[float, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class ConstantStep(StepSize):
    """
    Constant momentum ``beta = (√L - √mu) / (√L + √mu)``.

    Computed once in ``initialize`` and replayed at every iteration.
    """
    beta: float = 1.0

    def initialize(self, L: float, mu: float) -> "ConstantStep":
        sqrt_L = np.sqrt(L)
        sqrt_mu = np.sqrt(mu)
        return replace(self, beta=float((sqrt_L - sqrt_mu) / (sqrt_L + sqrt_mu)))

    def next_step(self, state: Any) -> Tuple[float, Any]:
        return self.beta, state


@dataclass(frozen=True)
class VariableStep(StepSize):
    """
    Variable momentum from the recurrence of Algorithm II.1.

    Starting at ``alpha_0 = √(mu/L)``, each step finds ``alpha_n`` in [0, 1]
    solving ``(1 - alpha_n) alpha² + (mu/L) alpha_n - alpha_n² = 0`` and uses
    ``beta = alpha (1 - alpha) / (alpha² + alpha_n)``.

    Requires a strictly positive ``mu``.
    """
    L: float = 1.0
    mu: float = 1.0

    def initialize(self, L: float, mu: float) -> "VariableStep":
        if mu <= 0:
            raise DomainError(f"VariableStep requires mu > 0, got {mu}")
        return replace(self, L=float(L), mu=float(mu))

    @property
    def ratio(self) -> float:
        return self.mu / self.L

    def initial_state(self) -> Tuple[float, float]:
        alpha = float(np.sqrt(self.ratio))
        return alpha, alpha

    def next_step(self, state: Tuple[float, float]) -> Tuple[float, Tuple[float, float]]:
        _, alpha = state
        q = self.ratio

        def residual(alpha_next: float) -> float:
            return (1 - alpha_next) * alpha**2 + q * alpha_next - alpha_next**2

        try:
            alpha_next = brentq(residual, 0.0, 1.0)
        except ValueError as e:
            raise NumericalError(f"Step size recurrence has no root in [0, 1]: {e}") from e

        beta = alpha * (1 - alpha) / (alpha**2 + alpha_next)

        return float(beta), (alpha, float(alpha_next))
