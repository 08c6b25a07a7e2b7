"""
MPC Constraints
===============

Constraint sets consumed by the solvers.

Supports:
- Box constraints (lb <= x <= ub), usable as an FGM projection operator
- Polytope constraints (G @ x <= g), e.g. a condensed inequality system
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union
import numpy as np

from ..exceptions import DimensionError


@dataclass
class BoxConstraints:
    """
    Box (bound) constraints.

    Represents: lb <= x <= ub. Infinite entries are unbounded.

    Args:
        lower: Lower bound (scalar or vector)
        upper: Upper bound (scalar or vector)
        dim: Dimension (required if bounds are scalar)

    Example:
        >>> box = BoxConstraints(-1.0, 1.0, dim=2)
        >>> box.project(np.array([3.0, -0.5]))
        array([ 1. , -0.5])
    """
    lower: Union[float, np.ndarray]
    upper: Union[float, np.ndarray]
    dim: Optional[int] = None

    def __post_init__(self):
        """Process bounds."""
        if np.isscalar(self.lower):
            if self.dim is None:
                raise ValueError("dim required when bounds are scalar")
            self.lower = np.full(self.dim, float(self.lower))
        else:
            self.lower = np.asarray(self.lower, dtype=np.float64)
            if self.dim is None:
                self.dim = len(self.lower)

        if np.isscalar(self.upper):
            self.upper = np.full(self.dim, float(self.upper))
        else:
            self.upper = np.asarray(self.upper, dtype=np.float64)

        if len(self.lower) != len(self.upper):
            raise DimensionError("lower and upper must have same length")
        if np.any(self.lower > self.upper):
            raise ValueError("lower bound exceeds upper bound")

    @property
    def lb(self) -> np.ndarray:
        """Lower bounds."""
        return self.lower

    @property
    def ub(self) -> np.ndarray:
        """Upper bounds."""
        return self.upper

    @property
    def is_bounded(self) -> bool:
        """True if any entry has a finite bound."""
        return bool(np.isfinite(self.lower).any() or np.isfinite(self.upper).any())

    def is_satisfied(self, x: np.ndarray, tol: float = 1e-6) -> bool:
        """Check if x satisfies constraints."""
        return bool((x >= self.lower - tol).all() and (x <= self.upper + tol).all())

    def project(self, x: np.ndarray) -> np.ndarray:
        """Project x onto feasible set."""
        return np.clip(x, self.lower, self.upper)

    __call__ = project

    def violation(self, x: np.ndarray) -> float:
        """Compute maximum constraint violation."""
        lower_viol = np.maximum(self.lower - x, 0).max()
        upper_viol = np.maximum(x - self.upper, 0).max()
        return float(max(lower_viol, upper_viol))

    def repeat(self, N: int) -> "BoxConstraints":
        """Stack the same box over N stages."""
        return BoxConstraints(np.tile(self.lower, N), np.tile(self.upper, N))

    @classmethod
    def unbounded(cls, dim: int) -> "BoxConstraints":
        """Create unbounded constraints."""
        return cls(
            lower=np.full(dim, -np.inf),
            upper=np.full(dim, np.inf),
            dim=dim
        )


@dataclass
class PolytopeConstraints:
    """
    Polytope (linear inequality) constraints.

    Represents: G @ x <= g

    Args:
        G: Constraint matrix (p, n)
        g: Constraint bounds (p,)
    """
    G: np.ndarray
    g: np.ndarray

    def __post_init__(self):
        """Validate dimensions."""
        self.G = np.asarray(self.G, dtype=np.float64)
        self.g = np.asarray(self.g, dtype=np.float64).ravel()

        if self.G.ndim != 2:
            raise DimensionError(f"G must be 2D, got shape {self.G.shape}")
        if self.G.shape[0] != len(self.g):
            raise DimensionError("G rows must match g length")

    @property
    def n_constraints(self) -> int:
        """Number of constraints."""
        return len(self.g)

    @property
    def dim(self) -> int:
        """Dimension of constrained variable."""
        return self.G.shape[1]

    def residual(self, x: np.ndarray) -> np.ndarray:
        """``G x - g``; non-positive entries are satisfied rows."""
        return self.G @ x - self.g

    def is_satisfied(self, x: np.ndarray, tol: float = 1e-6) -> bool:
        """Check if x satisfies constraints."""
        return bool((self.residual(x) <= tol).all())

    def violation(self, x: np.ndarray) -> float:
        """Compute maximum constraint violation."""
        if self.n_constraints == 0:
            return 0.0
        return float(np.maximum(self.residual(x), 0).max())

    @classmethod
    def from_box(cls, box: BoxConstraints) -> "PolytopeConstraints":
        """
        Convert box constraints to polytope form, dropping infinite bounds.

        lb <= x <= ub becomes:
        -I @ x <= -lb
         I @ x <= ub
        """
        n = box.dim
        G = np.vstack([-np.eye(n), np.eye(n)])
        g = np.concatenate([-box.lower, box.upper])

        finite_mask = np.isfinite(g)
        return cls(G[finite_mask], g[finite_mask])
