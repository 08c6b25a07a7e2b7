"""
predictivecontrol Result Classes
================================

Data classes for solver results and status.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator

import numpy as np


class Status(Enum):
    """
    Solver status codes.

    Attributes:
        OPTIMAL: A stopping condition was satisfied
        MAX_ITERATIONS: The iteration bound was reached first
        UNSOLVED: Problem not yet solved
    """
    OPTIMAL = "optimal"
    MAX_ITERATIONS = "max_iterations"
    UNSOLVED = "unsolved"

    def __str__(self) -> str:
        return self.value

    @property
    def is_successful(self) -> bool:
        """True if a stopping condition declared convergence."""
        return self == Status.OPTIMAL

    @property
    def has_solution(self) -> bool:
        """True if a (possibly suboptimal) iterate is available."""
        return self in (Status.OPTIMAL, Status.MAX_ITERATIONS)


@dataclass
class FGMResult:
    """
    Result of a Fast Gradient Method solve.

    Unpacks as ``(x, iterations)``:

        >>> x, iters = fast_gradient_method(H, b)

    Attributes:
        x: Final projected iterate
        iterations: Number of iterations executed
        status: Whether a stopping condition fired
        solve_time: Wall clock time in seconds
        L: Upper eigenvalue bound used for the step
        mu: Lower eigenvalue bound used for the step
    """

    x: np.ndarray
    iterations: int
    status: Status = Status.UNSOLVED
    solve_time: float = 0.0
    L: float = float("nan")
    mu: float = float("nan")
    problem_info: Dict[str, Any] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Any]:
        yield self.x
        yield self.iterations

    def __repr__(self) -> str:
        return (
            f"FGMResult(status={self.status}, "
            f"iterations={self.iterations}, "
            f"time={self.solve_time:.4f}s)"
        )

    def summary(self) -> str:
        """Return a formatted summary of the solve result."""
        lines = [
            "=" * 50,
            "Fast Gradient Method Summary",
            "=" * 50,
            f"Status:           {self.status}",
            f"Iterations:       {self.iterations}",
            f"Solve time:       {self.solve_time:.4f} s",
            "-" * 50,
            f"L (max eig):      {self.L:.6e}",
            f"mu (min eig):     {self.mu:.6e}",
            "=" * 50,
        ]
        return "\n".join(lines)
