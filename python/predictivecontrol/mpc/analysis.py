"""
Conditioning Analysis
=====================

Condition number of the condensed Hessian, either computed exactly or
bounded through the matrix symbol of the (block Toeplitz) Hessian.

For a stable predicted system with transfer matrix ``p(z) = z (zI - A_k)^-1 B``
the symbol of the Hessian is

    f(z) = Lp (p(z)* Q_k p(z) - R K q(z) - q(z)* K' R + R) Lp'

with ``q(z) = (zI - A_k)^-1 B``, since the cross term only couples a state
with inputs of later stages. The ratio of its extreme eigenvalue magnitudes over the unit circle
bounds the condition number of the Hessian for any horizon length.
"""

from __future__ import annotations

from typing import Optional
import numpy as np

from ..exceptions import DimensionError, DomainError, InvalidInputError
from .condensing import hessian
from .problem import ConstrainedLQR


def condition_number(problem: ConstrainedLQR, kind: str = "exact") -> float:
    """
    Condition number of the condensed Hessian of ``problem``.

    Args:
        problem: Constrained LQR problem
        kind: "exact" for ``cond(H)``, "bound" for ``condition_bound``

    Raises:
        InvalidInputError: If kind is not recognized
    """
    kind = kind.lower()

    if kind == "exact":
        return float(np.linalg.cond(hessian(problem).data))
    if kind == "bound":
        return condition_bound(problem)

    raise InvalidInputError(f"Unknown condition type {kind!r}. Must be 'exact' or 'bound'.")


def condition_bound(
    problem: ConstrainedLQR,
    preconditioner: Optional[np.ndarray] = None,
    sampling_points: int = 1000,
) -> float:
    """
    Bound on the Hessian condition number from its sampled matrix symbol.

    The symbol is evaluated at ``z_k = exp(i (-π/2 + 2π k / n))``,
    k = 1..n, and the bound is the ratio of the largest to the smallest
    eigenvalue magnitude over all samples.

    Args:
        problem: Constrained LQR problem without cross term
        preconditioner: Input-space preconditioner Lp (n_u, n_u), default I
        sampling_points: Number of samples on the unit circle

    Raises:
        DomainError: If the predicted system is unstable or S is nonzero
    """
    system = problem.get_system(prestabilized=True)
    n_x = problem.n_states
    n_u = problem.n_inputs

    if not system.is_stable():
        raise DomainError("Condition number bound is only available for stable systems")
    if np.any(problem.S != 0):
        raise DomainError("Condition number bound is only available for problems with a zero S matrix")
    if sampling_points < 1:
        raise InvalidInputError(f"sampling_points must be positive, got {sampling_points}")

    if preconditioner is None:
        Lp = np.eye(n_u)
    else:
        Lp = np.asarray(preconditioner, dtype=np.float64)
        if Lp.shape != (n_u, n_u):
            raise DimensionError(f"preconditioner must be ({n_u}, {n_u}), got {Lp.shape}")

    A, B = system.A, system.B
    Q_k, R, K = problem.Q_k, problem.R, problem.K
    I = np.eye(n_x)

    eigs = []
    for k in range(1, sampling_points + 1):
        z = np.exp(1j * (-np.pi / 2 + 2 * np.pi * k / sampling_points))

        q = np.linalg.solve(z * I - A, B)
        p = z * q
        cross = R @ K @ q
        f = Lp @ (p.conj().T @ Q_k @ p - cross - cross.conj().T + R) @ Lp.T

        eigs.append(np.abs(np.linalg.eigvalsh(f)))

    eigs = np.concatenate(eigs)

    return float(eigs.max() / eigs.min())
