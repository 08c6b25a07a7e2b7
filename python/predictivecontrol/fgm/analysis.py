"""
FGM Complexity Analysis
=======================

A priori iteration bounds for a cold-started Fast Gradient Method projecting
onto the polyhedron ``{x : G x <= g}``.
"""

from __future__ import annotations

from typing import Callable, Optional
import numpy as np
from scipy.optimize import minimize, nnls

from ..exceptions import DimensionError, InfeasibleError, InvalidInputError, NumericalError

QPSolver = Callable[[np.ndarray, np.ndarray, np.ndarray, np.ndarray], np.ndarray]


def _is_scaled_identity(P: np.ndarray) -> bool:
    return bool(P[0, 0] > 0 and np.allclose(P, P[0, 0] * np.eye(P.shape[0])))


def _least_distance(G: np.ndarray, g: np.ndarray) -> np.ndarray:
    """
    Minimum norm point of ``G x <= g`` (Lawson & Hanson, Solving Least
    Squares Problems, ch. 23).

    Writes the constraints as ``E x >= f`` and solves the dual NNLS problem
    ``min ||[E'; f'] u - e_{n+1}||  s.t. u >= 0``.
    """
    m, n = G.shape
    E = -G
    f = -g

    M = np.vstack([E.T, f.reshape(1, -1)])
    d = np.zeros(n + 1)
    d[n] = 1.0

    u, _ = nnls(M, d)
    r = M @ u - d

    if np.linalg.norm(r) <= 1e-12 or abs(r[n]) <= 1e-12:
        raise InfeasibleError("Constraint set G x <= g is empty")

    return -r[:n] / r[n]


def solve_inequality_qp(
    P: np.ndarray,
    q: np.ndarray,
    G: np.ndarray,
    g: np.ndarray,
) -> np.ndarray:
    """
    Solve the small QP ``min ½x'Px + q'x  s.t.  G x <= g``.

    A scaled identity ``P`` with ``q = 0`` is a least-distance problem and is
    solved exactly with ``scipy.optimize.nnls``; anything else goes to SLSQP.

    Raises:
        InfeasibleError: If the constraints are inconsistent
        NumericalError: If SLSQP fails
    """
    P = np.asarray(P, dtype=np.float64)
    q = np.asarray(q, dtype=np.float64).ravel()
    G = np.asarray(G, dtype=np.float64)
    g = np.asarray(g, dtype=np.float64).ravel()

    n = q.shape[0]
    if P.shape != (n, n):
        raise DimensionError(f"P must be ({n}, {n}), got {P.shape}")
    if G.ndim != 2 or G.shape[1] != n or G.shape[0] != g.shape[0]:
        raise DimensionError(f"G must be ({g.shape[0]}, {n}), got {G.shape}")

    if G.shape[0] == 0:
        return -np.linalg.lstsq(P, q, rcond=None)[0]

    if not q.any() and _is_scaled_identity(P):
        return _least_distance(G, g)

    result = minimize(
        lambda x: 0.5 * x @ P @ x + q @ x,
        np.zeros(n),
        method='SLSQP',
        jac=lambda x: P @ x + q,
        constraints=[{'type': 'ineq', 'fun': lambda x: g - G @ x, 'jac': lambda x: -G}],
        options={'maxiter': 1000, 'ftol': 1e-12},
    )

    if result.status == 4:
        raise InfeasibleError(f"Constraint set G x <= g is empty: {result.message}")
    if not result.success:
        raise NumericalError(f"Auxiliary QP failed: {result.message}")

    return result.x


def _max_eigenvalue(H: Optional[np.ndarray], L: Optional[float]) -> float:
    if L is not None:
        return float(L)
    if H is None:
        raise InvalidInputError("Either H or L must be given")
    return float(np.linalg.eigvalsh(np.asarray(H, dtype=np.float64))[-1])


def cold_start_delta(
    G: np.ndarray,
    g: np.ndarray,
    H: Optional[np.ndarray] = None,
    L: Optional[float] = None,
    qp_solver: Optional[QPSolver] = None,
) -> float:
    """
    Cold start sub-optimality parameter ``Δ = (L/2) ||x*||²``.

    ``x*`` is the minimum norm point of ``{x : G x <= g}``, found with
    ``qp_solver(P, q, G, g)`` (default ``solve_inequality_qp``).

    Args:
        G: Constraint matrix (p, n)
        g: Constraint bound (p,)
        H: Hessian, used to compute L when L is not given
        L: Largest eigenvalue of the Hessian

    Raises:
        InvalidInputError: If neither H nor L is given
    """
    L = _max_eigenvalue(H, L)

    G = np.asarray(G, dtype=np.float64)
    g = np.asarray(g, dtype=np.float64).ravel()
    n = G.shape[1]

    solver = qp_solver if qp_solver is not None else solve_inequality_qp
    x = np.asarray(solver(np.eye(n), np.zeros(n), G, g))

    return float(L / 2 * (x @ x))


def upper_iteration_bound(
    eps: float,
    G: np.ndarray,
    g: np.ndarray,
    H: Optional[np.ndarray] = None,
    L: Optional[float] = None,
    kappa: Optional[float] = None,
    qp_solver: Optional[QPSolver] = None,
) -> int:
    """
    Iterations a cold-started FGM needs to reach ``eps`` sub-optimality.

    The smaller of the linear and sublinear convergence bounds

        a1 = ceil((ln eps - ln Δ) / ln(1 - 1/√kappa))
        a2 = ceil(2 √(Δ/eps) - 2)

    clamped at zero. Either H or both L and kappa must be given.

    Raises:
        InvalidInputError: If the eigenvalue information is incomplete
    """
    if kappa is None:
        if H is None:
            raise InvalidInputError("kappa must be given when H is not")
        kappa = float(np.linalg.cond(np.asarray(H, dtype=np.float64)))

    L = _max_eigenvalue(H, L)
    delta = cold_start_delta(G, g, L=L, qp_solver=qp_solver)

    with np.errstate(divide="ignore", invalid="ignore"):
        a1 = np.ceil((np.log(eps) - np.log(delta)) / np.log(1 - np.sqrt(1 / kappa)))
        a2 = np.ceil(2 * np.sqrt(delta / eps) - 2)

    bound = np.nanmin([a1, a2])
    return int(max(0.0, bound))
