"""
Constrained LQR Problem
=======================

The problem specification consumed by the condensing engine:

    minimize    Σ_{k} [x_k' Q x_k + 2 x_k' S u_k + u_k' R u_k] + x_N' P x_N
    subject to  x_{k+1} = A x_k + B u_k
                E x_k + F u_k <= g          (every stage)
                x_lower <= x_k <= x_upper
                u_lower <= u_k <= u_upper

An optional prestabilizing controller ``u_k = v_k - K x_k`` changes the free
variable to ``v``; the weights seen by the condensing engine then become

    Q_k = Q - K'S' - S K + K'R K
    S_k = S - K'R
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union
import numpy as np
from scipy import linalg

from ..exceptions import DimensionError, DomainError, InvalidInputError, NumericalError
from ..utils.validation import (
    as_bounds,
    as_matrix,
    check_positive_definite,
    check_shape,
    check_symmetric,
)
from .dynamics import LinearSystem


class TerminalWeight(Enum):
    """
    How the terminal state weight P is chosen.

    Attributes:
        STAGE: P equals the controlled stage weight Q_k
        RICCATI: P solves the stabilizing discrete algebraic Riccati equation
        LYAPUNOV: P solves the Lyapunov equation of the closed loop A - BK
        EXPLICIT: P was supplied as a matrix
    """
    STAGE = "Q"
    RICCATI = "dare"
    LYAPUNOV = "dlyap"
    EXPLICIT = "explicit"


MatrixLike = Union[float, np.ndarray]


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=np.float64)
    arr.flags.writeable = False
    return arr


def dlqr_gain(
    A: np.ndarray,
    B: np.ndarray,
    Q: np.ndarray,
    R: np.ndarray,
    S: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Infinite-horizon discrete LQR gain K such that ``A - B K`` is stable.

    Returns:
        Gain matrix (n_u, n_x)
    """
    if S is None:
        S = np.zeros(B.shape)

    try:
        P = linalg.solve_discrete_are(A, B, Q, R, s=S)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise NumericalError(f"Riccati equation could not be solved: {e}") from e

    return np.linalg.solve(R + B.T @ P @ B, B.T @ P @ A + S.T)


class ConstrainedLQR:
    """
    Constrained time-invariant LQR problem over a finite horizon.

    The object is validated completely at construction and is immutable
    afterwards; all derived weights are computed once here.

    Args:
        system: LinearSystem whose A, B are predicted
        N: Horizon length (>= 1)
        Q: State weight (n_x, n_x) or scalar multiple of identity
        R: Input weight (n_u, n_u), symmetric positive definite
        P: Terminal weight: a TerminalWeight / its value ("Q", "dare",
            "dlyap") or an explicit (n_x, n_x) matrix
        S: Cross term weight (n_x, n_u), default zero
        K: Prestabilizing gain (n_u, n_x), "dlqr", or None for no controller
        E: Stage state constraint coefficients (p, n_x)
        F: Stage input constraint coefficients (p, n_u)
        g: Stage constraint right hand side (p,)
        x_lower, x_upper: State bounds, ±inf for unbounded entries
        u_lower, u_upper: Input bounds, ±inf for unbounded entries

    Raises:
        DomainError: N < 1, or a weight that is not symmetric / definite
        DimensionError: Any matrix or vector that does not conform to the system
        InvalidInputError: Unknown terminal weight or controller strategy

    Example:
        >>> system = LinearSystem(np.array([[0.9, 1.0], [0.0, 0.9]]), np.array([[0.0], [1.0]]))
        >>> problem = ConstrainedLQR(system, N=10, Q=np.eye(2), R=1.0, P="Q",
        ...                          F=np.array([[1.0], [-1.0]]), g=np.array([1.0, 1.0]))
    """

    def __init__(
        self,
        system: LinearSystem,
        N: int,
        Q: MatrixLike,
        R: MatrixLike,
        P: Union[str, TerminalWeight, MatrixLike] = TerminalWeight.RICCATI,
        S: Optional[np.ndarray] = None,
        K: Union[str, np.ndarray, None] = None,
        E: Optional[np.ndarray] = None,
        F: Optional[np.ndarray] = None,
        g: Optional[np.ndarray] = None,
        x_lower: MatrixLike = -np.inf,
        x_upper: MatrixLike = np.inf,
        u_lower: MatrixLike = -np.inf,
        u_upper: MatrixLike = np.inf,
    ) -> None:
        n_x = system.n_states
        n_u = system.n_inputs

        if int(N) != N or N < 1:
            raise DomainError(f"Horizon length must be at least 1, got {N}")

        Q = as_matrix(Q, n_x, "Q")
        R = as_matrix(R, n_u, "R")
        check_shape(Q, (n_x, n_x), "Q")
        check_shape(R, (n_u, n_u), "R")
        check_symmetric(Q, "Q")
        check_positive_definite(R, "R")

        if S is None:
            S = np.zeros((n_x, n_u))
        else:
            S = as_matrix(S, name="S")
            check_shape(S, (n_x, n_u), "S")

        K = self._controller(system, K, Q, R, S)

        E, F, g = self._stage_constraints(E, F, g, n_x, n_u)

        Q_k = Q - K.T @ S.T - S @ K + K.T @ R @ K
        Q_k = 0.5 * (Q_k + Q_k.T)
        S_k = S - K.T @ R

        terminal, P = self._terminal_weight(system, P, Q, R, S, K, Q_k)

        self._set("system", system)
        self._set("N", int(N))
        self._set("Q", _readonly(Q))
        self._set("R", _readonly(R))
        self._set("S", _readonly(S))
        self._set("K", _readonly(K))
        self._set("Q_k", _readonly(Q_k))
        self._set("S_k", _readonly(S_k))
        self._set("P", _readonly(P))
        self._set("terminal_weight", terminal)
        self._set("E", _readonly(E))
        self._set("F", _readonly(F))
        self._set("g", _readonly(g))
        self._set("x_lower", _readonly(as_bounds(x_lower, n_x, "x_lower")))
        self._set("x_upper", _readonly(as_bounds(x_upper, n_x, "x_upper")))
        self._set("u_lower", _readonly(as_bounds(u_lower, n_u, "u_lower")))
        self._set("u_upper", _readonly(as_bounds(u_upper, n_u, "u_upper")))

        if np.any(self.x_lower > self.x_upper) or np.any(self.u_lower > self.u_upper):
            raise DomainError("Lower bounds must not exceed upper bounds")

    def _set(self, name, value) -> None:
        object.__setattr__(self, name, value)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @staticmethod
    def _controller(system, K, Q, R, S) -> np.ndarray:
        n_x = system.n_states
        n_u = system.n_inputs

        if K is None:
            return np.zeros((n_u, n_x))

        if isinstance(K, str):
            if K != "dlqr":
                raise InvalidInputError(
                    f"Unknown value {K!r} for K. Allowed values are 'dlqr' or a {n_u} by {n_x} matrix."
                )
            return dlqr_gain(system.A, system.B, Q, R, S)

        if np.ndim(K) == 0:
            if float(K) == 0.0:
                return np.zeros((n_u, n_x))
            raise DimensionError(f"K must be a {n_u} by {n_x} matrix")
        if np.ndim(K) == 1:
            # Row gain of a single input system
            K = np.asarray(K, dtype=np.float64).reshape(1, -1)
        K = as_matrix(K, name="K")
        check_shape(K, (n_u, n_x), "K")
        return K

    @staticmethod
    def _stage_constraints(E, F, g, n_x, n_u):
        if E is None and F is None and g is None:
            return np.zeros((0, n_x)), np.zeros((0, n_u)), np.zeros(0)

        if g is None:
            raise DimensionError("g is required when E or F are given")

        g = np.asarray(g, dtype=np.float64).ravel()
        p = g.shape[0]

        E = np.zeros((p, n_x)) if E is None else np.asarray(E, dtype=np.float64)
        F = np.zeros((p, n_u)) if F is None else np.asarray(F, dtype=np.float64)

        if F.ndim == 1 and n_u == 1:
            F = F.reshape(-1, 1)
        if E.ndim == 1 and n_x == 1:
            E = E.reshape(-1, 1)

        if E.ndim != 2 or F.ndim != 2:
            raise DimensionError("E and F must be 2D")
        if E.shape[0] != F.shape[0]:
            raise DimensionError("E and F must have the same number of rows")
        if g.shape[0] != F.shape[0]:
            raise DimensionError(f"g must have {F.shape[0]} rows")
        if E.shape[1] != n_x:
            raise DimensionError(f"E must have {n_x} columns")
        if F.shape[1] != n_u:
            raise DimensionError(f"F must have {n_u} columns")

        return E, F, g

    @staticmethod
    def _terminal_weight(system, P, Q, R, S, K, Q_k):
        n_x = system.n_states

        if isinstance(P, str):
            try:
                P = TerminalWeight(P)
            except ValueError:
                raise InvalidInputError(
                    f"Unknown value {P!r} for P. Allowed values are 'Q', 'dare', 'dlyap' or a {n_x} by {n_x} matrix."
                ) from None

        if P is TerminalWeight.EXPLICIT:
            raise InvalidInputError("An explicit terminal weight must be passed as a matrix")

        if P is TerminalWeight.STAGE:
            return P, Q_k.copy()

        if P is TerminalWeight.RICCATI:
            try:
                X = linalg.solve_discrete_are(system.A, system.B, Q, R, s=S)
            except (np.linalg.LinAlgError, ValueError) as e:
                raise NumericalError(f"Riccati equation could not be solved: {e}") from e
            return P, 0.5 * (X + X.T)

        if P is TerminalWeight.LYAPUNOV:
            A_k = system.A - system.B @ K
            try:
                X = linalg.solve_discrete_lyapunov(A_k.T, Q_k)
            except (np.linalg.LinAlgError, ValueError) as e:
                raise NumericalError(f"Lyapunov equation could not be solved: {e}") from e
            return P, 0.5 * (X + X.T)

        P = as_matrix(P, n_x, "P")
        check_shape(P, (n_x, n_x), "P")
        check_symmetric(P, "P")
        return TerminalWeight.EXPLICIT, P

    @property
    def n_states(self) -> int:
        return self.system.n_states

    @property
    def n_inputs(self) -> int:
        return self.system.n_inputs

    @property
    def n_constraints(self) -> int:
        """Number of stage constraint rows (p)."""
        return self.g.shape[0]

    @property
    def is_prestabilized(self) -> bool:
        """True if a nonzero prestabilizing controller is present."""
        return bool(np.any(self.K != 0))

    @property
    def has_constraints(self) -> bool:
        return self.n_constraints > 0

    @property
    def has_state_bounds(self) -> bool:
        return bool(np.isfinite(self.x_lower).any() or np.isfinite(self.x_upper).any())

    @property
    def has_input_bounds(self) -> bool:
        return bool(np.isfinite(self.u_lower).any() or np.isfinite(self.u_upper).any())

    def get_system(self, prestabilized: bool = True) -> LinearSystem:
        """
        The predicted system.

        With ``prestabilized=True`` the controller is applied, giving the
        closed loop ``A - B K``; otherwise the raw system is returned.
        """
        if prestabilized:
            return self.system.prestabilized(self.K)
        return self.system

    def describe(self) -> str:
        """Short text summary of the problem."""
        lines = [
            f"Constrained LQR: N={self.N}, n_x={self.n_states}, n_u={self.n_inputs}",
            f"Terminal weight:  {self.terminal_weight.name}",
            f"Cross term:       {'yes' if np.any(self.S != 0) else 'no'}",
            f"Prestabilized:    {'yes' if self.is_prestabilized else 'no'}",
            f"Stage rows:       {self.n_constraints}",
            f"State bounds:     {'yes' if self.has_state_bounds else 'no'}",
            f"Input bounds:     {'yes' if self.has_input_bounds else 'no'}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ConstrainedLQR(N={self.N}, n_x={self.n_states}, n_u={self.n_inputs}, "
            f"P={self.terminal_weight.value}, prestabilized={self.is_prestabilized})"
        )
