"""
System Dynamics Models
======================

Discrete-time linear time-invariant systems used by the condensing engine.

    x_{k+1} = A x_k + B u_k
    y_k     = C x_k + D u_k
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import numpy as np

from ..exceptions import DimensionError


@dataclass(frozen=True)
class LinearSystem:
    """
    Linear Time-Invariant (LTI) discrete-time system.

    Dynamics: x_{k+1} = A @ x_k + B @ u_k
    Output:   y_k = C @ x_k + D @ u_k (optional)

    Only ``A`` and ``B`` take part in condensing; ``C``, ``D`` and ``dt`` are
    carried along for simulation and reporting. The system is immutable: the
    matrices are stored as read-only copies.

    Args:
        A: State transition matrix (n_x, n_x)
        B: Input matrix (n_x, n_u)
        C: Output matrix (n_y, n_x), optional
        D: Feedthrough matrix (n_y, n_u), optional
        dt: Sampling time (for reference only)

    Example:
        >>> A = np.array([[0.9, 1.0], [0.0, 0.9]])
        >>> B = np.array([[0.0], [1.0]])
        >>> system = LinearSystem(A, B, dt=0.1)
        >>> system.is_stable()
        True
    """
    A: np.ndarray
    B: np.ndarray
    C: Optional[np.ndarray] = None
    D: Optional[np.ndarray] = None
    dt: float = 1.0

    def __post_init__(self):
        """Validate dimensions and freeze the matrices."""
        A = np.array(self.A, dtype=np.float64)
        B = np.array(self.B, dtype=np.float64)

        if A.ndim != 2:
            raise DimensionError(f"A must be 2D, got shape {A.shape}")
        if B.ndim == 1:
            B = B.reshape(-1, 1)
        if B.ndim != 2:
            raise DimensionError(f"B must be 2D, got shape {B.shape}")

        n_x = A.shape[0]
        if A.shape != (n_x, n_x):
            raise DimensionError(f"A must be square, got shape {A.shape}")
        if B.shape[0] != n_x:
            raise DimensionError(
                f"B rows ({B.shape[0]}) must match A ({n_x})"
            )

        C = self.C
        if C is not None:
            C = np.array(C, dtype=np.float64)
            if C.ndim != 2 or C.shape[1] != n_x:
                raise DimensionError(f"C columns must match state dim {n_x}")

        D = self.D
        if D is not None:
            D = np.array(D, dtype=np.float64)
            if D.ndim == 1:
                D = D.reshape(-1, 1)
            if D.shape[1] != B.shape[1]:
                raise DimensionError(f"D columns must match input dim {B.shape[1]}")

        for name, value in (("A", A), ("B", B), ("C", C), ("D", D)):
            if value is not None:
                value.flags.writeable = False
            object.__setattr__(self, name, value)

    @property
    def n_states(self) -> int:
        """Number of states."""
        return self.A.shape[0]

    @property
    def n_inputs(self) -> int:
        """Number of inputs."""
        return self.B.shape[1]

    @property
    def n_outputs(self) -> int:
        """Number of outputs."""
        if self.C is not None:
            return self.C.shape[0]
        return self.n_states

    def step(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        """
        Simulate one time step.

        Args:
            x: Current state (n_x,)
            u: Control input (n_u,)

        Returns:
            Next state (n_x,)
        """
        return self.A @ x + self.B @ u

    def output(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        """Compute system output (the state itself when C is not given)."""
        if self.C is None:
            return x

        y = self.C @ x
        if self.D is not None:
            y = y + self.D @ u
        return y

    def simulate(
        self,
        x0: np.ndarray,
        u_sequence: np.ndarray,
    ) -> np.ndarray:
        """
        Simulate system over a sequence of inputs.

        Args:
            x0: Initial state (n_x,)
            u_sequence: Control sequence (N, n_u)

        Returns:
            State trajectory (N+1, n_x) including initial state
        """
        x0 = np.asarray(x0, dtype=np.float64)
        u_sequence = np.asarray(u_sequence, dtype=np.float64).reshape(-1, self.n_inputs)

        N = len(u_sequence)
        trajectory = np.zeros((N + 1, self.n_states))
        trajectory[0] = x0

        for k in range(N):
            trajectory[k + 1] = self.step(trajectory[k], u_sequence[k])

        return trajectory

    def spectral_radius(self) -> float:
        """Largest eigenvalue magnitude of A."""
        return float(np.max(np.abs(np.linalg.eigvals(self.A))))

    def is_stable(self) -> bool:
        """Check if system is stable (all eigenvalues inside unit circle)."""
        return self.spectral_radius() < 1.0

    def is_controllable(self) -> bool:
        """Check if system is controllable."""
        n = self.n_states
        blocks = [self.B]

        for _ in range(1, n):
            blocks.append(self.A @ blocks[-1])

        return np.linalg.matrix_rank(np.hstack(blocks)) == n

    def prestabilized(self, K: np.ndarray) -> "LinearSystem":
        """
        Closed-loop system under the feedback ``u = v - K x``.

        Args:
            K: Feedback gain (n_u, n_x)

        Returns:
            LinearSystem with state matrix ``A - B K`` and the same B, C, D
        """
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (self.n_inputs, self.n_states):
            raise DimensionError(
                f"K must be ({self.n_inputs}, {self.n_states}), got {K.shape}"
            )
        return LinearSystem(self.A - self.B @ K, self.B, self.C, self.D, dt=self.dt)
