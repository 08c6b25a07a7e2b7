"""
Full Condensing
===============

Builds the dense quadratic program equivalent to a constrained LQR problem
once the state trajectory has been eliminated with the dynamics:

    minimize    u' H u + 2 x0' J' u
    subject to  G u <= g + L x0

The predicted states are ``x = Γ u + Φ x0`` where ``x = [x_1; ...; x_N]`` and
``u = [u_0; ...; u_{N-1}]``. The state weights act on ``x_1 .. x_N`` (the
last one through P) while the cross term couples ``x_k`` with ``u_k`` for
k = 0..N-1, so the ``x_0`` part of it lands in the linear term.

When the problem has a prestabilizing controller ``u_k = v_k - K x_k``, the
cost is built on the closed-loop system and the free variable is ``v``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from ..exceptions import DomainError
from ..utils.blocks import BlockMatrix, block_kron
from .constraints import PolytopeConstraints
from .dynamics import LinearSystem
from .problem import ConstrainedLQR


def _check_horizon(N: int) -> None:
    if N < 1:
        raise DomainError(f"Horizon length must be at least 1, got {N}")


def prediction(system: LinearSystem, N: int) -> BlockMatrix:
    """
    Form the prediction matrix Γ of ``system`` over a horizon of length N.

    Γ maps the input sequence to the predicted states and is block lower
    triangular with blocks ``A^(i-j) B``::

        ⎡ B    0    0  ⋯ ⎤
        ⎢ AB   B    0  ⋯ ⎥
        ⎢ A²B  AB   B  ⋯ ⎥
        ⎣ ⋮    ⋮    ⋮  ⋱ ⎦

    Args:
        system: LinearSystem providing A (n_x, n_x) and B (n_x, n_u)
        N: Horizon length

    Returns:
        BlockMatrix (N*n_x, N*n_u) with (n_x, n_u) blocks

    Raises:
        DomainError: If N < 1
    """
    _check_horizon(N)

    n_x = system.n_states
    n_u = system.n_inputs

    powers = [system.B]
    for _ in range(1, N):
        powers.append(system.A @ powers[-1])

    Gamma = BlockMatrix(np.zeros((N * n_x, N * n_u)), [n_x] * N, [n_u] * N)
    for i in range(N):
        for j in range(i + 1):
            Gamma.set_block(i, j, powers[i - j])

    return Gamma


def initial_propagation(
    system: LinearSystem,
    N: int,
    include_initial: bool = False,
) -> BlockMatrix:
    """
    Form the matrix Φ that propagates the initial state across the horizon.

    Block ``i`` (1-indexed) is ``A^i``. With ``include_initial=True`` the
    blocks are ``A^(i-1)``, so the first block is the identity and Φ x0
    stacks ``x_0 .. x_{N-1}``.

    Raises:
        DomainError: If N < 1
    """
    _check_horizon(N)

    n_x = system.n_states
    power = np.eye(n_x) if include_initial else system.A.copy()

    Phi = BlockMatrix(np.zeros((N * n_x, n_x)), [n_x] * N, [n_x])
    for i in range(N):
        Phi.set_block(i, 0, power)
        power = system.A @ power

    return Phi


def input_prediction(system: LinearSystem, K: np.ndarray, N: int) -> BlockMatrix:
    """
    Controlled-input prediction matrix Γ_v.

    Maps the free inputs ``v`` to the applied inputs ``u_k = v_k - K x_k``
    (zero initial state). ``system`` must already be the closed loop
    ``A - B K``. The diagonal blocks are the identity and block ``(i, j)``
    for ``i > j`` is ``-K A^(i-1-j) B``.

    Raises:
        DomainError: If N < 1
    """
    _check_horizon(N)

    n_u = system.n_inputs
    K = np.asarray(K, dtype=np.float64)

    powers = [system.B]
    for _ in range(1, N - 1):
        powers.append(system.A @ powers[-1])

    Gamma_v = BlockMatrix(np.zeros((N * n_u, N * n_u)), [n_u] * N, [n_u] * N)
    for i in range(N):
        Gamma_v.set_block(i, i, np.eye(n_u))
        for j in range(i):
            Gamma_v.set_block(i, j, -K @ powers[i - 1 - j])

    return Gamma_v


def input_initial_propagation(system: LinearSystem, K: np.ndarray, N: int) -> BlockMatrix:
    """
    Controlled-input initial propagation matrix Φ_v.

    Block ``i`` (1-indexed) is ``-K A^(i-1)``, giving the contribution of the
    initial state to ``u_{i-1}`` under the feedback. ``system`` must already be
    the closed loop ``A - B K``.

    Raises:
        DomainError: If N < 1
    """
    _check_horizon(N)

    K = np.asarray(K, dtype=np.float64)
    n_u, n_x = K.shape

    Phi_v = BlockMatrix(np.zeros((N * n_u, n_x)), [n_u] * N, [n_x])
    power = np.eye(n_x)
    for i in range(N):
        Phi_v.set_block(i, 0, -K @ power)
        power = system.A @ power

    return Phi_v


def _stage_weights(problem: ConstrainedLQR) -> Tuple[BlockMatrix, BlockMatrix]:
    """Block diagonal Q̄ (terminal block P) and S̄ over stages 0..N-1."""
    N = problem.N
    I_N = np.eye(N)

    Q_bar = block_kron(I_N, problem.Q_k)
    S_bar = block_kron(I_N, problem.S_k)

    Q_bar.set_block(N - 1, N - 1, problem.P)

    return Q_bar, S_bar


def _stage_states(system: LinearSystem, N: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Maps from ``(v, x0)`` to the states ``x_0 .. x_{N-1}`` that meet the inputs.

    The input map is Γ shifted down by one block row, since x_0 does not
    depend on the inputs.
    """
    n_x = system.n_states
    Gamma = prediction(system, N).data

    Gamma_prev = np.zeros_like(Gamma)
    Gamma_prev[n_x:] = Gamma[:-n_x]
    Phi_prev = initial_propagation(system, N, include_initial=True).data

    return Gamma_prev, Phi_prev


def hessian(problem: ConstrainedLQR) -> BlockMatrix:
    """
    Hessian of the fully condensed QP.

        H = Γ' Q̄ Γ + Γ₋' S̄ + S̄' Γ₋ + R̄

    where Γ is the prediction matrix of the (possibly prestabilized) system
    and Γ₋ the same matrix shifted down one block row, so that S_k couples
    ``x_k`` with ``u_k``. Q̄, S̄, R̄ repeat Q_k, S_k and R along the diagonal.
    The result is explicitly symmetrized, since the two cross products are
    not bitwise transposes of each other in floating point.

    Returns:
        Symmetric BlockMatrix (N*n_u, N*n_u) with (n_u, n_u) blocks
    """
    system = problem.get_system(prestabilized=True)
    N = problem.N
    n_u = problem.n_inputs

    Gamma = prediction(system, N).data
    Gamma_prev, _ = _stage_states(system, N)
    Q_bar, S_bar = _stage_weights(problem)
    R_bar = block_kron(np.eye(N), problem.R)

    H = (
        Gamma.T @ Q_bar.data @ Gamma
        + Gamma_prev.T @ S_bar.data
        + S_bar.data.T @ Gamma_prev
        + R_bar.data
    )
    H = 0.5 * (H + H.T)

    return BlockMatrix(H, [n_u] * N, [n_u] * N)


def linear_coefficients(problem: ConstrainedLQR) -> BlockMatrix:
    """
    Matrix J mapping the initial state to the linear term of the condensed QP.

        J = Γ' Q̄ Φ + S̄' Φ₀

    where Φ₀ stacks ``A^k`` for k = 0..N-1. The linear cost term for a given
    initial state is ``J @ x0``. With a prestabilizing controller the
    feedback enters through S_k = S - K'R and the closed-loop Γ and Φ.

    Returns:
        BlockMatrix (N*n_u, n_x) with (n_u, n_x) blocks
    """
    system = problem.get_system(prestabilized=True)
    N = problem.N

    Gamma = prediction(system, N).data
    Phi = initial_propagation(system, N).data
    _, Phi_prev = _stage_states(system, N)
    Q_bar, S_bar = _stage_weights(problem)

    J = Gamma.T @ Q_bar.data @ Phi + S_bar.data.T @ Phi_prev

    return BlockMatrix(J, [problem.n_inputs] * N, [problem.n_states])


def inequality_constraints(
    problem: ConstrainedLQR,
) -> Tuple[BlockMatrix, BlockMatrix, BlockMatrix]:
    """
    Condensed inequality constraints ``G u - g - L x0 <= 0``.

    Built on the raw system as ``G = Ē Γ + F̄`` and ``L = -Ē Φ``. With a
    prestabilizing controller the system is moved into the free-variable
    space: ``L <- L - G Φ_v`` and ``G <- G Γ_v``.

    Returns:
        Tuple (G, L, g): G is (N*p, N*n_u), L is (N*p, n_x) and g the (N*p,)
        block vector of repeated stage right hand sides. A problem without
        stage constraints gives 0-row matrices.
    """
    system = problem.get_system(prestabilized=False)
    N = problem.N
    n_x = problem.n_states
    n_u = problem.n_inputs
    p = problem.n_constraints

    if p == 0:
        return (
            BlockMatrix(np.zeros((0, N * n_u)), [0] * N, [n_u] * N),
            BlockMatrix(np.zeros((0, n_x)), [0] * N, [n_x]),
            BlockMatrix(np.zeros(0), [0] * N),
        )

    Phi = initial_propagation(system, N).data
    Gamma = prediction(system, N).data

    E_bar = block_kron(np.eye(N), problem.E).data
    F_bar = block_kron(np.eye(N), problem.F).data

    G = E_bar @ Gamma + F_bar
    L = -E_bar @ Phi

    if problem.is_prestabilized:
        system_k = problem.get_system(prestabilized=True)
        Gamma_v = input_prediction(system_k, problem.K, N).data
        Phi_v = input_initial_propagation(system_k, problem.K, N).data

        L = L - G @ Phi_v
        G = G @ Gamma_v

    g = block_kron(np.ones(N), problem.g)

    return (
        BlockMatrix(G, [p] * N, [n_u] * N),
        BlockMatrix(L, [p] * N, [n_x]),
        g,
    )


def equality_constraints(problem: ConstrainedLQR) -> None:
    """The fully condensed form has no equality constraints."""
    return None


@dataclass
class CondensedQP:
    """
    Dense QP ingredients of a fully condensed constrained LQR problem.

    Attributes:
        H: Hessian (N*n_u, N*n_u)
        J: Initial state to linear term map (N*n_u, n_x)
        G: Inequality matrix (N*p, N*n_u)
        L: Initial state coupling of the inequalities (N*p, n_x)
        g: Inequality right hand side (N*p,)
        equality: Always None for this formulation
    """
    H: BlockMatrix
    J: BlockMatrix
    G: BlockMatrix
    L: BlockMatrix
    g: BlockMatrix
    equality: Optional[np.ndarray] = None

    @property
    def n_variables(self) -> int:
        return self.H.shape[0]

    @property
    def n_constraints(self) -> int:
        return self.G.shape[0]

    def linear_term(self, x0: np.ndarray) -> np.ndarray:
        """Linear cost vector ``J x0`` for a given initial state."""
        return self.J.data @ np.asarray(x0, dtype=np.float64)

    def constraint_rhs(self, x0: np.ndarray) -> np.ndarray:
        """Right hand side ``g + L x0`` of ``G u <= g + L x0``."""
        return self.g.data + self.L.data @ np.asarray(x0, dtype=np.float64)

    def constraints(self, x0: np.ndarray) -> PolytopeConstraints:
        """Feasible set ``{u : G u <= g + L x0}`` for a given initial state."""
        return PolytopeConstraints(self.G.data, self.constraint_rhs(x0))

    def constraint_residual(self, u: np.ndarray, x0: np.ndarray) -> np.ndarray:
        """``G u - g - L x0``; feasible inputs give non-positive entries."""
        return self.G.data @ np.asarray(u, dtype=np.float64) - self.constraint_rhs(x0)


def condense(problem: ConstrainedLQR) -> CondensedQP:
    """Build every component of the fully condensed QP for ``problem``."""
    G, L, g = inequality_constraints(problem)

    return CondensedQP(
        H=hessian(problem),
        J=linear_coefficients(problem),
        G=G,
        L=L,
        g=g,
        equality=equality_constraints(problem),
    )
