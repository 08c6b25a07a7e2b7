"""
pytest configuration and fixtures for predictivecontrol tests.
"""

import pytest
import numpy as np


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def double_integrator():
    """
    Discrete double integrator (unstable, controllable).

    x_{k+1} = [[1, 1], [0, 1]] x_k + [0, 1]' u_k

    The gain K = [0.25, 1.0] places both closed-loop poles at 0.5.
    """
    from predictivecontrol.mpc import LinearSystem

    A = np.array([[1.0, 1.0], [0.0, 1.0]])
    B = np.array([[0.0], [1.0]])
    return LinearSystem(A, B, dt=0.1)


@pytest.fixture
def stable_system():
    """
    Stable 2-state single input system.

    Both eigenvalues of A are 0.9.
    """
    from predictivecontrol.mpc import LinearSystem

    A = np.array([[0.9, 1.0], [0.0, 0.9]])
    B = np.array([[0.0], [1.0]])
    return LinearSystem(A, B, dt=0.1)


@pytest.fixture
def richter_system():
    """
    4-state, 2-input stable system from Richter, Jones & Morari (2012).
    """
    from predictivecontrol.mpc import LinearSystem

    A = np.array([
        [0.7, -0.1, 0.0, 0.0],
        [0.2, -0.5, 0.1, 0.0],
        [0.0,  0.1, 0.1, 0.0],
        [0.5,  0.0, 0.5, 0.5],
    ])
    B = np.array([
        [0.0, 0.1],
        [0.1, 1.0],
        [0.1, 0.0],
        [0.0, 0.0],
    ])
    return LinearSystem(A, B, dt=0.01)


@pytest.fixture
def sample_problem(double_integrator):
    """
    Factory for constrained LQR problems on the double integrator.

    Keyword flags:
        N: horizon (default 10)
        use_s: cross term S = [1, 0]'
        use_k: prestabilizing gain K = [0.25, 1.0]
        input_bounds: stage rows for -1 <= u <= 1
        state_bounds: stage rows for -1 <= x <= 1 and x1 + x2 <= 4
    """
    from predictivecontrol.mpc import ConstrainedLQR

    def make(N=10, use_s=False, use_k=False, input_bounds=False, state_bounds=False, P="Q"):
        Q = np.array([[1.0, 1.0], [1.0, 1.0]])
        R = np.array([[1.0]])
        S = np.array([[1.0], [0.0]]) if use_s else None
        K = np.array([[0.25, 1.0]]) if use_k else None

        E_rows, F_rows, g_rows = [], [], []
        if input_bounds:
            E_rows += [[0.0, 0.0], [0.0, 0.0]]
            F_rows += [[1.0], [-1.0]]
            g_rows += [1.0, 1.0]
        if state_bounds:
            E_rows += [[1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0], [1.0, 1.0]]
            F_rows += [[0.0]] * 5
            g_rows += [1.0, 1.0, 1.0, 1.0, 4.0]

        if E_rows:
            E, F, g = np.array(E_rows), np.array(F_rows), np.array(g_rows)
        else:
            E = F = g = None

        return ConstrainedLQR(double_integrator, N, Q, R, P, S=S, K=K, E=E, F=F, g=g)

    return make


@pytest.fixture
def fgm_problem():
    """
    Small strongly convex QP for the Fast Gradient Method.

    minimize ½x'Hx + b'x with H = diag(10, 2), b = [2, 4]

    Unconstrained optimum: [-0.2, -2.0]
    Optimum on the box [-1, 1]²: [-0.2, -1.0]
    """
    return {
        "H": np.diag([10.0, 2.0]),
        "b": np.array([2.0, 4.0]),
        "expected_x": np.array([-0.2, -2.0]),
        "expected_x_box": np.array([-0.2, -1.0]),
    }


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
