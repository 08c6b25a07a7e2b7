"""
Tests for the condensing matrix builders.

Tests covering:
1. Prediction matrix Γ
2. Initial propagation matrix Φ
3. Controlled-input prediction and propagation under u = v - K x
"""

import pytest
import numpy as np
from hypothesis import given, settings, strategies as st


A = np.array([[0.9, 1.0], [0.0, 0.9]])
B = np.array([[0.0], [1.0]])
K = np.array([[0.25, 1.0]])


def simulate_closed_loop(A, B, K, x0, v):
    """States x_1..x_N and inputs u_0..u_{N-1} under u_k = v_k - K x_k."""
    n_u = B.shape[1]
    v = v.reshape(-1, n_u)
    x = x0
    states, inputs = [], []
    for v_k in v:
        u_k = v_k - K @ x
        x = A @ x + B @ u_k
        inputs.append(u_k)
        states.append(x)
    return np.concatenate(states), np.concatenate(inputs)


class TestPrediction:
    """Test the prediction matrix."""

    def test_shape_and_blocks(self, stable_system):
        """Γ has A^(i-j) B below the diagonal and zeros above."""
        from predictivecontrol.mpc import prediction

        Gamma = prediction(stable_system, 3)

        assert Gamma.shape == (6, 3)
        assert Gamma.block_shape == (3, 3)
        np.testing.assert_allclose(Gamma.block(0, 0), B)
        np.testing.assert_allclose(Gamma.block(1, 1), B)
        np.testing.assert_allclose(Gamma.block(1, 0), A @ B)
        np.testing.assert_allclose(Gamma.block(2, 0), A @ A @ B)
        np.testing.assert_array_equal(Gamma.block(0, 1), np.zeros((2, 1)))
        np.testing.assert_array_equal(Gamma.block(1, 2), np.zeros((2, 1)))

    def test_toeplitz_structure(self, richter_system):
        """Blocks only depend on i - j."""
        from predictivecontrol.mpc import prediction

        N = 5
        Gamma = prediction(richter_system, N)

        for i in range(N):
            for j in range(i + 1):
                np.testing.assert_allclose(
                    Gamma.block(i, j),
                    np.linalg.matrix_power(richter_system.A, i - j) @ richter_system.B,
                    atol=1e-12,
                )

    def test_horizon_one(self, stable_system):
        """N = 1 gives Γ = B."""
        from predictivecontrol.mpc import prediction

        np.testing.assert_array_equal(prediction(stable_system, 1).data, B)

    def test_invalid_horizon(self, stable_system):
        """N < 1 is outside the domain."""
        from predictivecontrol.mpc import prediction
        from predictivecontrol import DomainError

        with pytest.raises(DomainError):
            prediction(stable_system, 0)

    def test_predicts_trajectory(self, richter_system):
        """Γ u + Φ x0 stacks the simulated states x_1..x_N."""
        from predictivecontrol.mpc import prediction, initial_propagation

        N = 6
        rng = np.random.default_rng(0)
        u = rng.standard_normal(N * 2)
        x0 = rng.standard_normal(4)

        traj = richter_system.simulate(x0, u.reshape(N, 2))
        predicted = prediction(richter_system, N) @ u + initial_propagation(richter_system, N) @ x0

        np.testing.assert_allclose(predicted, traj[1:].ravel(), atol=1e-10)


class TestInitialPropagation:
    """Test the initial propagation matrix."""

    def test_powers(self, stable_system):
        """Block i (1-indexed) is A^i."""
        from predictivecontrol.mpc import initial_propagation

        Phi = initial_propagation(stable_system, 3)

        assert Phi.shape == (6, 2)
        assert Phi.block_shape == (3, 1)
        np.testing.assert_allclose(Phi.block(0, 0), A)
        np.testing.assert_allclose(Phi.block(1, 0), A @ A)
        np.testing.assert_allclose(Phi.block(2, 0), A @ A @ A)

    def test_include_initial(self, stable_system):
        """include_initial shifts the powers so the first block is I."""
        from predictivecontrol.mpc import initial_propagation

        Phi = initial_propagation(stable_system, 3, include_initial=True)

        np.testing.assert_array_equal(Phi.block(0, 0), np.eye(2))
        np.testing.assert_allclose(Phi.block(1, 0), A)
        np.testing.assert_allclose(Phi.block(2, 0), A @ A)

    def test_invalid_horizon(self, stable_system):
        """N < 1 is outside the domain."""
        from predictivecontrol.mpc import initial_propagation
        from predictivecontrol import DomainError

        with pytest.raises(DomainError):
            initial_propagation(stable_system, -1)


class TestInputPrediction:
    """Test the controlled-input prediction matrices."""

    def test_blocks(self, stable_system):
        """Identity on the diagonal, -K A_k^(i-1-j) B below."""
        from predictivecontrol.mpc import input_prediction

        closed = stable_system.prestabilized(K)
        A_k = closed.A
        Gamma_v = input_prediction(closed, K, 3)

        assert Gamma_v.shape == (3, 3)
        np.testing.assert_array_equal(np.diag(Gamma_v.data), np.ones(3))
        np.testing.assert_allclose(Gamma_v.block(1, 0), -K @ B)
        np.testing.assert_allclose(Gamma_v.block(2, 1), -K @ B)
        np.testing.assert_allclose(Gamma_v.block(2, 0), -K @ A_k @ B)
        np.testing.assert_array_equal(np.triu(Gamma_v.data, 1), np.zeros((3, 3)))

    def test_initial_propagation_blocks(self, stable_system):
        """Block i (1-indexed) is -K A_k^(i-1)."""
        from predictivecontrol.mpc import input_initial_propagation

        closed = stable_system.prestabilized(K)
        Phi_v = input_initial_propagation(closed, K, 3)

        assert Phi_v.shape == (3, 2)
        np.testing.assert_allclose(Phi_v.block(0, 0), -K)
        np.testing.assert_allclose(Phi_v.block(1, 0), -K @ closed.A)
        np.testing.assert_allclose(Phi_v.block(2, 0), -K @ closed.A @ closed.A)

    def test_horizon_one(self, stable_system):
        """N = 1 gives Γ_v = I and Φ_v = -K."""
        from predictivecontrol.mpc import input_prediction, input_initial_propagation

        closed = stable_system.prestabilized(K)

        np.testing.assert_array_equal(input_prediction(closed, K, 1).data, np.eye(1))
        np.testing.assert_allclose(input_initial_propagation(closed, K, 1).data, -K)

    @settings(max_examples=25, deadline=None)
    @given(
        N=st.integers(min_value=1, max_value=8),
        seed=st.integers(min_value=0, max_value=2**16),
    )
    def test_predicts_applied_inputs(self, N, seed):
        """Γ_v v + Φ_v x0 stacks the inputs applied by the feedback."""
        from predictivecontrol.mpc import LinearSystem, input_prediction, input_initial_propagation

        rng = np.random.default_rng(seed)
        v = rng.standard_normal(N)
        x0 = rng.standard_normal(2)

        closed = LinearSystem(A, B).prestabilized(K)
        predicted = input_prediction(closed, K, N) @ v + input_initial_propagation(closed, K, N) @ x0

        _, inputs = simulate_closed_loop(A, B, K, x0, v)
        np.testing.assert_allclose(predicted, inputs, atol=1e-9)

    @settings(max_examples=25, deadline=None)
    @given(
        N=st.integers(min_value=1, max_value=8),
        seed=st.integers(min_value=0, max_value=2**16),
    )
    def test_closed_loop_states(self, N, seed):
        """The closed-loop Γ and Φ predict the prestabilized states."""
        from predictivecontrol.mpc import LinearSystem, prediction, initial_propagation

        rng = np.random.default_rng(seed)
        v = rng.standard_normal(N)
        x0 = rng.standard_normal(2)

        closed = LinearSystem(A, B).prestabilized(K)
        predicted = prediction(closed, N) @ v + initial_propagation(closed, N) @ x0

        states, _ = simulate_closed_loop(A, B, K, x0, v)
        np.testing.assert_allclose(predicted, states, atol=1e-9)
