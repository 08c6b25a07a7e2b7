"""
Tests for the FGM iteration core and the iteration wrappers.

Tests covering:
1. halt / apply / loop on plain iterables
2. FastGradientIterator state sequence
3. Step size strategies
4. Stopping conditions
"""

import itertools

import pytest
import numpy as np


class TestLoop:
    """Test loop()."""

    def test_last_and_count(self):
        """Returns the last element and the number of elements."""
        from predictivecontrol.fgm import loop

        assert loop(iter(range(7))) == (6, 7)

    def test_empty(self):
        """An empty iterable gives (None, 0)."""
        from predictivecontrol.fgm import loop

        assert loop([]) == (None, 0)


class TestApply:
    """Test apply()."""

    @pytest.mark.parametrize("period,expected_calls", [(1, 10), (2, 5), (5, 2), (3, 3)])
    def test_call_count(self, period, expected_calls):
        """fn is called on every period-th element."""
        from predictivecontrol.fgm import apply, loop

        calls = []
        last, count = loop(apply(range(1, 11), calls.append, period))

        assert len(calls) == expected_calls
        assert calls == [i for i in range(1, 11) if i % period == 0]
        assert (last, count) == (10, 10)

    def test_passthrough(self):
        """Elements are not changed by the side effect."""
        from predictivecontrol.fgm import apply

        assert list(apply("abc", lambda item: item.upper())) == ["a", "b", "c"]

    def test_invalid_period(self):
        """period must be positive."""
        from predictivecontrol.fgm import apply

        with pytest.raises(ValueError):
            list(apply(range(3), print, 0))


class TestHalt:
    """Test halt()."""

    def test_stops_inclusive(self):
        """The triggering element is yielded, nothing after it."""
        from predictivecontrol.fgm import halt

        assert list(halt(itertools.count(1), [lambda i: i > 4])) == [1, 2, 3, 4, 5]

    def test_logical_or(self):
        """Multiple conditions combine with OR."""
        from predictivecontrol.fgm import halt

        conditions = [lambda i: i == 8, lambda i: i % 3 == 0]

        assert list(halt(itertools.count(1), conditions)) == [1, 2, 3]

    def test_single_condition(self):
        """A bare callable is accepted."""
        from predictivecontrol.fgm import halt

        assert list(halt(range(10), lambda i: i == 2)) == [0, 1, 2]

    def test_exhausted_source(self):
        """The source ending first ends the sequence."""
        from predictivecontrol.fgm import halt

        assert list(halt(range(3), [lambda i: False])) == [0, 1, 2]

    def test_bound_after_halt(self):
        """islice bounds a halted sequence at the smaller count."""
        from predictivecontrol.fgm import halt, loop

        assert loop(itertools.islice(halt(itertools.count(1), [lambda i: i > 4]), 3)) == (3, 3)
        assert loop(itertools.islice(halt(itertools.count(1), [lambda i: i > 4]), 30)) == (5, 5)


class TestFastGradientIterator:
    """Test the FGM state sequence."""

    def make_iterator(self, fgm_problem, proj=None, x0=None):
        from predictivecontrol.fgm import FastGradientIterator, ConstantStep, identity_projection

        H, b = fgm_problem["H"], fgm_problem["b"]
        step = ConstantStep().initialize(10.0, 2.0)
        return FastGradientIterator(
            H, b,
            np.zeros(2) if x0 is None else x0,
            proj or identity_projection,
            step,
            10.0,
        )

    def test_first_iteration(self, fgm_problem):
        """The first state has iteration 1 and starts from x0."""
        states = iter(self.make_iterator(fgm_problem))
        first = next(states)

        H, b = fgm_problem["H"], fgm_problem["b"]
        assert first.iteration == 1
        np.testing.assert_array_equal(first.x, np.zeros(2))
        np.testing.assert_array_equal(first.y, np.zeros(2))
        np.testing.assert_allclose(first.grad_y, b)
        np.testing.assert_allclose(first.trial, -b / 10.0)
        np.testing.assert_allclose(first.x_next, -b / 10.0)
        np.testing.assert_allclose(first.grad_x_next, H @ first.x_next + b)

    def test_recurrence(self, fgm_problem):
        """Each state continues from the previous x_next and y_next."""
        from predictivecontrol.fgm import ConstantStep

        states = list(itertools.islice(self.make_iterator(fgm_problem), 5))
        beta = ConstantStep().initialize(10.0, 2.0).beta

        assert [s.iteration for s in states] == [1, 2, 3, 4, 5]
        for prev, cur in zip(states, states[1:]):
            np.testing.assert_array_equal(cur.x, prev.x_next)
            np.testing.assert_array_equal(cur.y, prev.y_next)
        for s in states:
            np.testing.assert_allclose(s.y_next, s.x_next + beta * (s.x_next - s.x))

    def test_projection_applied(self, fgm_problem):
        """x_next is the projection of the trial point."""
        clip = lambda x: np.clip(x, -0.1, 0.1)
        states = list(itertools.islice(self.make_iterator(fgm_problem, proj=clip), 4))

        for s in states:
            np.testing.assert_array_equal(s.x_next, clip(s.trial))

    def test_restartable(self, fgm_problem):
        """Iterating twice gives the same sequence."""
        it = self.make_iterator(fgm_problem)

        first = [s.x_next for s in itertools.islice(it, 3)]
        second = [s.x_next for s in itertools.islice(it, 3)]

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_states_are_immutable(self, fgm_problem):
        """States are frozen snapshots."""
        import dataclasses

        state = next(iter(self.make_iterator(fgm_problem)))

        with pytest.raises(dataclasses.FrozenInstanceError):
            state.iteration = 10


class TestStepSize:
    """Test step size strategies."""

    def test_constant_step(self):
        """beta = (√L - √mu) / (√L + √mu) on every call."""
        from predictivecontrol.fgm import ConstantStep

        step = ConstantStep().initialize(9.0, 1.0)
        state = step.initial_state()

        for _ in range(3):
            beta, state = step.next_step(state)
            assert beta == pytest.approx(0.5)

    def test_initialize_returns_copy(self):
        """Configuring a strategy does not modify the original."""
        from predictivecontrol.fgm import ConstantStep

        base = ConstantStep()
        configured = base.initialize(9.0, 1.0)

        assert base.beta == 1.0
        assert configured.beta == pytest.approx(0.5)

    def test_variable_step_recurrence(self):
        """alpha_n solves the recurrence and beta follows from it."""
        from predictivecontrol.fgm import VariableStep

        L, mu = 10.0, 2.0
        q = mu / L
        step = VariableStep().initialize(L, mu)
        state = step.initial_state()

        assert state[1] == pytest.approx(np.sqrt(q))

        for _ in range(4):
            beta, state = step.next_step(state)
            alpha, alpha_next = state
            assert 0.0 <= alpha_next <= 1.0
            assert (1 - alpha_next) * alpha**2 + q * alpha_next - alpha_next**2 == pytest.approx(0.0, abs=1e-10)
            assert beta == pytest.approx(alpha * (1 - alpha) / (alpha**2 + alpha_next))

    def test_variable_step_matches_constant_from_fixed_point(self):
        """Starting at √(mu/L) the recurrence stays at the constant momentum."""
        from predictivecontrol.fgm import ConstantStep, VariableStep

        step = VariableStep().initialize(10.0, 2.0)
        beta, _ = step.next_step(step.initial_state())

        assert beta == pytest.approx(ConstantStep().initialize(10.0, 2.0).beta)

    def test_variable_step_requires_strong_convexity(self):
        """mu = 0 is rejected."""
        from predictivecontrol.fgm import VariableStep
        from predictivecontrol import DomainError

        with pytest.raises(DomainError):
            VariableStep().initialize(10.0, 0.0)


class TestStopConditions:
    """Test stopping conditions on hand-built states."""

    def make_state(self, x_next, grad_x_next, y=None):
        from predictivecontrol.fgm import FGMState

        x_next = np.asarray(x_next, dtype=float)
        zeros = np.zeros_like(x_next)
        return FGMState(
            iteration=1,
            x=zeros,
            x_next=x_next,
            y=x_next if y is None else np.asarray(y, dtype=float),
            y_next=x_next,
            grad_y=zeros,
            grad_x_next=np.asarray(grad_x_next, dtype=float),
            trial=x_next,
        )

    def test_conjugate_residual(self):
        """|x'∇ + ||∇||_1|."""
        from predictivecontrol.fgm import conjugate_residual

        state = self.make_state([-0.2, -1.0], [0.0, 2.0])

        assert conjugate_residual(state) == pytest.approx(0.0)

    def test_conjugate_scaling(self):
        """Scaled tolerance is eps / n."""
        from predictivecontrol.fgm import Conjugate

        state = self.make_state([0.0, 0.0], [0.03, 0.0])

        assert Conjugate(0.05, scaled=False).initialize(2, 1.0, 1.0)(state)
        assert not Conjugate(0.05).initialize(2, 1.0, 1.0)(state)

    def test_gradient_criterion(self):
        """0.5 (1/mu - 1/L) ||L (y - x_next)||² < eps."""
        from predictivecontrol.fgm import Gradient

        state = self.make_state([0.0, 0.0], [0.0, 0.0], y=[0.1, 0.0])
        cond = Gradient(1.0, scaled=False).initialize(2, 10.0, 2.0)

        # 0.5 * (0.5 - 0.1) * 1.0 = 0.2
        assert cond.value(state) == pytest.approx(0.2)
        assert cond(state)
        assert not Gradient(0.1, scaled=False).initialize(2, 10.0, 2.0)(state)

    def test_best_is_or(self):
        """Best fires when either criterion does."""
        from predictivecontrol.fgm import Best

        # Gradient value 0.2, conjugate residual 1.0
        state = self.make_state([0.0, 0.0], [1.0, 0.0], y=[0.1, 0.0])

        assert Best(0.5, 0.01, scaled=False).initialize(2, 10.0, 2.0)(state)
        assert Best(0.01, 2.0, scaled=False).initialize(2, 10.0, 2.0)(state)
        assert not Best(0.01, scaled=False).initialize(2, 10.0, 2.0)(state)

    def test_best_default_eps2(self):
        """eps2 defaults to eps1."""
        from predictivecontrol.fgm import Best

        cond = Best(1e-3)

        assert cond.gradient.eps == cond.conjugate.eps == 1e-3

    def test_evaluate_alias(self):
        """evaluate() and calling agree."""
        from predictivecontrol.fgm import Conjugate

        cond = Conjugate(1.0).initialize(1, 1.0, 1.0)
        state = self.make_state([0.0], [0.5])

        assert cond.evaluate(state) == cond(state)
