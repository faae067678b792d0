# tests/test_policy_iteration.py
"""
Tests for the best-control search.
"""

from types import SimpleNamespace

import numpy as np
import pytest
import scipy.sparse as sp

from gmwblab.common.config import EPSILON
from gmwblab.exceptions import ConfigurationError, EmptyControlSetError
from gmwblab.pricing_models.grid import Axis, RectilinearGrid2
from gmwblab.pricing_models.policy_iteration import PolicyIteration
from gmwblab.pricing_models.withdrawal import WithdrawalOperator


# =============================================================================
# FIXTURES
# =============================================================================
@pytest.fixture
def grid():
    return RectilinearGrid2(Axis.range(0, 50, 200), Axis.range(0, 50, 200))


@pytest.fixture
def operator(grid):
    return WithdrawalOperator(grid, contract_rate=20.0, penalty_rate=0.1)


class ScriptedOperator:
    """Two-node operator returning fixed transferred values and cash flows."""

    def __init__(self, transferred, flows):
        self.grid = SimpleNamespace(size=2)
        self._transferred = transferred
        self._flows = flows

    def cash_flow(self, t, control):
        return np.asarray(self._flows[control], dtype=float)

    def transfer_matrix(self, t, control):
        # Identity scaled so that T @ ones gives the scripted values
        return sp.diags(self._transferred[control])

    def A(self, t, controls):
        return sp.identity(2)

    def b(self, t, controls):
        return np.zeros(2)


# =============================================================================
# CONSTRUCTION TESTS
# =============================================================================
class TestConstruction:
    def test_empty_control_set_fails_fast(self, operator):
        with pytest.raises(EmptyControlSetError):
            PolicyIteration([], operator)

    def test_empty_control_set_is_configuration_error(self, operator):
        with pytest.raises(ConfigurationError):
            PolicyIteration(np.array([]), operator)

    def test_rates_outside_unit_interval_rejected(self, operator):
        with pytest.raises(ConfigurationError):
            PolicyIteration([0.0, 1.5], operator)

    def test_controls_sorted_and_unique(self, operator):
        policy = PolicyIteration([1.0, 0.0, 0.5, 0.5], operator)
        np.testing.assert_array_equal(policy.controls, [0.0, 0.5, 1.0])

    def test_axis_accepted(self, operator):
        policy = PolicyIteration(Axis.range(0, 0.25, 1), operator)
        assert len(policy.controls) == 5


# =============================================================================
# SEARCH TESTS
# =============================================================================
class TestBestControls:
    def test_maximizes_objective(self, grid, operator):
        rng = np.random.default_rng(11)
        iterand = grid.image(lambda S, W: S + 0.9 * W) + rng.uniform(0, 5, grid.size)
        policy = PolicyIteration(np.linspace(0, 1, 5), operator)

        controls, value = policy.best_controls(0.0, iterand)

        candidates = np.array([policy.objective(0.0, iterand, c)[0] for c in policy.controls])
        np.testing.assert_allclose(value, candidates.max(axis=0))
        assert set(np.unique(controls)) <= set(policy.controls)

    def test_zero_solution_withdraws_everything(self, grid, operator):
        policy = PolicyIteration(np.linspace(0, 1, 5), operator)
        controls, _ = policy.best_controls(0.0, np.zeros(grid.size))

        funded = grid.w > EPSILON
        assert np.all(controls[funded] == 1.0)

    def test_exhausted_balance_never_withdraws(self, grid, operator):
        policy = PolicyIteration(np.linspace(0, 1, 5), operator)
        controls, value = policy.best_controls(0.0, grid.image(lambda S, W: S))

        exhausted = grid.w <= EPSILON
        assert np.all(controls[exhausted] == 0.0)
        np.testing.assert_allclose(value[exhausted], grid.s[exhausted] - EPSILON)

    def test_tie_prefers_smaller_cash_flow(self):
        # Node 0: both rates total 15; node 1: rate 1.0 is strictly better
        op = ScriptedOperator(
            transferred={0.5: [10.0, 1.0], 1.0: [5.0, 9.0]},
            flows={0.5: [5.0, 1.0], 1.0: [10.0, 2.0]},
        )
        policy = PolicyIteration([1.0, 0.5], op)
        controls, value = policy.best_controls(0.0, np.ones(2))

        np.testing.assert_array_equal(controls, [0.5, 1.0])
        np.testing.assert_array_equal(value, [15.0, 11.0])

    def test_tie_with_equal_cash_flow_prefers_smaller_rate(self):
        op = ScriptedOperator(
            transferred={0.0: [3.0, 3.0], 0.5: [3.0, 3.0]},
            flows={0.0: [-EPSILON, -EPSILON], 0.5: [-EPSILON, -EPSILON]},
        )
        controls, _ = PolicyIteration([0.5, 0.0], op).best_controls(0.0, np.ones(2))
        np.testing.assert_array_equal(controls, [0.0, 0.0])

    def test_system_uses_best_controls(self, grid, operator):
        policy = PolicyIteration(np.linspace(0, 1, 3), operator)
        iterand = np.zeros(grid.size)
        A, b, controls = policy.system(0.0, iterand)

        np.testing.assert_allclose(A.toarray(), operator.A(0.0, controls).toarray())
        np.testing.assert_array_equal(b, operator.cash_flow(0.0, controls))
