# tests/test_gmwb.py
"""
End-to-end tests for the GMWB pricer.
"""

import numpy as np
import pytest

from gmwblab.exceptions import ConfigurationError, MaxIterationsExceededError
from gmwblab.pricing_models.gmwb import (
    GMWBParameters,
    GMWBPricer,
    GMWBResult,
    print_grid,
    reference_grid,
)
from gmwblab.pricing_models.grid import Axis, RectilinearGrid2
from gmwblab.pricing_models.validation import (
    validate_payoff_lower_bound,
    validate_refinement_convergence,
)


# =============================================================================
# FIXTURES
# =============================================================================
@pytest.fixture(scope="module")
def coarse_grid():
    return RectilinearGrid2(Axis.range(0, 50, 200), Axis.range(0, 50, 200))


@pytest.fixture(scope="module")
def scenario_params():
    return GMWBParameters(
        expiry=10.0,
        interest=0.05,
        volatility=0.20,
        hedging_fee=0.0,
        contract_rate=10.0,
        penalty_rate=0.1,
        partition_size=2,
        timesteps=5,
        refinement=0,
    )


@pytest.fixture(scope="module")
def scenario(coarse_grid, scenario_params):
    return GMWBPricer(scenario_params).solve(coarse_grid)


# =============================================================================
# PARAMETER TESTS
# =============================================================================
class TestParameters:
    def test_defaults_match_reference_run(self):
        p = GMWBParameters()
        assert (p.expiry, p.interest, p.volatility, p.hedging_fee) == (10.0, 0.05, 0.20, 0.0)
        assert (p.contract_rate, p.penalty_rate) == (10.0, 0.1)
        assert (p.partition_size, p.timesteps, p.refinement) == (10, 100, 2)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"expiry": 0.0},
            {"timesteps": 0},
            {"partition_size": 0},
            {"refinement": -1},
            {"volatility": -0.1},
            {"penalty_rate": 1.5},
            {"contract_rate": -1.0},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ConfigurationError):
            GMWBParameters(**kwargs)

    def test_rate_functions_accepted(self):
        p = GMWBParameters(volatility=lambda t: 0.2, penalty_rate=lambda t, S, W: 0.1 + 0 * S)
        assert callable(p.volatility)


# =============================================================================
# PRICER SETUP TESTS
# =============================================================================
class TestPricerSetup:
    def test_payoff(self):
        pricer = GMWBPricer()
        assert pricer.payoff(100.0, 100.0) == pytest.approx(100.0)
        assert pricer.payoff(50.0, 100.0) == pytest.approx(90.0)

    @pytest.mark.parametrize("level", [0, 1, 2])
    def test_control_set_doubles_with_level(self, level):
        pricer = GMWBPricer(GMWBParameters(partition_size=10))
        controls = pricer.control_set(level)
        assert len(controls) == 10 * 2**level + 1
        assert controls[0] == 0.0
        assert controls[-1] == 1.0

    def test_timestep_halves_with_level(self):
        pricer = GMWBPricer(GMWBParameters(expiry=10.0, timesteps=100))
        assert pricer.timestep(0) == pytest.approx(0.1)
        assert pricer.timestep(2) == pytest.approx(0.025)

    def test_contract_amount_scales_with_timestep(self, coarse_grid):
        pricer = GMWBPricer(GMWBParameters(contract_rate=10.0))
        op = pricer.withdrawal_operator(coarse_grid, dt=2.0)
        np.testing.assert_allclose(op.contract_rate(0.0, coarse_grid.s, coarse_grid.w), 20.0)

    def test_reference_grids(self):
        grid = reference_grid()
        assert grid.shape == (65, 101)
        assert grid[0][-1] == 1000.0
        assert print_grid().shape == (9, 9)


# =============================================================================
# CONVERGENCE TESTS
# =============================================================================
class TestConvergence:
    def test_small_problem_terminates(self):
        grid = RectilinearGrid2(Axis([0.0, 100.0, 200.0]), Axis([0.0, 100.0, 200.0]))
        max_iterations = 25
        pricer = GMWBPricer(
            GMWBParameters(timesteps=2, partition_size=2, refinement=0),
            tolerance=1e-8,
            max_iterations=max_iterations,
        )

        result = pricer.solve(grid)

        assert len(result.iterations) == 2
        for count in result.iterations:
            assert isinstance(count, int)
            assert 1 <= count <= max_iterations
        assert np.all(np.isfinite(result.values))

    def test_failure_names_time_level(self, coarse_grid, scenario_params):
        pricer = GMWBPricer(scenario_params, max_iterations=1)
        with pytest.raises(MaxIterationsExceededError) as excinfo:
            pricer.solve(coarse_grid)
        assert excinfo.value.time == pytest.approx(8.0)
        assert excinfo.value.iterations == 1


# =============================================================================
# END-TO-END SCENARIO
# =============================================================================
class TestScenario:
    def test_result_shape(self, scenario, coarse_grid):
        assert isinstance(scenario, GMWBResult)
        assert scenario.values.shape == (coarse_grid.size,)
        assert scenario.n_timesteps == 5
        assert len(scenario.controls) == 3
        assert scenario.dt == pytest.approx(2.0)

    def test_price_at_least_surrender_value(self, scenario):
        price = scenario.price(100.0, 100.0)
        assert np.isfinite(price)
        assert price >= 0
        is_valid, shortfall = validate_payoff_lower_bound(price, 100.0, 100.0, kappa=0.1)
        assert is_valid, f"price {price} falls {shortfall} short of the payoff"

    def test_guarantee_has_value(self, scenario):
        # With no fee the account alone is worth S; the guarantee adds to it
        assert scenario.price(100.0, 100.0) > 100.0

    def test_exhausted_guarantee_is_worth_the_account(self, scenario, coarse_grid):
        exhausted = coarse_grid.w == 0
        np.testing.assert_allclose(
            scenario.values[exhausted], coarse_grid.s[exhausted], rtol=1e-7, atol=1e-6
        )

    def test_optimal_rates_are_admissible(self, scenario):
        rates = scenario.withdrawal_rates
        assert rates is not None
        assert np.all((rates >= 0) & (rates <= 1))

    def test_vectorized_price(self, scenario):
        prices = scenario.price(np.array([50.0, 100.0]), np.array([100.0, 100.0]))
        assert prices.shape == (2,)
        assert prices[1] == pytest.approx(scenario.price(100.0, 100.0))

    def test_mean_iterations(self, scenario):
        assert scenario.mean_iterations == pytest.approx(np.mean(scenario.iterations))
        assert scenario.mean_iterations >= 1

    def test_hedging_fee_lowers_value(self, coarse_grid, scenario, scenario_params):
        params = GMWBParameters(**{**scenario_params.__dict__, "hedging_fee": 0.02})
        with_fee = GMWBPricer(params).solve(coarse_grid)
        assert with_fee.price(100.0, 100.0) < scenario.price(100.0, 100.0)


# =============================================================================
# REFINEMENT
# =============================================================================
class TestRefinement:
    def test_refinement_study_converges(self):
        grid = RectilinearGrid2(Axis.range(0, 25, 200), Axis.range(0, 25, 200))
        pricer = GMWBPricer(GMWBParameters(timesteps=5, partition_size=2, refinement=2))

        results = pricer.refinement_study(grid, query=(100.0, 100.0))

        assert [r.level for r in results] == [0, 1, 2]
        assert [r.grid.shape for r in results] == [(9, 9), (17, 17), (33, 33)]
        assert [r.n_timesteps for r in results] == [5, 10, 20]
        assert [len(r.controls) for r in results] == [3, 5, 9]

        prices = [r.price(100.0, 100.0) for r in results]
        assert all(np.isfinite(prices))
        converging, changes = validate_refinement_convergence(prices)
        assert converging, f"prices {prices}, changes {changes}"
        assert changes[-1] < changes[0]
