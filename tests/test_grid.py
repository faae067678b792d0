# tests/test_grid.py
"""
Tests for rectilinear grids and bilinear interpolation.
"""

import numpy as np
import pytest

from gmwblab.exceptions import ConfigurationError, InvalidAxisError
from gmwblab.pricing_models.grid import Axis, RectilinearGrid2


# =============================================================================
# FIXTURES
# =============================================================================
@pytest.fixture
def coarse_grid():
    return RectilinearGrid2(Axis.range(0, 50, 200), Axis.range(0, 50, 200))


@pytest.fixture
def uneven_grid():
    return RectilinearGrid2(Axis([0, 5, 20, 90, 100, 150]), Axis([0, 10, 100]))


# =============================================================================
# AXIS TESTS
# =============================================================================
class TestAxis:
    def test_range_includes_stop(self):
        axis = Axis.range(0.0, 2.0, 200.0)
        assert len(axis) == 101
        assert axis[0] == 0.0
        assert axis[-1] == 200.0

    def test_non_increasing_ticks_rejected(self):
        with pytest.raises(InvalidAxisError):
            Axis([0.0, 1.0, 1.0, 2.0])
        with pytest.raises(InvalidAxisError):
            Axis([3.0, 2.0, 1.0])

    def test_single_tick_rejected(self):
        with pytest.raises(InvalidAxisError):
            Axis([1.0])

    def test_axis_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            Axis([])
        with pytest.raises(ValueError):
            Axis.range(0, -1, 10)

    def test_refined_inserts_midpoints(self):
        refined = Axis([0.0, 10.0, 30.0]).refined()
        np.testing.assert_array_equal(refined.ticks, [0.0, 5.0, 10.0, 20.0, 30.0])

    def test_ticks_are_read_only(self):
        axis = Axis([0.0, 1.0])
        with pytest.raises(ValueError):
            axis.ticks[0] = 5.0

    def test_bracket_on_ticks_and_ends(self):
        axis = Axis([0.0, 10.0, 30.0])
        lower, weight = axis.bracket([0.0, 10.0, 20.0, 30.0, 45.0, -3.0])
        np.testing.assert_array_equal(lower, [0, 1, 1, 1, 1, 0])
        np.testing.assert_allclose(weight, [1.0, 1.0, 0.5, 0.0, 0.0, 1.0])


# =============================================================================
# GRID TESTS
# =============================================================================
class TestRectilinearGrid2:
    def test_index_is_bijection(self, uneven_grid):
        n0, n1 = uneven_grid.shape
        seen = set()
        for j in range(n1):
            for i in range(n0):
                k = uneven_grid.index(i, j)
                assert uneven_grid.position(k) == (i, j)
                assert uneven_grid.node(k) == (uneven_grid[0][i], uneven_grid[1][j])
                seen.add(k)
        assert seen == set(range(uneven_grid.size))

    def test_first_axis_varies_fastest(self, coarse_grid):
        assert coarse_grid.node(1) == (50.0, 0.0)
        assert coarse_grid.node(5) == (0.0, 50.0)

    def test_iteration_matches_nodes(self, uneven_grid):
        assert list(uneven_grid) == [tuple(p) for p in uneven_grid.nodes.tolist()]

    def test_reshape_indexes_by_axis_position(self, uneven_grid):
        surface = uneven_grid.reshape(uneven_grid.s + 1000 * uneven_grid.w)
        assert surface.shape == uneven_grid.shape
        assert surface[3, 1] == pytest.approx(90 + 1000 * 10)

    def test_refined_grid(self, coarse_grid):
        refined = coarse_grid.refined()
        assert refined.shape == (9, 9)
        assert coarse_grid.shape == (5, 5)
        assert refined[0][1] == 25.0


# =============================================================================
# INTERPOLATION TESTS
# =============================================================================
class TestInterpolation:
    def test_weights_non_negative_and_sum_to_one(self, uneven_grid):
        rng = np.random.default_rng(7)
        x = rng.uniform(-20, 200, size=500)
        y = rng.uniform(-20, 150, size=500)
        _, weights = uneven_grid.interpolation_data(x, y)

        assert weights.shape == (500, 4)
        assert np.all(weights >= 0)
        np.testing.assert_allclose(weights.sum(axis=1), 1.0, atol=1e-14)

    def test_bilinear_functions_reproduced_exactly(self, uneven_grid):
        def f(S, W):
            return 3.0 + 2.0 * S - 0.5 * W + 0.01 * S * W

        values = uneven_grid.image(f)
        x = np.array([0.0, 2.5, 17.0, 91.0, 150.0, 123.4])
        y = np.array([0.0, 5.0, 99.0, 100.0, 37.0, 60.0])

        np.testing.assert_allclose(uneven_grid.interpolate(values, x, y), f(x, y), rtol=1e-12)

    def test_nodes_interpolate_to_themselves(self, coarse_grid):
        values = np.arange(coarse_grid.size, dtype=float)
        np.testing.assert_array_equal(
            coarse_grid.interpolate(values, coarse_grid.s, coarse_grid.w), values
        )

    def test_points_off_grid_are_clamped(self, coarse_grid):
        values = coarse_grid.image(lambda S, W: S + W)
        assert coarse_grid.interpolate(values, 300.0, -5.0) == pytest.approx(200.0)

    def test_scalar_query_returns_scalar(self, coarse_grid):
        values = coarse_grid.image(lambda S, W: S)
        assert np.ndim(coarse_grid.interpolate(values, 75.0, 10.0)) == 0

    def test_wrong_vector_length_raises(self, coarse_grid):
        with pytest.raises(ValueError):
            coarse_grid.interpolate(np.zeros(3), 1.0, 1.0)
