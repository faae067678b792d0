# src/gmwblab/pricing_models/policy_iteration.py
"""
Policy iteration over a discretized control set.

For a trial solution V, each node picks the withdrawal rate maximizing

    (Transfer(λ) V)_i + b_i(λ)

i.e. the value after withdrawing plus the cash received. Equivalently it
minimizes the residual ``(A(λ) V - b(λ))_i`` of the impulse system.

Ties are resolved deterministically: equal objectives keep the candidate with
the smaller cash flow (which already includes the epsilon offset), then the
smaller rate.
"""

from typing import Tuple

import numpy as np
import scipy.sparse as sp

from gmwblab.exceptions import ConfigurationError, EmptyControlSetError
from gmwblab.pricing_models.grid import Axis
from gmwblab.pricing_models.withdrawal import WithdrawalOperator


class PolicyIteration:
    """
    Best-control search for a ``WithdrawalOperator``.

    Args:
        controls: Candidate withdrawal rates in [0, 1] (an ``Axis`` or any
            sequence). Searched in increasing order.
        operator: The impulse operator whose controls are optimized.
    """

    def __init__(self, controls, operator: WithdrawalOperator):
        values = controls.ticks if isinstance(controls, Axis) else controls
        values = np.unique(np.asarray(values, dtype=float).ravel())

        if values.size == 0:
            raise EmptyControlSetError()
        if np.any(values < 0) or np.any(values > 1):
            raise ConfigurationError(
                f"Withdrawal rates must lie in [0, 1], got [{values.min()}, {values.max()}]"
            )

        self.controls = values
        self.operator = operator

    @property
    def grid(self):
        return self.operator.grid

    def objective(self, t: float, iterand: np.ndarray, control: float) -> Tuple[np.ndarray, np.ndarray]:
        """Objective and cash flow at every node for one candidate rate."""
        flow = self.operator.cash_flow(t, control)
        transferred = self.operator.transfer_matrix(t, control) @ iterand
        return transferred + flow, flow

    def best_controls(self, t: float, iterand: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Optimal rate per node for the trial solution ``iterand``.

        Returns:
            ``(controls, objective)`` arrays over the grid nodes.
        """
        size = self.grid.size
        best = np.full(size, self.controls[0])
        best_value, best_flow = self.objective(t, iterand, self.controls[0])

        for control in self.controls[1:]:
            value, flow = self.objective(t, iterand, control)
            better = (value > best_value) | ((value == best_value) & (flow < best_flow))
            best = np.where(better, control, best)
            best_value = np.where(better, value, best_value)
            best_flow = np.where(better, flow, best_flow)

        return best, best_value

    def system(self, t: float, iterand: np.ndarray) -> Tuple[sp.csr_matrix, np.ndarray, np.ndarray]:
        """
        Impulse system ``(A, b)`` under the best controls for ``iterand``.

        Returns:
            ``(A, b, controls)``.
        """
        controls, _ = self.best_controls(t, iterand)
        return self.operator.A(t, controls), self.operator.b(t, controls), controls
