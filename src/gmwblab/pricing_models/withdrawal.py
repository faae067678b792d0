# src/gmwblab/pricing_models/withdrawal.py
"""
Withdrawal (impulse control) operator for the GMWB.

Withdrawing a fraction λ of the guaranteed balance W moves the state

    (S, W)  ->  (max(S - λW, 0), (1 - λ)W)

and pays the holder λW. Once λ reaches min(G·dt / W, 1) a surrender charge
κ(λW - G·dt) applies, measured against the penalty-free amount G·dt. For
per-node controls λ the operator is the linear system

    A(t) = I - Transfer(t)        b(t) = cash flow

where ``Transfer`` bilinearly interpolates the post-withdrawal point, so that
``Transfer @ V + b - V`` is the gain from withdrawing at each node.

A tiny ``epsilon`` is subtracted from every cash flow. Doing nothing (λ = 0)
therefore never looks strictly better than itself, and a node with an exhausted
guarantee (W <= epsilon) gets the sentinel ``-epsilon`` whatever the control.
"""

from typing import Tuple, Union

import numpy as np
import scipy.sparse as sp

from gmwblab.common.config import EPSILON
from gmwblab.pricing_models.grid import RectilinearGrid2
from gmwblab.pricing_models.rates import RateLike, as_rate
from gmwblab.utils.sparse_builder import SparseMatrixBuilder


class WithdrawalOperator:
    """
    Impulse operator for a withdrawal at rate λ.

    Attributes:
        grid: Solution grid (read only).
        contract_rate: Penalty-free withdrawal amount per step, G·dt.
        penalty_rate: Surrender charge κ on the excess withdrawal.
        epsilon: Tie-break offset subtracted from every cash flow.
    """

    def __init__(
        self,
        grid: RectilinearGrid2,
        contract_rate: RateLike,
        penalty_rate: RateLike,
        epsilon: float = EPSILON,
    ):
        self.grid = grid
        self.contract_rate = as_rate(contract_rate)
        self.penalty_rate = as_rate(penalty_rate)
        self.epsilon = epsilon

    def _controls(self, controls: Union[float, np.ndarray]) -> np.ndarray:
        return np.broadcast_to(np.asarray(controls, dtype=float), (self.grid.size,))

    def target_points(self, t: float, controls) -> Tuple[np.ndarray, np.ndarray]:
        """Post-withdrawal ``(S, W)`` for every node."""
        lam = self._controls(controls)
        S, W = self.grid.s, self.grid.w
        return np.maximum(S - lam * W, 0.0), (1.0 - lam) * W

    def transfer_matrix(self, t: float, controls) -> sp.csr_matrix:
        """Row i interpolates the grid at node i's post-withdrawal point."""
        grid = self.grid
        x, y = self.target_points(t, controls)
        indices, weights = grid.interpolation_data(x, y)

        rows = np.repeat(np.arange(grid.size), 4).reshape(-1, 4)
        builder = SparseMatrixBuilder((grid.size, grid.size))
        builder.add(rows, indices, weights)
        return builder.to_csr()

    def A(self, t: float, controls) -> sp.csr_matrix:
        return self.grid.identity() - self.transfer_matrix(t, controls)

    def b(self, t: float, controls) -> np.ndarray:
        return self.cash_flow(t, controls)

    def cash_flow(self, t: float, controls) -> np.ndarray:
        """
        Net cash received at each node for withdrawal rates ``controls``.

        Returns:
            ``λW - ε`` below the penalty-free threshold ``min(G·dt / W, 1)``,
            ``λW - κ(λW - G·dt) - ε`` at or above it, and ``-ε`` wherever
            ``W <= ε``.
        """
        eps = self.epsilon
        lam = self._controls(controls)
        S, W = self.grid.s, self.grid.w

        gdt = self.contract_rate(t, S, W)
        kappa = self.penalty_rate(t, S, W)

        funded = W > eps
        threshold = np.minimum(
            np.divide(gdt, W, out=np.full(W.shape, np.inf), where=funded), 1.0
        )

        withdrawn = lam * W

        flow = np.where(
            lam < threshold,
            withdrawn - eps,
            withdrawn - kappa * (withdrawn - gdt) - eps,
        )
        return np.where(funded, flow, -eps)
