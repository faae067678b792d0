# src/gmwblab/pricing_models/black_scholes.py
"""
Black-Scholes generator on the investment axis of a 2D grid.

In time-to-expiry τ the value of the contract between withdrawals satisfies

    ∂V/∂τ = ½σ²S²∂²V/∂S² + (r - α)S∂V/∂S - rV = L V

where α is the hedging fee deducted from the investment account. There is no
derivative along the withdrawal-balance axis: W only changes through
withdrawals, which are handled by the impulse operator.

Discretization:
    - Central differences where they give non-negative neighbour weights,
      upwinded first derivative otherwise (positive coefficient scheme).
    - S = 0:       L V = -rV
    - S = S_max:   V assumed linear in S, giving L V = -αV

Both boundary rows keep -L diagonally dominant, so (c I - L) is an M-matrix
for any c > 0.

Reference:
    Forsyth, P. A. & Vetzal, K. R. (2002). Quadratic convergence for valuing
    American options using a penalty method. SIAM J. Sci. Comput., 23(6).
"""

import numpy as np
import scipy.sparse as sp

from gmwblab.pricing_models.grid import RectilinearGrid2
from gmwblab.pricing_models.rates import RateLike, as_rate
from gmwblab.utils.sparse_builder import SparseMatrixBuilder


class BlackScholesOperator:
    """
    Black-Scholes generator ``L(t)`` acting along the first grid axis.

    Attributes:
        grid: Solution grid.
        interest: Risk-free rate r.
        volatility: Volatility σ of the investment account.
        dividend: Hedging fee α (continuous deduction from the account).
    """

    def __init__(
        self,
        grid: RectilinearGrid2,
        interest: RateLike,
        volatility: RateLike,
        dividend: RateLike = 0.0,
    ):
        self.grid = grid
        self.interest = as_rate(interest)
        self.volatility = as_rate(volatility)
        self.dividend = as_rate(dividend)

    def matrix(self, t: float) -> sp.csr_matrix:
        grid = self.grid
        ticks = grid[0].ticks
        n0 = len(ticks)

        S, W = grid.s, grid.w
        r = self.interest(t, S, W)
        sigma = self.volatility(t, S, W)
        q = self.dividend(t, S, W)

        nodes = np.arange(grid.size)
        i = nodes % n0

        builder = SparseMatrixBuilder((grid.size, grid.size))

        # Boundaries
        bottom = i == 0
        top = i == n0 - 1
        builder.add(nodes[bottom], nodes[bottom], -r[bottom])
        builder.add(nodes[top], nodes[top], -q[top])

        # Interior
        inner = ~(bottom | top)
        k = nodes[inner]
        ii = i[inner]
        hm = ticks[ii] - ticks[ii - 1]
        hp = ticks[ii + 1] - ticks[ii]

        diffusion = sigma[inner] ** 2 * S[inner] ** 2
        drift = (r[inner] - q[inner]) * S[inner]

        alpha_diff = diffusion / (hm * (hm + hp))
        beta_diff = diffusion / (hp * (hm + hp))

        alpha = alpha_diff - drift / (hm + hp)
        beta = beta_diff + drift / (hm + hp)

        # Upwind where central differencing gives a negative weight
        upwind = (alpha < 0) | (beta < 0)
        alpha = np.where(upwind, alpha_diff + np.maximum(-drift, 0.0) / hm, alpha)
        beta = np.where(upwind, beta_diff + np.maximum(drift, 0.0) / hp, beta)

        builder.add(k, k - 1, alpha)
        builder.add(k, k + 1, beta)
        builder.add(k, k, -(alpha + beta + r[inner]))

        return builder.to_csr()

    def apply(self, t: float, values: np.ndarray) -> np.ndarray:
        """Evaluate ``L(t) V`` for a node vector."""
        return self.matrix(t) @ values
