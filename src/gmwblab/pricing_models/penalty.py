# src/gmwblab/pricing_models/penalty.py
"""
Penalty coupling of the diffusion step with the withdrawal constraint.

The discrete HJBQVI at each time level reads

    min( A_d V - b_d,  A_c V - b_c ) = 0

with (A_d, b_d) the time-discretized Black-Scholes system and (A_c, b_c) the
impulse system under the best withdrawal rates. It is approximated by

    (A_d + large * P * A_c) V = b_d + large * P * b_c

where P is diagonal with P_ii = 1 at nodes whose trial solution violates
``A_c V >= b_c`` (withdrawing beats holding).

Every inner iteration evaluates, in this order:
    1. diffusion refresh      (A_d, b_d)
    2. policy re-optimization (A_c, b_c) for the current iterate
    3. penalty combination
The solve and the convergence check are left to the caller.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import scipy.sparse as sp

from gmwblab.common.config import DEFAULT_PENALTY_LARGE
from gmwblab.exceptions import ConfigurationError
from gmwblab.pricing_models.policy_iteration import PolicyIteration
from gmwblab.pricing_models.time_stepping import ReverseBDFTwo


@dataclass
class PenalizedSystem:
    """Linear system of one inner iteration."""

    A: sp.csr_matrix
    b: np.ndarray
    controls: np.ndarray  # best withdrawal rate per node
    active: np.ndarray  # nodes where the penalty is switched on

    @property
    def n_active(self) -> int:
        return int(np.count_nonzero(self.active))


class PenaltyMethod:
    """
    Args:
        constrained: Time discretization of the diffusion operator.
        constraint: Policy iteration over the withdrawal operator.
        large: Penalty factor (roughly 1 / tolerance).
    """

    def __init__(
        self,
        constrained: ReverseBDFTwo,
        constraint: PolicyIteration,
        large: float = DEFAULT_PENALTY_LARGE,
    ):
        if large <= 0:
            raise ConfigurationError("penalty factor must be positive")
        self.constrained = constrained
        self.constraint = constraint
        self.large = large

    def system(
        self,
        t: float,
        dt: float,
        history: Sequence[np.ndarray],
        iterand: np.ndarray,
    ) -> PenalizedSystem:
        A_d = self.constrained.A(t, dt, history)
        b_d = self.constrained.b(t, dt, history)

        A_c, b_c, controls = self.constraint.system(t, iterand)

        active = (A_c @ iterand - b_c) < 0
        penalty = self.large * active.astype(float)

        A = (A_d + sp.diags(penalty) @ A_c).tocsr()
        b = b_d + penalty * b_c
        return PenalizedSystem(A=A, b=b, controls=controls, active=active)
