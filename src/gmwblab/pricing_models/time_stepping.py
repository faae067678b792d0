# src/gmwblab/pricing_models/time_stepping.py
"""
Reverse time stepping from expiry to inception.

Schemes for ∂V/∂τ = L V (τ = time to expiry, constant step dt):

    Implicit Euler:  (I/dt - L) V^{n+1} = V^n / dt
    BDF2:            (3/(2dt) I - L) V^{n+1} = (2 V^n - ½ V^{n-1}) / dt

The first step has a single previous solution and uses implicit Euler; BDF2
takes over as soon as two previous solutions exist.

``ReverseConstantStepper`` owns the solution history and drives the
tolerance iteration at every time level.
"""

import logging
from typing import Callable, List, Optional, Sequence

import numpy as np
import scipy.sparse as sp

from gmwblab.exceptions import (
    ConfigurationError,
    InvalidTimeStepError,
    LinearSolveError,
    ModelConvergenceError,
)
from gmwblab.pricing_models.black_scholes import BlackScholesOperator
from gmwblab.pricing_models.grid import RectilinearGrid2
from gmwblab.pricing_models.tolerance import ToleranceIteration

logger = logging.getLogger(__name__)


class ReverseBDFTwo:
    """Second-order backward differentiation, bootstrapped by implicit Euler."""

    def __init__(self, operator: BlackScholesOperator):
        self.operator = operator

    @staticmethod
    def order(history: Sequence[np.ndarray]) -> int:
        if len(history) == 0:
            raise ConfigurationError("at least one previous solution is required")
        return 1 if len(history) < 2 else 2

    def A(self, t: float, dt: float, history: Sequence[np.ndarray]) -> sp.csr_matrix:
        L = self.operator.matrix(t)
        I = self.operator.grid.identity()
        if self.order(history) == 1:
            return (I / dt - L).tocsr()
        return (1.5 / dt * I - L).tocsr()

    def b(self, t: float, dt: float, history: Sequence[np.ndarray]) -> np.ndarray:
        if self.order(history) == 1:
            return history[-1] / dt
        return (2.0 * history[-1] - 0.5 * history[-2]) / dt


class ReverseConstantStepper:
    """
    Fixed-size steps backward from ``expiry`` to ``initial_time``.

    Attributes:
        initial_time: Time at which the solution is wanted (usually 0).
        expiry: Contract expiry, where the payoff is imposed.
        dt: Step size; must divide the horizon into a whole number of steps.
    """

    def __init__(self, initial_time: float, expiry: float, dt: float):
        if not dt > 0:
            raise InvalidTimeStepError(dt, "Timestep must be positive.")
        if expiry <= initial_time:
            raise ConfigurationError("expiry must be after the initial time")

        steps = (expiry - initial_time) / dt
        n_steps = int(round(steps))
        if n_steps < 1 or abs(steps - n_steps) > 1e-9 * max(1.0, steps):
            raise InvalidTimeStepError(
                dt, f"Horizon {expiry - initial_time} is not a whole number of steps."
            )

        self.initial_time = initial_time
        self.expiry = expiry
        self.dt = dt
        self.n_steps = n_steps
        self.controls: Optional[np.ndarray] = None

    @property
    def times(self) -> np.ndarray:
        """Time levels solved for, in the order they are visited."""
        times = self.expiry - self.dt * np.arange(1, self.n_steps + 1)
        times[-1] = self.initial_time
        return times

    def solve(
        self,
        grid: RectilinearGrid2,
        payoff: Callable,
        root,
        solver,
        tolerance: ToleranceIteration,
    ) -> np.ndarray:
        """
        March the payoff back to ``initial_time``.

        Args:
            grid: Solution grid.
            payoff: Terminal condition ``payoff(S, W)``.
            root: Coupled system provider (``PenaltyMethod``).
            solver: Linear solver with ``solve(A, b)``.
            tolerance: Convergence engine; its diagnostics are reset.

        Returns:
            Solution vector at ``initial_time``.

        Raises:
            ModelConvergenceError: If any time level fails to converge; the
                run is aborted.
        """
        tolerance.reset()
        history: List[np.ndarray] = [grid.image(payoff)]

        for t in self.times:
            t = float(t)

            def update(iterand: np.ndarray) -> np.ndarray:
                system = root.system(t, self.dt, history, iterand)
                try:
                    solution = solver.solve(system.A, system.b)
                except LinearSolveError as exc:
                    raise LinearSolveError(
                        details=exc.details,
                        time=t,
                        iterations=tolerance.iteration_count + 1,
                    ) from exc
                self.controls = system.controls
                logger.debug(
                    "t=%.6g iteration %d: %d penalized nodes",
                    t,
                    tolerance.iteration_count + 1,
                    system.n_active,
                )
                return solution

            tolerance.register_operator(update)
            try:
                solution = tolerance.run(t, history[-1])
            except ModelConvergenceError:
                logger.error(
                    "Aborting run at t=%.6g after %d inner iterations",
                    t,
                    tolerance.iteration_count,
                )
                raise

            history.append(solution)
            del history[:-2]

        return history[-1]
