# src/gmwblab/pricing_models/tolerance.py
"""
Fixed-point (tolerance) iteration.

At each time level the driver calls ``start`` with the initial iterate, then
``step`` with every new trial solution until ``step`` reports convergence:

    max_i |x_k,i - x_{k-1},i| / max(scale, |x_k,i|) < tolerance

Running out of iterations raises ``MaxIterationsExceededError``; a stale
iterate is never returned as converged. One iteration count is recorded per
converged time level.

State machine:
    IDLE -> ITERATING -> CONVERGED | MAX_ITERATIONS_EXCEEDED
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from gmwblab.common.config import DEFAULT_MAX_ITERATIONS, DEFAULT_SCALE, DEFAULT_TOLERANCE
from gmwblab.exceptions import ConfigurationError, MaxIterationsExceededError

logger = logging.getLogger(__name__)


class IterationState(Enum):
    IDLE = "idle"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"


class ToleranceIteration:
    """
    Convergence engine shared by the time-stepping driver and the coupled
    policy/penalty operators.

    Attributes:
        tolerance: Relative change below which an iteration has converged.
        scale: Floor on the denominator of the relative change.
        max_iterations: Iteration budget per time level.
    """

    def __init__(
        self,
        tolerance: float = DEFAULT_TOLERANCE,
        scale: float = DEFAULT_SCALE,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        if tolerance <= 0:
            raise ConfigurationError("tolerance must be positive")
        if scale <= 0:
            raise ConfigurationError("scale must be positive")
        if max_iterations < 1:
            raise ConfigurationError("max_iterations must be >= 1")

        self.tolerance = tolerance
        self.scale = scale
        self.max_iterations = max_iterations

        self.state = IterationState.IDLE
        self.time: Optional[float] = None
        self.error = np.inf
        self._iterations: List[int] = []
        self._count = 0
        self._previous: Optional[np.ndarray] = None
        self._update: Optional[Callable[[np.ndarray], np.ndarray]] = None

    def reset(self) -> None:
        """Forget all diagnostics (start of a new run)."""
        self.state = IterationState.IDLE
        self.time = None
        self.error = np.inf
        self._iterations = []
        self._count = 0
        self._previous = None

    def start(self, time: float, initial: np.ndarray) -> None:
        """Begin iterating at a new time level from ``initial``."""
        self.state = IterationState.ITERATING
        self.time = time
        self.error = np.inf
        self._count = 0
        self._previous = np.array(initial, dtype=float, copy=True)

    def relative_change(self, current: np.ndarray, previous: np.ndarray) -> float:
        denominator = np.maximum(self.scale, np.abs(current))
        return float(np.max(np.abs(current - previous) / denominator))

    def step(self, iterate: np.ndarray) -> bool:
        """
        Record a new trial solution.

        Returns:
            True once the change from the previous iterate is within tolerance.

        Raises:
            MaxIterationsExceededError: If the budget is used up first.
        """
        if self.state is not IterationState.ITERATING:
            raise RuntimeError(f"step() called while {self.state.value}; call start() first")

        self._count += 1
        self.error = self.relative_change(iterate, self._previous)
        self._previous = np.array(iterate, dtype=float, copy=True)

        if self.error < self.tolerance:
            self.state = IterationState.CONVERGED
            self._iterations.append(self._count)
            return True

        if self._count >= self.max_iterations:
            self.state = IterationState.MAX_ITERATIONS_EXCEEDED
            raise MaxIterationsExceededError(
                details=f"relative change {self.error:.3e} above tolerance {self.tolerance:.1e}",
                time=self.time,
                iterations=self._count,
            )

        return False

    def register_operator(self, update: Callable[[np.ndarray], np.ndarray]) -> None:
        """Set the map ``x -> update(x)`` iterated by ``run``."""
        self._update = update

    def run(
        self,
        time: float,
        initial: np.ndarray,
        update: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    ) -> np.ndarray:
        """
        Iterate ``x <- update(x)`` from ``initial`` until convergence.

        ``update`` defaults to the operator set by ``register_operator``.
        """
        update = update if update is not None else self._update
        if update is None:
            raise RuntimeError("no operator registered; call register_operator() first")
        self.start(time, initial)
        iterand = initial
        while True:
            iterand = update(iterand)
            if self.step(iterand):
                logger.debug(
                    "t=%.6g converged in %d iterations (change %.2e)",
                    time,
                    self._count,
                    self.error,
                )
                return iterand

    def has_converged(self) -> bool:
        return self.state is IterationState.CONVERGED

    @property
    def iteration_count(self) -> int:
        """Iterations performed at the current (or last) time level."""
        return self._count

    @property
    def iterations(self) -> List[int]:
        """Inner iteration count of every converged time level, in order."""
        return list(self._iterations)

    @property
    def mean_iterations(self) -> float:
        if not self._iterations:
            return 0.0
        return float(np.mean(self._iterations))
