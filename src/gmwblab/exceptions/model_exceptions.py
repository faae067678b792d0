from typing import Optional


class ModelError(Exception):
    """Base class for model-related errors."""

    pass


class ModelConvergenceError(ModelError):
    """Raised when a model fails to converge."""

    def __init__(
        self,
        details: str = "",
        time: Optional[float] = None,
        iterations: Optional[int] = None,
    ):
        self.details = details
        self.time = time
        self.iterations = iterations

        message = "Model failed to converge."
        if time is not None:
            message += f" Time level t={time:.6g}."
        if iterations is not None:
            message += f" Iterations: {iterations}."
        if details:
            message += f" Details: {details}"
        super().__init__(message)


class MaxIterationsExceededError(ModelConvergenceError):
    """Raised when a fixed-point iteration runs out of its iteration budget."""

    pass


class LinearSolveError(ModelConvergenceError):
    """Raised when the sparse linear solver fails."""

    pass
