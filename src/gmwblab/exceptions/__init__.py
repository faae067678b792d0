from gmwblab.exceptions.model_exceptions import (
    ModelError,
    ModelConvergenceError,
    MaxIterationsExceededError,
    LinearSolveError,
)
from gmwblab.exceptions.pricing_exceptions import (
    PricingError,
    ConfigurationError,
    InvalidAxisError,
    EmptyControlSetError,
    InvalidTimeStepError,
)

__all__ = [
    "ModelError",
    "ModelConvergenceError",
    "MaxIterationsExceededError",
    "LinearSolveError",
    "PricingError",
    "ConfigurationError",
    "InvalidAxisError",
    "EmptyControlSetError",
    "InvalidTimeStepError",
]
