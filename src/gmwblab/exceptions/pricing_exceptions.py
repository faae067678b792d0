class PricingError(Exception):
    """Base class for pricing-related errors."""

    pass


class ConfigurationError(PricingError, ValueError):
    """Raised when a pricing run is set up with invalid parameters."""

    pass


class InvalidAxisError(ConfigurationError):
    """Raised when grid axis ticks are not strictly increasing."""

    def __init__(self, message: str):
        super().__init__(f"Invalid axis: {message}")


class EmptyControlSetError(ConfigurationError):
    """Raised when policy iteration is given no controls to search."""

    def __init__(self):
        super().__init__("Control set must contain at least one value.")


class InvalidTimeStepError(ConfigurationError):
    """Raised when the timestep is zero, negative or does not divide the horizon."""

    def __init__(self, dt, details: str = ""):
        message = f"Invalid timestep {dt}."
        if details:
            message += f" {details}"
        super().__init__(message)
