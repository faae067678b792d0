# src/gmwblab/pricing_models/rates.py
"""
Rate functions evaluated on the solution grid.

Every model coefficient (interest rate, volatility, hedging fee, contract
withdrawal amount, surrender penalty) is a function ``f(t, S, W)``. Constant,
time-dependent and state-dependent coefficients share one interface so the
operators never need to know which kind they hold.

Usage:
    >>> from gmwblab.pricing_models.rates import as_rate
    >>> kappa = as_rate(0.1)
    >>> sigma = as_rate(lambda t: 0.2 + 0.01 * t)   # time-varying
"""

import inspect
from abc import ABC, abstractmethod
from typing import Callable, Union

import numpy as np


class RateFunction(ABC):
    """Coefficient evaluated at time ``t`` on (arrays of) nodes ``(S, W)``."""

    @abstractmethod
    def evaluate(self, t: float, S, W) -> np.ndarray:
        pass

    def __call__(self, t: float, S, W) -> np.ndarray:
        return self.evaluate(t, S, W)


class ConstantRate(RateFunction):
    def __init__(self, value: float):
        self.value = float(value)

    def evaluate(self, t, S, W):
        return np.full(np.broadcast(np.asarray(S), np.asarray(W)).shape, self.value)

    def __repr__(self) -> str:
        return f"ConstantRate({self.value!r})"


class TimeVaryingRate(RateFunction):
    """Coefficient depending on time only, ``f(t)``."""

    def __init__(self, func: Callable[[float], float]):
        self.func = func

    def evaluate(self, t, S, W):
        return np.full(np.broadcast(np.asarray(S), np.asarray(W)).shape, float(self.func(t)))


class StateVaryingRate(RateFunction):
    """Coefficient depending on time and state, ``f(t, S, W)`` (vectorized)."""

    def __init__(self, func: Callable[[float, np.ndarray, np.ndarray], np.ndarray]):
        self.func = func

    def evaluate(self, t, S, W):
        shape = np.broadcast(np.asarray(S), np.asarray(W)).shape
        return np.broadcast_to(np.asarray(self.func(t, S, W), dtype=float), shape)


RateLike = Union[float, int, RateFunction, Callable]


def as_rate(value: RateLike) -> RateFunction:
    """
    Wrap a number or callable as a RateFunction.

    Callables of one argument are treated as functions of time, callables of
    three arguments as functions of ``(t, S, W)``.
    """
    if isinstance(value, RateFunction):
        return value
    if isinstance(value, (int, float, np.number)):
        return ConstantRate(value)
    if callable(value):
        n_params = len(inspect.signature(value).parameters)
        if n_params == 1:
            return TimeVaryingRate(value)
        if n_params == 3:
            return StateVaryingRate(value)
        raise TypeError(
            f"Rate callables take (t) or (t, S, W); got {n_params} parameters"
        )
    raise TypeError(f"Cannot interpret {value!r} as a rate")
