# src/gmwblab/pricing_models/validation.py
"""
GMWB Pricing Validation Utilities.

Provides validation functions for sanity-checking a solve:
- Bilinear interpolation weights (non-negative, summing to one)
- Lower bound of the contract value (immediate surrender payoff)
- Convergence of a refinement study

Usage:
    >>> from gmwblab.pricing_models.validation import validate_refinement_convergence
    >>> is_converging, changes = validate_refinement_convergence([101.2, 102.9, 103.4])
"""

from typing import Sequence, Tuple

import numpy as np


def validate_interpolation_weights(
    weights: np.ndarray,
    tolerance: float = 1e-12,
) -> Tuple[bool, str]:
    """
    Check bilinear interpolation weights row by row.

    Args:
        weights: Array of shape (n_points, 4).
        tolerance: Allowed deviation of each row sum from one.

    Returns:
        Tuple of (is_valid, violation_message).
    """
    weights = np.asarray(weights, dtype=float)

    if np.any(weights < -tolerance):
        return False, f"Negative weight {weights.min():.3e}"

    sums = weights.sum(axis=1)
    worst = np.max(np.abs(sums - 1.0)) if sums.size else 0.0
    if worst > tolerance:
        return False, f"Weights sum to 1 only within {worst:.3e}"

    return True, "OK"


def validate_payoff_lower_bound(
    price: float,
    S: float,
    W: float,
    kappa: float,
    tolerance: float = 1e-6,
) -> Tuple[bool, float]:
    """
    Check ``V(S, W) >= max(S, (1 - κ)W)``.

    Holding on to the contract is worth at least surrendering it, so the value
    may only fall short of the payoff by the relative ``tolerance``.

    Returns:
        Tuple of (is_valid, shortfall) with shortfall >= 0.
    """
    bound = max(S, (1.0 - kappa) * W)
    shortfall = max(bound - price, 0.0)
    return shortfall <= tolerance * max(1.0, abs(bound)), shortfall


def validate_refinement_convergence(
    prices: Sequence[float],
    atol: float = 1e-8,
) -> Tuple[bool, np.ndarray]:
    """
    Check that successive refinement levels converge.

    Args:
        prices: Value at a fixed point for levels 0, 1, 2, ...
        atol: Changes below this level count as numerical noise.

    Returns:
        Tuple of (is_converging, absolute_changes). A study is converging when
        every change is no larger than the previous one (up to ``atol``).
    """
    prices = np.asarray(prices, dtype=float)
    if not np.all(np.isfinite(prices)):
        return False, np.abs(np.diff(prices))

    changes = np.abs(np.diff(prices))
    converging = bool(np.all(changes[1:] <= changes[:-1] + atol))
    return converging, changes
