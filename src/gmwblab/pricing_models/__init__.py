from gmwblab.pricing_models.black_scholes import BlackScholesOperator
from gmwblab.pricing_models.gmwb import (
    GMWBParameters,
    GMWBPricer,
    GMWBResult,
    print_grid,
    reference_grid,
)
from gmwblab.pricing_models.grid import Axis, RectilinearGrid2
from gmwblab.pricing_models.linear_solvers import BiCGSTABSolver, SparseLUSolver
from gmwblab.pricing_models.penalty import PenaltyMethod
from gmwblab.pricing_models.policy_iteration import PolicyIteration
from gmwblab.pricing_models.rates import ConstantRate, StateVaryingRate, TimeVaryingRate, as_rate
from gmwblab.pricing_models.time_stepping import ReverseBDFTwo, ReverseConstantStepper
from gmwblab.pricing_models.tolerance import IterationState, ToleranceIteration
from gmwblab.pricing_models.withdrawal import WithdrawalOperator

__all__ = [
    "Axis",
    "RectilinearGrid2",
    "ConstantRate",
    "TimeVaryingRate",
    "StateVaryingRate",
    "as_rate",
    "BlackScholesOperator",
    "WithdrawalOperator",
    "PolicyIteration",
    "PenaltyMethod",
    "ReverseBDFTwo",
    "ReverseConstantStepper",
    "ToleranceIteration",
    "IterationState",
    "SparseLUSolver",
    "BiCGSTABSolver",
    "GMWBParameters",
    "GMWBPricer",
    "GMWBResult",
    "reference_grid",
    "print_grid",
]
