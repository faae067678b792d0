# src/gmwblab/__main__.py
"""
Reference GMWB refinement study.

Run: python -m gmwblab [--timesteps 100] [--partition-size 10] [--refinement 2]
"""

import argparse
import logging
import sys
from typing import List, Optional

from gmwblab.common import config
from gmwblab.common.logging_config import setup_logging
from gmwblab.exceptions import ModelConvergenceError
from gmwblab.pricing_models.gmwb import GMWBParameters, GMWBPricer, reference_grid
from gmwblab.reporting import format_report, refinement_table

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gmwblab", description="Price a GMWB by penalty / policy iteration."
    )
    parser.add_argument("--expiry", type=float, default=config.DEFAULT_EXPIRY)
    parser.add_argument("--interest", type=float, default=config.DEFAULT_INTEREST)
    parser.add_argument("--volatility", type=float, default=config.DEFAULT_VOLATILITY)
    parser.add_argument("--hedging-fee", type=float, default=config.DEFAULT_HEDGING_FEE)
    parser.add_argument("--contract-rate", type=float, default=config.DEFAULT_CONTRACT_RATE)
    parser.add_argument("--penalty-rate", type=float, default=config.DEFAULT_PENALTY_RATE)
    parser.add_argument("--partition-size", type=int, default=config.DEFAULT_PARTITION_SIZE)
    parser.add_argument("--timesteps", type=int, default=config.DEFAULT_TIMESTEPS)
    parser.add_argument("--refinement", type=int, default=config.DEFAULT_REFINEMENT)
    parser.add_argument("--tolerance", type=float, default=config.DEFAULT_TOLERANCE)
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    params = GMWBParameters(
        expiry=args.expiry,
        interest=args.interest,
        volatility=args.volatility,
        hedging_fee=args.hedging_fee,
        contract_rate=args.contract_rate,
        penalty_rate=args.penalty_rate,
        partition_size=args.partition_size,
        timesteps=args.timesteps,
        refinement=args.refinement,
    )
    pricer = GMWBPricer(params, tolerance=args.tolerance)

    try:
        results = pricer.refinement_study(reference_grid())
    except ModelConvergenceError as exc:
        print(f"Run failed: {exc}", file=sys.stderr)
        return 1

    for result in results:
        print(format_report(result))
    print(refinement_table(results).to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
