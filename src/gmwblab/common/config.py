# src/gmwblab/common/config.py

import os

# General project config
PROJECT_NAME = "GMWBLab"

# Logging config
LOG_LEVEL = os.getenv("GMWB_LOG_LEVEL", "INFO")

# Contract defaults (reference run)
DEFAULT_EXPIRY = 10.0
DEFAULT_INTEREST = 0.05
DEFAULT_VOLATILITY = 0.20
DEFAULT_HEDGING_FEE = 0.0
DEFAULT_CONTRACT_RATE = 10.0
DEFAULT_PENALTY_RATE = 0.1

# Discretization defaults
DEFAULT_PARTITION_SIZE = 10  # control partition 0 : 1/n : 1
DEFAULT_TIMESTEPS = 100
DEFAULT_REFINEMENT = 2

# Numerical defaults
EPSILON = 1e-12
DEFAULT_TOLERANCE = float(os.getenv("GMWB_TOLERANCE", "1e-6"))
DEFAULT_SCALE = 1.0
DEFAULT_MAX_ITERATIONS = int(os.getenv("GMWB_MAX_ITERATIONS", "100"))
DEFAULT_PENALTY_LARGE = 1.0 / DEFAULT_TOLERANCE

# Reference solution grid
INVESTMENT_TICKS = (
    0.0, 5.0, 10.0, 15.0, 20.0, 25.0,
    30.0, 35.0, 40.0, 45.0,
    50.0, 55.0, 60.0, 65.0, 70.0, 72.5, 75.0, 77.5, 80.0, 82.0, 84.0,
    86.0, 88.0, 90.0, 91.0, 92.0, 93.0, 94.0, 95.0,
    96.0, 97.0, 98.0, 99.0, 100.0,
    101.0, 102.0, 103.0, 104.0, 105.0, 106.0,
    107.0, 108.0, 109.0, 110.0, 112.0, 114.0,
    116.0, 118.0, 120.0, 123.0, 126.0,
    130.0, 135.0, 140.0, 145.0, 150.0, 160.0, 175.0, 200.0, 225.0,
    250.0, 300.0, 500.0, 750.0, 1000.0,
)
WITHDRAWAL_RANGE = (0.0, 2.0, 200.0)  # start, step, stop (inclusive)

# Grid on which results are reported
PRINT_RANGE = (0.0, 25.0, 200.0)
DEFAULT_QUERY_POINT = (100.0, 100.0)
