# Expose main modules for easier imports
from gmwblab import common, exceptions, pricing_models, utils
from gmwblab.pricing_models.gmwb import GMWBParameters, GMWBPricer

__version__ = "0.1.0"

__all__ = [
    "common",
    "exceptions",
    "pricing_models",
    "utils",
    "GMWBParameters",
    "GMWBPricer",
]
