"""
BVOLS: Bonus Vetus OLS Estimation of Gravity Models

Estimates cross-sectional gravity equations of bilateral flows with the
multilateral resistance terms approximated by simple averages and removed by
double-demeaning (Baier and Bergstrand, 2009).
"""

__version__ = "1.0.0"
__author__ = "BVOLS Research Team"

# Core imports
from .core.bvu import BonusVetusOLS, estimate_bvu, build_formula
from .core.multilateral_resistance import MultilateralResistanceAggregator, apply_mr_demeaning

# Configuration imports
from .config import BVOLSConfig, EstimationConfig, load_config_from_file, save_config_to_file

# Utility imports
from .utils.data_processor import GravityDataProcessor
from .utils.data_structures import GravityColumns, MeanTables, RegressionSummary
from .utils.exceptions import BVUError, ConfigurationError, DataError, ComputationError

# Example data
from .data.synthetic import generate_gravity_data

__all__ = [
    # Estimation
    "BonusVetusOLS",
    "estimate_bvu",
    "build_formula",

    # Multilateral resistance
    "MultilateralResistanceAggregator",
    "apply_mr_demeaning",

    # Configuration
    "BVOLSConfig",
    "EstimationConfig",
    "load_config_from_file",
    "save_config_to_file",

    # Utilities
    "GravityDataProcessor",
    "GravityColumns",
    "MeanTables",
    "RegressionSummary",

    # Errors
    "BVUError",
    "ConfigurationError",
    "DataError",
    "ComputationError",

    # Example data
    "generate_gravity_data",
]
