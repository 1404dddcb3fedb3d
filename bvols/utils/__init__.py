"""
Utility modules for data preparation, shared data structures and errors.
"""

from .data_processor import GravityDataProcessor
from .data_structures import GravityColumns, MeanTables, RegressionSummary
from .exceptions import BVUError, ConfigurationError, DataError, ComputationError

__all__ = [
    "GravityDataProcessor",
    "GravityColumns",
    "MeanTables",
    "RegressionSummary",
    "BVUError",
    "ConfigurationError",
    "DataError",
    "ComputationError",
]
