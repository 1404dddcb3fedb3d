"""
Error classification for Bonus Vetus OLS estimation

Every failure in the estimation pipeline is fatal to the call that raised it.
The classes below tell the caller which part of the input needs fixing.

Author: BVOLS Research Team
Date: 2025
Version: 1.0
"""

from enum import Enum
from typing import Optional, Sequence


class ErrorType(Enum):
    """Classification of estimation errors"""
    CONFIGURATION_ERROR = "configuration_error"
    DATA_ERROR = "data_error"
    COMPUTATION_ERROR = "computation_error"


class BVUError(Exception):
    """Base class for all errors raised by the estimation pipeline"""

    error_type: ErrorType = None

    def __init__(self, message: str, columns: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.message = message
        self.columns = list(columns) if columns else []


class ConfigurationError(BVUError, ValueError):
    """
    Invalid argument shapes or types: bad column names, duplicate or reserved
    regressor names, non-boolean robust flag, invalid configuration values.
    """

    error_type = ErrorType.CONFIGURATION_ERROR


class DataError(BVUError, ValueError):
    """
    The dataset cannot be used as given: missing or non-numeric columns,
    missing or non-positive values, countries without a mean-table entry.
    """

    error_type = ErrorType.DATA_ERROR


class ComputationError(BVUError, ArithmeticError):
    """The OLS problem cannot be solved, e.g. a rank-deficient design matrix"""

    error_type = ErrorType.COMPUTATION_ERROR
