"""
Data structures for Bonus Vetus OLS estimation

This module contains the data structures shared across the estimation pipeline:
column roles, multilateral-resistance mean tables and the regression summary.

Author: BVOLS Research Team
Date: 2025
Version: 1.0
"""

import pandas as pd
from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass, field


# Names of the derived columns added to the working dataset
LOG_DISTANCE = "log_distance"
NORMALIZED_FLOW = "normalized_flow"
LOG_NORMALIZED_FLOW = "log_normalized_flow"
INTERCEPT = "Intercept"
MR_SUFFIX = "_mr"

# Regressors may not reuse these names. The first four are the names the
# reference routine writes into its working copy of the data.
RESERVED_COLUMNS = frozenset([
    "dist_log", "y_inc", "y_inc_log", "count",
    LOG_DISTANCE, NORMALIZED_FLOW, LOG_NORMALIZED_FLOW, INTERCEPT,
])


def mr_name(variable: str) -> str:
    """Name of the multilateral-resistance-adjusted column for ``variable``"""
    return f"{variable}{MR_SUFFIX}"


@dataclass(frozen=True)
class GravityColumns:
    """Column roles of a bilateral gravity dataset"""

    flow: str
    distance: str
    origin_income: str
    destination_income: str
    regressors: Tuple[str, ...] = ()
    origin: str = "iso_o"
    destination: str = "iso_d"

    @property
    def adjusted_variables(self) -> List[str]:
        """Variables that receive the MR adjustment, log distance first"""
        return [LOG_DISTANCE] + list(self.regressors)

    @property
    def numeric_columns(self) -> List[str]:
        """Raw numeric columns read from the dataset"""
        return [self.flow, self.distance, self.origin_income,
                self.destination_income] + list(self.regressors)

    @property
    def positive_columns(self) -> List[str]:
        """Columns that enter a logarithm and must be strictly positive"""
        return [self.flow, self.distance, self.origin_income, self.destination_income]

    @property
    def required_columns(self) -> List[str]:
        return [self.origin, self.destination] + self.numeric_columns


@dataclass(frozen=True, eq=False)
class MeanTables:
    """
    Origin, destination and global means of every MR-adjusted variable.

    ``origin_means[v]`` and ``destination_means[v]`` are Series keyed by
    country code; ``global_means[v]`` is a scalar.
    """

    origin_means: Dict[str, pd.Series] = field(default_factory=dict)
    destination_means: Dict[str, pd.Series] = field(default_factory=dict)
    global_means: Dict[str, float] = field(default_factory=dict)

    @property
    def variables(self) -> List[str]:
        return list(self.global_means.keys())

    def missing_entries(self, variables: List[str]) -> Dict[str, List[str]]:
        """
        Report which of the three tables lack an entry for each variable.

        Returns:
            dict: variable -> list of table names ('origin', 'destination',
            'global') with no entry or a missing value; empty if complete.
        """
        missing = {}
        for variable in variables:
            tables = []
            origin = self.origin_means.get(variable)
            if origin is None or origin.empty or origin.isna().any():
                tables.append("origin")
            destination = self.destination_means.get(variable)
            if destination is None or destination.empty or destination.isna().any():
                tables.append("destination")
            if variable not in self.global_means or pd.isna(self.global_means[variable]):
                tables.append("global")
            if tables:
                missing[variable] = tables
        return missing


@dataclass(frozen=True, eq=False)
class RegressionSummary:
    """Estimated gravity equation with the standard errors that were requested"""

    formula: str
    coefficients: pd.Series
    std_errors: pd.Series
    t_values: pd.Series
    p_values: pd.Series
    df_resid: float
    df_model: float
    nobs: int
    robust: bool
    cov_type: str
    r_squared: float
    adj_r_squared: float
    f_statistic: Optional[float] = None
    f_pvalue: Optional[float] = None
    sigma: Optional[float] = None
    results: Any = field(default=None, repr=False)

    @property
    def regressors(self) -> List[str]:
        return list(self.coefficients.index)

    def coefficient_table(self) -> pd.DataFrame:
        """Coefficient table in the estimate / std. error / t / p layout"""
        return pd.DataFrame({
            "estimate": self.coefficients,
            "std_error": self.std_errors,
            "t_value": self.t_values,
            "p_value": self.p_values,
        })

    def conf_int(self, alpha: float = 0.05) -> pd.DataFrame:
        """Confidence intervals using the same covariance as the reported errors"""
        if self.results is None:
            raise ValueError("No fitted results attached to this summary")
        intervals = self.results.conf_int(alpha=alpha)
        intervals.columns = ["lower", "upper"]
        return intervals

    def summary(self):
        """Render the statsmodels regression table for this fit"""
        if self.results is None:
            raise ValueError("No fitted results attached to this summary")
        return self.results.summary(title=f"Bonus Vetus OLS: {self.formula}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formula": self.formula,
            "coefficients": self.coefficients.to_dict(),
            "std_errors": self.std_errors.to_dict(),
            "t_values": self.t_values.to_dict(),
            "p_values": self.p_values.to_dict(),
            "df_resid": self.df_resid,
            "df_model": self.df_model,
            "nobs": self.nobs,
            "robust": self.robust,
            "cov_type": self.cov_type,
            "r_squared": self.r_squared,
            "adj_r_squared": self.adj_r_squared,
            "f_statistic": self.f_statistic,
            "f_pvalue": self.f_pvalue,
            "sigma": self.sigma,
        }
