"""
Bonus Vetus OLS with simple averages (BVU)

Estimates the additive gravity equation

    ln( X_ij / (Y_i * Y_j) ) = b0 + b1 * ln(dist_ij)_mr + sum_k bk * x_k,ij_mr + e_ij

where every regressor is double-demeaned to remove the multilateral
resistance terms (Baier and Bergstrand, 2009, 2010). With robust=True the
standard errors are HC1, consistent with Stata's ``regress ..., robust`` as
used in Head and Mayer's gravity cookbook.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.regression.linear_model import OLS

from ..config import EstimationConfig
from ..utils.data_processor import GravityDataProcessor
from ..utils.data_structures import (
    GravityColumns,
    MeanTables,
    RegressionSummary,
    INTERCEPT,
    LOG_NORMALIZED_FLOW,
    mr_name,
)
from ..utils.exceptions import ComputationError, ConfigurationError
from .multilateral_resistance import MultilateralResistanceAggregator, apply_mr_demeaning


def build_formula(columns: GravityColumns) -> str:
    """Formula string of the estimated equation, e.g. 'log_normalized_flow ~ log_distance_mr + rta_mr'"""
    regressors = [mr_name(v) for v in columns.adjusted_variables]
    return f"{LOG_NORMALIZED_FLOW} ~ " + " + ".join(regressors)


class BonusVetusOLS:
    """
    Bonus Vetus OLS gravity estimator with simple-average MR terms
    """

    def __init__(self, config: Optional[EstimationConfig] = None):
        self.config = config or EstimationConfig()
        errors = self.config.validate()
        if errors:
            raise ConfigurationError("Invalid estimation configuration: " + "; ".join(errors))

        self.processor = GravityDataProcessor(self.config)
        self.logger = logging.getLogger(__name__)

        self.columns = None
        self.mean_tables = None
        self.adjusted_data = None
        self.results = None
        self.summary = None
        self.fitted = False

    def design_matrix(self, adjusted: pd.DataFrame, columns: GravityColumns) -> Tuple[pd.Series, pd.DataFrame]:
        """Response and regressor matrix (intercept first) from the adjusted data"""
        regressors = [mr_name(v) for v in columns.adjusted_variables]
        y = adjusted[LOG_NORMALIZED_FLOW].astype(float)
        X = sm.add_constant(adjusted[regressors].astype(float), prepend=True, has_constant='add')
        X = X.rename(columns={'const': INTERCEPT})
        return y, X

    def check_design(self, X: pd.DataFrame) -> None:
        """
        Reject designs OLS cannot identify

        Raises:
            ComputationError: If there are no residual degrees of freedom or
                the design matrix is rank deficient
        """
        n_obs, n_params = X.shape
        if n_obs <= n_params:
            raise ComputationError(
                f"{n_obs} observations are not enough to estimate {n_params} parameters"
            )

        rank = np.linalg.matrix_rank(X.to_numpy(), tol=self.config.rank_tolerance)
        if rank < n_params:
            # Variables that vary by country only are wiped out by the demeaning
            degenerate = [name for name in X.columns
                          if name != INTERCEPT and np.allclose(X[name].to_numpy(), 0.0, atol=1e-10)]
            message = f"Design matrix is rank deficient (rank {rank} < {n_params} parameters)"
            if degenerate:
                message += f"; columns with no bilateral variation after demeaning: {degenerate}"
            raise ComputationError(message, columns=degenerate)

    def fit(self, data: pd.DataFrame, columns: GravityColumns, robust: Optional[bool] = None) -> 'BonusVetusOLS':
        """
        Estimate the gravity equation

        Args:
            data: Bilateral dataset (not modified)
            columns: Column roles, see GravityDataProcessor.resolve_columns
            robust: HC1 standard errors if True, classical if False (default from config)

        Returns:
            self (for method chaining)

        Raises:
            ConfigurationError: If robust is not a boolean
            DataError: If the dataset fails validation
            ComputationError: If the OLS problem cannot be solved
        """
        robust = self.config.robust if robust is None else robust
        if not isinstance(robust, (bool, np.bool_)):
            raise ConfigurationError(f"'robust' must be True or False, got {robust!r}")
        robust = bool(robust)

        prepared = self.processor.prepare(data, columns)

        aggregator = MultilateralResistanceAggregator(columns)
        tables = aggregator.compute(prepared)
        adjusted = apply_mr_demeaning(prepared, tables, columns)

        y, X = self.design_matrix(adjusted, columns)
        self.check_design(X)

        formula = build_formula(columns)
        cov_type = 'HC1' if robust else 'nonrobust'
        self.logger.info(f"Fitting {formula} on {len(y)} observations ({cov_type} covariance)")

        try:
            if robust:
                results = OLS(y, X).fit(cov_type='HC1', use_t=True)
            else:
                results = OLS(y, X).fit()
        except np.linalg.LinAlgError as e:
            raise ComputationError(f"OLS solve failed for {formula}: {e}") from e

        self.columns = columns
        self.mean_tables = tables
        self.adjusted_data = adjusted
        self.results = results
        self.summary = self._summarize(results, formula, robust)
        self.fitted = True
        return self

    def _summarize(self, results, formula: str, robust: bool) -> RegressionSummary:
        f_statistic = results.fvalue
        f_pvalue = results.f_pvalue
        return RegressionSummary(
            formula=formula,
            coefficients=results.params.copy(),
            std_errors=results.bse.copy(),
            t_values=results.tvalues.copy(),
            p_values=results.pvalues.copy(),
            df_resid=float(results.df_resid),
            df_model=float(results.df_model),
            nobs=int(results.nobs),
            robust=robust,
            cov_type=results.cov_type,
            r_squared=float(results.rsquared),
            adj_r_squared=float(results.rsquared_adj),
            f_statistic=float(np.squeeze(f_statistic)) if f_statistic is not None else None,
            f_pvalue=float(np.squeeze(f_pvalue)) if f_pvalue is not None else None,
            sigma=float(np.sqrt(results.scale)),
            results=results,
        )

    def get_summary(self) -> RegressionSummary:
        if not self.fitted:
            raise ValueError("Model not fitted")
        return self.summary

    def get_mean_tables(self) -> MeanTables:
        if not self.fitted:
            raise ValueError("Model not fitted")
        return self.mean_tables

    def get_adjusted_data(self) -> pd.DataFrame:
        """MR-adjusted dataset the regression was run on"""
        if not self.fitted:
            raise ValueError("Model not fitted")
        return self.adjusted_data.copy()


def estimate_bvu(dependent_var: str,
                 distance_var: str,
                 regressor_vars: Union[str, Sequence[str], None],
                 origin_income_var: str,
                 destination_income_var: str,
                 robust: bool = True,
                 data: Optional[pd.DataFrame] = None,
                 *,
                 origin_var: Optional[str] = None,
                 destination_var: Optional[str] = None,
                 config: Optional[EstimationConfig] = None) -> RegressionSummary:
    """
    Estimate a gravity model via Bonus Vetus OLS with simple averages

    The flow is divided by the product of the two incomes and logged; distance
    is logged; log distance and every regressor are double-demeaned before OLS.

    Args:
        dependent_var: Bilateral flow column (strictly positive)
        distance_var: Bilateral distance column (strictly positive)
        regressor_vars: Further bilateral regressors; dummies coded 0/1,
            ratios already logged. Country-level variables other than the
            incomes are removed by the demeaning and cannot be included.
        origin_income_var: Income of the origin country, e.g. GDP
        destination_income_var: Income of the destination country
        robust: HC1 heteroskedasticity-robust standard errors (default True)
        data: Cross-sectional bilateral dataset, ideally square
        origin_var: Origin ISO code column (default 'iso_o')
        destination_var: Destination ISO code column (default 'iso_d')
        config: Estimation settings; ``robust`` above takes precedence

    Returns:
        RegressionSummary

    Example:
        >>> summary = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d",
        ...                        robust=True, data=gravity_no_zeros)
        >>> summary.formula
        'log_normalized_flow ~ log_distance_mr + rta_mr'
    """
    estimator = BonusVetusOLS(config)
    columns = estimator.processor.resolve_columns(
        dependent_var,
        distance_var,
        regressor_vars,
        origin_income_var,
        destination_income_var,
        origin_var=origin_var,
        destination_var=destination_var,
    )
    return estimator.fit(data, columns, robust=robust).get_summary()
