"""
Data Preparation Pipeline for Bonus Vetus OLS

This module resolves column roles, validates a bilateral gravity dataset,
removes rows that cannot take part in the estimation and constructs the
transformed variables (log distance and the income-normalised log flow).

Author: BVOLS Research Team
Date: 2025
Version: 1.0
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, List, Optional, Any, Sequence, Union

from ..config import EstimationConfig
from .data_structures import (
    GravityColumns,
    RESERVED_COLUMNS,
    MR_SUFFIX,
    LOG_DISTANCE,
    NORMALIZED_FLOW,
    LOG_NORMALIZED_FLOW,
)
from .exceptions import ConfigurationError, DataError


class GravityDataProcessor:
    """
    Validation and variable construction for bilateral gravity datasets
    """

    def __init__(self, config: Optional[EstimationConfig] = None):
        """
        Initialize the data processor

        Args:
            config: Estimation configuration object
        """
        self.config = config or EstimationConfig()
        self.logger = logging.getLogger(__name__)

        # Processing metadata
        self.processing_log = []

    def resolve_columns(self,
                        dependent_var: str,
                        distance_var: str,
                        regressor_vars: Union[str, Sequence[str], None],
                        origin_income_var: str,
                        destination_income_var: str,
                        origin_var: Optional[str] = None,
                        destination_var: Optional[str] = None) -> GravityColumns:
        """
        Resolve caller-supplied column names into column roles

        Args:
            dependent_var: Bilateral flow column
            distance_var: Bilateral distance column
            regressor_vars: Additional bilateral regressors (one name or a sequence)
            origin_income_var: Income of the origin country
            destination_income_var: Income of the destination country
            origin_var: Origin country code column (default from config)
            destination_var: Destination country code column (default from config)

        Returns:
            GravityColumns

        Raises:
            ConfigurationError: If a name is not a non-empty string, a regressor
                is repeated, reuses another role's column or a reserved name
        """
        origin_var = origin_var if origin_var is not None else self.config.origin_var
        destination_var = destination_var if destination_var is not None else self.config.destination_var

        roles = {
            "dependent_var": dependent_var,
            "distance_var": distance_var,
            "origin_income_var": origin_income_var,
            "destination_income_var": destination_income_var,
            "origin_var": origin_var,
            "destination_var": destination_var,
        }
        for role, name in roles.items():
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"'{role}' must be a non-empty column name, got {name!r}")

        if origin_var == destination_var:
            raise ConfigurationError(
                f"Origin and destination code columns must differ, both are '{origin_var}'"
            )
        if origin_income_var == destination_income_var:
            self.logger.warning(f"Origin and destination income share the column '{origin_income_var}'")

        if regressor_vars is None:
            regressors = []
        elif isinstance(regressor_vars, str):
            regressors = [regressor_vars]
        elif isinstance(regressor_vars, (list, tuple, pd.Index)):
            regressors = list(regressor_vars)
        else:
            raise ConfigurationError(
                f"'regressor_vars' must be a list of column names, got {type(regressor_vars).__name__}"
            )

        for name in regressors:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"Regressor names must be non-empty strings, got {name!r}")

        duplicates = sorted({name for name in regressors if regressors.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Regressors listed more than once: {duplicates}", columns=duplicates)

        role_columns = set(roles.values())
        clashing = [name for name in regressors if name in role_columns]
        if clashing:
            raise ConfigurationError(
                f"Regressors {clashing} are already used as flow, distance, income or country columns",
                columns=clashing,
            )

        reserved = [name for name in regressors
                    if name in RESERVED_COLUMNS or name.endswith(MR_SUFFIX)]
        if reserved:
            raise ConfigurationError(
                f"Regressors {reserved} collide with derived column names "
                f"(reserved: {sorted(RESERVED_COLUMNS)} and any '*{MR_SUFFIX}' name)",
                columns=reserved,
            )

        return GravityColumns(
            flow=dependent_var,
            distance=distance_var,
            origin_income=origin_income_var,
            destination_income=destination_income_var,
            regressors=tuple(regressors),
            origin=origin_var,
            destination=destination_var,
        )

    def validate(self, data: pd.DataFrame, columns: GravityColumns) -> None:
        """
        Check that every named column exists and numeric columns are numeric

        Raises:
            ConfigurationError: If data is not a DataFrame
            DataError: If columns are missing, non-numeric, or data is empty
        """
        if not isinstance(data, pd.DataFrame):
            raise ConfigurationError(f"'data' must be a pandas DataFrame, got {type(data).__name__}")

        missing = [name for name in columns.required_columns if name not in data.columns]
        if missing:
            raise DataError(f"Columns not found in data: {missing}", columns=missing)

        if data.empty:
            raise DataError("Dataset is empty")

        non_numeric = [name for name in columns.numeric_columns
                       if not pd.api.types.is_numeric_dtype(data[name])]
        if non_numeric:
            raise DataError(f"Columns must be numeric: {non_numeric}", columns=non_numeric)

    def clean(self, data: pd.DataFrame, columns: GravityColumns) -> pd.DataFrame:
        """
        Remove or reject rows that cannot enter the estimation

        Rows with missing values in any used column and rows with non-positive
        or infinite flow, distance or income are dropped or rejected according
        to the configuration. The input frame is not modified.

        Returns:
            Copy of the retained rows

        Raises:
            DataError: On offending rows the configuration does not allow
                dropping, or if no rows remain
        """
        n_input = len(data)
        cleaned = data.copy()

        incomplete = cleaned[columns.required_columns].isna().any(axis=1)
        n_incomplete = int(incomplete.sum())
        if n_incomplete:
            offending = [name for name in columns.required_columns if cleaned[name].isna().any()]
            if not self.config.drop_incomplete:
                raise DataError(
                    f"{n_incomplete} rows have missing values in columns {offending}",
                    columns=offending,
                )
            self.logger.warning(f"Dropping {n_incomplete} incomplete rows (missing values in {offending})")
            cleaned = cleaned.loc[~incomplete]
            self.processing_log.append({'step': 'drop_incomplete', 'rows_dropped': n_incomplete,
                                        'columns': offending})

        non_finite = pd.Series(False, index=cleaned.index)
        offending = []
        for name in columns.numeric_columns:
            bad = ~np.isfinite(cleaned[name].to_numpy(dtype=float))
            if bad.any():
                offending.append(name)
                non_finite |= bad
        if offending:
            raise DataError(f"{int(non_finite.sum())} rows have infinite values in columns {offending}",
                            columns=offending)

        nonpositive = pd.Series(False, index=cleaned.index)
        offending = []
        for name in columns.positive_columns:
            bad = cleaned[name] <= 0
            if bad.any():
                offending.append(name)
                nonpositive |= bad
        n_nonpositive = int(nonpositive.sum())
        if n_nonpositive:
            if not self.config.drop_nonpositive:
                raise DataError(
                    f"{n_nonpositive} rows have non-positive values in columns {offending}; "
                    f"the logarithm is undefined",
                    columns=offending,
                )
            self.logger.warning(f"Dropping {n_nonpositive} rows with non-positive values in {offending}")
            cleaned = cleaned.loc[~nonpositive]
            self.processing_log.append({'step': 'drop_nonpositive', 'rows_dropped': n_nonpositive,
                                        'columns': offending})

        if cleaned.empty:
            raise DataError(f"No rows left after cleaning ({n_input} input rows)")

        self.logger.info(f"Retained {len(cleaned)}/{n_input} bilateral records")
        return cleaned

    def check_role_balance(self, data: pd.DataFrame, columns: GravityColumns) -> Dict[str, List[Any]]:
        """
        Find countries that appear only as origin or only as destination

        Returns:
            dict with 'origin_only' and 'destination_only' code lists

        Raises:
            DataError: If roles are unbalanced and the configuration requires balance
        """
        origins = set(data[columns.origin].unique())
        destinations = set(data[columns.destination].unique())

        imbalance = {
            'origin_only': sorted(origins - destinations, key=str),
            'destination_only': sorted(destinations - origins, key=str),
        }

        if imbalance['origin_only'] or imbalance['destination_only']:
            message = (f"Countries appearing in only one role: "
                       f"origin only {imbalance['origin_only']}, "
                       f"destination only {imbalance['destination_only']}")
            if self.config.require_balanced_roles:
                raise DataError(message, columns=[columns.origin, columns.destination])
            self.logger.warning(message + "; means use the partners present")

        self.logger.info(f"{len(origins)} origin and {len(destinations)} destination countries")
        return imbalance

    def transform_variables(self, data: pd.DataFrame, columns: GravityColumns) -> pd.DataFrame:
        """
        Construct log distance and the income-normalised log flow

        Args:
            data: Cleaned dataset (strictly positive flow, distance, incomes)
            columns: Column roles

        Returns:
            Copy of data with log_distance, normalized_flow and log_normalized_flow
        """
        transformed = data.copy()

        distance = transformed[columns.distance].to_numpy(dtype=float)
        flow = transformed[columns.flow].to_numpy(dtype=float)
        income_o = transformed[columns.origin_income].to_numpy(dtype=float)
        income_d = transformed[columns.destination_income].to_numpy(dtype=float)

        if (distance <= 0).any() or (flow <= 0).any() or (income_o <= 0).any() or (income_d <= 0).any():
            raise DataError("Flow, distance and incomes must be strictly positive before transformation",
                            columns=columns.positive_columns)

        transformed[LOG_DISTANCE] = np.log(distance)
        transformed[NORMALIZED_FLOW] = flow / (income_o * income_d)
        transformed[LOG_NORMALIZED_FLOW] = np.log(transformed[NORMALIZED_FLOW].to_numpy())

        for name in columns.regressors:
            transformed[name] = transformed[name].astype(float)

        self.processing_log.append({'step': 'transform_variables',
                                    'constructed': [LOG_DISTANCE, NORMALIZED_FLOW, LOG_NORMALIZED_FLOW]})
        return transformed

    def prepare(self, data: pd.DataFrame, columns: GravityColumns) -> pd.DataFrame:
        """
        Complete preparation pipeline: validate, clean, check roles, transform

        Returns:
            Transformed copy of the usable rows
        """
        self.processing_log = []
        self.validate(data, columns)
        cleaned = self.clean(data, columns)
        self.check_role_balance(cleaned, columns)
        return self.transform_variables(cleaned, columns)
