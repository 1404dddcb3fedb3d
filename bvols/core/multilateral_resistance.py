"""
Multilateral Resistance correction by double-demeaning

For every bilateral variable V the adjusted value of the record (i, j) is

    V_mr(i, j) = V(i, j) - ( mean_o[V](i) + mean_d[V](j) - mean[V] )

where mean_o[V](i) is the mean of V over all records with origin i,
mean_d[V](j) the mean over all records with destination j, and mean[V] the
mean over the whole dataset (Baier and Bergstrand, 2009, with simple averages).
"""

import logging
from typing import List, Optional

import numpy as np
import pandas as pd

from ..utils.data_structures import GravityColumns, MeanTables, mr_name
from ..utils.exceptions import ComputationError, DataError

logger = logging.getLogger(__name__)


class MultilateralResistanceAggregator:
    """
    Origin, destination and global means of the bilateral variables
    """

    def __init__(self, columns: GravityColumns):
        self.columns = columns
        self.logger = logging.getLogger(__name__)

    def _group_means(self, data: pd.DataFrame, key: str, variable: str) -> pd.Series:
        means = data.groupby(key, sort=True, observed=True)[variable].mean()
        return means.astype(float)

    def compute(self, data: pd.DataFrame, variables: Optional[List[str]] = None) -> MeanTables:
        """
        Build the mean tables for each variable, one variable at a time

        Args:
            data: Transformed dataset holding every variable to adjust
            variables: Variables to aggregate (default: log distance and the regressors)

        Returns:
            MeanTables
        """
        variables = variables if variables is not None else self.columns.adjusted_variables

        absent = [v for v in variables if v not in data.columns]
        if absent:
            raise DataError(f"Cannot aggregate variables not present in data: {absent}", columns=absent)

        origin_means = {}
        destination_means = {}
        global_means = {}

        for variable in variables:
            origin_means[variable] = self._group_means(data, self.columns.origin, variable)
            destination_means[variable] = self._group_means(data, self.columns.destination, variable)
            global_means[variable] = float(data[variable].mean())
            self.logger.debug(f"{variable}: {len(origin_means[variable])} origin groups, "
                              f"{len(destination_means[variable])} destination groups, "
                              f"global mean {global_means[variable]:.6g}")

        return MeanTables(
            origin_means=origin_means,
            destination_means=destination_means,
            global_means=global_means,
        )


def _lookup(codes: pd.Series, table: pd.Series, role: str, variable: str) -> np.ndarray:
    """Per-record value of a country-keyed table; unknown codes are an error"""
    unknown = ~codes.isin(table.index)
    if unknown.any():
        missing_codes = sorted(pd.unique(codes[unknown]), key=str)
        raise DataError(
            f"No {role} mean of '{variable}' for countries {missing_codes} "
            f"({int(unknown.sum())} records)",
            columns=[variable],
        )
    return table.reindex(codes.to_numpy()).to_numpy(dtype=float)


def apply_mr_demeaning(data: pd.DataFrame,
                       tables: MeanTables,
                       columns: GravityColumns,
                       variables: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Add the multilateral-resistance-adjusted column ``<v>_mr`` for each variable

    Args:
        data: Transformed dataset
        tables: Mean tables from MultilateralResistanceAggregator
        columns: Column roles (for the country code columns)
        variables: Variables to adjust (default: log distance and the regressors)

    Returns:
        Copy of data with one additional column per variable

    Raises:
        ComputationError: If a variable has no mean tables
        DataError: If a record's origin or destination has no table entry
    """
    variables = variables if variables is not None else columns.adjusted_variables

    incomplete = tables.missing_entries(variables)
    if incomplete:
        raise ComputationError(f"Mean tables incomplete: {incomplete}", columns=list(incomplete))

    adjusted = data.copy()
    origin_codes = adjusted[columns.origin]
    destination_codes = adjusted[columns.destination]

    for variable in variables:
        origin_term = _lookup(origin_codes, tables.origin_means[variable], "origin", variable)
        destination_term = _lookup(destination_codes, tables.destination_means[variable], "destination", variable)
        resistance = origin_term + destination_term - tables.global_means[variable]
        adjusted[mr_name(variable)] = adjusted[variable].to_numpy(dtype=float) - resistance

    logger.info(f"Applied multilateral resistance adjustment to {len(variables)} variables")
    return adjusted
