"""
Test the Bonus Vetus OLS regression driver

Covers the formula and coefficient layout, HC1 versus classical standard
errors, recovery of known elasticities on synthetic data and the error paths.
"""

import numpy as np
import pandas as pd
import pytest

from bvols import (
    BonusVetusOLS,
    ComputationError,
    ConfigurationError,
    DataError,
    EstimationConfig,
    GravityDataProcessor,
    estimate_bvu,
    generate_gravity_data,
)


@pytest.fixture
def gravity_data():
    return generate_gravity_data(n_countries=15, seed=11)


def _design(summary):
    model = summary.results.model
    return model.exog, model.endog


def test_formula_and_coefficient_table(gravity_data):
    summary = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", robust=True, data=gravity_data)

    assert summary.formula == "log_normalized_flow ~ log_distance_mr + rta_mr"
    table = summary.coefficient_table()
    assert list(table.index) == ["Intercept", "log_distance_mr", "rta_mr"]
    assert list(table.columns) == ["estimate", "std_error", "t_value", "p_value"]
    assert summary.nobs == len(gravity_data)
    assert summary.df_resid == len(gravity_data) - 3
    assert summary.df_model == 2
    assert summary.robust and summary.cov_type == "HC1"

    print("✓ Formula and coefficient table test passed")


def test_multiple_regressors_keep_order(gravity_data):
    summary = estimate_bvu("flow", "distw", ["rta", "contig", "comcur"], "gdp_o", "gdp_d",
                           data=gravity_data)
    assert summary.formula == "log_normalized_flow ~ log_distance_mr + rta_mr + contig_mr + comcur_mr"
    assert summary.regressors == ["Intercept", "log_distance_mr", "rta_mr", "contig_mr", "comcur_mr"]


def test_distance_only_model(gravity_data):
    summary = estimate_bvu("flow", "distw", [], "gdp_o", "gdp_d", data=gravity_data)
    assert summary.formula == "log_normalized_flow ~ log_distance_mr"
    assert len(summary.coefficients) == 2


def test_robust_and_classical_share_coefficients(gravity_data):
    robust = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", robust=True, data=gravity_data)
    classical = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", robust=False, data=gravity_data)

    pd.testing.assert_series_equal(robust.coefficients, classical.coefficients)
    assert not np.allclose(robust.std_errors.to_numpy(), classical.std_errors.to_numpy())
    assert classical.cov_type == "nonrobust" and not classical.robust


def test_hc1_standard_errors_match_sandwich(gravity_data):
    summary = estimate_bvu("flow", "distw", ["rta", "contig"], "gdp_o", "gdp_d",
                           robust=True, data=gravity_data)
    X, y = _design(summary)
    n, k = X.shape

    bread = np.linalg.inv(X.T @ X)
    beta = bread @ X.T @ y
    residuals = y - X @ beta
    meat = X.T @ (X * residuals[:, None] ** 2)
    cov = bread @ meat @ bread * n / (n - k)

    np.testing.assert_allclose(summary.coefficients.to_numpy(), beta, rtol=1e-8)
    np.testing.assert_allclose(summary.std_errors.to_numpy(), np.sqrt(np.diag(cov)), rtol=1e-8)
    np.testing.assert_allclose(summary.t_values.to_numpy(), beta / np.sqrt(np.diag(cov)), rtol=1e-8)


def test_classical_standard_errors(gravity_data):
    summary = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", robust=False, data=gravity_data)
    X, y = _design(summary)
    n, k = X.shape

    beta = np.linalg.solve(X.T @ X, X.T @ y)
    residuals = y - X @ beta
    s2 = residuals @ residuals / (n - k)
    se = np.sqrt(np.diag(s2 * np.linalg.inv(X.T @ X)))

    np.testing.assert_allclose(summary.std_errors.to_numpy(), se, rtol=1e-8)
    assert summary.sigma == pytest.approx(np.sqrt(s2))


def test_recovers_known_elasticities():
    data = generate_gravity_data(n_countries=30, seed=5, include_self_pairs=True,
                                 beta_distance=-1.2, beta_regressors={"rta": 0.6}, noise_std=0.05)
    summary = estimate_bvu("flow", "distw", ["rta", "contig", "comcur"], "gdp_o", "gdp_d", data=data)

    assert summary.coefficients["log_distance_mr"] == pytest.approx(-1.2, abs=0.05)
    assert summary.coefficients["rta_mr"] == pytest.approx(0.6, abs=0.05)
    assert 0.0 < summary.r_squared < 1.0
    assert summary.f_pvalue < 0.01

    print("✓ Known elasticity recovery test passed")


def test_idempotent_and_input_untouched(gravity_data):
    snapshot = gravity_data.copy()
    first = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", data=gravity_data)
    second = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", data=gravity_data)

    pd.testing.assert_frame_equal(first.coefficient_table(), second.coefficient_table())
    pd.testing.assert_frame_equal(gravity_data, snapshot)


def test_estimator_exposes_intermediate_results(gravity_data):
    processor = GravityDataProcessor()
    columns = processor.resolve_columns("flow", "distw", ["rta"], "gdp_o", "gdp_d")
    model = BonusVetusOLS()

    with pytest.raises(ValueError, match="Model not fitted"):
        model.get_summary()

    model.fit(gravity_data, columns, robust=False)
    adjusted = model.get_adjusted_data()
    assert {"log_distance_mr", "rta_mr", "log_normalized_flow"} <= set(adjusted.columns)
    assert model.get_mean_tables().missing_entries(columns.adjusted_variables) == {}
    assert model.get_summary().cov_type == "nonrobust"


def test_summary_outputs(gravity_data):
    summary = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", data=gravity_data)

    intervals = summary.conf_int()
    assert list(intervals.columns) == ["lower", "upper"]
    assert (intervals["lower"] < summary.coefficients).all()
    assert (intervals["upper"] > summary.coefficients).all()

    as_dict = summary.to_dict()
    assert as_dict["formula"] == summary.formula
    assert set(as_dict["coefficients"]) == {"Intercept", "log_distance_mr", "rta_mr"}

    assert "log_normalized_flow ~ log_distance_mr + rta_mr" in str(summary.summary())


def test_config_robust_default_is_overridden_by_argument(gravity_data):
    config = EstimationConfig(robust=False)
    summary = estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", robust=True,
                           data=gravity_data, config=config)
    assert summary.cov_type == "HC1"


def test_non_boolean_robust_rejected(gravity_data):
    with pytest.raises(ConfigurationError, match="robust"):
        estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", robust="yes", data=gravity_data)


def test_invalid_config_rejected():
    with pytest.raises(ConfigurationError):
        BonusVetusOLS(EstimationConfig(rank_tolerance=-1.0))


def test_reserved_regressor_name_rejected(gravity_data):
    data = gravity_data.assign(dist_log=np.log(gravity_data["distw"]))
    with pytest.raises(ConfigurationError):
        estimate_bvu("flow", "distw", ["dist_log"], "gdp_o", "gdp_d", data=data)


def test_missing_column_and_data(gravity_data):
    with pytest.raises(DataError, match="wto"):
        estimate_bvu("flow", "distw", ["wto"], "gdp_o", "gdp_d", data=gravity_data)
    with pytest.raises(ConfigurationError, match="DataFrame"):
        estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d")


def test_zero_flow_rejected(gravity_data):
    data = gravity_data.copy()
    data.loc[3, "flow"] = 0.0
    with pytest.raises(DataError, match="flow"):
        estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", data=data)


def test_country_level_regressor_is_rank_deficient():
    data = generate_gravity_data(n_countries=8, seed=2, include_self_pairs=True)
    data["log_gdp_o"] = np.log(data["gdp_o"])
    with pytest.raises(ComputationError, match="rank deficient"):
        estimate_bvu("flow", "distw", ["log_gdp_o"], "gdp_o", "gdp_d", data=data)


def test_too_few_observations():
    data = pd.DataFrame({
        "iso_o": ["A", "B"], "iso_d": ["B", "A"],
        "flow": [5.0, 7.0], "distw": [100.0, 100.0],
        "gdp_o": [2.0, 3.0], "gdp_d": [3.0, 2.0], "rta": [1.0, 1.0],
    })
    with pytest.raises(ComputationError, match="observations"):
        estimate_bvu("flow", "distw", ["rta"], "gdp_o", "gdp_d", data=data)


if __name__ == '__main__':
    print("Running Bonus Vetus OLS tests...\n")
    frame = generate_gravity_data(n_countries=15, seed=11)
    test_formula_and_coefficient_table(frame)
    test_recovers_known_elasticities()
    print("\n✓ All Bonus Vetus OLS tests passed")
