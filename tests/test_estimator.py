"""
Tests for the statistical estimator.

Covers the Clopper-Pearson interval, the two-proportion power calculation,
Fisher's exact test (including zero cells and zero margins) and the
significance bands, using the study's published numbers as reference points.
"""

import math

import pytest
from scipy.stats import fisher_exact

from variantprevalence.errors import DomainError, InputValidationError, PrevalenceError
from variantprevalence.estimator import (
    compare_proportions,
    comparison_power,
    exact_confidence_interval,
    fisher_exact_test,
    significance_band,
    two_proportion_power,
)
from variantprevalence.models import FisherComparison, PowerComparison


class TestExactConfidenceInterval:
    """Clopper-Pearson interval for a single proportion."""

    def test_palb2_interval(self):
        ci = exact_confidence_interval(13, 283)
        assert ci.point_estimate * 100 == pytest.approx(4.59, abs=0.01)
        assert ci.lower == pytest.approx(0.02468, abs=1e-4)
        assert ci.upper == pytest.approx(0.07727, abs=1e-4)
        assert ci.conf_level == 0.95

    def test_total_plpv_interval(self):
        ci = exact_confidence_interval(85, 283)
        assert ci.point_estimate * 100 == pytest.approx(30.04, abs=0.01)
        assert ci.lower * 100 == pytest.approx(24.7, abs=0.1)
        assert ci.upper * 100 == pytest.approx(35.8, abs=0.1)

    def test_matches_beta_quantiles(self):
        from scipy.stats import beta

        k, n = 7, 283
        ci = exact_confidence_interval(k, n)
        assert ci.lower == pytest.approx(beta.ppf(0.025, k, n - k + 1), rel=1e-9)
        assert ci.upper == pytest.approx(beta.ppf(0.975, k + 1, n - k), rel=1e-9)

    @pytest.mark.parametrize("n", [1, 2, 10, 283])
    def test_bounds_bracket_estimate(self, n):
        for k in range(n + 1):
            ci = exact_confidence_interval(k, n)
            assert 0.0 <= ci.lower <= ci.point_estimate <= ci.upper <= 1.0

    def test_zero_cases_lower_bound_is_zero(self):
        ci = exact_confidence_interval(0, 283)
        assert ci.lower == 0.0
        assert ci.point_estimate == 0.0
        assert 0.0 < ci.upper < 0.02

    def test_all_cases_upper_bound_is_one(self):
        ci = exact_confidence_interval(283, 283)
        assert ci.upper == 1.0
        assert ci.point_estimate == 1.0
        assert 0.98 < ci.lower < 1.0

    def test_wider_for_higher_confidence(self):
        widths = [
            exact_confidence_interval(13, 283, level).width for level in (0.5, 0.8, 0.9, 0.95, 0.99)
        ]
        assert widths == sorted(widths)

    @pytest.mark.parametrize(
        "cases,total",
        [(-1, 283), (284, 283), (0, 0), (1, -5), (1.5, 283), (True, 283)],
    )
    def test_invalid_counts_raise(self, cases, total):
        with pytest.raises(InputValidationError):
            exact_confidence_interval(cases, total)

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.5, -0.1])
    def test_invalid_confidence_level_raises(self, level):
        with pytest.raises(InputValidationError):
            exact_confidence_interval(13, 283, level)

    def test_integral_float_counts_accepted(self):
        assert exact_confidence_interval(13.0, 283.0) == exact_confidence_interval(13, 283)


class TestTwoProportionPower:
    """Normal-approximation power of the two-sided two-proportion z-test."""

    def test_palb2_vs_european_power(self):
        result = two_proportion_power(13 / 283, 0.012, 283, 0.05)
        assert result.power > 0.95
        assert result.sample_size == 283
        assert result.alpha == 0.05

    def test_non_brca_power(self):
        result = two_proportion_power(32 / 283, 0.065, 283)
        assert result.power == pytest.approx(0.907, abs=0.01)

    def test_no_difference_gives_alpha(self):
        result = two_proportion_power(0.1, 0.1, 283, alpha=0.05)
        assert result.power == pytest.approx(0.05, abs=1e-12)

    def test_monotonic_in_effect_size(self):
        reference = 0.05
        deltas = [0.0, 0.005, 0.01, 0.02, 0.04, 0.08, 0.2]
        above = [two_proportion_power(reference + d, reference, 283).power for d in deltas]
        below = [two_proportion_power(reference - d, reference, 283).power for d in deltas[:5]]
        assert above == sorted(above)
        assert below == sorted(below)

    def test_power_within_unit_interval(self):
        for observed in (0.0, 0.001, 0.3, 0.9, 1.0):
            for reference in (0.0002, 0.012, 0.5, 0.99):
                power = two_proportion_power(observed, reference, 283).power
                assert 0.0 <= power <= 1.0

    @pytest.mark.parametrize("reference", [0.0, 1.0])
    def test_degenerate_reference_frequency_raises(self, reference):
        with pytest.raises(DomainError, match="reference frequency is 0 or 1"):
            two_proportion_power(0.05, reference, 283)

    def test_domain_error_is_package_error(self):
        with pytest.raises(PrevalenceError):
            two_proportion_power(0.05, 0.0, 283)

    @pytest.mark.parametrize(
        "observed,reference,n,alpha",
        [
            (-0.1, 0.01, 283, 0.05),
            (0.05, 1.2, 283, 0.05),
            (0.05, 0.01, 0, 0.05),
            (0.05, 0.01, 283, 0.0),
            (float("nan"), 0.01, 283, 0.05),
        ],
    )
    def test_invalid_inputs_raise(self, observed, reference, n, alpha):
        with pytest.raises(InputValidationError):
            two_proportion_power(observed, reference, n, alpha)

    def test_comparison_power_uses_comparison_fields(self):
        comparison = PowerComparison("PALB2 vs European", 13 / 283, 0.012, 283)
        assert comparison_power(comparison) == two_proportion_power(13 / 283, 0.012, 283)


class TestFisherExactTest:
    """Fisher's exact test with conditional MLE odds ratio and exact CI."""

    def test_palb2_vs_european_is_significant(self):
        result = fisher_exact_test(13, 270, 10, 990)
        assert result.p_value < 0.001
        assert result.p_value == pytest.approx(0.000300, rel=0.01)
        assert result.odds_ratio > 1
        assert 1 < result.ci_lower <= result.odds_ratio <= result.ci_upper

    def test_chek2_vs_european_not_significant(self):
        result = fisher_exact_test(7, 276, 25, 975)
        assert result.p_value > 0.05
        assert result.ci_lower < 1 < result.ci_upper

    def test_p_value_matches_scipy(self):
        table = [[32, 251], [65, 935]]
        _, expected = fisher_exact(table)
        assert fisher_exact_test(32, 251, 65, 935).p_value == expected

    def test_symmetric_under_row_swap(self):
        forward = fisher_exact_test(13, 270, 10, 990)
        swapped = fisher_exact_test(10, 990, 13, 270)
        assert swapped.p_value == pytest.approx(forward.p_value, rel=1e-9)
        assert swapped.odds_ratio == pytest.approx(1 / forward.odds_ratio, rel=1e-6)

    def test_identical_proportions_give_p_one(self):
        result = fisher_exact_test(100, 900, 100, 900)
        assert result.p_value == pytest.approx(1.0, abs=1e-9)
        assert result.odds_ratio == pytest.approx(1.0, rel=1e-6)

    def test_zero_reference_cases_gives_infinite_odds_ratio(self):
        result = fisher_exact_test(5, 95, 0, 100)
        assert math.isinf(result.odds_ratio)
        assert math.isinf(result.ci_upper)
        assert 0 < result.ci_lower < math.inf
        assert 0.0 <= result.p_value <= 1.0

    def test_zero_cohort_cases_gives_zero_odds_ratio(self):
        result = fisher_exact_test(0, 283, 25, 975)
        assert result.odds_ratio == 0.0
        assert result.ci_lower == 0.0
        assert result.ci_upper > 0
        assert 0.0 <= result.p_value <= 1.0

    @pytest.mark.parametrize(
        "cells",
        [(0, 0, 5, 95), (5, 95, 0, 0), (0, 10, 0, 20), (10, 0, 20, 0), (0, 0, 0, 0)],
    )
    def test_zero_margin_returns_boundary_result(self, cells):
        result = fisher_exact_test(*cells)
        assert result.p_value == 1.0
        assert result.odds_ratio == 0.0
        assert result.ci_lower == 0.0
        assert math.isinf(result.ci_upper)

    def test_confidence_level_widens_interval(self):
        narrow = fisher_exact_test(13, 270, 10, 990, conf_level=0.8)
        wide = fisher_exact_test(13, 270, 10, 990, conf_level=0.99)
        assert wide.ci_lower <= narrow.ci_lower
        assert wide.ci_upper >= narrow.ci_upper
        assert wide.odds_ratio == narrow.odds_ratio

    @pytest.mark.parametrize("cells", [(-1, 5, 5, 5), (1.5, 5, 5, 5), (1, 5, None, 5)])
    def test_invalid_cells_raise(self, cells):
        with pytest.raises(InputValidationError):
            fisher_exact_test(*cells)

    def test_compare_proportions_builds_table(self):
        comparison = FisherComparison("PALB2", 13, 283, 10, 1000)
        assert comparison.table == [[13, 270], [10, 990]]
        assert compare_proportions(comparison) == fisher_exact_test(13, 270, 10, 990)


class TestSignificanceBand:
    """Manuscript p-value labels with strict thresholds."""

    @pytest.mark.parametrize(
        "p_value,expected",
        [
            (0.0, "p<0.001"),
            (0.0003, "p<0.001"),
            (0.001, "p<0.01"),
            (0.0099, "p<0.01"),
            (0.01, "p<0.05"),
            (0.0104, "p<0.05"),
            (0.0499999, "p<0.05"),
            (0.05, "p>0.05"),
            (0.38, "p>0.05"),
            (1.0, "p>0.05"),
        ],
    )
    def test_bands(self, p_value, expected):
        assert significance_band(p_value) == expected

    @pytest.mark.parametrize("p_value", [-0.01, 1.01, float("nan"), None])
    def test_invalid_p_value_raises(self, p_value):
        with pytest.raises(InputValidationError):
            significance_band(p_value)
