# File: variantprevalence/estimator.py
# Location: variantprevalence/variantprevalence/estimator.py
"""
Statistical estimator for carrier prevalence.

Provides:
- exact_confidence_interval: Clopper-Pearson interval for a binomial proportion.
- two_proportion_power: power of a two-sided z-test of an observed frequency
  against a reference frequency (normal approximation).
- fisher_exact_test: two-sided Fisher's exact test on a 2x2 table, with the
  conditional maximum-likelihood odds ratio and its exact confidence interval.
- significance_band: manuscript-style p-value label.

Every function is pure: inputs are validated up front and an
InputValidationError (or DomainError) is raised before anything is computed.
Results are unrounded; rounding is left to the report and export layers.

The scipy/statsmodels calls reproduce R's ``binom.confint(methods="exact")``
and ``fisher.test`` within double-precision rounding.
"""

import logging
import math
from typing import Optional

import numpy as np
from scipy.stats import fisher_exact, norm
from scipy.stats.contingency import odds_ratio
from statsmodels.stats.proportion import proportion_confint

from .errors import DomainError, InputValidationError
from .models import (
    ConfidenceInterval,
    FisherComparison,
    FisherResult,
    PowerComparison,
    PowerResult,
    validate_count,
    validate_frequency,
    validate_level,
)

logger = logging.getLogger("variantprevalence")

SIGNIFICANCE_THRESHOLDS = ((0.001, "p<0.001"), (0.01, "p<0.01"), (0.05, "p<0.05"))
NOT_SIGNIFICANT = "p>0.05"


def exact_confidence_interval(
    cases: int, total: int, conf_level: float = 0.95
) -> ConfidenceInterval:
    """
    Compute the Clopper-Pearson exact confidence interval for ``cases / total``.

    Parameters
    ----------
    cases : int
        Number of carriers (k).
    total : int
        Number of patients tested (n), must be positive and >= cases.
    conf_level : float
        Confidence level c in (0, 1). Default: 0.95.

    Returns
    -------
    ConfidenceInterval
        Point estimate k/n with lower = Beta^-1((1-c)/2; k, n-k+1) and
        upper = Beta^-1(1-(1-c)/2; k+1, n-k). The lower bound is exactly 0
        when k = 0 and the upper bound exactly 1 when k = n.

    Raises
    ------
    InputValidationError
        If the counts or confidence level are invalid.
    """
    cases = validate_count(cases, "cases")
    total = validate_count(total, "total", allow_zero=False)
    conf_level = validate_level(conf_level, "conf_level")
    if cases > total:
        raise InputValidationError(f"cases ({cases}) exceed total ({total})", "cases", cases)

    lower, upper = proportion_confint(cases, total, alpha=1 - conf_level, method="beta")
    lower = 0.0 if cases == 0 else float(lower)
    upper = 1.0 if cases == total else float(upper)
    estimate = cases / total

    logger.debug(
        f"Clopper-Pearson {conf_level:.0%} CI for {cases}/{total}: "
        f"{estimate:.6f} [{lower:.6f}, {upper:.6f}]"
    )
    return ConfidenceInterval(
        point_estimate=estimate, lower=lower, upper=upper, conf_level=conf_level
    )


def two_proportion_power(
    observed_freq: float,
    reference_freq: float,
    sample_size: int,
    alpha: float = 0.05,
) -> PowerResult:
    """
    Power of a two-sided z-test comparing an observed to a reference proportion.

    Steps
    -----
    1. Critical value z_c = Phi^-1(1 - alpha/2).
    2. Standard error under the null, se = sqrt(p_ref (1 - p_ref) / n).
    3. z = (p_obs - p_ref) / se.
    4. power = Phi(z - z_c) + Phi(-z - z_c), clamped to [0, 1].

    Raises
    ------
    DomainError
        If the reference frequency is 0 or 1 (the null standard error is zero).
    InputValidationError
        If a frequency lies outside [0, 1], the sample size is not positive,
        or alpha lies outside (0, 1).
    """
    p_obs = validate_frequency(observed_freq, "observed_freq")
    p_ref = validate_frequency(reference_freq, "reference_freq")
    n = validate_count(sample_size, "sample_size", allow_zero=False)
    alpha = validate_level(alpha, "alpha")
    if p_ref in (0.0, 1.0):
        raise DomainError(
            "power undefined when reference frequency is 0 or 1", "two_proportion_power"
        )

    z_crit = norm.ppf(1 - alpha / 2)
    se_null = math.sqrt(p_ref * (1 - p_ref) / n)
    z_stat = (p_obs - p_ref) / se_null
    power = float(norm.cdf(z_stat - z_crit) + norm.cdf(-z_stat - z_crit))
    power = max(0.0, min(1.0, power))

    logger.debug(
        f"Power for {p_obs:.6f} vs {p_ref:.6f} (n={n}, alpha={alpha}): "
        f"z={z_stat:.4f}, power={power:.6f}"
    )
    return PowerResult(
        observed_freq=p_obs, reference_freq=p_ref, sample_size=n, alpha=alpha, power=power
    )


def comparison_power(comparison: PowerComparison, alpha: float = 0.05) -> PowerResult:
    """Run two_proportion_power on a configured PowerComparison."""
    return two_proportion_power(
        comparison.observed_freq, comparison.reference_freq, comparison.sample_size, alpha
    )


def fisher_exact_test(a: int, b: int, c: int, d: int, conf_level: float = 0.95) -> FisherResult:
    """
    Two-sided Fisher's exact test on the table ``[[a, b], [c, d]]``.

    Row 1 is the cohort (cases, non-cases) and row 2 the reference population
    (cases, non-cases).

    Parameters
    ----------
    a, b, c, d : int
        Non-negative cell counts.
    conf_level : float
        Confidence level of the odds ratio interval. Default: 0.95.

    Returns
    -------
    FisherResult
        p-value summed over all tables with the same margins whose probability
        does not exceed the observed one; conditional MLE odds ratio; and the
        exact interval obtained by inverting the non-central hypergeometric test.

    Notes
    -----
    Zero cells give an odds ratio of 0 or ``inf`` (never an exception).
    A zero row or column total leaves a single admissible table: the p-value
    is 1.0, the odds ratio 0 and the interval (0, inf).
    """
    cells = [validate_count(v, name) for v, name in zip((a, b, c, d), "abcd")]
    conf_level = validate_level(conf_level, "conf_level")
    table = np.array(cells, dtype=np.int64).reshape(2, 2)

    if 0 in table.sum(axis=0) or 0 in table.sum(axis=1):
        logger.warning(f"Zero margin in table {table.tolist()}, returning p=1.0 and OR=0.")
        return FisherResult(
            p_value=1.0, odds_ratio=0.0, ci_lower=0.0, ci_upper=math.inf, conf_level=conf_level
        )

    _, p_value = fisher_exact(table, alternative="two-sided")
    or_result = odds_ratio(table, kind="conditional")
    ci = or_result.confidence_interval(confidence_level=conf_level, alternative="two-sided")

    result = FisherResult(
        p_value=min(1.0, float(p_value)),
        odds_ratio=float(or_result.statistic),
        ci_lower=float(ci.low),
        ci_upper=float(ci.high),
        conf_level=conf_level,
    )
    logger.debug(
        f"Fisher's exact test on {table.tolist()}: p={result.p_value:.6g}, "
        f"OR={result.odds_ratio:.4f} [{result.ci_lower:.4f}, {result.ci_upper:.4f}]"
    )
    return result


def compare_proportions(comparison: FisherComparison, conf_level: float = 0.95) -> FisherResult:
    """Run fisher_exact_test on the contingency table of a FisherComparison."""
    (a, b), (c, d) = comparison.table
    return fisher_exact_test(a, b, c, d, conf_level=conf_level)


def significance_band(p_value: Optional[float]) -> str:
    """
    Label a p-value as "p<0.001", "p<0.01", "p<0.05" or "p>0.05".

    Comparisons are strict, so a p-value of exactly 0.05 is "p>0.05".
    """
    if p_value is None:
        raise InputValidationError("p_value is required", "p_value", p_value)
    p = validate_frequency(p_value, "p_value")
    for threshold, label in SIGNIFICANCE_THRESHOLDS:
        if p < threshold:
            return label
    return NOT_SIGNIFICANT
