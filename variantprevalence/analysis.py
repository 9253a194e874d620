# File: variantprevalence/analysis.py
# Location: variantprevalence/variantprevalence/analysis.py
"""
Prevalence analysis module.

Provides:
- compute_confidence_intervals: exact binomial CI per variant category.
- compute_power_analysis: z-test power for each configured literature comparison.
- compute_population_comparisons: Fisher's exact test against reference
  populations, with optional multiple testing correction and significance bands.
- build_summary_table: manuscript summary rows (counts with CIs, power).
- run_analysis: runs all of the above from a configuration dictionary.

All tables carry unrounded fractions; percent conversion and rounding are
done by the report and exporter modules.

Configuration Keys
------------------
- "confidence_level": float
    Confidence level for binomial and odds ratio intervals. Default: 0.95.
- "alpha": float
    Significance level for the power calculation. Default: 0.05.
- "correction_method": str
    "fdr" (Benjamini-Hochberg), "bonferroni" or "none". Default: "none".
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping

import numpy as np
import pandas as pd
import statsmodels.stats.multitest as smm

from .cohort import build_observations, build_population_comparisons, build_power_comparisons
from .errors import InputValidationError
from .estimator import (
    compare_proportions,
    comparison_power,
    exact_confidence_interval,
    significance_band,
)
from .models import FisherComparison, PowerComparison, VariantObservation, validate_level

logger = logging.getLogger("variantprevalence")

CI_COLUMNS = ["variant", "cases", "total", "frequency", "ci_lower", "ci_upper"]
POWER_COLUMNS = [
    "comparison",
    "observed_freq",
    "reference_freq",
    "sample_size",
    "statistical_power",
]
COMPARISON_COLUMNS = [
    "gene",
    "cohort_cases",
    "cohort_total",
    "reference_cases",
    "reference_total",
    "cohort_freq",
    "reference_freq",
    "p_value",
    "corrected_p_value",
    "odds_ratio",
    "or_ci_lower",
    "or_ci_upper",
    "significance",
]
SUMMARY_COLUMNS = ["Statistic", "Value"]
CORRECTION_METHODS = ("fdr", "bonferroni", "none")


@dataclass
class AnalysisResults:
    """
    Tables produced by one analysis run.

    Fields
    ------
    confidence_intervals : pd.DataFrame
        One row per variant category (CI_COLUMNS).
    power_analysis : pd.DataFrame
        One row per power comparison (POWER_COLUMNS).
    population_comparisons : pd.DataFrame
        One row per reference comparison (COMPARISON_COLUMNS).
    summary : pd.DataFrame
        Manuscript summary (SUMMARY_COLUMNS).
    """

    confidence_intervals: pd.DataFrame
    power_analysis: pd.DataFrame
    population_comparisons: pd.DataFrame
    summary: pd.DataFrame


def compute_confidence_intervals(
    observations: Mapping[str, VariantObservation], conf_level: float = 0.95
) -> pd.DataFrame:
    """
    Compute Clopper-Pearson intervals for every variant category.

    Parameters
    ----------
    observations : mapping of str to VariantObservation
        Variant categories keyed by label, in reporting order.
    conf_level : float
        Confidence level. Default: 0.95.

    Returns
    -------
    pd.DataFrame
        Columns: variant, cases, total, frequency, ci_lower, ci_upper.
    """
    logger.debug(f"Computing {conf_level:.0%} exact CIs for {len(observations)} categories...")
    rows = []
    for label, obs in observations.items():
        ci = exact_confidence_interval(obs.cases, obs.total, conf_level)
        rows.append(
            {
                "variant": label,
                "cases": obs.cases,
                "total": obs.total,
                "frequency": ci.point_estimate,
                "ci_lower": ci.lower,
                "ci_upper": ci.upper,
            }
        )
    return pd.DataFrame(rows, columns=CI_COLUMNS)


def compute_power_analysis(
    comparisons: Mapping[str, PowerComparison], alpha: float = 0.05
) -> pd.DataFrame:
    """
    Compute two-proportion z-test power for each comparison.

    Returns
    -------
    pd.DataFrame
        Columns: comparison, observed_freq, reference_freq, sample_size,
        statistical_power.
    """
    rows = []
    for label, comparison in comparisons.items():
        result = comparison_power(comparison, alpha)
        rows.append(
            {
                "comparison": label,
                "observed_freq": result.observed_freq,
                "reference_freq": result.reference_freq,
                "sample_size": result.sample_size,
                "statistical_power": result.power,
            }
        )
    logger.debug(f"Power computed for {len(rows)} comparisons")
    return pd.DataFrame(rows, columns=POWER_COLUMNS)


def apply_correction(pvals, method: str = "fdr") -> np.ndarray:
    """
    Apply multiple testing correction to a sequence of p-values.

    Parameters
    ----------
    pvals : sequence of float
        Raw p-values in [0, 1].
    method : str
        "fdr" (Benjamini-Hochberg), "bonferroni", or "none" (raw values returned).

    Returns
    -------
    np.ndarray
        Corrected p-values in input order.
    """
    if method not in CORRECTION_METHODS:
        raise InputValidationError(
            f"Unknown correction method '{method}', expected one of {CORRECTION_METHODS}",
            "correction_method",
            method,
        )
    pvals_array = np.asarray(pvals, dtype=float)
    if len(pvals_array) == 0 or method == "none":
        return pvals_array.copy()
    if method == "bonferroni":
        return smm.multipletests(pvals_array, method="bonferroni")[1]
    return smm.multipletests(pvals_array, method="fdr_bh")[1]


def compute_population_comparisons(
    comparisons: Mapping[str, FisherComparison],
    conf_level: float = 0.95,
    correction_method: str = "none",
) -> pd.DataFrame:
    """
    Run Fisher's exact test for each cohort vs reference comparison.

    The ``significance`` band is assigned from the raw p-value; the corrected
    p-value is reported alongside it.

    Returns
    -------
    pd.DataFrame
        Columns listed in COMPARISON_COLUMNS.
    """
    rows = []
    for label, comparison in comparisons.items():
        result = compare_proportions(comparison, conf_level)
        rows.append(
            {
                "gene": label,
                "cohort_cases": comparison.cohort_cases,
                "cohort_total": comparison.cohort_total,
                "reference_cases": comparison.reference_cases,
                "reference_total": comparison.reference_total,
                "cohort_freq": comparison.cohort_freq,
                "reference_freq": comparison.reference_freq,
                "p_value": result.p_value,
                "odds_ratio": result.odds_ratio,
                "or_ci_lower": result.ci_lower,
                "or_ci_upper": result.ci_upper,
                "significance": significance_band(result.p_value),
            }
        )

    if not rows:
        logger.warning("No population comparisons configured.")
        return pd.DataFrame(columns=COMPARISON_COLUMNS)

    results_df = pd.DataFrame(rows)
    results_df["corrected_p_value"] = apply_correction(
        results_df["p_value"].values, correction_method
    )
    logger.info(
        f"Population comparisons: {len(results_df)} tests, "
        f"{int((results_df['p_value'] < 0.05).sum())} with p<0.05"
    )
    return results_df[COMPARISON_COLUMNS]


def _format_count_with_ci(row: pd.Series, conf_level: float) -> str:
    return (
        f"{int(row['cases'])} ({row['frequency'] * 100:.1f}%, "
        f"{conf_level:.0%} CI: {row['ci_lower'] * 100:.1f}-{row['ci_upper'] * 100:.1f}%)"
    )


def build_summary_table(
    cfg: Dict[str, Any],
    ci_df: pd.DataFrame,
    power_df: pd.DataFrame,
    conf_level: float = 0.95,
) -> pd.DataFrame:
    """
    Build the manuscript summary table from ``cfg["summary"]``.

    Each entry names a statistic and exactly one source: ``sample_size``,
    a ``variant`` label (count with CI) or a ``power_comparison`` label.
    """
    ci_by_label = ci_df.set_index("variant")
    power_by_label = power_df.set_index("comparison")

    rows = []
    for entry in cfg.get("summary") or []:
        if not isinstance(entry, dict):
            raise InputValidationError(
                f"Entry in 'summary' must be an object, got {entry!r}", "summary"
            )
        statistic = entry.get("statistic")
        if "variant" in entry:
            label = entry["variant"]
            if label not in ci_by_label.index:
                raise InputValidationError(
                    f"Unknown variant '{label}' referenced in 'summary'", "variant", label
                )
            value = _format_count_with_ci(ci_by_label.loc[label], conf_level)
        elif "power_comparison" in entry:
            label = entry["power_comparison"]
            if label not in power_by_label.index:
                raise InputValidationError(
                    f"Unknown power comparison '{label}' referenced in 'summary'",
                    "power_comparison",
                    label,
                )
            value = f"{power_by_label.loc[label, 'statistical_power'] * 100:.1f}%"
        elif entry.get("sample_size"):
            sample_size = cfg.get("sample_size")
            if sample_size is None:
                raise InputValidationError(
                    f"Summary entry '{statistic}' reports sample_size, but none is configured",
                    "sample_size",
                )
            value = str(sample_size)
        else:
            raise InputValidationError(f"Summary entry has no value source: {entry}", "summary")
        rows.append({"Statistic": statistic, "Value": value})

    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def run_analysis(cfg: Dict[str, Any]) -> AnalysisResults:
    """
    Run the full prevalence analysis described by a configuration dictionary.

    Steps
    -----
    1. Build variant observations and comparisons (label-keyed).
    2. Exact confidence intervals per category.
    3. Power for each literature comparison.
    4. Fisher's exact tests against reference populations.
    5. Manuscript summary table.
    """
    conf_level = validate_level(cfg.get("confidence_level", 0.95), "confidence_level")
    alpha = validate_level(cfg.get("alpha", 0.05), "alpha")
    correction_method = cfg.get("correction_method", "none")
    if correction_method not in CORRECTION_METHODS:
        raise InputValidationError(
            f"Unknown correction method '{correction_method}', "
            f"expected one of {CORRECTION_METHODS}",
            "correction_method",
            correction_method,
        )

    observations = build_observations(cfg)
    power_comparisons = build_power_comparisons(cfg, observations)
    population_comparisons = build_population_comparisons(cfg, observations)
    logger.info(
        f"Analysing {len(observations)} variant categories, "
        f"{len(power_comparisons)} power comparisons, "
        f"{len(population_comparisons)} population comparisons"
    )

    ci_df = compute_confidence_intervals(observations, conf_level)
    power_df = compute_power_analysis(power_comparisons, alpha)
    comparison_df = compute_population_comparisons(
        population_comparisons, conf_level, correction_method
    )
    summary_df = build_summary_table(cfg, ci_df, power_df, conf_level)

    logger.debug("Prevalence analysis complete.")
    return AnalysisResults(
        confidence_intervals=ci_df,
        power_analysis=power_df,
        population_comparisons=comparison_df,
        summary=summary_df,
    )
