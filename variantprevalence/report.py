"""
Manuscript-style text report.

Each ``format_*`` function turns one result table into a list of lines;
``render_report`` joins the sections in the order they appear in the
manuscript. Nothing here computes statistics.
"""

import logging
from typing import Any, Dict, Iterable, List

import pandas as pd

from .analysis import AnalysisResults

logger = logging.getLogger("variantprevalence")


def _pct(value: float, decimals: int = 2) -> str:
    return f"{value * 100:.{decimals}f}%"


def _ci_line(row: pd.Series, conf_level: float) -> str:
    return (
        f"{row['frequency'] * 100:.2f}% ({conf_level:.0%} CI: "
        f"{row['ci_lower'] * 100:.2f}-{row['ci_upper'] * 100:.2f}%)"
    )


def format_confidence_intervals(ci_df: pd.DataFrame, conf_level: float = 0.95) -> List[str]:
    """Lines like ``PALB2: 4.59% (95% CI: 2.47-7.73%)``."""
    lines = ["=== CONFIDENCE INTERVALS FOR MANUSCRIPT ===", ""]
    for _, row in ci_df.iterrows():
        lines.append(f"{row['variant']}: {_ci_line(row, conf_level)}")
    return lines


def format_key_results(
    ci_df: pd.DataFrame, key_variants: Iterable[str], conf_level: float = 0.95
) -> List[str]:
    """Verification lines for the headline categories, looked up by label."""
    by_label = ci_df.set_index("variant")
    lines = ["=== KEY RESULTS VERIFICATION ==="]
    for label in key_variants:
        if label not in by_label.index:
            logger.warning(f"Key variant '{label}' not found in results, skipping.")
            continue
        lines.append(f"{label} frequency: {_ci_line(by_label.loc[label], conf_level)}")
    return lines


def format_power_analysis(power_df: pd.DataFrame) -> List[str]:
    lines = ["=== STATISTICAL POWER ANALYSIS ===", ""]
    for _, row in power_df.iterrows():
        lines.append(f"{row['comparison']}:")
        lines.append(
            f"  Observed: {_pct(row['observed_freq'])}, Reference: {_pct(row['reference_freq'])}"
        )
        lines.append(f"  Statistical Power: {_pct(row['statistical_power'], 1)}")
        lines.append("")
    return lines


def format_population_comparisons(
    comparison_df: pd.DataFrame,
    cohort_name: str = "Cohort",
    reference_name: str = "Reference",
    alpha: float = 0.05,
) -> List[str]:
    """Table 4 of the manuscript: cohort vs reference frequencies with Fisher p-values."""
    lines = ["=== POPULATION COMPARISON RESULTS ===", ""]
    if comparison_df.empty:
        lines.append("No population comparisons configured.")
        return lines

    cohort_n = int(comparison_df["cohort_total"].max())
    reference_n = int(comparison_df["reference_total"].max())
    lines.append(
        f"Comparison: {cohort_name} (n={cohort_n}) vs {reference_name} Literature (n≈{reference_n})"
    )
    lines.append("Statistical Method: Fisher's Exact Test")
    lines.append(f"Significance Level: α = {alpha}")
    lines.append("")
    for _, row in comparison_df.iterrows():
        lines.append(f"{row['gene']}:")
        lines.append(
            f"  {cohort_name}: {_pct(row['cohort_freq'])}, "
            f"{reference_name}: {_pct(row['reference_freq'])}"
        )
        lines.append(f"  p-value: {row['p_value']:.4f} ({row['significance']})")
        if row["corrected_p_value"] != row["p_value"]:
            lines.append(f"  corrected p-value: {row['corrected_p_value']:.4f}")
        lines.append("")
    return lines


def format_summary(summary_df: pd.DataFrame) -> List[str]:
    lines = ["=== SUMMARY STATISTICS FOR MANUSCRIPT ===", ""]
    if summary_df.empty:
        return lines
    width = int(summary_df["Statistic"].str.len().max())
    for _, row in summary_df.iterrows():
        lines.append(f"{row['Statistic']:<{width}}  {row['Value']}")
    return lines


def render_report(results: AnalysisResults, cfg: Dict[str, Any]) -> str:
    """Render every report section as a single string."""
    conf_level = cfg.get("confidence_level", 0.95)
    sections = [
        format_confidence_intervals(results.confidence_intervals, conf_level),
        format_key_results(results.confidence_intervals, cfg.get("key_variants") or [], conf_level),
        format_power_analysis(results.power_analysis),
        format_population_comparisons(
            results.population_comparisons,
            cfg.get("cohort_name", "Cohort"),
            cfg.get("reference_name", "Reference"),
            cfg.get("alpha", 0.05),
        ),
        format_summary(results.summary),
    ]
    return "\n".join("\n".join(section) + "\n" for section in sections)
