"""
CSV export of analysis results.

Frequencies are written as percentages rounded to ``decimals`` places, the
way they appear in the manuscript tables. Power is written as a fraction
rounded the same way; p-values, odds ratios and their intervals are written
unrounded.
"""

import logging
from pathlib import Path
from typing import List, Union

import pandas as pd

from .analysis import AnalysisResults

logger = logging.getLogger("variantprevalence")

CONFIDENCE_INTERVALS_FILE = "confidence_intervals.csv"
POWER_ANALYSIS_FILE = "power_analysis.csv"
POPULATION_COMPARISONS_FILE = "population_comparisons.csv"
SUMMARY_FILE = "summary_statistics.csv"


def prepare_ci_table(ci_df: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    """Percent columns: frequency_percent, ci_lower, ci_upper."""
    out = ci_df[["variant", "cases", "total"]].copy()
    out["frequency_percent"] = (ci_df["frequency"] * 100).round(decimals)
    out["ci_lower"] = (ci_df["ci_lower"] * 100).round(decimals)
    out["ci_upper"] = (ci_df["ci_upper"] * 100).round(decimals)
    return out


def prepare_power_table(power_df: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    out = power_df.copy()
    out["statistical_power"] = out["statistical_power"].round(decimals + 2)
    return out


def prepare_comparison_table(comparison_df: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    """Replace the cohort/reference fractions by rounded percentages."""
    out = comparison_df.copy()
    out["cohort_freq"] = (comparison_df["cohort_freq"] * 100).round(decimals)
    out["reference_freq"] = (comparison_df["reference_freq"] * 100).round(decimals)
    return out


def export_results(
    results: AnalysisResults,
    output_dir: Union[str, Path],
    decimals: int = 2,
    prefix: str = "",
) -> List[Path]:
    """
    Write the result tables as CSV files into ``output_dir``.

    Parameters
    ----------
    results : AnalysisResults
        Tables from run_analysis.
    output_dir : str or Path
        Destination directory, created if missing.
    decimals : int
        Decimal places for percentages. Default: 2.
    prefix : str
        Optional file name prefix (e.g. a cohort name).

    Returns
    -------
    list of Path
        Written files, in the order confidence intervals, population
        comparisons, power analysis, summary.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tables = [
        (CONFIDENCE_INTERVALS_FILE, prepare_ci_table(results.confidence_intervals, decimals)),
        (
            POPULATION_COMPARISONS_FILE,
            prepare_comparison_table(results.population_comparisons, decimals),
        ),
        (POWER_ANALYSIS_FILE, prepare_power_table(results.power_analysis, decimals)),
        (SUMMARY_FILE, results.summary),
    ]

    written = []
    for name, df in tables:
        path = out_dir / f"{prefix}{name}"
        df.to_csv(path, index=False, na_rep="")
        logger.debug(f"Wrote {len(df)} rows to {path}")
        written.append(path)

    logger.info(f"Results exported to {len(written)} CSV files in {out_dir}")
    return written
