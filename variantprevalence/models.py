"""
Value objects for prevalence estimation.

Defines the VariantObservation input record and the result records produced
by the estimator: ConfidenceInterval, PowerResult and FisherResult, plus the
PowerComparison and FisherComparison inputs built from the study configuration.
All of them are frozen dataclasses created fresh per computation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral
from typing import Any

from variantprevalence.errors import InputValidationError


def validate_count(value: Any, field: str, allow_zero: bool = True) -> int:
    """
    Check that ``value`` is a non-negative (or positive) integer count.

    Bools are rejected even though they are ints. Integral floats such as
    ``283.0`` (what pandas and JSON readers sometimes hand back) are accepted
    and converted.

    Raises
    ------
    InputValidationError
        If the value is not an integer or is out of range.
    """
    if isinstance(value, bool):
        raise InputValidationError(f"{field} must be an integer, got {value!r}", field, value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, Integral):
        raise InputValidationError(f"{field} must be an integer, got {value!r}", field, value)
    value = int(value)
    if value < 0 or (value == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise InputValidationError(f"{field} must be {bound}, got {value}", field, value)
    return value


def validate_frequency(value: Any, field: str) -> float:
    """Check that ``value`` is a finite frequency in [0, 1] and return it as float."""
    try:
        freq = float(value)
    except (TypeError, ValueError):
        raise InputValidationError(f"{field} must be a number, got {value!r}", field, value)
    if math.isnan(freq) or freq < 0.0 or freq > 1.0:
        raise InputValidationError(f"{field} must be within [0, 1], got {value!r}", field, value)
    return freq


def validate_level(value: Any, field: str) -> float:
    """Check that a confidence or significance level lies strictly inside (0, 1)."""
    level = validate_frequency(value, field)
    if level in (0.0, 1.0):
        raise InputValidationError(f"{field} must be strictly between 0 and 1", field, value)
    return level


@dataclass(frozen=True)
class VariantObservation:
    """
    Carrier count for one variant category in a cohort.

    Fields
    ------
    label : str
        Stable identifier of the category (e.g. "PALB2", "PALB2 c.1653T>A").
    cases : int
        Number of patients carrying a P/LPV in this category.
    total : int
        Number of patients tested.
    """

    label: str
    cases: int
    total: int

    def __post_init__(self) -> None:
        if not isinstance(self.label, str) or not self.label.strip():
            raise InputValidationError(
                "Variant label must be a non-empty string", "label", self.label
            )
        cases = validate_count(self.cases, "cases")
        total = validate_count(self.total, "total", allow_zero=False)
        if cases > total:
            raise InputValidationError(
                f"{self.label}: cases ({cases}) exceed total ({total})", "cases", cases
            )
        object.__setattr__(self, "cases", cases)
        object.__setattr__(self, "total", total)

    @property
    def frequency(self) -> float:
        """Observed carrier frequency ``cases / total``."""
        return self.cases / self.total


@dataclass(frozen=True)
class ConfidenceInterval:
    """Exact binomial interval for a single proportion, as fractions in [0, 1]."""

    point_estimate: float
    lower: float
    upper: float
    conf_level: float = 0.95

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class PowerComparison:
    """
    Observed cohort frequency set against a literature reference frequency.

    ``reference_freq`` is a configurable parameter: several of the published
    frequencies used for this study have no cited source.
    """

    label: str
    observed_freq: float
    reference_freq: float
    sample_size: int


@dataclass(frozen=True)
class PowerResult:
    """Power of the two-sided two-proportion z-test for one comparison."""

    observed_freq: float
    reference_freq: float
    sample_size: int
    alpha: float
    power: float


@dataclass(frozen=True)
class FisherComparison:
    """
    Cohort carriers set against carriers in a reference population.

    Reference counts are usually derived from a literature frequency and an
    assumed reference size, so both are configuration, not data.
    """

    label: str
    cohort_cases: int
    cohort_total: int
    reference_cases: int
    reference_total: int

    def __post_init__(self) -> None:
        for name in ("cohort", "reference"):
            cases = validate_count(getattr(self, f"{name}_cases"), f"{name}_cases")
            total = validate_count(
                getattr(self, f"{name}_total"), f"{name}_total", allow_zero=False
            )
            if cases > total:
                raise InputValidationError(
                    f"{self.label}: {name} cases ({cases}) exceed {name} total ({total})",
                    f"{name}_cases",
                    cases,
                )
            object.__setattr__(self, f"{name}_cases", cases)
            object.__setattr__(self, f"{name}_total", total)

    @property
    def table(self) -> list[list[int]]:
        """2x2 table ``[[cohort cases, cohort non-cases], [ref cases, ref non-cases]]``."""
        return [
            [self.cohort_cases, self.cohort_total - self.cohort_cases],
            [self.reference_cases, self.reference_total - self.reference_cases],
        ]

    @property
    def cohort_freq(self) -> float:
        return self.cohort_cases / self.cohort_total

    @property
    def reference_freq(self) -> float:
        return self.reference_cases / self.reference_total


@dataclass(frozen=True)
class FisherResult:
    """
    Result of Fisher's exact test on one 2x2 table.

    Fields
    ------
    p_value : float
        Two-sided exact p-value.
    odds_ratio : float
        Conditional maximum-likelihood odds ratio; 0 or ``inf`` for zero cells.
    ci_lower, ci_upper : float
        Exact confidence interval for the odds ratio.
    conf_level : float
        Confidence level of the interval.
    """

    p_value: float
    odds_ratio: float
    ci_lower: float
    ci_upper: float
    conf_level: float = 0.95
