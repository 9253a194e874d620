"""
Cohort dataset construction.

Turns the ``variants``, ``power_comparisons`` and ``population_comparisons``
entries of a configuration dictionary into validated value objects. Every
cross-reference goes through the variant label, so reordering the dataset
cannot silently pair a comparison with the wrong category.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import InputValidationError
from .models import FisherComparison, PowerComparison, VariantObservation, validate_frequency

logger = logging.getLogger("variantprevalence")


def _require(entry: dict[str, Any], key: str, section: str) -> Any:
    if not isinstance(entry, dict):
        raise InputValidationError(
            f"Entry in '{section}' must be an object, got {entry!r}", section
        )
    if key not in entry:
        raise InputValidationError(f"Entry in '{section}' is missing '{key}': {entry}", key)
    return entry[key]


def build_observations(cfg: dict[str, Any]) -> dict[str, VariantObservation]:
    """
    Build the label -> VariantObservation mapping from ``cfg["variants"]``.

    Entries without a ``total`` use the cohort ``sample_size``. The mapping
    keeps configuration order.

    Raises
    ------
    InputValidationError
        On missing fields, invalid counts or duplicate labels.
    """
    entries = cfg.get("variants") or []
    if not entries:
        raise InputValidationError("Configuration defines no variants", "variants")
    default_total = cfg.get("sample_size")

    observations: dict[str, VariantObservation] = {}
    for entry in entries:
        label = _require(entry, "label", "variants")
        total = entry.get("total", default_total)
        if total is None:
            raise InputValidationError(
                f"Variant '{label}' has no total and no sample_size is configured", "total"
            )
        if label in observations:
            raise InputValidationError(f"Duplicate variant label '{label}'", "label", label)
        observations[label] = VariantObservation(
            label=label, cases=_require(entry, "cases", "variants"), total=total
        )

    logger.debug(f"Built {len(observations)} variant observations")
    return observations


def _lookup(observations: dict[str, VariantObservation], label: str, section: str):
    try:
        return observations[label]
    except KeyError:
        raise InputValidationError(
            f"Unknown variant '{label}' referenced in '{section}'", "variant", label
        )


def build_power_comparisons(
    cfg: dict[str, Any], observations: dict[str, VariantObservation]
) -> dict[str, PowerComparison]:
    """Build label -> PowerComparison from ``cfg["power_comparisons"]``."""
    comparisons: dict[str, PowerComparison] = {}
    for entry in cfg.get("power_comparisons") or []:
        label = _require(entry, "label", "power_comparisons")
        variant = _require(entry, "variant", "power_comparisons")
        obs = _lookup(observations, variant, "power_comparisons")
        if label in comparisons:
            raise InputValidationError(f"Duplicate power comparison '{label}'", "label", label)
        comparisons[label] = PowerComparison(
            label=label,
            observed_freq=obs.frequency,
            reference_freq=validate_frequency(
                _require(entry, "reference_freq", "power_comparisons"), "reference_freq"
            ),
            sample_size=obs.total,
        )
    return comparisons


def build_population_comparisons(
    cfg: dict[str, Any], observations: dict[str, VariantObservation]
) -> dict[str, FisherComparison]:
    """
    Build label -> FisherComparison from ``cfg["population_comparisons"]``.

    ``reference_total`` defaults to ``reference_sample_size``; when
    ``reference_cases`` is absent it is ``round(reference_freq * reference_total)``.
    """
    default_ref_total = cfg.get("reference_sample_size")
    comparisons: dict[str, FisherComparison] = {}
    for entry in cfg.get("population_comparisons") or []:
        label = _require(entry, "label", "population_comparisons")
        variant = _require(entry, "variant", "population_comparisons")
        obs = _lookup(observations, variant, "population_comparisons")
        ref_total = entry.get("reference_total", default_ref_total)
        if ref_total is None:
            raise InputValidationError(
                f"Comparison '{label}' has no reference_total and no reference_sample_size",
                "reference_total",
            )
        ref_cases = entry.get("reference_cases")
        if ref_cases is None:
            ref_freq = validate_frequency(
                _require(entry, "reference_freq", "population_comparisons"), "reference_freq"
            )
            ref_cases = int(round(ref_freq * ref_total))
            logger.debug(f"{label}: reference cases derived as {ref_cases}/{ref_total}")
        elif entry.get("reference_freq") is not None:
            ref_freq = validate_frequency(entry["reference_freq"], "reference_freq")
            implied = int(round(ref_freq * ref_total)) if isinstance(ref_total, int) else None
            if implied is not None and implied != ref_cases:
                logger.warning(
                    f"{label}: reference_freq {ref_freq} implies "
                    f"{implied}/{ref_total} reference carriers, "
                    f"but reference_cases is {ref_cases}; using reference_cases"
                )
        if label in comparisons:
            raise InputValidationError(f"Duplicate population comparison '{label}'", "label", label)
        comparisons[label] = FisherComparison(
            label=label,
            cohort_cases=obs.cases,
            cohort_total=obs.total,
            reference_cases=ref_cases,
            reference_total=ref_total,
        )
    return comparisons
