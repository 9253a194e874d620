"""Shared pytest fixtures for all test modules."""

import copy
from typing import Any, Dict

import pytest

from variantprevalence.config import load_config


@pytest.fixture(scope="session")
def _bundled_config() -> Dict[str, Any]:
    return load_config()


@pytest.fixture
def study_config(_bundled_config) -> Dict[str, Any]:
    """The bundled study configuration (283 patients, 11 categories), safe to mutate."""
    return copy.deepcopy(_bundled_config)


@pytest.fixture
def small_config() -> Dict[str, Any]:
    """Minimal two-category cohort with one comparison of each kind."""
    return {
        "sample_size": 100,
        "alpha": 0.05,
        "confidence_level": 0.95,
        "reference_sample_size": 500,
        "correction_method": "none",
        "variants": [
            {"label": "GENE_A", "cases": 10},
            {"label": "GENE_B", "cases": 0},
        ],
        "key_variants": ["GENE_A"],
        "power_comparisons": [
            {"label": "GENE_A vs Reference", "variant": "GENE_A", "reference_freq": 0.02},
        ],
        "population_comparisons": [
            {"label": "GENE_A", "variant": "GENE_A", "reference_freq": 0.02},
            {"label": "GENE_B", "variant": "GENE_B", "reference_cases": 4},
        ],
        "summary": [
            {"statistic": "Total Sample Size", "sample_size": True},
            {"statistic": "GENE_A P/LPVs", "variant": "GENE_A"},
            {"statistic": "Power (GENE_A)", "power_comparison": "GENE_A vs Reference"},
        ],
    }
