# File: variantprevalence/__init__.py
# Location: variantprevalence/variantprevalence/__init__.py

"""
variantprevalence Package.

This package provides modules for estimating the prevalence of pathogenic and
likely pathogenic variants (P/LPVs) in a patient cohort: exact binomial
confidence intervals, statistical power against literature frequencies,
and Fisher's exact comparisons with reference populations.
"""

from .version import __version__
