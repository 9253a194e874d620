# File: variantprevalence/config.py
# Location: variantprevalence/variantprevalence/config.py

"""
Configuration management module.

This module handles loading configuration from a JSON file.
The default study (cohort size, significance level, variant counts and
reference comparisons) resides in config.json, which is included in
the installed package directory.

If no config_file is provided, this module loads the default
config.json from the package installation directory.
"""

import argparse
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger("variantprevalence")

# CLI option name -> configuration key
CLI_OVERRIDES = {
    "confidence_level": "confidence_level",
    "alpha": "alpha",
    "correction_method": "correction_method",
    "decimals": "decimals",
    "output_prefix": "output_prefix",
}


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    If no config_file is provided, the function loads the
    'config.json' from the installed package directory. If it fails
    to find or parse the file, it raises an error.

    Parameters
    ----------
    config_file : str, optional
        Path to a configuration file in JSON format. If None, defaults to
        the package-installed 'config.json'.

    Returns
    -------
    dict
        Configuration dictionary loaded from the JSON file.

    Raises
    ------
    FileNotFoundError
        If the specified configuration file does not exist.
    ValueError
        If there is an error parsing the JSON configuration file, or the
        top-level value is not an object.
    """
    if not config_file:
        config_file = os.path.join(os.path.dirname(__file__), "config.json")

    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON configuration: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration file '{config_file}' must contain a JSON object.")

    logger.debug(f"Loaded configuration from {config_file}")
    return config


def merge_cli_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """
    Return a copy of ``cfg`` updated with the CLI options the user actually set.

    Options left at None on the namespace keep the configured value.
    """
    merged = dict(cfg)
    for option, key in CLI_OVERRIDES.items():
        value = getattr(args, option, None)
        if value is not None:
            logger.debug(f"CLI override: {key}={value!r} (config: {cfg.get(key)!r})")
            merged[key] = value
    return merged
