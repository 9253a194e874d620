"""Command-line interface for variantprevalence."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .analysis import CORRECTION_METHODS, run_analysis
from .config import load_config, merge_cli_overrides
from .errors import PrevalenceError
from .exporter import export_results
from .report import render_report
from .version import __version__

logger = logging.getLogger("variantprevalence")

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the variantprevalence CLI."""
    parser = argparse.ArgumentParser(
        description="variantprevalence: P/LPV prevalence statistics for a patient cohort."
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"variantprevalence {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=list(LOG_LEVEL_MAP),
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to a JSON study configuration (default: the bundled study dataset)",
        default=None,
    )

    # Statistical Analysis
    stats_group = parser.add_argument_group("Statistical Analysis")
    stats_group.add_argument(
        "--confidence-level",
        type=float,
        default=None,
        help="Confidence level for exact binomial and odds ratio intervals (config default: 0.95)",
    )
    stats_group.add_argument(
        "--alpha",
        type=float,
        default=None,
        help="Significance level for the power analysis (config default: 0.05)",
    )
    stats_group.add_argument(
        "--correction-method",
        choices=list(CORRECTION_METHODS),
        default=None,
        help="Multiple testing correction for the population comparisons (config default: none)",
    )

    # Output
    io_group = parser.add_argument_group("Output")
    io_group.add_argument(
        "--output-dir",
        default=".",
        help="Directory for the exported CSV files (default: current directory)",
    )
    io_group.add_argument(
        "--output-prefix", default=None, help="Prefix prepended to each exported file name"
    )
    io_group.add_argument(
        "--decimals",
        type=int,
        default=None,
        help="Decimal places for exported percentages (config default: 2)",
    )
    io_group.add_argument(
        "--no-export", action="store_true", help="Print the report without writing CSV files"
    )
    io_group.add_argument(
        "--quiet", action="store_true", help="Do not print the manuscript report to stdout"
    )

    return parser


def parse_args(args_list: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Parameters
    ----------
    args_list : list, optional
        List of arguments to parse. If None, uses sys.argv

    Returns
    -------
    argparse.Namespace
        Parsed arguments
    """
    parser = create_parser()
    return parser.parse_args(args_list)


def _configure_logging(args: argparse.Namespace) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    logger.setLevel(LOG_LEVEL_MAP[args.log_level])

    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(LOG_LEVEL_MAP[args.log_level])
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")


def main(args_list: Optional[List[str]] = None) -> int:
    """Run main entry point for the variantprevalence CLI.

    Steps:
        1. Parse arguments.
        2. Configure logging and load config.
        3. Apply CLI overrides to the configuration.
        4. Run the analysis.
        5. Print the manuscript report and export CSV files.

    Returns 0 on success and 1 when the configuration or the study data
    are invalid, or when the CSV files cannot be written.
    """
    args = parse_args(args_list)
    _configure_logging(args)

    start_time = datetime.datetime.now()
    logger.info(f"Run started at {start_time.isoformat()}")
    logger.debug(f"CLI arguments: {args}")

    try:
        cfg: Dict[str, Any] = merge_cli_overrides(load_config(args.config), args)
        logger.debug(f"Configuration loaded: {cfg}")
        results = run_analysis(cfg)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except (PrevalenceError, ValueError) as e:
        logger.error(f"Invalid study configuration: {e}")
        return 1

    if not args.quiet:
        print(render_report(results, cfg))

    if not args.no_export:
        try:
            written = export_results(
                results,
                args.output_dir,
                decimals=cfg.get("decimals", 2),
                prefix=cfg.get("output_prefix", ""),
            )
        except OSError as e:
            logger.error(f"Failed to export results to {args.output_dir}: {e}")
            return 1
        if not args.quiet:
            print("Results exported to CSV files:")
            for path in written:
                print(f"- {path}")

    logger.info(f"Run finished in {(datetime.datetime.now() - start_time).total_seconds():.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
