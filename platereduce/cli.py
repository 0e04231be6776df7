"""
Command-line interface for plate reduction.

Usage:
    python -m platereduce <plate_url> --level 4 --end_t 120 [options]
    python -m platereduce <plate_url> -l 4 --end_t 120 -j 1 -n 8
    python -m platereduce --config job.yaml memory://plate
    python -m platereduce --help
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .config.reduce_config import ReduceConfig
from .errors import ArgumentError, PlateReduceError
from .processing.runner import run_job
from .reduce.kinds import ReducerKind


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises ArgumentError instead of exiting with status 2."""

    def error(self, message):
        raise ArgumentError(f"Error parsing input:\n\t{message}")


def setup_logging(verbose: bool = False):
    """
    Setup logging configuration.

    Args:
        verbose: Enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_argparse() -> argparse.ArgumentParser:
    """Set up argument parser."""
    functions = ", ".join(kind.display_name for kind in ReducerKind)
    parser = _ArgumentParser(
        prog="platereduce",
        description="Perform weighted averages of all layers within a tile inside a plate file",
    )

    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Plate URL (e.g. memory://name). Only the in-process memory:// "
             "backend is built in; other schemes are added with "
             "platereduce.store.register_backend",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="YAML job configuration; command-line flags override it",
    )
    parser.add_argument(
        "-j", "--job_id",
        type=int,
        default=None,
        help="Index of this job among num_jobs (default: 0)",
    )
    parser.add_argument(
        "-n", "--num_jobs",
        type=int,
        default=None,
        help="Number of cooperating jobs (default: 1)",
    )
    parser.add_argument(
        "--start_t",
        type=int,
        default=None,
        help="Input starting transaction ID range (default: 0)",
    )
    parser.add_argument(
        "--end_t",
        type=int,
        default=None,
        help="Input ending transaction ID range",
    )
    parser.add_argument(
        "-l", "--level",
        type=int,
        default=None,
        help="Level inside the plate in which to process. -1 will error out "
             "and show the number of levels available. (default: -1)",
    )
    parser.add_argument(
        "-f", "--function",
        type=str,
        default=None,
        help=f"Functions that are available are [{functions}] (default: WeightedAvg)",
    )
    parser.add_argument(
        "-t", "--transaction-id",
        dest="transaction_id",
        type=int,
        default=None,
        help="Transaction id to write to (default: 2000)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the job result as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser


def build_config(args: argparse.Namespace) -> ReduceConfig:
    """
    Merge the optional YAML file with command-line flags.

    Raises:
        ArgumentError: If the result is invalid or incomplete
    """
    config = ReduceConfig.from_yaml(args.config) if args.config else ReduceConfig.default()

    overrides = {
        "url": args.url,
        "level": args.level,
        "start_trans_id": args.start_t,
        "end_trans_id": args.end_t,
        "function": args.function,
        "transaction_id": args.transaction_id,
        "job_id": args.job_id,
        "num_jobs": args.num_jobs,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    config = replace(config, **overrides)
    config.require_complete()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (uses sys.argv if not provided)

    Returns:
        Exit code (0 for success, 1 for any error)
    """
    parser = setup_argparse()

    try:
        args = parser.parse_args(argv)
        setup_logging(args.verbose)
        config = build_config(args)
        result = run_job(config)
    except ArgumentError as e:
        print(e)
        print(parser.format_usage(), end="")
        return 1
    except PlateReduceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        summary = result.summary
        print(f"Job {result.assignment}: {summary.work_units} work units")
        print(f"  Cells reduced: {summary.cells_reduced}")
        print(f"  Cells skipped: {summary.cells_skipped}")
        print(f"  Tiles read: {summary.tiles_read}")
        print(f"  Time: {result.total_time_ms:.1f}ms")

    return 0


if __name__ == "__main__":
    sys.exit(main())
