"""
CLI Entrypoint Module

Cluster job scheduler simulation CLI:
- Loads the historical error table (--input) and picks the target site (--queue)
- Dispatches --n synthetic jobs round robin over the worker pool
- Prints the simulation summary to stdout

Usage:
    python -m clustersim.main --input errors.json --queue SITE_A --n 100
    python -m clustersim.main --input errors.yaml --queue SITE_A --n 100 --workers 10 --seed 7 --quiet
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from .config import ConfigurationError, get_num_workers, get_seed, get_time_slice, get_timeout_ceiling
from .error_model import ErrorModel
from .loader import load_error_table, require_site
from .metrics import format_summary
from .models import InjectionPolicy, SimulationConfig
from .sim import run_simulation


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clustersim",
        description="Simulate a job dispatcher over a worker pool with timeouts and historical error injection.",
    )
    parser.add_argument("--input", required=True, help="JSON or YAML file of site -> {error_code: count}.")
    parser.add_argument("--n", required=True, type=int, help="Number of jobs to dispatch.")
    parser.add_argument("--queue", required=True, help="Site/queue name whose error history is sampled.")
    parser.add_argument("--workers", type=int, default=None, help="Worker pool size (default: CLUSTERSIM_WORKERS or 20).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for job loads and error sampling.")
    parser.add_argument(
        "--success-weight",
        type=float,
        default=0.0,
        help="Implicit success count added to the site's error distribution.",
    )
    parser.add_argument(
        "--injection",
        choices=[p.value for p in InjectionPolicy],
        default=InjectionPolicy.ON_COMPLETION.value,
        help="When historical errors are injected (default: on-completion).",
    )
    parser.add_argument(
        "--strict-site",
        action="store_true",
        help="Treat a queue missing from the input file as a fatal error.",
    )
    parser.add_argument("--quiet", "--mute", action="store_true", help="Suppress per-job log output.")
    return parser


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """
    Merge CLI arguments over environment defaults.

    Raises:
        ConfigurationError: if any parameter is invalid.
    """
    if args.n <= 0:
        raise ConfigurationError(f"Invalid value for --n: {args.n}. It must be a positive integer.")
    if args.success_weight < 0:
        raise ConfigurationError(f"Invalid value for --success-weight: {args.success_weight}. It must be non-negative.")

    workers = args.workers if args.workers is not None else get_num_workers()
    seed = args.seed if args.seed is not None else get_seed()

    try:
        return SimulationConfig(
            total_jobs=args.n,
            num_workers=workers,
            site=args.queue,
            seed=seed,
            time_slice=get_time_slice(),
            timeout_ceiling=get_timeout_ceiling(),
            injection=InjectionPolicy(args.injection),
        )
    except ValidationError as exc:
        raise ConfigurationError(f"invalid simulation parameters: {exc}") from exc


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the cluster simulator CLI.

    Returns:
        0 on success, 1 on configuration error.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        table = load_error_table(args.input)
        if args.strict_site:
            require_site(table, config.site)
        error_model = ErrorModel.for_site(config.site, table, success_weight=args.success_weight)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Input File: {args.input}")
    print(f"Number of jobs: {config.total_jobs}")
    print(f"Queue Name: {config.site}")

    run = run_simulation(config, error_model)

    print()
    print(format_summary(run.summary))
    print(f"Simulated time: {run.simulated_time:.2f} seconds")
    print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
