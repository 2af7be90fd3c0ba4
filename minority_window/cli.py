#!/usr/bin/env python3
"""
Command-line interface module for running the sliding-window sweep.
"""

import sys
import time
import argparse
import logging
from dataclasses import replace

from minority_window.config import (
    ScheduleConfig, DEFAULT_SCHEDULE, MAJORITY_CLASS_WEIGHT, POOL_SIZE_PER_CLASS,
    BALANCING_PRESETS, BALANCING_METHODS, TEST_SELECTION_MODES, get_balancing_preset,
)
from minority_window.data_io import load_pool, export_results
from minority_window.errors import MinorityWindowError
from minority_window.logging_utils import setup_logging
from minority_window.models import CLASSIFIERS, get_classifier
from minority_window.runner import run_experiment

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Measure classifier degradation as group A shrinks against a fixed group B"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the sliding-window sweep")
    run_parser.add_argument("--data", required=True, help="CSV file with features and a label column")
    run_parser.add_argument("--label-column", required=True, help="Name of the label column")
    run_parser.add_argument("--group-a", required=True, help="Label value of the shrinking group A")
    run_parser.add_argument("--group-b", required=True, help="Label value of the fixed group B")
    run_parser.add_argument(
        "--per-class", type=int, default=POOL_SIZE_PER_CLASS,
        help=f"Rows kept per group in the pool (default: {POOL_SIZE_PER_CLASS})"
    )
    run_parser.add_argument(
        "--classifier", choices=list(CLASSIFIERS.keys()), default="RandomForest",
        help="Classifier to train at each iteration"
    )
    run_parser.add_argument(
        "--balancing", choices=["none"] + list(BALANCING_PRESETS.keys()), default="none",
        help="Synthetic rebalancing preset applied from iteration 2 on"
    )
    run_parser.add_argument(
        "--balancing-method", choices=list(BALANCING_METHODS), default=None,
        help="Override the synthetic generator of the balancing preset"
    )
    run_parser.add_argument(
        "--majority-weight", type=float, nargs="?", const=MAJORITY_CLASS_WEIGHT, default=None,
        help=f"Weight group B in the random forest (flag alone: {MAJORITY_CLASS_WEIGHT})"
    )
    run_parser.add_argument(
        "--iterations", type=int, default=DEFAULT_SCHEDULE["num_iterations"],
        help=f"Number of iterations (default: {DEFAULT_SCHEDULE['num_iterations']})"
    )
    for flag, key, text in (
        ("--initial-size", "initial_group_A_size", "Group A size the window starts from"),
        ("--step-size", "step_size", "Group A rows removed per iteration before the 2/3 train split"),
        ("--test-a", "initial_test_A_size", "Group A test rows at iteration 1, one fewer per iteration"),
        ("--test-b", "initial_test_B_size", "Group B test rows at every iteration"),
        ("--group-b-size", "fixed_group_B_size", "Group B rows used at every iteration"),
    ):
        run_parser.add_argument(
            flag, type=int, default=DEFAULT_SCHEDULE[key], dest=key,
            help=f"{text} (default: {DEFAULT_SCHEDULE[key]})"
        )
    run_parser.add_argument(
        "--seed", type=int, default=DEFAULT_SCHEDULE["base_seed"],
        help=f"Base seed (default: {DEFAULT_SCHEDULE['base_seed']})"
    )
    run_parser.add_argument("--n-jobs", type=int, default=1, help="Parallel iterations (-1 for all cores)")
    run_parser.add_argument(
        "--strict", action="store_true",
        help="Fail an iteration when a test slice is short instead of truncating it"
    )
    run_parser.add_argument(
        "--test-selection", choices=list(TEST_SELECTION_MODES), default="prefix",
        help="Pick test rows by pool order (prefix) or by seeded draw (random)"
    )
    run_parser.add_argument("--top-k", type=int, default=10, help="Features kept per iteration in the top-K table")
    run_parser.add_argument("--output-dir", default="./results", help="Directory for result CSV files")
    run_parser.add_argument("--log-file", default=None, help="Write a full debug log to this file")
    run_parser.add_argument("--debug", action="store_true", help="Enable debug mode with more logging")
    run_parser.add_argument("--verbose", action="store_true", help="Enable verbose mode with detailed logging")
    return parser


def run_command(args: argparse.Namespace) -> int:
    """Execute the sweep once and export the result tables."""
    schedule = ScheduleConfig(
        num_iterations=args.iterations,
        initial_group_A_size=args.initial_group_A_size,
        step_size=args.step_size,
        initial_test_A_size=args.initial_test_A_size,
        initial_test_B_size=args.initial_test_B_size,
        fixed_group_B_size=args.fixed_group_B_size,
        base_seed=args.seed,
        on_insufficient="raise" if args.strict else "truncate",
        test_selection=args.test_selection,
    )
    balancing = get_balancing_preset(args.balancing)
    if balancing is not None and args.balancing_method:
        balancing = replace(balancing, method=args.balancing_method)

    overrides = {}
    if args.classifier == "RandomForest" and args.majority_weight is not None:
        overrides["majority_weight"] = args.majority_weight
    elif args.majority_weight is not None:
        logger.warning("--majority-weight only applies to RandomForest; ignoring it")
    classifier = get_classifier(args.classifier, **overrides)

    pool = load_pool(args.data, args.label_column, args.group_a, args.group_b, per_class=args.per_class)

    start = time.time()
    results = run_experiment(pool, schedule, classifier, balancing=balancing, n_jobs=args.n_jobs)
    elapsed = time.time() - start

    paths = export_results(results, args.output_dir, top_k=args.top_k)
    failed = results.failed_iterations()
    print(f"\nCompleted {len(results)} iterations in {elapsed:.1f}s ({len(failed)} failed)")
    for name, path in paths.items():
        print(f"  {name:16s}: {path}")
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    setup_logging(log_file=args.log_file, debug=args.debug, verbose=args.verbose)

    try:
        if args.command == "run":
            return run_command(args)
    except (MinorityWindowError, FileNotFoundError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"\nRun failed: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
