"""
Run offline evaluations for one suite.

Usage:
    python -m app.scripts.run_evals --suite summarizer
    python -m app.scripts.run_evals --suite alignment --split dev --variants few_shot zero_shot
    python -m app.scripts.run_evals --suite support --dataset my_queries.json --json-out report.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

from app.evals.presentation import render_comparison, render_report
from app.evals.suites import SUITES, get_suite, run_suite
from scorecard_core.domain.exceptions import ConfigurationError
from scorecard_core.evals.runner import FROM_SETTINGS
from scorecard_core.logging import setup_logging


async def run_evals(args: argparse.Namespace) -> int:
    suite = get_suite(args.suite)
    reports = await run_suite(
        suite,
        dataset_path=args.dataset,
        split=args.split,
        variant_names=args.variants,
        concurrency=args.concurrency,
        task_timeout=FROM_SETTINGS if args.timeout is None else args.timeout,
        max_parallel_variants=args.parallel_variants,
    )

    for report in reports.values():
        print(render_report(report))
        print()

    if len(reports) > 1:
        print("Variant comparison:")
        print(render_comparison(reports))

    if args.json_out:
        payload = {name: report.to_dict() for name, report in reports.items()}
        Path(args.json_out).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info(f"Wrote report to {args.json_out}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run an evaluation suite")
    parser.add_argument("--suite", required=True, choices=sorted(SUITES), help="Suite to run")
    parser.add_argument("--dataset", help="Path to a JSON/JSONL dataset (defaults to the bundled one)")
    parser.add_argument("--split", help="Dataset split, for datasets with named splits")
    parser.add_argument("--variants", nargs="+", help="Subset of suite variants to run")
    parser.add_argument("--concurrency", type=int, help="Examples evaluated in parallel per variant")
    parser.add_argument("--parallel-variants", type=int, help="Variants evaluated in parallel")
    parser.add_argument("--timeout", type=float, help="Per-task timeout in seconds")
    parser.add_argument("--json-out", help="Write the full report(s) as JSON to this path")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        return asyncio.run(run_evals(args))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
