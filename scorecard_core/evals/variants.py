"""
Variant cross-product runner.

Runs the same dataset and scorer list once per named Variant of the task
(e.g. alternate prompt strategies) and returns one Report per variant, in
declaration order.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Mapping, Sequence

from loguru import logger

from scorecard_core.config import settings
from scorecard_core.domain.exceptions import ConfigurationError
from scorecard_core.runtime.context import RunContext

from .base import Example, Scorer, Variant
from .report import Report
from .runner import FROM_SETTINGS, EvaluationRunner, StopSignal, Task, coerce_dataset, validate_scorers

TaskBuilder = Callable[[Variant], Task]


def validate_variants(variants: Iterable[Variant]) -> list[Variant]:
    """
    Raises:
        ConfigurationError: No variants, an unnamed variant, or duplicate names.
    """
    variants = list(variants)
    if not variants:
        raise ConfigurationError("At least one variant is required")

    seen: set[str] = set()
    for variant in variants:
        if not variant.name:
            raise ConfigurationError(f"Variant {variant!r} has no name")
        if variant.name in seen:
            raise ConfigurationError(f"Duplicate variant name: '{variant.name}'")
        seen.add(variant.name)
    return variants


async def run_variants(
    dataset: Iterable[Example | Mapping[str, Any]],
    scorers: Sequence[Scorer],
    variants: Sequence[Variant],
    task_builder: TaskBuilder,
    *,
    max_parallel_variants: int | None = None,
    shared_concurrency: int | None = None,
    concurrency: int | None = None,
    task_timeout: float | None = FROM_SETTINGS,
    name: str | None = None,
    context: RunContext | None = None,
    stop_event: StopSignal | None = None,
) -> dict[str, Report]:
    """
    Evaluate every variant against the same dataset and scorers.

    Args:
        dataset: Examples shared (read-only) by all variants.
        scorers: Scorers shared by all variants.
        variants: Variants in report order; names must be unique.
        task_builder: Builds the task for one variant.
        max_parallel_variants: Variants evaluated at once
            (default settings.EVAL_MAX_PARALLEL_VARIANTS).
        shared_concurrency: Optional cap on example pipelines in flight
            across all variants.
        concurrency: Per-variant example concurrency.
        task_timeout: Per-task timeout in seconds (None = no limit).
        name: Base run name.
        context: Base run context; each variant derives its own.
        stop_event: Cooperative stop signal shared by all variants.

    Returns:
        Mapping of variant name to Report, in variant declaration order.

    Raises:
        ConfigurationError: Before any task runs, for invalid variants,
            scorers, dataset entries, or a task_builder that fails.
    """
    variants = validate_variants(variants)
    scorers = validate_scorers(scorers)
    examples = coerce_dataset(dataset)

    parallel = (
        max_parallel_variants
        if max_parallel_variants is not None
        else settings.EVAL_MAX_PARALLEL_VARIANTS
    )
    if parallel < 1:
        raise ConfigurationError(f"max_parallel_variants must be >= 1, got {parallel}")
    if shared_concurrency is not None and shared_concurrency < 1:
        raise ConfigurationError(f"shared_concurrency must be >= 1, got {shared_concurrency}")

    limiter = asyncio.Semaphore(shared_concurrency) if shared_concurrency is not None else None
    runner = EvaluationRunner(
        scorers,
        concurrency=concurrency,
        task_timeout=task_timeout,
        limiter=limiter,
    )

    tasks: dict[str, Task] = {}
    for variant in variants:
        try:
            task = task_builder(variant)
        except Exception as exc:
            raise ConfigurationError(
                f"Could not build task for variant '{variant.name}': {exc}"
            ) from exc
        if not callable(task):
            raise ConfigurationError(
                f"task_builder returned a non-callable for variant '{variant.name}': {task!r}"
            )
        tasks[variant.name] = task
    base = context or RunContext.new(name)
    gate = asyncio.Semaphore(parallel)

    logger.info(
        f"Running {len(variants)} variants over {len(examples)} examples "
        f"(parallel variants={parallel})"
    )

    async def run_one(variant: Variant) -> Report:
        async with gate:
            return await runner.run(
                examples,
                tasks[variant.name],
                name=f"{base.name or 'eval'}:{variant.name}",
                context=base.for_variant(variant.name),
                stop_event=stop_event,
            )

    reports = await asyncio.gather(*[run_one(v) for v in variants])
    return {variant.name: report for variant, report in zip(variants, reports)}
