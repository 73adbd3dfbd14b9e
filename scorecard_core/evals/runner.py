"""
Evaluation run engine.

Runs a task over every example of a dataset, applies every scorer to each
(example, output) pair and assembles a Report in dataset order.

Failure policy:
- Configuration problems raise ConfigurationError before any task runs.
- A task failure marks every cell of that example; the run continues.
- A scorer failure marks only that cell.
- Cancellation (stop event or deadline) is checked between examples;
  examples never started are recorded as not attempted.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

from scorecard_core.config import settings
from scorecard_core.domain.exceptions import ConfigurationError, TaskFailure
from scorecard_core.runtime.context import RunContext

from .base import Example, Failure, FailureKind, Score, ScoreCell, ScoreInput, Scorer
from .report import ExampleResult, Report, compute_aggregates, compute_subset_rates

Task = Callable[[Any], Any]

# Default for task_timeout: use settings.EVAL_TASK_TIMEOUT_SECONDS. None disables the limit.
FROM_SETTINGS: Any = object()


class StopSignal(Protocol):
    """asyncio.Event, threading.Event or anything with ``is_set()``."""

    def is_set(self) -> bool:
        ...


def validate_scorers(scorers: Iterable[Scorer], *, require: bool = True) -> list[Scorer]:
    """
    Check scorer shape and name uniqueness.

    Raises:
        ConfigurationError: Empty list (when required), unnamed scorer,
            missing evaluate(), or duplicate names.
    """
    scorers = list(scorers)
    if require and not scorers:
        raise ConfigurationError("At least one scorer is required to compute aggregates")

    seen: set[str] = set()
    duplicates: list[str] = []
    for scorer in scorers:
        name = getattr(scorer, "name", None)
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Scorer {scorer!r} has no name")
        if not callable(getattr(scorer, "evaluate", None)):
            raise ConfigurationError(f"Scorer '{name}' has no evaluate() method")
        if name in seen:
            duplicates.append(name)
        seen.add(name)

    if duplicates:
        raise ConfigurationError(f"Duplicate scorer names: {sorted(set(duplicates))}")
    return scorers


def coerce_dataset(dataset: Iterable[Example | Mapping[str, Any]]) -> list[Example]:
    """
    Accept Examples or mapping records with an ``input`` key.

    Raises:
        ConfigurationError: For any entry without an input.
    """
    examples: list[Example] = []
    for index, item in enumerate(dataset):
        if isinstance(item, Example):
            examples.append(item)
        elif isinstance(item, Mapping) and "input" in item:
            examples.append(Example.from_record(item))
        else:
            raise ConfigurationError(f"Dataset entry {index} has no input: {item!r}")
    return examples


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class EvaluationRunner:
    """
    Runs evaluation suites against a fixed scorer list.

    Usage:
        runner = EvaluationRunner([conciseness_scorer(), clarity_scorer(judge)])
        report = await runner.run(dataset, summarize)
    """

    def __init__(
        self,
        scorers: Sequence[Scorer],
        *,
        concurrency: int | None = None,
        task_timeout: float | None = FROM_SETTINGS,
        require_scorers: bool = True,
        limiter: asyncio.Semaphore | None = None,
    ):
        """
        Args:
            scorers: Scorers in report column order; names must be unique.
            concurrency: Example pipelines in flight (1 = sequential).
                Defaults to settings.EVAL_CONCURRENCY.
            task_timeout: Seconds before an async task counts as failed;
                None disables the limit. Defaults to
                settings.EVAL_TASK_TIMEOUT_SECONDS.
            require_scorers: Reject an empty scorer list.
            limiter: Optional semaphore shared with other runs to bound
                total in-flight pipelines.

        Raises:
            ConfigurationError: For invalid scorers, concurrency or timeout.
        """
        self._scorers = validate_scorers(scorers, require=require_scorers)
        self._concurrency = concurrency if concurrency is not None else settings.EVAL_CONCURRENCY
        if self._concurrency < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {self._concurrency}")
        if task_timeout is FROM_SETTINGS:
            task_timeout = settings.EVAL_TASK_TIMEOUT_SECONDS
        if task_timeout is not None and task_timeout <= 0:
            raise ConfigurationError(f"task_timeout must be > 0 seconds, got {task_timeout}")
        self._task_timeout = task_timeout
        self._limiter = limiter

    @property
    def scorer_names(self) -> list[str]:
        return [s.name for s in self._scorers]

    async def run(
        self,
        dataset: Iterable[Example | Mapping[str, Any]],
        task: Task,
        *,
        name: str | None = None,
        context: RunContext | None = None,
        stop_event: StopSignal | None = None,
    ) -> Report:
        """
        Evaluate ``task`` over ``dataset``.

        Args:
            dataset: Ordered examples (or records with an ``input`` key).
            task: Sync or async callable taking an example input.
            name: Run name used in logs and the report.
            context: Run context (run id, variant, deadline).
            stop_event: Cooperative stop signal checked between examples.

        Returns:
            Report with exactly one entry per example, in dataset order.

        Raises:
            ConfigurationError: Invalid dataset entry or non-callable task.
        """
        examples = coerce_dataset(dataset)
        if not callable(task):
            raise ConfigurationError(f"Task {task!r} is not callable")

        ctx = context or RunContext.new(name)
        log = ctx.bind_logger()
        run_name = name or ctx.name or ctx.run_id
        log.info(
            f"Starting run '{run_name}': {len(examples)} examples x "
            f"{len(self._scorers)} scorers (concurrency={self._concurrency})"
        )

        start = time.monotonic()
        slots: list[ExampleResult | None] = [None] * len(examples)

        if self._concurrency == 1:
            await self._run_sequential(examples, task, slots, ctx, stop_event, log)
        else:
            await self._run_pool(examples, task, slots, ctx, stop_event, log)

        cancelled = any(slot is None for slot in slots)
        results = [
            slot if slot is not None else self._not_attempted(index, examples[index])
            for index, slot in enumerate(slots)
        ]
        if cancelled:
            skipped = sum(1 for slot in slots if slot is None)
            log.warning(f"Run '{run_name}' cancelled; {skipped} examples not attempted")

        names = self.scorer_names
        report = Report(
            run_id=ctx.run_id,
            scorer_names=names,
            examples=results,
            aggregates=compute_aggregates(results, names),
            subset_rates=compute_subset_rates(results, names),
            name=run_name,
            variant=ctx.variant,
            cancelled=cancelled,
            started_at=ctx.started_at,
            duration_ms=(time.monotonic() - start) * 1000,
        )

        summary = ", ".join(
            f"{n}={v:.3f}" if v is not None else f"{n}=n/a" for n, v in report.aggregates.items()
        )
        log.info(f"Finished run '{run_name}' in {report.duration_ms:.0f}ms: {summary or 'no scores'}")
        return report

    # --- Scheduling ---

    def _should_stop(self, ctx: RunContext, stop_event: StopSignal | None) -> bool:
        if stop_event is not None and stop_event.is_set():
            return True
        return ctx.is_expired()

    async def _run_sequential(self, examples, task, slots, ctx, stop_event, log) -> None:
        for index, example in enumerate(examples):
            if self._should_stop(ctx, stop_event):
                return
            slots[index] = await self._evaluate_example(index, example, task, log)

    async def _run_pool(self, examples, task, slots, ctx, stop_event, log) -> None:
        # Fixed-size worker pool; each worker only writes its own slot index
        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in range(len(examples)):
            queue.put_nowait(index)

        async def worker() -> None:
            while not self._should_stop(ctx, stop_event):
                try:
                    index = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                slots[index] = await self._evaluate_example(index, examples[index], task, log)

        workers = [
            asyncio.create_task(worker())
            for _ in range(min(self._concurrency, len(examples)))
        ]
        await asyncio.gather(*workers)

    # --- Per-example pipeline ---

    async def _evaluate_example(self, index: int, example: Example, task: Task, log) -> ExampleResult:
        if self._limiter is None:
            return await self._pipeline(index, example, task, log)
        async with self._limiter:
            return await self._pipeline(index, example, task, log)

    async def _pipeline(self, index: int, example: Example, task: Task, log) -> ExampleResult:
        start = time.monotonic()
        try:
            output = await self._invoke_task(task, example.input, index)
        except TaskFailure as exc:
            log.warning(f"Example {index}: {exc}")
            return self._failed_result(index, example, str(exc), start)
        except Exception as exc:
            log.warning(f"Example {index}: task failed: {_describe(exc)}")
            return self._failed_result(index, example, _describe(exc), start)

        score_input = ScoreInput(
            input=example.input,
            output=output,
            expected=example.expected,
            metadata=example.metadata,
        )
        scores: dict[str, ScoreCell] = {}
        for scorer in self._scorers:
            scores[scorer.name] = await self._apply_scorer(scorer, score_input, index, log)

        return ExampleResult(
            index=index,
            input=example.input,
            expected=example.expected,
            metadata=example.metadata,
            output=output,
            scores=scores,
            duration_ms=(time.monotonic() - start) * 1000,
        )

    async def _invoke_task(self, task: Task, value: Any, index: int) -> Any:
        result = task(value)
        if not inspect.isawaitable(result):
            return result
        if self._task_timeout is None:
            return await result
        try:
            return await asyncio.wait_for(result, timeout=self._task_timeout)
        except asyncio.TimeoutError:
            raise TaskFailure(f"Task timed out after {self._task_timeout}s", index=index) from None

    async def _apply_scorer(self, scorer: Scorer, score_input: ScoreInput, index: int, log) -> ScoreCell:
        try:
            raw = scorer.evaluate(score_input)
            if inspect.isawaitable(raw):
                raw = await raw
            return Score.coerce(raw)
        except Exception as exc:
            log.warning(f"Example {index}: scorer '{scorer.name}' failed: {_describe(exc)}")
            return Failure(FailureKind.SCORER, _describe(exc))

    def _failed_result(self, index: int, example: Example, reason: str, start: float) -> ExampleResult:
        failure = Failure(FailureKind.TASK, reason)
        return ExampleResult(
            index=index,
            input=example.input,
            expected=example.expected,
            metadata=example.metadata,
            output=None,
            scores={s.name: failure for s in self._scorers},
            task_failure=failure,
            duration_ms=(time.monotonic() - start) * 1000,
        )

    def _not_attempted(self, index: int, example: Example) -> ExampleResult:
        failure = Failure(FailureKind.NOT_ATTEMPTED, "Run cancelled before this example started")
        return ExampleResult(
            index=index,
            input=example.input,
            expected=example.expected,
            metadata=example.metadata,
            output=None,
            scores={s.name: failure for s in self._scorers},
        )


async def run_evaluation(
    dataset: Iterable[Example | Mapping[str, Any]],
    task: Task,
    scorers: Sequence[Scorer],
    **options: Any,
) -> Report:
    """
    One-shot helper: ``run(dataset, task, scorers) -> Report``.

    Runner options (concurrency, task_timeout, require_scorers, limiter) and
    run options (name, context, stop_event) may be passed as keywords.
    """
    run_keys = {"name", "context", "stop_event"}
    run_options = {k: v for k, v in options.items() if k in run_keys}
    runner_options = {k: v for k, v in options.items() if k not in run_keys}
    runner = EvaluationRunner(scorers, **runner_options)
    return await runner.run(dataset, task, **run_options)
