"""
Tests for the evaluation run engine.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from scorecard_core.domain.exceptions import ConfigurationError
from scorecard_core.evals import (
    EvaluationRunner,
    Example,
    Failure,
    FailureKind,
    Score,
    create_scorer,
    run_evaluation,
)
from scorecard_core.runtime.context import RunContext
from tests.scorecard_core.evals.fakes import ConcurrencyTracker


def always(value):
    return lambda x: value


def output_is_one(x):
    return 1.0 if x.output == 1 else 0.0


class TestRunShape:
    """Report shape: one entry per example, columns in scorer order."""

    @pytest.mark.asyncio
    async def test_one_entry_per_example_in_order(self):
        """Entries follow dataset order and carry the task output."""
        dataset = [Example(input=i) for i in range(5)]
        report = await run_evaluation(dataset, lambda x: x * 10, [create_scorer("A", always(1.0))])

        assert len(report.examples) == 5
        assert [r.index for r in report.examples] == [0, 1, 2, 3, 4]
        assert [r.output for r in report.examples] == [0, 10, 20, 30, 40]

    @pytest.mark.asyncio
    async def test_columns_follow_scorer_order(self):
        """Each entry has exactly one cell per scorer, named and ordered like the scorer list."""
        scorers = [create_scorer("Zeta", always(0.5)), create_scorer("Alpha", always(1.0))]
        report = await run_evaluation([Example(input="x")], lambda x: x, scorers)

        assert report.scorer_names == ["Zeta", "Alpha"]
        assert list(report.examples[0].scores) == ["Zeta", "Alpha"]
        assert list(report.aggregates) == ["Zeta", "Alpha"]

    @pytest.mark.asyncio
    async def test_every_cell_is_score_or_failure(self):
        """No cell is both or neither."""
        dataset = [Example(input=i) for i in range(4)]

        def task(x):
            if x == 2:
                raise RuntimeError("boom")
            return x

        report = await run_evaluation(dataset, task, [create_scorer("S", output_is_one)])

        for row in report.per_example:
            for cell in row.values():
                assert isinstance(cell, (Score, Failure))

    @pytest.mark.asyncio
    async def test_empty_dataset(self):
        """Zero examples gives zero entries and undefined aggregates."""
        report = await run_evaluation([], lambda x: x, [create_scorer("A", always(1.0)), create_scorer("B", always(0.0))])

        assert report.examples == []
        assert report.aggregates == {"A": None, "B": None}
        assert report.cancelled is False

    @pytest.mark.asyncio
    async def test_accepts_mapping_records(self):
        """Records with an input key are coerced to Examples."""
        report = await run_evaluation(
            [{"input": 1, "expected": 1, "metadata": {"id": "a"}}],
            lambda x: x,
            [create_scorer("Match", lambda x: x.output == x.expected)],
        )

        assert report.examples[0].expected == 1
        assert report.examples[0].metadata == {"id": "a"}
        assert report.examples[0].scores["Match"] == Score(1.0)

    @pytest.mark.asyncio
    async def test_sync_and_async_tasks(self):
        """Both plain functions and coroutines work as tasks."""

        async def async_task(x):
            await asyncio.sleep(0)
            return x.upper()

        scorers = [create_scorer("A", always(1.0))]
        sync_report = await run_evaluation([Example("hi")], str.upper, scorers)
        async_report = await run_evaluation([Example("hi")], async_task, scorers)

        assert sync_report.examples[0].output == "HI"
        assert async_report.examples[0].output == "HI"

    @pytest.mark.asyncio
    async def test_report_metadata(self):
        """Run id, name and variant come from the context."""
        ctx = RunContext.new("nightly").for_variant("v2")
        report = await run_evaluation([Example(1)], lambda x: x, [create_scorer("A", always(1.0))], context=ctx)

        assert report.run_id == ctx.run_id
        assert report.variant == "v2"
        assert report.name == "nightly"
        assert report.started_at == ctx.started_at


class TestConfigurationErrors:
    """Problems detected before any task runs."""

    @pytest.mark.asyncio
    async def test_duplicate_scorer_names_rejected_before_task_runs(self):
        """Duplicate names raise and the task is never invoked."""
        calls = []

        with pytest.raises(ConfigurationError, match="Duplicate scorer names"):
            await run_evaluation(
                [Example(1)],
                calls.append,
                [create_scorer("Same", always(1.0)), create_scorer("Same", always(0.0))],
            )

        assert calls == []

    def test_empty_scorer_list_rejected(self):
        """Aggregates need at least one scorer."""
        with pytest.raises(ConfigurationError):
            EvaluationRunner([])

    @pytest.mark.asyncio
    async def test_empty_scorer_list_allowed_when_not_required(self):
        """Output-only runs are possible when explicitly allowed."""
        report = await EvaluationRunner([], require_scorers=False).run([Example(1)], lambda x: x + 1)

        assert report.examples[0].output == 2
        assert report.aggregates == {}

    def test_invalid_concurrency_rejected(self):
        with pytest.raises(ConfigurationError):
            EvaluationRunner([create_scorer("A", always(1.0))], concurrency=0)

    @pytest.mark.parametrize("timeout", [0, -1, 0.0])
    def test_non_positive_task_timeout_rejected(self, timeout):
        """Zero is not a synonym for "no timeout"; None is."""
        with pytest.raises(ConfigurationError, match="task_timeout"):
            EvaluationRunner([create_scorer("A", always(1.0))], task_timeout=timeout)

    def test_scorer_without_evaluate_rejected(self):
        class NotAScorer:
            name = "Broken"

        with pytest.raises(ConfigurationError, match="evaluate"):
            EvaluationRunner([NotAScorer()])

    @pytest.mark.asyncio
    async def test_entry_without_input_rejected(self):
        with pytest.raises(ConfigurationError, match="no input"):
            await run_evaluation([{"expected": 1}], lambda x: x, [create_scorer("A", always(1.0))])

    @pytest.mark.asyncio
    async def test_non_callable_task_rejected(self):
        with pytest.raises(ConfigurationError):
            await run_evaluation([Example(1)], "not a task", [create_scorer("A", always(1.0))])


class TestFailureIsolation:
    """Task and scorer failures are recorded, never propagated."""

    @pytest.mark.asyncio
    async def test_task_failure_marks_only_that_example(self):
        """A task raising on example 2 of 3 leaves examples 1 and 3 scored."""

        def task(x):
            if x == "bad":
                raise ValueError("cannot handle")
            return 1

        report = await run_evaluation(
            [Example("a"), Example("bad"), Example("c")],
            task,
            [create_scorer("S", output_is_one)],
        )

        first, second, third = report.examples
        assert first.scores["S"] == Score(1.0)
        assert third.scores["S"] == Score(1.0)
        assert second.scores["S"].kind == FailureKind.TASK
        assert "cannot handle" in second.scores["S"].reason
        assert second.task_failure is not None
        assert second.output is None
        assert report.aggregates["S"] == 1.0

    @pytest.mark.asyncio
    async def test_task_failure_marks_every_scorer(self):
        report = await run_evaluation(
            [Example(1)],
            lambda x: 1 / 0,
            [create_scorer("A", always(1.0)), create_scorer("B", always(1.0))],
        )

        cells = report.examples[0].scores
        assert all(c.kind == FailureKind.TASK for c in cells.values())
        assert report.aggregates == {"A": None, "B": None}
        assert report.count(FailureKind.TASK) == 2

    @pytest.mark.asyncio
    async def test_scorer_failure_isolated_to_its_cell(self):
        """One scorer raising does not affect other scorers on the same example."""

        def fragile(x):
            raise RuntimeError("scorer exploded")

        report = await run_evaluation(
            [Example(1), Example(2)],
            lambda x: x,
            [create_scorer("Fragile", fragile), create_scorer("Solid", always(0.5))],
        )

        for row in report.examples:
            assert row.scores["Fragile"].kind == FailureKind.SCORER
            assert "scorer exploded" in row.scores["Fragile"].reason
            assert row.scores["Solid"] == Score(0.5)
            assert row.failed_scorers() == ["Fragile"]
        assert report.aggregates == {"Fragile": None, "Solid": 0.5}

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_scorer_failure(self):
        """Values outside [0, 1] are rejected, not clamped."""
        report = await run_evaluation([Example(1)], lambda x: x, [create_scorer("Over", always(1.5))])

        cell = report.examples[0].scores["Over"]
        assert isinstance(cell, Failure)
        assert cell.kind == FailureKind.SCORER

    @pytest.mark.asyncio
    async def test_unsupported_scorer_result_is_scorer_failure(self):
        report = await run_evaluation([Example(1)], lambda x: x, [create_scorer("Text", always("great"))])

        assert report.examples[0].scores["Text"].kind == FailureKind.SCORER

    @pytest.mark.asyncio
    async def test_zero_is_a_score_not_a_failure(self):
        report = await run_evaluation([Example(1)], lambda x: x, [create_scorer("Zero", always(0))])

        assert report.examples[0].scores["Zero"] == Score(0.0)
        assert report.aggregates["Zero"] == 0.0

    @pytest.mark.asyncio
    async def test_async_task_timeout(self):
        """A task exceeding the timeout becomes a task failure."""

        async def slow(x):
            await asyncio.sleep(1)
            return x

        report = await run_evaluation(
            [Example(1)], slow, [create_scorer("A", always(1.0))], task_timeout=0.05
        )

        cell = report.examples[0].scores["A"]
        assert cell.kind == FailureKind.TASK
        assert "timed out" in cell.reason

    @pytest.mark.asyncio
    async def test_settings_timeout_applies_by_default(self, monkeypatch):
        monkeypatch.setattr("scorecard_core.evals.runner.settings.EVAL_TASK_TIMEOUT_SECONDS", 0.05)

        async def slow(x):
            await asyncio.sleep(1)
            return x

        report = await run_evaluation([Example(1)], slow, [create_scorer("A", always(1.0))])

        assert report.examples[0].scores["A"].kind == FailureKind.TASK

    @pytest.mark.asyncio
    async def test_explicit_none_disables_settings_timeout(self, monkeypatch):
        monkeypatch.setattr("scorecard_core.evals.runner.settings.EVAL_TASK_TIMEOUT_SECONDS", 0.01)

        async def slowish(x):
            await asyncio.sleep(0.05)
            return x

        report = await run_evaluation(
            [Example(1)], slowish, [create_scorer("A", always(1.0))], task_timeout=None
        )

        assert report.examples[0].output == 1
        assert report.examples[0].scores["A"] == Score(1.0)


class TestAggregation:
    @pytest.mark.asyncio
    async def test_aggregate_is_mean_of_scores(self):
        values = iter([1.0, 0.0, 0.5, 0.5])

        report = await run_evaluation(
            [Example(i) for i in range(4)],
            lambda x: x,
            [create_scorer("S", lambda x: next(values))],
        )

        assert report.aggregates["S"] == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_aggregate_ignores_failed_cells(self):
        def partial(x):
            if x.output == 0:
                raise ValueError("no")
            return 0.25

        report = await run_evaluation(
            [Example(0), Example(1), Example(2)], lambda x: x, [create_scorer("P", partial)]
        )

        assert report.aggregates["P"] == pytest.approx(0.25)


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_run_keeps_dataset_order(self):
        """Report order is dataset order even when examples finish out of order."""
        tracker = ConcurrencyTracker(delays={0: 0.06, 1: 0.01, 2: 0.03})

        report = await run_evaluation(
            [Example(i) for i in range(3)],
            tracker,
            [create_scorer("A", always(1.0))],
            concurrency=3,
        )

        assert tracker.seen == [1, 2, 0]
        assert [r.output for r in report.examples] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_concurrency_bound_respected(self):
        tracker = ConcurrencyTracker()

        await run_evaluation(
            [Example(i) for i in range(6)],
            tracker,
            [create_scorer("A", always(1.0))],
            concurrency=2,
        )

        assert tracker.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_sequential_by_default(self):
        tracker = ConcurrencyTracker()

        await run_evaluation(
            [Example(i) for i in range(4)], tracker, [create_scorer("A", always(1.0))], concurrency=1
        )

        assert tracker.max_in_flight == 1
        assert tracker.seen == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_shared_limiter_bounds_pipelines(self):
        tracker = ConcurrencyTracker()
        limiter = asyncio.Semaphore(1)

        await run_evaluation(
            [Example(i) for i in range(4)],
            tracker,
            [create_scorer("A", always(1.0))],
            concurrency=4,
            limiter=limiter,
        )

        assert tracker.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_concurrent_and_sequential_reports_match(self):
        """Concurrency changes timing, never results."""
        dataset = [Example(i, expected=i % 2) for i in range(8)]
        scorers = [create_scorer("Parity", lambda x: x.output % 2 == x.expected)]

        sequential = await run_evaluation(dataset, lambda x: x, scorers, concurrency=1)
        concurrent = await run_evaluation(dataset, lambda x: x, scorers, concurrency=4)

        assert sequential.per_example == concurrent.per_example
        assert sequential.aggregates == concurrent.aggregates


class TestCancellation:
    @pytest.mark.asyncio
    async def test_stop_event_marks_remaining_examples_not_attempted(self):
        """The example in flight completes; later ones are recorded as not attempted."""
        stop = asyncio.Event()

        def task(x):
            stop.set()
            return 1

        report = await run_evaluation(
            [Example(i) for i in range(3)],
            task,
            [create_scorer("S", output_is_one)],
            stop_event=stop,
        )

        assert report.cancelled is True
        assert len(report.examples) == 3
        assert report.examples[0].scores["S"] == Score(1.0)
        for row in report.examples[1:]:
            assert row.scores["S"].kind == FailureKind.NOT_ATTEMPTED
        assert report.aggregates["S"] == 1.0

    @pytest.mark.asyncio
    async def test_stop_event_in_concurrent_run(self):
        stop = asyncio.Event()

        async def task(x):
            await asyncio.sleep(0.01)
            stop.set()
            return x

        report = await run_evaluation(
            [Example(i) for i in range(10)],
            task,
            [create_scorer("A", always(1.0))],
            concurrency=2,
            stop_event=stop,
        )

        assert report.cancelled is True
        assert len(report.examples) == 10
        assert report.count(FailureKind.NOT_ATTEMPTED) >= 1
        attempted = [r for r in report.examples if isinstance(r.scores["A"], Score)]
        assert 1 <= len(attempted) <= 2

    @pytest.mark.asyncio
    async def test_expired_deadline_attempts_nothing(self):
        ctx = RunContext.new("late").with_deadline(datetime.now(timezone.utc) - timedelta(seconds=1))
        calls = []

        report = await run_evaluation(
            [Example(1), Example(2)],
            calls.append,
            [create_scorer("A", always(1.0))],
            context=ctx,
        )

        assert calls == []
        assert report.cancelled is True
        assert report.aggregates == {"A": None}
        assert report.count(FailureKind.NOT_ATTEMPTED) == 2
