"""
Evaluation report model and aggregation.

A Report holds one ExampleResult per dataset entry (dataset order) and
per-scorer aggregates. Aggregates are the arithmetic mean of the scores
that were actually produced; a scorer with no defined score has an
undefined (None) aggregate rather than 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from statistics import fmean
from typing import Any, Mapping, Sequence

from .base import Failure, FailureKind, Score, ScoreCell


@dataclass
class ExampleResult:
    """Outcome of one example: the task output and one cell per scorer."""

    index: int
    input: Any
    expected: Any
    metadata: Mapping[str, Any] | None
    output: Any
    scores: dict[str, ScoreCell]
    task_failure: Failure | None = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.task_failure is None

    def failed_scorers(self) -> list[str]:
        return [name for name, cell in self.scores.items() if isinstance(cell, Failure)]


@dataclass
class Report:
    """Complete output of one evaluation run."""

    run_id: str
    scorer_names: list[str]
    examples: list[ExampleResult]
    aggregates: dict[str, float | None]
    subset_rates: dict[str, float | None] = field(default_factory=dict)
    name: str | None = None
    variant: str | None = None
    cancelled: bool = False
    started_at: datetime | None = None
    duration_ms: float = 0.0

    @property
    def per_example(self) -> list[dict[str, ScoreCell]]:
        return [r.scores for r in self.examples]

    def column(self, scorer_name: str) -> list[ScoreCell]:
        """All cells of one scorer in dataset order."""
        return [r.scores[scorer_name] for r in self.examples]

    def failures(self) -> list[tuple[int, str, Failure]]:
        """(example index, scorer name, failure) for every failed cell."""
        return [
            (r.index, name, cell)
            for r in self.examples
            for name, cell in r.scores.items()
            if isinstance(cell, Failure)
        ]

    def count(self, kind: FailureKind) -> int:
        return sum(1 for _, _, f in self.failures() if f.kind == kind)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation; failed cells keep their kind."""
        return {
            "run_id": self.run_id,
            "name": self.name,
            "variant": self.variant,
            "cancelled": self.cancelled,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "duration_ms": round(self.duration_ms, 2),
            "scorers": list(self.scorer_names),
            "aggregates": dict(self.aggregates),
            "subset_rates": dict(self.subset_rates),
            "examples": [
                {
                    "index": r.index,
                    "input": _jsonable(r.input),
                    "expected": _jsonable(r.expected),
                    "output": _jsonable(r.output),
                    "duration_ms": round(r.duration_ms, 2),
                    "scores": {name: _cell_to_dict(cell) for name, cell in r.scores.items()},
                }
                for r in self.examples
            ],
        }


def _cell_to_dict(cell: ScoreCell) -> dict[str, Any]:
    if isinstance(cell, Failure):
        return {"failure": cell.kind.value, "reason": cell.reason}
    return {"score": cell.value, "metadata": _jsonable(cell.metadata)}


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def compute_aggregates(
    results: Sequence[ExampleResult], scorer_names: Sequence[str]
) -> dict[str, float | None]:
    """Mean of defined scores per scorer; None when there are none."""
    aggregates: dict[str, float | None] = {}
    for name in scorer_names:
        values = [
            r.scores[name].value
            for r in results
            if isinstance(r.scores.get(name), Score)
        ]
        aggregates[name] = fmean(values) if values else None
    return aggregates


def compute_subset_rates(
    results: Sequence[ExampleResult], scorer_names: Sequence[str]
) -> dict[str, float | None]:
    """
    Rate over applicable examples only, for scorers that flag applicability.

    Scorers whose scores never carry an ``applicable`` flag are omitted.
    """
    rates: dict[str, float | None] = {}
    for name in scorer_names:
        flagged = [
            r.scores[name]
            for r in results
            if isinstance(r.scores.get(name), Score) and "applicable" in r.scores[name].metadata
        ]
        if not flagged:
            continue
        applicable = [s.value for s in flagged if s.metadata["applicable"]]
        rates[name] = fmean(applicable) if applicable else None
    return rates
