"""
Evaluation Harness Base Definitions.

Defines the records that flow through an evaluation run (examples, score
inputs, scores, failure markers, variants) and the Scorer protocol.
"""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Mapping, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class Example:
    """One labeled dataset entry. ``None`` means absent."""

    input: Any
    expected: Any = None
    metadata: Mapping[str, Any] | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Example":
        """Build from a mapping with an ``input`` key (KeyError otherwise)."""
        return cls(
            input=record["input"],
            expected=record.get("expected"),
            metadata=record.get("metadata"),
        )


@dataclass(frozen=True)
class ScoreInput:
    """What a scorer sees for one example."""

    input: Any
    output: Any
    expected: Any = None
    metadata: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class Score:
    """A score in [0, 1] with optional structured metadata (e.g. a reason)."""

    value: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        value = float(self.value)
        if math.isnan(value) or not 0.0 <= value <= 1.0:
            raise ValueError(f"Score must be a number in [0, 1], got {self.value!r}")
        object.__setattr__(self, "value", value)

    @classmethod
    def coerce(cls, raw: Any) -> "Score":
        """
        Normalize whatever a scorer returned into a Score.

        Accepts a Score, a bool/int/float, or a mapping with a ``score`` key
        and optional ``metadata`` mapping.

        Raises:
            TypeError: For any other shape.
            ValueError: For numbers outside [0, 1] or NaN.
        """
        if isinstance(raw, Score):
            return raw
        if isinstance(raw, bool):
            return cls(1.0 if raw else 0.0)
        if isinstance(raw, (int, float)):
            return cls(float(raw))
        if isinstance(raw, Mapping) and "score" in raw:
            score = raw["score"]
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise TypeError(f"'score' must be a number, got {type(score).__name__}")
            return cls(float(score), dict(raw.get("metadata") or {}))
        raise TypeError(f"Scorer returned unsupported value of type {type(raw).__name__}")


class FailureKind(str, Enum):
    TASK = "task_failure"
    SCORER = "scorer_failure"
    NOT_ATTEMPTED = "not_attempted"


@dataclass(frozen=True)
class Failure:
    """Marker stored in a report cell instead of a Score."""

    kind: FailureKind
    reason: str


# A report cell holds exactly one of these
ScoreCell = Union[Score, Failure]


@dataclass(frozen=True)
class Variant:
    """A named configuration of the task under test."""

    name: str
    parameters: Mapping[str, Any] = field(default_factory=dict)


ScorerResult = Union[Score, float, int, bool, Mapping[str, Any]]


@runtime_checkable
class Scorer(Protocol):
    """Protocol for a scorer.

    ``evaluate`` may be synchronous or return an awaitable.
    """

    name: str
    description: str | None

    def evaluate(self, x: ScoreInput) -> ScorerResult | Awaitable[ScorerResult]:
        ...


class BaseScorer(abc.ABC):
    """Convenience base class carrying name and description."""

    def __init__(self, name: str, description: str | None = None):
        if not name:
            raise ValueError("Scorer name must be a non-empty string")
        self.name = name
        self.description = description

    @abc.abstractmethod
    def evaluate(self, x: ScoreInput) -> ScorerResult | Awaitable[ScorerResult]:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
