"""
Deterministic scorers.

Implements:
- FunctionScorer / create_scorer: wrap any function of ScoreInput
- Exact match and conciseness checks
- LabelGatedScorer: rate over a labeled subset (TPR / TNR)
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Callable, Mapping

from scorecard_core.config import settings

from .base import BaseScorer, Score, ScoreInput

ScorerFn = Callable[[ScoreInput], Any]


class FunctionScorer(BaseScorer):
    """
    Wraps an arbitrary scoring function.

    The function receives a ScoreInput and may be sync or async; its result
    is coerced to a Score by the runner.
    """

    def __init__(self, name: str, fn: ScorerFn, description: str | None = None):
        super().__init__(name, description)
        self._fn = fn

    def evaluate(self, x: ScoreInput):
        return self._fn(x)


def create_scorer(name: str, fn: ScorerFn, description: str | None = None) -> FunctionScorer:
    """Build a named scorer from a function."""
    return FunctionScorer(name, fn, description)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def values_match(actual: Any, expected: Any) -> bool:
    """
    Equality used by exact_match and label gating.

    Numbers compare by value (1 == 1.0); everything else compares by its
    stripped string form.
    """
    if _is_number(actual) and _is_number(expected):
        return float(actual) == float(expected)
    return str(actual).strip() == str(expected).strip()


def exact_match(actual: Any, expected: Any) -> float:
    return 1.0 if values_match(actual, expected) else 0.0


def word_count(text: str) -> int:
    return len(str(text).split())


def extract_field(output: Any, field: str) -> Any:
    """
    Read a field from a task output (mapping key or attribute).

    Raises:
        KeyError: If the output has no such field.
    """
    if isinstance(output, Mapping):
        if field not in output:
            raise KeyError(f"Output has no field {field!r}")
        return output[field]
    if hasattr(output, field):
        return getattr(output, field)
    raise KeyError(f"Output of type {type(output).__name__} has no field {field!r}")


def conciseness_scorer(max_words: int | None = None, name: str = "Conciseness") -> FunctionScorer:
    """1 if the output has at most ``max_words`` words, else 0."""
    limit = max_words if max_words is not None else settings.CONCISENESS_MAX_WORDS

    def score(x: ScoreInput) -> float:
        return 1.0 if word_count(x.output) <= limit else 0.0

    return FunctionScorer(name, score, description=f"Output <= {limit} words")


def exact_match_scorer(field: str | None = None, name: str = "ExactMatch") -> FunctionScorer:
    """Compare the output (or one of its fields) with the expected value.

    Examples with no expected value score 0.
    """

    def score(x: ScoreInput) -> Score:
        if x.expected is None:
            return Score(0.0, {"reason": "No expected output"})
        actual = x.output if field is None else extract_field(x.output, field)
        return Score(exact_match(actual, x.expected))

    return FunctionScorer(name, score, description="Output equals expected")


class LabelGatedScorer(BaseScorer):
    """
    Scores only the examples whose expected value is ``target_label``.

    Other examples receive a neutral 1.0 so they never pull the mean down;
    each score records ``applicable`` in its metadata so the report can also
    compute the rate over the labeled subset alone.
    """

    def __init__(
        self,
        name: str,
        target_label: Any,
        *,
        score_field: str = "score",
        comparison: Callable[[Any, Any], float] = exact_match,
        description: str | None = None,
    ):
        super().__init__(name, description)
        self.target_label = target_label
        self.score_field = score_field
        self._comparison = comparison

    def evaluate(self, x: ScoreInput) -> Score:
        if x.expected is None or not values_match(x.expected, self.target_label):
            return Score(1.0, {"applicable": False})

        actual = extract_field(x.output, self.score_field)
        return Score(self._comparison(actual, x.expected), {"applicable": True})


def true_positive_rate_scorer(label: Any = 1, score_field: str = "score", name: str = "TPR") -> LabelGatedScorer:
    return LabelGatedScorer(
        name,
        label,
        score_field=score_field,
        description=f"Exact match on examples expected to be {label!r}",
    )


def true_negative_rate_scorer(label: Any = 0, score_field: str = "score", name: str = "TNR") -> LabelGatedScorer:
    return LabelGatedScorer(
        name,
        label,
        score_field=score_field,
        description=f"Exact match on examples expected to be {label!r}",
    )
