"""
Judged scorers: grading delegated to a text-generation call.

A JudgedScorer renders a rubric prompt, sends it to a judge and parses the
free-text answer with an explicit, fallible parser. An unparseable answer
raises JudgeParseError, which the runner records as a failed cell; it is
never turned into a number.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Callable, Protocol, Union, runtime_checkable

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from scorecard_core.domain.exceptions import JudgeParseError

from .base import BaseScorer, Score, ScoreInput


@runtime_checkable
class Judge(Protocol):
    """Anything that turns a prompt into free text (e.g. LLMClient)."""

    async def complete(self, prompt: str) -> str:
        ...


@dataclass(frozen=True)
class ParsedScore:
    value: float
    reason: str | None = None


@dataclass(frozen=True)
class Unparseable:
    raw_text: str
    reason: str


ParseResult = Union[ParsedScore, Unparseable]
Rubric = Callable[[ScoreInput], str]
Parser = Callable[[str], ParseResult]


class JudgeVerdict(BaseModel):
    """Structured judge answer: a score and a short justification."""

    score: float = Field(..., ge=0, le=1)
    reason: str = Field(default="", max_length=200)


_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_score(text: str) -> ParseResult:
    """
    Parse a bare number such as ``"0.8"``.

    The whole (stripped) response must be a finite float in [0, 1];
    ``"0.8 because ..."`` is rejected rather than guessed at.
    """
    stripped = text.strip()
    try:
        value = float(stripped)
    except ValueError:
        return Unparseable(raw_text=text, reason="response is not a number")

    if math.isnan(value) or math.isinf(value):
        return Unparseable(raw_text=text, reason="response is not a finite number")
    if not 0.0 <= value <= 1.0:
        return Unparseable(raw_text=text, reason=f"score {value} outside [0, 1]")
    return ParsedScore(value=value)


def parse_verdict(text: str) -> ParseResult:
    """
    Parse a JSON verdict ``{"score": 0..1, "reason": "..."}``.

    Markdown code fences around the object are tolerated.
    """
    stripped = text.strip()
    fenced = _FENCE_PATTERN.match(stripped)
    if fenced:
        stripped = fenced.group(1)

    try:
        verdict = JudgeVerdict.model_validate_json(stripped)
    except ValidationError as e:
        try:
            json.loads(stripped)
        except json.JSONDecodeError:
            return Unparseable(raw_text=text, reason="response is not valid JSON")
        return Unparseable(raw_text=text, reason=f"invalid verdict: {e.errors()[0]['msg']}")

    return ParsedScore(value=verdict.score, reason=verdict.reason or None)


class JudgedScorer(BaseScorer):
    """
    Scorer that grades with an external judge and a rubric prompt.

    Usage:
        clarity = JudgedScorer("Clarity", clarity_rubric, judge=LLMClient())
    """

    def __init__(
        self,
        name: str,
        rubric: Rubric,
        judge: Judge,
        *,
        parser: Parser = parse_score,
        description: str | None = None,
    ):
        """
        Args:
            name: Scorer name (report column).
            rubric: Builds the judge prompt from the ScoreInput.
            judge: Object with ``async complete(prompt) -> str``.
            parser: Converts the judge text into ParsedScore | Unparseable.
            description: Optional human-readable description.
        """
        super().__init__(name, description)
        self.rubric = rubric
        self.judge = judge
        self.parser = parser

    async def evaluate(self, x: ScoreInput) -> Score:
        prompt = self.rubric(x)
        text = await self.judge.complete(prompt)

        result = self.parser(text)
        if isinstance(result, Unparseable):
            logger.warning(f"Judge response for '{self.name}' unparseable: {result.reason}")
            raise JudgeParseError(
                f"{self.name}: {result.reason}: {result.raw_text[:80]!r}",
                raw_text=result.raw_text,
                scorer_name=self.name,
            )

        metadata = {"reason": result.reason} if result.reason else {}
        return Score(result.value, metadata)
