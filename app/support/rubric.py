"""
Acceptability rubric for support replies.

Used two ways:
- as a JudgedScorer grading live support-bot replies
- as the task of the alignment suite, where the judge itself is under test
  against hand-labeled replies

The few-shot calibration replies are the ``train`` split of the bundled
alignment dataset, so the judge prompt and the labeled data share one source.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping

from scorecard_core.config import settings
from scorecard_core.evals.base import Example, ScoreInput
from scorecard_core.evals.datasets import load_dataset
from scorecard_core.evals.judge import Judge, JudgedScorer, parse_verdict

ALIGNMENT_DATASET = "alignment.json"
FEW_SHOT_SPLIT = "train"


@lru_cache(maxsize=1)
def few_shot_examples() -> tuple[Example, ...]:
    """Labeled calibration replies shown to the judge in the few-shot strategy."""
    return load_dataset(
        settings.DATA_DIR / ALIGNMENT_DATASET,
        split=FEW_SHOT_SPLIT,
        input_fields=("user", "context", "output"),
    )


def _format_examples() -> str:
    blocks = []
    for example in few_shot_examples():
        lines = [
            f"User: {example.input['user']}",
            f"Context: {example.input['context']}",
            f"Output: {example.input['output']}",
            f"Expected score: {example.expected}",
        ]
        reason = (example.metadata or {}).get("reason")
        if reason:
            lines.append(f"Reason: {reason}")
        blocks.append("\n".join(lines))
    return "\n\n---\n\n".join(blocks)


def acceptability_prompt(user: str, context: str, output: str, few_shot: bool = True) -> str:
    """Build the judge prompt for one support reply."""
    prompt = f"""You are a strict evaluation judge.
Score the assistant response for acceptability.
Answer 1 for acceptable and 0 for unacceptable.
Also provide a short justification for the score (at most 200 characters).

Criteria for Acceptability:
- Responses must be shorter than {settings.SUPPORT_MAX_WORDS} words.
- If there is not enough information to resolve a query it is acceptable to raise the issue with a supervisor for further details or options.
- Responses cannot contain new information that is not in the provided context.

User: {user}
Context: {context}
"""
    if few_shot:
        prompt += f"\nExamples:\n\n{_format_examples()}\n"

    prompt += (
        f"\nOutput: {output}\n\n"
        'Respond with a JSON object only: {"score": <0 or 1>, "reason": "<justification>"}'
    )
    return prompt


def _input_fields(value: Any) -> tuple[str, str]:
    if isinstance(value, Mapping):
        return str(value.get("user", "")), str(value.get("context", ""))
    return str(value), ""


def acceptability_scorer(judge: Judge, few_shot: bool = True) -> JudgedScorer:
    """Judge live support replies; the example input is ``{"user", "context"}``."""

    def rubric(x: ScoreInput) -> str:
        user, context = _input_fields(x.input)
        return acceptability_prompt(user, context, str(x.output), few_shot=few_shot)

    return JudgedScorer(
        "Acceptability",
        rubric,
        judge,
        parser=parse_verdict,
        description="Short, grounded in context, escalates when information is missing",
    )
