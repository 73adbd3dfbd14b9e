"""
Rubric prompts for judged scorers.

Each rubric asks the judge for a single number between 0 and 1 and is
paired with ``parse_score``. Domain-specific rubrics (e.g. support reply
acceptability) live with the service they grade.
"""

from __future__ import annotations

from .base import ScoreInput
from .judge import Judge, JudgedScorer

NUMBER_ONLY = "Return only the score expressed as a number and nothing else"


def clarity_rubric(x: ScoreInput) -> str:
    return (
        "Rate the output clarity from 0 to 1 based on how easy it is to scan: "
        "clear structure, bullets or short paragraphs. "
        f"{NUMBER_ONLY}:\n\n{x.output}"
    )


def coverage_rubric(x: ScoreInput) -> str:
    return (
        "Rate the output coverage from 0 to 1 based on whether it includes the 3-5 "
        f"most important points from the input. {NUMBER_ONLY}:\n\n"
        f" Output: {x.output}\n Input: {x.input}"
    )


def faithfulness_rubric(x: ScoreInput) -> str:
    return (
        "Rate the output faithfulness to the source from 0 to 1. A faithful output "
        "introduces no facts, names, numbers or events that are not in the source; "
        "every unsupported claim lowers the score. "
        f"{NUMBER_ONLY}:\n\n Source: {x.input}\n Output: {x.output}"
    )


def clarity_scorer(judge: Judge) -> JudgedScorer:
    return JudgedScorer(
        "Clarity",
        clarity_rubric,
        judge,
        description="Easy to scan; clear structure (bullets or short paragraphs)",
    )


def coverage_scorer(judge: Judge) -> JudgedScorer:
    return JudgedScorer(
        "Coverage",
        coverage_rubric,
        judge,
        description="Includes the 3-5 most important points from the input",
    )


def faithfulness_scorer(judge: Judge) -> JudgedScorer:
    return JudgedScorer(
        "Faithfulness",
        faithfulness_rubric,
        judge,
        description="No new facts, names, numbers, or events not in the source",
    )
