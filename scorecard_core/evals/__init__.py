"""
Evaluation harness.

Exports:
    - Example, ScoreInput, Score, Failure, FailureKind, Variant: run records
    - BaseScorer, FunctionScorer, LabelGatedScorer, JudgedScorer: scorers
    - EvaluationRunner, run_evaluation: the run engine
    - run_variants: variant cross-product runner
    - Report, ExampleResult: run output
    - load_dataset: JSON / JSONL dataset loader
"""

from .base import BaseScorer, Example, Failure, FailureKind, Score, ScoreInput, Scorer, Variant
from .datasets import load_dataset
from .judge import JudgedScorer, JudgeVerdict, ParsedScore, Unparseable, parse_score, parse_verdict
from .report import ExampleResult, Report
from .runner import EvaluationRunner, run_evaluation
from .scorers import (
    FunctionScorer,
    LabelGatedScorer,
    conciseness_scorer,
    create_scorer,
    exact_match,
    exact_match_scorer,
    true_negative_rate_scorer,
    true_positive_rate_scorer,
)
from .variants import run_variants

__all__ = [
    "BaseScorer",
    "Example",
    "Failure",
    "FailureKind",
    "Score",
    "ScoreInput",
    "Scorer",
    "Variant",
    "load_dataset",
    "JudgedScorer",
    "JudgeVerdict",
    "ParsedScore",
    "Unparseable",
    "parse_score",
    "parse_verdict",
    "ExampleResult",
    "Report",
    "EvaluationRunner",
    "run_evaluation",
    "FunctionScorer",
    "LabelGatedScorer",
    "conciseness_scorer",
    "create_scorer",
    "exact_match",
    "exact_match_scorer",
    "true_negative_rate_scorer",
    "true_positive_rate_scorer",
    "run_variants",
]
