"""
Standard exceptions for scorecard.

This module defines the hierarchy of exceptions used by the evaluation
harness. Only ConfigurationError (and its subclasses) ever escapes an
evaluation run; the EvaluationError family is captured into report cells.
"""

from __future__ import annotations


class ScorecardError(Exception):
    """Base exception for all scorecard errors."""
    pass


class ConfigurationError(ScorecardError):
    """Invalid run setup: duplicate names, missing scorers, bad records.

    Raised before any example executes.
    """
    pass


class DatasetError(ConfigurationError):
    """A dataset file could not be read or a record has no input."""
    pass


class EvaluationError(ScorecardError):
    """Base exception for failures recovered inside a run."""
    pass


class TaskFailure(EvaluationError):
    """The task raised (or timed out) for one example."""

    def __init__(self, message: str, index: int | None = None):
        super().__init__(message)
        self.index = index


class ScorerFailure(EvaluationError):
    """A scorer raised or produced something that is not a valid score."""

    def __init__(self, message: str, scorer_name: str | None = None):
        super().__init__(message)
        self.scorer_name = scorer_name


class JudgeParseError(ScorerFailure):
    """A judge response could not be parsed into a score in [0, 1]."""

    def __init__(self, message: str, raw_text: str, scorer_name: str | None = None):
        super().__init__(message, scorer_name=scorer_name)
        self.raw_text = raw_text
