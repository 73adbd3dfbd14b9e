"""
Plain-text rendering of evaluation reports.

Failed cells are rendered as labels (TASK_FAIL, ERR, SKIP) and undefined
aggregates as "n/a", so they can never be mistaken for a low score.
"""

from __future__ import annotations

from typing import Any, Mapping

from scorecard_core.evals.base import Failure, FailureKind, ScoreCell
from scorecard_core.evals.report import Report

FAILURE_LABELS = {
    FailureKind.TASK: "TASK_FAIL",
    FailureKind.SCORER: "ERR",
    FailureKind.NOT_ATTEMPTED: "SKIP",
}


def format_cell(cell: ScoreCell) -> str:
    if isinstance(cell, Failure):
        return FAILURE_LABELS[cell.kind]
    return f"{cell.value:.2f}"


def format_aggregate(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.3f}"


def _preview(value: Any, width: int) -> str:
    if isinstance(value, Mapping):
        value = value.get("user") or next(iter(value.values()), "")
    text = " ".join(str(value).split())
    return text if len(text) <= width else text[: width - 3] + "..."


def _table(header: list[str], rows: list[list[str]]) -> str:
    widths = [max(len(row[i]) for row in [header, *rows]) for i in range(len(header))]

    def line(row: list[str]) -> str:
        return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row))

    separator = "-+-".join("-" * w for w in widths)
    return "\n".join([line(header), separator, *[line(row) for row in rows]])


def render_report(report: Report, input_width: int = 40) -> str:
    """Per-example table followed by aggregates and any failure reasons."""
    header = ["#", "input", *report.scorer_names]
    rows = [
        [str(r.index), _preview(r.input, input_width), *[format_cell(r.scores[n]) for n in report.scorer_names]]
        for r in report.examples
    ]
    rows.append(["", "mean", *[format_aggregate(report.aggregates.get(n)) for n in report.scorer_names]])
    if report.subset_rates:
        rows.append([
            "",
            "subset rate",
            *[format_aggregate(report.subset_rates[n]) if n in report.subset_rates else "" for n in report.scorer_names],
        ])

    title = f"{report.name or report.run_id} ({len(report.examples)} examples, {report.duration_ms:.0f}ms)"
    if report.cancelled:
        title += " [cancelled]"
    parts = [title, _table(header, rows)]

    failures = [(i, n, f) for i, n, f in report.failures() if f.kind != FailureKind.NOT_ATTEMPTED]
    if failures:
        parts.append("Failures:")
        parts.extend(f"  #{i} {n}: {FAILURE_LABELS[f.kind]} {f.reason}" for i, n, f in failures)
    return "\n".join(parts)


def render_comparison(reports: Mapping[str, Report]) -> str:
    """One row per variant with its aggregates, in variant order."""
    if not reports:
        return "No reports."
    scorer_names = next(iter(reports.values())).scorer_names
    header = ["variant", *scorer_names]
    rows = [
        [variant, *[format_aggregate(report.aggregates.get(n)) for n in scorer_names]]
        for variant, report in reports.items()
    ]
    return _table(header, rows)
