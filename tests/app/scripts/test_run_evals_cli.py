"""
Tests for the run_evals command line entry point.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from app.scripts.run_evals import build_parser, main
from scorecard_core.domain.exceptions import ConfigurationError
from scorecard_core.evals import ExampleResult, Report, Score
from scorecard_core.evals.runner import FROM_SETTINGS


def fake_report(variant):
    example = ExampleResult(index=0, input="q", expected=None, metadata=None, output="a", scores={"A": Score(1.0)})
    return Report(
        run_id=f"eval-1-{variant}",
        scorer_names=["A"],
        examples=[example],
        aggregates={"A": 1.0},
        name=f"alignment:{variant}",
        variant=variant,
    )


class TestParser:
    def test_parses_options(self):
        args = build_parser().parse_args(
            ["--suite", "alignment", "--split", "dev", "--variants", "few_shot", "--concurrency", "4", "--timeout", "2.5"]
        )

        assert args.suite == "alignment"
        assert args.split == "dev"
        assert args.variants == ["few_shot"]
        assert args.concurrency == 4
        assert args.timeout == 2.5

    def test_rejects_unknown_suite(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--suite", "nope"])


class TestMain:
    def test_prints_reports_and_writes_json(self, tmp_path, capsys):
        reports = {"few_shot": fake_report("few_shot"), "zero_shot": fake_report("zero_shot")}
        out = tmp_path / "report.json"

        with patch("app.scripts.run_evals.run_suite", new=AsyncMock(return_value=reports)) as run:
            code = main(["--suite", "alignment", "--variants", "few_shot", "zero_shot", "--json-out", str(out)])

        assert code == 0
        assert run.await_args.kwargs["variant_names"] == ["few_shot", "zero_shot"]
        printed = capsys.readouterr().out
        assert "alignment:few_shot" in printed
        assert "Variant comparison:" in printed
        assert set(json.loads(out.read_text(encoding="utf-8"))) == {"few_shot", "zero_shot"}

    def test_configuration_error_exit_code(self):
        error = AsyncMock(side_effect=ConfigurationError("Duplicate scorer names"))

        with patch("app.scripts.run_evals.run_suite", new=error):
            assert main(["--suite", "support"]) == 2

    def test_timeout_defaults_to_settings_when_flag_omitted(self):
        reports = {"few_shot": fake_report("few_shot")}

        with patch("app.scripts.run_evals.run_suite", new=AsyncMock(return_value=reports)) as run:
            main(["--suite", "alignment", "--variants", "few_shot"])

        assert run.await_args.kwargs["task_timeout"] is FROM_SETTINGS

    def test_timeout_flag_forwarded(self):
        reports = {"few_shot": fake_report("few_shot")}

        with patch("app.scripts.run_evals.run_suite", new=AsyncMock(return_value=reports)) as run:
            main(["--suite", "alignment", "--variants", "few_shot", "--timeout", "2.5"])

        assert run.await_args.kwargs["task_timeout"] == 2.5
