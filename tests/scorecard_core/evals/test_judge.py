"""
Tests for judged scorers and judge response parsing.
"""

import pytest

from scorecard_core.domain.exceptions import JudgeParseError, ScorerFailure
from scorecard_core.evals import (
    Example,
    FailureKind,
    JudgedScorer,
    ParsedScore,
    Score,
    ScoreInput,
    Unparseable,
    parse_score,
    parse_verdict,
    run_evaluation,
)
from scorecard_core.evals.rubrics import (
    clarity_rubric,
    clarity_scorer,
    coverage_rubric,
    coverage_scorer,
    faithfulness_rubric,
    faithfulness_scorer,
)
from tests.scorecard_core.evals.fakes import FakeJudge


def echo_rubric(x: ScoreInput) -> str:
    return f"Grade: {x.output}"


class TestParseScore:
    @pytest.mark.parametrize("text,value", [("0.8", 0.8), (" 1 \n", 1.0), ("0", 0.0), ("1e-1", 0.1)])
    def test_valid_numbers(self, text, value):
        result = parse_score(text)
        assert isinstance(result, ParsedScore)
        assert result.value == pytest.approx(value)

    @pytest.mark.parametrize("text", ["", "high", "0.8 because it is clear", "Score: 0.8"])
    def test_non_numbers_unparseable(self, text):
        result = parse_score(text)
        assert isinstance(result, Unparseable)
        assert result.raw_text == text

    @pytest.mark.parametrize("text", ["1.5", "-0.2", "nan", "inf"])
    def test_out_of_range_unparseable(self, text):
        assert isinstance(parse_score(text), Unparseable)


class TestParseVerdict:
    def test_valid_verdict(self):
        result = parse_verdict('{"score": 1, "reason": "Polite and grounded"}')

        assert result == ParsedScore(value=1.0, reason="Polite and grounded")

    def test_fenced_verdict(self):
        result = parse_verdict('```json\n{"score": 0, "reason": "Invents a refund"}\n```')

        assert isinstance(result, ParsedScore)
        assert result.value == 0.0

    def test_empty_reason_becomes_none(self):
        assert parse_verdict('{"score": 0.5}') == ParsedScore(value=0.5, reason=None)

    def test_invalid_json(self):
        result = parse_verdict("The reply is acceptable.")

        assert isinstance(result, Unparseable)
        assert result.reason == "response is not valid JSON"

    def test_schema_violation(self):
        result = parse_verdict('{"score": 3, "reason": "too high"}')

        assert isinstance(result, Unparseable)
        assert result.reason.startswith("invalid verdict")

    def test_missing_score(self):
        assert isinstance(parse_verdict('{"reason": "no score"}'), Unparseable)


class TestJudgedScorer:
    @pytest.mark.asyncio
    async def test_returns_parsed_score(self):
        judge = FakeJudge("0.7")
        scorer = JudgedScorer("Quality", echo_rubric, judge)

        score = await scorer.evaluate(ScoreInput(input="q", output="answer"))

        assert score == Score(0.7)
        assert judge.prompts == ["Grade: answer"]

    @pytest.mark.asyncio
    async def test_keeps_reason_in_metadata(self):
        scorer = JudgedScorer("Quality", echo_rubric, FakeJudge('{"score": 1, "reason": "fine"}'), parser=parse_verdict)

        score = await scorer.evaluate(ScoreInput(input="q", output="answer"))

        assert score.metadata == {"reason": "fine"}

    @pytest.mark.asyncio
    async def test_unparseable_response_raises(self):
        scorer = JudgedScorer("Quality", echo_rubric, FakeJudge("pretty good"))

        with pytest.raises(JudgeParseError) as exc_info:
            await scorer.evaluate(ScoreInput(input="q", output="answer"))

        assert exc_info.value.raw_text == "pretty good"
        assert exc_info.value.scorer_name == "Quality"
        assert isinstance(exc_info.value, ScorerFailure)

    @pytest.mark.asyncio
    async def test_unparseable_is_a_failure_not_zero(self):
        """A garbled judge answer is recorded as a scorer failure, distinct from a 0 score."""
        judge = FakeJudge(["0", "garbled"])
        report = await run_evaluation(
            [Example("a"), Example("b")],
            lambda x: x,
            [JudgedScorer("Quality", echo_rubric, judge)],
        )

        first, second = report.column("Quality")
        assert first == Score(0.0)
        assert second.kind == FailureKind.SCORER
        assert "JudgeParseError" in second.reason
        assert report.aggregates["Quality"] == 0.0

    @pytest.mark.asyncio
    async def test_judge_error_becomes_scorer_failure(self):
        judge = FakeJudge(error=ConnectionError("judge offline"))
        report = await run_evaluation(
            [Example("a")], lambda x: x, [JudgedScorer("Quality", echo_rubric, judge)]
        )

        cell = report.examples[0].scores["Quality"]
        assert cell.kind == FailureKind.SCORER
        assert "judge offline" in cell.reason
        assert report.aggregates["Quality"] is None


class TestRubrics:
    def test_rubrics_include_output(self):
        x = ScoreInput(input="The source text.", output="The summary.")

        for rubric in (clarity_rubric, coverage_rubric, faithfulness_rubric):
            assert "The summary." in rubric(x)

    def test_source_rubrics_include_input(self):
        x = ScoreInput(input="The source text.", output="The summary.")

        assert "The source text." in coverage_rubric(x)
        assert "The source text." in faithfulness_rubric(x)

    def test_scorer_names(self):
        judge = FakeJudge()

        assert [s.name for s in (faithfulness_scorer(judge), clarity_scorer(judge), coverage_scorer(judge))] == [
            "Faithfulness",
            "Clarity",
            "Coverage",
        ]
