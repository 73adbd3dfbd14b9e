"""
Evaluation suites for the demonstration services.

A suite bundles a dataset, a scorer set and a task builder. Every suite is
run through run_variants, so a suite with a single "default" variant simply
yields one report.

Suites:
- summarizer: faithfulness, conciseness, clarity and coverage of summaries
- support: acceptability of drafted support replies
- alignment: the acceptability judge itself, measured against hand labels
  with TPR / TNR, for the few-shot and zero-shot prompt strategies
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from scorecard_core.config import settings
from scorecard_core.domain.exceptions import ConfigurationError
from scorecard_core.evals.base import Scorer, Variant
from scorecard_core.evals.datasets import load_dataset
from scorecard_core.evals.judge import Judge, JudgeVerdict
from scorecard_core.evals.report import Report
from scorecard_core.evals.rubrics import clarity_scorer, coverage_scorer, faithfulness_scorer
from scorecard_core.evals.runner import FROM_SETTINGS, StopSignal, Task
from scorecard_core.evals.scorers import (
    conciseness_scorer,
    true_negative_rate_scorer,
    true_positive_rate_scorer,
)
from scorecard_core.evals.variants import run_variants
from scorecard_core.infrastructure.llm import LLMClient
from app.summarizer.service import SummarizerService
from app.support.rubric import acceptability_prompt, acceptability_scorer
from app.support.service import SupportBotService

DEFAULT_VARIANT = Variant("default")


@dataclass(frozen=True)
class Suite:
    """Dataset + scorers + task builder for one evaluation."""

    name: str
    dataset_file: str
    build_scorers: Callable[[Judge], list[Scorer]]
    build_task: Callable[[Variant, LLMClient], Task]
    variants: tuple[Variant, ...] = (DEFAULT_VARIANT,)
    default_split: str | None = None
    input_fields: tuple[str, ...] | None = None

    def select_variants(self, names: Sequence[str] | None) -> list[Variant]:
        if not names:
            return list(self.variants)
        by_name = {v.name: v for v in self.variants}
        unknown = [n for n in names if n not in by_name]
        if unknown:
            raise ConfigurationError(
                f"Suite '{self.name}' has no variants {unknown} (available: {sorted(by_name)})"
            )
        return [by_name[n] for n in names]


# --- summarizer ---


def _summarizer_scorers(judge: Judge) -> list[Scorer]:
    return [
        faithfulness_scorer(judge),
        conciseness_scorer(),
        clarity_scorer(judge),
        coverage_scorer(judge),
    ]


def _summarizer_task(variant: Variant, llm: LLMClient) -> Task:
    service = SummarizerService(llm)
    return service.summarize


# --- support ---


def _support_scorers(judge: Judge) -> list[Scorer]:
    return [
        acceptability_scorer(judge),
        conciseness_scorer(settings.SUPPORT_MAX_WORDS, name="Length"),
    ]


def _support_task(variant: Variant, llm: LLMClient) -> Task:
    service = SupportBotService(llm)

    async def task(value: Mapping[str, Any]) -> str:
        return await service.reply(value["user"], value.get("context"))

    return task


# --- alignment ---


def _alignment_scorers(judge: Judge) -> list[Scorer]:
    return [true_positive_rate_scorer(1), true_negative_rate_scorer(0)]


def _alignment_task(variant: Variant, llm: LLMClient) -> Task:
    few_shot = bool(variant.parameters.get("few_shot", True))

    async def task(value: Mapping[str, Any]) -> JudgeVerdict:
        prompt = acceptability_prompt(
            value["user"], value["context"], value["output"], few_shot=few_shot
        )
        return await llm.complete_json(prompt, JudgeVerdict)

    return task


SUITES: dict[str, Suite] = {
    "summarizer": Suite(
        name="summarizer",
        dataset_file="summarizer.json",
        build_scorers=_summarizer_scorers,
        build_task=_summarizer_task,
    ),
    "support": Suite(
        name="support",
        dataset_file="support.json",
        build_scorers=_support_scorers,
        build_task=_support_task,
        input_fields=("user", "context"),
    ),
    "alignment": Suite(
        name="alignment",
        dataset_file="alignment.json",
        build_scorers=_alignment_scorers,
        build_task=_alignment_task,
        variants=(
            Variant("few_shot", {"few_shot": True}),
            Variant("zero_shot", {"few_shot": False}),
        ),
        default_split="test",
        input_fields=("user", "context", "output"),
    ),
}


def get_suite(name: str) -> Suite:
    try:
        return SUITES[name]
    except KeyError:
        raise ConfigurationError(f"Unknown suite '{name}' (available: {sorted(SUITES)})") from None


async def run_suite(
    suite: Suite,
    *,
    llm: LLMClient | None = None,
    judge: Judge | None = None,
    dataset_path: str | Path | None = None,
    split: str | None = None,
    variant_names: Sequence[str] | None = None,
    concurrency: int | None = None,
    task_timeout: float | None = FROM_SETTINGS,
    max_parallel_variants: int | None = None,
    stop_event: StopSignal | None = None,
) -> dict[str, Report]:
    """
    Load the suite dataset and evaluate every selected variant.

    Args:
        suite: Suite to run.
        llm: Client used by the task (TASK_MODEL_ID by default).
        judge: Judge for judged scorers (JUDGE_MODEL_ID by default).
        dataset_path: Override the bundled dataset file.
        split: Dataset split (suite default for the bundled dataset).
        variant_names: Subset of suite variants to run.
    """
    llm = llm or LLMClient(model=settings.TASK_MODEL_ID)
    judge = judge or LLMClient(model=settings.JUDGE_MODEL_ID)

    if dataset_path:
        path = Path(dataset_path)
    else:
        path = settings.DATA_DIR / suite.dataset_file
        split = split or suite.default_split
    dataset = load_dataset(path, split=split, input_fields=suite.input_fields)

    return await run_variants(
        dataset,
        suite.build_scorers(judge),
        suite.select_variants(variant_names),
        lambda variant: suite.build_task(variant, llm),
        concurrency=concurrency,
        task_timeout=task_timeout,
        max_parallel_variants=max_parallel_variants,
        name=suite.name,
        stop_event=stop_event,
    )
