"""Static task catalogue.

Each `TaskKind` maps to one immutable `TaskProfile`: the instruction template,
the pydantic contract the service must satisfy, which output fields may be
translated, and the sampling temperature. The registry is checked once at
import time, so a broken profile fails the process early instead of failing
per request.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from types import MappingProxyType
from typing import Literal

from gemini_insights.constants import ANALYTICAL_TEMPERATURE
from gemini_insights.core.exceptions import ConfigurationError
from gemini_insights.core.schemas import (
    AnalysisResult,
    Contract,
    InsightsResult,
    SentimentCounts,
    SentimentScores,
    SummaryResult,
    TrendsResult,
)

SampleLayout = Literal["table", "id_text"]


class TaskKind(str, Enum):
    """Closed set of analytical tasks."""

    ANALYSIS = "analysis"
    SENTIMENT_COUNT = "sentiment_count"
    SENTIMENT_SCORES = "sentiment_scores"
    TRENDS = "trends"
    INSIGHTS = "insights"
    SUMMARY = "summary"

    @classmethod
    def parse(cls, value: str | TaskKind) -> TaskKind:
        if isinstance(value, TaskKind):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(k.value for k in cls)
            raise ConfigurationError(
                f"Unknown task {value!r}; expected one of: {choices}"
            ) from None


@dataclasses.dataclass(frozen=True, slots=True)
class TaskProfile:
    """Everything that differs between tasks.

    `instruction` is a `str.format` template with the placeholders
    `{sample_block}`, `{sampled_count}` and `{full_count}`.
    `translatable_paths` use `name`, `name[*]` and `name[*].field` segments.
    """

    kind: TaskKind
    instruction: str
    contract: type[Contract]
    translatable_paths: tuple[str, ...] = ()
    temperature: float = ANALYTICAL_TEMPERATURE
    layout: SampleLayout = "table"

    @property
    def translatable(self) -> bool:
        return bool(self.translatable_paths)


# --- Instructions ---

_ANALYSIS_INSTRUCTION = """{sample_block}

Analyze this data and return the analysis STRICTLY in the JSON schema provided, \
with no extra text, explanations, or markdown. Include a high-level summary, \
statistics (averages or totals for relevant columns), per-column trends and \
notable insights. Extrapolate to the full dataset of {full_count} rows."""

_SENTIMENT_COUNT_INSTRUCTION = """Here is sampled data ({sampled_count} of {full_count} rows):

{sample_block}

Count the number of positive, negative, and neutral records in the sample and \
return the result in the following JSON format:

{{
  "positive": 0,
  "negative": 0,
  "neutral": 0,
  "positive_percent": 0.0,
  "negative_percent": 0.0,
  "neutral_percent": 0.0
}}

Percentages must be computed from the same counted total and sum to 100."""

_SENTIMENT_SCORES_INSTRUCTION = """You are a multilingual sentiment analysis expert.

Analyze the sentiment for each of the {sampled_count} records provided below, \
regardless of the language.

Classification rules (5-point scale), use a numerical score from 1 to 5:

- 5 (STRONGLY POSITIVE): clear excitement, strong support or emphatic praise.
- 4 (SLIGHTLY POSITIVE): mild approval, light optimism or satisfaction.
- 3 (NEUTRAL/FACTUAL): USE SPARINGLY. Only for purely factual reporting with \
no implied or expressed opinion.
- 2 (SLIGHTLY NEGATIVE): mild concern, constructive criticism or minor \
dissatisfaction.
- 1 (STRONGLY NEGATIVE): clear outrage, strong condemnation or deep pessimism.

Return ONLY a single JSON object containing an array with exactly one result \
per record, each tagged with the record's original ID. The output must adhere \
strictly to the provided JSON Schema.

Record data (ID | TEXT):
---
{sample_block}
---"""

_TRENDS_INSTRUCTION = """Analyze the trends in the following data:

{sample_block}

Identify 2-3 significant trends. Return the trends with their description in \
ENGLISH ONLY in the following JSON format:

{{
  "trends": [
    {{ "title": "Trend Title 1", "description": "Detailed description of the first trend." }},
    {{ "title": "Trend Title 2", "description": "Detailed description of the second trend." }}
  ]
}}"""

_INSIGHTS_INSTRUCTION = """Generate insights from the following data:

{sample_block}

Return the insights in the following JSON format:

{{
  "insights": ["Insight 1: Notable trend or observation.", "Insight 2: Any shift in data or unusual pattern."]
}}"""

_SUMMARY_INSTRUCTION = """Generate a short summary of the key findings from the following data:

{sample_block}

Return the summary in the following JSON format:

{{
  "summary": "Short overall summary of key findings from the data."
}}"""

# --- Registry ---

_PROFILES: tuple[TaskProfile, ...] = (
    TaskProfile(
        kind=TaskKind.ANALYSIS,
        instruction=_ANALYSIS_INSTRUCTION,
        contract=AnalysisResult,
        translatable_paths=("summary", "insights[*]", "trend_analysis[*].trend"),
    ),
    TaskProfile(
        kind=TaskKind.SENTIMENT_COUNT,
        instruction=_SENTIMENT_COUNT_INSTRUCTION,
        contract=SentimentCounts,
    ),
    TaskProfile(
        kind=TaskKind.SENTIMENT_SCORES,
        instruction=_SENTIMENT_SCORES_INSTRUCTION,
        contract=SentimentScores,
        layout="id_text",
    ),
    TaskProfile(
        kind=TaskKind.TRENDS,
        instruction=_TRENDS_INSTRUCTION,
        contract=TrendsResult,
        translatable_paths=("trends[*].title", "trends[*].description"),
    ),
    TaskProfile(
        kind=TaskKind.INSIGHTS,
        instruction=_INSIGHTS_INSTRUCTION,
        contract=InsightsResult,
        translatable_paths=("insights[*]",),
    ),
    TaskProfile(
        kind=TaskKind.SUMMARY,
        instruction=_SUMMARY_INSTRUCTION,
        contract=SummaryResult,
        translatable_paths=("summary",),
    ),
)


def _check_placeholders(profile: TaskProfile) -> None:
    try:
        profile.instruction.format(sample_block="", sampled_count=0, full_count=0)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(
            f"Task '{profile.kind.value}': invalid instruction template: {e}"
        ) from e
    if "{sample_block}" not in profile.instruction:
        raise ConfigurationError(
            f"Task '{profile.kind.value}': instruction must include {{sample_block}}"
        )


def _check_paths(profile: TaskProfile) -> None:
    declared = profile.contract.model_fields
    for path in profile.translatable_paths:
        head = path.split("[", 1)[0].split(".", 1)[0]
        if head not in declared:
            raise ConfigurationError(
                f"Task '{profile.kind.value}': translatable path {path!r} "
                f"does not name a declared field"
            )


def _build_registry(
    profiles: tuple[TaskProfile, ...],
) -> MappingProxyType[TaskKind, TaskProfile]:
    registry: dict[TaskKind, TaskProfile] = {}
    for profile in profiles:
        if profile.kind in registry:
            raise ConfigurationError(f"Duplicate task profile: {profile.kind.value}")
        _check_placeholders(profile)
        _check_paths(profile)
        registry[profile.kind] = profile
    missing = set(TaskKind) - set(registry)
    if missing:
        names = sorted(k.value for k in missing)
        raise ConfigurationError(f"Tasks without a profile: {names}")
    return MappingProxyType(registry)


TASK_REGISTRY = _build_registry(_PROFILES)


def get_profile(task: TaskKind | str) -> TaskProfile:
    """Look up the profile for a task identifier."""
    return TASK_REGISTRY[TaskKind.parse(task)]
