"""Pydantic contracts for structured generation.

Each task's output shape is a frozen `Contract` model. The same class is
handed to the generation service as its response schema and used to validate
whatever comes back, so the two can never drift apart.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _drop_closed_flag(schema: dict[str, Any]) -> None:
    # The provider schema has no closed-object flag; extras fail locally
    schema.pop("additionalProperties", None)


class Contract(BaseModel):
    """Base for task output contracts: immutable and closed to extra fields."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        strict=True,
        json_schema_extra=_drop_closed_flag,
    )


# --- analysis ---


class Statistics(Contract):
    """Metrics like averages or totals; further metrics are allowed."""

    model_config = ConfigDict(extra="allow")

    total_rows: float = Field(
        description="Total number of rows the findings extrapolate to."
    )
    avg_value: float = Field(
        description="Average value from a key numeric column in the sample."
    )
    top_columns: list[str] | None = None
    top_values: list[str] | None = None
    most_active: list[str] | None = None


class ColumnTrend(Contract):
    column: str
    trend: str
    value: float


class AnalysisResult(Contract):
    summary: str = Field(description="High-level summary of key findings from the data.")
    statistics: Statistics
    trend_analysis: list[ColumnTrend]
    insights: list[str] = Field(description="Notable trends or observations.")


# --- sentiment ---


class SentimentCounts(Contract):
    positive: int
    negative: int
    neutral: int
    positive_percent: float
    negative_percent: float
    neutral_percent: float


class SentimentScore(Contract):
    id: str = Field(description="The original ID of the record.")
    sentiment_score: int = Field(
        ge=1,
        le=5,
        description="Sentiment score from 1 (strongly negative) to 5 (strongly positive).",
    )


class SentimentScores(Contract):
    sentiments: list[SentimentScore] = Field(
        description="One sentiment score result per presented record."
    )


# --- narrative ---


class Trend(Contract):
    title: str
    description: str


class TrendsResult(Contract):
    trends: list[Trend] = Field(
        description="A list of key trends identified in the data."
    )


class InsightsResult(Contract):
    insights: list[str]


class SummaryResult(Contract):
    summary: str
