"""Prompt rendering and request assembly.

Rendering is plain, deterministic string construction. The `table` layout
emits a header line, one quoted, comma-joined line per record and a trailing
note with the full dataset size. The `id_text` layout emits one
``ID: <id> | TEXT: <text>`` line per record for per-record scoring, followed
by the same full dataset size note.
"""

import logging

from gemini_insights.core.exceptions import ConfigurationError, InsightsError
from gemini_insights.core.tasks import SampleLayout, TaskProfile, get_profile
from gemini_insights.core.types import (
    BudgetedCommand,
    Failure,
    GenerationRequest,
    PlannedCommand,
    PromptPayload,
    Result,
    Sample,
    Success,
)
from gemini_insights.pipeline.base import BaseAsyncHandler

logger = logging.getLogger(__name__)


def quote(value: str) -> str:
    """Quote a field value, doubling any embedded quote characters."""
    return '"' + value.replace('"', '""') + '"'


def render_table(sample: Sample) -> str:
    header = ",".join(sample.columns)
    rows = [
        ",".join(quote(record.get(column, "")) for column in sample.columns)
        for record in sample.records
    ]
    lines = [
        f"Headers: {header}",
        "",
        f"Sample Data ({len(sample)} of {sample.full_count} rows sampled for analysis):",
        *rows,
        "",
        f"Full dataset has {sample.full_count} rows. "
        "Extrapolate trends from this sample.",
    ]
    return "\n".join(lines)


def presented_ids(sample: Sample, id_column: str) -> list[str]:
    """Return the sample's ids in order, rejecting missing or repeated ids."""
    if id_column not in sample.columns:
        raise ConfigurationError(
            f"Id column '{id_column}' not found; available: {list(sample.columns)}"
        )
    ids = [record.get(id_column, "").strip() for record in sample.records]
    if any(not i for i in ids):
        raise ConfigurationError(f"Every record needs a non-empty '{id_column}'")
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate ids in sample: {duplicates}")
    return ids


def render_id_text(sample: Sample, id_column: str, text_column: str) -> str:
    if text_column not in sample.columns:
        raise ConfigurationError(
            f"Text column '{text_column}' not found; available: {list(sample.columns)}"
        )
    ids = presented_ids(sample, id_column)
    lines = [
        f"ID: {record_id} | TEXT: {_single_line(record.get(text_column, ''))}"
        for record_id, record in zip(ids, sample.records, strict=True)
    ]
    lines.append(f"(Full dataset has {sample.full_count} rows.)")
    return "\n".join(lines)


def render_sample(
    sample: Sample,
    *,
    layout: SampleLayout = "table",
    id_column: str = "id",
    text_column: str = "tweet",
) -> str:
    """Render a sample block for the given layout."""
    if layout == "id_text":
        return render_id_text(sample, id_column, text_column)
    return render_table(sample)


def build_prompt(
    profile: TaskProfile, rendered_sample: str, sample: Sample
) -> PromptPayload:
    """Fill the task's instruction template around a rendered sample."""
    text = profile.instruction.format(
        sample_block=rendered_sample,
        sampled_count=len(sample),
        full_count=sample.full_count,
    )
    return PromptPayload(
        text=text,
        sampled_record_count=len(sample),
        full_record_count=sample.full_count,
    )


def _single_line(text: str) -> str:
    return " ".join(text.split())


class RequestBuilder(BaseAsyncHandler[BudgetedCommand, PlannedCommand, InsightsError]):
    """Turns a budgeted sample into a schema-constrained generation request."""

    async def handle(
        self, command: BudgetedCommand
    ) -> Result[PlannedCommand, InsightsError]:
        try:
            initial = command.initial
            profile = get_profile(initial.task)
            payload = build_prompt(profile, command.rendered_sample, command.sample)
            request = GenerationRequest(
                model_name=initial.config.model,
                prompt=payload.text,
                schema=profile.contract,
                temperature=profile.temperature,
            )
            logger.debug(
                "Built %s request: %d prompt chars", profile.kind.value, len(payload)
            )
            return Success(PlannedCommand(budgeted=command, request=request))
        except InsightsError as e:
            return Failure(e)
        except Exception as e:  # Defensive normalization
            return Failure(ConfigurationError(f"Failed to build request: {e}"))
