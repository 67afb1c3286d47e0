"""Pre-flight budget guard.

The generation service charges for and bounds input size, so an oversized
payload is rejected here, before any network call is made.
"""

import logging
import math

from gemini_insights.constants import (
    ASSUMED_CHARS_PER_FIELD,
    CHARS_PER_TOKEN,
    PROMPT_OVERHEAD_TOKENS,
)
from gemini_insights.core.exceptions import (
    BudgetExceededError,
    ConfigurationError,
    EmptyDatasetError,
    InsightsError,
)
from gemini_insights.core.tasks import get_profile
from gemini_insights.core.types import (
    BudgetedCommand,
    CostEstimate,
    Failure,
    Result,
    SampledCommand,
    Success,
)
from gemini_insights.pipeline.base import BaseAsyncHandler
from gemini_insights.pipeline.request_builder import render_sample
from gemini_insights.telemetry import TelemetryContext, TelemetryReporter

logger = logging.getLogger(__name__)


def estimate_cost(payload: str | int) -> int:
    """Estimate input tokens for a payload or a payload length.

    ``ceil(chars / CHARS_PER_TOKEN) + PROMPT_OVERHEAD_TOKENS``; monotonic in length.
    """
    chars = payload if isinstance(payload, int) else len(payload)
    if chars < 0:
        raise ValueError(f"payload length must be >= 0, got {chars}")
    return math.ceil(chars / CHARS_PER_TOKEN) + PROMPT_OVERHEAD_TOKENS


def suggest_row_count(
    ceiling: int, column_count: int, *, current_rows: int | None = None
) -> int:
    """Suggest a sample size that should fit under `ceiling`.

    Assumes every field renders to about ``ASSUMED_CHARS_PER_FIELD`` characters.
    When `current_rows` is given the suggestion is strictly smaller than it.
    """
    budget_chars = max(ceiling - PROMPT_OVERHEAD_TOKENS, 0) * CHARS_PER_TOKEN
    per_row = max(column_count, 1) * ASSUMED_CHARS_PER_FIELD
    suggested = budget_chars // per_row
    if current_rows is not None:
        suggested = min(suggested, max(current_rows - 1, 0))
    return max(suggested, 0)


def check_budget(
    rendered: str, *, ceiling: int, column_count: int, row_count: int
) -> CostEstimate:
    """Estimate `rendered` and raise `BudgetExceededError` if over `ceiling`."""
    estimate = CostEstimate(
        payload_chars=len(rendered),
        estimated_cost=estimate_cost(rendered),
        ceiling=ceiling,
    )
    if not estimate.within_budget:
        suggested = suggest_row_count(
            ceiling, column_count, current_rows=row_count
        )
        raise BudgetExceededError(
            f"CSV too large ({estimate.estimated_cost} estimated tokens, "
            f"ceiling {ceiling}). Sample only {suggested} rows or use a smaller file.",
            estimated_cost=estimate.estimated_cost,
            ceiling=ceiling,
            suggested_rows=suggested,
        )
    return estimate


class BudgetGuard(BaseAsyncHandler[SampledCommand, BudgetedCommand, InsightsError]):
    """Renders the sample and enforces the configured cost ceiling."""

    def __init__(self, reporters: tuple[TelemetryReporter, ...] = ()) -> None:
        self._telemetry = TelemetryContext(*reporters)

    async def handle(
        self, command: SampledCommand
    ) -> Result[BudgetedCommand, InsightsError]:
        sample = command.sample
        config = command.initial.config
        if sample.is_empty:
            return Failure(EmptyDatasetError("Nothing to estimate: sample is empty"))
        try:
            profile = get_profile(command.initial.task)
            rendered = render_sample(
                sample,
                layout=profile.layout,
                id_column=config.id_column,
                text_column=config.text_column,
            )
            estimate = check_budget(
                rendered,
                ceiling=config.token_ceiling,
                column_count=len(sample.columns),
                row_count=len(sample),
            )
        except BudgetExceededError as e:
            logger.info("Rejected before generation: %s", e)
            self._telemetry.count("budget.rejected")
            return Failure(e)
        except InsightsError as e:
            return Failure(e)
        except Exception as e:  # Defensive normalization
            return Failure(ConfigurationError(f"Budget estimation failed: {e}"))

        logger.info(
            "Using %d rows; estimated tokens: %d", len(sample), estimate.estimated_cost
        )
        self._telemetry.gauge("budget.estimated_tokens", estimate.estimated_cost)
        return Success(
            BudgetedCommand(
                sampled=command, rendered_sample=rendered, estimate=estimate
            )
        )
