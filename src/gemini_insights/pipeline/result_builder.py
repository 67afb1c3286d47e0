"""Terminal stage: shape the result envelope and attach provenance."""

from typing import Any, Never

from gemini_insights.core.tasks import TaskKind
from gemini_insights.core.types import Result, Success, TranslatedCommand
from gemini_insights.pipeline.base import BaseAsyncHandler


class ResultBuilder(BaseAsyncHandler[TranslatedCommand, dict[str, Any], Never]):
    """Build the final envelope. Never fails.

    Provenance metadata is added here, after validation, so it is never
    part of what the generation service had to produce.
    """

    async def handle(
        self, command: TranslatedCommand
    ) -> Result[dict[str, Any], Never]:
        initial = command.initial
        sample = command.planned.sample
        estimate = command.planned.budgeted.estimate

        payload: dict[str, Any] = {}
        if initial.task == TaskKind.SENTIMENT_SCORES:
            payload["count"] = len(sample)
        payload.update(command.data)
        payload["metadata"] = {
            "task": TaskKind.parse(initial.task).value,
            "model": command.planned.request.model_name,
            "full_record_count": sample.full_count,
            "sampled_record_count": len(sample),
            "sample_offset": sample.offset,
            "estimated_cost": estimate.estimated_cost,
            "fullRows": sample.full_count,
            "sampledRows": len(sample),
            "estimatedTokens": estimate.estimated_cost,
        }

        if command.target_language:
            return Success(
                {"target_language": command.target_language, "result": payload}
            )
        return Success(payload)
