"""Generation stage: the pipeline's only external call."""

import logging

from gemini_insights.core.exceptions import (
    EmptyOutputError,
    InsightsError,
    ServiceUnavailableError,
)
from gemini_insights.core.types import (
    Failure,
    GeneratedCommand,
    PlannedCommand,
    Result,
    Success,
)
from gemini_insights.pipeline.adapters.base import GenerationAdapter
from gemini_insights.pipeline.base import BaseAsyncHandler

logger = logging.getLogger(__name__)


class GenerationHandler(
    BaseAsyncHandler[PlannedCommand, GeneratedCommand, InsightsError]
):
    """Sends the planned request through the injected adapter.

    Exactly one attempt is made. An empty response is its own failure kind,
    distinct from a parse failure later on.
    """

    def __init__(self, adapter: GenerationAdapter) -> None:
        self._adapter = adapter

    async def handle(
        self, command: PlannedCommand
    ) -> Result[GeneratedCommand, InsightsError]:
        request = command.request
        try:
            text = await self._adapter.generate(
                model_name=request.model_name,
                prompt=request.prompt,
                schema=request.schema,
                temperature=request.temperature,
            )
        except InsightsError as e:
            return Failure(e)
        except Exception as e:  # Defensive normalization
            error = ServiceUnavailableError(f"Generation call failed: {e}")
            error.__cause__ = e
            return Failure(error)

        if text is None or not text.strip():
            return Failure(
                EmptyOutputError(f"Model {request.model_name} returned no text")
            )
        logger.debug("Raw model output: %s", text)
        return Success(GeneratedCommand(planned=command, raw_text=text))
