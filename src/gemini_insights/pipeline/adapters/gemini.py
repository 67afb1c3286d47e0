"""Google GenAI adapter.

Wraps `google.genai.Client` behind the `GenerationAdapter` protocol and tags
provider failures where they happen. No retries are attempted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from google import genai
from google.genai import errors, types

from gemini_insights.constants import JSON_MIME_TYPE
from gemini_insights.core.exceptions import (
    SchemaRejectedError,
    ServiceUnavailableError,
)

if TYPE_CHECKING:
    from gemini_insights.core.schemas import Contract

log = logging.getLogger(__name__)


class GoogleGenAIAdapter:
    """Async generation through the google-genai SDK."""

    def __init__(self, api_key: str, *, client: Any | None = None) -> None:
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def build_config(
        self, schema: type[Contract] | None, temperature: float
    ) -> types.GenerateContentConfig:
        if schema is None:
            return types.GenerateContentConfig(temperature=temperature)
        return types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type=JSON_MIME_TYPE,
            response_schema=schema,
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        schema: type[Contract] | None,
        temperature: float,
    ) -> str | None:
        config = self.build_config(schema, temperature)
        try:
            response = await self._client.aio.models.generate_content(
                model=model_name,
                contents=prompt,
                config=config,
            )
        except errors.ClientError as e:
            if schema is not None and _is_schema_rejection(e):
                raise SchemaRejectedError(
                    f"Service rejected the '{schema.__name__}' schema: {e}"
                ) from e
            raise ServiceUnavailableError(str(e)) from e
        except Exception as e:
            raise ServiceUnavailableError(str(e)) from e

        text = getattr(response, "text", None)
        log.debug("Model %s returned %d chars", model_name, len(text or ""))
        return text


def _is_schema_rejection(error: errors.ClientError) -> bool:
    # Token overflow and thinking-config 400s are not schema problems
    if getattr(error, "status", None) != "INVALID_ARGUMENT":
        return False
    message = getattr(error, "message", None) or str(error)
    return "schema" in message.lower()
