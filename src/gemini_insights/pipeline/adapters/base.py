"""Provider-neutral generation capability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gemini_insights.core.schemas import Contract


@runtime_checkable
class GenerationAdapter(Protocol):
    """Minimal capability the pipeline needs from a text-generation service.

    Implementations return the raw response text, or None when the service
    produced nothing. Provider failures must be raised as
    `ServiceUnavailableError` or `SchemaRejectedError`.
    """

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        schema: type[Contract] | None,
        temperature: float,
    ) -> str | None: ...
