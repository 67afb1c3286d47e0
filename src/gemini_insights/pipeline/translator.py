"""Optional translation of human-readable output fields.

Translation is best effort. Each field is translated independently and a
failed field keeps its original text; the analytical result is never lost
because of a translation problem. Results are reassembled by input index,
never by completion order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Sequence
import copy
import logging
from typing import TYPE_CHECKING, Any

from gemini_insights.constants import TRANSLATION_TEMPERATURE
from gemini_insights.core.exceptions import InsightsError
from gemini_insights.core.tasks import get_profile
from gemini_insights.core.types import (
    Failure,
    Result,
    Success,
    TranslatedCommand,
    ValidatedCommand,
)
from gemini_insights.pipeline.base import BaseAsyncHandler

if TYPE_CHECKING:
    from gemini_insights.pipeline.adapters.base import GenerationAdapter

logger = logging.getLogger(__name__)

TRANSLATION_PROMPT = (
    "Translate the following text into {language}. Return ONLY the translated "
    "text. Text to translate: {text}"
)

Location = tuple[str | int, ...]


class Translator:
    """Translates batches of strings through a generation adapter."""

    def __init__(
        self,
        adapter: GenerationAdapter,
        *,
        model: str,
        native_language: str,
        max_concurrency: int = 4,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._adapter = adapter
        self._model = model
        self._native_language = native_language
        self._max_concurrency = max_concurrency

    def should_translate(self, target_language: str | None) -> bool:
        """False for a missing target or the native language (case-insensitive)."""
        if target_language is None or not target_language.strip():
            return False
        return (
            target_language.strip().casefold()
            != self._native_language.strip().casefold()
        )

    async def translate_texts(
        self, texts: Sequence[str], target_language: str | None
    ) -> list[str]:
        """Translate `texts`, preserving length and order.

        Empty strings are returned as-is without a call. Any field whose call
        fails or comes back empty keeps its original text.
        """
        language = (target_language or "").strip()
        if not self.should_translate(language):
            return list(texts)
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _one(text: str) -> str | None:
            if not text.strip():
                return text
            async with semaphore:
                return await self._adapter.generate(
                    model_name=self._model,
                    prompt=TRANSLATION_PROMPT.format(language=language, text=text),
                    schema=None,
                    temperature=TRANSLATION_TEMPERATURE,
                )

        outcomes = await asyncio.gather(
            *(_one(text) for text in texts), return_exceptions=True
        )

        translated: list[str] = []
        for index, (original, outcome) in enumerate(zip(texts, outcomes, strict=True)):
            if isinstance(outcome, Exception):
                logger.warning(
                    "Translation of field %d to %s failed; keeping original: %s",
                    index,
                    language,
                    outcome,
                )
                translated.append(original)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is None or not outcome.strip():
                if original.strip():
                    logger.warning(
                        "Translation of field %d to %s was empty; keeping original",
                        index,
                        language,
                    )
                translated.append(original)
            else:
                translated.append(outcome.strip())
        return translated


# --- Field paths ---


def parse_path(path: str) -> tuple[str, ...]:
    """Split ``a[*].b`` into ``("a", "*", "b")``."""
    segments: list[str] = []
    for part in path.split("."):
        if part.endswith("[*]"):
            segments.extend((part[:-3], "*"))
        else:
            segments.append(part)
    return tuple(segments)


def _walk(node: Any, segments: tuple[str, ...], at: Location) -> Iterator[tuple[Location, str]]:
    if not segments:
        if isinstance(node, str):
            yield at, node
        return
    head, rest = segments[0], segments[1:]
    if head == "*":
        if isinstance(node, list):
            for index, item in enumerate(node):
                yield from _walk(item, rest, (*at, index))
    elif isinstance(node, dict) and head in node:
        yield from _walk(node[head], rest, (*at, head))


def collect_text_fields(
    data: dict[str, Any], paths: Sequence[str]
) -> list[tuple[Location, str]]:
    """Find string fields at `paths`, in path order then array index order."""
    found: list[tuple[Location, str]] = []
    for path in paths:
        found.extend(_walk(data, parse_path(path), ()))
    return found


def assign(data: Any, location: Location, value: str) -> None:
    node = data
    for key in location[:-1]:
        node = node[key]
    node[location[-1]] = value


class TranslationStage(
    BaseAsyncHandler[ValidatedCommand, TranslatedCommand, InsightsError]
):
    """Translates a task's designated fields when a foreign target is requested."""

    def __init__(self, adapter: GenerationAdapter) -> None:
        self._adapter = adapter

    async def handle(
        self, command: ValidatedCommand
    ) -> Result[TranslatedCommand, InsightsError]:
        initial = command.initial
        config = initial.config
        requested = (
            initial.target_language
            if initial.target_language is not None
            else config.target_language
        )
        language = (requested or "").strip()
        profile = get_profile(initial.task)
        translator = Translator(
            self._adapter,
            model=config.model,
            native_language=config.native_language,
            max_concurrency=config.translation_concurrency,
        )
        if not profile.translatable or not translator.should_translate(language):
            return Success(TranslatedCommand(validated=command, data=command.data))

        try:
            fields = collect_text_fields(command.data, profile.translatable_paths)
            texts = [text for _, text in fields]
            translated = await translator.translate_texts(texts, language)
            data = copy.deepcopy(command.data)
            for (location, _), text in zip(fields, translated, strict=True):
                assign(data, location, text)
        except InsightsError as e:
            return Failure(e)
        except Exception as e:  # Defensive normalization
            return Failure(InsightsError(f"Translation stage failed: {e}"))

        logger.debug("Translated %d fields into %s", len(fields), language)
        return Success(
            TranslatedCommand(
                validated=command,
                data=data,
                target_language=language,
                translated_fields=len(fields),
            )
        )
