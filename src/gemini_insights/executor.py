"""The primary user-facing entry point for the pipeline.

The executor runs a fixed sequence of handlers, turns the first `Failure`
into a `PipelineError` that names the failing stage, and enforces a final
invariant: the terminal value must be a result envelope dict.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from time import perf_counter
from typing import TYPE_CHECKING, Any

from gemini_insights.client import initialize_client
from gemini_insights.config import FrozenConfig, resolve_config
from gemini_insights.core.exceptions import (
    InsightsError,
    InvariantViolationError,
    PipelineError,
)
from gemini_insights.core.tasks import TaskKind
from gemini_insights.core.types import (
    AnalysisCommand,
    Failure,
    Result,
    ResultEnvelope,
    Success,
    is_result_envelope,
)
from gemini_insights.pipeline.budget import BudgetGuard
from gemini_insights.pipeline.dataset_loader import DatasetLoader
from gemini_insights.pipeline.generation_handler import GenerationHandler
from gemini_insights.pipeline.request_builder import RequestBuilder
from gemini_insights.pipeline.response_validator import ResponseValidator
from gemini_insights.pipeline.result_builder import ResultBuilder
from gemini_insights.pipeline.sampler import Sampler
from gemini_insights.pipeline.translator import TranslationStage
from gemini_insights.telemetry import TelemetryContext, TelemetryReporter

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gemini_insights.pipeline.adapters.base import GenerationAdapter
    from gemini_insights.pipeline.base import BaseAsyncHandler

logger = logging.getLogger(__name__)


class InsightsExecutor:
    """Executes analysis commands through a pipeline of handlers.

    Stages, in order: load, sample, budget, build request, generate,
    validate, translate, build result. Nothing is shared between runs.
    """

    def __init__(
        self,
        config: FrozenConfig,
        adapter: GenerationAdapter | None = None,
        pipeline_handlers: Iterable[BaseAsyncHandler[Any, Any, InsightsError]]
        | None = None,
        *,
        reporters: tuple[TelemetryReporter, ...] = (),
    ) -> None:
        """Initialize the executor.

        Args:
            config: Frozen configuration attached to every command.
            adapter: Generation adapter; defaults to the process-wide client.
            pipeline_handlers: Optional handlers replacing the default pipeline.
            reporters: Telemetry reporters (active only when telemetry is enabled).
        """
        self.config = config
        self._reporters = reporters
        handlers = list(
            pipeline_handlers
            if pipeline_handlers is not None
            else self._build_default_pipeline(adapter or initialize_client(config))
        )
        if not handlers:
            raise ValueError("Pipeline may not be empty; provide at least one handler.")
        self._pipeline = handlers

    def _build_default_pipeline(self, adapter: GenerationAdapter) -> list[Any]:
        return [
            DatasetLoader(),
            Sampler(),
            BudgetGuard(self._reporters),
            RequestBuilder(),
            GenerationHandler(adapter),
            ResponseValidator(),
            TranslationStage(adapter),
            ResultBuilder(),
        ]

    async def execute(self, command: AnalysisCommand) -> ResultEnvelope:
        """Execute a command through the pipeline.

        Raises:
            PipelineError: If any stage returns a failure result.
            InvariantViolationError: If a handler breaks the Result contract
                or the pipeline ends without an envelope.
        """
        current: Any = command
        last_stage_name: str | None = None
        stage_durations: dict[str, float] = {}
        ctx = TelemetryContext(*self._reporters)

        for handler in self._pipeline:
            last_stage_name = type(handler).__name__
            with ctx("pipeline.stage", stage=last_stage_name):
                start = perf_counter()
                result: Result[Any, InsightsError] = await handler.handle(current)
                stage_durations[last_stage_name] = perf_counter() - start

            if not isinstance(result, Success | Failure):
                ctx.count("pipeline.invariant_violation", stage=last_stage_name)
                raise InvariantViolationError(
                    "Handler returned a non-Result value; expected Success|Failure.",
                    stage_name=last_stage_name,
                )
            if isinstance(result, Failure):
                ctx.count("pipeline.error", stage=last_stage_name)
                raise PipelineError(str(result.error), last_stage_name, result.error)
            current = result.value

        if not is_result_envelope(current):
            ctx.count(
                "pipeline.invariant_violation",
                stage=last_stage_name or "unknown_stage",
            )
            raise InvariantViolationError(
                "Executor ended without a result envelope; the final stage must "
                "produce a dict (e.g., ResultBuilder).",
                stage_name=last_stage_name,
            )
        logger.debug(
            "Pipeline finished in %.3fs: %s",
            sum(stage_durations.values()),
            stage_durations,
        )
        return current

    async def run(
        self,
        task: TaskKind | str,
        source: str | Path | None = None,
        *,
        target_language: str | None = None,
    ) -> ResultEnvelope:
        """Build a command for `task` and execute it."""
        command = AnalysisCommand(
            task=TaskKind.parse(task),
            source=source if source is not None else self.config.dataset_path,
            config=self.config,
            target_language=target_language,
        )
        return await self.execute(command)

    @property
    def stage_names(self) -> tuple[str, ...]:
        """Return the pipeline's stage names in execution order."""
        return tuple(type(h).__name__ for h in self._pipeline)


def create_executor(
    config: FrozenConfig | None = None,
    *,
    adapter: GenerationAdapter | None = None,
    reporters: tuple[TelemetryReporter, ...] = (),
) -> InsightsExecutor:
    """Create an executor, resolving configuration when none is given.

    This is the only place where ambient configuration is resolved.
    """
    final_config = config if config is not None else resolve_config().to_frozen()
    return InsightsExecutor(final_config, adapter, reporters=reporters)


def run_task(
    task: TaskKind | str,
    source: str | Path | None = None,
    *,
    target_language: str | None = None,
    config: FrozenConfig | None = None,
    adapter: GenerationAdapter | None = None,
) -> ResultEnvelope:
    """Run one task synchronously and return its envelope.

    Example:
        result = run_task("summary", "tweets.csv", target_language="hindi")
    """
    executor = create_executor(config, adapter=adapter)
    return asyncio.run(
        executor.run(task, source, target_language=target_language)
    )
