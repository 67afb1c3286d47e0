"""Structured insight extraction from tabular data with Gemini."""

import importlib.metadata
import logging

from gemini_insights.client import get_client, initialize_client
from gemini_insights.config import (
    FrozenConfig,
    ResolvedConfig,
    config_scope,
    resolve_config,
)
from gemini_insights.core.exceptions import (
    BudgetExceededError,
    ConfigurationError,
    EmptyDatasetError,
    EmptyOutputError,
    ErrorKind,
    InsightsError,
    InvariantViolationError,
    MalformedOutputError,
    PipelineError,
    SchemaRejectedError,
    ServiceUnavailableError,
    SourceNotFoundError,
    UnreadableSourceError,
)
from gemini_insights.core.schemas import Contract
from gemini_insights.core.tasks import TaskKind, TaskProfile, get_profile
from gemini_insights.core.types import (
    AnalysisCommand,
    Dataset,
    Failure,
    Result,
    ResultEnvelope,
    Sample,
    Success,
)
from gemini_insights.executor import InsightsExecutor, create_executor, run_task
from gemini_insights.pipeline.adapters.base import GenerationAdapter
from gemini_insights.telemetry import TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("gemini-insights")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Entry points
    "InsightsExecutor",
    "create_executor",
    "run_task",
    # Client lifecycle
    "initialize_client",
    "get_client",
    "GenerationAdapter",
    # Configuration
    "resolve_config",
    "config_scope",
    "ResolvedConfig",
    "FrozenConfig",
    # Tasks and contracts
    "TaskKind",
    "TaskProfile",
    "get_profile",
    "Contract",
    # Data types
    "AnalysisCommand",
    "Dataset",
    "Sample",
    "Result",
    "Success",
    "Failure",
    "ResultEnvelope",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Errors
    "ErrorKind",
    "InsightsError",
    "ConfigurationError",
    "SourceNotFoundError",
    "UnreadableSourceError",
    "EmptyDatasetError",
    "BudgetExceededError",
    "ServiceUnavailableError",
    "SchemaRejectedError",
    "EmptyOutputError",
    "MalformedOutputError",
    "PipelineError",
    "InvariantViolationError",
]
