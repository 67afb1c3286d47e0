"""Exception hierarchy for the insights pipeline.

Every domain failure carries a closed `ErrorKind` tag assigned at the point
where the failure is detected. Callers branch on `kind`, never on message text.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gemini_insights.core.types import Violation


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers."""

    SOURCE_NOT_FOUND = "source_not_found"
    UNREADABLE_SOURCE = "unreadable_source"
    EMPTY_DATASET = "empty_dataset"
    BUDGET_EXCEEDED = "budget_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    EMPTY_OUTPUT = "empty_output"
    MALFORMED_OUTPUT = "malformed_output"
    SCHEMA_REJECTED = "schema_rejected"
    CONFIGURATION = "configuration"
    PIPELINE = "pipeline"
    INVARIANT_VIOLATION = "invariant_violation"


class InsightsError(Exception):
    """Base exception for all insights pipeline errors."""

    kind: ErrorKind = ErrorKind.PIPELINE


class ConfigurationError(InsightsError):
    """Raised when configuration or a static contract is invalid."""

    kind = ErrorKind.CONFIGURATION


class SourceNotFoundError(InsightsError):
    """Raised when the dataset source does not exist."""

    kind = ErrorKind.SOURCE_NOT_FOUND

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class UnreadableSourceError(InsightsError):
    """Raised when the dataset source exists but cannot be decoded or parsed."""

    kind = ErrorKind.UNREADABLE_SOURCE

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class EmptyDatasetError(InsightsError):
    """Raised when the dataset, or the sampled window of it, has no records."""

    kind = ErrorKind.EMPTY_DATASET


class BudgetExceededError(InsightsError):
    """Raised before any service call when the estimated cost is over the ceiling."""

    kind = ErrorKind.BUDGET_EXCEEDED

    def __init__(
        self,
        message: str,
        *,
        estimated_cost: int,
        ceiling: int,
        suggested_rows: int,
    ) -> None:
        super().__init__(message)
        self.estimated_cost = estimated_cost
        self.ceiling = ceiling
        self.suggested_rows = suggested_rows


class ServiceUnavailableError(InsightsError):
    """Raised when the generation service call fails at the network/service level."""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class SchemaRejectedError(InsightsError):
    """Raised when the generation service rejects the schema contract itself."""

    kind = ErrorKind.SCHEMA_REJECTED


class EmptyOutputError(InsightsError):
    """Raised when the generation service returns no text."""

    kind = ErrorKind.EMPTY_OUTPUT


class MalformedOutputError(InsightsError):
    """Raised when output cannot be parsed or does not match the schema shape."""

    kind = ErrorKind.MALFORMED_OUTPUT

    def __init__(
        self,
        message: str,
        *,
        raw_text: str,
        violations: Sequence[Violation] = (),
    ) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.violations = tuple(violations)


class PipelineError(InsightsError):
    """Raised by the executor when a stage returns a failure."""

    def __init__(
        self, message: str, stage_name: str, underlying_error: Exception
    ) -> None:
        super().__init__(f"Pipeline failed at stage '{stage_name}': {message}")
        self.stage_name = stage_name
        self.underlying_error = underlying_error

    @property
    def error_kind(self) -> ErrorKind:
        """Return the tag of the underlying failure."""
        if isinstance(self.underlying_error, InsightsError):
            return self.underlying_error.kind
        return ErrorKind.PIPELINE


class InvariantViolationError(InsightsError):
    """Raised when the pipeline finishes without producing a result envelope."""

    kind = ErrorKind.INVARIANT_VIOLATION

    def __init__(self, message: str, *, stage_name: str | None = None) -> None:
        super().__init__(message)
        self.stage_name = stage_name
