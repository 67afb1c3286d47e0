"""Core data types that flow through the pipeline.

This module defines the immutable data structures that represent the state
of an analysis request as it moves through the processing stages. Each stage
wraps the previous state in a new one, so every later stage can still reach
the original command, dataset and sample without any shared mutable state.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from pathlib import Path
from types import MappingProxyType
import typing

from gemini_insights.core.exceptions import EmptyDatasetError

if typing.TYPE_CHECKING:
    from gemini_insights.config import FrozenConfig
    from gemini_insights.core.schemas import Contract
    from gemini_insights.core.tasks import TaskKind

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def freeze_record(values: Mapping[str, str]) -> Mapping[str, str]:
    """Return an immutable, order-preserving view of a record."""
    if isinstance(values, MappingProxyType):
        return values
    return MappingProxyType(dict(values))


# --- Result type ---
# Handlers return data instead of raising so the executor can name the
# failing stage precisely.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Dataset model ---

Record = Mapping[str, str]


@dataclasses.dataclass(frozen=True, slots=True)
class Dataset:
    """An ordered, non-empty sequence of records read from a tabular source."""

    source: str
    columns: tuple[str, ...]
    records: tuple[Record, ...]

    def __post_init__(self) -> None:
        _require(
            condition=bool(self.columns),
            message="dataset has no columns",
            exc=EmptyDatasetError,
        )
        _require(
            condition=bool(self.records),
            message="dataset has no records",
            exc=EmptyDatasetError,
        )

    def __len__(self) -> int:
        return len(self.records)


@dataclasses.dataclass(frozen=True, slots=True)
class Sample:
    """A contiguous window of a dataset. May be empty."""

    records: tuple[Record, ...]
    columns: tuple[str, ...]
    offset: int
    full_count: int

    def __post_init__(self) -> None:
        _require(
            condition=self.offset >= 0,
            message="must be >= 0",
            field_name="offset",
        )
        _require(
            condition=len(self.records) == 0
            or self.offset + len(self.records) <= self.full_count,
            message="window extends past the end of the dataset",
            field_name="records",
        )

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records or not self.columns


@dataclasses.dataclass(frozen=True, slots=True)
class CostEstimate:
    """Pre-flight cost estimate for a rendered payload."""

    payload_chars: int
    estimated_cost: int
    ceiling: int

    @property
    def within_budget(self) -> bool:
        return self.estimated_cost <= self.ceiling


@dataclasses.dataclass(frozen=True, slots=True)
class PromptPayload:
    """A fully rendered prompt. Built fresh per request and never retained."""

    text: str
    sampled_record_count: int
    full_record_count: int

    def __len__(self) -> int:
        return len(self.text)


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Everything the generation client needs for one call."""

    model_name: str
    prompt: str
    schema: type[Contract] | None
    temperature: float

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.prompt, str) and self.prompt.strip() != "",
            message="must be a non-empty str",
            field_name="prompt",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class Violation:
    """A single schema-conformance problem found in parsed output."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


# --- Command states ---


@dataclasses.dataclass(frozen=True, slots=True)
class AnalysisCommand:
    """The initial request: which task to run over which source."""

    task: TaskKind
    source: str | Path
    config: FrozenConfig
    target_language: str | None = None

    def __post_init__(self) -> None:
        _require(
            condition=str(self.source).strip() != "",
            message="cannot be empty",
            field_name="source",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class LoadedCommand:
    initial: AnalysisCommand
    dataset: Dataset


@dataclasses.dataclass(frozen=True, slots=True)
class SampledCommand:
    loaded: LoadedCommand
    sample: Sample

    @property
    def initial(self) -> AnalysisCommand:
        return self.loaded.initial


@dataclasses.dataclass(frozen=True, slots=True)
class BudgetedCommand:
    """A sample rendered as text, with an estimate that passed the ceiling."""

    sampled: SampledCommand
    rendered_sample: str
    estimate: CostEstimate

    @property
    def initial(self) -> AnalysisCommand:
        return self.sampled.initial

    @property
    def sample(self) -> Sample:
        return self.sampled.sample


@dataclasses.dataclass(frozen=True, slots=True)
class PlannedCommand:
    budgeted: BudgetedCommand
    request: GenerationRequest

    @property
    def initial(self) -> AnalysisCommand:
        return self.budgeted.initial

    @property
    def sample(self) -> Sample:
        return self.budgeted.sample


@dataclasses.dataclass(frozen=True, slots=True)
class GeneratedCommand:
    planned: PlannedCommand
    raw_text: str

    @property
    def initial(self) -> AnalysisCommand:
        return self.planned.initial


@dataclasses.dataclass(frozen=True, slots=True)
class ValidatedCommand:
    generated: GeneratedCommand
    data: dict[str, typing.Any]

    @property
    def initial(self) -> AnalysisCommand:
        return self.generated.initial

    @property
    def planned(self) -> PlannedCommand:
        return self.generated.planned


@dataclasses.dataclass(frozen=True, slots=True)
class TranslatedCommand:
    """Validated output after the optional translation stage.

    `target_language` is None when translation was a no-op.
    """

    validated: ValidatedCommand
    data: dict[str, typing.Any]
    target_language: str | None = None
    translated_fields: int = 0

    @property
    def initial(self) -> AnalysisCommand:
        return self.validated.initial

    @property
    def planned(self) -> PlannedCommand:
        return self.validated.planned


ResultEnvelope = dict[str, typing.Any]


def is_result_envelope(value: object) -> bool:
    """Return True when `value` looks like a finished result envelope."""
    return isinstance(value, dict) and all(isinstance(k, str) for k in value)
