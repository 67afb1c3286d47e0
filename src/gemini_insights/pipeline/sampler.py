"""Sampling stage: a deterministic, contiguous window over the dataset."""

import logging

from gemini_insights.core.exceptions import EmptyDatasetError, InsightsError
from gemini_insights.core.types import (
    Dataset,
    Failure,
    LoadedCommand,
    Result,
    SampledCommand,
    Sample,
    Success,
)
from gemini_insights.pipeline.base import BaseAsyncHandler

logger = logging.getLogger(__name__)


def take_sample(dataset: Dataset, offset: int, max_size: int) -> Sample:
    """Return up to `max_size` records starting at `offset`.

    Never reorders, filters, wraps or pads. An offset at or past the end of
    the dataset yields an empty sample.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if max_size < 0:
        raise ValueError(f"max_size must be >= 0, got {max_size}")
    total = len(dataset.records)
    records = dataset.records[offset : offset + max_size] if offset < total else ()
    return Sample(
        records=tuple(records),
        columns=dataset.columns,
        offset=offset,
        full_count=total,
    )


class Sampler(BaseAsyncHandler[LoadedCommand, SampledCommand, InsightsError]):
    """Selects the configured window and rejects empty windows."""

    async def handle(
        self, command: LoadedCommand
    ) -> Result[SampledCommand, InsightsError]:
        config = command.initial.config
        try:
            sample = take_sample(
                command.dataset, config.start_offset, config.sample_size
            )
        except ValueError as e:
            return Failure(EmptyDatasetError(str(e)))

        if sample.is_empty:
            return Failure(
                EmptyDatasetError(
                    f"No records to analyze at offset {config.start_offset} "
                    f"(dataset has {sample.full_count} records)"
                )
            )
        if len(sample) < config.sample_size:
            logger.debug(
                "Sample window clamped to %d of %d requested records",
                len(sample),
                config.sample_size,
            )
        return Success(SampledCommand(loaded=command, sample=sample))
