"""Dataset loading stage of the pipeline."""

import logging
from pathlib import Path

import pandas as pd

from gemini_insights.core.exceptions import (
    EmptyDatasetError,
    InsightsError,
    SourceNotFoundError,
    UnreadableSourceError,
)
from gemini_insights.core.types import (
    AnalysisCommand,
    Dataset,
    Failure,
    LoadedCommand,
    Result,
    Success,
    freeze_record,
)
from gemini_insights.pipeline.base import BaseAsyncHandler

logger = logging.getLogger(__name__)


def read_frame(path: Path) -> pd.DataFrame:
    """Read a CSV with every value kept as the raw string from the file.

    Nothing is parsed as NA and the first column is never promoted to an
    index. Short rows are padded with empty strings.

    Raises:
        SourceNotFoundError: If the file disappears before it is read.
        EmptyDatasetError: If the file has no header row.
        UnreadableSourceError: If it cannot be opened, decoded or parsed.
    """
    try:
        frame = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            index_col=False,
            encoding="utf-8-sig",
        )
    except FileNotFoundError as e:
        raise SourceNotFoundError(f"Dataset not found: {path}", source=str(path)) from e
    except pd.errors.EmptyDataError as e:
        raise EmptyDatasetError(f"Dataset has no header row: {path}") from e
    except UnicodeDecodeError as e:
        raise UnreadableSourceError(
            f"Dataset is not valid UTF-8: {path}: {e}", source=str(path)
        ) from e
    except (pd.errors.ParserError, OSError) as e:
        raise UnreadableSourceError(
            f"Failed to read dataset {path}: {e}", source=str(path)
        ) from e
    return frame.fillna("")


def load_dataset(source: str | Path) -> Dataset:
    """Read a CSV file with a header row into an in-memory `Dataset`.

    Record order and column order are kept exactly as in the file.

    Raises:
        SourceNotFoundError: If `source` is not an existing file.
        EmptyDatasetError: If the file has no header or no data rows.
        UnreadableSourceError: If the file exists but cannot be read as CSV.
    """
    path = Path(source)
    if not path.is_file():
        raise SourceNotFoundError(f"Dataset not found: {path}", source=str(path))

    frame = read_frame(path)
    if frame.empty:
        raise EmptyDatasetError(f"Dataset has no records: {path}")

    columns = tuple(str(column) for column in frame.columns)
    records = tuple(
        freeze_record(dict(zip(columns, row, strict=True)))
        for row in frame.itertuples(index=False, name=None)
    )

    logger.debug(
        "Loaded %d records with %d columns from %s", len(records), len(columns), path
    )
    return Dataset(source=str(path), columns=columns, records=records)


class DatasetLoader(BaseAsyncHandler[AnalysisCommand, LoadedCommand, InsightsError]):
    """Loads the command's source into memory."""

    async def handle(
        self, command: AnalysisCommand
    ) -> Result[LoadedCommand, InsightsError]:
        try:
            dataset = load_dataset(command.source)
            return Success(LoadedCommand(initial=command, dataset=dataset))
        except InsightsError as e:
            return Failure(e)
        except Exception as e:  # Defensive normalization
            return Failure(
                UnreadableSourceError(
                    f"Failed to read dataset '{command.source}': {e}",
                    source=str(command.source),
                )
            )
