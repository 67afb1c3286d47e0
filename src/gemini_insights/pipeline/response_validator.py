"""Response validation stage.

Raw model text is parsed, validated against the task's pydantic contract
and then run through task-specific reconciliation. There is no partial success:
either a conformant structure comes out, or the stage fails with a tagged
error that carries the raw text.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from gemini_insights.constants import PERCENT_TOLERANCE
from gemini_insights.core.exceptions import (
    EmptyOutputError,
    InsightsError,
    MalformedOutputError,
)
from gemini_insights.core.tasks import TaskKind
from gemini_insights.core.types import (
    Failure,
    GeneratedCommand,
    Result,
    Success,
    ValidatedCommand,
    Violation,
)
from gemini_insights.pipeline.base import BaseAsyncHandler
from gemini_insights.pipeline.request_builder import presented_ids

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pydantic_core import ErrorDetails

    from gemini_insights.core.schemas import Contract

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL | re.IGNORECASE)

_COUNT_FIELDS = ("positive", "negative", "neutral")


def extract_json_text(raw_text: str | None) -> str:
    """Strip padding and a markdown code fence from model output.

    Raises:
        EmptyOutputError: If the text is missing or blank.
    """
    if raw_text is None or not raw_text.strip():
        raise EmptyOutputError("Model returned empty output")

    text = raw_text.strip()
    fenced = _FENCED_JSON.match(text)
    if fenced:
        text = fenced.group(1).strip()
    return text


def parse_structured_output(raw_text: str | None) -> dict[str, Any]:
    """Deserialize model output into a JSON object.

    Raises:
        EmptyOutputError: If the text is missing or blank.
        MalformedOutputError: If it is not JSON, or not a JSON object.
    """
    text = extract_json_text(raw_text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(
            f"Model output is not valid JSON: {e.msg} at position {e.pos}",
            raw_text=raw_text,
        ) from e

    if not isinstance(data, dict):
        raise MalformedOutputError(
            f"Expected a JSON object, got {type(data).__name__}", raw_text=raw_text
        )
    return data


def validate_output(
    text: str, contract: type[Contract], raw_text: str
) -> dict[str, Any]:
    """Validate JSON text against `contract` and return the conformant data.

    Fields the model left out are not filled with defaults, so the result
    holds exactly what was returned.

    Raises:
        MalformedOutputError: With one `Violation` per validation error.
    """
    try:
        model = contract.model_validate_json(text)
    except ValidationError as e:
        violations = [_as_violation(error) for error in e.errors()]
        raise MalformedOutputError(
            f"Output does not match the '{contract.__name__}' schema: "
            + "; ".join(str(v) for v in violations[:5]),
            raw_text=raw_text,
            violations=violations,
        ) from e
    return model.model_dump(exclude_unset=True)


def _as_violation(error: ErrorDetails) -> Violation:
    path = "$"
    for part in error["loc"]:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return Violation(path, error["msg"])


def reconcile_sentiment_scores(
    data: dict[str, Any], ids: Sequence[str], raw_text: str
) -> dict[str, Any]:
    """Match scores to presented ids and return them in presented order.

    Ids are the join key; position in the model output is ignored.
    """
    results = data["sentiments"]
    returned = [str(item["id"]).strip() for item in results]
    problems: list[Violation] = []

    if len(results) != len(ids):
        problems.append(
            Violation(
                "$.sentiments",
                f"expected {len(ids)} results, got {len(results)}",
            )
        )
    seen: set[str] = set()
    for index, record_id in enumerate(returned):
        if record_id in seen:
            problems.append(
                Violation(f"$.sentiments[{index}].id", f"duplicate id {record_id!r}")
            )
        seen.add(record_id)
    unknown = sorted(seen - set(ids))
    missing = [i for i in ids if i not in seen]
    if unknown:
        problems.append(Violation("$.sentiments", f"unknown ids: {unknown}"))
    if missing:
        problems.append(Violation("$.sentiments", f"missing ids: {missing}"))

    if problems:
        raise MalformedOutputError(
            "Sentiment scores do not match the presented records: "
            + "; ".join(str(p) for p in problems),
            raw_text=raw_text,
            violations=problems,
        )

    by_id = {record_id: item for record_id, item in zip(returned, results, strict=True)}
    ordered = [{**by_id[i], "id": i} for i in ids]
    return {**data, "sentiments": ordered}


def reconcile_sentiment_counts(data: dict[str, Any], raw_text: str) -> dict[str, Any]:
    """Make percentages agree with the counts they were computed from."""
    counts = {name: data[name] for name in _COUNT_FIELDS}
    negative = [name for name, count in counts.items() if count < 0]
    if negative:
        raise MalformedOutputError(
            f"Sentiment counts must be non-negative: {negative}",
            raw_text=raw_text,
            violations=[Violation(f"$.{n}", "negative count") for n in negative],
        )

    total = sum(counts.values())
    if total > 0:
        expected = {name: counts[name] / total * 100 for name in _COUNT_FIELDS}
    else:
        expected = dict.fromkeys(_COUNT_FIELDS, 0.0)
    percents = {name: data[f"{name}_percent"] for name in _COUNT_FIELDS}

    consistent = all(
        abs(percents[name] - expected[name]) <= PERCENT_TOLERANCE
        for name in _COUNT_FIELDS
    )
    if total > 0:
        consistent = consistent and (
            abs(sum(percents.values()) - 100) <= PERCENT_TOLERANCE
        )
    if consistent:
        return data

    logger.warning(
        "Sentiment percentages %s disagree with counts %s; recomputing",
        percents,
        counts,
    )
    fixed = dict(data)
    for name in _COUNT_FIELDS:
        fixed[f"{name}_percent"] = round(expected[name], 2)
    return fixed


class ResponseValidator(
    BaseAsyncHandler[GeneratedCommand, ValidatedCommand, InsightsError]
):
    """Parses and checks model output against the task's contract."""

    async def handle(
        self, command: GeneratedCommand
    ) -> Result[ValidatedCommand, InsightsError]:
        raw_text = command.raw_text
        try:
            contract = command.planned.request.schema
            data = parse_structured_output(raw_text)
            if contract is not None:
                data = validate_output(extract_json_text(raw_text), contract, raw_text)
            data = self._reconcile(command, data)
            return Success(ValidatedCommand(generated=command, data=data))
        except InsightsError as e:
            if isinstance(e, MalformedOutputError):
                logger.debug("Rejected model output: %s", raw_text)
            return Failure(e)
        except Exception as e:  # Defensive normalization
            return Failure(
                MalformedOutputError(f"Output validation failed: {e}", raw_text=raw_text)
            )

    def _reconcile(
        self, command: GeneratedCommand, data: dict[str, Any]
    ) -> dict[str, Any]:
        initial = command.initial
        if initial.task == TaskKind.SENTIMENT_SCORES:
            ids = presented_ids(command.planned.sample, initial.config.id_column)
            return reconcile_sentiment_scores(data, ids, command.raw_text)
        if initial.task == TaskKind.SENTIMENT_COUNT:
            return reconcile_sentiment_counts(data, command.raw_text)
        return data
