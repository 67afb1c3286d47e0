import logging

import pytest

from gemini_insights.constants import PROMPT_OVERHEAD_TOKENS
from gemini_insights.core.exceptions import BudgetExceededError
from gemini_insights.core.tasks import TaskKind
from gemini_insights.core.types import (
    AnalysisCommand,
    Dataset,
    Failure,
    LoadedCommand,
    SampledCommand,
    Success,
    freeze_record,
)
from gemini_insights.pipeline.budget import (
    BudgetGuard,
    check_budget,
    estimate_cost,
    suggest_row_count,
)
from gemini_insights.pipeline.sampler import take_sample

pytestmark = pytest.mark.unit


def _sampled(config, n: int = 5, task=TaskKind.SUMMARY) -> SampledCommand:
    dataset = Dataset(
        source="mem",
        columns=("id", "tweet"),
        records=tuple(
            freeze_record({"id": str(i), "tweet": f"tweet number {i}"})
            for i in range(n)
        ),
    )
    loaded = LoadedCommand(
        initial=AnalysisCommand(task=task, source="mem", config=config),
        dataset=dataset,
    )
    return SampledCommand(loaded=loaded, sample=take_sample(dataset, 0, n))


def test_empty_payload_costs_only_the_overhead():
    assert estimate_cost("") == PROMPT_OVERHEAD_TOKENS


def test_cost_rounds_partial_tokens_up():
    assert estimate_cost("abcde") == PROMPT_OVERHEAD_TOKENS + 2
    assert estimate_cost(8) == PROMPT_OVERHEAD_TOKENS + 2


def test_cost_is_monotonic_over_prefixes():
    payload = "Headers: id,tweet\n" + "\n".join(f'"{i}","x{i}"' for i in range(200))

    costs = [estimate_cost(payload[:n]) for n in range(0, len(payload) + 1, 7)]

    assert costs == sorted(costs)


def test_suggested_rows_follow_ceiling_and_column_count():
    # (1000 - 500) * 4 chars / (2 columns * 10 chars) = 100 rows
    assert suggest_row_count(1000, 2) == 100
    assert suggest_row_count(1000, 4) == 50
    assert suggest_row_count(400, 2) == 0


def test_suggestion_is_smaller_than_current_sample():
    assert suggest_row_count(10_000, 1, current_rows=5) == 4
    assert suggest_row_count(10_000, 1, current_rows=0) == 0


def test_over_ceiling_raises_with_suggestion():
    rendered = "x" * 4000

    with pytest.raises(BudgetExceededError) as ei:
        check_budget(rendered, ceiling=1000, column_count=2, row_count=500)

    err = ei.value
    assert err.estimated_cost == 1500
    assert err.ceiling == 1000
    assert err.suggested_rows == 100
    assert "CSV too large (1500 estimated tokens" in str(err)
    assert "Sample only 100 rows" in str(err)


def test_at_ceiling_is_allowed():
    estimate = check_budget("x" * 400, ceiling=600, column_count=1, row_count=1)

    assert estimate.estimated_cost == 600
    assert estimate.within_budget


@pytest.mark.asyncio
async def test_guard_logs_accepted_estimate(make_config, caplog):
    caplog.set_level(logging.INFO, logger="gemini_insights.pipeline.budget")

    result = await BudgetGuard().handle(_sampled(make_config(), n=3))

    assert isinstance(result, Success)
    estimate = result.value.estimate
    assert estimate.estimated_cost == estimate_cost(result.value.rendered_sample)
    assert f"Using 3 rows; estimated tokens: {estimate.estimated_cost}" in caplog.text


@pytest.mark.asyncio
async def test_guard_rejects_over_budget_payload(make_config):
    result = await BudgetGuard().handle(_sampled(make_config(token_ceiling=501), n=5))

    assert isinstance(result, Failure)
    assert isinstance(result.error, BudgetExceededError)
    assert result.error.suggested_rows < 5


@pytest.mark.asyncio
async def test_guard_renders_id_text_for_sentiment_scores(make_config):
    command = _sampled(make_config(), n=2, task=TaskKind.SENTIMENT_SCORES)

    result = await BudgetGuard().handle(command)

    assert isinstance(result, Success)
    assert result.value.rendered_sample.splitlines() == [
        "ID: 0 | TEXT: tweet number 0",
        "ID: 1 | TEXT: tweet number 1",
        "(Full dataset has 2 rows.)",
    ]
