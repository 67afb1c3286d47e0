import pytest

from gemini_insights.core.exceptions import (
    EmptyOutputError,
    ErrorKind,
    SchemaRejectedError,
    ServiceUnavailableError,
)
from gemini_insights.core.tasks import TaskKind, get_profile
from gemini_insights.core.types import Failure, Success
from gemini_insights.pipeline.generation_handler import GenerationHandler

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_passes_request_through_adapter(stub_adapter, make_planned):
    adapter = stub_adapter([{"summary": "ok"}])
    planned = make_planned(TaskKind.SUMMARY, model="gemini-x")

    result = await GenerationHandler(adapter).handle(planned)

    assert isinstance(result, Success)
    assert result.value.raw_text == '{"summary": "ok"}'
    assert result.value.planned is planned
    (call,) = adapter.calls
    assert call["model_name"] == "gemini-x"
    assert call["prompt"] == planned.request.prompt
    assert call["schema"] is get_profile(TaskKind.SUMMARY).contract
    assert call["temperature"] == 0.0


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "  \n "])
async def test_blank_output_is_empty_output(stub_adapter, make_planned, text):
    result = await GenerationHandler(stub_adapter([text])).handle(
        make_planned(TaskKind.SUMMARY)
    )

    assert isinstance(result, Failure)
    assert isinstance(result.error, EmptyOutputError)


@pytest.mark.asyncio
async def test_tagged_errors_pass_through(stub_adapter, make_planned):
    adapter = stub_adapter([SchemaRejectedError("bad schema")])

    result = await GenerationHandler(adapter).handle(make_planned(TaskKind.SUMMARY))

    assert isinstance(result, Failure)
    assert result.error.kind is ErrorKind.SCHEMA_REJECTED


@pytest.mark.asyncio
async def test_untagged_errors_become_service_unavailable(stub_adapter, make_planned):
    cause = ConnectionError("reset by peer")

    result = await GenerationHandler(stub_adapter([cause])).handle(
        make_planned(TaskKind.SUMMARY)
    )

    assert isinstance(result, Failure)
    assert isinstance(result.error, ServiceUnavailableError)
    assert result.error.__cause__ is cause
    assert "reset by peer" in str(result.error)


@pytest.mark.asyncio
async def test_exactly_one_attempt_is_made(stub_adapter, make_planned):
    adapter = stub_adapter([TimeoutError("slow"), {"summary": "late"}])

    await GenerationHandler(adapter).handle(make_planned(TaskKind.SUMMARY))

    assert len(adapter.calls) == 1
