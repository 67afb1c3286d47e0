import pytest

from gemini_insights.core.tasks import TaskKind
from gemini_insights.core.types import GeneratedCommand, Success, ValidatedCommand
from gemini_insights.pipeline.translator import (
    TranslationStage,
    Translator,
    assign,
    collect_text_fields,
    parse_path,
)

pytestmark = pytest.mark.unit


def _translator(adapter, **kwargs) -> Translator:
    kwargs.setdefault("model", "m")
    kwargs.setdefault("native_language", "english")
    return Translator(adapter, **kwargs)


@pytest.mark.parametrize("target", [None, "", "  ", "english", "English ", "ENGLISH"])
def test_native_or_missing_target_is_not_translated(stub_adapter, target):
    assert not _translator(stub_adapter()).should_translate(target)


@pytest.mark.asyncio
async def test_no_op_translation_makes_no_calls(stub_adapter):
    adapter = stub_adapter()

    out = await _translator(adapter).translate_texts(["a", "b"], "english")

    assert out == ["a", "b"]
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_target_language_is_stripped_before_use(stub_adapter):
    adapter = stub_adapter()

    out = await _translator(adapter).translate_texts(["alpha"], "  hindi ")

    assert out == ["[hindi] alpha"]
    assert "into hindi." in adapter.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_order_is_preserved_when_calls_finish_out_of_order(stub_adapter):
    adapter = stub_adapter(delays={"alpha": 0.05, "beta": 0.02})

    out = await _translator(adapter, max_concurrency=3).translate_texts(
        ["alpha", "beta", "gamma"], "hindi"
    )

    assert out == ["[hindi] alpha", "[hindi] beta", "[hindi] gamma"]
    assert all(c["schema"] is None for c in adapter.calls)


@pytest.mark.asyncio
async def test_failed_field_keeps_original_text(stub_adapter, caplog):
    adapter = stub_adapter(failures={"beta": RuntimeError("quota")})

    out = await _translator(adapter).translate_texts(["alpha", "beta"], "tamil")

    assert out == ["[tamil] alpha", "beta"]
    assert "keeping original" in caplog.text


@pytest.mark.asyncio
async def test_empty_translation_keeps_original_text(stub_adapter):
    adapter = stub_adapter(translate=lambda text, language: "  ")

    out = await _translator(adapter).translate_texts(["alpha"], "tamil")

    assert out == ["alpha"]


@pytest.mark.asyncio
async def test_blank_fields_are_not_sent(stub_adapter):
    adapter = stub_adapter()

    out = await _translator(adapter).translate_texts(["", " ", "x"], "french")

    assert out == ["", " ", "[french] x"]
    assert len(adapter.calls) == 1


@pytest.mark.asyncio
async def test_concurrency_is_bounded(stub_adapter):
    active = 0
    peak = 0

    class CountingAdapter(stub_adapter):
        async def generate(self, **kwargs):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            try:
                return await super().generate(**kwargs)
            finally:
                active -= 1

    adapter = CountingAdapter(delays={"t": 0.01})

    await _translator(adapter, max_concurrency=2).translate_texts(
        [f"t{i}" for i in range(6)], "german"
    )

    assert peak <= 2
    assert len(adapter.calls) == 6


def test_invalid_concurrency_is_rejected(stub_adapter):
    with pytest.raises(ValueError, match="max_concurrency"):
        _translator(stub_adapter(), max_concurrency=0)


# --- Field paths ---


def test_parse_path_segments():
    assert parse_path("summary") == ("summary",)
    assert parse_path("insights[*]") == ("insights", "*")
    assert parse_path("trends[*].title") == ("trends", "*", "title")


def test_collect_and_assign_text_fields():
    data = {
        "trends": [
            {"title": "T1", "description": "D1"},
            {"title": "T2", "description": "D2"},
        ],
        "count": 2,
    }

    fields = collect_text_fields(data, ("trends[*].title", "trends[*].description"))

    assert fields == [
        (("trends", 0, "title"), "T1"),
        (("trends", 1, "title"), "T2"),
        (("trends", 0, "description"), "D1"),
        (("trends", 1, "description"), "D2"),
    ]

    assign(data, ("trends", 1, "description"), "D2!")
    assert data["trends"][1]["description"] == "D2!"


def test_missing_and_non_string_fields_are_skipped():
    data = {"insights": ["a", 3, None], "summary": 1}

    fields = collect_text_fields(data, ("insights[*]", "summary", "absent"))

    assert fields == [(("insights", 0), "a")]


# --- Stage ---


def _validated(planned, data) -> ValidatedCommand:
    generated = GeneratedCommand(planned=planned, raw_text="{}")
    return ValidatedCommand(generated=generated, data=data)


@pytest.mark.asyncio
async def test_stage_translates_designated_fields_only(stub_adapter, make_planned):
    adapter = stub_adapter()
    data = {"trends": [{"title": "Rising", "description": "More posts"}]}
    planned = make_planned(TaskKind.TRENDS, request_language="marathi")

    result = await TranslationStage(adapter).handle(_validated(planned, data))

    assert isinstance(result, Success)
    assert result.value.target_language == "marathi"
    assert result.value.translated_fields == 2
    assert result.value.data == {
        "trends": [{"title": "[marathi] Rising", "description": "[marathi] More posts"}]
    }
    # validated data is deep-copied, never mutated
    assert data["trends"][0]["title"] == "Rising"


@pytest.mark.asyncio
async def test_stage_falls_back_to_configured_target(stub_adapter, make_planned):
    adapter = stub_adapter()
    planned = make_planned(TaskKind.SUMMARY, target_language="spanish")

    result = await TranslationStage(adapter).handle(
        _validated(planned, {"summary": "Calm day"})
    )

    assert result.value.target_language == "spanish"
    assert result.value.data == {"summary": "[spanish] Calm day"}


@pytest.mark.asyncio
async def test_request_language_overrides_configured_target(stub_adapter, make_planned):
    adapter = stub_adapter()
    planned = make_planned(
        TaskKind.SUMMARY, request_language="english", target_language="spanish"
    )

    result = await TranslationStage(adapter).handle(
        _validated(planned, {"summary": "Calm day"})
    )

    assert result.value.target_language is None
    assert result.value.data == {"summary": "Calm day"}
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_non_translatable_task_passes_through(stub_adapter, make_planned):
    adapter = stub_adapter()
    data = {
        "positive": 1,
        "negative": 0,
        "neutral": 0,
        "positive_percent": 100.0,
        "negative_percent": 0.0,
        "neutral_percent": 0.0,
    }
    planned = make_planned(TaskKind.SENTIMENT_COUNT, request_language="hindi")

    result = await TranslationStage(adapter).handle(_validated(planned, data))

    assert result.value.data is data
    assert result.value.target_language is None
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_one_failed_field_does_not_fail_the_stage(stub_adapter, make_planned):
    adapter = stub_adapter(failures={"second": RuntimeError("boom")})
    planned = make_planned(TaskKind.INSIGHTS, request_language="bengali")

    result = await TranslationStage(adapter).handle(
        _validated(planned, {"insights": ["first", "second"]})
    )

    assert isinstance(result, Success)
    assert result.value.data == {"insights": ["[bengali] first", "second"]}
