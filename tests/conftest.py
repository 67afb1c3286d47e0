"""
Global test configuration with support for different test types.
"""

import asyncio
from collections.abc import Callable
from contextlib import suppress
import csv
import json
import logging
import os
from pathlib import Path
from typing import Any

import pytest

from gemini_insights.client import reset_client_for_tests
from gemini_insights.config import FrozenConfig, resolve_config
from gemini_insights.core.schemas import Contract
from gemini_insights.core.tasks import TaskKind, get_profile
from gemini_insights.core.types import (
    AnalysisCommand,
    BudgetedCommand,
    Dataset,
    GenerationRequest,
    LoadedCommand,
    PlannedCommand,
    SampledCommand,
    freeze_record,
)
from gemini_insights.pipeline.budget import check_budget
from gemini_insights.pipeline.request_builder import build_prompt, render_sample
from gemini_insights.pipeline.sampler import take_sample
from gemini_insights.pipeline.translator import TRANSLATION_PROMPT

_TEXT_MARKER = TRANSLATION_PROMPT.split("{text}")[0].split("{language}")[1]


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-in escape hatch: mark a test with @pytest.mark.allow_dotenv.
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_gemini_env(request, monkeypatch, tmp_path):
    """Ensure a clean GEMINI_* environment and no stray pyproject.toml.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the environment.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("GEMINI_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.setenv(
        "GEMINI_INSIGHTS_PYPROJECT_PATH", str(tmp_path / "absent-pyproject.toml")
    )


@pytest.fixture(autouse=True)
def reset_shared_client():
    """Never leak the process-wide client between tests."""
    reset_client_for_tests()
    yield
    reset_client_for_tests()


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with stubbed generation",
        "contract: Protocol and adapter conformance tests",
        "allow_dotenv: Permit .env loading for this test",
        "allow_env_pollution: Keep the real GEMINI_* environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


# --- Stub generation service ---
class StubAdapter:
    """Scripted stand-in for the generation service.

    - `responses`: returned in order for schema-constrained calls; a dict is
      serialized to JSON, an exception instance is raised.
    - `translate`: builds the reply for plain-text translation calls.
    - `delays` / `failures`: keyed by a substring of the prompt.
    Every call is recorded in `calls`.
    """

    def __init__(
        self,
        responses: list[Any] | tuple[Any, ...] = (),
        *,
        translate: Callable[[str, str], str | None] | None = None,
        delays: dict[str, float] | None = None,
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.responses = list(responses)
        self.translate = translate or (lambda text, language: f"[{language}] {text}")
        self.delays = dict(delays or {})
        self.failures = dict(failures or {})
        self.calls: list[dict[str, Any]] = []

    @property
    def generation_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["schema"] is not None]

    @property
    def translation_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["schema"] is None]

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        schema: type[Contract] | None,
        temperature: float,
    ) -> str | None:
        self.calls.append(
            {
                "model_name": model_name,
                "prompt": prompt,
                "schema": schema,
                "temperature": temperature,
            }
        )
        for marker, delay in self.delays.items():
            if marker in prompt:
                await asyncio.sleep(delay)
        for marker, error in self.failures.items():
            if marker in prompt:
                raise error

        if schema is None:
            text = prompt.split(_TEXT_MARKER, 1)[1]
            language = prompt.split("into ", 1)[1].split(". Return", 1)[0]
            return self.translate(text, language)

        if not self.responses:
            raise AssertionError("StubAdapter has no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


@pytest.fixture
def stub_adapter() -> type[StubAdapter]:
    """Return the StubAdapter class; call it with scripted responses."""
    return StubAdapter


# --- Core Fixtures ---
@pytest.fixture
def make_config() -> Callable[..., FrozenConfig]:
    """Build a FrozenConfig with a fake key plus any overrides."""

    def _make(**overrides: Any) -> FrozenConfig:
        return resolve_config({"api_key": "test-key", **overrides}).to_frozen()

    return _make


@pytest.fixture
def write_csv(tmp_path) -> Callable[..., Path]:
    """Write rows (dicts sharing the same keys) to a CSV file in tmp_path."""

    def _write(rows: list[dict[str, str]], name: str = "data.csv") -> Path:
        path = tmp_path / name
        fieldnames = list(rows[0]) if rows else ["id", "tweet"]
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture
def tweets_csv(write_csv) -> Path:
    return write_csv(
        [
            {"id": "1", "user": "asha", "tweet": "Loving the new metro line!"},
            {"id": "2", "user": "ravi", "tweet": "Great win for the team today"},
            {"id": "3", "user": "meena", "tweet": "What a beautiful festival"},
        ]
    )


@pytest.fixture
def make_planned(make_config) -> Callable[..., PlannedCommand]:
    """Build a PlannedCommand for `task` over in-memory rows, skipping I/O."""

    def _make(
        task: TaskKind | str,
        rows: list[dict[str, str]] | None = None,
        *,
        request_language: str | None = None,
        **config_overrides: Any,
    ) -> PlannedCommand:
        rows = rows or [
            {"id": "1", "tweet": "first"},
            {"id": "2", "tweet": "second"},
        ]
        config = make_config(**config_overrides)
        profile = get_profile(task)
        dataset = Dataset(
            source="mem",
            columns=tuple(rows[0]),
            records=tuple(freeze_record(r) for r in rows),
        )
        sample = take_sample(dataset, config.start_offset, config.sample_size)
        rendered = render_sample(
            sample,
            layout=profile.layout,
            id_column=config.id_column,
            text_column=config.text_column,
        )
        loaded = LoadedCommand(
            initial=AnalysisCommand(
                task=profile.kind,
                source="mem",
                config=config,
                target_language=request_language,
            ),
            dataset=dataset,
        )
        budgeted = BudgetedCommand(
            sampled=SampledCommand(loaded=loaded, sample=sample),
            rendered_sample=rendered,
            estimate=check_budget(
                rendered,
                ceiling=config.token_ceiling,
                column_count=len(sample.columns),
                row_count=len(sample),
            ),
        )
        request = GenerationRequest(
            model_name=config.model,
            prompt=build_prompt(profile, rendered, sample).text,
            schema=profile.contract,
            temperature=profile.temperature,
        )
        return PlannedCommand(budgeted=budgeted, request=request)

    return _make
