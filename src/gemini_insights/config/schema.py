"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces values
from every source (environment, files, programmatic) into the right types
with proper defaults.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gemini_insights.constants import (
    DEFAULT_DATASET_PATH,
    DEFAULT_ID_COLUMN,
    DEFAULT_MODEL,
    DEFAULT_NATIVE_LANGUAGE,
    DEFAULT_SAMPLE_SIZE,
    DEFAULT_TEXT_COLUMN,
    DEFAULT_TOKEN_CEILING,
    DEFAULT_TRANSLATION_CONCURRENCY,
)

ENV_PREFIX = "GEMINI_INSIGHTS_"


class InsightsSettings(BaseSettings):
    """Pydantic settings schema for the insights pipeline.

    Environment variables use the ``GEMINI_INSIGHTS_`` prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,  # .env files are loaded explicitly by the resolver
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )

    model: str = Field(
        default=DEFAULT_MODEL,
        description="Gemini model identifier",
        min_length=1,
    )

    dataset_path: str = Field(
        default=DEFAULT_DATASET_PATH,
        description="Default tabular source to analyze",
        min_length=1,
    )

    sample_size: int = Field(
        default=DEFAULT_SAMPLE_SIZE,
        description="Maximum number of records sent to the model",
        ge=1,
    )

    start_offset: int = Field(
        default=0,
        description="Index of the first sampled record",
        ge=0,
    )

    token_ceiling: int = Field(
        default=DEFAULT_TOKEN_CEILING,
        description="Maximum estimated input tokens for one request",
        ge=1,
    )

    native_language: str = Field(
        default=DEFAULT_NATIVE_LANGUAGE,
        description="Language the model answers in; translating to it is a no-op",
        min_length=1,
    )

    target_language: str | None = Field(
        default=None,
        description="Default translation target when a request names none",
    )

    translation_concurrency: int = Field(
        default=DEFAULT_TRANSLATION_CONCURRENCY,
        description="Maximum concurrent translation calls",
        ge=1,
    )

    id_column: str = Field(default=DEFAULT_ID_COLUMN, min_length=1)
    text_column: str = Field(default=DEFAULT_TEXT_COLUMN, min_length=1)

    @field_validator("target_language", mode="before")
    @classmethod
    def blank_language_is_none(cls, v: Any) -> Any:
        """Treat an empty target language as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def field_defaults(cls) -> dict[str, Any]:
        """Return schema defaults without consulting the environment."""
        return {name: f.default for name, f in cls.model_fields.items()}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation."""
        return {name: getattr(self, name) for name in type(self).model_fields}
