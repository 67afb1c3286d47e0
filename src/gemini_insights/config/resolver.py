"""Configuration resolution with precedence handling.

Precedence, highest first: Programmatic > Environment > pyproject.toml > Defaults.
"""

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gemini_insights.core.exceptions import ConfigurationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import FileConfigLoader
from .schema import InsightsSettings
from .types import ConfigOrigin, ResolvedConfig


class ConfigResolver:
    """Merges configuration values from every source in precedence order."""

    def __init__(self) -> None:
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Args:
            programmatic: Overrides with the highest precedence. Unknown keys
                are ignored.
            use_env_file: Optional .env file read beneath the process environment.
            project_root: Directory to start the pyproject.toml search from.

        Returns:
            ResolvedConfig with merged values and per-field origins.

        Raises:
            ConfigurationError: If any source holds an invalid value.
        """
        merged: dict[str, Any] = {}
        origins: dict[str, ConfigOrigin] = {}

        def apply(values: dict[str, Any], origin: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in InsightsSettings.model_fields:
                    merged[field] = value
                    origins[field] = origin

        apply(InsightsSettings.field_defaults(), "default")
        apply(self.file_loader.load_project_config(project_root), "file")
        apply(self.env_loader.load_env_config(env_file=use_env_file), "env")
        if programmatic:
            apply(programmatic, "programmatic")

        try:
            final = InsightsSettings.model_validate(merged).to_dict()
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**final, origin=origins)
