"""Environment variable configuration loading.

Reads ``GEMINI_INSIGHTS_*`` variables (and the shared ``GEMINI_API_KEY``),
optionally seeded from a ``.env`` file. Variables already present in the
process environment win over values from the file.
"""

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError

from gemini_insights.core.exceptions import ConfigurationError

from .schema import ENV_PREFIX, InsightsSettings

# Accepted for the credential when the prefixed variable is absent.
SHARED_API_KEY_VAR = "GEMINI_API_KEY"


def env_var_names() -> dict[str, str]:
    """Map each environment variable name to the settings field it sets."""
    return {
        f"{ENV_PREFIX}{name.upper()}": name for name in InsightsSettings.model_fields
    }


class EnvironmentConfigLoader:
    """Loads configuration values that are explicitly set in the environment."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Return only the fields actually set in the environment, validated.

        Raises:
            ConfigurationError: If the .env file is missing or a value is invalid.
        """
        environ: dict[str, str] = {}
        if env_file:
            environ.update(self._read_env_file(env_file))
        environ.update(os.environ)

        raw: dict[str, Any] = {}
        for var, field in env_var_names().items():
            if var in environ:
                raw[field] = environ[var]
        if "api_key" not in raw and environ.get(SHARED_API_KEY_VAR):
            raw["api_key"] = environ[SHARED_API_KEY_VAR]

        if not raw:
            return {}

        try:
            settings = InsightsSettings.model_validate(raw)
        except ValidationError as e:
            names = ", ".join(sorted(raw))
            raise ConfigurationError(
                f"Invalid environment values for: {names}. Error: {e}"
            ) from e
        return {field: getattr(settings, field) for field in raw}

    def _read_env_file(self, env_file: str | Path) -> dict[str, str]:
        env_path = Path(env_file)
        if not env_path.exists():
            raise ConfigurationError(f"Environment file not found: {env_path}")
        return {k: v for k, v in dotenv_values(env_path).items() if v is not None}

    def get_env_summary(self) -> dict[str, str]:
        """Current insights variables, with the credential redacted."""
        summary = {}
        for var in (*env_var_names(), SHARED_API_KEY_VAR):
            if var in os.environ:
                summary[var] = "<redacted>" if "API_KEY" in var else os.environ[var]
        return summary
