"""File-based configuration loading.

Project settings live under ``[tool.gemini_insights]`` in the nearest
``pyproject.toml``, found by searching the start directory and its parents.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

from gemini_insights.core.exceptions import ConfigurationError

TOOL_SECTION = "gemini_insights"
# Points at a specific pyproject.toml instead of searching upward.
PYPROJECT_PATH_ENV = "GEMINI_INSIGHTS_PYPROJECT_PATH"


class ConfigFileError(ConfigurationError):
    """Raised when a configuration file exists but cannot be used."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from ``pyproject.toml``."""

    def load_project_config(self, project_root: Path | None = None) -> dict[str, Any]:
        """Load ``[tool.gemini_insights]`` from the nearest pyproject.toml.

        Returns:
            The section as a dict; empty when there is no file or no section.

        Raises:
            ConfigFileError: If the file exists but is not valid TOML, or the
                section is not a table.
        """
        pyproject_path = self.find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}

        try:
            with pyproject_path.open(mode="rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(
                pyproject_path, f"Failed to parse TOML: {e}", cause=e
            ) from e

        section = data.get("tool", {}).get(TOOL_SECTION, {})
        if not isinstance(section, dict):
            raise ConfigFileError(
                pyproject_path, f"[tool.{TOOL_SECTION}] must be a table"
            )
        return dict(section)

    def find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        """Search upward from `start_dir` (default: cwd) for pyproject.toml."""
        override = os.getenv(PYPROJECT_PATH_ENV)
        if override:
            path = Path(override)
            return path if path.exists() else None
        current = Path(start_dir or Path.cwd()).resolve()
        while True:
            candidate = current / "pyproject.toml"
            if candidate.exists():
                return candidate
            if current == current.parent:
                return None
            current = current.parent
