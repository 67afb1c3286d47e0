"""Configuration management for the insights pipeline.

Resolve once, freeze, then flow:
- ResolvedConfig: merged configuration with per-field origins
- FrozenConfig: immutable configuration attached to commands
- SourceMap: origin of every resolved value
"""

from .api import print_config_audit, resolve_config
from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import InsightsSettings
from .scope import config_override, config_scope, get_ambient_resolved_config
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    "resolve_config",
    "print_config_audit",
    # Scoping
    "config_scope",
    "config_override",
    "get_ambient_resolved_config",
    # Core types
    "ResolvedConfig",
    "FrozenConfig",
    "SourceMap",
    "ConfigOrigin",
    # Advanced usage
    "InsightsSettings",
    "ConfigResolver",
    "FileConfigLoader",
    "EnvironmentConfigLoader",
    "ConfigFileError",
]
