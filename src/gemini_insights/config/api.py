"""Public configuration entry points."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .scope import get_ambient_resolved_config
from .types import ResolvedConfig

_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    use_env_file: str | Path | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Inside a `config_scope`, the scoped configuration is the base and only
    `programmatic` overrides are applied on top of it.

    Example:
        config = resolve_config({"sample_size": 50})
        print(config.audit())
    """
    ambient = get_ambient_resolved_config()
    if ambient is not None:
        return ambient.with_overrides(**programmatic) if programmatic else ambient
    return _resolver.resolve(
        programmatic=programmatic,
        use_env_file=use_env_file,
        project_root=project_root,
    )


def print_config_audit(config: ResolvedConfig | None = None) -> None:
    """Print where each effective configuration value came from."""
    print((config or resolve_config()).audit())  # noqa: T201
