"""Configuration scoping for entry-time overrides.

A scope only affects `resolve_config()` calls made inside it. Once a
`FrozenConfig` is attached to a command, handlers never see ambient changes.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .types import ResolvedConfig

_ambient_resolved_config: contextvars.ContextVar[ResolvedConfig] = (
    contextvars.ContextVar("gemini_insights_resolved_config")
)


def get_ambient_resolved_config() -> ResolvedConfig | None:
    """Return the config set by an enclosing `config_scope`, if any."""
    try:
        return _ambient_resolved_config.get()
    except LookupError:
        return None


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Temporarily use a different resolved configuration.

    Example:
        base = resolve_config()
        with config_scope(base.with_overrides(sample_size=20)):
            run_task("summary")
    """
    token = _ambient_resolved_config.set(config)
    try:
        yield
    finally:
        _ambient_resolved_config.reset(token)


@contextmanager
def config_override(**overrides: Any) -> Generator[None]:
    """Scope that overrides individual fields of the current configuration."""
    base = get_ambient_resolved_config()
    if base is None:
        from .api import resolve_config

        base = resolve_config()
    with config_scope(base.with_overrides(**overrides)):
        yield
