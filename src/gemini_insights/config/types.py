"""Core configuration data types.

Configuration follows a resolve-once, freeze-then-flow pattern: sources are
merged into a `ResolvedConfig` (which remembers where each value came from)
and then frozen into a `FrozenConfig` that travels with every command.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

from .schema import ENV_PREFIX

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

FIELD_ORDER: tuple[str, ...] = (
    "api_key",
    "model",
    "dataset_path",
    "sample_size",
    "start_offset",
    "token_ceiling",
    "native_language",
    "target_language",
    "translation_concurrency",
    "id_column",
    "text_column",
)

# --- Core Configuration Data ---


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    Logically immutable; use `with_overrides()` to derive variants.
    """

    api_key: str | None
    model: str
    dataset_path: str
    sample_size: int
    start_offset: int
    token_ceiling: int
    native_language: str
    target_language: str | None
    translation_concurrency: int
    id_column: str
    text_column: str

    # Where each field value came from
    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        return f"ResolvedConfig({_render_fields(self)}, origin={dict(self.origin)!r})"

    def __repr__(self) -> str:
        return self.__str__()

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration used in the pipeline."""
        return FrozenConfig(**{name: getattr(self, name) for name in FIELD_ORDER})

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a copy with programmatic overrides applied.

        Unknown fields are ignored.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in FIELD_ORDER:
                new_values[field] = value
                new_origin[field] = "programmatic"
        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Redacted report showing the origin of each field."""
        lines = []
        for field in FIELD_ORDER:
            if field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if field == "api_key":
                value_display = (
                    f"{origin}:None" if value is None else f"{origin}:<redacted>"
                )
            elif origin == "env":
                value_display = f"env:{ENV_PREFIX}{field.upper()}={value}"
            else:
                value_display = f"{origin}:{value}"
            lines.append(f"{field}: {value_display}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration attached to commands in the pipeline.

    Handlers read fields as attributes; any attempt to modify raises.
    """

    api_key: str | None
    model: str
    dataset_path: str
    sample_size: int
    start_offset: int
    token_ceiling: int
    native_language: str
    target_language: str | None
    translation_concurrency: int
    id_column: str
    text_column: str

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        return f"FrozenConfig({_render_fields(self)})"

    def __repr__(self) -> str:
        return self.__str__()


def _render_fields(config: ResolvedConfig | FrozenConfig) -> str:
    parts = []
    for name in FIELD_ORDER:
        value = getattr(config, name)
        if name == "api_key":
            value = "[REDACTED]" if value else None
        parts.append(f"{name}={value!r}")
    return ", ".join(parts)
