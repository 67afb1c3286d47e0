"""Generation service adapters."""

from .base import GenerationAdapter

__all__ = ["GenerationAdapter"]
