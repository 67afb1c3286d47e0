"""Process-wide generation client.

The credentialed client is created once and reused for the life of the
process; there is no teardown. Executors receive it by injection, so tests
pass a stub adapter instead and never touch this module's state.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from gemini_insights.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from gemini_insights.config import FrozenConfig
    from gemini_insights.pipeline.adapters.base import GenerationAdapter

logger = logging.getLogger(__name__)

_client: GenerationAdapter | None = None
_lock = threading.Lock()


def initialize_client(config: FrozenConfig) -> GenerationAdapter:
    """Create the shared client on first call and return it afterwards.

    Raises:
        ConfigurationError: If no client exists yet and no api key is configured.
    """
    global _client  # noqa: PLW0603
    with _lock:
        if _client is None:
            if not config.api_key:
                raise ConfigurationError(
                    "api_key is required to call the generation service. "
                    "Set GEMINI_API_KEY or GEMINI_INSIGHTS_API_KEY, add it to "
                    "[tool.gemini_insights], or pass it programmatically."
                )
            from gemini_insights.pipeline.adapters.gemini import GoogleGenAIAdapter

            _client = GoogleGenAIAdapter(config.api_key)
            logger.debug("Initialized generation client")
        return _client


def get_client() -> GenerationAdapter:
    """Return the shared client; `initialize_client` must have run first."""
    if _client is None:
        raise ConfigurationError(
            "Generation client is not initialized; call initialize_client() first"
        )
    return _client


def reset_client_for_tests() -> None:
    """Forget the shared client. Test-only."""
    global _client  # noqa: PLW0603
    with _lock:
        _client = None
