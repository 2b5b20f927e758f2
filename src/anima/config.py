"""Engine configuration.

Centralizes timing constants and markers for the conversation engine and
provides a validated configuration model that can be loaded from the
environment.
"""

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Timing defaults (milliseconds)
TYPING_SPEED_MS = 30  # Per revealed character
TICK_INTERVAL_MS = 16  # Roughly one frame at 60fps
CONTINUE_DELAY_MS = 800  # Waiting dots before an automatic follow-up
DOTS_INTERVAL_MS = 300  # Dot count step while waiting
ERROR_GRACE_MS = 3000  # Error status shown before returning to idle

# Continuation behaviour
MAX_CONTINUATIONS = 5  # Automatic follow-up turns per human turn

# History injected into backend requests
HISTORY_LIMIT = 10

# Reserved question values, never ordinary user text
CONTINUE_MARKER = "[CONTINUE]"
AUTO_START_MARKER = "[AUTO_START]"

# User-facing error texts
GENERIC_ERROR_TEXT = "Sorry, I couldn't answer that just now. Please try again."
IDENTITY_ERROR_TEXT = "Please sign in again to keep chatting."

_ENV_PREFIX = "ANIMA_"


class EngineConfig(BaseModel):
    """Validated configuration for a conversation session."""

    model_config = ConfigDict(frozen=True)

    typing_speed_ms: float = Field(
        default=TYPING_SPEED_MS,
        gt=0,
        description="Milliseconds per revealed character"
    )
    tick_interval_ms: float = Field(
        default=TICK_INTERVAL_MS,
        gt=0,
        description="Reveal scheduler tick period"
    )
    max_continuations: int = Field(
        default=MAX_CONTINUATIONS,
        ge=0,
        description="Hard cap on automatic follow-up turns"
    )
    continue_delay_ms: float = Field(
        default=CONTINUE_DELAY_MS,
        ge=0,
        description="Waiting-dots delay before a continuation request"
    )
    dots_interval_ms: float = Field(
        default=DOTS_INTERVAL_MS,
        gt=0,
        description="Waiting-dots animation step"
    )
    error_grace_ms: float = Field(
        default=ERROR_GRACE_MS,
        ge=0,
        description="Time spent in the error status before returning to idle"
    )
    history_limit: int = Field(
        default=HISTORY_LIMIT,
        ge=0,
        description="Recent messages sent as backend context (0 disables)"
    )
    continue_marker: str = Field(default=CONTINUE_MARKER, min_length=1)
    auto_start_marker: str = Field(default=AUTO_START_MARKER, min_length=1)
    generic_error_text: str = Field(default=GENERIC_ERROR_TEXT, min_length=1)
    identity_error_text: str = Field(default=IDENTITY_ERROR_TEXT, min_length=1)

    @classmethod
    def from_env(cls, **overrides: Any) -> "EngineConfig":
        """Build a config from ``ANIMA_*`` environment variables.

        Environment variables:
            ANIMA_TYPING_SPEED_MS, ANIMA_TICK_INTERVAL_MS,
            ANIMA_MAX_CONTINUATIONS, ANIMA_CONTINUE_DELAY_MS,
            ANIMA_DOTS_INTERVAL_MS, ANIMA_ERROR_GRACE_MS,
            ANIMA_HISTORY_LIMIT

        Args:
            **overrides: Explicit values that win over the environment

        Returns:
            EngineConfig instance

        Raises:
            pydantic.ValidationError: If a value is out of range
        """
        values: dict[str, Any] = {}
        for name in (
            "typing_speed_ms",
            "tick_interval_ms",
            "max_continuations",
            "continue_delay_ms",
            "dots_interval_ms",
            "error_grace_ms",
            "history_limit",
        ):
            raw = os.getenv(_ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
