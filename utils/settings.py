"""Runtime settings read from the environment (and `.env` when present)."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

REPLY_MODES = ("scripted", "openai")


@dataclass
class Settings:
    """Configuration for the chat server.

    Attributes:
        reply_mode: `scripted` replays the demo reply, `openai` streams a model reply.
        chunk_delay_seconds: Pause between scripted chunks.
        openai_model: Model used in `openai` mode.
        openai_max_tokens: Output token cap for model replies.
        cors_origins: Origins allowed to call the HTTP routes.
        log_level: Root logging level name.
    """

    reply_mode: str = "scripted"
    chunk_delay_seconds: float = 1.0
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 800
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build `Settings` from environment variables.

    Raises:
        RuntimeError: If a value is present but invalid.
    """
    load_dotenv(env_file)

    reply_mode = os.getenv("REPLY_MODE", "scripted").strip().lower()
    if reply_mode not in REPLY_MODES:
        raise RuntimeError(f"REPLY_MODE must be one of {', '.join(REPLY_MODES)}, got {reply_mode!r}")

    delay = _number("CHUNK_DELAY_SECONDS", "1.0", float)
    if delay < 0:
        raise RuntimeError("CHUNK_DELAY_SECONDS cannot be negative")

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        reply_mode=reply_mode,
        chunk_delay_seconds=delay,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        openai_max_tokens=_number("OPENAI_MAX_TOKENS", "800", int),
        cors_origins=origins or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
