"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    controller = QueryController(settings.openai_api_key, transport, model=settings.model)

An empty ``openai_api_key`` is a valid state: the controller reports it to the
user instead of the app refusing to start.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "").strip()
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5000"))
    )
    #: Signs the session cookie that pins a browser to its query controller.
    secret_key: str = field(
        default_factory=lambda: os.environ.get("FLASK_SECRET_KEY") or secrets.token_hex(32)
    )
    #: In-memory query sessions kept before the least recently used idle one is dropped.
    max_sessions: int = field(
        default_factory=lambda: int(os.environ.get("MAX_SESSIONS", "1000"))
    )

    # ── Responses API ───────────────────────────────────────────────────────
    model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_MODEL", "gpt-5-nano")
    )
    responses_url: str = field(
        default_factory=lambda: os.environ.get(
            "OPENAI_RESPONSES_URL", "https://api.openai.com/v1/responses"
        )
    )
    #: Seconds; web-search responses routinely take over a minute.
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "120"))
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.openai_api_key)
