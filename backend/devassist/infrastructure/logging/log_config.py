"""Logging setup for the chat core.

Levels are configured per category (HTTP transport, provider adapters,
chat services) from Settings. Records reaching the root handler pass
through ``SecretRedactingFilter`` so bearer tokens and provider keys
never land in the logs verbatim.
"""

import logging
import re
import sys

from devassist.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"

# Settings field → loggers it controls
_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_http": ("httpx", "httpcore"),
    "log_level_providers": ("devassist.infrastructure.llm",),
    "log_level_chat": ("devassist.application.services",),
}

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9._\-]{9,})"),
    re.compile(
        r"((?:x-goog-api-key|api[_-]?key|key)[\"']?\s*[:=]\s*[\"']?)([A-Za-z0-9._\-]{9,})",
        re.IGNORECASE,
    ),
)


def _mask(secret: str) -> str:
    return f"{secret[:4]}…{secret[-4:]}"


class SecretRedactingFilter(logging.Filter):
    """Masks credentials in formatted log messages, keeping 4 chars each side."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern in _SECRET_PATTERNS:
            redacted = pattern.sub(lambda m: m.group(1) + _mask(m.group(2)), redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(settings: Settings | None = None) -> None:
    """Apply root and per-category levels; call once at startup."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    for handler in root.handlers:
        if not any(isinstance(f, SecretRedactingFilter) for f in handler.filters):
            handler.addFilter(SecretRedactingFilter())

    for field_name, logger_names in _CATEGORY_MAP.items():
        level = _parse_level(getattr(settings, field_name, "INFO"))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured (root=%s, http=%s, providers=%s, chat=%s)",
        settings.log_level,
        settings.log_level_http,
        settings.log_level_providers,
        settings.log_level_chat,
    )


def _parse_level(raw: str) -> int:
    """Level name to logging constant; unknown names fall back to INFO."""
    numeric = logging.getLevelName(raw.upper())
    return numeric if isinstance(numeric, int) else logging.INFO
