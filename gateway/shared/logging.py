"""
Logging configuration for the gateway.

One stdout handler with a pipe-separated format. The gateway holds two
credentials (the financial-data ``x-api-key`` and the completion
provider's ``Authorization: Bearer`` token) and logs upstream previews,
so every record passes through SecretRedactionFilter before it is
written. Logging must not change program behavior.
"""

import logging
import re
import sys
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

REDACTED = "[REDACTED]"

_CREDENTIAL_PATTERNS = (
    re.compile(r"(?i)(x-api-key[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+"),
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"),
)

# Upstream clients that would otherwise log every request line at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error", "httpx", "httpcore")


def redact(message: str, secrets: Iterable[str] = ()) -> str:
    """Mask credential headers and any known secret value in ``message``."""
    for pattern in _CREDENTIAL_PATTERNS:
        message = pattern.sub(lambda m: m.group(1) + REDACTED, message)
    for secret in secrets:
        message = message.replace(secret, REDACTED)
    return message


class SecretRedactionFilter(logging.Filter):
    """Rewrites a record's message when it contains credentials.

    Args:
        secrets: Literal values (the configured API keys) to mask wherever
            they appear, whatever header or field carried them.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message, self._secrets)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> None:
    """Configure gateway logging.

    Args:
        level: The log level string (DEBUG, INFO, WARNING, ERROR).
        secrets: Configured API key values to mask in every record.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    redaction = SecretRedactionFilter(secrets)
    for handler in logging.getLogger().handlers:
        handler.addFilter(redaction)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
