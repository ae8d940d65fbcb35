"""Logging configuration helpers."""

import logging
import re

_SECRET_PATTERNS = (
    re.compile(r"(sid=)[^;\s\"']+"),
    re.compile(r"(['\"]password['\"]\s*:\s*['\"])[^'\"]*"),
)


class RedactSecretsFilter(logging.Filter):
    """Mask session cookies and passwords that end up in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern in _SECRET_PATTERNS:
            redacted = pattern.sub(r"\1***", redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger("feedback_automator")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    handler.addFilter(RedactSecretsFilter())
    logger.addHandler(handler)
    logger.propagate = False
