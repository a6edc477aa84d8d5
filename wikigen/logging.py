"""Logging utilities for wikigen commands.

Every handler installed here scrubs URL credentials from the rendered
message, so a credentialed wiki remote can never reach the console or a
log file even when a caller forgets to redact it.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

_LOGGER_NAME = "wikigen"
_USERINFO_PATTERN = re.compile(r"(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*://)[^/@\s]+@")


def redact_url(text: str) -> str:
    """Remove userinfo (credentials) from any URL embedded in ``text``."""
    return _USERINFO_PATTERN.sub(lambda match: f"{match.group('scheme')}***@", text)


class RedactingFilter(logging.Filter):
    """Rewrites each record's message with URL credentials removed."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_url(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the wikigen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the wikigen logger with console output and an optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI runs more than once per process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    redacting = RedactingFilter()
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(redacting)
    stream_handler.setFormatter(logging.Formatter("[wikigen] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(redacting)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["RedactingFilter", "configure_logging", "get_logger", "redact_url"]
