"""
Structured logging for the 0G Drive SDK.

Modules obtain loggers with ``get_logger(__name__)`` and pass structured
context through ``extra={...}``. Nothing is configured on import; call
``configure_logging()`` from an application entry point.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

ROOT_LOGGER_NAME = "ogdrive"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s%(context)s"
LOG_LEVEL_ENV = "OGDRIVE_LOG_LEVEL"

_STANDARD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "context"}

_BEARER_PATTERN = re.compile(r"(?i)bearer\s+[a-z0-9._\-]+")
_SECRET_KEYS = {"private_key", "privatekey", "authorization", "secret"}


def _mask(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return _BEARER_PATTERN.sub("Bearer ***", value)


class SecretMaskingFilter(logging.Filter):
    """
    Masks credentials in structured log context.

    Keys that name a credential are replaced wholesale; string values
    carrying a bearer token are redacted. Hex values are left alone
    since root hashes share the private key shape.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in list(record.__dict__.items()):
            if key in _STANDARD_ATTRS:
                continue
            if key.lower() in _SECRET_KEYS:
                setattr(record, key, "***")
            else:
                setattr(record, key, _mask(value))
        return True


class ContextFormatter(logging.Formatter):
    """Appends the record's ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        record.context = (
            " " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))
            if context
            else ""
        )
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``ogdrive`` namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger instance.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
    stream: Any = None,
) -> logging.Logger:
    """
    Attach a single stream handler to the ``ogdrive`` logger.

    Args:
        level: Level name; defaults to ``$OGDRIVE_LOG_LEVEL`` or INFO.
        fmt: Format string; ``%(context)s`` renders the extra fields.
        stream: Output stream (defaults to stderr).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logger.setLevel(level_name)

    for handler in list(logger.handlers):
        if getattr(handler, "_ogdrive_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ContextFormatter(fmt))
    handler.addFilter(SecretMaskingFilter())
    handler._ogdrive_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def set_level(level: str) -> None:
    """Change the package log level at runtime."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level.upper())


@contextmanager
def log_context(logger: logging.Logger, **context: Any) -> Iterator[logging.LoggerAdapter]:
    """
    Bind fixed context to every record logged inside the block.

    Example:
        >>> with log_context(_logger, root_hash=root) as log:
        ...     log.info("Fetching")
    """

    class _Adapter(logging.LoggerAdapter):
        def process(self, msg: str, kwargs: Dict[str, Any]):  # type: ignore[override]
            kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
            return msg, kwargs

    yield _Adapter(logger, context)
