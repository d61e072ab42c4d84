"""
Root log handler configuration.

Library modules log through stdlib ``logging`` with context passed in
``extra={}``.  The handler installed here renders those records with
structlog, so every ``extra`` field reaches the output, either as a
JSON object per line or as ``key=value`` pairs.
"""

import logging
from typing import IO, Optional

import structlog

from ratecache.exceptions import ConfigurationError

_HANDLER_NAME = "ratecache"

_KEY_ORDER = ["timestamp", "level", "logger", "event"]


def build_formatter(fmt: str = "text") -> structlog.stdlib.ProcessorFormatter:
    """Return a formatter that renders stdlib records and their extras.

    Args:
        fmt: ``"json"`` for one JSON object per line, ``"text"`` for
            ``key=value`` pairs.

    Raises:
        ConfigurationError: If *fmt* is not a known format.
    """
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    elif fmt == "text":
        renderer = structlog.processors.KeyValueRenderer(key_order=_KEY_ORDER, drop_missing=True)
    else:
        raise ConfigurationError(f"Unknown log format: {fmt!r}")

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ExtraAdder(),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def configure_logging(level: str = "INFO", fmt: str = "text", stream: Optional[IO[str]] = None) -> logging.Handler:
    """Install the ratecache handler on the root logger.

    A handler installed by an earlier call is replaced, so repeated
    calls do not duplicate output.

    Returns:
        The installed handler.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(build_formatter(fmt))
    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler
