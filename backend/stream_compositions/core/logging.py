"""Logging for the stream compositions backend.

Every component logs through a ``ContextualLogger``: a ``LoggerAdapter`` that
carries a dictionary of dimensions (arrangement id, service agreement, ...)
and renders them next to the message.
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from stream_compositions.core.config import settings

_ROOT_LOGGER_NAME = "stream_compositions"


class _DimensionsFormatter(logging.Formatter):
    """Formatter that appends the record's dimensions as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        dimensions = getattr(record, "dimensions", None)
        if dimensions:
            rendered = " ".join(f"{key}={value}" for key, value in dimensions.items())
            message = f"{message} [{rendered}]"
        return message


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches structured dimensions to every record."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[Dict[str, Any]] = None):
        """Wrap ``logger`` with the given dimensions."""
        super().__init__(logger, {})
        self.dimensions: Dict[str, Any] = dict(dimensions or {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["dimensions"] = {**self.dimensions, **extra.get("dimensions", {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **context: Any) -> "ContextualLogger":
        """Return a child logger with ``context`` merged into the dimensions."""
        return ContextualLogger(self.logger, {**self.dimensions, **context})


class LoggerConfigurator:
    """Builds contextual loggers and installs the handler on the package root logger."""

    _configured = False

    @classmethod
    def _configure_root(cls) -> None:
        if cls._configured:
            return

        root = logging.getLogger(_ROOT_LOGGER_NAME)
        root.setLevel(settings.LOG_LEVEL.upper())
        root.propagate = False

        if settings.LOCAL_DEVELOPMENT:
            handler: logging.Handler = RichHandler(
                console=Console(width=200),
                show_time=True,
                show_path=False,
                rich_tracebacks=True,
            )
            handler.setFormatter(_DimensionsFormatter("%(name)s - %(message)s"))
        else:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                _DimensionsFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )

        root.addHandler(handler)
        cls._configured = True

    @classmethod
    def configure_logger(
        cls, name: str, dimensions: Optional[Dict[str, Any]] = None
    ) -> ContextualLogger:
        """Return a contextual logger for ``name``.

        Args:
            name: Logger name, normally a dotted module path under ``stream_compositions``
            dimensions: Dimensions attached to every record from this logger

        Returns:
            ContextualLogger
        """
        cls._configure_root()
        return ContextualLogger(logging.getLogger(name), dimensions)


logger = LoggerConfigurator.configure_logger(_ROOT_LOGGER_NAME)
