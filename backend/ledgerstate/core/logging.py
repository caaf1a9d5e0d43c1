"""Logging utilities for ledgerstate.

Usage:
    from ledgerstate.core.logging import logger

    log = logger.with_context(component="storage_pointer", ref=uri)
    log.debug("Downloading document")

Every ContextualLogger carries a dict of dimensions. They are attached to each
record as ``extra`` fields and rendered after the message.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple

from ledgerstate.core.config import settings

ROOT_LOGGER_NAME = "ledgerstate"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries contextual dimensions."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[Dict[str, Any]] = None):
        """Initialize the contextual logger.

        Args:
            logger: The underlying stdlib logger
            dimensions: Key/value pairs attached to every record
        """
        super().__init__(logger, {})
        self.dimensions: Dict[str, Any] = dict(dimensions or {})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping]:
        """Attach dimensions to the record and append them to the message."""
        if not self.dimensions:
            return msg, kwargs

        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("dimensions", self.dimensions)
        kwargs["extra"] = extra

        rendered = " ".join(f"{key}={value}" for key, value in self.dimensions.items())
        return f"{msg} [{rendered}]", kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with additional dimensions merged in."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged)


class LoggerConfigurator:
    """Builds configured ContextualLogger instances."""

    @staticmethod
    def _ensure_root_handler() -> None:
        root = logging.getLogger(ROOT_LOGGER_NAME)

        # Avoid adding handlers multiple times
        if root.handlers:
            return

        root.setLevel(getattr(logging, settings.LOG_LEVEL))
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        root.addHandler(handler)

    @staticmethod
    def configure_logger(
        name: str, dimensions: Optional[Dict[str, Any]] = None
    ) -> ContextualLogger:
        """Create a contextual logger.

        Args:
            name: Logger name, normally a dotted path under ``ledgerstate``
            dimensions: Initial dimensions

        Returns:
            Configured contextual logger
        """
        LoggerConfigurator._ensure_root_handler()
        return ContextualLogger(logging.getLogger(name), dimensions)


logger = LoggerConfigurator.configure_logger(ROOT_LOGGER_NAME)
