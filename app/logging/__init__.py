"""Logging and observability helpers for structured event emission."""

import logging
from typing import Any, Dict, Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its bound fields with per-call extra fields."""

    def process(self, msg, kwargs):
        """Merge adapter fields with the call's extra; the call's values win."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs

    def bind(self, **fields: Any) -> "ComponentLoggerAdapter":
        """Return a new adapter carrying additional default fields.

        Example:
            >>> log = get_logger(__name__, component="matching").bind(project_id="p1")
            >>> log.info("Consent recorded", extra={"event": "consent.recorded"})
        """
        return ComponentLoggerAdapter(self.logger, {**self.extra, **fields})


def get_logger(name: str, component: Optional[str] = None, **fields: Any):
    """Get a logger with optional default component and fields.

    Convenience wrapper around logging.getLogger() that injects a ``component``
    field (and any other bound fields) into every record it emits.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier ("matching", "api", "database", ...)
        **fields: Additional default fields

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="matching")
        >>> logger.info("Match created", extra={"event": "matching.match.created"})
    """
    logger = logging.getLogger(name)

    defaults: Dict[str, Any] = dict(fields)
    if component:
        defaults["component"] = component

    if defaults:
        return ComponentLoggerAdapter(logger, defaults)

    return logger
