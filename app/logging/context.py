"""Context propagation for structured logging.

Fields pushed here (request_id, actor_id, project_id, ...) are injected into
every log record emitted within the scope. Context is stored in a contextvar,
so it stays isolated between concurrent requests and threads.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional


# Context variable to store logging context across call chains
LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Get a copy of the current logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Use pop_log_context() with the returned token to restore the previous state.

    Example:
        >>> token = push_log_context(request_id="r-1", actor_id="u-42")
        >>> # ... all logs include request_id and actor_id ...
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context to the state captured by ``token``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Clear all logging context fields (primarily for tests)."""
    LogContextVar.set({})


def new_request_id() -> str:
    """Generate a short request correlation id."""
    return uuid.uuid4().hex[:16]


def current_request_id() -> Optional[str]:
    """Return the request id of the active scope, if any."""
    return LogContextVar.get().get("request_id")


class log_context:
    """Context manager for scoped logging context.

    Pushes fields on entry and restores the previous context on exit, even if
    an exception occurs.

    Example:
        >>> with log_context(project_id="p-3", freelancer_id="f-7"):
        ...     logger.info("Evaluating reciprocity")  # includes both ids
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False  # Don't suppress exceptions
