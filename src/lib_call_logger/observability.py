"""Structured diagnostics for the rule engine itself.

Purpose
    Keep every diagnostic emitted while loading, binding, and reloading rules
    predictable and contextual, without forcing applications to adopt a
    specific logging backend.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_error``: emit structured entries via a
      single private emitter.
    - ``make_event``: builder for reload lifecycle payloads.

System Integration
    Used by the registry, the configuration adapters, and the composition root.
    Call records (``>>> Invoking ...``) do not travel through this module; they
    are handed to a :class:`lib_call_logger.application.ports.LogSink`.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_call_logger_trace_id", default=None)
"""Current trace identifier attached to diagnostics and call records."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_call_logger")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    source: str,
    rules: int | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured payload for rule lifecycle events.

    Inputs
        source: Name of the configuration source that triggered the event.
        rules: Number of active rule entries, if known.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('file', 3, {'path': 'rules.toml'})
    {'source': 'file', 'rules': 3, 'path': 'rules.toml'}
    """

    event: dict[str, Any] = {"source": source, "rules": rules}
    if payload:
        event |= dict(payload)
    return event


def with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    _LOGGER.log(level, message, extra={"context": with_trace(fields)})
