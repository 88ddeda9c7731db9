"""Interception decision and execution logic.

Purpose
-------
Given an intercepted call, consult the registry and emit ``Invoking``,
``Completed``, and ``Exception`` records around the real invocation without
ever changing its outcome.

Phases
------
1. Gate – skip everything when logging is globally off or no rule matches.
2. Pre-log – ``>>> Invoking <name> with args: <args>``.
3. Timed execution – monotonic nanosecond clock, whole milliseconds;
   failures are logged as ``!! Exception in <name> after <ms> ms. Error: <exc>`` and re-raised.
4. Post-log – ``<<< Completed <name> in <ms> ms. Result: <result>`` when the
   call took at least ``min_duration_ms``.

A failure inside phases 2 or 4 (for example a ``__repr__`` that raises) is
reported on the sink's error channel and otherwise ignored.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Final, Mapping, Sequence, TypeVar

from ..domain.matching import CallIdentity
from ..domain.rules import RuleConfig
from ..observability import log_error
from .ports import LogSink
from .registry import RuleRegistry

T = TypeVar("T")

PROTECTED: Final[str] = "[PROTECTED]"
NOT_LOGGED: Final[str] = "[NOT LOGGED]"
VOID: Final[str] = "VOID"
TRUNCATION_MARKER: Final[str] = "... (truncated)"


class CallInterceptor:
    """Apply the registry's rules to individual calls.

    Parameters
    ----------
    registry:
        Source of match decisions.
    sink:
        Destination for call records.
    clock:
        Monotonic clock returning nanoseconds; injectable for tests.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        sink: LogSink,
        *,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        self._registry = registry
        self._sink = sink
        self._clock = clock

    def invoke(
        self,
        call: CallIdentity,
        args: Sequence[Any],
        kwargs: Mapping[str, Any] | None,
        proceed: Callable[[], T],
    ) -> T:
        """Run *proceed* and log around it according to the matching rule.

        The return value and any exception of *proceed* reach the caller
        unchanged.
        """

        if not self._registry.global_enabled():
            return proceed()
        config = self._registry.match(call)
        if config is None:
            return proceed()

        name = call.display_name
        self._guarded(name, self._log_invocation, call, name, args, kwargs, config)

        start = self._clock()
        try:
            result = proceed()
        except BaseException as exc:
            elapsed_ms = self._elapsed_ms(start)
            self._guarded(name, self._log_failure, call, name, elapsed_ms, exc)
            raise

        elapsed_ms = self._elapsed_ms(start)
        if elapsed_ms >= config.min_duration_ms:
            self._guarded(name, self._log_completion, call, name, elapsed_ms, result, config)
        return result

    def _elapsed_ms(self, start: int) -> int:
        return (self._clock() - start) // 1_000_000

    def _log_invocation(
        self,
        call: CallIdentity,
        name: str,
        args: Sequence[Any],
        kwargs: Mapping[str, Any] | None,
        config: RuleConfig,
    ) -> None:
        context: dict[str, Any] = {"call": call.qualified_name, "phase": "invoke"}
        if not config.log_arguments:
            self._sink.log(logging.INFO, f">>> Invoking {name}", context)
            return
        rendered = PROTECTED if config.mask_sensitive else format_arguments(args, kwargs)
        context["args"] = rendered
        self._sink.log(logging.INFO, f">>> Invoking {name} with args: {rendered}", context)

    def _log_completion(
        self,
        call: CallIdentity,
        name: str,
        elapsed_ms: int,
        result: object,
        config: RuleConfig,
    ) -> None:
        rendered = format_result(result, config)
        context = {"call": call.qualified_name, "phase": "complete", "elapsed_ms": elapsed_ms, "result": rendered}
        self._sink.log(logging.INFO, f"<<< Completed {name} in {elapsed_ms} ms. Result: {rendered}", context)

    def _log_failure(self, call: CallIdentity, name: str, elapsed_ms: int, exc: BaseException) -> None:
        error = _describe(exc)
        context = {"call": call.qualified_name, "phase": "error", "elapsed_ms": elapsed_ms, "error": error}
        self._sink.log(logging.ERROR, f"!! Exception in {name} after {elapsed_ms} ms. Error: {error}", context)

    def _guarded(self, name: str, emit: Callable[..., None], *args: Any) -> None:
        try:
            emit(*args)
        except Exception as exc:  # noqa: BLE001 - logging must not change the call outcome
            self._report_logging_failure(name, exc)

    def _report_logging_failure(self, name: str, exc: Exception) -> None:
        try:
            error = _describe(exc)
            self._sink.log(
                logging.ERROR,
                f"!! Logging failed for {name}: {error}",
                {"call": name, "phase": "logging", "error": error},
            )
        except Exception as sink_exc:  # noqa: BLE001 - fall back to package diagnostics
            log_error("sink_failed", call=name, error=type(sink_exc).__name__)


def format_arguments(args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> str:
    """Render positional and keyword arguments as one bracketed list.

    >>> format_arguments(("100", 2), {"currency": "EUR"})
    "['100', 2, currency='EUR']"
    >>> format_arguments(())
    '[]'
    """

    parts = [repr(value) for value in args]
    if kwargs:
        parts.extend(f"{key}={value!r}" for key, value in kwargs.items())
    return "[" + ", ".join(parts) + "]"


def format_result(result: object, config: RuleConfig) -> str:
    """Render *result* for the ``Completed`` record.

    Examples
    --------
    >>> format_result("abcdefgh", RuleConfig(max_result_size=5))
    'abcde... (truncated)'
    >>> format_result(None, RuleConfig(log_return_value=False))
    'VOID'
    >>> format_result("secret", RuleConfig(mask_sensitive=True))
    '[PROTECTED]'
    """

    if result is None:
        return VOID
    if not config.log_return_value:
        return NOT_LOGGED
    if config.mask_sensitive:
        return PROTECTED
    rendered = str(result)
    limit = config.max_result_size
    if limit >= 0 and len(rendered) > limit:
        return rendered[:limit] + TRUNCATION_MARKER
    return rendered


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__
