"""Log sink backed by the standard :mod:`logging` package.

Purpose
-------
Default destination for call records. Records go to the
``lib_call_logger.calls`` logger so applications can route them separately
from the library's own diagnostics.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Mapping

from ...observability import with_trace

CALLS_LOGGER_NAME: Final[str] = "lib_call_logger.calls"


class LoggerSink:
    """Write call records to a :class:`logging.Logger`.

    The structured context (call name, phase, elapsed time, trace id) travels
    in ``record.context`` alongside the formatted message.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(CALLS_LOGGER_NAME)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def log(self, level: int, message: str, context: Mapping[str, Any]) -> None:
        self._logger.log(level, message, extra={"context": with_trace(context)})


class RecordingSink:
    """In-memory sink keeping ``(level, message, context)`` tuples.

    Handy for tests and for the CLI's dry runs.

    >>> sink = RecordingSink()
    >>> sink.log(logging.INFO, ">>> Invoking Order.save", {"call": "svc.Order.save"})
    >>> sink.messages(logging.INFO)
    ['>>> Invoking Order.save']
    """

    def __init__(self) -> None:
        self.records: list[tuple[int, str, dict[str, Any]]] = []

    def log(self, level: int, message: str, context: Mapping[str, Any]) -> None:
        self.records.append((level, message, dict(context)))

    def messages(self, level: int | None = None) -> list[str]:
        return [message for record_level, message, _ in self.records if level is None or record_level == level]
