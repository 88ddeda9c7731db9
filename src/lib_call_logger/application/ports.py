"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the registry and the interceptor rely on so
they never depend on concrete adapters.

Contents
--------
* :class:`FileLoader` – parses one structured configuration document.
* :class:`EnvLoader` – materialises prefixed environment variables.
* :class:`ConfigurationSource` – yields bound :class:`LoggerSettings`.
* :class:`LogSink` – receives formatted call records.

System Role
-----------
Adapters under :mod:`lib_call_logger.adapters` implement these protocols; the
composition root wires them together. Tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from ..domain.rules import LoggerSettings


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping."""

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping or raise ``NotFound``/``InvalidFormat``."""


@runtime_checkable
class EnvLoader(Protocol):
    """Translate environment variables into a nested mapping."""

    def load(self, prefix: str) -> Mapping[str, object]:
        """Return variables that match *prefix* (``__`` for nesting)."""


@runtime_checkable
class ConfigurationSource(Protocol):
    """Provide the current :class:`LoggerSettings` on demand.

    ``load`` re-derives the settings every time it is called; it raises a
    :class:`~lib_call_logger.domain.errors.ConfigError` when the underlying
    configuration cannot be parsed or bound.
    """

    name: str

    def load(self) -> LoggerSettings:
        """Return freshly bound settings."""


@runtime_checkable
class LogSink(Protocol):
    """Receive formatted call records.

    ``level`` is a :mod:`logging` level: ``INFO`` for invocation and
    completion records, ``ERROR`` for failures. ``context`` carries the same
    data in structured form.
    """

    def log(self, level: int, message: str, context: Mapping[str, Any]) -> None:
        """Write one record."""
