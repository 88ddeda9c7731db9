"""Composition root for ``lib_call_logger``.

Purpose
-------
Wire the configuration adapters, the merge policy, and the binding layer into
ready-to-use collaborators: a configuration source, a registry, an
interceptor, and a refresh listener.

Contents
--------
* :class:`LayerLoadError` – a configuration layer failed to materialise.
* :func:`read_settings_raw` – merged mapping plus provenance.
* :func:`read_settings` – bound :class:`LoggerSettings`.
* :class:`FileConfigurationSource` – :class:`ConfigurationSource` over a rule
  file and the environment.
* :class:`MappingConfigurationSource` – source over an in-memory mapping.
* :func:`create_registry` / :func:`create_interceptor` / :func:`create_listener`.

System Role
-----------
Hosts call these factories once at startup, deliver calls to
:meth:`CallInterceptor.invoke`, and forward change notifications to
:meth:`RefreshListener.on_change`.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from .adapters.env.default import DEFAULT_ENV_PREFIX, DefaultEnvLoader
from .adapters.file_loaders.structured import loader_for
from .adapters.sinks.logging_sink import LoggerSink
from .application.binding import bind_settings
from .application.interceptor import CallInterceptor
from .application.merge import merge_layers
from .application.ports import ConfigurationSource, LogSink
from .application.refresh import RefreshListener
from .application.registry import RuleRegistry
from .domain.errors import ConfigError, InvalidFormat
from .domain.rules import LoggerSettings
from .observability import log_debug


class LayerLoadError(ConfigError):
    """Raised when a configuration layer cannot be materialised."""


def read_settings_raw(
    path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    prefix: str = DEFAULT_ENV_PREFIX,
    overrides: Mapping[str, Any] | None = None,
) -> tuple[dict[str, object], dict[str, dict[str, object]]]:
    """Return the merged configuration mapping and its provenance.

    Layers, lowest precedence first: the rule file at *path* (when given), the
    prefixed environment variables, then *overrides*.

    Raises
    ------
    NotFound
        When *path* does not exist.
    LayerLoadError
        When the rule file is malformed.
    """

    layers: list[tuple[str, Mapping[str, object], str | None]] = []
    if path is not None:
        try:
            layers.append(("file", loader_for(path).load(path), path))
        except InvalidFormat as exc:
            raise LayerLoadError(f"Failed to load rule file {path}: {exc}") from exc

    env_data = DefaultEnvLoader(environ=environ).load(prefix)
    if env_data:
        layers.append(("env", env_data, None))
    if overrides:
        layers.append(("overrides", overrides, None))

    merged, meta = merge_layers(layers)
    log_debug("configuration_merged", layers=[layer for layer, _, _ in layers], keys=len(meta))
    return merged, meta


def read_settings(
    path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    prefix: str = DEFAULT_ENV_PREFIX,
    overrides: Mapping[str, Any] | None = None,
) -> LoggerSettings:
    """Read, merge, and bind settings from the rule file and the environment.

    Examples
    --------
    >>> settings = read_settings(environ={"LIB_CALL_LOGGER_METHOD_LOGGER__RULES__0__PATTERN": "svc.Order.*"})
    >>> settings.rules[0].pattern
    'svc.Order.*'
    """

    merged, _ = read_settings_raw(path, environ=environ, prefix=prefix, overrides=overrides)
    return bind_settings(merged)


class FileConfigurationSource:
    """Configuration source re-reading a rule file and the environment on each load."""

    def __init__(
        self,
        path: str | None,
        *,
        environ: Mapping[str, str] | None = None,
        prefix: str = DEFAULT_ENV_PREFIX,
    ) -> None:
        self.path = path
        self.name = f"file:{path}" if path else "env"
        self._environ = environ
        self._prefix = prefix

    def load(self) -> LoggerSettings:
        return read_settings(self.path, environ=self._environ, prefix=self._prefix)


class MappingConfigurationSource:
    """Configuration source over a mapping supplier (for hosts with their own config system)."""

    def __init__(self, supplier: Callable[[], Mapping[str, Any]], *, name: str = "mapping") -> None:
        self.name = name
        self._supplier = supplier

    def load(self) -> LoggerSettings:
        merged, _ = merge_layers([(self.name, self._supplier(), None)])
        return bind_settings(merged)


def create_registry(source: ConfigurationSource) -> RuleRegistry:
    """Build a registry from the initial configuration of *source*.

    Unlike later reloads, a malformed initial configuration raises: there is
    no previous snapshot to fall back to.
    """

    return RuleRegistry(source.load())


def create_interceptor(registry: RuleRegistry, sink: LogSink | None = None) -> CallInterceptor:
    """Return an interceptor writing to *sink* (default: :class:`LoggerSink`)."""

    return CallInterceptor(registry, sink if sink is not None else LoggerSink())


def create_listener(registry: RuleRegistry, source: ConfigurationSource) -> RefreshListener:
    """Return a refresh listener honouring the ``auto_refresh`` setting."""

    return RefreshListener(registry, source, auto_refresh=registry.settings.auto_refresh)


__all__ = [
    "LayerLoadError",
    "FileConfigurationSource",
    "MappingConfigurationSource",
    "read_settings",
    "read_settings_raw",
    "create_registry",
    "create_interceptor",
    "create_listener",
]
