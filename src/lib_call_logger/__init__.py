"""Public package surface for ``lib_call_logger``.

Rule-driven call logging whose rules can be replaced while the host keeps
running. The stable entry points are re-exported here; everything else is an
implementation detail of the layered packages below.
"""

from __future__ import annotations

from .adapters.sinks.logging_sink import LoggerSink, RecordingSink
from .application.interceptor import CallInterceptor
from .application.patterns import classify, compile_pattern, compile_scope
from .application.refresh import ChangeEvent, RefreshListener
from .application.registry import RuleRegistry, build_snapshot
from .core import (
    FileConfigurationSource,
    LayerLoadError,
    MappingConfigurationSource,
    create_interceptor,
    create_listener,
    create_registry,
    read_settings,
    read_settings_raw,
)
from .domain.errors import ConfigError, InvalidFormat, NotFound, ValidationError
from .domain.matching import CallIdentity, Matcher, PatternType
from .domain.rules import DEFAULT_RULE_CONFIG, LoggerSettings, Rule, RuleConfig, RuleEntry, Snapshot
from .observability import bind_trace_id, get_logger

__all__ = [
    "CallIdentity",
    "CallInterceptor",
    "ChangeEvent",
    "ConfigError",
    "DEFAULT_RULE_CONFIG",
    "FileConfigurationSource",
    "InvalidFormat",
    "LayerLoadError",
    "LoggerSettings",
    "LoggerSink",
    "MappingConfigurationSource",
    "Matcher",
    "NotFound",
    "PatternType",
    "RecordingSink",
    "RefreshListener",
    "Rule",
    "RuleConfig",
    "RuleEntry",
    "RuleRegistry",
    "Snapshot",
    "ValidationError",
    "bind_trace_id",
    "build_snapshot",
    "classify",
    "compile_pattern",
    "compile_scope",
    "create_interceptor",
    "create_listener",
    "create_registry",
    "get_logger",
    "read_settings",
    "read_settings_raw",
]
