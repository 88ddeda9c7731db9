"""Bind merged configuration mappings to :class:`LoggerSettings`.

Purpose
-------
Translate the loosely typed output of the file/env layers into the immutable
settings the registry consumes, rejecting values of the wrong type.

Layout
------
.. code-block:: toml

    [method_logger]
    enabled = true
    log_arguments = true
    min_duration_ms = 0

    [[method_logger.rules]]
    pattern = "svc.orders.*"
    min_duration_ms = 100

    [call_logger]
    base_package = "svc"
    auto_refresh = true

Keys use relaxed binding: ``log_arguments``, ``log-arguments`` and
``logArguments`` name the same field. ``min_execution_time_ms``,
``max_return_size`` and ``mask_sensitive_fields`` are accepted as aliases.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from ..domain.errors import ValidationError
from ..domain.rules import LoggerSettings, Rule, RuleConfig

RULES_SECTION: Final[str] = "method_logger"
SCOPE_SECTION: Final[str] = "call_logger"

_ALIASES: Final[dict[str, str]] = {
    "enabled": "enabled",
    "logarguments": "log_arguments",
    "logreturnvalue": "log_return_value",
    "mindurationms": "min_duration_ms",
    "minexecutiontimems": "min_duration_ms",
    "maxresultsize": "max_result_size",
    "maxreturnsize": "max_result_size",
    "masksensitive": "mask_sensitive",
    "masksensitivefields": "mask_sensitive",
    "pattern": "pattern",
    "rules": "rules",
    "basepackage": "base_package",
    "autorefresh": "auto_refresh",
}
_BOOLEAN_FIELDS: Final[frozenset[str]] = frozenset(
    {"enabled", "log_arguments", "log_return_value", "mask_sensitive", "auto_refresh"}
)
_INTEGER_FIELDS: Final[frozenset[str]] = frozenset({"min_duration_ms", "max_result_size"})
_CONFIG_FIELDS: Final[frozenset[str]] = _BOOLEAN_FIELDS - {"auto_refresh"} | _INTEGER_FIELDS
_DEFAULT_FIELDS: Final[frozenset[str]] = _CONFIG_FIELDS | {"rules"}
_RULE_FIELDS: Final[frozenset[str]] = _CONFIG_FIELDS | {"pattern"}
_SCOPE_FIELDS: Final[frozenset[str]] = frozenset({"base_package", "auto_refresh"})


def normalize_key(key: str) -> str:
    """Return the relaxed form of *key* used for comparisons.

    >>> normalize_key("method-logger"), normalize_key("logReturnValue")
    ('methodlogger', 'logreturnvalue')
    """

    return key.replace("-", "").replace("_", "").lower()


def bind_settings(data: Mapping[str, Any]) -> LoggerSettings:
    """Build :class:`LoggerSettings` from a merged configuration mapping.

    Missing sections fall back to the defaults.

    Examples
    --------
    >>> settings = bind_settings({
    ...     "method-logger": {"logArguments": False, "rules": [{"pattern": "svc.Pay.charge", "mask_sensitive": True}]},
    ...     "call_logger": {"base_package": "svc"},
    ... })
    >>> settings.defaults.log_arguments, settings.rules[0].mask_sensitive, settings.base_package
    (False, True, 'svc')
    """

    rules_section = _section(data, RULES_SECTION)
    scope_section = _section(data, SCOPE_SECTION)

    values = _fields(rules_section, RULES_SECTION, _DEFAULT_FIELDS)
    rules = tuple(_bind_rule(item, position) for position, item in _ordered(values.pop("rules", None)))
    defaults = RuleConfig(**values)

    scope = _fields(scope_section, SCOPE_SECTION, _SCOPE_FIELDS)
    base_package = scope.get("base_package", "")
    if not isinstance(base_package, str):
        raise ValidationError(f"{SCOPE_SECTION}.base_package must be a string, got {base_package!r}")
    return LoggerSettings(
        defaults=defaults,
        rules=rules,
        base_package=base_package.strip(),
        auto_refresh=scope.get("auto_refresh", True),
    )


def _bind_rule(item: Any, position: int) -> Rule:
    where = f"{RULES_SECTION}.rules[{position}]"
    if not isinstance(item, Mapping):
        raise ValidationError(f"{where} must be a mapping, got {type(item).__name__}")
    values = _fields(item, where, _RULE_FIELDS)
    pattern = values.get("pattern")
    if pattern is not None and not isinstance(pattern, str):
        raise ValidationError(f"{where}.pattern must be a string, got {pattern!r}")
    return Rule(**values)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    wanted = normalize_key(name)
    for key, value in data.items():
        if normalize_key(str(key)) == wanted:
            if not isinstance(value, Mapping):
                raise ValidationError(f"Section {name} must be a mapping, got {type(value).__name__}")
            return value
    return {}


def _fields(section: Mapping[str, Any], where: str, allowed: frozenset[str]) -> dict[str, Any]:
    """Collect the *allowed* fields of *section* under their canonical names, type-checked."""

    values: dict[str, Any] = {}
    for key, value in section.items():
        field_name = _ALIASES.get(normalize_key(str(key)))
        if field_name not in allowed:
            continue
        if field_name in _BOOLEAN_FIELDS:
            _require(isinstance(value, bool), where, field_name, value, "a boolean")
        elif field_name in _INTEGER_FIELDS:
            _require(isinstance(value, int) and not isinstance(value, bool), where, field_name, value, "an integer")
            if field_name == "min_duration_ms":
                _require(value >= 0, where, field_name, value, "non-negative")
        values[field_name] = value
    return values


def _require(condition: bool, where: str, field_name: str, value: Any, expected: str) -> None:
    if not condition:
        raise ValidationError(f"{where}.{field_name} must be {expected}, got {value!r}")


def _ordered(rules: Any) -> list[tuple[int, Any]]:
    """Return rule items in order from a list or an index mapping."""

    if rules is None:
        return []
    if isinstance(rules, (list, tuple)):
        return list(enumerate(rules))
    if isinstance(rules, Mapping):
        try:
            indexed = sorted(((int(key), value) for key, value in rules.items()), key=lambda pair: pair[0])
        except ValueError as exc:
            raise ValidationError(f"{RULES_SECTION}.rules keys must be list indices: {sorted(map(str, rules))}") from exc
        return indexed
    raise ValidationError(f"{RULES_SECTION}.rules must be a list, got {type(rules).__name__}")
