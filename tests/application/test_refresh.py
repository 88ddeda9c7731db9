from __future__ import annotations

import logging

import pytest

from lib_call_logger.application.refresh import ChangeEvent, RefreshListener
from lib_call_logger.application.registry import RuleRegistry
from lib_call_logger.core import MappingConfigurationSource
from lib_call_logger.domain.matching import CallIdentity

ORDER_SAVE = CallIdentity("svc.Order", "save")


class MutableConfig:
    def __init__(self, data: dict) -> None:
        self.data = data

    def __call__(self) -> dict:
        return self.data


def _wired(auto_refresh: bool = True) -> tuple[RefreshListener, RuleRegistry, MutableConfig]:
    config = MutableConfig({"method_logger": {"rules": [{"pattern": "svc.Pay"}]}})
    source = MappingConfigurationSource(config, name="test")
    registry = RuleRegistry(source.load())
    return RefreshListener(registry, source, auto_refresh=auto_refresh), registry, config


@pytest.mark.parametrize(
    "key",
    ["method-logger.rules[0].pattern", "method_logger.enabled", "methodLogger.logArguments"],
)
def test_rule_keys_trigger_reload(key: str) -> None:
    listener, registry, config = _wired()
    config.data = {"method_logger": {"rules": [{"pattern": "svc.Order"}]}}
    assert listener.on_change(ChangeEvent.of([key])) is True
    assert registry.match(ORDER_SAVE) is not None


def test_unrelated_keys_are_ignored() -> None:
    listener, registry, config = _wired()
    before = registry.snapshot
    config.data = {"method_logger": {"rules": [{"pattern": "svc.Order"}]}}
    assert listener.on_change(ChangeEvent.of(["server.port", "database.url"])) is False
    assert registry.snapshot is before


def test_auto_refresh_disabled_ignores_everything() -> None:
    listener, registry, config = _wired(auto_refresh=False)
    before = registry.snapshot
    assert listener.auto_refresh is False
    assert listener.on_change(ChangeEvent.of(["method_logger.enabled"])) is False
    assert registry.snapshot is before


def test_malformed_change_keeps_old_rules(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_call_logger")
    listener, registry, config = _wired()
    config.data = {"method_logger": {"rules": [{"pattern": "within(("}]}}
    assert listener.on_change(ChangeEvent.of(["method_logger.rules[0].pattern"])) is False
    assert registry.match(CallIdentity("svc.Pay", "charge")) is not None
    assert any(record.getMessage() == "reload_failed" for record in caplog.records)


def test_empty_event_touches_nothing() -> None:
    assert ChangeEvent().touches("method_logger") is False
