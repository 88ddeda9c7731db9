"""Rule registry: ordering, enablement, reload, and failure semantics."""

from __future__ import annotations

import logging
import threading

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_call_logger.application.registry import RuleRegistry, build_snapshot
from lib_call_logger.domain.errors import InvalidFormat, ValidationError
from lib_call_logger.domain.matching import CallIdentity
from lib_call_logger.domain.rules import LoggerSettings, Rule, RuleConfig

ORDER_SAVE = CallIdentity("svc.Order", "save")


class StaticSource:
    """Configuration source returning fixed settings or raising a fixed error."""

    def __init__(self, settings: LoggerSettings | None = None, error: Exception | None = None) -> None:
        self.name = "static"
        self._settings = settings
        self._error = error

    def load(self) -> LoggerSettings:
        if self._error is not None:
            raise self._error
        assert self._settings is not None
        return self._settings


def _settings(*rules: Rule, defaults: RuleConfig | None = None) -> LoggerSettings:
    return LoggerSettings(defaults=defaults or RuleConfig(), rules=rules)


def test_build_snapshot_preserves_order_and_skips_inactive_rules() -> None:
    snapshot = build_snapshot(
        RuleConfig(),
        [Rule("svc.A"), Rule(None), Rule("svc.B", enabled=False), Rule("  "), Rule("svc.C")],
    )
    assert [entry.matcher.pattern for entry in snapshot.entries] == ["svc.A", "svc.C"]


def test_empty_registry_matches_nothing() -> None:
    registry = RuleRegistry()
    assert registry.match(ORDER_SAVE) is None
    assert registry.global_enabled() is True
    assert len(registry.snapshot) == 0


@given(st.integers(min_value=0, max_value=5), st.integers(min_value=0, max_value=5))
def test_first_matching_rule_wins(misses: int, later_hits: int) -> None:
    rules = [Rule(f"other.Type{index}", min_duration_ms=1000 + index) for index in range(misses)]
    rules.append(Rule("svc.Order.save", min_duration_ms=7))
    rules.extend(Rule("svc.Order", min_duration_ms=2000 + index) for index in range(later_hits))
    registry = RuleRegistry(_settings(*rules))
    config = registry.match(ORDER_SAVE)
    assert config is not None
    assert config.min_duration_ms == 7


def test_disabled_rule_does_not_block_later_match() -> None:
    registry = RuleRegistry(
        _settings(
            Rule("svc.Order.save", enabled=False, min_duration_ms=1),
            Rule("svc.Order", min_duration_ms=2),
        )
    )
    config = registry.match(ORDER_SAVE)
    assert config is not None and config.min_duration_ms == 2


def test_entries_merge_against_current_defaults() -> None:
    registry = RuleRegistry(_settings(Rule("svc.Order"), defaults=RuleConfig(log_arguments=False, max_result_size=10)))
    config = registry.match(ORDER_SAVE)
    assert config == RuleConfig(enabled=True, log_arguments=False, max_result_size=10)


def test_global_enabled_reflects_defaults() -> None:
    registry = RuleRegistry(_settings(Rule("svc.Order"), defaults=RuleConfig(enabled=False)))
    assert registry.global_enabled() is False
    assert registry.match(ORDER_SAVE) is not None


def test_reload_replaces_snapshot_wholesale() -> None:
    registry = RuleRegistry(_settings(Rule("svc.Order", min_duration_ms=1)))
    before = registry.snapshot
    captured = registry.match(ORDER_SAVE)

    registry.reload(_settings(Rule("svc.Pay")))

    assert registry.snapshot is not before
    assert registry.match(ORDER_SAVE) is None
    assert registry.match(CallIdentity("svc.Pay", "charge")) is not None
    assert captured is not None and captured.min_duration_ms == 1
    assert before.entries[0].config is captured


def test_reload_with_invalid_expression_keeps_previous_snapshot() -> None:
    registry = RuleRegistry(_settings(Rule("svc.Order")))
    before = registry.snapshot
    with pytest.raises(InvalidFormat):
        registry.reload(_settings(Rule("svc.Pay"), Rule("execution(nonsense)")))
    assert registry.snapshot is before
    assert registry.match(ORDER_SAVE) is not None


def test_reload_from_reports_malformed_configuration(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_call_logger")
    registry = RuleRegistry(_settings(Rule("svc.Order")))
    before = registry.snapshot

    assert registry.reload_from(StaticSource(error=ValidationError("bad value"))) is False

    assert registry.snapshot is before
    record = caplog.records[-1]
    assert record.getMessage() == "reload_failed"
    assert getattr(record, "context")["error"] == "bad value"


def test_reload_from_publishes_new_snapshot(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="lib_call_logger")
    registry = RuleRegistry()
    assert registry.reload_from(StaticSource(_settings(Rule("svc.Order")))) is True
    assert registry.match(ORDER_SAVE) is not None
    assert any(record.getMessage() == "configuration_reloaded" for record in caplog.records)


def test_reload_from_does_not_swallow_unexpected_errors() -> None:
    registry = RuleRegistry()
    with pytest.raises(RuntimeError):
        registry.reload_from(StaticSource(error=RuntimeError("boom")))


def test_concurrent_matches_observe_whole_snapshots() -> None:
    """Readers racing a writer only ever see configs belonging to the snapshot they matched in."""

    first = _settings(Rule("svc.Order", min_duration_ms=1), Rule("svc.Pay", min_duration_ms=1))
    second = _settings(Rule("svc.Pay", min_duration_ms=2), Rule("svc.Order", min_duration_ms=2))
    registry = RuleRegistry(first)
    stop = threading.Event()
    violations: list[str] = []

    def reader() -> None:
        while not stop.is_set():
            snapshot = registry.snapshot
            values = {entry.config.min_duration_ms for entry in snapshot.entries}
            if len(values) != 1:
                violations.append(f"mixed snapshot {values}")
            config = registry.match(ORDER_SAVE)
            if config is None or config.min_duration_ms not in (1, 2):
                violations.append(f"unexpected config {config}")

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for index in range(200):
        registry.reload(second if index % 2 else first)
    stop.set()
    for thread in threads:
        thread.join()

    assert violations == []
