"""Rule registry: ordered matchers with atomic reload.

Purpose
-------
Own the active :class:`~lib_call_logger.domain.rules.Snapshot`, answer match
lookups with first-match-wins semantics, and replace the snapshot wholesale
when configuration changes.

Contents
--------
* :func:`build_snapshot` – compile rules into an ordered snapshot.
* :class:`RuleRegistry` – ``match`` / ``global_enabled`` / ``reload`` /
  ``reload_from``.

Concurrency
-----------
The snapshot is the only mutable shared state. It is published with a single
attribute rebind and every lookup reads that attribute exactly once, so a
reader sees either the old or the new snapshot as a whole. Readers never lock;
a writer lock serialises concurrent reloads.
"""

from __future__ import annotations

import threading
from typing import Iterable

from ..domain.errors import ConfigError
from ..domain.matching import CallIdentity
from ..domain.rules import EMPTY_SNAPSHOT, LoggerSettings, Rule, RuleConfig, RuleEntry, Snapshot
from ..observability import log_debug, log_error, log_info, make_event
from .patterns import compile_pattern
from .ports import ConfigurationSource


def build_snapshot(defaults: RuleConfig, rules: Iterable[Rule]) -> Snapshot:
    """Compile *rules* in order, skipping blank or disabled ones.

    Raises
    ------
    InvalidFormat
        When a raw expression cannot be parsed. Nothing is published in that
        case because the caller only installs a fully built snapshot.

    Examples
    --------
    >>> snapshot = build_snapshot(RuleConfig(), [Rule("svc.Order"), Rule(""), Rule("svc.Pay", enabled=False)])
    >>> len(snapshot)
    1
    """

    entries = tuple(
        RuleEntry(compile_pattern(rule.pattern), rule.merge_with_defaults(defaults))  # type: ignore[arg-type]
        for rule in rules
        if rule.active
    )
    return Snapshot(defaults, entries)


class RuleRegistry:
    """Hold the active snapshot and match calls against it.

    Examples
    --------
    >>> registry = RuleRegistry(LoggerSettings(rules=(Rule("svc.Order.*", min_duration_ms=100),)))
    >>> registry.match(CallIdentity("svc.Order.Store", "save")).min_duration_ms
    100
    >>> registry.match(CallIdentity("svc.Pay", "charge")) is None
    True
    """

    def __init__(self, settings: LoggerSettings | None = None) -> None:
        self._snapshot: Snapshot = EMPTY_SNAPSHOT
        self._settings = LoggerSettings()
        self._write_lock = threading.Lock()
        if settings is not None:
            self.reload(settings)

    @property
    def snapshot(self) -> Snapshot:
        """The snapshot currently in effect (read-only)."""

        return self._snapshot

    @property
    def settings(self) -> LoggerSettings:
        """Settings the current snapshot was built from."""

        return self._settings

    def match(self, call: CallIdentity) -> RuleConfig | None:
        """Return the effective config of the first enabled entry accepting *call*."""

        for entry in self._snapshot.entries:
            if entry.accepts(call):
                return entry.config
        return None

    def global_enabled(self) -> bool:
        """Top-level kill switch taken from the current snapshot's defaults."""

        return self._snapshot.defaults.enabled

    def reload(self, settings: LoggerSettings) -> Snapshot:
        """Build a snapshot from *settings* and publish it.

        Raises whatever :func:`build_snapshot` raises; the previous snapshot
        stays active in that case.
        """

        with self._write_lock:
            snapshot = build_snapshot(settings.defaults, settings.rules)
            self._snapshot = snapshot
            self._settings = settings
        log_debug("rules_loaded", **make_event("settings", len(snapshot), {"enabled": settings.enabled}))
        return snapshot

    def reload_from(self, source: ConfigurationSource) -> bool:
        """Load settings from *source* and reload; report failures instead of raising.

        Returns
        -------
        bool
            ``True`` when a new snapshot was published, ``False`` when the
            configuration was malformed and the previous snapshot was kept.
        """

        try:
            snapshot = self.reload(source.load())
        except ConfigError as exc:
            log_error("reload_failed", **make_event(source.name, len(self._snapshot), {"error": str(exc)}))
            return False
        log_info("configuration_reloaded", **make_event(source.name, len(snapshot)))
        return True
