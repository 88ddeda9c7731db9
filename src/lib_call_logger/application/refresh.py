"""Change-notification handling.

Purpose
-------
React to "configuration may have changed" notifications from the host by
re-deriving settings and reloading the registry. The library never polls.

Contents
--------
* :class:`ChangeEvent` – the keys a host reports as changed.
* :class:`RefreshListener` – reloads when a rule-related key changed.

System Role
-----------
Hosts opt in by constructing a :class:`ChangeEvent` from whatever notification
mechanism they have (file watcher, config server push, signal handler) and
passing it to :meth:`RefreshListener.on_change`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..observability import log_debug, log_info
from .binding import RULES_SECTION, normalize_key
from .ports import ConfigurationSource
from .registry import RuleRegistry


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Notification that configuration keys changed.

    ``keys`` holds dotted keys such as ``method-logger.rules[0].pattern``.
    """

    keys: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, keys: Iterable[str]) -> ChangeEvent:
        return cls(frozenset(keys))

    def touches(self, section: str) -> bool:
        """Return ``True`` when any changed key lives under *section*.

        >>> ChangeEvent.of(["method-logger.rules[0].pattern"]).touches("method_logger")
        True
        >>> ChangeEvent.of(["server.port"]).touches("method_logger")
        False
        """

        wanted = normalize_key(section)
        return any(normalize_key(key).startswith(wanted) for key in self.keys)


class RefreshListener:
    """Reload *registry* from *source* when rule configuration changes."""

    def __init__(self, registry: RuleRegistry, source: ConfigurationSource, *, auto_refresh: bool = True) -> None:
        self._registry = registry
        self._source = source
        self._auto_refresh = auto_refresh

    @property
    def auto_refresh(self) -> bool:
        return self._auto_refresh

    def on_change(self, event: ChangeEvent) -> bool:
        """Handle *event*; return ``True`` when a new snapshot was published."""

        if not self._auto_refresh:
            log_debug("change_ignored", reason="auto_refresh_disabled", keys=sorted(event.keys))
            return False
        if not event.touches(RULES_SECTION):
            log_debug("change_ignored", reason="unrelated_keys", keys=sorted(event.keys))
            return False
        log_info("change_detected", source=self._source.name, keys=sorted(event.keys))
        return self._registry.reload_from(self._source)
