"""Rule records and their merge policy.

Purpose
-------
Hold the immutable value objects that travel from configuration binding to the
interceptor: global defaults, per-rule overrides, merged rule entries, and the
snapshot the registry publishes.

Contents
--------
* :class:`RuleConfig` – the six effective settings of one rule.
* :data:`DEFAULT_RULE_CONFIG` – process-wide defaults.
* :class:`Rule` – a match pattern with optional overrides.
* :class:`LoggerSettings` – everything one configuration source yields.
* :class:`RuleEntry` – compiled matcher paired with its effective config.
* :class:`Snapshot` – ordered rule entries plus the defaults that built them.

System Role
-----------
Nothing in this module is mutated after construction. Reloading builds new
instances; in-flight calls keep whichever :class:`RuleConfig` they captured.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, TypeVar

from .matching import CallIdentity, Matcher

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RuleConfig:
    """Effective logging settings for a matched call.

    Attributes
    ----------
    enabled:
        For global defaults this is the top-level kill switch; for a rule entry
        it is the rule's own flag.
    log_arguments:
        Include call arguments in the ``Invoking`` record.
    log_return_value:
        Include the rendered result in the ``Completed`` record.
    min_duration_ms:
        Only emit the ``Completed`` record when the call took at least this
        long. ``0`` logs every call.
    max_result_size:
        Truncate the rendered result to this many characters; ``-1`` disables
        truncation.
    mask_sensitive:
        Replace arguments and results with ``[PROTECTED]``.
    """

    enabled: bool = True
    log_arguments: bool = True
    log_return_value: bool = True
    min_duration_ms: int = 0
    max_result_size: int = -1
    mask_sensitive: bool = False


DEFAULT_RULE_CONFIG: Final[RuleConfig] = RuleConfig()


@dataclass(frozen=True, slots=True)
class Rule:
    """A match pattern plus optional overrides.

    ``None`` means "inherit from the global defaults"; explicit ``False``,
    ``0``, or ``-1`` are honoured as overrides.

    Examples
    --------
    >>> rule = Rule("svc.Order.*", min_duration_ms=100)
    >>> merged = rule.merge_with_defaults(RuleConfig(log_arguments=False))
    >>> merged.min_duration_ms, merged.log_arguments
    (100, False)
    """

    pattern: str | None = None
    enabled: bool = True
    log_arguments: bool | None = None
    log_return_value: bool | None = None
    min_duration_ms: int | None = None
    max_result_size: int | None = None
    mask_sensitive: bool | None = None

    @property
    def active(self) -> bool:
        """Whether this rule contributes an entry to a snapshot."""

        return self.enabled and bool(self.pattern and self.pattern.strip())

    def merge_with_defaults(self, defaults: RuleConfig) -> RuleConfig:
        """Combine overrides with *defaults*; ``enabled`` always comes from the rule."""

        return RuleConfig(
            enabled=self.enabled,
            log_arguments=_pick(self.log_arguments, defaults.log_arguments),
            log_return_value=_pick(self.log_return_value, defaults.log_return_value),
            min_duration_ms=_pick(self.min_duration_ms, defaults.min_duration_ms),
            max_result_size=_pick(self.max_result_size, defaults.max_result_size),
            mask_sensitive=_pick(self.mask_sensitive, defaults.mask_sensitive),
        )


def _pick(override: T | None, fallback: T) -> T:
    return fallback if override is None else override


@dataclass(frozen=True, slots=True)
class LoggerSettings:
    """Bound configuration: global defaults, ordered rules, and scope settings.

    ``base_package`` and ``auto_refresh`` are read by collaborators (the call
    delivery mechanism and the refresh listener); the registry only uses
    ``defaults`` and ``rules``.
    """

    defaults: RuleConfig = DEFAULT_RULE_CONFIG
    rules: tuple[Rule, ...] = ()
    base_package: str = ""
    auto_refresh: bool = True

    @property
    def enabled(self) -> bool:
        return self.defaults.enabled


@dataclass(frozen=True, slots=True)
class RuleEntry:
    """Compiled matcher paired with its effective configuration."""

    matcher: Matcher
    config: RuleConfig

    def accepts(self, call: CallIdentity) -> bool:
        return self.config.enabled and self.matcher.matches(call)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable, ordered set of rule entries currently in effect."""

    defaults: RuleConfig
    entries: tuple[RuleEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)


EMPTY_SNAPSHOT: Final[Snapshot] = Snapshot(DEFAULT_RULE_CONFIG)
"""Snapshot used before the first configuration is loaded."""
