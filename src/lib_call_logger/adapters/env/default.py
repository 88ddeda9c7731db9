"""Environment variable adapter.

Purpose
-------
Let operators override rule settings through the environment, above the rule
file in precedence.

Key behaviours
--------------
* Only variables carrying the prefix (``LIB_CALL_LOGGER_`` by default) count.
* ``__`` separates nesting levels; numeric segments address list items, so
  ``LIB_CALL_LOGGER_METHOD_LOGGER__RULES__0__MIN_DURATION_MS=250`` changes
  the first rule only.
* Scalars are coerced (``true``/``false``, integers, floats, ``none``).
"""

from __future__ import annotations

import os
from typing import Final, Mapping

from ...domain.errors import InvalidFormat
from ...observability import log_debug

DEFAULT_ENV_PREFIX: Final[str] = "LIB_CALL_LOGGER"


class DefaultEnvLoader:
    """Load prefixed environment variables into a nested mapping."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str = DEFAULT_ENV_PREFIX) -> dict[str, object]:
        """Return a nested mapping of the variables carrying *prefix*.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={
        ...     'LIB_CALL_LOGGER_METHOD_LOGGER__ENABLED': 'false',
        ...     'LIB_CALL_LOGGER_METHOD_LOGGER__RULES__0__MIN_DURATION_MS': '250',
        ...     'PATH': '/usr/bin',
        ... })
        >>> loader.load()
        {'method_logger': {'enabled': False, 'rules': {'0': {'min_duration_ms': 250}}}}
        """

        prefix = prefix if not prefix or prefix.endswith("_") else f"{prefix}_"
        collected: dict[str, object] = {}
        for key, value in self._environ.items():
            if not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :]
            if stripped:
                assign_nested(collected, stripped, _coerce(value))
        log_debug("env_variables_loaded", prefix=prefix, keys=sorted(collected))
        return collected


def assign_nested(target: dict[str, object], key: str, value: object) -> None:
    """Assign *value* inside *target* using ``__`` as the nesting delimiter.

    >>> data: dict[str, object] = {}
    >>> assign_nested(data, 'METHOD_LOGGER__LOG_ARGUMENTS', False)
    >>> data
    {'method_logger': {'log_arguments': False}}
    """

    *parents, leaf = key.lower().split("__")
    cursor = target
    for part in parents:
        child = cursor.setdefault(part, {})
        if not isinstance(child, dict):
            raise InvalidFormat(f"Cannot nest {key} below scalar value {part}")
        cursor = child
    if isinstance(cursor.get(leaf), dict):
        raise InvalidFormat(f"Cannot assign scalar {key} over nested values")
    cursor[leaf] = value


def _coerce(value: str) -> object:
    """Coerce textual values to Python primitives where possible.

    >>> _coerce('true'), _coerce('-1'), _coerce('2.5'), _coerce('none'), _coerce('svc.*')
    (True, -1, 2.5, None, 'svc.*')
    """

    lowered = value.strip().lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        return int(lowered)
    except ValueError:
        pass
    try:
        return float(lowered)
    except ValueError:
        return value
