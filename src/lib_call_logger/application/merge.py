"""Layer merge policy for rule configuration.

Purpose
-------
Combine the configuration layers (file → env → explicit overrides) into one
nested mapping while recording which layer supplied each dotted key.

Contents
    - ``merge_layers``: public entry point.
    - ``index_lists``: turns lists into ``{"0": ..., "1": ...}`` mappings so a
      later layer can override a single rule field by index.
    - ``_merge_mapping`` / ``_set_scalar`` / ``_clear_branch``: recursive
      helpers keeping provenance consistent.

System Role
-----------
Called by :mod:`lib_call_logger.core`; the merged mapping is handed to
:func:`lib_call_logger.application.binding.bind_settings`, which turns index
mappings back into ordered lists.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Iterable

Layer = tuple[str, Mapping[str, object], "str | None"]


def merge_layers(layers: Iterable[Layer]) -> tuple[dict[str, object], dict[str, dict[str, object]]]:
    """Merge *layers* (lowest precedence first) and return ``(data, provenance)``.

    Examples
    --------
    >>> merged, meta = merge_layers([
    ...     ("file", {"method_logger": {"rules": [{"pattern": "svc.Order", "min_duration_ms": 5}]}}, "rules.toml"),
    ...     ("env", {"method_logger": {"rules": {"0": {"min_duration_ms": 50}}}}, None),
    ... ])
    >>> merged["method_logger"]["rules"]["0"]
    {'pattern': 'svc.Order', 'min_duration_ms': 50}
    >>> meta["method_logger.rules.0.min_duration_ms"]["layer"]
    'env'
    """

    merged: dict[str, object] = {}
    meta: dict[str, dict[str, object]] = {}
    for layer, payload, origin in layers:
        _merge_mapping(merged, meta, index_lists(payload), layer, origin, [])
    return merged, meta


def index_lists(value: Mapping[str, object]) -> dict[str, object]:
    """Return a deep copy of *value* with every list replaced by an index mapping.

    >>> index_lists({"rules": [{"pattern": "a"}, {"pattern": "b"}]})
    {'rules': {'0': {'pattern': 'a'}, '1': {'pattern': 'b'}}}
    """

    return {str(key): _indexed(item) for key, item in value.items()}


def _indexed(value: object) -> object:
    if isinstance(value, Mapping):
        return index_lists(value)
    if isinstance(value, (list, tuple)):
        return {str(position): _indexed(item) for position, item in enumerate(value)}
    return value


def _merge_mapping(
    target: dict[str, object],
    meta: dict[str, dict[str, object]],
    incoming: Mapping[str, object],
    layer: str,
    origin: str | None,
    segments: list[str],
) -> None:
    for key, value in incoming.items():
        dotted = ".".join([*segments, key])
        if isinstance(value, Mapping):
            existing = target.get(key)
            if not isinstance(existing, dict):
                _clear_branch(meta, dotted)
                existing = {}
                target[key] = existing
            _merge_mapping(existing, meta, value, layer, origin, [*segments, key])
        else:
            _set_scalar(target, meta, key, value, dotted, layer, origin)


def _set_scalar(
    target: dict[str, object],
    meta: dict[str, dict[str, object]],
    key: str,
    value: object,
    dotted: str,
    layer: str,
    origin: str | None,
) -> None:
    _clear_branch(meta, dotted)
    target[key] = value
    meta[dotted] = {"layer": layer, "path": origin, "key": dotted}


def _clear_branch(meta: dict[str, dict[str, object]], prefix: str) -> None:
    """Remove provenance entries that belong to *prefix* or its descendants."""

    for meta_key in list(meta):
        if meta_key == prefix or meta_key.startswith(prefix + "."):
            del meta[meta_key]
