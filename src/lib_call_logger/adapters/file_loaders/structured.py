"""Structured rule-file loaders.

Purpose
-------
Parse the document holding ``method_logger`` / ``call_logger`` sections into a
plain mapping. Each loader wraps one parser so error handling and diagnostics
stay identical across formats.

Contents
--------
* :class:`BaseFileLoader` – shared read and mapping validation.
* :class:`TOMLFileLoader` / :class:`JSONFileLoader` / :class:`YAMLFileLoader`.
* :func:`loader_for` – choose a loader from a file suffix.

System Role
-----------
Used by :class:`lib_call_logger.core.FileConfigurationSource` on every reload.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-untyped]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


class BaseFileLoader:
    """Common helpers shared by the structured loaders."""

    format_name = "file"

    def _read(self, path: str) -> bytes:
        """Return the bytes of *path*; raise :class:`NotFound` or :class:`InvalidFormat` when unreadable."""

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Rule file not found: {path}")
        try:
            return file_path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFound(f"Rule file not found: {path}") from exc
        except OSError as exc:
            log_error("config_file_unreadable", path=path, format=self.format_name, error=str(exc))
            raise InvalidFormat(f"Cannot read rule file {path}: {exc}") from exc

    def _finish(self, data: object, path: str) -> Mapping[str, object]:
        """Validate that *data* is a mapping and log the successful load.

        >>> BaseFileLoader()._finish(["not", "a", "mapping"], "rules.json")
        Traceback (most recent call last):
        ...
        lib_call_logger.domain.errors.InvalidFormat: Rule file rules.json did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"Rule file {path} did not produce a mapping")
        log_debug("config_file_loaded", path=path, format=self.format_name, keys=sorted(map(str, data)))
        return data

    def _invalid(self, path: str, exc: Exception) -> InvalidFormat:
        log_error("config_file_invalid", path=path, format=self.format_name, error=str(exc))
        return InvalidFormat(f"Invalid {self.format_name.upper()} in {path}: {exc}")


class TOMLFileLoader(BaseFileLoader):
    """Load TOML rule files (the documented default format)."""

    format_name = "toml"

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = tomllib.loads(self._read(path).decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc
        return self._finish(data, path)


class JSONFileLoader(BaseFileLoader):
    """Load JSON rule files."""

    format_name = "json"

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = json.loads(self._read(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc
        return self._finish(data, path)


class YAMLFileLoader(BaseFileLoader):
    """Load YAML rule files when PyYAML is installed."""

    format_name = "yaml"

    def load(self, path: str) -> Mapping[str, object]:
        if yaml is None:
            raise NotFound("PyYAML is required for YAML rule files")
        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc) from exc
        return self._finish({} if data is None else data, path)


_LOADERS: dict[str, BaseFileLoader] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
}


def loader_for(path: str) -> BaseFileLoader:
    """Return the loader registered for the suffix of *path*.

    >>> type(loader_for("rules.yml")).__name__
    'YAMLFileLoader'
    >>> loader_for("rules.ini")
    Traceback (most recent call last):
    ...
    lib_call_logger.domain.errors.InvalidFormat: Unsupported rule file format: .ini
    """

    suffix = Path(path).suffix.lower()
    try:
        return _LOADERS[suffix]
    except KeyError as exc:
        raise InvalidFormat(f"Unsupported rule file format: {suffix or path}") from exc
