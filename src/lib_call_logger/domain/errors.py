"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the configuration adapters, the binding
layer, the registry, and consuming applications.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`InvalidFormat` – a document or raw match expression cannot be parsed.
* :class:`ValidationError` – parsed values have the wrong type or range.
* :class:`NotFound` – an expected configuration resource is missing.

System Role
-----------
The registry treats every :class:`ConfigError` raised during a reload as
recoverable: the active rule snapshot stays in place and the failure is logged.
Failures of wrapped calls never pass through this hierarchy.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_call_logger``."""


class InvalidFormat(ConfigError):
    """Raised when input cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`) and the
    raw match expression parser.
    """


class ValidationError(ConfigError):
    """Signifies that a syntactically valid configuration failed semantic checks.

    Raised by :func:`lib_call_logger.application.binding.bind_settings` for
    wrongly typed fields or out-of-range values.
    """


class NotFound(ConfigError):
    """Represents a missing configuration resource (file, optional parser)."""
