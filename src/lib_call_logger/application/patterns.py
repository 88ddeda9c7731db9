"""Pattern compiler: human-friendly match patterns to matchers.

Purpose
-------
Turn the pattern strings operators write into :class:`Matcher` instances. The
classification is a pure, order-sensitive heuristic (raw → package → method →
class) that is total over non-blank input.

Contents
--------
* :func:`classify` – decide the :class:`PatternType` of a pattern.
* :func:`compile_pattern` – build the matcher for a pattern.

Pattern shapes
--------------
``svc.orders.*``
    Package pattern: every callable on every type below ``svc.orders``.
``svc.orders.OrderService``
    Class pattern: every method of ``svc.orders.OrderService``.
``svc.orders.OrderService.save``
    Method pattern: only ``save`` on ``svc.orders.OrderService``. Requires at
    least two dots and a lowercase first letter in the last segment; a last
    segment such as ``Save`` is read as part of a type name.
``execution(...)`` / ``within(...)`` / ``@...``
    Raw expression, see :mod:`lib_call_logger.application.expressions`.
"""

from __future__ import annotations

from typing import Final

from ..domain.matching import Matcher, PatternType
from .expressions import is_raw_expression, parse_expression

PACKAGE_SUFFIX: Final[str] = ".*"
SEPARATOR: Final[str] = "."


def classify(pattern: str) -> PatternType:
    """Return the shape of *pattern*.

    Examples
    --------
    >>> [classify(p).value for p in ("within(svc..*)", "svc.*", "svc.Order.save", "svc.Order.Save", "svc.save")]
    ['raw', 'package', 'method', 'class', 'class']
    """

    if is_raw_expression(pattern):
        return PatternType.RAW
    if pattern.endswith(PACKAGE_SUFFIX):
        return PatternType.PACKAGE
    if _is_method_pattern(pattern):
        return PatternType.METHOD
    return PatternType.CLASS


def compile_pattern(pattern: str) -> Matcher:
    """Compile *pattern* into a :class:`Matcher`.

    Raises
    ------
    ValueError
        When *pattern* is blank; callers filter blank patterns beforehand.
    InvalidFormat
        When a raw expression cannot be parsed.

    Examples
    --------
    >>> compile_pattern("svc.orders.*").expression
    'execution(* svc.orders..*(..))'
    >>> compile_pattern("svc.Order.save").expression
    'execution(* svc.Order.save(..))'
    >>> compile_pattern("svc.Order").expression
    'execution(* svc.Order.*(..))'
    """

    if not pattern or not pattern.strip():
        raise ValueError("match pattern must not be blank")

    kind = classify(pattern)
    if kind is PatternType.RAW:
        return parse_expression(pattern)
    if kind is PatternType.PACKAGE:
        package = pattern[: -len(PACKAGE_SUFFIX)]
        return Matcher(
            kind=kind,
            pattern=pattern,
            expression=f"execution(* {package}..*(..))",
            type_name=package + SEPARATOR,
        )
    if kind is PatternType.METHOD:
        type_name, _, method_name = pattern.rpartition(SEPARATOR)
        return Matcher(
            kind=kind,
            pattern=pattern,
            expression=f"execution(* {pattern}(..))",
            type_name=type_name,
            method_name=method_name,
        )
    return Matcher(
        kind=kind,
        pattern=pattern,
        expression=f"execution(* {pattern}.*(..))",
        type_name=pattern,
    )


def _is_method_pattern(pattern: str) -> bool:
    last = pattern.rfind(SEPARATOR)
    if last <= 0 or last >= len(pattern) - 1:
        return False
    tail = pattern[last + 1 :]
    return bool(tail) and tail[0].islower() and pattern.count(SEPARATOR) >= 2


def compile_scope(base_package: str) -> Matcher | None:
    """Return the matcher deciding which calls are delivered at all.

    A blank *base_package* puts every call in scope and yields ``None``.

    >>> compile_scope("svc").expression
    'execution(* svc..*(..))'
    >>> compile_scope("  ") is None
    True
    """

    package = base_package.strip()
    if not package:
        return None
    return compile_pattern(package + PACKAGE_SUFFIX)
