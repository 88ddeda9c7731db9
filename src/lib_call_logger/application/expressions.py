"""Parser for raw match expressions.

Purpose
-------
Evaluate the pointcut-style expressions operators may write verbatim in a rule
pattern. Only a small grammar is understood; anything else is rejected with
:class:`~lib_call_logger.domain.errors.InvalidFormat` so a reload fails instead
of silently matching nothing.

Grammar
-------
``execution(<modifiers and return type> <name-pattern>(<params>))``
    ``<name-pattern>`` is matched against ``type_name.method_name``.
``within(<type-pattern>)``
    ``<type-pattern>`` is matched against ``type_name``.
``@annotation(<marker>)`` / ``@within(<marker>)``
    true when the callable (or its declaring type) carries ``<marker>``.

In name patterns ``*`` matches one segment or part of it and ``..`` matches
any number of intermediate segments. Parameter lists are accepted but not
evaluated.
"""

from __future__ import annotations

import re
from typing import Final

from ..domain.errors import InvalidFormat
from ..domain.matching import ExpressionTarget, Matcher, PatternType

RAW_MARKERS: Final[tuple[str, ...]] = ("execution", "within", "@")
"""Prefixes that mark a pattern as a raw expression."""

_EXECUTION = re.compile(r"execution\s*\((?P<body>.*)\)", re.DOTALL)
_WITHIN = re.compile(r"within\s*\(\s*(?P<pattern>[^()\s]+)\s*\)")
_MARKER = re.compile(r"@(?P<kind>annotation|within)\s*\(\s*(?P<marker>[\w.]+)\s*\)")
_NAME_TOKENS = re.compile(r"(\.\.|\.|\*)")
_WORD = re.compile(r"\w+")


def is_raw_expression(pattern: str) -> bool:
    """Return ``True`` when *pattern* starts with a raw expression marker.

    >>> is_raw_expression("execution(* svc..*(..))"), is_raw_expression("svc.Order")
    (True, False)
    """

    return pattern.startswith(RAW_MARKERS)


def parse_expression(expression: str) -> Matcher:
    """Compile a raw *expression* into a :class:`Matcher`.

    Examples
    --------
    >>> from lib_call_logger.domain.matching import CallIdentity
    >>> matcher = parse_expression("execution(* svc..*(..))")
    >>> matcher.matches(CallIdentity("svc.billing.Invoice", "total"))
    True
    >>> parse_expression("target(svc.Order)")
    Traceback (most recent call last):
    ...
    lib_call_logger.domain.errors.InvalidFormat: Unsupported match expression: 'target(svc.Order)'
    """

    text = expression.strip()
    execution = _EXECUTION.fullmatch(text)
    if execution:
        name_pattern = _execution_name(execution.group("body"), expression)
        return _raw(expression, ExpressionTarget.QUALIFIED_NAME, regex=name_pattern_to_regex(name_pattern, expression))
    within = _WITHIN.fullmatch(text)
    if within:
        return _raw(expression, ExpressionTarget.TYPE_NAME, regex=name_pattern_to_regex(within.group("pattern"), expression))
    marker = _MARKER.fullmatch(text)
    if marker:
        target = ExpressionTarget.MARKER if marker.group("kind") == "annotation" else ExpressionTarget.TYPE_MARKER
        return _raw(expression, target, marker=marker.group("marker"))
    raise InvalidFormat(f"Unsupported match expression: {expression!r}")


def name_pattern_to_regex(pattern: str, expression: str | None = None) -> re.Pattern[str]:
    """Translate a dotted name pattern with ``*`` and ``..`` wildcards into a regex.

    >>> name_pattern_to_regex("svc..*Service").pattern
    'svc\\\\.(?:[^.]+\\\\.)*[^.]*Service'
    """

    parts: list[str] = []
    for token in _NAME_TOKENS.split(pattern):
        if not token:
            continue
        if token == "..":
            parts.append(r"\.(?:[^.]+\.)*")
        elif token == ".":
            parts.append(r"\.")
        elif token == "*":
            parts.append(r"[^.]*")
        elif _WORD.fullmatch(token):
            parts.append(re.escape(token))
        else:
            raise InvalidFormat(f"Invalid name pattern {pattern!r} in {expression or pattern!r}")
    if not parts:
        raise InvalidFormat(f"Empty name pattern in {expression or pattern!r}")
    return re.compile("".join(parts))


def _execution_name(body: str, expression: str) -> str:
    head, separator, params = body.partition("(")
    if not separator or not params.rstrip().endswith(")"):
        raise InvalidFormat(f"Missing parameter list in {expression!r}")
    tokens = head.split()
    if len(tokens) < 2:
        raise InvalidFormat(f"Expected '<return type> <name pattern>' in {expression!r}")
    return tokens[-1]


def _raw(
    expression: str,
    target: ExpressionTarget,
    *,
    regex: re.Pattern[str] | None = None,
    marker: str | None = None,
) -> Matcher:
    return Matcher(
        kind=PatternType.RAW,
        pattern=expression,
        expression=expression,
        target=target,
        regex=regex,
        marker=marker,
    )
