"""Call identities and compiled matchers.

Purpose
-------
Describe *what* is being matched (a :class:`CallIdentity`) and the compiled,
evaluable form of a match pattern (a :class:`Matcher`). Both are immutable value
objects without I/O so they can be shared freely between threads.

Contents
--------
* :class:`CallIdentity` – declaring type, method name, and optional markers.
* :class:`PatternType` – the four shapes a match pattern can take.
* :class:`ExpressionTarget` – what a raw expression is evaluated against.
* :class:`Matcher` – tagged variant produced once by the pattern compiler.

System Role
-----------
:func:`lib_call_logger.application.patterns.compile_pattern` creates matchers;
the registry evaluates them on the hot path via :meth:`Matcher.matches`, which
switches on the tag instead of dispatching through a class hierarchy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class CallIdentity:
    """Identity of an intercepted call.

    Attributes
    ----------
    type_name:
        Fully qualified declaring type (``module.QualName``). Module-level
        functions use the module name.
    method_name:
        Name of the invoked callable.
    markers:
        Marker names attached to the callable (``@annotation(...)``).
    type_markers:
        Marker names attached to the declaring type (``@within(...)``).

    Examples
    --------
    >>> call = CallIdentity("svc.orders.OrderService", "save")
    >>> call.qualified_name
    'svc.orders.OrderService.save'
    >>> call.display_name
    'OrderService.save'
    """

    type_name: str
    method_name: str
    markers: frozenset[str] = field(default_factory=frozenset)
    type_markers: frozenset[str] = field(default_factory=frozenset)

    @property
    def qualified_name(self) -> str:
        return f"{self.type_name}.{self.method_name}"

    @property
    def display_name(self) -> str:
        """Short ``Type.method`` form used in call records."""

        simple = self.type_name.rsplit(".", 1)[-1]
        return f"{simple}.{self.method_name}"

    @classmethod
    def of(
        cls,
        func: object,
        owner: type | None = None,
        *,
        markers: frozenset[str] = frozenset(),
        type_markers: frozenset[str] = frozenset(),
    ) -> CallIdentity:
        """Derive an identity from a Python callable.

        ``owner`` is the runtime class of the target instance; when omitted the
        identity is built from ``func.__module__`` and ``func.__qualname__``.

        >>> class Order:
        ...     def save(self): ...
        >>> CallIdentity.of(Order.save, Order).method_name
        'save'
        """

        name = getattr(func, "__name__", type(func).__name__)
        if owner is not None:
            return cls(f"{owner.__module__}.{owner.__qualname__}", name, markers, type_markers)
        module = getattr(func, "__module__", None) or "__main__"
        qualname = getattr(func, "__qualname__", name)
        container = qualname.rpartition(".")[0].replace(".<locals>", "")
        type_name = f"{module}.{container}" if container else module
        return cls(type_name, name, markers, type_markers)


class PatternType(Enum):
    """Shapes a match pattern can take, in classification order."""

    RAW = "raw"
    PACKAGE = "package"
    METHOD = "method"
    CLASS = "class"


class ExpressionTarget(Enum):
    """Part of a :class:`CallIdentity` a raw expression is evaluated against."""

    QUALIFIED_NAME = "execution"
    TYPE_NAME = "within"
    MARKER = "@annotation"
    TYPE_MARKER = "@within"


@dataclass(frozen=True, slots=True)
class Matcher:
    """Compiled match pattern.

    The fields used depend on :attr:`kind`:

    * ``PACKAGE`` – ``type_name`` holds the package prefix including the
      trailing dot.
    * ``CLASS`` – ``type_name`` holds the exact declaring type.
    * ``METHOD`` – ``type_name`` and ``method_name`` hold the exact pair.
    * ``RAW`` – ``target`` plus either ``regex`` or ``marker``.

    ``expression`` always carries the normalised expression text so operators
    can see what a friendly pattern turned into.
    """

    kind: PatternType
    pattern: str
    expression: str
    type_name: str | None = None
    method_name: str | None = None
    target: ExpressionTarget | None = None
    regex: re.Pattern[str] | None = None
    marker: str | None = None

    def matches(self, call: CallIdentity) -> bool:
        """Return ``True`` when *call* is accepted by this matcher."""

        kind = self.kind
        if kind is PatternType.CLASS:
            return call.type_name == self.type_name
        if kind is PatternType.PACKAGE:
            return call.type_name.startswith(self.type_name)  # type: ignore[arg-type]
        if kind is PatternType.METHOD:
            return call.method_name == self.method_name and call.type_name == self.type_name
        return self._matches_expression(call)

    def _matches_expression(self, call: CallIdentity) -> bool:
        target = self.target
        if target is ExpressionTarget.MARKER:
            return self.marker in call.markers
        if target is ExpressionTarget.TYPE_MARKER:
            return self.marker in call.type_markers
        subject = call.qualified_name if target is ExpressionTarget.QUALIFIED_NAME else call.type_name
        return self.regex is not None and self.regex.fullmatch(subject) is not None
