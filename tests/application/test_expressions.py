"""Raw expression parsing and evaluation."""

from __future__ import annotations

import pytest

from lib_call_logger.application.expressions import is_raw_expression, name_pattern_to_regex, parse_expression
from lib_call_logger.domain.errors import InvalidFormat
from lib_call_logger.domain.matching import CallIdentity, ExpressionTarget, PatternType

ORDER_SAVE = CallIdentity("svc.orders.OrderService", "save")
ORDER_LOAD = CallIdentity("svc.orders.OrderService", "load")
NESTED = CallIdentity("svc.orders.internal.Ledger", "post")
OTHER = CallIdentity("billing.Invoice", "total")


@pytest.mark.parametrize("text", ["execution(* a.b(..))", "within(a..*)", "@annotation(x)", "@within(y)"])
def test_raw_markers_detected(text: str) -> None:
    assert is_raw_expression(text)


def test_execution_with_package_wildcard() -> None:
    matcher = parse_expression("execution(* svc..*(..))")
    assert matcher.kind is PatternType.RAW
    assert matcher.target is ExpressionTarget.QUALIFIED_NAME
    assert matcher.matches(ORDER_SAVE)
    assert matcher.matches(NESTED)
    assert not matcher.matches(OTHER)


def test_execution_exact_method_ignores_modifiers_and_params() -> None:
    matcher = parse_expression("execution(public String svc.orders.OrderService.save(String, int))")
    assert matcher.matches(ORDER_SAVE)
    assert not matcher.matches(ORDER_LOAD)


def test_execution_with_partial_wildcards() -> None:
    matcher = parse_expression("execution(* svc..*Service.sa*(..))")
    assert matcher.matches(ORDER_SAVE)
    assert not matcher.matches(ORDER_LOAD)
    assert not matcher.matches(NESTED)


def test_within_matches_type_names() -> None:
    matcher = parse_expression("within(svc.orders.*)")
    assert matcher.target is ExpressionTarget.TYPE_NAME
    assert matcher.matches(ORDER_SAVE)
    assert not matcher.matches(NESTED)
    assert parse_expression("within(svc..*)").matches(NESTED)


def test_annotation_markers() -> None:
    marked = CallIdentity("svc.Pay", "charge", markers=frozenset({"sensitive"}))
    type_marked = CallIdentity("svc.Pay", "charge", type_markers=frozenset({"sensitive"}))
    method_matcher = parse_expression("@annotation(sensitive)")
    type_matcher = parse_expression("@within( sensitive )")
    assert method_matcher.matches(marked) and not method_matcher.matches(type_marked)
    assert type_matcher.matches(type_marked) and not type_matcher.matches(marked)


@pytest.mark.parametrize(
    "text",
    [
        "execution(svc.Order.save(..))",
        "execution(* svc.Order.save)",
        "execution(* svc.Order+.save(..))",
        "within()",
        "within(svc.Order) && within(svc.Pay)",
        "@target(svc.Audited)",
        "executionfoo",
    ],
)
def test_unsupported_expressions_raise_invalid_format(text: str) -> None:
    with pytest.raises(InvalidFormat):
        parse_expression(text)


def test_name_pattern_rejects_illegal_characters() -> None:
    with pytest.raises(InvalidFormat):
        name_pattern_to_regex("svc.Order$")


def test_name_pattern_single_star_stays_in_one_segment() -> None:
    regex = name_pattern_to_regex("svc.*")
    assert regex.fullmatch("svc.Order")
    assert not regex.fullmatch("svc.orders.Order")
