from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_call_logger.application.merge import index_lists, merge_layers

SCALAR = st.one_of(st.booleans(), st.integers(), st.text(min_size=1, max_size=5))
VALUE = st.recursive(
    SCALAR,
    lambda children: st.dictionaries(st.text(min_size=1, max_size=5), children, max_size=3),
    max_leaves=10,
)
MAPPING = st.dictionaries(st.text(min_size=1, max_size=5), VALUE, max_size=4)


def test_env_overrides_single_rule_field() -> None:
    layers = [
        ("file", {"method_logger": {"rules": [{"pattern": "svc.A", "min_duration_ms": 1}, {"pattern": "svc.B"}]}}, "rules.toml"),
        ("env", {"method_logger": {"rules": {"1": {"mask_sensitive": True}}}}, None),
    ]
    merged, meta = merge_layers(layers)
    assert merged["method_logger"]["rules"] == {
        "0": {"pattern": "svc.A", "min_duration_ms": 1},
        "1": {"pattern": "svc.B", "mask_sensitive": True},
    }
    assert meta["method_logger.rules.0.pattern"] == {"layer": "file", "path": "rules.toml", "key": "method_logger.rules.0.pattern"}
    assert meta["method_logger.rules.1.mask_sensitive"]["layer"] == "env"


def test_scalar_replaced_by_mapping_clears_provenance() -> None:
    merged, meta = merge_layers([("file", {"a": 1}, None), ("env", {"a": {"b": 2}}, None)])
    assert merged == {"a": {"b": 2}}
    assert "a" not in meta
    assert meta["a.b"]["layer"] == "env"


def test_merge_does_not_mutate_inputs() -> None:
    payload = {"method_logger": {"rules": [{"pattern": "a"}]}}
    merge_layers([("file", payload, None), ("env", {"method_logger": {"rules": {"0": {"pattern": "b"}}}}, None)])
    assert payload == {"method_logger": {"rules": [{"pattern": "a"}]}}


def test_index_lists_handles_nested_sequences() -> None:
    assert index_lists({"a": ({"b": [1, 2]},)}) == {"a": {"0": {"b": {"0": 1, "1": 2}}}}


@given(MAPPING, MAPPING)
def test_last_layer_wins_for_scalars(lhs, rhs) -> None:
    merged, _ = merge_layers([("lhs", lhs, None), ("rhs", rhs, None)])
    for key, value in rhs.items():
        if not isinstance(value, dict):
            assert merged[key] == value


@given(MAPPING)
def test_merge_is_idempotent(payload) -> None:
    once, _ = merge_layers([("a", payload, None)])
    twice, _ = merge_layers([("a", payload, None), ("b", payload, None)])
    assert once == twice
