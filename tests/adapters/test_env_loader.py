from __future__ import annotations

import pytest

from lib_call_logger.adapters.env.default import DEFAULT_ENV_PREFIX, DefaultEnvLoader, assign_nested
from lib_call_logger.domain.errors import InvalidFormat


def test_env_loader_nests_and_coerces() -> None:
    environ = {
        "LIB_CALL_LOGGER_METHOD_LOGGER__ENABLED": "false",
        "LIB_CALL_LOGGER_METHOD_LOGGER__RULES__1__MAX_RESULT_SIZE": "-1",
        "LIB_CALL_LOGGER_CALL_LOGGER__BASE_PACKAGE": "svc",
        "OTHER_METHOD_LOGGER__ENABLED": "true",
    }
    data = DefaultEnvLoader(environ=environ).load(DEFAULT_ENV_PREFIX)
    assert data == {
        "method_logger": {"enabled": False, "rules": {"1": {"max_result_size": -1}}},
        "call_logger": {"base_package": "svc"},
    }


def test_env_loader_accepts_prefix_with_trailing_underscore() -> None:
    loader = DefaultEnvLoader(environ={"DEMO_METHOD_LOGGER__LOG_ARGUMENTS": "TRUE"})
    assert loader.load("DEMO_") == loader.load("DEMO") == {"method_logger": {"log_arguments": True}}


def test_env_loader_ignores_bare_prefix() -> None:
    assert DefaultEnvLoader(environ={"LIB_CALL_LOGGER_": "x"}).load() == {}


def test_env_loader_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIB_CALL_LOGGER_METHOD_LOGGER__MIN_DURATION_MS", "25")
    assert DefaultEnvLoader().load()["method_logger"] == {"min_duration_ms": 25}


def test_assign_nested_rejects_scalar_parent() -> None:
    data: dict[str, object] = {"method_logger": 1}
    with pytest.raises(InvalidFormat):
        assign_nested(data, "METHOD_LOGGER__ENABLED", True)


def test_assign_nested_rejects_scalar_over_section() -> None:
    data: dict[str, object] = {"method_logger": {"enabled": False}}
    with pytest.raises(InvalidFormat):
        assign_nested(data, "METHOD_LOGGER", "oops")
    assert data == {"method_logger": {"enabled": False}}


@pytest.mark.parametrize(
    "names",
    [
        ("LIB_CALL_LOGGER_METHOD_LOGGER", "LIB_CALL_LOGGER_METHOD_LOGGER__ENABLED"),
        ("LIB_CALL_LOGGER_METHOD_LOGGER__ENABLED", "LIB_CALL_LOGGER_METHOD_LOGGER"),
    ],
)
def test_env_loader_rejects_conflicting_variables_in_any_order(names: tuple[str, str]) -> None:
    environ = {name: "false" if "__" in name else "oops" for name in names}
    with pytest.raises(InvalidFormat):
        DefaultEnvLoader(environ=environ).load()
