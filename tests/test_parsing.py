"""Test cases for EnvConf parsing (解析環境變數).

This module tests declaring values on a registry and resolving them from the environment.
"""

from datetime import timedelta

import pytest

from envconf import EnvParseError, Registry, UnparsedValueError


@pytest.mark.parametrize(
    "declare, raw, expected",
    [
        ("string", "is awesome", "is awesome"),
        ("integer", "1", 1),
        ("float", "1.1", 1.1),
        ("boolean", "true", True),
        ("duration", "10s", timedelta(seconds=10)),
    ],
)
def test_set_variable_is_converted(registry: Registry, env, declare, raw, expected):
    """Test well-formed values are converted to their declared kind.

    Given 環境變數設為合法的值
    When 解析
    Then 取得轉換後的值
    """
    env(nic=raw)
    value = getattr(registry, declare)("nic", True, help="something")

    registry.parse()

    assert value.get() == expected
    assert value.value == expected
    assert value.is_set


@pytest.mark.parametrize(
    "declare, default",
    [
        ("string", "is unset"),
        ("integer", 12),
        ("float", 2.5),
        ("boolean", True),
        ("duration", timedelta(seconds=1)),
    ],
)
def test_unset_optional_variable_uses_default(registry: Registry, declare, default):
    """Test unset optional values fall back to their default.

    Given 環境變數未設定且非必填
    When 解析
    Then 取得預設值且沒有錯誤
    """
    value = getattr(registry, declare)("nic", False, default, "something")

    registry.parse()

    assert value.get() == default


@pytest.mark.parametrize("declare, kind", [
    ("string", "string"),
    ("integer", "integer"),
    ("float", "float"),
    ("boolean", "boolean"),
    ("duration", "duration"),
])
def test_unset_required_variable_fails(registry: Registry, declare, kind):
    """Test unset required values are reported with an empty raw value.

    Given 環境變數未設定且為必填
    When 解析
    Then 回報錯誤，值保持未設定
    """
    value = getattr(registry, declare)("nic", True, help="something")

    with pytest.raises(EnvParseError) as exc_info:
        registry.parse()

    assert str(exc_info.value) == f"expected: nic type: {kind} got: "
    assert not value.is_set


def test_empty_required_string_fails(registry: Registry, env):
    """Test an empty string does not satisfy a required string."""
    env(nic="")
    registry.string("nic", True, "is awesome", "something")

    with pytest.raises(EnvParseError) as exc_info:
        registry.parse()

    assert str(exc_info.value) == "expected: nic type: string got: "


def test_empty_optional_variable_uses_default(registry: Registry, env):
    """Test a variable set to an empty string counts as unset."""
    env(nic="")
    value = registry.integer("nic", False, 7, "something")

    registry.parse()

    assert value.get() == 7


@pytest.mark.parametrize(
    "declare, raw, kind",
    [
        ("integer", "a", "integer"),
        ("float", "a", "float"),
        ("boolean", "a", "boolean"),
        ("duration", "test", "duration"),
    ],
)
def test_malformed_variable_fails(registry: Registry, env, declare, raw, kind):
    """Test malformed literals are reported with the raw text.

    Given 環境變數設為不合法的值
    When 解析
    Then 錯誤訊息包含變數名稱、類型與原始值
    """
    env(nic=raw)
    value = getattr(registry, declare)("nic", help="something")

    with pytest.raises(EnvParseError) as exc_info:
        registry.parse()

    assert str(exc_info.value) == f"expected: nic type: {kind} got: {raw}"
    assert exc_info.value.failures[0].raw_value == raw
    assert not value.is_set


def test_all_failures_are_reported_at_once(registry: Registry, env):
    """Test every failing item is reported while the others are still populated.

    Given 多個環境變數，其中部分不合法
    When 解析
    Then 每個錯誤各佔一行，依宣告順序，其餘的值仍被設定
    """
    env(BIND_ADDRESS="localhost", BIND_PORT="http", TIMEOUT="soon", RATIO="0.5")
    address = registry.string("BIND_ADDRESS", True)
    port = registry.integer("BIND_PORT", True)
    timeout = registry.duration("TIMEOUT")
    ratio = registry.float("RATIO")
    api_key = registry.string("API_KEY_FOR_TEST", True)

    with pytest.raises(EnvParseError) as exc_info:
        registry.parse()

    message = str(exc_info.value)
    assert message.splitlines() == [
        "expected: BIND_PORT type: integer got: http",
        "expected: TIMEOUT type: duration got: soon",
        "expected: API_KEY_FOR_TEST type: string got: ",
    ]
    assert [failure.name for failure in exc_info.value.failures] == ["BIND_PORT", "TIMEOUT", "API_KEY_FOR_TEST"]
    assert address.get() == "localhost"
    assert ratio.get() == 0.5
    assert not port.is_set
    assert not api_key.is_set


def test_value_is_unavailable_before_parse(registry: Registry):
    """Test reading a handle before parsing raises instead of returning a zero value."""
    value = registry.integer("nic", False, 0, "something")

    assert not value.is_set
    with pytest.raises(UnparsedValueError):
        value.get()
    with pytest.raises(LookupError):
        value.value
    assert repr(value) == "Value('nic', <unset>)"


def test_parse_is_repeatable(registry: Registry, env):
    """Test parsing twice with an unchanged environment gives the same values."""
    env(nic="42")
    value = registry.integer("nic", True)

    registry.parse()
    first = value.get()
    registry.parse()

    assert value.get() == first == 42


def test_parse_rereads_environment(registry: Registry, env):
    """Test a second parse picks up changed variables."""
    env(nic="1")
    value = registry.integer("nic", True)
    registry.parse()

    env(nic="2")
    registry.parse()

    assert value.get() == 2


def test_failed_conversion_keeps_previous_value(registry: Registry, env):
    """Test a failing re-parse leaves the previously parsed value untouched."""
    env(nic="1")
    value = registry.integer("nic", True)
    registry.parse()

    env(nic="one")
    with pytest.raises(EnvParseError):
        registry.parse()

    assert value.get() == 1


def test_parse_from_mapping(registry: Registry):
    """Test values can be read from an explicit mapping instead of os.environ."""
    port = registry.integer("BIND_PORT", True)
    debug = registry.boolean("DEBUG")

    registry.parse({"BIND_PORT": "9090"})

    assert port.get() == 9090
    assert debug.get() is False


def test_duplicate_names_are_processed_independently(registry: Registry, caplog):
    """Test duplicate declarations each get their own handle and are each validated.

    Given 同一個名稱宣告兩次，類型不同
    When 解析
    Then 兩者各自轉換，失敗的只回報自己那一筆
    """
    as_string = registry.string("nic", True)
    with caplog.at_level("WARNING", logger="envconf.registry"):
        as_integer = registry.integer("nic", True)

    assert "declared more than once" in caplog.text

    with pytest.raises(EnvParseError) as exc_info:
        registry.parse({"nic": "abc"})

    assert str(exc_info.value) == "expected: nic type: integer got: abc"
    assert as_string.get() == "abc"
    assert not as_integer.is_set
    assert len(registry) == 2


def test_values_returns_parsed_values(registry: Registry):
    registry.string("HOST", default="localhost")
    registry.integer("PORT", True)

    registry.parse({"PORT": "8080"})

    assert registry.values() == {"HOST": "localhost", "PORT": 8080}


def test_declare_by_kind_name_and_type(registry: Registry):
    """Test the generic declaration accepts kind names and Python types."""
    by_name = registry.declare("integer", "A")
    by_type = registry.declare(timedelta, "B", default=timedelta(minutes=1))

    registry.parse({"A": "0x10"})

    assert by_name.get() == 16
    assert by_type.get() == timedelta(minutes=1)
    assert [item.kind.name for item in registry] == ["integer", "duration"]


def test_declare_rejects_invalid_arguments(registry: Registry):
    with pytest.raises(ValueError, match="Unknown kind"):
        registry.declare("decimal", "nic")
    with pytest.raises(TypeError):
        registry.declare(list, "nic")
    with pytest.raises(ValueError):
        registry.string("")
    with pytest.raises(TypeError):
        registry.integer("nic", default="12")
    with pytest.raises(TypeError):
        registry.integer("nic", default=True)
    with pytest.raises(TypeError):
        registry.duration("nic", default=10)

    assert len(registry) == 0


def test_integer_default_is_widened_for_float(registry: Registry):
    value = registry.float("nic", default=1)

    registry.parse({})

    assert value.get() == 1.0
    assert isinstance(value.get(), float)
