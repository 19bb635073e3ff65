from __future__ import annotations

from decimal import Decimal

import pytest

from app.core.type_utils import (
    UnsupportedValueKindError,
    ValueKind,
    classify_value,
    destringify_value,
    is_primitive_type,
    is_string_type,
    is_valid_json,
    is_valid_yaml,
    stringify_value,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (42, "42"),
        (-3, "-3"),
        (1.5, "1.5"),
        (Decimal("12"), "12"),
        (True, "true"),
        (False, "false"),
        ("hello", '"hello"'),
        ("", '""'),
    ],
)
def test_stringify_scalars(value, expected) -> None:
    assert stringify_value(value) == expected


@pytest.mark.parametrize("value", [{"a": 1}, [1, 2], None, object()])
def test_stringify_rejects_complex_values(value) -> None:
    with pytest.raises(UnsupportedValueKindError) as exc_info:
        stringify_value(value)
    assert "complex values are not allowed" in str(exc_info.value)


def test_stringify_does_not_escape_text() -> None:
    assert stringify_value('say "hi"') == '"say "hi""'


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("42", 42),
        ("-7", -7),
        ("+7", 7),
        ("07", 7),
        ("1.25", 1.25),
        ("1e3", 1000.0),
        ("true", True),
        ("F", False),
        ('"hello"', "hello"),
        ("plain", "plain"),
        (" 7", " 7"),
        ("1_000", "1_000"),
        ('""quoted""', '"quoted"'),
        ('"unbalanced', "unbalanced"),
        ('unbalanced"', "unbalanced"),
        ('"', ""),
    ],
)
def test_destringify_order(text, expected) -> None:
    value = destringify_value(text)
    assert value == expected
    assert type(value) is type(expected)


def test_destringify_prefers_integer_over_boolean() -> None:
    assert destringify_value("1") == 1
    assert destringify_value("1") is not True


@pytest.mark.parametrize("value", [True, False, 0, 12, -99])
def test_round_trip_for_booleans_and_integers(value) -> None:
    assert destringify_value(stringify_value(value)) == value


def test_round_trip_loses_leading_zeros_and_whitespace() -> None:
    assert stringify_value(destringify_value("007")) == "7"
    assert stringify_value(destringify_value(" 7")) == '" 7"'


def test_json_mapping_check() -> None:
    assert is_valid_json("{}") is True
    assert is_valid_json('{"a": [1, 2]}') is True
    assert is_valid_json("[]") is False
    assert is_valid_json("3") is False
    assert is_valid_json("{broken") is False


def test_yaml_mapping_check() -> None:
    assert is_valid_yaml("a: 1") is True
    assert is_valid_yaml("a:\n  b: [1, 2]\n") is True
    assert is_valid_yaml("- 1\n- 2") is False
    assert is_valid_yaml("just a scalar") is False
    assert is_valid_yaml("") is False
    assert is_valid_yaml("a: [1, 2") is False


def test_yaml_rejects_duplicate_keys() -> None:
    assert is_valid_yaml("a: 1\na: 2\n") is False


def test_value_classification() -> None:
    assert classify_value(True) is ValueKind.BOOLEAN
    assert classify_value(3) is ValueKind.INTEGER
    assert classify_value(3.0) is ValueKind.FLOAT
    assert classify_value("x") is ValueKind.TEXT
    assert classify_value(b"x") is ValueKind.UNSUPPORTED

    assert is_primitive_type(1) and is_primitive_type(2.5) and is_primitive_type(False)
    assert not is_primitive_type("1")
    assert not is_primitive_type(None)
    assert is_string_type("1")
    assert not is_string_type(1)
