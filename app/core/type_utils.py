"""Conversions between typed variable values and their string form.

Values are classified into a closed set of kinds before any conversion so
that every branch is handled explicitly; anything outside the scalar kinds is
``UNSUPPORTED`` and refused by :func:`stringify_value`.
"""

from __future__ import annotations

import json
import math
import numbers
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Union

import yaml

ScalarValue = Union[int, float, bool, str]

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
_TRUE_TOKENS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_TOKENS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class ValueKind(str, Enum):
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TEXT = "text"
    UNSUPPORTED = "unsupported"


class UnsupportedValueKindError(ValueError):
    """Raised when a complex value is handed to :func:`stringify_value`."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"complex values are not allowed. {value!r} needs to be stringified")
        self.value = value


def classify_value(value: Any) -> ValueKind:
    # bool is an int subclass, so it must be matched first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, numbers.Integral):
        return ValueKind.INTEGER
    if isinstance(value, Decimal):
        return ValueKind.INTEGER if value == value.to_integral_value() else ValueKind.FLOAT
    if isinstance(value, numbers.Real):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.TEXT
    return ValueKind.UNSUPPORTED


def stringify_value(value: Any) -> str:
    """Render a scalar as the text stored for a variable.

    Text is wrapped in double quotes as-is; callers must make sure it holds no
    unescaped quote characters.
    """

    kind = classify_value(value)
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.INTEGER:
        return str(value) if isinstance(value, Decimal) else json.dumps(int(value))
    if kind is ValueKind.FLOAT:
        if isinstance(value, Decimal):
            return str(value)
        if not math.isfinite(value):
            raise UnsupportedValueKindError(value)
        return json.dumps(float(value))
    if kind is ValueKind.TEXT:
        return f'"{value}"'
    raise UnsupportedValueKindError(value)


def destringify_value(data: str) -> ScalarValue:
    """Best-effort inverse of :func:`stringify_value`; never raises.

    Tries integer, then float, then boolean, and finally returns the text
    with at most one leading and one trailing double quote removed. ``"07"``
    comes back as ``7``: leading zeros are not preserved.
    """

    if _INT_PATTERN.fullmatch(data):
        return int(data)
    if _FLOAT_PATTERN.fullmatch(data):
        return float(data)
    if data in _TRUE_TOKENS:
        return True
    if data in _FALSE_TOKENS:
        return False
    if data.startswith('"'):
        data = data[1:]
    if data.endswith('"'):
        data = data[:-1]
    return data


class _StrictLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate mapping keys."""


def _construct_unique_mapping(loader: _StrictLoader, node: yaml.MappingNode, deep: bool = False) -> dict:
    loader.flatten_mapping(node)
    mapping: dict = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping",
                node.start_mark,
                f"found duplicate key {key!r}",
                key_node.start_mark,
            )
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


_StrictLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping)


def is_valid_yaml(text: str) -> bool:
    """True when ``text`` is strict YAML describing a mapping."""

    try:
        document = yaml.load(text, Loader=_StrictLoader)  # noqa: S506
        json_text = json.dumps(document, default=str)
    except (yaml.YAMLError, TypeError, ValueError):
        return False
    return is_valid_json(json_text)


def is_valid_json(text: str) -> bool:
    """True only when ``text`` decodes to a JSON object."""

    try:
        document = json.loads(text)
    except (TypeError, ValueError):
        return False
    return isinstance(document, dict)


def is_primitive_type(value: Any) -> bool:
    return classify_value(value) in (ValueKind.INTEGER, ValueKind.FLOAT, ValueKind.BOOLEAN)


def is_string_type(value: Any) -> bool:
    return classify_value(value) is ValueKind.TEXT
