"""
Generic value model

Value is the tagged unit of data shared by every codec: null, boolean, signed
64-bit integer, 64-bit float, string, sequence of values and string-keyed
mapping of values. JSON decoding may additionally produce NUMBER_LITERAL nodes
holding the raw numeric text; normalize_numbers() resolves them into INT or
FLOAT before the value leaves the decoder.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from msgpack_cli.errors import FormatError, NumberConversionError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# JSON number grammar, relaxed to also accept ".0" and "-4."
_INT_LITERAL = re.compile(r"-?\d+\Z")
_FLOAT_LITERAL = re.compile(r"-?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\Z")


class ValueKind(Enum):
    """Kinds of nodes in a value tree"""
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    NUMBER_LITERAL = "number_literal"


@dataclass
class Value:
    """A node of a value tree.

    `data` holds the Python payload matching `kind`: None, bool, int, float,
    str, List[Value], Dict[str, Value], or the literal text for NUMBER_LITERAL.
    Use the constructor classmethods rather than building instances directly.
    """
    kind: ValueKind
    data: Any = None

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueKind.NULL)

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(ValueKind.BOOL, bool(flag))

    @classmethod
    def integer(cls, number: int) -> "Value":
        if not INT64_MIN <= number <= INT64_MAX:
            raise OverflowError(f"integer {number} out of int64 range")
        return cls(ValueKind.INT, int(number))

    @classmethod
    def floating(cls, number: float) -> "Value":
        return cls(ValueKind.FLOAT, float(number))

    @classmethod
    def string(cls, text: str) -> "Value":
        return cls(ValueKind.STRING, text)

    @classmethod
    def sequence(cls, items: List["Value"]) -> "Value":
        return cls(ValueKind.SEQUENCE, list(items))

    @classmethod
    def mapping(cls, items: Dict[str, "Value"]) -> "Value":
        for key in items:
            if not isinstance(key, str):
                raise TypeError(f"mapping keys must be strings, got {type(key).__name__}")
        return cls(ValueKind.MAPPING, dict(items))

    @classmethod
    def number_literal(cls, text: str) -> "Value":
        return cls(ValueKind.NUMBER_LITERAL, text)

    def is_container(self) -> bool:
        return self.kind in (ValueKind.SEQUENCE, ValueKind.MAPPING)


def normalize_numbers(value: Value) -> Value:
    """Resolve every NUMBER_LITERAL in a value tree into INT or FLOAT.

    Containers are rewritten in place and returned; a literal leaf is replaced
    by the returned value. Literal text containing ".", "e" or "E" becomes a
    float, anything else a signed 64-bit integer.

    Raises:
        NumberConversionError: A literal is malformed or overflows. The tree
            may already be partially rewritten and must be discarded.
    """
    kind = value.kind
    if kind is ValueKind.NUMBER_LITERAL:
        return _convert_literal(value.data)
    if kind is ValueKind.SEQUENCE:
        items = value.data
        for idx, item in enumerate(items):
            items[idx] = normalize_numbers(item)
        return value
    if kind is ValueKind.MAPPING:
        items = value.data
        for key, item in items.items():
            items[key] = normalize_numbers(item)
        return value
    if kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.INT,
                ValueKind.FLOAT, ValueKind.STRING):
        return value
    raise TypeError(f"unknown value kind: {kind!r}")


def _convert_literal(text: str) -> Value:
    if any(char in text for char in ".eE"):
        if not _FLOAT_LITERAL.match(text):
            raise NumberConversionError(f"invalid float literal {text!r}")
        number = float(text)
        if math.isinf(number):
            raise NumberConversionError(f"float literal {text!r} out of range")
        return Value.floating(number)

    if not _INT_LITERAL.match(text):
        raise NumberConversionError(f"invalid integer literal {text!r}")
    number = int(text)
    if not INT64_MIN <= number <= INT64_MAX:
        raise NumberConversionError(f"integer literal {text!r} out of int64 range")
    return Value.integer(number)


def from_python(obj: Any, stage: str = "Decoding") -> Value:
    """Build a value tree from plain decoded Python objects.

    Values already present in `obj` are kept as they are. `bytes` decode as
    UTF-8 strings; dict keys must be (or decode to) strings.

    Raises:
        FormatError: `obj` holds something the value model cannot represent.
    """
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return Value.null()
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return Value.boolean(obj)
    if isinstance(obj, int):
        try:
            return Value.integer(obj)
        except OverflowError as e:
            raise FormatError(str(e), stage=stage) from e
    if isinstance(obj, float):
        return Value.floating(obj)
    if isinstance(obj, str):
        return Value.string(obj)
    if isinstance(obj, (bytes, bytearray)):
        return Value.string(_decode_text(obj, stage))
    if isinstance(obj, (list, tuple)):
        return Value.sequence([from_python(item, stage) for item in obj])
    if isinstance(obj, dict):
        items = {}
        for key, item in obj.items():
            if isinstance(key, (bytes, bytearray)):
                key = _decode_text(key, stage)
            elif not isinstance(key, str):
                raise FormatError(f"unsupported map key type {type(key).__name__}", stage=stage)
            items[key] = from_python(item, stage)
        return Value.mapping(items)
    raise FormatError(f"unsupported data type {type(obj).__name__}", stage=stage)


def to_python(value: Value) -> Any:
    """Convert a normalized value tree into plain Python objects."""
    kind = value.kind
    if kind is ValueKind.SEQUENCE:
        return [to_python(item) for item in value.data]
    if kind is ValueKind.MAPPING:
        return {key: to_python(item) for key, item in value.data.items()}
    if kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.INT,
                ValueKind.FLOAT, ValueKind.STRING):
        return value.data
    if kind is ValueKind.NUMBER_LITERAL:
        raise TypeError(f"numeric literal {value.data!r} was not normalized")
    raise TypeError(f"unknown value kind: {kind!r}")


def _decode_text(raw: bytes, stage: str) -> str:
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"binary data is not valid UTF-8: {e}", stage=stage) from e
