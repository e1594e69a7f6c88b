"""
JSON codec

Streams concatenated top-level JSON documents in and out of the value model.
Numbers are decoded either as literal text resolved by normalize_numbers()
(int64 or float64 depending on the literal) or, with number conversion
disabled, uniformly as float64 like plain JSON.
"""

import codecs
import json
import logging
import math
from typing import Optional

from msgpack_cli.codec.base import DEFAULT_CHUNK_SIZE, Decoder, Encoder
from msgpack_cli.errors import FormatError, NumberConversionError
from msgpack_cli.value import Value, ValueKind, from_python, normalize_numbers, to_python

logger = logging.getLogger(__name__)

DECODE_STAGE = "JSON decoding"
ENCODE_STAGE = "JSON encoding"

_WHITESPACE = " \t\n\r"
# Characters that may continue a number cut short by a read boundary
_NUMBER_CONTINUATION = ".eE+-0123456789"


def _reject_constant(name: str):
    raise FormatError(f"invalid JSON value {name!r}", stage=DECODE_STAGE)


def _parse_float(text: str) -> float:
    number = float(text)
    if math.isinf(number):
        raise NumberConversionError(f"number {text!r} out of float64 range", stage=DECODE_STAGE)
    return number


def render_json(value: Value, indent: bool = False) -> str:
    """Render one value as JSON text, without a trailing newline

    Raises:
        FormatError: The value holds something JSON cannot express (NaN, Infinity)
    """
    try:
        obj = to_python(value)
        if indent:
            return json.dumps(obj, indent=2, ensure_ascii=False, allow_nan=False)
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise FormatError(str(e), stage=ENCODE_STAGE) from e
    except RecursionError as e:
        raise FormatError(f"value nested too deeply: {e}", stage=ENCODE_STAGE) from e


def decode_json_text(text: str, convert_numbers: bool = True) -> Value:
    """Decode a single JSON document held in a string

    Raises:
        FormatError: The text is not exactly one JSON document
        NumberConversionError: A numeric literal could not be converted
    """
    parser = _make_parser(convert_numbers)
    try:
        obj = parser.decode(text)
    except json.JSONDecodeError as e:
        raise FormatError(str(e), stage=DECODE_STAGE) from e
    except RecursionError as e:
        raise FormatError(f"document nested too deeply: {e}", stage=DECODE_STAGE) from e
    return _finish(obj, convert_numbers)


def _make_parser(convert_numbers: bool) -> json.JSONDecoder:
    if convert_numbers:
        return json.JSONDecoder(
            parse_int=Value.number_literal,
            parse_float=Value.number_literal,
            parse_constant=_reject_constant,
        )
    return json.JSONDecoder(
        parse_int=_parse_float,
        parse_float=_parse_float,
        parse_constant=_reject_constant,
    )


def _is_bare_number(obj) -> bool:
    if isinstance(obj, Value):
        return obj.kind is ValueKind.NUMBER_LITERAL
    return isinstance(obj, (int, float)) and not isinstance(obj, bool)


def _finish(obj, convert_numbers: bool) -> Value:
    try:
        value = from_python(obj, stage=DECODE_STAGE)
        if convert_numbers:
            value = normalize_numbers(value)
    except NumberConversionError as e:
        raise NumberConversionError(e.message, stage=DECODE_STAGE) from e
    except RecursionError as e:
        raise FormatError(f"document nested too deeply: {e}", stage=DECODE_STAGE) from e
    return value


class JSONDecoder(Decoder):
    """Incremental decoder for a stream of concatenated JSON documents

    Input is read in chunks and decoded as UTF-8; only the text of the value
    currently being parsed is buffered.
    """

    def __init__(self, stream, options, chunk_size=DEFAULT_CHUNK_SIZE):
        super().__init__(stream, options, chunk_size)
        self._parser = _make_parser(options.convert_numbers)
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._eof = False

    def decode(self) -> Optional[Value]:
        while True:
            self._buffer = self._buffer.lstrip(_WHITESPACE)
            if not self._buffer:
                if self._eof:
                    return None
                self._fill()
                continue

            try:
                obj, end = self._parser.raw_decode(self._buffer)
            except json.JSONDecodeError as e:
                if self._eof:
                    raise FormatError(str(e), stage=DECODE_STAGE) from e
                # Incomplete document, or garbage that more input won't fix
                self._fill(len(self._buffer))
                continue
            except RecursionError as e:
                raise FormatError(f"document nested too deeply: {e}", stage=DECODE_STAGE) from e

            if not self._eof and self._may_continue(obj, end):
                self._fill(len(self._buffer))
                continue

            self._buffer = self._buffer[end:]
            logger.debug(f"Decoded JSON value ({end} chars)")
            return _finish(obj, self.options.convert_numbers)

    def _may_continue(self, obj, end: int) -> bool:
        # A value ending the buffer, or a bare number followed by what could
        # be more of it ("1" + ".5", "2" + "e3"), may be cut by a read boundary
        if end == len(self._buffer):
            return True
        return _is_bare_number(obj) and self._buffer[end] in _NUMBER_CONTINUATION

    def _fill(self, hint: int = 0) -> None:
        chunk = self._read_chunk(hint)
        try:
            if chunk:
                self._buffer += self._text.decode(chunk)
            else:
                self._eof = True
                self._buffer += self._text.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise FormatError(f"input is not valid UTF-8: {e}", stage=DECODE_STAGE) from e


class JSONEncoder(Encoder):
    """Writes each value as one JSON document followed by a newline"""

    def encode(self, value: Value) -> None:
        text = render_json(value, self.options.indent)
        try:
            data = (text + "\n").encode("utf-8")
        except UnicodeEncodeError as e:
            raise FormatError(str(e), stage=ENCODE_STAGE) from e
        self._write(data)
