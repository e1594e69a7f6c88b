"""
JSON codec tests

Covers streaming decode of concatenated documents, number disambiguation and
the output rendering.
"""

import io

import pytest

from msgpack_cli.codec.json_codec import (
    JSONDecoder,
    JSONEncoder,
    decode_json_text,
    render_json,
)
from msgpack_cli.config import ConversionOptions
from msgpack_cli.errors import FormatError, NumberConversionError, StreamIOError
from msgpack_cli.value import Value, ValueKind


def decode_all(data: bytes, options=None, chunk_size=None):
    options = options or ConversionOptions()
    if chunk_size:
        decoder = JSONDecoder(io.BytesIO(data), options, chunk_size=chunk_size)
    else:
        decoder = JSONDecoder(io.BytesIO(data), options)
    return list(decoder)


class FailingStream(io.RawIOBase):
    def readable(self):
        return True

    def writable(self):
        return True

    def read(self, size=-1):
        raise OSError("device not ready")

    def write(self, data):
        raise OSError("disk full")


class ShortWriteStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        return len(data) - 1


class TestJSONDecoder:
    """Test decoding streams of JSON documents"""

    def test_concatenated_documents(self):
        values = decode_all(b'{"a": 1} [1.5, "x"]\n null true')

        assert values == [
            Value.mapping({"a": Value.integer(1)}),
            Value.sequence([Value.floating(1.5), Value.string("x")]),
            Value.null(),
            Value.boolean(True),
        ]

    def test_empty_input(self):
        assert decode_all(b"") == []
        assert decode_all(b" \n\t ") == []

    def test_exhausted_decoder_keeps_returning_none(self):
        decoder = JSONDecoder(io.BytesIO(b"1"), ConversionOptions())
        assert decoder.decode() == Value.integer(1)
        assert decoder.decode() is None
        assert decoder.decode() is None

    def test_int_and_float_literals(self):
        """Literals with '.', 'e' or 'E' are floats, everything else int64"""
        (value,) = decode_all(b"[1, 1.0, 1e3, -0, 1234567890000]")

        kinds = [item.kind for item in value.data]
        assert kinds == [ValueKind.INT, ValueKind.FLOAT, ValueKind.FLOAT,
                         ValueKind.INT, ValueKind.INT]
        assert value.data[4].data == 1234567890000

    def test_numbers_split_across_chunks(self):
        """A number cut by a read boundary is not decoded early"""
        values = decode_all(b"12345 6", chunk_size=2)
        assert values == [Value.integer(12345), Value.integer(6)]

    def test_fraction_and_exponent_split_across_chunks(self):
        """A read boundary right after '.', 'e' or 'E' does not cut the number"""
        assert decode_all(b"1.5 2.5", chunk_size=2) == [Value.floating(1.5), Value.floating(2.5)]
        assert decode_all(b"2e3 1", chunk_size=2) == [Value.floating(2000.0), Value.integer(1)]
        assert decode_all(b"-7E+2 3", chunk_size=2) == [Value.floating(-700.0), Value.integer(3)]

    def test_fraction_split_without_conversion(self):
        options = ConversionOptions(convert_numbers=False)
        assert decode_all(b"1.5 2", options, chunk_size=2) == [Value.floating(1.5), Value.floating(2.0)]

    def test_number_at_default_chunk_boundary(self):
        """A number straddling the first full-size read decodes whole"""
        data = b" " * 65534 + b"1.5 2e3"
        assert decode_all(data) == [Value.floating(1.5), Value.floating(2000.0)]

    def test_deeply_nested_document(self):
        """Nesting beyond the interpreter's recursion limit is a format error"""
        with pytest.raises(FormatError) as exc_info:
            decode_all(b"[" * 3000 + b"]" * 3000)
        assert exc_info.value.stage == "JSON decoding"

    def test_documents_split_across_chunks(self):
        data = b'{"name": "\xc5\xbelu\xc5\xa5", "list": [1, 2.5, null]} "tail"'
        assert decode_all(data, chunk_size=1) == decode_all(data)
        assert decode_all(data, chunk_size=1)[0].data["name"] == Value.string("žluť")

    def test_conversion_disabled(self):
        """With conversion off every number becomes a float"""
        (value,) = decode_all(b"[1, 2.5, 1234567890000]", ConversionOptions(convert_numbers=False))
        assert value == Value.sequence([
            Value.floating(1.0),
            Value.floating(2.5),
            Value.floating(1234567890000.0),
        ])

    def test_integer_overflow(self):
        with pytest.raises(NumberConversionError) as exc_info:
            decode_all(b"[9223372036854775808]")
        assert exc_info.value.stage == "JSON decoding"

    def test_float_overflow_without_conversion(self):
        with pytest.raises(NumberConversionError, match="out of float64 range"):
            decode_all(b"1e999", ConversionOptions(convert_numbers=False))

    @pytest.mark.parametrize("data", [b"NaN", b"[Infinity]", b"-Infinity"])
    def test_non_finite_constants_rejected(self, data):
        with pytest.raises(FormatError, match="invalid JSON value"):
            decode_all(data)

    def test_truncated_document(self):
        with pytest.raises(FormatError) as exc_info:
            decode_all(b'{"a": 1')
        assert exc_info.value.stage == "JSON decoding"

    def test_garbage(self):
        with pytest.raises(FormatError):
            decode_all(b"[1] xyz")

    def test_values_before_error_are_produced(self):
        decoder = JSONDecoder(io.BytesIO(b"[1] [2"), ConversionOptions())
        assert decoder.decode() == Value.sequence([Value.integer(1)])
        with pytest.raises(FormatError):
            decoder.decode()

    def test_invalid_utf8(self):
        with pytest.raises(FormatError, match="not valid UTF-8"):
            decode_all(b'"\xff"')

    def test_truncated_utf8_sequence(self):
        with pytest.raises(FormatError, match="not valid UTF-8"):
            decode_all(b'"\xc5')

    def test_read_failure(self):
        with pytest.raises(StreamIOError) as exc_info:
            list(JSONDecoder(FailingStream(), ConversionOptions()))
        assert str(exc_info.value) == "Reading error: device not ready"


class TestDecodeJSONText:
    """Test single-document decoding"""

    def test_single_document(self):
        assert decode_json_text('{"k": [1, "v"]}') == Value.mapping({
            "k": Value.sequence([Value.integer(1), Value.string("v")]),
        })

    def test_trailing_data_rejected(self):
        with pytest.raises(FormatError, match="Extra data"):
            decode_json_text("[1] [2]")

    def test_numbers_as_floats(self):
        assert decode_json_text("7", convert_numbers=False) == Value.floating(7.0)

    def test_deeply_nested_document(self):
        with pytest.raises(FormatError, match="nested too deeply"):
            decode_json_text("[" * 3000 + "]" * 3000)


class TestRenderJSON:
    """Test JSON rendering"""

    def test_compact(self):
        value = Value.mapping({
            "b": Value.sequence([Value.integer(1), Value.floating(1.0), Value.null()]),
            "a": Value.boolean(False),
        })
        assert render_json(value) == '{"b":[1,1.0,null],"a":false}'

    def test_indent(self):
        value = Value.mapping({"a": Value.sequence([Value.integer(1)])})
        assert render_json(value, indent=True) == '{\n  "a": [\n    1\n  ]\n}'

    def test_non_ascii_kept(self):
        assert render_json(Value.string("žluť")) == '"žluť"'

    def test_deeply_nested_value(self):
        value = Value.sequence([])
        for _ in range(3000):
            value = Value.sequence([value])
        with pytest.raises(FormatError) as exc_info:
            render_json(value)
        assert exc_info.value.stage == "JSON encoding"

    def test_nan_rejected(self):
        with pytest.raises(FormatError) as exc_info:
            render_json(Value.floating(float("nan")))
        assert exc_info.value.stage == "JSON encoding"


class TestJSONEncoder:
    """Test writing JSON documents"""

    def test_one_document_per_line(self):
        stream = io.BytesIO()
        encoder = JSONEncoder(stream, ConversionOptions())

        encoder.encode(Value.mapping({"a": Value.integer(1)}))
        encoder.encode(Value.string("ž"))

        assert stream.getvalue() == '{"a":1}\n"ž"\n'.encode("utf-8")

    def test_indented(self):
        stream = io.BytesIO()
        JSONEncoder(stream, ConversionOptions(indent=True)).encode(Value.sequence([Value.integer(1)]))
        assert stream.getvalue() == b"[\n  1\n]\n"

    def test_lone_surrogate(self):
        with pytest.raises(FormatError):
            JSONEncoder(io.BytesIO(), ConversionOptions()).encode(Value.string("\ud800"))

    def test_write_failure(self):
        with pytest.raises(StreamIOError, match="Writing error: disk full"):
            JSONEncoder(FailingStream(), ConversionOptions()).encode(Value.null())

    def test_short_write(self):
        with pytest.raises(StreamIOError, match="written 4 of 5 bytes"):
            JSONEncoder(ShortWriteStream(), ConversionOptions()).encode(Value.null())
