"""
MessagePack codec

Streams concatenated top-level MessagePack objects in and out of the value
model. Raw/str and bin payloads both decode as text and maps decode as
generic string-keyed mappings, so untyped payloads round-trip without a schema.
"""

import logging
from typing import Any, Optional

import msgpack
from msgpack.exceptions import BufferFull, OutOfData

from msgpack_cli.codec.base import DEFAULT_CHUNK_SIZE, Decoder, Encoder
from msgpack_cli.errors import FormatError
from msgpack_cli.value import Value, from_python, to_python

logger = logging.getLogger(__name__)

DECODE_STAGE = "Msgpack decoding"
ENCODE_STAGE = "Msgpack encoding"


def _reject_ext(code: int, data: bytes):
    raise FormatError(f"unsupported extension type {code}", stage=DECODE_STAGE)


def new_unpacker() -> msgpack.Unpacker:
    """Feed-mode Unpacker configured for the generic value model"""
    return msgpack.Unpacker(
        raw=False,
        use_list=True,
        strict_map_key=True,
        ext_hook=_reject_ext,
    )


def pack_value(value: Value) -> bytes:
    """Serialize one value to MessagePack bytes

    Raises:
        FormatError: The value cannot be packed
    """
    try:
        return msgpack.packb(to_python(value), use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise FormatError(str(e), stage=ENCODE_STAGE) from e
    except RecursionError as e:
        raise FormatError(f"value nested too deeply: {e}", stage=ENCODE_STAGE) from e


def unpacked_to_value(obj: Any) -> Value:
    """Convert an object produced by new_unpacker() into a value tree"""
    try:
        return from_python(obj, stage=DECODE_STAGE)
    except RecursionError as e:
        raise FormatError(f"object nested too deeply: {e}", stage=DECODE_STAGE) from e


class MsgpackDecoder(Decoder):
    """Incremental decoder for a stream of concatenated MessagePack objects"""

    def __init__(self, stream, options, chunk_size=DEFAULT_CHUNK_SIZE):
        super().__init__(stream, options, chunk_size)
        self._unpacker = new_unpacker()
        self._eof = False
        self._fed = 0
        # stream offset right after the last complete object
        self._boundary = 0

    def decode(self) -> Optional[Value]:
        while True:
            try:
                obj = self._unpacker.unpack()
            except OutOfData:
                if not self._eof:
                    self._fill()
                    continue
                if self._fed == self._boundary:
                    return None
                raise FormatError(
                    f"unexpected end of input after {self._fed - self._boundary} bytes of an incomplete object",
                    stage=DECODE_STAGE,
                )
            except (BufferFull, ValueError, TypeError) as e:
                raise FormatError(str(e), stage=DECODE_STAGE) from e

            self._boundary = self._unpacker.tell()
            logger.debug(f"Decoded MessagePack value ending at offset {self._boundary}")
            return unpacked_to_value(obj)

    def _fill(self) -> None:
        chunk = self._read_chunk()
        if not chunk:
            self._eof = True
            return
        try:
            self._unpacker.feed(chunk)
        except BufferFull as e:
            raise FormatError(f"object exceeds the unpacker buffer: {e}", stage=DECODE_STAGE) from e
        self._fed += len(chunk)


class MsgpackEncoder(Encoder):
    """Writes each value as one top-level MessagePack object"""

    def encode(self, value: Value) -> None:
        self._write(pack_value(value))
