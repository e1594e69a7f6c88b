"""
Codec interfaces

Defines the Encoder/Decoder contracts every format implementation follows, so
the conversion pipeline and the RPC layer do not depend on a concrete format.
"""

import abc
from typing import BinaryIO, Iterator, Optional

from msgpack_cli.config import ConversionOptions
from msgpack_cli.errors import StreamIOError
from msgpack_cli.value import Value

DEFAULT_CHUNK_SIZE = 64 * 1024


class Decoder(abc.ABC):
    """Reads top-level values, one per call, from a readable byte stream"""

    def __init__(self, stream: BinaryIO, options: ConversionOptions,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.stream = stream
        self.options = options
        self.chunk_size = chunk_size

    @abc.abstractmethod
    def decode(self) -> Optional[Value]:
        """Decode the next top-level value

        Returns:
            Value: The decoded value, or None when the stream is exhausted

        Raises:
            FormatError: Malformed or truncated input
            NumberConversionError: A numeric literal could not be converted
            StreamIOError: Reading from the stream failed
        """
        pass

    def __iter__(self) -> Iterator[Value]:
        while True:
            value = self.decode()
            if value is None:
                return
            yield value

    def _read_chunk(self, hint: int = 0) -> bytes:
        # Reads grow with the pending input so re-parsing stays linear
        try:
            return self.stream.read(max(self.chunk_size, hint))
        except OSError as e:
            raise StreamIOError(str(e), stage="Reading error") from e


class Encoder(abc.ABC):
    """Writes top-level values, one per call, to a writable byte stream"""

    def __init__(self, stream: BinaryIO, options: ConversionOptions):
        self.stream = stream
        self.options = options

    @abc.abstractmethod
    def encode(self, value: Value) -> None:
        """Encode one value and write it to the stream

        Args:
            value: A normalized value tree

        Raises:
            FormatError: The value cannot be represented in the target format
            StreamIOError: Writing to the stream failed or was short
        """
        pass

    def _write(self, data: bytes) -> None:
        try:
            written = self.stream.write(data)
        except OSError as e:
            raise StreamIOError(str(e), stage="Writing error") from e
        # Unbuffered streams may accept fewer bytes than offered
        if written is not None and written != len(data):
            raise StreamIOError(f"written {written} of {len(data)} bytes", stage="Writing error")
