"""
Codec factory

Creates encoder/decoder instances for a format name, so callers select the
conversion direction at runtime.
"""

from typing import BinaryIO

from msgpack_cli.codec.base import Decoder, Encoder
from msgpack_cli.codec.json_codec import JSONDecoder, JSONEncoder
from msgpack_cli.codec.msgpack_codec import MsgpackDecoder, MsgpackEncoder
from msgpack_cli.config import ConversionOptions


class FormatType:
    """Format type constants"""
    JSON = "json"
    MSGPACK = "msgpack"


class CodecFactory:
    """Codec factory, used to create encoders and decoders"""

    _decoders = {
        FormatType.JSON: JSONDecoder,
        FormatType.MSGPACK: MsgpackDecoder,
    }

    _encoders = {
        FormatType.JSON: JSONEncoder,
        FormatType.MSGPACK: MsgpackEncoder,
    }

    @staticmethod
    def create_decoder(format_type: str, stream: BinaryIO, options: ConversionOptions) -> Decoder:
        """Create a decoder reading from `stream`

        Args:
            format_type: Format type, "json" or "msgpack"
            stream: Readable binary stream
            options: Conversion options

        Raises:
            ValueError: Invalid format type
        """
        try:
            decoder_cls = CodecFactory._decoders[format_type.lower()]
        except KeyError:
            raise ValueError(f"Invalid format type: {format_type}") from None
        return decoder_cls(stream, options)

    @staticmethod
    def create_encoder(format_type: str, stream: BinaryIO, options: ConversionOptions) -> Encoder:
        """Create an encoder writing to `stream`

        Args:
            format_type: Format type, "json" or "msgpack"
            stream: Writable binary stream
            options: Conversion options

        Raises:
            ValueError: Invalid format type
        """
        try:
            encoder_cls = CodecFactory._encoders[format_type.lower()]
        except KeyError:
            raise ValueError(f"Invalid format type: {format_type}") from None
        return encoder_cls(stream, options)
