"""
Format Codec Module

Paired encoders/decoders for the two supported wire formats:
- json_codec: JSON text, with int64/float64 disambiguation of numbers
- msgpack_codec: MessagePack binary

Both operate on the generic value model and stream one top-level value at a time.
"""

from .base import Decoder, Encoder
from .factory import CodecFactory, FormatType
from .json_codec import JSONDecoder, JSONEncoder, render_json
from .msgpack_codec import MsgpackDecoder, MsgpackEncoder

__all__ = [
    "CodecFactory",
    "FormatType",
    "Decoder",
    "Encoder",
    "JSONDecoder",
    "JSONEncoder",
    "MsgpackDecoder",
    "MsgpackEncoder",
    "render_json",
]
