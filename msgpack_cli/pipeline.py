"""
Conversion pipeline

Drives a decoder and an encoder over a pair of byte streams, translating each
top-level value as soon as it is decoded. Only one value is held in memory at
a time, so inputs holding many concatenated documents convert in one pass.
"""

import logging
import time
from typing import BinaryIO

from msgpack_cli.codec import CodecFactory, Decoder, Encoder, FormatType
from msgpack_cli.config import ConversionOptions
from msgpack_cli.telemetry import create_span, increment_counter, record_latency

logger = logging.getLogger(__name__)


def convert(decoder: Decoder, encoder: Encoder) -> int:
    """Re-encode every value produced by `decoder` with `encoder`

    Stops when the decoder reports the end of its stream. The first decode or
    encode failure aborts the conversion and propagates.

    Returns:
        int: Number of top-level values converted
    """
    count = 0
    for value in decoder:
        encoder.encode(value)
        count += 1
        logger.debug(f"Converted value #{count} ({value.kind.value})")
    return count


def convert_stream(source: BinaryIO, target: BinaryIO,
                   source_format: str, target_format: str,
                   options: ConversionOptions) -> int:
    """Convert all values in `source` from one format to the other

    Args:
        source: Readable binary stream in `source_format`
        target: Writable binary stream receiving `target_format`
        source_format: FormatType of the input
        target_format: FormatType of the output
        options: Conversion options

    Returns:
        int: Number of top-level values converted
    """
    decoder = CodecFactory.create_decoder(source_format, source, options)
    encoder = CodecFactory.create_encoder(target_format, target, options)
    direction = f"{source_format}->{target_format}"

    start_time = time.time()
    with create_span("conversion", {"conversion.direction": direction}):
        try:
            count = convert(decoder, encoder)
        except Exception:
            increment_counter("conversion.errors", 1, {"direction": direction})
            raise

    latency_ms = (time.time() - start_time) * 1000
    increment_counter("conversion.values", count, {"direction": direction})
    record_latency("conversion.latency", latency_ms, {"direction": direction})
    logger.info(f"Converted {count} value(s) {direction} in {latency_ms:.2f}ms")
    return count


def json_to_msgpack(source: BinaryIO, target: BinaryIO, options: ConversionOptions) -> int:
    """Encode a stream of JSON documents as MessagePack"""
    return convert_stream(source, target, FormatType.JSON, FormatType.MSGPACK, options)


def msgpack_to_json(source: BinaryIO, target: BinaryIO, options: ConversionOptions) -> int:
    """Decode a stream of MessagePack objects into JSON documents"""
    return convert_stream(source, target, FormatType.MSGPACK, FormatType.JSON, options)
