"""
RPC call orchestration

Turns a human-written parameter string into a positional argument list,
performs the call on a background thread and races it against the configured
deadline. On timeout the call is abandoned, not cancelled: the server may
still process it, and the worker closes its connection whenever it finishes.
"""

import logging
import queue
import threading
import time
from typing import List, Union

from opentelemetry import trace

from msgpack_cli.codec.json_codec import decode_json_text, render_json
from msgpack_cli.config import ConversionOptions
from msgpack_cli.errors import (
    ArgumentError,
    FormatError,
    MsgpackCliError,
    NumberConversionError,
    RPCTimeoutError,
)
from msgpack_cli.rpc.client import MsgpackRPCClient
from msgpack_cli.rpc.messages import RPCRequest, RPCResult
from msgpack_cli.telemetry import create_span, increment_counter, record_latency
from msgpack_cli.value import Value, ValueKind

logger = logging.getLogger(__name__)

# The abandoned worker gives up on its socket after this many call deadlines
WORKER_IO_TIMEOUT_FACTOR = 2


def normalize_params(params: str) -> str:
    """Turn a parameter string into a JSON array literal

    - ""            -> "[]"
    - "hello"       -> '["hello"]' (leading letter: a single string argument)
    - "42"          -> "[42]"
    - "[1,2]"       -> "[1,2]" (used verbatim)
    """
    if not params:
        return "[]"
    if params.startswith("["):
        return params
    if params[0].isalpha():
        params = render_json(Value.string(params))
    return "[" + params + "]"


def decode_params(params: str, options: ConversionOptions) -> List[Value]:
    """Decode a parameter string into positional RPC arguments

    Raises:
        ArgumentError: The normalized literal is not a JSON array
    """
    literal = normalize_params(params)
    try:
        args = decode_json_text(literal, options.convert_numbers)
    except (FormatError, NumberConversionError) as e:
        raise ArgumentError(e.message, stage=e.stage) from e

    if args.kind is not ValueKind.SEQUENCE:
        raise ArgumentError(f"RPC parameters must be a JSON array, got {args.kind.value}")
    return args.data


def parse_port(port: Union[int, str]) -> int:
    """Validate a TCP port number given as int or decimal string"""
    try:
        number = int(port)
    except (TypeError, ValueError):
        raise ArgumentError(f"invalid port {port!r}") from None
    if not 0 < number < 65536:
        raise ArgumentError(f"port {number} out of range (1..65535)")
    return number


def _call_worker(host: str, port: int, request: RPCRequest,
                 io_timeout: float, results: queue.Queue):
    """Background unit: perform one call and post exactly one RPCResult"""
    try:
        with MsgpackRPCClient(host, port, io_timeout=io_timeout) as client:
            reply = client.call(request)
    except MsgpackCliError as e:
        result = RPCResult(error=e)
    except Exception as e:
        logger.exception(f"Unexpected failure calling {request.method}")
        result = RPCResult(error=e)
    else:
        result = RPCResult(reply=reply)

    # Capacity 1 and a single writer: never blocks, even if nobody listens any more
    results.put_nowait(result)
    logger.debug(f"RPC worker for {request.method} finished (ok={result.ok})")


def invoke(host: str, port: Union[int, str], request: RPCRequest,
           options: ConversionOptions) -> Value:
    """Perform one call, giving up after options.timeout_seconds

    Returns:
        Value: The reply

    Raises:
        RPCTimeoutError: No result within the deadline
        TransportError, ProtocolError, RemoteError, FormatError: From the call
    """
    port = parse_port(port)
    timeout = options.timeout_seconds
    results = queue.Queue(maxsize=1)
    worker = threading.Thread(
        target=_call_worker,
        args=(host, port, request, timeout * WORKER_IO_TIMEOUT_FACTOR, results),
        name=f"rpc-call-{request.method}",
        daemon=True,
    )

    attributes = {"method": request.method}
    increment_counter("rpc.client.requests", 1, attributes)
    start_time = time.time()

    with create_span("rpc.call", {"rpc.system": "msgpack-rpc",
                                  "rpc.method": request.method,
                                  "net.peer.name": host,
                                  "net.peer.port": port},
                     kind=trace.SpanKind.CLIENT):
        worker.start()
        try:
            result = results.get(timeout=timeout)
        except queue.Empty:
            logger.warning(f"RPC call {request.method} timed out after {timeout}s")
            increment_counter("rpc.client.errors", 1, {"type": "timeout", **attributes})
            raise RPCTimeoutError(f"RPC call timed out after {timeout}s") from None

    latency_ms = (time.time() - start_time) * 1000
    record_latency("rpc.client.latency", latency_ms, attributes)

    if result.error is not None:
        error_type = type(result.error).__name__
        logger.debug(f"RPC call {request.method} failed after {latency_ms:.2f}ms: {result.error}")
        increment_counter("rpc.client.errors", 1, {"type": error_type, **attributes})
        raise result.error

    increment_counter("rpc.client.success", 1, attributes)
    logger.debug(f"RPC call {request.method} succeeded in {latency_ms:.2f}ms")
    return result.reply


def call_rpc(host: str, port: Union[int, str], method: str, params: str,
             options: ConversionOptions) -> str:
    """Call `method` with a raw parameter string and render the reply as JSON

    Args:
        host: Server hostname
        port: Server port
        method: Name of the remote method
        params: Parameters as typed by the user (see normalize_params)
        options: Conversion options (number handling, indent, timeout)

    Returns:
        str: JSON rendering of the reply
    """
    args = decode_params(params, options)
    request = RPCRequest(method=method, args=args)
    reply = invoke(host, port, request, options)
    return render_json(reply, options.indent)
