"""
MessagePack-RPC client

Speaks the MessagePack-RPC request/response convention over a plain TCP
connection: a request is [0, msgid, method, params], a response is
[1, msgid, error, result]. One client owns one connection.
"""

import itertools
import logging
import socket
from typing import Any, Optional

import msgpack
from msgpack.exceptions import BufferFull, OutOfData

from msgpack_cli.codec.json_codec import render_json
from msgpack_cli.codec.msgpack_codec import new_unpacker, unpacked_to_value
from msgpack_cli.errors import FormatError, ProtocolError, RemoteError, TransportError
from msgpack_cli.rpc.messages import REQUEST, RESPONSE, RPCRequest
from msgpack_cli.value import Value, ValueKind, to_python

logger = logging.getLogger(__name__)

RECV_SIZE = 64 * 1024

_msgids = itertools.count()


def _next_msgid() -> int:
    # msgid is a uint32 on the wire
    return next(_msgids) & 0xFFFFFFFF


class MsgpackRPCClient:
    """
    Client for one MessagePack-RPC connection
    """

    def __init__(self, host: str, port: int, io_timeout: Optional[float] = None):
        """Initialize the client; the connection is opened lazily

        Args:
            host: Server hostname
            port: Server port
            io_timeout: Socket connect/read/write timeout in seconds (None blocks)
        """
        self.host = host
        self.port = port
        self.io_timeout = io_timeout
        self.sock = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def connect(self):
        """Open the TCP connection

        Raises:
            TransportError: The connection could not be established
        """
        if self.sock is not None:
            return
        try:
            self.sock = socket.create_connection((self.host, self.port), timeout=self.io_timeout)
        except OSError as e:
            raise TransportError(f"cannot connect to {self.host}:{self.port}: {e}") from e
        logger.debug(f"Connected to {self.host}:{self.port}")

    def close(self):
        """Close the connection"""
        if self.sock is not None:
            self.sock.close()
            self.sock = None
            logger.debug(f"Closed connection to {self.host}:{self.port}")

    def call(self, request: RPCRequest) -> Value:
        """Send a request and wait for its response

        Args:
            request: Method name and positional arguments

        Returns:
            Value: The reply

        Raises:
            TransportError: Connecting, sending or receiving failed
            ProtocolError: The peer did not answer with a matching response
            RemoteError: The server reported an error for the call
            FormatError: The arguments or the reply could not be (de)serialized
        """
        self.connect()
        msgid = _next_msgid()
        frame = self._pack_request(msgid, request)

        logger.debug(f"Sending request #{msgid}: {request.method} with {len(request.args)} argument(s)")
        try:
            self.sock.sendall(frame)
        except OSError as e:
            raise TransportError(f"sending request failed: {e}") from e

        response = self._read_message()
        return self._handle_response(msgid, response)

    def _pack_request(self, msgid: int, request: RPCRequest) -> bytes:
        try:
            params = [to_python(arg) for arg in request.args]
            return msgpack.packb([REQUEST, msgid, request.method, params], use_bin_type=True)
        except (TypeError, ValueError, OverflowError, RecursionError) as e:
            raise FormatError(str(e), stage="Msgpack encoding") from e

    def _read_message(self) -> Any:
        unpacker = new_unpacker()
        while True:
            try:
                return unpacker.unpack()
            except OutOfData:
                pass
            except (BufferFull, ValueError, TypeError) as e:
                raise ProtocolError(f"malformed response: {e}") from e

            try:
                chunk = self.sock.recv(RECV_SIZE)
            except OSError as e:
                raise TransportError(f"receiving response failed: {e}") from e
            if not chunk:
                raise ProtocolError("connection closed before a response was received")
            try:
                unpacker.feed(chunk)
            except BufferFull as e:
                raise ProtocolError(f"response too large: {e}") from e

    def _handle_response(self, msgid: int, response: Any) -> Value:
        if not isinstance(response, list) or len(response) != 4 or response[0] != RESPONSE:
            raise ProtocolError(f"unexpected message: {response!r:.200}")

        _, response_id, error, result = response
        if response_id != msgid:
            raise ProtocolError(f"response id mismatch: {response_id!r} != {msgid}")

        if error is not None:
            error_value = unpacked_to_value(error)
            raise RemoteError(_describe_error(error_value), error=error_value)

        logger.debug(f"Received response #{msgid}")
        return unpacked_to_value(result)


def _describe_error(error: Value) -> str:
    if error.kind is ValueKind.STRING:
        return error.data
    try:
        return render_json(error)
    except FormatError:
        return repr(error.data)
