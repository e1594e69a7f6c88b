"""
Shared test fixtures

Provides a small threaded MessagePack-RPC server bound to an ephemeral
localhost port.
"""

import socket
import threading

import msgpack
import pytest


class MsgpackRPCTestServer:
    """Minimal MessagePack-RPC server answering registered methods"""

    def __init__(self, host: str = "127.0.0.1"):
        self.host = host
        self.methods = {}
        self.raw_methods = {}
        self.requests = []
        self.running = False
        self.release = threading.Event()
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind((host, 0))
        self.sock.listen()
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]

    def register_method(self, name, handler):
        """Register a handler called with the positional params"""
        self.methods[name] = handler

    def register_raw(self, name, responder):
        """Register a responder returning raw response bytes for a msgid"""
        self.raw_methods[name] = responder

    def start(self):
        self.running = True
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def stop(self):
        self.running = False
        self.release.set()
        self.thread.join(timeout=1.0)
        self.sock.close()

    def _serve(self):
        while self.running:
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn):
        unpacker = msgpack.Unpacker(raw=False)
        with conn:
            while True:
                try:
                    data = conn.recv(65536)
                except OSError:
                    return
                if not data:
                    return
                unpacker.feed(data)
                for message in unpacker:
                    self.requests.append(message)
                    reply = self._dispatch(message)
                    if reply is None:
                        return
                    try:
                        conn.sendall(reply)
                    except OSError:
                        return

    def _dispatch(self, message):
        _, msgid, method, params = message
        if method in self.raw_methods:
            return self.raw_methods[method](msgid)
        handler = self.methods.get(method)
        if handler is None:
            response = [1, msgid, f"rpc: can't find method {method}", None]
        else:
            try:
                response = [1, msgid, None, handler(*params)]
            except Exception as e:
                response = [1, msgid, str(e), None]
        return msgpack.packb(response, use_bin_type=True)


@pytest.fixture
def rpc_server():
    """Start a test server with a few standard methods"""
    server = MsgpackRPCTestServer()
    server.register_method("echo", lambda *args: list(args))
    server.register_method("add", lambda a, b: a + b)
    server.register_method("ping", lambda: "pong")
    server.register_method("types", lambda: {"int": 1, "float": 1.5, "bin": b"raw", "none": None})

    def fail(*args):
        raise RuntimeError("division by zero")

    server.register_method("fail", fail)

    def hang(*args):
        server.release.wait(10)
        return "late"

    server.register_method("hang", hang)
    server.start()

    yield server

    server.stop()


@pytest.fixture
def closed_port():
    """A localhost port nobody is listening on"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
