"""
MessagePack-RPC message types
"""

from dataclasses import dataclass, field
from typing import List, Optional

from msgpack_cli.errors import ArgumentError
from msgpack_cli.value import Value

# Message type markers of the MessagePack-RPC framing
REQUEST = 0
RESPONSE = 1


@dataclass
class RPCRequest:
    """A unary call: method name plus positional arguments"""
    method: str
    args: List[Value] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.method, str) or not self.method:
            raise ArgumentError("RPC method name must be a non-empty string")
        if not isinstance(self.args, list):
            raise ArgumentError("RPC arguments must be a list of positional values")


@dataclass
class RPCResult:
    """Outcome of one call attempt: a reply or the error that ended it"""
    reply: Optional[Value] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
