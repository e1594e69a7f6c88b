"""
MessagePack-RPC Module

Unary MessagePack-RPC calls over TCP:
- client: request/response framing on one connection
- orchestrator: parameter normalization and the call/timeout race
"""

from .client import MsgpackRPCClient
from .messages import RPCRequest, RPCResult
from .orchestrator import call_rpc, decode_params, invoke, normalize_params

__all__ = [
    "MsgpackRPCClient",
    "RPCRequest",
    "RPCResult",
    "call_rpc",
    "decode_params",
    "invoke",
    "normalize_params",
]
