"""
Error taxonomy

Every failure raised by msgpack-cli is a MsgpackCliError carrying a short stage
label (e.g. "JSON decoding", "RPC error"). The label is prepended to the message
when the error is rendered, so the CLI can report it as-is.
"""

from typing import Any, Optional


class MsgpackCliError(Exception):
    """Base class for all msgpack-cli failures."""

    default_stage: Optional[str] = None

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage if stage is not None else self.default_stage

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class StreamIOError(MsgpackCliError):
    """Reading from or writing to a byte stream failed (including short writes)."""


class FormatError(MsgpackCliError):
    """Malformed JSON/MessagePack input, or a value that cannot be encoded."""


class NumberConversionError(MsgpackCliError):
    """A JSON numeric literal does not parse as the chosen numeric kind."""


class ArgumentError(MsgpackCliError):
    """Malformed user input: RPC parameters, timeout value, method name."""

    default_stage = "Arguments parsing"


class TransportError(MsgpackCliError):
    """The RPC connection could not be established or broke down."""

    default_stage = "RPC error"


class ProtocolError(MsgpackCliError):
    """The peer sent something that is not a valid MessagePack-RPC response."""

    default_stage = "RPC error"


class RemoteError(MsgpackCliError):
    """The server answered the call with an application-level error."""

    default_stage = "RPC error"

    def __init__(self, message: str, error: Any = None, stage: Optional[str] = None):
        super().__init__(message, stage)
        self.error = error


class RPCTimeoutError(MsgpackCliError, TimeoutError):
    """No response arrived within the configured deadline."""

    default_stage = "RPC error"
