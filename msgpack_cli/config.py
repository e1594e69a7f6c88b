"""
Configuration settings for conversions and RPC calls
"""
import os
from dataclasses import dataclass
from typing import Optional

from msgpack_cli.errors import ArgumentError

DEFAULT_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 2 ** 32 - 1

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def parse_timeout(text: str) -> int:
    """Parse a timeout given in whole seconds.

    Raises:
        ArgumentError: The text is not an unsigned 32-bit integer greater than 0.
    """
    stripped = text.strip()
    if not (stripped.isascii() and stripped.isdigit()):
        raise ArgumentError(f"invalid timeout {text!r}: expected a positive integer")
    timeout = int(stripped)
    if timeout == 0 or timeout > MAX_TIMEOUT_SECONDS:
        raise ArgumentError(f"timeout {timeout} out of range (1..{MAX_TIMEOUT_SECONDS})")
    return timeout


@dataclass(frozen=True)
class ConversionOptions:
    """Options shared by the codecs, the conversion pipeline and RPC calls"""
    convert_numbers: bool = True
    indent: bool = False
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        if isinstance(self.timeout_seconds, bool) or not isinstance(self.timeout_seconds, int):
            raise ArgumentError(f"timeout must be an integer, got {self.timeout_seconds!r}")
        if not 0 < self.timeout_seconds <= MAX_TIMEOUT_SECONDS:
            raise ArgumentError(f"timeout {self.timeout_seconds} out of range (1..{MAX_TIMEOUT_SECONDS})")

    @classmethod
    def from_env(cls) -> "ConversionOptions":
        """Create options from environment variables"""
        timeout = os.getenv("MSGPACK_CLI_TIMEOUT")
        return cls(
            convert_numbers=not _env_flag("MSGPACK_CLI_DISABLE_INT64_CONV"),
            indent=_env_flag("MSGPACK_CLI_PRETTY"),
            timeout_seconds=parse_timeout(timeout) if timeout else DEFAULT_TIMEOUT_SECONDS,
        )

    def to_dict(self):
        return {
            "convert_numbers": self.convert_numbers,
            "indent": self.indent,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass(frozen=True)
class TelemetryConfig:
    """Configuration for OpenTelemetry export"""
    service_name: str = "msgpack-cli"
    otlp_endpoint: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.otlp_endpoint)

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        """Create config from environment variables"""
        return cls(
            service_name=os.getenv("MSGPACK_CLI_SERVICE_NAME", "msgpack-cli"),
            otlp_endpoint=os.getenv("MSGPACK_CLI_OTLP_ENDPOINT") or None,
        )
