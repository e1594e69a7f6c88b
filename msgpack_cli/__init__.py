"""
msgpack-cli: JSON <-> MessagePack conversion and MessagePack-RPC calls

- value: generic value model and JSON number normalization
- codec: streaming JSON and MessagePack encoders/decoders
- pipeline: file/stream conversion between the two formats
- rpc: MessagePack-RPC client and call orchestration with a deadline
- telemetry: OpenTelemetry tracing and metrics
"""

__version__ = "0.1.0"
