"""
msgpack-cli command line

    msgpack-cli encode <input-file> [--out=<output-file>] [--disable-int64-conv]
    msgpack-cli decode <input-file> [--out=<output-file>] [--pp]
    msgpack-cli rpc <host> <port> <method> [<params>|--file=<input-file>] [--pp]
        [--timeout=<timeout>] [--disable-int64-conv]

encode converts JSON to MessagePack, decode converts MessagePack to JSON and
rpc calls a MessagePack-RPC method, printing the reply as JSON.
"""

import argparse
import dataclasses
import logging
import sys
from contextlib import ExitStack
from typing import List, Optional

from msgpack_cli import __version__
from msgpack_cli.config import ConversionOptions, TelemetryConfig, parse_timeout
from msgpack_cli.errors import MsgpackCliError, StreamIOError
from msgpack_cli.pipeline import json_to_msgpack, msgpack_to_json
from msgpack_cli.rpc import call_rpc
from msgpack_cli.telemetry import setup_telemetry

logger = logging.getLogger("msgpack_cli")

STDIO = "-"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="msgpack-cli",
        description="Convert between JSON and MessagePack, and call MessagePack-RPC methods",
    )
    parser.add_argument("--version", action="version", version=f"msgpack-cli {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")

    commands = parser.add_subparsers(dest="command", metavar="command")
    commands.required = True

    encode = commands.add_parser("encode", help="Encode JSON data from input file to MessagePack")
    encode.add_argument("input_file", metavar="input-file", help="File where data are read from ('-' for STDIN)")
    encode.add_argument("--out", metavar="output-file", help="Write output data to file instead of STDOUT")
    encode.add_argument("--disable-int64-conv", action="store_true",
                        help="Decode all JSON numbers as float64 instead of int64/float64 by their literal")

    decode = commands.add_parser("decode", help="Decode MessagePack data from input file to JSON")
    decode.add_argument("input_file", metavar="input-file", help="File where data are read from ('-' for STDIN)")
    decode.add_argument("--out", metavar="output-file", help="Write output data to file instead of STDOUT")
    decode.add_argument("--pp", action="store_true", help="Pretty-print - indent output JSON data")

    rpc = commands.add_parser("rpc", help="Call RPC method and write result to STDOUT")
    rpc.add_argument("host", help="Server hostname")
    rpc.add_argument("port", help="Server port")
    rpc.add_argument("method", help="Name of RPC method")
    rpc.add_argument("params", nargs="?", default="", help="Parameters of RPC method in JSON format")
    rpc.add_argument("--file", metavar="input-file", help="File where parameters of RPC method are read from")
    rpc.add_argument("--pp", action="store_true", help="Pretty-print - indent output JSON data")
    rpc.add_argument("--timeout", help="Timeout of RPC call in seconds [default: 30]")
    rpc.add_argument("--disable-int64-conv", action="store_true",
                     help="Decode all JSON numbers as float64 instead of int64/float64 by their literal")

    return parser


def build_options(args: argparse.Namespace) -> ConversionOptions:
    """Combine environment defaults with command line flags"""
    options = ConversionOptions.from_env()
    overrides = {}
    if getattr(args, "disable_int64_conv", False):
        overrides["convert_numbers"] = False
    if getattr(args, "pp", False):
        overrides["indent"] = True
    if getattr(args, "timeout", None):
        overrides["timeout_seconds"] = parse_timeout(args.timeout)
    return dataclasses.replace(options, **overrides)


def read_params_file(path: str) -> str:
    try:
        if path == STDIO:
            return sys.stdin.read()
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise StreamIOError(f"{path}: {e}", stage="Reading error") from e


def run_conversion(args: argparse.Namespace, options: ConversionOptions) -> None:
    convert = json_to_msgpack if args.command == "encode" else msgpack_to_json

    with ExitStack() as stack:
        try:
            if args.input_file == STDIO:
                source = sys.stdin.buffer
            else:
                source = stack.enter_context(open(args.input_file, "rb"))
            if args.out and args.out != STDIO:
                target = stack.enter_context(open(args.out, "wb"))
            else:
                target = sys.stdout.buffer
        except OSError as e:
            raise StreamIOError(str(e), stage="Opening error") from e

        convert(source, target, options)
        try:
            target.flush()
        except OSError as e:
            raise StreamIOError(str(e), stage="Writing error") from e


def run_rpc(args: argparse.Namespace, options: ConversionOptions) -> None:
    params = read_params_file(args.file) if args.file else args.params
    reply = call_rpc(args.host, args.port, args.method, params, options)
    print(reply)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "rpc" and args.file and args.params:
        parser.error("<params> and --file are mutually exclusive")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        setup_telemetry(TelemetryConfig.from_env())
        options = build_options(args)
        logger.debug(f"Running {args.command} with options {options.to_dict()}")

        if args.command == "rpc":
            run_rpc(args, options)
        else:
            run_conversion(args, options)
    except MsgpackCliError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
