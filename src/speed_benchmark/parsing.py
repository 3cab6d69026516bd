import argparse

from speed_benchmark.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DOWNLOAD_MB,
    DEFAULT_DURATION,
    DEFAULT_PING_COUNT,
    DEFAULT_STREAMS,
    DEFAULT_TIMEOUT,
)
from speed_benchmark.structs import RunConfig
from speed_benchmark.utils import parse_duration, parse_size


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _size(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Measure latency, download and upload speed against an HTTP load endpoint."
    )

    parser.add_argument(
        "--url",
        type=str,
        default="",
        help="Base URL of the load endpoint (default: http://localhost:8080)",
    )

    parser.add_argument(
        "--duration",
        type=_duration,
        default=DEFAULT_DURATION,
        help=f"Test duration, e.g. '12s' or '500ms'. Default: {DEFAULT_DURATION:g}s",
    )

    parser.add_argument(
        "--streams",
        type=int,
        default=DEFAULT_STREAMS,
        help=f"Number of parallel streams. Default: {DEFAULT_STREAMS}",
    )

    parser.add_argument(
        "--chunk-size",
        type=_size,
        default=DEFAULT_CHUNK_SIZE,
        help="Read/write chunk size in bytes (e.g. '64KB'). Accepts suffixes KB, MB.",
    )

    parser.add_argument(
        "--download-mb",
        type=int,
        default=DEFAULT_DOWNLOAD_MB,
        help=f"Download size per stream in MB. Default: {DEFAULT_DOWNLOAD_MB}",
    )

    parser.add_argument(
        "--ping-count",
        type=int,
        default=DEFAULT_PING_COUNT,
        help=f"Number of ping samples. Default: {DEFAULT_PING_COUNT}",
    )

    parser.add_argument(
        "--timeout",
        type=_duration,
        default=DEFAULT_TIMEOUT,
        help=f"Per-request timeout. Default: {DEFAULT_TIMEOUT:g}s",
    )

    parser.add_argument("--json", action="store_true", help="Print results as JSON")

    parser.add_argument("--debug", action="store_true", help="Enable debug output")

    return parser


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Build a run configuration from parsed arguments, without a progress sink."""
    return RunConfig(
        base_url=args.url,
        duration=args.duration,
        streams=args.streams,
        chunk_size=args.chunk_size,
        download_mb=args.download_mb,
        ping_count=args.ping_count,
        timeout=args.timeout,
    )
