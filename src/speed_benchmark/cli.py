import logging
import sys

from speed_benchmark.config import normalize_config
from speed_benchmark.constants import PHASE_PING
from speed_benchmark.exceptions import SpeedBenchmarkError
from speed_benchmark.main import print_json_results, print_results, run_speed_test
from speed_benchmark.parsing import config_from_args, parse_arguments
from speed_benchmark.structs import ProgressEvent
from speed_benchmark.utils import format_speed


def setup_logging(debug: bool):
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)


class ProgressLine:
    """Render progress events on a single terminal line."""

    def __init__(self):
        self.last_line_length = 0

    def __call__(self, event: ProgressEvent):
        if event.phase == PHASE_PING:
            progress_str = f"Ping: {event.ping_ms:.2f} ms | {event.percent:.0f}%"
        else:
            progress_str = (
                f"{event.phase.capitalize()}: {format_speed(event.mbps)} | {event.percent:.0f}%"
            )

        # Pad with spaces to overwrite any remaining characters from previous line
        if len(progress_str) < self.last_line_length:
            progress_str += " " * (self.last_line_length - len(progress_str))
        self.last_line_length = len(progress_str)

        print(f"\r{progress_str}", end="", flush=True)


async def cli():
    """Main entry point for the benchmark tool."""
    args = parse_arguments()
    setup_logging(args.debug)

    config = config_from_args(args)
    if not args.json:
        config = config._replace(progress=ProgressLine())

    try:
        result = await run_speed_test(config)
    except SpeedBenchmarkError as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print_json_results(result)
    else:
        print_results(result, normalize_config(config).base_url)
