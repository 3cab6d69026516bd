"""HTTP Network Speed Benchmark Tool."""

import asyncio
import sys

from speed_benchmark.cli import cli


def main():
    try:
        asyncio.run(cli())
    except KeyboardInterrupt:
        print("\nBenchmark interrupted by user.")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
