#!/usr/bin/env python3
"""
Network Speed Benchmark

Measures latency, download and upload throughput against an HTTP load endpoint
that serves /ping, /download and /upload. Phases run one after another; the first
fatal error of any phase ends the whole run.
"""

import json
import logging

import httpx

from speed_benchmark.config import normalize_config
from speed_benchmark.download import AsyncDownloader
from speed_benchmark.latency import LatencyProber
from speed_benchmark.progress import ProgressReporter
from speed_benchmark.structs import RunConfig, RunResult, RunState, to_milliseconds
from speed_benchmark.upload import AsyncUploader
from speed_benchmark.utils import format_size, format_speed

logger = logging.getLogger(__name__)


class SpeedTest:
    """Run ping, download and upload phases in sequence."""

    def __init__(
        self,
        config: RunConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the run.

        Args:
            config: Possibly partial run configuration, normalized here
            transport: Optional httpx transport, mostly for tests
        """
        self.config = normalize_config(config)
        self.transport = transport
        self.state = RunState.INIT

    def create_client(self) -> httpx.AsyncClient:
        client_kwargs = {
            "timeout": httpx.Timeout(self.config.timeout),
            "follow_redirects": True,
        }
        if self.transport is not None:
            client_kwargs["transport"] = self.transport
        return httpx.AsyncClient(**client_kwargs)

    def _enter(self, state: RunState):
        logger.debug("Run state %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self) -> RunResult:
        """
        Execute all phases.

        Returns:
            RunResult with latency, download and upload metrics

        Raises:
            SpeedBenchmarkError: The first fatal error of the first failing phase
        """
        reporter = None
        if self.config.progress is not None:
            reporter = ProgressReporter(self.config.progress)
            reporter.start()

        try:
            async with self.create_client() as client:
                self._enter(RunState.PINGING)
                ping = await LatencyProber(self.config, reporter).run(client)

                self._enter(RunState.DOWNLOADING)
                download = await AsyncDownloader(self.config, reporter).run(client)

                self._enter(RunState.UPLOADING)
                upload = await AsyncUploader(self.config, reporter).run(client)
        except Exception as exc:
            logger.debug("Run failed during %s: %s", self.state.value, exc)
            self._enter(RunState.FAILED)
            raise
        finally:
            if reporter is not None:
                await reporter.aclose()

        self._enter(RunState.DONE)
        return RunResult(ping=ping, download=download, upload=upload)


async def run_speed_test(
    config: RunConfig, transport: httpx.AsyncBaseTransport | None = None
) -> RunResult:
    """Normalize ``config`` and run a complete measurement."""
    return await SpeedTest(config, transport=transport).run()


def print_results(result: RunResult, base_url: str):
    """
    Print a human-readable summary of a run.

    Args:
        result: Completed run result
        base_url: Endpoint the run was measured against
    """
    print(f"\n\nSpeed Benchmark Results ({base_url}):")
    print(
        f"Ping: {to_milliseconds(result.ping.min):.2f} ms "
        f"(avg {to_milliseconds(result.ping.avg):.2f} ms, "
        f"p95 {to_milliseconds(result.ping.p95):.2f} ms)"
    )
    for label, metrics in (("Download", result.download), ("Upload", result.upload)):
        print(
            f"{label}: {format_speed(metrics.mbps)} "
            f"({format_size(metrics.bytes)} in {metrics.duration.total_seconds():.2f} seconds)"
        )


def print_json_results(result: RunResult):
    print(json.dumps(result.to_dict()))
