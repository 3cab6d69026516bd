"""
Shared machinery for the multi-stream throughput phases.

A phase fans out one coroutine per stream, lets them all add to one ByteCounter,
keeps only the first fatal error in an ErrorSlot and turns the joined result into
ThroughputMetrics. Direction-specific work lives in the download and upload
subclasses.
"""

import asyncio
import contextlib
import logging
import time
from datetime import timedelta

import httpx

from speed_benchmark.constants import PHASE_GRACE
from speed_benchmark.exceptions import NoDataError, SpeedBenchmarkError, TransportError
from speed_benchmark.progress import ProgressReporter
from speed_benchmark.stats import bytes_to_mbps
from speed_benchmark.structs import RunConfig, ThroughputMetrics, TransferOutcome
from speed_benchmark.utils import ByteCounter, ErrorSlot

logger = logging.getLogger(__name__)


class AsyncTransfer:
    """Base class for a throughput phase."""

    phase = ""
    clock = staticmethod(time.perf_counter)
    no_data_message = "transfer returned no data"

    def __init__(self, config: RunConfig, reporter: ProgressReporter | None = None):
        """
        Initialize the phase.

        Args:
            config: Normalized run configuration
            reporter: Progress reporter, or None when nobody is listening
        """
        self.config = config
        self.reporter = reporter

    async def transfer_stream(
        self,
        client: httpx.AsyncClient,
        stream_id: int,
        counter: ByteCounter,
        errors: ErrorSlot,
        deadline: float,
    ) -> TransferOutcome | None:
        """
        Run a single stream until it ends, fails or runs out of time.

        Failures go to ``errors``; the return value is None in that case.
        """
        raise NotImplementedError

    def progress_percent(self, current_bytes: int, elapsed: timedelta) -> float:
        raise NotImplementedError

    def transport_error(self, message: str, cause: BaseException | None = None) -> TransportError:
        error = TransportError(f"{self.phase} {message}", phase=self.phase)
        error.__cause__ = cause
        return error

    async def run(self, client: httpx.AsyncClient) -> ThroughputMetrics:
        """
        Run all streams, join them and summarize the phase.

        Returns:
            ThroughputMetrics for this direction

        Raises:
            TransportError: First fatal error captured by any stream
            NoDataError: If the streams finished cleanly without moving a byte
        """
        counter = ByteCounter()
        errors = ErrorSlot()
        deadline = time.monotonic() + self.config.duration + PHASE_GRACE

        logger.debug("Starting %s phase with %d streams", self.phase, self.config.streams)
        start_time = self.clock()

        if self.reporter is not None:
            sampler = self.reporter.sample(
                self.phase,
                lambda elapsed: (
                    self.progress_percent(counter.value, elapsed),
                    bytes_to_mbps(counter.value, elapsed),
                ),
            )
        else:
            sampler = contextlib.nullcontext()

        async with sampler:
            tasks = [
                self.transfer_stream(client, i, counter, errors, deadline)
                for i in range(self.config.streams)
            ]
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        elapsed = timedelta(seconds=self.clock() - start_time)
        total_bytes = counter.value

        for outcome in outcomes:
            if isinstance(outcome, SpeedBenchmarkError):
                errors.set(outcome)
            elif isinstance(outcome, Exception):
                errors.set(self.transport_error(f"stream failed: {outcome!r}", outcome))
            elif isinstance(outcome, BaseException):
                raise outcome

        if self.reporter is not None:
            self.reporter.publish(self.phase, 100, bytes_to_mbps(total_bytes, elapsed))

        errors.raise_if_set()
        if total_bytes == 0:
            raise NoDataError(self.no_data_message, phase=self.phase)

        mbps = bytes_to_mbps(total_bytes, elapsed)
        logger.debug(
            "Finished %s phase: %d bytes in %.2fs (%.2f Mbps), outcomes %s",
            self.phase,
            total_bytes,
            elapsed.total_seconds(),
            mbps,
            [outcome.value for outcome in outcomes if isinstance(outcome, TransferOutcome)],
        )
        return ThroughputMetrics(mbps=mbps, bytes=total_bytes, duration=elapsed)


def time_left(deadline: float) -> float:
    return max(deadline - time.monotonic(), 0.0)
