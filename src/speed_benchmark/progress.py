"""
Best-effort progress delivery.

Producers enqueue events without ever waiting: when the bounded queue is full the
new event is dropped. A consumer task drains the queue into the caller's sink, so a
slow display never stalls a measurement.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from datetime import timedelta

from speed_benchmark.constants import PROGRESS_INTERVAL, PROGRESS_QUEUE_SIZE
from speed_benchmark.stats import clamp_percent
from speed_benchmark.structs import ProgressEvent, ProgressSink

logger = logging.getLogger(__name__)

# Maps elapsed phase time to (percent, mbps)
SampleFunc = Callable[[timedelta], tuple[float, float]]


class ProgressReporter:
    """Bounded, non-blocking queue of progress events feeding a sink."""

    def __init__(self, sink: ProgressSink, maxsize: int = PROGRESS_QUEUE_SIZE):
        """
        Initialize the reporter.

        Args:
            sink: Callable receiving each delivered ProgressEvent
            maxsize: Queue capacity; events beyond it are dropped
        """
        self.sink = sink
        self.queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize)
        self.dropped = 0
        self._consumer: asyncio.Task | None = None

    def start(self):
        """Start draining the queue. Must be called from a running event loop."""
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._consume())

    async def aclose(self):
        """Stop the consumer and deliver whatever is still queued."""
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

        while not self.queue.empty():
            self._deliver(self.queue.get_nowait())

        if self.dropped:
            logger.debug("Dropped %d progress events on a full queue", self.dropped)

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def publish(
        self, phase: str, percent: float, mbps: float = 0.0, ping_ms: float = 0.0
    ) -> bool:
        """
        Clamp and enqueue an event without blocking.

        Returns:
            False if the queue was full and the event was dropped
        """
        event = ProgressEvent(
            phase=phase,
            percent=clamp_percent(percent),
            mbps=max(mbps, 0.0),
            ping_ms=max(ping_ms, 0.0),
        )
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    def sample(
        self, phase: str, func: SampleFunc, interval: float = PROGRESS_INTERVAL
    ) -> "ProgressSampler":
        return ProgressSampler(self, phase, func, interval)

    async def _consume(self):
        while True:
            event = await self.queue.get()
            self._deliver(event)

    def _deliver(self, event: ProgressEvent):
        try:
            self.sink(event)
        except Exception:
            logger.warning("Progress sink failed for %s event", event.phase, exc_info=True)


class ProgressSampler:
    """Publishes a computed event every ``interval`` seconds while active."""

    def __init__(
        self,
        reporter: ProgressReporter,
        phase: str,
        func: SampleFunc,
        interval: float = PROGRESS_INTERVAL,
    ):
        self.reporter = reporter
        self.phase = phase
        self.func = func
        self.interval = interval
        self.start_time = None
        self._task: asyncio.Task | None = None

    def elapsed(self) -> timedelta:
        return timedelta(seconds=time.perf_counter() - self.start_time)

    def start(self):
        self.start_time = time.perf_counter()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            percent, mbps = self.func(self.elapsed())
            self.reporter.publish(self.phase, percent, mbps)
