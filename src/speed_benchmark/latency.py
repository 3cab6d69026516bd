import asyncio
import logging
import time
from datetime import timedelta

import httpx

from speed_benchmark.constants import PHASE_PING, PING_PATH, PING_PAUSE, PING_PERCENTILE
from speed_benchmark.exceptions import REQUEST_ERRORS, NoDataError, TransportError
from speed_benchmark.progress import ProgressReporter
from speed_benchmark.stats import average_duration, percentile_duration
from speed_benchmark.structs import LatencyMetrics, RunConfig, to_milliseconds

logger = logging.getLogger(__name__)


class LatencyProber:
    """Time sequential liveness probes against the endpoint."""

    def __init__(
        self,
        config: RunConfig,
        reporter: ProgressReporter | None = None,
        pause: float = PING_PAUSE,
    ):
        """
        Initialize the prober.

        Args:
            config: Normalized run configuration
            reporter: Progress reporter, or None when nobody is listening
            pause: Seconds to wait between probes
        """
        self.config = config
        self.reporter = reporter
        self.pause = pause

    async def probe(self, client: httpx.AsyncClient) -> timedelta:
        """
        Issue one probe and return its round trip, body included.

        Raises:
            TransportError: If the request fails or the status is not 2xx
        """
        url = self.config.base_url + PING_PATH
        start_time = time.perf_counter()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except REQUEST_ERRORS as exc:
            raise TransportError(f"ping failed: {exc}", phase=PHASE_PING) from exc
        return timedelta(seconds=time.perf_counter() - start_time)

    async def run(self, client: httpx.AsyncClient) -> LatencyMetrics:
        """
        Collect ``ping_count`` samples and summarize them.

        Returns:
            LatencyMetrics with min, average and 95th percentile round trip
        """
        count = self.config.ping_count
        samples: list[timedelta] = []

        for i in range(count):
            sample = await self.probe(client)
            samples.append(sample)
            logger.debug("Ping %d/%d: %.2f ms", i + 1, count, to_milliseconds(sample))

            if self.reporter is not None:
                self.reporter.publish(
                    PHASE_PING, (i + 1) / count * 100, ping_ms=to_milliseconds(sample)
                )
            if i < count - 1:
                await asyncio.sleep(self.pause)

        if not samples:
            raise NoDataError("ping returned no data", phase=PHASE_PING)

        samples.sort()
        return LatencyMetrics(
            min=samples[0],
            avg=average_duration(samples),
            p95=percentile_duration(samples, PING_PERCENTILE),
        )
