import asyncio
import logging
from datetime import timedelta

import httpx

from speed_benchmark.constants import DOWNLOAD_PATH, MEGABYTE, PHASE_DOWNLOAD
from speed_benchmark.exceptions import REQUEST_ERRORS
from speed_benchmark.stats import percent_done
from speed_benchmark.structs import TransferOutcome
from speed_benchmark.transfer import AsyncTransfer, time_left
from speed_benchmark.utils import ByteCounter, ErrorSlot

logger = logging.getLogger(__name__)


class AsyncDownloader(AsyncTransfer):
    """Parallel streaming downloads of a fixed size per stream."""

    phase = PHASE_DOWNLOAD
    no_data_message = "download returned no data"

    @property
    def per_stream_bytes(self) -> int:
        return self.config.download_mb * MEGABYTE

    @property
    def target_bytes(self) -> int:
        return self.per_stream_bytes * self.config.streams

    def progress_percent(self, current_bytes: int, elapsed: timedelta) -> float:
        return percent_done(current_bytes, self.target_bytes)

    async def read_stream(self, client: httpx.AsyncClient, counter: ByteCounter) -> int:
        """
        Stream one download body into the counter.

        Args:
            client: httpx.AsyncClient instance
            counter: Shared phase counter

        Returns:
            Bytes read by this stream
        """
        url = self.config.base_url + DOWNLOAD_PATH
        total_bytes = 0

        async with client.stream("GET", url, params={"size": self.per_stream_bytes}) as response:
            response.raise_for_status()

            async for chunk in response.aiter_bytes(chunk_size=self.config.chunk_size):
                total_bytes += len(chunk)
                counter.add(len(chunk))

        return total_bytes

    async def transfer_stream(
        self,
        client: httpx.AsyncClient,
        stream_id: int,
        counter: ByteCounter,
        errors: ErrorSlot,
        deadline: float,
    ) -> TransferOutcome | None:
        try:
            total_bytes = await asyncio.wait_for(
                self.read_stream(client, counter), timeout=time_left(deadline)
            )
        except asyncio.TimeoutError as exc:
            logger.debug("Download stream %d hit the phase deadline", stream_id)
            errors.set(self.transport_error(f"stream {stream_id} exceeded the deadline", exc))
            return None
        except REQUEST_ERRORS as exc:
            logger.debug("Download stream %d failed: %s", stream_id, exc)
            errors.set(self.transport_error(f"stream {stream_id} failed: {exc}", exc))
            return None

        logger.debug("Download stream %d read %d bytes", stream_id, total_bytes)
        return TransferOutcome.COMPLETED
