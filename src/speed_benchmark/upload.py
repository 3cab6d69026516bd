import asyncio
import logging
import time
from datetime import timedelta

import httpx

from speed_benchmark.constants import PHASE_UPLOAD, UPLOAD_PATH
from speed_benchmark.exceptions import REQUEST_ERRORS
from speed_benchmark.stats import percent_elapsed
from speed_benchmark.structs import TransferOutcome
from speed_benchmark.transfer import AsyncTransfer
from speed_benchmark.utils import ByteCounter, ErrorSlot, RandomByteSource

logger = logging.getLogger(__name__)


class AsyncUploader(AsyncTransfer):
    """
    Parallel time-boxed uploads of random data.

    Each stream posts an unbounded body until its own deadline of ``duration``
    seconds. Running into that deadline is the normal way for a stream to end;
    bytes count as sent as soon as the source has produced them.
    """

    phase = PHASE_UPLOAD
    no_data_message = "upload sent no data"

    def progress_percent(self, current_bytes: int, elapsed: timedelta) -> float:
        return percent_elapsed(elapsed, timedelta(seconds=self.config.duration))

    def byte_source(self, counter: ByteCounter, deadline: float) -> RandomByteSource:
        stream_deadline = min(time.monotonic() + self.config.duration, deadline)
        return RandomByteSource(self.config.chunk_size, counter, deadline=stream_deadline)

    async def transfer_stream(
        self,
        client: httpx.AsyncClient,
        stream_id: int,
        counter: ByteCounter,
        errors: ErrorSlot,
        deadline: float,
    ) -> TransferOutcome | None:
        url = self.config.base_url + UPLOAD_PATH
        source = self.byte_source(counter, deadline)

        try:
            response = await asyncio.wait_for(
                client.post(
                    url,
                    content=source,
                    headers={"Content-Type": "application/octet-stream"},
                ),
                timeout=source.remaining(),
            )
        except asyncio.TimeoutError:
            logger.debug(
                "Upload stream %d stopped at its deadline after %d bytes",
                stream_id,
                source.bytes_generated,
            )
            return TransferOutcome.CANCELLED
        except httpx.TransportError as exc:
            if source.stopped:
                # The connection broke because our own deadline ended the body
                logger.debug("Upload stream %d ended by deadline: %s", stream_id, exc)
                return TransferOutcome.CANCELLED
            logger.debug("Upload stream %d failed: %s", stream_id, exc)
            errors.set(self.transport_error(f"stream {stream_id} failed: {exc}", exc))
            return None
        except REQUEST_ERRORS as exc:
            logger.debug("Upload stream %d failed: %s", stream_id, exc)
            errors.set(self.transport_error(f"stream {stream_id} failed: {exc}", exc))
            return None

        logger.debug(
            "Upload stream %d finished with status %d after %d bytes",
            stream_id,
            response.status_code,
            source.bytes_generated,
        )
        return TransferOutcome.COMPLETED
