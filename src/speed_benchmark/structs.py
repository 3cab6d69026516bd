from collections.abc import Callable
from datetime import timedelta
from enum import Enum
from typing import NamedTuple


class ProgressEvent(NamedTuple):
    phase: str
    percent: float
    mbps: float
    ping_ms: float


ProgressSink = Callable[[ProgressEvent], None]


class RunConfig(NamedTuple):
    base_url: str = ""
    duration: float = 0.0
    streams: int = 0
    chunk_size: int = 0
    download_mb: int = 0
    ping_count: int = 0
    timeout: float = 0.0
    progress: ProgressSink | None = None


class LatencyMetrics(NamedTuple):
    min: timedelta
    avg: timedelta
    p95: timedelta


class ThroughputMetrics(NamedTuple):
    mbps: float
    bytes: int
    duration: timedelta


class RunResult(NamedTuple):
    ping: LatencyMetrics
    download: ThroughputMetrics
    upload: ThroughputMetrics

    def to_dict(self) -> dict:
        """Machine-readable summary with two-decimal rounding."""
        return {
            "ping_ms": round(to_milliseconds(self.ping.min), 2),
            "ping_avg_ms": round(to_milliseconds(self.ping.avg), 2),
            "ping_p95_ms": round(to_milliseconds(self.ping.p95), 2),
            "download_mbps": round(self.download.mbps, 2),
            "upload_mbps": round(self.upload.mbps, 2),
        }


class TransferOutcome(Enum):
    """How a single stream finished when it did not fail."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RunState(Enum):
    INIT = "init"
    PINGING = "pinging"
    DOWNLOADING = "downloading"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


def to_milliseconds(value: timedelta) -> float:
    return value / timedelta(milliseconds=1)
