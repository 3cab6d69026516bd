import asyncio
import os
import re
import threading
import time

from speed_benchmark.constants import MEGABYTE


class ByteCounter:
    """Byte total shared by every stream of a phase."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = 0

    def add(self, num_bytes: int) -> int:
        """
        Add to the total.

        Args:
            num_bytes: Number of bytes moved by the caller

        Returns:
            The updated total
        """
        with self._lock:
            self._value += num_bytes
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ErrorSlot:
    """Holds the first fatal error of a phase; later errors are discarded."""

    def __init__(self):
        self._lock = threading.Lock()
        self._error: BaseException | None = None

    def set(self, error: BaseException) -> bool:
        """Store ``error`` unless one is already held. Returns True if it was stored."""
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> BaseException | None:
        with self._lock:
            return self._error

    def raise_if_set(self):
        error = self.error
        if error is not None:
            raise error


class RandomByteSource:
    """
    Unbounded stream of random bytes used as an upload body.

    The source stops producing once its deadline passes or ``cancel`` is called.
    Every byte it hands out is added to the shared counter.
    """

    def __init__(
        self,
        chunk_size: int,
        counter: ByteCounter | None = None,
        deadline: float | None = None,
    ):
        """
        Initialize the source.

        Args:
            chunk_size: Upper bound for a single read
            counter: Shared phase counter, optional
            deadline: time.monotonic() value after which no more bytes are produced
        """
        self.chunk_size = chunk_size
        self.counter = counter
        self.deadline = deadline
        self.bytes_generated = 0
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def stopped(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def read(self, size: int = -1) -> bytes:
        """Return up to ``chunk_size`` random bytes, or b"" once stopped."""
        if self.stopped:
            return b""
        if size < 0 or size > self.chunk_size:
            size = self.chunk_size

        data = os.urandom(size)
        self.bytes_generated += len(data)
        if self.counter is not None:
            self.counter.add(len(data))
        return data

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        data = self.read()
        if not data:
            raise StopAsyncIteration
        # Let the sampler and the other streams run between chunks
        await asyncio.sleep(0)
        return data


def format_speed(mbps: float) -> str:
    """
    Format a rate in megabits per second.

    Args:
        mbps: Speed in Mbps

    Returns:
        Formatted speed string, switching to Gbps above 1000 Mbps
    """
    if mbps >= 1000:
        return f"{mbps / 1000:.2f} Gbps"
    return f"{mbps:.2f} Mbps"


def format_size(size: float) -> str:
    """
    Format size in bytes to human-readable format.

    Args:
        size: Size in bytes

    Returns:
        Formatted size string
    """
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    return f"{size:.2f} {units[unit_index]}"


def parse_size(size_str: str) -> int:
    """
    Parse a size string with optional suffix (KB, MB) to bytes.

    Args:
        size_str: Size string (e.g., "64KB", "1MB", "4096")

    Returns:
        Size in bytes
    """
    match = re.match(r"^(\d+)([KM]B)?$", size_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(
            f"Invalid size format: {size_str}. Expected format: NUMBER[KB|MB]"
        )

    value, unit = match.groups()
    value = int(value)

    if unit:
        unit = unit.upper()
        if unit == "KB":
            value *= 1024
        elif unit == "MB":
            value *= MEGABYTE

    return value


def parse_duration(duration_str: str) -> float:
    """
    Parse a duration string to seconds.

    Args:
        duration_str: Plain seconds ("12", "0.5") or suffixed ("500ms", "12s", "1m")

    Returns:
        Duration in seconds
    """
    match = re.match(r"^(-?\d+(?:\.\d+)?)(ms|s|m)?$", duration_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(
            f"Invalid duration format: {duration_str}. Expected format: NUMBER[ms|s|m]"
        )

    value, unit = match.groups()
    value = float(value)

    if unit:
        unit = unit.lower()
        if unit == "ms":
            value /= 1000
        elif unit == "m":
            value *= 60

    return value
