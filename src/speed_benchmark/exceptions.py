"""Errors raised by the measurement engine."""

import httpx

# httpx failures that are not subclasses of httpx.HTTPError still break a request
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError)


class SpeedBenchmarkError(Exception):
    """Base class for every fatal measurement error."""

    def __init__(self, message: str, phase: str | None = None):
        super().__init__(message)
        self.phase = phase


class TransportError(SpeedBenchmarkError):
    """Network or I/O failure that is neither a normal end of stream nor an expected cancellation."""
    pass


class NoDataError(SpeedBenchmarkError):
    """A phase finished without error but measured nothing."""
    pass
