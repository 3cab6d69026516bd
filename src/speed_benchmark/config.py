import logging

from speed_benchmark.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DOWNLOAD_MB,
    DEFAULT_DURATION,
    DEFAULT_PING_COUNT,
    DEFAULT_STREAMS,
    DEFAULT_TIMEOUT,
    MIN_CHUNK_SIZE,
)
from speed_benchmark.structs import RunConfig

logger = logging.getLogger(__name__)


def normalize_config(config: RunConfig) -> RunConfig:
    """
    Fill unset or out-of-range fields with their defaults.

    Args:
        config: Possibly partial run configuration

    Returns:
        A fully populated RunConfig with positive numeric fields and a base URL
        without trailing slash
    """
    base_url = config.base_url or DEFAULT_BASE_URL
    normalized = config._replace(
        base_url=base_url.rstrip("/"),
        duration=config.duration if config.duration > 0 else DEFAULT_DURATION,
        streams=config.streams if config.streams >= 1 else DEFAULT_STREAMS,
        chunk_size=(
            config.chunk_size if config.chunk_size >= MIN_CHUNK_SIZE else DEFAULT_CHUNK_SIZE
        ),
        download_mb=config.download_mb if config.download_mb >= 1 else DEFAULT_DOWNLOAD_MB,
        ping_count=config.ping_count if config.ping_count >= 1 else DEFAULT_PING_COUNT,
        timeout=config.timeout if config.timeout > 0 else DEFAULT_TIMEOUT,
    )

    if normalized != config:
        logger.debug("Normalized run configuration: %s", normalized._replace(progress=None))
    return normalized
