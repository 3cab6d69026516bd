"""Tests for the run orchestrator and result output."""

import json
from datetime import timedelta

import httpx
import pytest

from speed_benchmark.constants import MEGABYTE
from speed_benchmark.exceptions import NoDataError, SpeedBenchmarkError, TransportError
from speed_benchmark.main import SpeedTest, print_json_results, print_results, run_speed_test
from speed_benchmark.structs import (
    LatencyMetrics,
    RunConfig,
    RunResult,
    RunState,
    ThroughputMetrics,
)


def endpoint(calls, download_body=b"\x00" * MEGABYTE, fail_download=False):
    async def handler(request):
        calls.append(request.url.path)
        if request.url.path == "/ping":
            return httpx.Response(200, text="pong")
        if request.url.path == "/download":
            if fail_download:
                raise httpx.ReadError("connection reset", request=request)
            return httpx.Response(200, content=download_body)
        if request.url.path == "/upload":
            await request.aread()
            return httpx.Response(200)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


class TestSpeedTest:
    """Test phase sequencing."""

    @pytest.mark.asyncio
    async def test_full_run(self, run_config, events):
        calls = []
        test = SpeedTest(run_config._replace(progress=events), transport=endpoint(calls))

        result = await test.run()

        assert test.state == RunState.DONE
        assert result.download.bytes == run_config.streams * MEGABYTE
        assert result.upload.bytes > 0
        assert result.ping.min <= result.ping.avg <= result.ping.p95
        assert calls[: run_config.ping_count] == ["/ping"] * run_config.ping_count
        assert calls.index("/upload") > max(i for i, path in enumerate(calls) if path == "/download")

        phases = [event.phase for event in events]
        assert phases.index("download") > phases.index("ping")
        assert phases.index("upload") > max(i for i, p in enumerate(phases) if p == "download")
        assert [e.percent for e in events if e.phase == "download"][-1] == 100
        assert [e.percent for e in events if e.phase == "upload"][-1] == 100

    @pytest.mark.asyncio
    async def test_failed_phase_stops_the_run(self, run_config):
        calls = []
        test = SpeedTest(run_config, transport=endpoint(calls, fail_download=True))

        with pytest.raises(TransportError):
            await test.run()

        assert test.state == RunState.FAILED
        assert "/upload" not in calls

    @pytest.mark.asyncio
    async def test_empty_download_is_no_data(self, run_config):
        calls = []
        with pytest.raises(NoDataError):
            await run_speed_test(run_config, transport=endpoint(calls, download_body=b""))
        assert "/upload" not in calls

    @pytest.mark.asyncio
    async def test_invalid_url_fails_the_run(self):
        test = SpeedTest(RunConfig(base_url="http://[::1", ping_count=1))

        with pytest.raises(SpeedBenchmarkError) as exc_info:
            await test.run()

        assert test.state == RunState.FAILED
        assert exc_info.value.phase == "ping"
        assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)

    def test_config_is_normalized(self):
        test = SpeedTest(RunConfig(base_url="http://speed.test/"))
        assert test.config.base_url == "http://speed.test"
        assert test.config.streams > 0
        assert test.state == RunState.INIT


RESULT = RunResult(
    ping=LatencyMetrics(
        min=timedelta(microseconds=10_123),
        avg=timedelta(microseconds=20_456),
        p95=timedelta(milliseconds=30),
    ),
    download=ThroughputMetrics(mbps=94.3456, bytes=50 * MEGABYTE, duration=timedelta(seconds=4)),
    upload=ThroughputMetrics(mbps=12.001, bytes=18 * MEGABYTE, duration=timedelta(seconds=12)),
)


def test_result_to_dict():
    assert RESULT.to_dict() == {
        "ping_ms": 10.12,
        "ping_avg_ms": 20.46,
        "ping_p95_ms": 30.0,
        "download_mbps": 94.35,
        "upload_mbps": 12.0,
    }


def test_print_json_results(capsys):
    print_json_results(RESULT)
    assert json.loads(capsys.readouterr().out) == RESULT.to_dict()


def test_print_results(capsys):
    print_results(RESULT, "http://speed.test")
    out = capsys.readouterr().out
    assert "http://speed.test" in out
    assert "Ping: 10.12 ms (avg 20.46 ms, p95 30.00 ms)" in out
    assert "Download: 94.35 Mbps (50.00 MB in 4.00 seconds)" in out
    assert "Upload: 12.00 Mbps" in out
