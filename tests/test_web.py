"""Tests for the JSON web API.

Tests use ``pytest.importorskip`` so they are skipped gracefully when
Flask is not installed.
"""

from __future__ import annotations

import threading
import time
from random import Random
from typing import Any

import pytest

flask = pytest.importorskip("flask")

from pagesim.config import MemoryGeometry, SimulatorConfig  # noqa: E402
from pagesim.driver import DriverConfig, EventDriver  # noqa: E402
from pagesim.simulator import Simulator  # noqa: E402
from pagesim.web.app import create_app  # noqa: E402

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409

PAGE_SIZE = 4096
FAST_FRAMES = 4
SLOW_FRAMES = 4


class FakeTime:
    """A monotonic clock the tests move by hand."""

    def __init__(self) -> None:
        """Start at zero."""
        self.now = 0.0

    def __call__(self) -> float:
        """Return the fake time."""
        return self.now


def _create_app(
    fake: FakeTime | None = None,
    *,
    fast: int = FAST_FRAMES,
    slow: int = SLOW_FRAMES,
    process_pages: int = 1,
) -> Any:
    """Create an app over a small simulator whose random processes have a fixed size."""
    config = SimulatorConfig(
        physical_memory_bytes=fast * PAGE_SIZE,
        page_size_bytes=PAGE_SIZE,
        min_process_size_bytes=process_pages * PAGE_SIZE,
        max_process_size_bytes=process_pages * PAGE_SIZE,
    )
    geometry = MemoryGeometry.from_virtual_size(config, (fast + slow) * PAGE_SIZE)
    sim = Simulator(config, rng=Random(0), clock=lambda: 0.0, geometry=geometry)
    driver = EventDriver(
        sim,
        config=DriverConfig(warmup=1000.0),
        monotonic=fake if fake is not None else FakeTime(),
    )
    app = create_app(sim, driver)
    app.config["TESTING"] = True
    return app


def _create_client(fake: FakeTime | None = None) -> Any:
    """Create a test client over a 4 + 4 frame simulator."""
    return _create_app(fake).test_client()


class TestAppCreation:
    """Verify the app factory."""

    def test_create_app_returns_flask(self) -> None:
        """create_app should return a Flask application."""
        assert isinstance(create_app(), flask.Flask)


class TestReadEndpoints:
    """Verify status, frames and process listings."""

    def test_status(self) -> None:
        """Status carries snapshot, geometry and driver state."""
        client = _create_client()
        data = client.get("/api/status").get_json()
        assert data["snapshot"]["fast_capacity"] == FAST_FRAMES
        assert data["geometry"]["slow_frames"] == SLOW_FRAMES
        assert data["driver"]["state"] == "idle"
        assert data["driver"]["stop_reason"] is None

    def test_frames(self) -> None:
        """Frames list [pid, page] per slot, null when free."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": 5 * PAGE_SIZE})
        data = client.get("/api/frames").get_json()
        assert data["ram"] == [[1, 0], [1, 1], [1, 2], [1, 3]]
        assert data["swap"] == [[1, 4], None, None, None]

    def test_processes(self) -> None:
        """Live processes are listed with their page tables."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": PAGE_SIZE})
        processes = client.get("/api/processes").get_json()["processes"]
        assert [p["pid"] for p in processes] == [1]
        assert processes[0]["page_table"] == [{"virtual_page": 0, "tier": "ram", "frame": 0}]


class TestProcessEndpoints:
    """Verify creating and terminating processes."""

    def test_create_with_size(self) -> None:
        """An explicit size is honoured."""
        resp = _create_client().post("/api/processes", json={"size_bytes": 2 * PAGE_SIZE})
        assert resp.status_code == HTTP_CREATED
        assert resp.get_json()["num_pages"] == 2

    def test_create_random(self) -> None:
        """Omitting the size draws one from the configured range."""
        resp = _create_client().post("/api/processes", json={})
        assert resp.status_code == HTTP_CREATED
        assert resp.get_json()["size_bytes"] == PAGE_SIZE

    def test_create_bad_size(self) -> None:
        """Non-positive or non-integer sizes are a bad request."""
        client = _create_client()
        for size in (0, -5, "big", True):
            resp = client.post("/api/processes", json={"size_bytes": size})
            assert resp.status_code == HTTP_BAD_REQUEST

    def test_create_too_large(self) -> None:
        """A process that does not fit is a conflict."""
        resp = _create_client().post("/api/processes", json={"size_bytes": 100 * PAGE_SIZE})
        assert resp.status_code == HTTP_CONFLICT
        assert "Cannot admit process" in resp.get_json()["error"]

    def test_terminate(self) -> None:
        """Terminating reports the pages freed."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": 3 * PAGE_SIZE})
        resp = client.delete("/api/processes/1")
        assert resp.status_code == HTTP_OK
        assert resp.get_json() == {"pid": 1, "pages_freed": 3}

    def test_terminate_unknown(self) -> None:
        """An unknown PID is not found."""
        assert _create_client().delete("/api/processes/9").status_code == HTTP_NOT_FOUND


class TestAccessEndpoint:
    """Verify page and address accesses."""

    def test_hit(self) -> None:
        """Touching a RAM page is a hit."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": PAGE_SIZE})
        data = client.post("/api/access", json={"pid": 1, "virtual_page": 0}).get_json()
        assert data["kind"] == "hit"

    def test_fault_by_address(self) -> None:
        """An address in a swapped page faults and evicts the oldest page."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": 5 * PAGE_SIZE})
        data = client.post("/api/access", json={"pid": 1, "address": 4 * PAGE_SIZE + 1}).get_json()
        assert data["kind"] == "fault"
        assert (data["evicted_pid"], data["evicted_virtual_page"]) == (1, 0)

    def test_bad_requests(self) -> None:
        """Missing body, bad pid, negative address or no target are rejected."""
        client = _create_client()
        assert client.post("/api/access").status_code == HTTP_BAD_REQUEST
        assert client.post("/api/access", json={"pid": "x"}).status_code == HTTP_BAD_REQUEST
        assert (
            client.post("/api/access", json={"pid": 1, "address": -1}).status_code
            == HTTP_BAD_REQUEST
        )
        assert client.post("/api/access", json={"pid": 1}).status_code == HTTP_BAD_REQUEST

    def test_not_found(self) -> None:
        """Unknown processes and out-of-range pages are not found."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": PAGE_SIZE})
        assert (
            client.post("/api/access", json={"pid": 7, "virtual_page": 0}).status_code
            == HTTP_NOT_FOUND
        )
        assert (
            client.post("/api/access", json={"pid": 1, "virtual_page": 3}).status_code
            == HTTP_NOT_FOUND
        )


class TestDriverEndpoints:
    """Verify ticking, resetting and the log."""

    def test_tick_starts_and_creates(self) -> None:
        """The first tick starts the driver; a later one creates a process."""
        fake = FakeTime()
        client = _create_client(fake)
        first = client.post("/api/tick").get_json()
        assert first["tick"] == 1
        assert first["created"] is None
        fake.now = 2.0
        second = client.post("/api/tick").get_json()
        assert second["created"] == 1
        assert second["stopped"] is None
        assert client.get("/api/status").get_json()["driver"]["state"] == "running"

    def test_reset(self) -> None:
        """Reset empties memory and counters."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": PAGE_SIZE})
        data = client.post("/api/reset").get_json()
        assert data["live_processes"] == 0
        assert data["processes_created"] == 0

    def test_log_filters_by_level(self) -> None:
        """min_level keeps only entries at or above it."""
        client = _create_client()
        client.post("/api/processes", json={"size_bytes": 5 * PAGE_SIZE})
        client.post("/api/access", json={"pid": 1, "virtual_page": 4})
        entries = client.get("/api/log?min_level=warning").get_json()["entries"]
        assert entries
        assert {e["level"] for e in entries} == {"WARNING"}
        everything = client.get("/api/log").get_json()["entries"]
        assert len(everything) > len(entries)

    def test_log_unknown_level(self) -> None:
        """An unknown level name is a bad request."""
        assert _create_client().get("/api/log?min_level=loud").status_code == HTTP_BAD_REQUEST

    def test_reset_after_out_of_memory_restarts_driver(self) -> None:
        """After a stop, reset lets ticking create processes again."""
        fake = FakeTime()
        client = _create_app(fake, fast=2, slow=2, process_pages=3).test_client()
        client.post("/api/tick")
        fake.now = 2.0
        assert client.post("/api/tick").get_json()["created"] == 1
        fake.now = 4.0
        assert client.post("/api/tick").get_json()["stopped"] == "out_of_memory"

        client.post("/api/reset")
        driver = client.get("/api/status").get_json()["driver"]
        assert (driver["state"], driver["stop_reason"], driver["ticks"]) == ("idle", None, 0)

        assert client.post("/api/tick").get_json()["stopped"] is None
        fake.now = 6.0
        result = client.post("/api/tick").get_json()
        assert result["created"] == 1
        assert result["stopped"] is None


class TestPauseResume:
    """Verify pausing and resuming the driver over HTTP."""

    def test_pause_and_resume(self) -> None:
        """A running driver pauses, reports it, and resumes."""
        client = _create_client()
        client.post("/api/tick")
        resp = client.post("/api/pause")
        assert resp.status_code == HTTP_OK
        assert resp.get_json()["state"] == "paused"
        assert client.get("/api/status").get_json()["driver"]["paused"] is True
        resp = client.post("/api/resume")
        assert resp.status_code == HTTP_OK
        assert resp.get_json()["state"] == "running"
        assert client.get("/api/status").get_json()["driver"]["paused"] is False

    def test_paused_tick_does_nothing(self) -> None:
        """Ticks while paused neither count nor create."""
        fake = FakeTime()
        client = _create_client(fake)
        client.post("/api/tick")
        client.post("/api/pause")
        fake.now = 10.0
        result = client.post("/api/tick").get_json()
        assert result["created"] is None
        assert result["tick"] == 1

    def test_pause_when_idle_conflicts(self) -> None:
        """An idle driver cannot be paused."""
        resp = _create_client().post("/api/pause")
        assert resp.status_code == HTTP_CONFLICT
        assert "Cannot pause" in resp.get_json()["error"]

    def test_resume_when_running_conflicts(self) -> None:
        """Only a paused driver can resume."""
        client = _create_client()
        client.post("/api/tick")
        resp = client.post("/api/resume")
        assert resp.status_code == HTTP_CONFLICT
        assert "Cannot resume" in resp.get_json()["error"]


class SlowTime(FakeTime):
    """A fake clock that yields the thread on every read."""

    def __call__(self) -> float:
        """Return the fake time after a short real pause."""
        time.sleep(0.001)
        return self.now


class TestConcurrentTicks:
    """Verify the driver is stepped by one request at a time."""

    def test_concurrent_ticks_create_once(self) -> None:
        """Simultaneous ticks at the same instant create a single process."""
        fake = SlowTime()
        app = _create_app(fake)
        app.test_client().post("/api/tick")
        fake.now = 2.0
        created: list[int | None] = []

        def tick() -> None:
            created.append(app.test_client().post("/api/tick").get_json()["created"])

        threads = [threading.Thread(target=tick) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert [pid for pid in created if pid is not None] == [1]
        processes = app.test_client().get("/api/processes").get_json()["processes"]
        assert len(processes) == 1
