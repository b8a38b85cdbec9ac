"""Flask application factory for the paging simulator's web API.

The ``create_app`` function builds (or accepts) a simulator and an
event driver and returns a Flask app exposing them as JSON, enough for
a browser visualiser to draw RAM and swap and to step the simulation:

- ``GET /api/status`` — capacity snapshot, geometry and driver state.
- ``GET /api/frames`` — every RAM and swap slot as ``[pid, page]`` or null.
- ``GET /api/processes`` — live processes with their page tables.
- ``POST /api/processes`` — create a process (``{"size_bytes": n}``,
  or a random size when omitted).
- ``DELETE /api/processes/<pid>`` — terminate a process.
- ``POST /api/access`` — touch ``{"pid": p, "virtual_page": v}`` or
  ``{"pid": p, "address": a}``.
- ``POST /api/tick`` — advance the driver by one tick.
- ``POST /api/pause`` / ``POST /api/resume`` — freeze and continue the
  driver's interval timers.
- ``POST /api/reset`` — drop all processes and counters and return the
  driver to idle.
- ``GET /api/log`` — log entries, optionally ``?min_level=WARNING``.

The driver keeps its timers outside the simulator's lock, so every route
that touches it holds the app's own driver lock.
"""

from __future__ import annotations

import threading

from flask import Flask, Response, jsonify, request

from pagesim.config import SimulatorConfig
from pagesim.driver import DriverState, EventDriver
from pagesim.errors import (
    AdmissionDeniedError,
    NoVictimError,
    PageNotFoundError,
    ProcessNotFoundError,
)
from pagesim.logging import LogLevel
from pagesim.memory.frames import Tier
from pagesim.memory.replacement import AccessResult
from pagesim.monitor import MemorySnapshot
from pagesim.simulator import Simulator

_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409
_HTTP_CREATED = 201

DEFAULT_WEB_CONFIG = SimulatorConfig.from_units(
    physical_memory_mb=128,
    page_size_kb=4,
    min_process_size_mb=4,
    max_process_size_mb=32,
)


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status


def _int_field(data: dict[str, object], key: str) -> int | None:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def create_app(
    simulator: Simulator | None = None,
    driver: EventDriver | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        simulator: The simulator to serve; a default 128 MB machine is
            built when omitted.
        driver: The driver stepped by ``/api/tick``; one is built over
            *simulator* when omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    sim = simulator if simulator is not None else Simulator(DEFAULT_WEB_CONFIG)
    drv = driver if driver is not None else EventDriver(sim)

    driver_lock = threading.Lock()

    app = Flask(__name__)

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the capacity snapshot, geometry and driver state."""
        with driver_lock:
            driver_info = {
                "state": str(drv.state),
                "paused": drv.state is DriverState.PAUSED,
                "ticks": drv.tick_count,
                "elapsed": drv.elapsed(),
                "stop_reason": None if drv.stop_reason is None else str(drv.stop_reason),
            }
        return jsonify(
            {
                "snapshot": sim.snapshot().to_dict(),
                "geometry": sim.geometry.to_dict(),
                "driver": driver_info,
            }
        )

    @app.route("/api/frames")
    def frames() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return each tier's slots in frame order."""
        layout = sim.frame_map()
        return jsonify({str(tier): [list(s) if s else None for s in layout[tier]] for tier in Tier})

    @app.route("/api/processes", methods=["GET"])
    def list_processes() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return all live processes."""
        return jsonify({"processes": [p.to_dict() for p in sim.processes()]})

    @app.route("/api/processes", methods=["POST"])
    def create_process() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Create a process of the requested (or a random) size."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        try:
            if "size_bytes" in data:
                size = _int_field(data, "size_bytes")
                if size is None or size <= 0:
                    return _error("'size_bytes' must be a positive integer", _HTTP_BAD_REQUEST)
                process = sim.create_process(size)
            else:
                process = sim.create_random_process()
        except AdmissionDeniedError as exc:
            return _error(str(exc), _HTTP_CONFLICT)
        return jsonify(process.to_dict()), _HTTP_CREATED

    @app.route("/api/processes/<int:pid>", methods=["DELETE"])
    def terminate_process(pid: int) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Terminate a process and report the pages it freed."""
        try:
            process = sim.terminate_process(pid)
        except ProcessNotFoundError as exc:
            return _error(str(exc), _HTTP_NOT_FOUND)
        return jsonify({"pid": process.pid, "pages_freed": process.num_pages})

    @app.route("/api/access", methods=["POST"])
    def access() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Touch a virtual page or address of a process."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error("Expected a JSON object", _HTTP_BAD_REQUEST)
        pid = _int_field(data, "pid")
        page = _int_field(data, "virtual_page")
        address = _int_field(data, "address")
        if pid is None:
            return _error("'pid' must be an integer", _HTTP_BAD_REQUEST)
        if address is not None and address < 0:
            return _error("'address' must be non-negative", _HTTP_BAD_REQUEST)
        try:
            if address is not None:
                result = sim.access_address(pid, address)
            elif page is not None:
                result = sim.access_page(pid, page)
            else:
                return _error("Need 'virtual_page' or 'address'", _HTTP_BAD_REQUEST)
        except (ProcessNotFoundError, PageNotFoundError) as exc:
            return _error(str(exc), _HTTP_NOT_FOUND)
        except NoVictimError as exc:
            return _error(str(exc), _HTTP_CONFLICT)
        return jsonify(result.to_dict())

    @app.route("/api/tick", methods=["POST"])
    def tick() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Advance the driver by one tick, starting it if idle."""
        with driver_lock:
            if drv.state is DriverState.IDLE:
                drv.start()
            result = drv.tick()
        access_result = result["access"]
        status_snapshot = result["status"]
        stopped = result["stopped"]
        return jsonify(
            {
                "tick": result["tick"],
                "elapsed": result["elapsed"],
                "created": result["created"],
                "finished": result["finished"],
                "access": access_result.to_dict() if isinstance(access_result, AccessResult) else None,
                "status": (
                    status_snapshot.to_dict() if isinstance(status_snapshot, MemorySnapshot) else None
                ),
                "stopped": None if stopped is None else str(stopped),
            }
        )

    @app.route("/api/pause", methods=["POST"])
    def pause() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Freeze the driver's interval timers."""
        with driver_lock:
            try:
                drv.pause()
            except RuntimeError as exc:
                return _error(str(exc), _HTTP_CONFLICT)
            return jsonify({"state": str(drv.state)})

    @app.route("/api/resume", methods=["POST"])
    def resume() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Continue a paused driver."""
        with driver_lock:
            try:
                drv.resume()
            except RuntimeError as exc:
                return _error(str(exc), _HTTP_CONFLICT)
            return jsonify({"state": str(drv.state)})

    @app.route("/api/reset", methods=["POST"])
    def reset() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Drop every process and counter and return the driver to idle."""
        with driver_lock:
            drv.reset()
            sim.reset()
        return jsonify(sim.snapshot().to_dict())

    @app.route("/api/log")
    def log() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return log entries, optionally filtered by minimum level."""
        level_name = request.args.get("min_level")
        min_level = None
        if level_name is not None:
            try:
                min_level = LogLevel[level_name.upper()]
            except KeyError:
                return _error(f"Unknown level {level_name!r}", _HTTP_BAD_REQUEST)
        entries = sim.logger.filter(min_level=min_level)
        return jsonify({"entries": [e.to_dict() for e in entries]})

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``pagesim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)

