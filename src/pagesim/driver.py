"""Event driver — the fixed-interval loop that animates a simulation.

The driver is the only part of the system that knows about wall time.
It polls ``tick(now)`` every ``poll_interval`` seconds, and each tick
decides what is due:

    - every ``create_interval`` seconds: create a randomly sized process.
    - after ``warmup`` seconds, every ``event_interval`` seconds:
      terminate a random process, touch a random virtual address, and
      report status.

A run ends when a new process cannot be admitted (out of memory), when
both RAM and swap are completely full (resource exhausted), when a
fault finds RAM empty and has nothing to evict, on Ctrl+C, or after
``max_ticks`` ticks.  Admission failure is terminal, not
retried.

State machine::

    IDLE  →  RUNNING  ⇄  PAUSED
      ↑          ↓          ↓
      └─reset─ STOPPED ←────┘

Time is injected (``monotonic`` and ``sleep``) so tests can drive the
loop with a fake clock and no real waiting.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from time import monotonic as _monotonic
from time import sleep as _sleep

from pagesim.errors import AdmissionDeniedError, NoVictimError
from pagesim.events import SimulationStopped, StopReason
from pagesim.simulator import Simulator

DEFAULT_CREATE_INTERVAL = 2.0
DEFAULT_WARMUP = 30.0
DEFAULT_EVENT_INTERVAL = 5.0
DEFAULT_POLL_INTERVAL = 0.1


class DriverState(StrEnum):
    """Lifecycle phases of the driver."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class DriverConfig:
    """Timing of the driver loop, in seconds."""

    create_interval: float = DEFAULT_CREATE_INTERVAL
    warmup: float = DEFAULT_WARMUP
    event_interval: float = DEFAULT_EVENT_INTERVAL
    poll_interval: float = DEFAULT_POLL_INTERVAL


class EventDriver:
    """Drive a simulator on fixed intervals until it runs out of memory."""

    def __init__(
        self,
        simulator: Simulator,
        *,
        config: DriverConfig | None = None,
        monotonic: Callable[[], float] = _monotonic,
        sleep: Callable[[float], None] = _sleep,
    ) -> None:
        """Create an idle driver.

        Args:
            simulator: The simulator to drive.
            config: Interval settings; defaults to ``DriverConfig()``.
            monotonic: Source of elapsed time.
            sleep: Called between ticks with ``poll_interval``.

        """
        self._simulator = simulator
        self._config = config if config is not None else DriverConfig()
        self._monotonic = monotonic
        self._sleep = sleep
        self._state = DriverState.IDLE
        self._stop_reason: StopReason | None = None
        self._tick_count = 0
        self._started_at = 0.0
        self._last_create = 0.0
        self._last_event = 0.0
        self._paused_at: float | None = None

    @property
    def state(self) -> DriverState:
        """Return the current driver state."""
        return self._state

    @property
    def stop_reason(self) -> StopReason | None:
        """Return why the driver stopped, or None if it has not."""
        return self._stop_reason

    @property
    def tick_count(self) -> int:
        """Return the number of ticks processed while running."""
        return self._tick_count

    def elapsed(self, now: float | None = None) -> float:
        """Return running time, excluding time spent paused."""
        if self._state is DriverState.IDLE:
            return 0.0
        current = self._monotonic() if now is None else now
        if self._paused_at is not None:
            current = self._paused_at
        return current - self._started_at

    def start(self, now: float | None = None) -> None:
        """Begin the run; the interval timers start counting from here.

        Raises:
            RuntimeError: If the driver is not idle.

        """
        if self._state is not DriverState.IDLE:
            msg = f"Cannot start driver in state {self._state}"
            raise RuntimeError(msg)
        current = self._monotonic() if now is None else now
        self._started_at = self._last_create = self._last_event = current
        self._state = DriverState.RUNNING

    def pause(self, now: float | None = None) -> None:
        """Freeze the interval timers.

        Raises:
            RuntimeError: If the driver is not running.

        """
        if self._state is not DriverState.RUNNING:
            msg = f"Cannot pause driver in state {self._state}"
            raise RuntimeError(msg)
        self._paused_at = self._monotonic() if now is None else now
        self._state = DriverState.PAUSED

    def resume(self, now: float | None = None) -> None:
        """Continue after a pause, shifting timers by the paused span.

        Raises:
            RuntimeError: If the driver is not paused.

        """
        if self._state is not DriverState.PAUSED or self._paused_at is None:
            msg = f"Cannot resume driver in state {self._state}"
            raise RuntimeError(msg)
        current = self._monotonic() if now is None else now
        paused_for = current - self._paused_at
        self._started_at += paused_for
        self._last_create += paused_for
        self._last_event += paused_for
        self._paused_at = None
        self._state = DriverState.RUNNING

    def stop(self, reason: StopReason) -> None:
        """End the run, emitting a final status report (no-op if stopped)."""
        if self._state is DriverState.STOPPED:
            return
        self._state = DriverState.STOPPED
        self._stop_reason = reason
        self._paused_at = None
        self._simulator.report_status()
        self._simulator.emit(SimulationStopped(reason=reason))

    def reset(self) -> None:
        """Return to IDLE with no stop reason, ticks or timers.

        The simulator is not touched; callers reset it separately.
        """
        self._state = DriverState.IDLE
        self._stop_reason = None
        self._tick_count = 0
        self._started_at = self._last_create = self._last_event = 0.0
        self._paused_at = None

    def tick(self, now: float | None = None) -> dict[str, object]:
        """Run whatever actions are due at time *now*.

        Returns:
            A dict with ``tick``, ``elapsed``, ``created`` (PID or None),
            ``finished`` (PID or None), ``access`` (AccessResult or None),
            ``status`` (MemorySnapshot or None) and ``stopped``
            (StopReason or None).

        """
        result: dict[str, object] = {
            "tick": self._tick_count,
            "elapsed": 0.0,
            "created": None,
            "finished": None,
            "access": None,
            "status": None,
            "stopped": None,
        }
        if self._state is not DriverState.RUNNING:
            result["stopped"] = self._stop_reason
            return result

        current = self._monotonic() if now is None else now
        self._tick_count += 1
        result["tick"] = self._tick_count
        result["elapsed"] = elapsed = current - self._started_at
        sim = self._simulator

        if current - self._last_create >= self._config.create_interval:
            self._last_create = current
            try:
                result["created"] = sim.create_random_process().pid
            except AdmissionDeniedError:
                self.stop(StopReason.OUT_OF_MEMORY)
                result["stopped"] = StopReason.OUT_OF_MEMORY
                return result

        if (
            elapsed >= self._config.warmup
            and current - self._last_event >= self._config.event_interval
        ):
            self._last_event = current
            finished = sim.terminate_random_process()
            result["finished"] = finished.pid if finished is not None else None
            try:
                result["access"] = sim.access_random_address()
            except NoVictimError:
                self.stop(StopReason.NO_VICTIM)
                result["stopped"] = StopReason.NO_VICTIM
                return result
            result["status"] = sim.report_status()

        if sim.is_exhausted():
            self.stop(StopReason.RESOURCE_EXHAUSTED)
            result["stopped"] = StopReason.RESOURCE_EXHAUSTED
        return result

    def run(self, *, max_ticks: int | None = None) -> StopReason:
        """Start (if idle) and poll until the run stops.

        Args:
            max_ticks: Stop with ``StopReason.MAX_TICKS`` after this many
                ticks; None runs until memory runs out.

        Returns:
            The reason the run ended.

        """
        if self._state is DriverState.IDLE:
            self.start()
        try:
            while self._state is not DriverState.STOPPED:
                if max_ticks is not None and self._tick_count >= max_ticks:
                    self.stop(StopReason.MAX_TICKS)
                    break
                self.tick()
                if self._state is not DriverState.STOPPED:
                    self._sleep(self._config.poll_interval)
        except KeyboardInterrupt:
            self.stop(StopReason.INTERRUPTED)
        return self._stop_reason if self._stop_reason is not None else StopReason.INTERRUPTED
