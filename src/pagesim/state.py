"""Simulator state — everything the core mutates, in one object.

The frame store, the process registry, the PID counter and the
statistics counters live together here rather than as module globals.
The lifecycle manager, the replacement engine and the capacity monitor
all receive the same ``SimulatorState`` and operate on it; the
``Simulator`` facade serialises their calls.

The clock is injected.  The default reads whole seconds from the wall
clock, matching the coarse granularity FIFO ordering was designed
around; tests pass a fake.
"""

from collections.abc import Callable
from dataclasses import dataclass
from itertools import count
from time import time

from pagesim.errors import ProcessNotFoundError
from pagesim.events import EventListener, SimulationEvent
from pagesim.memory.frames import FrameStore
from pagesim.memory.page_table import Process

Clock = Callable[[], float]


def wall_clock_seconds() -> float:
    """Return the current time truncated to whole seconds."""
    return float(int(time()))


@dataclass
class Counters:
    """Running totals reported by the capacity monitor."""

    page_faults: int = 0
    processes_created: int = 0
    processes_finished: int = 0


class SimulatorState:
    """Frames, processes and counters for one simulation run."""

    def __init__(
        self,
        *,
        fast_frames: int,
        slow_frames: int,
        page_size: int,
        clock: Clock = wall_clock_seconds,
    ) -> None:
        """Create an empty state with every frame free.

        Args:
            fast_frames: RAM capacity in frames.
            slow_frames: Swap capacity in frames.
            page_size: Bytes per page.
            clock: Timestamp source for load and creation times.

        """
        self.frames = FrameStore(fast_frames=fast_frames, slow_frames=slow_frames)
        self.processes: dict[int, Process] = {}
        self.counters = Counters()
        self.page_size = page_size
        self.clock = clock
        self._pids = count(start=1)
        self._listeners: list[EventListener] = []

    def next_pid(self) -> int:
        """Return a fresh, never reused PID."""
        return next(self._pids)

    def lookup(self, pid: int) -> Process:
        """Return the live process with *pid*.

        Raises:
            ProcessNotFoundError: If no such process is live.

        """
        process = self.processes.get(pid)
        if process is None:
            raise ProcessNotFoundError(pid)
        return process

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback for every emitted event."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a previously registered callback (no-op if absent)."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> list[EventListener]:
        """Return the registered callbacks."""
        return list(self._listeners)

    def emit(self, event: SimulationEvent) -> None:
        """Deliver *event* to every listener in subscription order."""
        for listener in self._listeners:
            listener(event)
