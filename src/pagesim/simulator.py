"""The simulator — one object that owns a whole paging run.

``Simulator`` wires the pieces together:

    SimulatorState          frames, processes, counters, clock, listeners
    ProcessLifecycleManager create / terminate
    ReplacementEngine       access / FIFO eviction
    CapacityMonitor         snapshots
    Logger                  subscribed to every event

Every public operation runs under one re-entrant lock.  Eviction
touches two frames and two page tables at once, so nothing finer
grained would be safe; the web front end serves requests from several
threads and relies on this.

The random generator and the clock are injected so tests can make runs
fully deterministic.  The generator is used for the virtual memory
multiplier and for the "random" driver actions (process sizes, which
process to terminate, which address to touch).  The core operations
themselves take explicit arguments and use no randomness.
"""

from __future__ import annotations

import threading
from random import Random

from pagesim.config import MemoryGeometry, SimulatorConfig
from pagesim.errors import InvariantViolationError
from pagesim.events import AddressAccessed, EventListener, SimulationEvent, StatusReported
from pagesim.lifecycle import ProcessLifecycleManager
from pagesim.logging import Logger
from pagesim.memory.frames import Tier
from pagesim.memory.page_table import Process, split_address
from pagesim.memory.replacement import AccessResult, ReplacementEngine
from pagesim.monitor import CapacityMonitor, MemorySnapshot
from pagesim.state import Clock, SimulatorState, wall_clock_seconds


class Simulator:
    """A demand-paging simulation with RAM, swap and FIFO replacement."""

    def __init__(
        self,
        config: SimulatorConfig,
        *,
        rng: Random | None = None,
        clock: Clock | None = None,
        logger: Logger | None = None,
        geometry: MemoryGeometry | None = None,
    ) -> None:
        """Create a simulator and derive its memory geometry.

        Args:
            config: The four size parameters.
            rng: Random source for the virtual size and driver actions.
            clock: Timestamp source; defaults to whole wall-clock seconds.
            logger: Event log; a fresh one is created if omitted.
            geometry: Fixed geometry, skipping the random virtual size.

        Raises:
            ConfigError: If *config* is invalid.

        """
        config.validate()
        self._config = config
        self._rng = rng if rng is not None else Random()
        self._clock: Clock = clock if clock is not None else wall_clock_seconds
        self._geometry = (
            geometry if geometry is not None else MemoryGeometry.derive(config, self._rng)
        )
        self._logger = logger if logger is not None else Logger()
        if self._logger.clock is None:
            self._logger.clock = self._clock
        self._lock = threading.RLock()
        self._build_state()

    def _build_state(self, listeners: list[EventListener] | None = None) -> None:
        self._state = SimulatorState(
            fast_frames=self._geometry.fast_frames,
            slow_frames=self._geometry.slow_frames,
            page_size=self._geometry.page_size,
            clock=self._clock,
        )
        for listener in listeners if listeners is not None else [self._logger.record]:
            self._state.subscribe(listener)
        self._lifecycle = ProcessLifecycleManager(self._state)
        self._engine = ReplacementEngine(self._state)
        self._monitor = CapacityMonitor(self._state)

    # -- Properties ---------------------------------------------------------

    @property
    def config(self) -> SimulatorConfig:
        """Return the configuration this simulator was built from."""
        return self._config

    @property
    def geometry(self) -> MemoryGeometry:
        """Return the derived memory geometry."""
        return self._geometry

    @property
    def logger(self) -> Logger:
        """Return the event log."""
        return self._logger

    @property
    def page_size(self) -> int:
        """Return the page size in bytes."""
        return self._geometry.page_size

    # -- Events -------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback for every event the core emits."""
        with self._lock:
            self._state.subscribe(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a callback registered with ``subscribe``."""
        with self._lock:
            self._state.unsubscribe(listener)

    def emit(self, event: SimulationEvent) -> None:
        """Deliver an event raised outside the core (e.g. by the driver)."""
        with self._lock:
            self._state.emit(event)

    # -- Core operations ----------------------------------------------------

    def create_process(self, size_bytes: int) -> Process:
        """Admit a process of *size_bytes* (see ``ProcessLifecycleManager``)."""
        with self._lock:
            return self._lifecycle.create_process(size_bytes)

    def terminate_process(self, pid: int) -> Process:
        """Terminate *pid* and free its frames."""
        with self._lock:
            return self._lifecycle.terminate_process(pid)

    def access_page(self, pid: int, virtual_page: int) -> AccessResult:
        """Touch a virtual page (see ``ReplacementEngine``)."""
        with self._lock:
            return self._engine.access_page(pid, virtual_page)

    def access_address(self, pid: int, address: int) -> AccessResult:
        """Translate a virtual address and touch its page."""
        with self._lock:
            virtual_page, _offset = split_address(address, self.page_size)
            self._state.lookup(pid).page_table.entry(virtual_page)
            self._state.emit(AddressAccessed(pid=pid, virtual_page=virtual_page, address=address))
            return self._engine.access_page(pid, virtual_page)

    def snapshot(self) -> MemorySnapshot:
        """Return a consistent capacity snapshot."""
        with self._lock:
            return self._monitor.snapshot()

    def report_status(self) -> MemorySnapshot:
        """Take a snapshot and emit it as a ``StatusReported`` event."""
        with self._lock:
            snapshot = self._monitor.snapshot()
            self._state.emit(StatusReported(snapshot=snapshot))
            return snapshot

    # -- Random driver actions ------------------------------------------------

    def random_process_size(self) -> int:
        """Draw a process size uniformly from the configured range."""
        low = self._config.min_process_size_bytes
        high = self._config.max_process_size_bytes
        return max(int(self._rng.uniform(low, high)), 1)

    def create_random_process(self) -> Process:
        """Create a process with a randomly drawn size.

        Raises:
            AdmissionDeniedError: If the drawn size does not fit.

        """
        with self._lock:
            return self._lifecycle.create_process(self.random_process_size())

    def terminate_random_process(self) -> Process | None:
        """Terminate a uniformly chosen live process, if any."""
        with self._lock:
            pid = self._choose_pid()
            if pid is None:
                return None
            return self._lifecycle.terminate_process(pid)

    def access_random_address(self) -> AccessResult | None:
        """Touch a random address of a random live process, if any."""
        with self._lock:
            pid = self._choose_pid()
            if pid is None:
                return None
            process = self._state.processes[pid]
            virtual_page = self._rng.randrange(process.num_pages)
            offset = self._rng.randrange(self.page_size)
            return self.access_address(pid, virtual_page * self.page_size + offset)

    def _choose_pid(self) -> int | None:
        pids = list(self._state.processes)
        if not pids:
            return None
        return pids[self._rng.randrange(len(pids))]

    # -- Read views -----------------------------------------------------------

    def process(self, pid: int) -> Process:
        """Return the live process *pid*.

        Raises:
            ProcessNotFoundError: If *pid* is not live.

        """
        with self._lock:
            return self._state.lookup(pid)

    def processes(self) -> list[Process]:
        """Return live processes in creation order."""
        with self._lock:
            return list(self._state.processes.values())

    def free_frames(self, tier: Tier) -> int:
        """Return the number of free frames in *tier*."""
        with self._lock:
            return self._state.frames.free_count(tier)

    def frame_map(self) -> dict[Tier, list[tuple[int, int] | None]]:
        """Return each tier's slots as ``(pid, virtual_page)`` or None."""
        with self._lock:
            return {
                tier: [
                    None if slot is None else (slot.pid, slot.virtual_page)
                    for slot in self._state.frames.slots(tier)
                ]
                for tier in Tier
            }

    def load_times(self, tier: Tier = Tier.FAST) -> list[float | None]:
        """Return the load time of every slot in *tier* (None if free)."""
        with self._lock:
            return [None if s is None else s.load_time for s in self._state.frames.slots(tier)]

    def is_exhausted(self) -> bool:
        """Return True when neither RAM nor swap has a free frame."""
        return self.snapshot().exhausted

    def check_invariants(self) -> None:
        """Verify that frames and page tables agree exactly.

        Checks that every entry points at a frame holding that very page,
        that no frame is referenced twice, and that occupied frames equal
        the total pages of live processes.

        Raises:
            InvariantViolationError: On the first disagreement found.

        """
        with self._lock:
            frames = self._state.frames
            seen: set[tuple[Tier, int]] = set()
            for process in self._state.processes.values():
                for entry in process.page_table:
                    key = (entry.tier, entry.frame)
                    if key in seen:
                        msg = f"{entry.tier.name} frame {entry.frame} referenced twice"
                        raise InvariantViolationError(msg)
                    seen.add(key)
                    slot = frames.occupancy_at(entry.tier, entry.frame)
                    if slot.pid != process.pid or slot.virtual_page != entry.virtual_page:
                        msg = (
                            f"P{process.pid} page {entry.virtual_page} maps to "
                            f"{entry.tier.name} frame {entry.frame}, which holds "
                            f"P{slot.pid} page {slot.virtual_page}"
                        )
                        raise InvariantViolationError(msg)
            occupied = frames.occupied_count(Tier.FAST) + frames.occupied_count(Tier.SLOW)
            if occupied != len(seen):
                msg = f"{occupied} frames occupied but page tables reference {len(seen)}"
                raise InvariantViolationError(msg)

    # -- Lifecycle --------------------------------------------------------------

    def reset(self) -> None:
        """Drop every process and counter, keeping geometry and listeners."""
        with self._lock:
            self._build_state(self._state.listeners)
