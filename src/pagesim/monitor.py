"""Capacity monitor — read-only status reports."""

from dataclasses import asdict, dataclass

from pagesim.memory.frames import Tier
from pagesim.state import SimulatorState

_BANNER_WIDTH = 39


@dataclass(frozen=True)
class MemorySnapshot:
    """A point-in-time view of occupancy and counters."""

    fast_occupied: int
    fast_capacity: int
    slow_occupied: int
    slow_capacity: int
    live_processes: int
    page_faults: int
    processes_created: int
    processes_finished: int

    @property
    def fast_usage(self) -> float:
        """Return RAM usage as a percentage (0.0 for an empty tier)."""
        return _percent(self.fast_occupied, self.fast_capacity)

    @property
    def slow_usage(self) -> float:
        """Return swap usage as a percentage (0.0 for an empty tier)."""
        return _percent(self.slow_occupied, self.slow_capacity)

    @property
    def exhausted(self) -> bool:
        """Return True when neither tier has a free frame."""
        return (
            self.fast_occupied >= self.fast_capacity and self.slow_occupied >= self.slow_capacity
        )

    def summary(self) -> str:
        """Return a one-line status string."""
        return (
            f"RAM {self.fast_occupied}/{self.fast_capacity}, "
            f"swap {self.slow_occupied}/{self.slow_capacity}, "
            f"{self.live_processes} live, {self.page_faults} faults"
        )

    def format(self) -> str:
        """Return the multi-line status block printed by the console."""
        border = "=" * _BANNER_WIDTH
        lines = [
            f"{'=' * 10} MEMORY STATUS {'=' * 14}",
            f"RAM:  {self.fast_occupied}/{self.fast_capacity} pages ({self.fast_usage:.1f}%)",
            f"SWAP: {self.slow_occupied}/{self.slow_capacity} pages ({self.slow_usage:.1f}%)",
            f"Live processes: {self.live_processes}",
            f"Page faults: {self.page_faults}",
            f"Processes created: {self.processes_created}",
            f"Processes finished: {self.processes_finished}",
            border,
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly representation, usages included."""
        data: dict[str, object] = asdict(self)
        data["fast_usage"] = round(self.fast_usage, 1)
        data["slow_usage"] = round(self.slow_usage, 1)
        data["exhausted"] = self.exhausted
        return data


def _percent(part: int, whole: int) -> float:
    return part * 100.0 / whole if whole > 0 else 0.0


class CapacityMonitor:
    """Build snapshots from a simulator state without touching it."""

    def __init__(self, state: SimulatorState) -> None:
        """Create a monitor over *state*."""
        self._state = state

    def snapshot(self) -> MemorySnapshot:
        """Return the current occupancy and counters."""
        frames = self._state.frames
        counters = self._state.counters
        return MemorySnapshot(
            fast_occupied=frames.occupied_count(Tier.FAST),
            fast_capacity=frames.capacity(Tier.FAST),
            slow_occupied=frames.occupied_count(Tier.SLOW),
            slow_capacity=frames.capacity(Tier.SLOW),
            live_processes=len(self._state.processes),
            page_faults=counters.page_faults,
            processes_created=counters.processes_created,
            processes_finished=counters.processes_finished,
        )
