"""Tests for the capacity monitor and its snapshots."""

from pagesim.lifecycle import ProcessLifecycleManager
from pagesim.monitor import CapacityMonitor, MemorySnapshot
from pagesim.state import SimulatorState

PAGE_SIZE = 1024


def _snapshot(**overrides: int) -> MemorySnapshot:
    """Build a snapshot with sensible defaults."""
    values = {
        "fast_occupied": 2,
        "fast_capacity": 4,
        "slow_occupied": 1,
        "slow_capacity": 4,
        "live_processes": 1,
        "page_faults": 0,
        "processes_created": 1,
        "processes_finished": 0,
    }
    values.update(overrides)
    return MemorySnapshot(**values)


class TestCapacityMonitor:
    """Verify snapshots reflect the state."""

    def test_empty_state(self) -> None:
        """A fresh state reports zero occupancy and zero counters."""
        state = SimulatorState(fast_frames=4, slow_frames=6, page_size=PAGE_SIZE)
        snap = CapacityMonitor(state).snapshot()
        assert snap == MemorySnapshot(
            fast_occupied=0,
            fast_capacity=4,
            slow_occupied=0,
            slow_capacity=6,
            live_processes=0,
            page_faults=0,
            processes_created=0,
            processes_finished=0,
        )

    def test_tracks_creation_and_termination(self) -> None:
        """Occupancy and counters follow the lifecycle."""
        state = SimulatorState(fast_frames=2, slow_frames=2, page_size=PAGE_SIZE)
        manager = ProcessLifecycleManager(state)
        manager.create_process(3 * PAGE_SIZE)
        doomed = manager.create_process(PAGE_SIZE)
        manager.terminate_process(doomed.pid)
        snap = CapacityMonitor(state).snapshot()
        assert (snap.fast_occupied, snap.slow_occupied) == (2, 1)
        assert (snap.processes_created, snap.processes_finished) == (2, 1)
        assert snap.live_processes == 1

    def test_snapshot_does_not_mutate(self) -> None:
        """Taking a snapshot twice yields equal results."""
        state = SimulatorState(fast_frames=2, slow_frames=2, page_size=PAGE_SIZE)
        ProcessLifecycleManager(state).create_process(PAGE_SIZE)
        monitor = CapacityMonitor(state)
        assert monitor.snapshot() == monitor.snapshot()


class TestMemorySnapshot:
    """Verify derived values and formatting."""

    def test_usage_percentages(self) -> None:
        """Usage is occupied over capacity, as a percentage."""
        snap = _snapshot()
        assert snap.fast_usage == 50.0
        assert snap.slow_usage == 25.0

    def test_zero_capacity_usage_is_zero(self) -> None:
        """An empty tier reports 0% rather than dividing by zero."""
        snap = _snapshot(fast_occupied=0, fast_capacity=0)
        assert snap.fast_usage == 0.0

    def test_exhausted_only_when_both_full(self) -> None:
        """Exhaustion means no free frame in RAM or swap."""
        assert not _snapshot(fast_occupied=4).exhausted
        assert _snapshot(fast_occupied=4, slow_occupied=4).exhausted

    def test_format_has_every_line(self) -> None:
        """The status block shows both tiers and the counters."""
        text = _snapshot(page_faults=7).format()
        assert "RAM:  2/4 pages (50.0%)" in text
        assert "SWAP: 1/4 pages (25.0%)" in text
        assert "Page faults: 7" in text
        assert "Processes finished: 0" in text

    def test_to_dict_includes_derived_fields(self) -> None:
        """The JSON form carries usages and the exhausted flag."""
        data = _snapshot().to_dict()
        assert data["fast_usage"] == 50.0
        assert data["exhausted"] is False
        assert data["live_processes"] == 1
