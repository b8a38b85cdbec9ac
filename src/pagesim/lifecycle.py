"""Process lifecycle — admission, placement and termination.

Creating a process is all-or-nothing.  The admission check compares the
pages the process needs with the free frames across *both* tiers; a
process that passes is guaranteed to be placed in full, so there is no
rollback path.  Pages fill RAM first (lowest free frame upward) and
spill into swap only once RAM is full.

Terminating a process releases every frame its page table points at
and then removes it from the registry.

Which process to terminate is not decided here; callers pass an
explicit PID.
"""

from pagesim.errors import AdmissionDeniedError, InvariantViolationError
from pagesim.events import ProcessCreated, ProcessCreationFailed, ProcessFinished
from pagesim.memory.frames import Occupancy, Tier
from pagesim.memory.page_table import PageTableEntry, Process, pages_needed
from pagesim.state import SimulatorState


class ProcessLifecycleManager:
    """Create and terminate processes against a simulator state."""

    def __init__(self, state: SimulatorState) -> None:
        """Create a lifecycle manager over *state*."""
        self._state = state

    def create_process(self, size_bytes: int) -> Process:
        """Admit a process of *size_bytes* and place all of its pages.

        Args:
            size_bytes: The process size; rounded up to whole pages.

        Returns:
            The registered process.

        Raises:
            ValueError: If *size_bytes* is not positive.
            AdmissionDeniedError: If RAM plus swap cannot hold it.
                Nothing is mutated in that case.

        """
        state = self._state
        frames = state.frames
        needed = pages_needed(size_bytes, state.page_size)
        available = frames.free_count(Tier.FAST) + frames.free_count(Tier.SLOW)
        if needed > available:
            state.emit(ProcessCreationFailed(requested_pages=needed, available=available))
            raise AdmissionDeniedError(requested=needed, available=available)

        now = state.clock()
        process = Process(pid=state.next_pid(), size_bytes=size_bytes, created_at=now)
        for vpn in range(needed):
            occupancy = Occupancy(pid=process.pid, virtual_page=vpn, load_time=now)
            tier = Tier.FAST
            frame = frames.allocate(Tier.FAST, occupancy)
            if frame is None:
                tier = Tier.SLOW
                frame = frames.allocate(Tier.SLOW, occupancy)
            if frame is None:
                msg = f"Admitted P{process.pid} but ran out of frames at page {vpn}"
                raise InvariantViolationError(msg)
            process.page_table.append(PageTableEntry(virtual_page=vpn, tier=tier, frame=frame))

        state.processes[process.pid] = process
        state.counters.processes_created += 1
        state.emit(
            ProcessCreated(pid=process.pid, size_bytes=size_bytes, num_pages=process.num_pages)
        )
        return process

    def terminate_process(self, pid: int) -> Process:
        """Release every frame of *pid* and drop it from the registry.

        Returns:
            The terminated process.

        Raises:
            ProcessNotFoundError: If *pid* is not live.

        """
        state = self._state
        process = state.lookup(pid)
        for entry in process.page_table:
            occupancy = state.frames.release(entry.tier, entry.frame)
            if occupancy.pid != pid or occupancy.virtual_page != entry.virtual_page:
                msg = (
                    f"P{pid} page {entry.virtual_page} points at {entry.tier.name} "
                    f"frame {entry.frame}, held by P{occupancy.pid} page {occupancy.virtual_page}"
                )
                raise InvariantViolationError(msg)
        del state.processes[pid]
        state.counters.processes_finished += 1
        state.emit(ProcessFinished(pid=pid, pages_freed=process.num_pages))
        return process
