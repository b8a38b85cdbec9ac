"""Page replacement — resolving accesses and evicting FIFO victims.

Every page of a live process already has a frame, in RAM or in swap.
Touching a page therefore has exactly two outcomes:

    - **Hit** — the page is in RAM.  Nothing changes; FIFO does not
      track recency, so a hit leaves every load time alone.
    - **Fault** — the page is in swap.  The pager must:
        1. Choose a **victim** in RAM (the page loaded longest ago).
        2. Move the victim to swap.
        3. Move the faulting page into the victim's RAM frame and
           stamp it with the current time.
        4. Rewrite both page-table entries.

Victim selection scans RAM frames in ascending index order and keeps a
frame only if its load time is *strictly* smaller than the best so far.
With a clock that ticks in whole seconds, pages loaded in the same
second tie, and the lowest frame index wins, so eviction is "FIFO
between seconds, frame order within a second".

The whole move happens inside one call.  Intermediate states (a record
held in hand, a frame briefly free) are never visible to other callers
because the simulator serialises every operation.
"""

from dataclasses import dataclass
from enum import StrEnum

from pagesim.errors import InvariantViolationError, NoVictimError
from pagesim.events import PageEvicted, PageFault, PageHit, PageLoaded
from pagesim.memory.frames import Occupancy, Tier
from pagesim.memory.page_table import PageTableEntry
from pagesim.state import SimulatorState


class AccessKind(StrEnum):
    """Outcome of touching a virtual page."""

    HIT = "hit"
    FAULT = "fault"


@dataclass(frozen=True)
class AccessResult:
    """What an access did.

    Attributes:
        kind: HIT or FAULT.
        pid: The accessing process.
        virtual_page: The page that was touched.
        frame: The RAM frame holding the page after the access.
        evicted_pid: Owner of the victim page (faults only).
        evicted_virtual_page: The victim's page number (faults only).
        evicted_to: Swap frame the victim moved into (faults only).

    """

    kind: AccessKind
    pid: int
    virtual_page: int
    frame: int
    evicted_pid: int | None = None
    evicted_virtual_page: int | None = None
    evicted_to: int | None = None

    @property
    def is_fault(self) -> bool:
        """Return True if the access faulted."""
        return self.kind is AccessKind.FAULT

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly representation."""
        return {
            "kind": str(self.kind),
            "pid": self.pid,
            "virtual_page": self.virtual_page,
            "frame": self.frame,
            "evicted_pid": self.evicted_pid,
            "evicted_virtual_page": self.evicted_virtual_page,
            "evicted_to": self.evicted_to,
        }


class ReplacementEngine:
    """Resolve page accesses with FIFO replacement."""

    def __init__(self, state: SimulatorState) -> None:
        """Create an engine over *state*."""
        self._state = state

    def access_page(self, pid: int, virtual_page: int) -> AccessResult:
        """Touch a virtual page, faulting it into RAM if needed.

        Args:
            pid: The accessing process.
            virtual_page: Page number within that process.

        Returns:
            The outcome, including the victim on a fault.

        Raises:
            ProcessNotFoundError: If *pid* is not live.
            PageNotFoundError: If *virtual_page* is out of range.
            NoVictimError: If the page is in swap but RAM holds nothing
                to evict.  The refused fault is not counted or reported.

        """
        state = self._state
        entry = state.lookup(pid).page_table.entry(virtual_page)

        if entry.tier is Tier.FAST:
            state.emit(PageHit(pid=pid, virtual_page=virtual_page, frame=entry.frame))
            return AccessResult(
                kind=AccessKind.HIT, pid=pid, virtual_page=virtual_page, frame=entry.frame
            )

        victim_frame = self.select_victim()
        state.counters.page_faults += 1
        state.emit(PageFault(pid=pid, virtual_page=virtual_page))
        return self._fault(pid, entry, victim_frame)

    def select_victim(self) -> int:
        """Return the RAM frame holding the earliest-loaded page.

        Ties on load time go to the lowest frame index.

        Raises:
            NoVictimError: If RAM holds no pages.

        """
        victim: int | None = None
        oldest = 0.0
        for index, slot in enumerate(self._state.frames.slots(Tier.FAST)):
            if slot is None:
                continue
            if victim is None or slot.load_time < oldest:
                victim = index
                oldest = slot.load_time
        if victim is None:
            msg = "Page fault with no page in RAM to evict"
            raise NoVictimError(msg)
        return victim

    def _fault(self, pid: int, entry: PageTableEntry, victim_frame: int) -> AccessResult:
        state = self._state
        frames = state.frames

        victim = frames.occupancy_at(Tier.FAST, victim_frame)
        victim_entry = self._entry_for(victim)

        # Both records come out of their slots before either goes back in,
        # so the swap frame just vacated is available to the victim.
        faulting = frames.release(Tier.SLOW, entry.frame)
        frames.release(Tier.FAST, victim_frame)

        swap_frame = frames.allocate(Tier.SLOW, victim)
        if swap_frame is None:
            msg = f"No swap frame for victim P{victim.pid} page {victim.virtual_page}"
            raise InvariantViolationError(msg)
        victim_entry.tier = Tier.SLOW
        victim_entry.frame = swap_frame

        faulting.load_time = state.clock()
        frames.place(Tier.FAST, victim_frame, faulting)
        entry.tier = Tier.FAST
        entry.frame = victim_frame

        state.emit(
            PageEvicted(
                evicted_pid=victim.pid,
                evicted_virtual_page=victim.virtual_page,
                frame=swap_frame,
            )
        )
        state.emit(PageLoaded(pid=pid, virtual_page=entry.virtual_page, frame=victim_frame))
        return AccessResult(
            kind=AccessKind.FAULT,
            pid=pid,
            virtual_page=entry.virtual_page,
            frame=victim_frame,
            evicted_pid=victim.pid,
            evicted_virtual_page=victim.virtual_page,
            evicted_to=swap_frame,
        )

    def _entry_for(self, occupancy: Occupancy) -> PageTableEntry:
        """Find the page-table entry that owns a RAM occupancy."""
        owner = self._state.processes.get(occupancy.pid)
        if owner is None:
            msg = f"RAM holds a page of P{occupancy.pid}, which is not live"
            raise InvariantViolationError(msg)
        entry = owner.page_table.entry(occupancy.virtual_page)
        if entry.tier is not Tier.FAST:
            msg = f"P{occupancy.pid} page {occupancy.virtual_page} is in RAM but mapped to swap"
            raise InvariantViolationError(msg)
        return entry
