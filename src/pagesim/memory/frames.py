"""Frame store — the two fixed-size pools of page frames.

The simulated machine has two tiers of frames:

- **RAM** (the fast tier) — pages here are directly addressable.
  Touching one is a hit.
- **Swap** (the slow tier) — backing store.  Touching a page here is a
  page fault, and the pager must bring it into RAM.

Each tier is a fixed-length list of slots.  A slot is either free
(``None``) or holds one ``Occupancy`` record naming the page that lives
there.  The frame store knows nothing about processes or page tables;
it only hands out slots and takes them back.

Why first-fit by ascending index?
    Allocation always returns the lowest free slot.  That makes frame
    placement deterministic, which in turn makes FIFO victim selection
    reproducible: two runs with the same clock produce the same layout
    and evict the same pages.

Why move records instead of copying them?
    When a page is evicted or faulted in, the same ``Occupancy`` object
    is released from one slot and placed into another.  The record is
    only created when the page first appears and dropped when its
    process terminates.
"""

from dataclasses import dataclass
from enum import StrEnum

from pagesim.errors import InvariantViolationError


class Tier(StrEnum):
    """The two frame pools."""

    FAST = "ram"
    SLOW = "swap"


@dataclass
class Occupancy:
    """The page currently held by a frame.

    Attributes:
        pid: Owning process.
        virtual_page: Page number within the owner's address space.
        load_time: Clock reading when the page was last placed in RAM
            (or created).  FIFO eviction orders victims by this value.

    """

    pid: int
    virtual_page: int
    load_time: float


class FrameStore:
    """Own the RAM and swap slot arrays.

    Not thread-safe on its own; the simulator serialises every call.
    """

    def __init__(self, *, fast_frames: int, slow_frames: int) -> None:
        """Create a frame store with every slot free.

        Args:
            fast_frames: Number of RAM frames.
            slow_frames: Number of swap frames.

        Raises:
            ValueError: If either capacity is negative.

        """
        if fast_frames < 0 or slow_frames < 0:
            msg = f"Frame counts must be non-negative (got {fast_frames}, {slow_frames})"
            raise ValueError(msg)
        self._slots: dict[Tier, list[Occupancy | None]] = {
            Tier.FAST: [None] * fast_frames,
            Tier.SLOW: [None] * slow_frames,
        }

    def capacity(self, tier: Tier) -> int:
        """Return the total number of frames in a tier."""
        return len(self._slots[tier])

    def free_count(self, tier: Tier) -> int:
        """Return the number of free frames in a tier."""
        return sum(1 for slot in self._slots[tier] if slot is None)

    def occupied_count(self, tier: Tier) -> int:
        """Return the number of occupied frames in a tier."""
        return self.capacity(tier) - self.free_count(tier)

    def allocate(self, tier: Tier, occupancy: Occupancy) -> int | None:
        """Store *occupancy* in the lowest free slot of *tier*.

        Args:
            tier: The pool to allocate from.
            occupancy: The record to place in the slot.

        Returns:
            The frame index used, or None if the tier is full.

        """
        slots = self._slots[tier]
        for index, slot in enumerate(slots):
            if slot is None:
                slots[index] = occupancy
                return index
        return None

    def place(self, tier: Tier, frame: int, occupancy: Occupancy) -> None:
        """Store *occupancy* in a specific free slot.

        Raises:
            InvariantViolationError: If the slot is already occupied.

        """
        slots = self._slots[tier]
        self._check_index(tier, frame)
        if slots[frame] is not None:
            msg = f"{tier.name} frame {frame} is already occupied"
            raise InvariantViolationError(msg)
        slots[frame] = occupancy

    def release(self, tier: Tier, frame: int) -> Occupancy:
        """Free a slot and return the record that lived there.

        Raises:
            InvariantViolationError: If the slot was already free.

        """
        occupancy = self.occupancy_at(tier, frame)
        self._slots[tier][frame] = None
        return occupancy

    def occupancy_at(self, tier: Tier, frame: int) -> Occupancy:
        """Return the record in an occupied slot.

        Raises:
            InvariantViolationError: If the slot is free.

        """
        self._check_index(tier, frame)
        occupancy = self._slots[tier][frame]
        if occupancy is None:
            msg = f"{tier.name} frame {frame} is free"
            raise InvariantViolationError(msg)
        return occupancy

    def is_free(self, tier: Tier, frame: int) -> bool:
        """Return True if the slot holds no page."""
        self._check_index(tier, frame)
        return self._slots[tier][frame] is None

    def slots(self, tier: Tier) -> tuple[Occupancy | None, ...]:
        """Return a snapshot of a tier's slots in index order."""
        return tuple(self._slots[tier])

    def frames_of(self, pid: int) -> list[tuple[Tier, int]]:
        """Return every (tier, frame) currently holding a page of *pid*."""
        return [
            (tier, index)
            for tier, slots in self._slots.items()
            for index, slot in enumerate(slots)
            if slot is not None and slot.pid == pid
        ]

    def _check_index(self, tier: Tier, frame: int) -> None:
        if not 0 <= frame < len(self._slots[tier]):
            msg = f"{tier.name} frame {frame} out of range (0-{len(self._slots[tier]) - 1})"
            raise IndexError(msg)
