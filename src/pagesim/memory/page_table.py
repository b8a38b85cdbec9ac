"""Processes and their page tables.

Each process sees a contiguous virtual address space starting at 0,
split into fixed-size pages.  Its **page table** has exactly one entry
per virtual page, recording which tier and which frame currently hold
that page::

    virtual address  →  (virtual page number, offset within page)
    page_table[vpn]  →  (tier, frame)

Unlike a hardware page table there is no "not present" state: every
page of a live process lives somewhere, either in RAM or in swap.  A
page in swap is still mapped; touching it just costs a fault.

The process owns its page table by value.  Frames are referred to by
index only, never by a live reference into the frame store.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from pagesim.errors import PageNotFoundError
from pagesim.memory.frames import Tier


def pages_needed(size_bytes: int, page_size: int) -> int:
    """Return how many pages a process of *size_bytes* occupies.

    Raises:
        ValueError: If either size is not positive.

    """
    if size_bytes <= 0 or page_size <= 0:
        msg = f"Sizes must be positive (process {size_bytes}, page {page_size})"
        raise ValueError(msg)
    return -(-size_bytes // page_size)


def split_address(address: int, page_size: int) -> tuple[int, int]:
    """Split a virtual address into (virtual page number, offset)."""
    if address < 0:
        msg = f"Virtual address must be non-negative (got {address})"
        raise ValueError(msg)
    return address // page_size, address % page_size


@dataclass
class PageTableEntry:
    """Where one virtual page currently lives."""

    virtual_page: int
    tier: Tier
    frame: int

    @property
    def resident(self) -> bool:
        """Return True if the page is in RAM."""
        return self.tier is Tier.FAST


class PageTable:
    """Ordered list of entries, indexed by virtual page number."""

    def __init__(self) -> None:
        """Create an empty page table."""
        self._entries: list[PageTableEntry] = []

    def append(self, entry: PageTableEntry) -> None:
        """Add the entry for the next virtual page.

        Raises:
            ValueError: If the entry's page number breaks the sequence.

        """
        if entry.virtual_page != len(self._entries):
            msg = f"Expected entry for page {len(self._entries)}, got {entry.virtual_page}"
            raise ValueError(msg)
        self._entries.append(entry)

    def entry(self, virtual_page: int) -> PageTableEntry:
        """Return the entry for a virtual page.

        Raises:
            PageNotFoundError: If the page is outside the address space.

        """
        if not 0 <= virtual_page < len(self._entries):
            msg = f"Virtual page {virtual_page} out of range (0-{len(self._entries) - 1})"
            raise PageNotFoundError(msg)
        return self._entries[virtual_page]

    def entries(self) -> list[PageTableEntry]:
        """Return all entries in page order."""
        return list(self._entries)

    @property
    def resident_count(self) -> int:
        """Return how many pages are in RAM."""
        return sum(1 for e in self._entries if e.resident)

    def __iter__(self) -> Iterator[PageTableEntry]:
        """Iterate over entries in page order."""
        return iter(self._entries)

    def __len__(self) -> int:
        """Return the number of virtual pages."""
        return len(self._entries)


@dataclass
class Process:
    """A simulated process: an identity, a size and a page table."""

    pid: int
    size_bytes: int
    created_at: float
    page_table: PageTable = field(default_factory=PageTable)

    @property
    def num_pages(self) -> int:
        """Return the number of virtual pages."""
        return len(self.page_table)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly summary."""
        return {
            "pid": self.pid,
            "size_bytes": self.size_bytes,
            "num_pages": self.num_pages,
            "resident_pages": self.page_table.resident_count,
            "created_at": self.created_at,
            "page_table": [
                {"virtual_page": e.virtual_page, "tier": str(e.tier), "frame": e.frame}
                for e in self.page_table
            ],
        }
