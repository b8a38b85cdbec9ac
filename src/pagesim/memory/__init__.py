"""Memory subsystem — frame pools, page tables, and FIFO replacement.

Re-exports public symbols so callers can write::

    from pagesim.memory import FrameStore, ReplacementEngine, Tier
"""

from pagesim.memory.frames import FrameStore, Occupancy, Tier
from pagesim.memory.page_table import (
    PageTable,
    PageTableEntry,
    Process,
    pages_needed,
    split_address,
)
from pagesim.memory.replacement import AccessKind, AccessResult, ReplacementEngine

__all__ = [
    "AccessKind",
    "AccessResult",
    "FrameStore",
    "Occupancy",
    "PageTable",
    "PageTableEntry",
    "Process",
    "ReplacementEngine",
    "Tier",
    "pages_needed",
    "split_address",
]
