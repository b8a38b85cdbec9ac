"""Events emitted by the simulator core.

The core never prints.  Instead it emits small immutable event objects
to whoever subscribed: the logger, the console, the web UI, a test.
Each event class carries its own severity and source component, and
formats itself as a one-line message.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from pagesim.logging import LogLevel

if TYPE_CHECKING:
    from pagesim.monitor import MemorySnapshot


class StopReason(StrEnum):
    """Why a simulation run ended."""

    OUT_OF_MEMORY = "out_of_memory"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    INTERRUPTED = "interrupted"
    MAX_TICKS = "max_ticks"
    NO_VICTIM = "no_victim"


@dataclass(frozen=True)
class SimulationEvent:
    """Base class for everything the core reports."""

    level: ClassVar[LogLevel] = LogLevel.INFO
    source: ClassVar[str] = "simulator"


EventListener = Callable[[SimulationEvent], None]


@dataclass(frozen=True)
class ProcessCreated(SimulationEvent):
    """A process was admitted and its pages placed."""

    source: ClassVar[str] = "lifecycle"

    pid: int
    size_bytes: int
    num_pages: int

    def __str__(self) -> str:
        """Describe the new process."""
        return f"Process P{self.pid} created: {self.size_bytes} bytes ({self.num_pages} pages)"


@dataclass(frozen=True)
class ProcessCreationFailed(SimulationEvent):
    """A process did not fit in RAM plus swap."""

    level: ClassVar[LogLevel] = LogLevel.ERROR
    source: ClassVar[str] = "lifecycle"

    requested_pages: int
    available: int

    def __str__(self) -> str:
        """Describe the shortfall."""
        return (
            f"Not enough memory: process needs {self.requested_pages} pages, "
            f"{self.available} free"
        )


@dataclass(frozen=True)
class ProcessFinished(SimulationEvent):
    """A process terminated and released its frames."""

    source: ClassVar[str] = "lifecycle"

    pid: int
    pages_freed: int

    def __str__(self) -> str:
        """Describe the finished process."""
        return f"Process P{self.pid} finished (freed {self.pages_freed} pages)"


@dataclass(frozen=True)
class AddressAccessed(SimulationEvent):
    """A virtual address was touched."""

    source: ClassVar[str] = "pager"

    pid: int
    virtual_page: int
    address: int

    def __str__(self) -> str:
        """Show the address in hex, as a debugger would."""
        return f"Access to virtual address 0x{self.address:X} (P{self.pid}, page {self.virtual_page})"


@dataclass(frozen=True)
class PageHit(SimulationEvent):
    """The touched page was already in RAM."""

    level: ClassVar[LogLevel] = LogLevel.DEBUG
    source: ClassVar[str] = "pager"

    pid: int
    virtual_page: int
    frame: int

    def __str__(self) -> str:
        """Describe the hit."""
        return f"Page {self.virtual_page} of P{self.pid} found in RAM (frame {self.frame})"


@dataclass(frozen=True)
class PageFault(SimulationEvent):
    """The touched page was in swap."""

    level: ClassVar[LogLevel] = LogLevel.WARNING
    source: ClassVar[str] = "pager"

    pid: int
    virtual_page: int

    def __str__(self) -> str:
        """Describe the fault."""
        return f"PAGE FAULT: page {self.virtual_page} of P{self.pid} is in swap"


@dataclass(frozen=True)
class PageEvicted(SimulationEvent):
    """A RAM page was moved to swap to make room."""

    level: ClassVar[LogLevel] = LogLevel.WARNING
    source: ClassVar[str] = "pager"

    evicted_pid: int
    evicted_virtual_page: int
    frame: int

    def __str__(self) -> str:
        """Describe the victim and where it went."""
        return (
            f"Victim P{self.evicted_pid} page {self.evicted_virtual_page} "
            f"moved to swap frame {self.frame} (FIFO)"
        )


@dataclass(frozen=True)
class PageLoaded(SimulationEvent):
    """A faulting page was brought into RAM."""

    source: ClassVar[str] = "pager"

    pid: int
    virtual_page: int
    frame: int

    def __str__(self) -> str:
        """Describe the load."""
        return f"Page {self.virtual_page} of P{self.pid} loaded into RAM (frame {self.frame})"


@dataclass(frozen=True)
class StatusReported(SimulationEvent):
    """A periodic capacity report."""

    source: ClassVar[str] = "monitor"

    snapshot: MemorySnapshot

    def __str__(self) -> str:
        """Return the one-line status summary."""
        return self.snapshot.summary()


@dataclass(frozen=True)
class SimulationStopped(SimulationEvent):
    """The run ended."""

    source: ClassVar[str] = "driver"

    reason: StopReason

    @property
    def level(self) -> LogLevel:  # type: ignore[override]
        """Report resource stops as errors, everything else as info."""
        if self.reason in {
            StopReason.OUT_OF_MEMORY,
            StopReason.RESOURCE_EXHAUSTED,
            StopReason.NO_VICTIM,
        }:
            return LogLevel.ERROR
        return LogLevel.INFO

    def __str__(self) -> str:
        """Describe why the run ended."""
        return f"Simulation stopped: {self.reason.value.replace('_', ' ')}"
