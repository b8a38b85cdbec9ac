"""Simulation event log.

Every interesting thing the simulator does (a process appears, a page
faults, a victim goes to swap) is recorded as a structured log entry.
The console front end prints entries as they arrive; the web front end
serves them as JSON; tests filter them.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, time).
- **Logger** — an append-only log with filtering and clearing.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records should be immutable.
    - **Timestamps come from the simulator clock**, not the wall clock,
      so a test with a fake clock gets reproducible entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from pagesim.events import SimulationEvent


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "pager").
        timestamp: Seconds since the epoch, from the simulator clock.

    """

    level: LogLevel
    message: str
    source: str
    timestamp: float = 0.0

    def __str__(self) -> str:
        """Format as ``[HH:MM:SS] [LEVEL] source: message``."""
        clock = datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")
        return f"[{clock}] [{self.level.name}] {self.source}: {self.message}"

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly representation."""
        return {
            "level": self.level.name,
            "message": self.message,
            "source": self.source,
            "timestamp": self.timestamp,
        }


class Logger:
    """Append-only log buffer with filtering.

    The logger can be subscribed to a simulator directly; ``record``
    turns each event into an entry stamped with the logger's clock.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        """Create an empty logger.

        Args:
            clock: Source of entry timestamps.  Defaults to 0.0 for
                every entry until a simulator installs its own clock.

        """
        self._entries: list[LogEntry] = []
        self._clock = clock

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    @property
    def clock(self) -> Callable[[], float] | None:
        """Return the timestamp source."""
        return self._clock

    @clock.setter
    def clock(self, clock: Callable[[], float] | None) -> None:
        """Install a timestamp source."""
        self._clock = clock

    def log(self, level: LogLevel, message: str, *, source: str) -> LogEntry:
        """Append a new entry to the log and return it.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.

        """
        timestamp = self._clock() if self._clock is not None else 0.0
        entry = LogEntry(level=level, message=message, source=source, timestamp=timestamp)
        self._entries.append(entry)
        return entry

    def record(self, event: SimulationEvent) -> None:
        """Log a simulator event at its own level and source."""
        self.log(event.level, str(event), source=event.source)

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()

    def __len__(self) -> int:
        """Return the number of entries."""
        return len(self._entries)
