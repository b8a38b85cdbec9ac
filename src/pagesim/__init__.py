"""pagesim — a demand-paging simulator with RAM, swap and FIFO replacement.

Re-exports the main entry points so callers can write::

    from pagesim import Simulator, SimulatorConfig
"""

from pagesim.config import MemoryGeometry, SimulatorConfig
from pagesim.driver import DriverConfig, DriverState, EventDriver
from pagesim.errors import (
    AdmissionDeniedError,
    ConfigError,
    InvariantViolationError,
    NoVictimError,
    OutOfMemoryError,
    PageNotFoundError,
    ProcessNotFoundError,
    SimulatorError,
)
from pagesim.events import StopReason
from pagesim.memory import AccessKind, AccessResult, Tier
from pagesim.monitor import MemorySnapshot
from pagesim.simulator import Simulator

__all__ = [
    "AccessKind",
    "AccessResult",
    "AdmissionDeniedError",
    "ConfigError",
    "DriverConfig",
    "DriverState",
    "EventDriver",
    "InvariantViolationError",
    "MemoryGeometry",
    "MemorySnapshot",
    "NoVictimError",
    "OutOfMemoryError",
    "PageNotFoundError",
    "ProcessNotFoundError",
    "Simulator",
    "SimulatorConfig",
    "SimulatorError",
    "StopReason",
    "Tier",
]
