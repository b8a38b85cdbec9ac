"""Exception hierarchy for the paging simulator.

Two families of failure exist, and callers treat them very differently:

- **SimulatorError** — runtime conditions the driver is expected to
  handle: a process that does not fit, an unknown PID, a bad page
  number, invalid configuration.  Reported once, never retried.
- **InvariantViolationError** — the frame store and the page tables
  disagree.  This is a logic defect, not a runtime condition, so it is
  a ``RuntimeError`` and nothing in the core catches it.

Several errors also inherit from the matching builtin (``KeyError``,
``IndexError``, ``ValueError``) so generic callers can still catch them
the usual way.
"""


class SimulatorError(Exception):
    """Base class for recoverable simulator errors."""


class AdmissionDeniedError(SimulatorError):
    """Raise when a new process needs more pages than both tiers have free.

    Attributes:
        requested: Pages the process needed.
        available: Free frames across RAM and swap at the time.

    """

    def __init__(self, *, requested: int, available: int) -> None:
        """Create the error with the numbers that caused it."""
        self.requested = requested
        self.available = available
        msg = f"Cannot admit process: needs {requested} pages, only {available} free"
        super().__init__(msg)


# Admission failure is what the console reports as running out of memory.
OutOfMemoryError = AdmissionDeniedError


class ProcessNotFoundError(SimulatorError, KeyError):
    """Raise when an operation names a PID that is not live."""

    def __init__(self, pid: int) -> None:
        """Create the error for the unknown *pid*."""
        self.pid = pid
        super().__init__(f"No such process: {pid}")

    def __str__(self) -> str:
        """Return the plain message (KeyError would quote it)."""
        return str(self.args[0])


class PageNotFoundError(SimulatorError, IndexError):
    """Raise when a virtual page number is outside a process's table."""


class ConfigError(SimulatorError, ValueError):
    """Raise when simulator parameters are unusable."""


class InvariantViolationError(RuntimeError):
    """Raise when frame occupancy and page tables stop agreeing.

    Always fatal.  Examples: releasing a slot that is already free, or a
    page-table entry pointing at a frame owned by someone else.
    """


class NoVictimError(InvariantViolationError):
    """Raise when a fault needs a victim but RAM holds no pages."""
