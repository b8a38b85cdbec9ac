"""Simulator configuration and derived memory geometry.

Four numbers describe a run: physical memory size, page size and the
range process sizes are drawn from.  Everything else is derived once,
when the simulator is built:

    virtual memory  = physical memory x random multiplier in [1.5, 4.5]
    RAM frames      = physical memory // page size
    swap frames     = virtual memory // page size - RAM frames

A configuration can be built directly in bytes, from the friendlier
units the console prompts for (MB and KB), or loaded from a JSON file::

    {"physical_memory_mb": 64, "page_size_kb": 4,
     "min_process_size_mb": 1, "max_process_size_mb": 8}
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pagesim.errors import ConfigError

if TYPE_CHECKING:
    from random import Random

KB = 1024
MB = 1024 * KB

VIRTUAL_MULTIPLIER_MIN = 1.5
VIRTUAL_MULTIPLIER_MAX = 4.5

_UNIT_KEYS = (
    "physical_memory_mb",
    "page_size_kb",
    "min_process_size_mb",
    "max_process_size_mb",
)
_BYTE_KEYS = (
    "physical_memory_bytes",
    "page_size_bytes",
    "min_process_size_bytes",
    "max_process_size_bytes",
)


@dataclass(frozen=True)
class SimulatorConfig:
    """The four user-supplied parameters, in bytes."""

    physical_memory_bytes: int
    page_size_bytes: int
    min_process_size_bytes: int
    max_process_size_bytes: int

    def validate(self) -> None:
        """Check the parameters describe a runnable simulation.

        Raises:
            ConfigError: If any size is non-positive, the page is larger
                than physical memory, or min exceeds max.

        """
        for name, value in asdict(self).items():
            if value <= 0:
                msg = f"{name} must be positive (got {value})"
                raise ConfigError(msg)
        if self.page_size_bytes > self.physical_memory_bytes:
            msg = (
                f"Page size ({self.page_size_bytes}) exceeds physical memory "
                f"({self.physical_memory_bytes})"
            )
            raise ConfigError(msg)
        if self.min_process_size_bytes > self.max_process_size_bytes:
            msg = (
                f"Minimum process size ({self.min_process_size_bytes}) exceeds "
                f"maximum ({self.max_process_size_bytes})"
            )
            raise ConfigError(msg)

    @classmethod
    def from_units(
        cls,
        *,
        physical_memory_mb: float,
        page_size_kb: float,
        min_process_size_mb: float,
        max_process_size_mb: float,
    ) -> SimulatorConfig:
        """Build a config from MB / KB values, as the console prompts."""
        return cls(
            physical_memory_bytes=int(physical_memory_mb * MB),
            page_size_bytes=int(page_size_kb * KB),
            min_process_size_bytes=int(min_process_size_mb * MB),
            max_process_size_bytes=int(max_process_size_mb * MB),
        )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> SimulatorConfig:
        """Build a config from either the byte keys or the MB/KB keys.

        Raises:
            ConfigError: If neither full set of keys is present or a
                value is not a number.

        """
        try:
            if all(key in data for key in _BYTE_KEYS):
                return cls(**{key: int(data[key]) for key in _BYTE_KEYS})  # type: ignore[call-overload]
            if all(key in data for key in _UNIT_KEYS):
                return cls.from_units(**{key: float(data[key]) for key in _UNIT_KEYS})  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            msg = f"Invalid configuration value: {exc}"
            raise ConfigError(msg) from exc
        msg = f"Configuration needs either {', '.join(_BYTE_KEYS)} or {', '.join(_UNIT_KEYS)}"
        raise ConfigError(msg)

    @classmethod
    def from_json(cls, path: Path) -> SimulatorConfig:
        """Load and validate a config from a JSON file.

        Raises:
            ConfigError: If the file cannot be read, parsed or validated.

        """
        try:
            data = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"Cannot load configuration from {path}: {exc}"
            raise ConfigError(msg) from exc
        if not isinstance(data, dict):
            msg = f"Configuration in {path} must be a JSON object"
            raise ConfigError(msg)
        config = cls.from_dict(data)
        config.validate()
        return config

    def to_dict(self) -> dict[str, int]:
        """Return the parameters as a plain dict."""
        return asdict(self)


@dataclass(frozen=True)
class MemoryGeometry:
    """Sizes fixed for the lifetime of a simulator."""

    page_size: int
    physical_memory_bytes: int
    virtual_memory_bytes: int
    fast_frames: int
    slow_frames: int

    @property
    def total_pages(self) -> int:
        """Return the number of virtual pages across both tiers."""
        return self.fast_frames + self.slow_frames

    @classmethod
    def derive(cls, config: SimulatorConfig, rng: Random) -> MemoryGeometry:
        """Draw the virtual memory size and split it into tiers."""
        multiplier = rng.uniform(VIRTUAL_MULTIPLIER_MIN, VIRTUAL_MULTIPLIER_MAX)
        return cls.from_virtual_size(config, int(config.physical_memory_bytes * multiplier))

    @classmethod
    def from_virtual_size(cls, config: SimulatorConfig, virtual_memory_bytes: int) -> MemoryGeometry:
        """Split a known virtual memory size into RAM and swap frames."""
        page = config.page_size_bytes
        fast = config.physical_memory_bytes // page
        total = virtual_memory_bytes // page
        return cls(
            page_size=page,
            physical_memory_bytes=config.physical_memory_bytes,
            virtual_memory_bytes=virtual_memory_bytes,
            fast_frames=fast,
            slow_frames=max(total - fast, 0),
        )

    def to_dict(self) -> dict[str, int]:
        """Return the geometry as a plain dict."""
        return asdict(self)
