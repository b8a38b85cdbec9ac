"""Console front end — prompt for parameters, then run the simulation.

The console is a thin I/O wrapper around the simulator and the driver:

    1. **Read** — prompt for physical memory (MB), page size (KB) and the
       process size range (MB), or load them from ``--config file.json``.
    2. **Build** — derive the virtual memory size and print the banner.
    3. **Run** — hand control to the ``EventDriver``; every event the
       simulator emits is printed as it happens, status reports as a
       block.
    4. **Finish** — on out-of-memory, exhaustion or Ctrl+C, print the
       final status.

The helper functions (``format_banner``, ``parse_positive``,
``format_event``) are pure and testable.  The ``run()`` function is the
I/O entrypoint.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from random import Random
from typing import TYPE_CHECKING

from pagesim.config import KB, MB, SimulatorConfig
from pagesim.driver import DEFAULT_WARMUP, DriverConfig, EventDriver
from pagesim.errors import ConfigError
from pagesim.events import SimulationEvent, StatusReported
from pagesim.logging import LogLevel
from pagesim.simulator import Simulator

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_BANNER_WIDTH = 44

_PROMPTS = (
    ("physical_memory_mb", "Physical memory size (MB): "),
    ("page_size_kb", "Page size (KB): "),
    ("min_process_size_mb", "Minimum process size (MB): "),
    ("max_process_size_mb", "Maximum process size (MB): "),
)


def parse_positive(text: str, *, name: str) -> float:
    """Parse a strictly positive number typed at a prompt.

    Raises:
        ConfigError: If *text* is not a positive number.

    """
    try:
        value = float(text.strip())
    except ValueError:
        msg = f"{name}: expected a number, got {text.strip()!r}"
        raise ConfigError(msg) from None
    if value <= 0:
        msg = f"{name}: must be positive (got {value:g})"
        raise ConfigError(msg)
    return value


def prompt_config(read: Callable[[str], str] = input) -> SimulatorConfig:
    """Ask for the four parameters, re-asking until each one parses.

    Raises:
        ConfigError: If the combination is invalid (e.g. min > max).

    """
    values: dict[str, float] = {}
    for key, prompt in _PROMPTS:
        while key not in values:
            try:
                values[key] = parse_positive(read(prompt), name=key)
            except ConfigError as exc:
                print(f"  {exc}")  # noqa: T201
    config = SimulatorConfig.from_units(**values)
    config.validate()
    return config


def format_banner(simulator: Simulator) -> str:
    """Return the start-up banner describing the derived geometry."""
    geometry = simulator.geometry
    config = simulator.config
    border = "=" * _BANNER_WIDTH
    lines = [
        border,
        "  PAGING SIMULATOR INITIALISED",
        border,
        f"Physical memory: {geometry.physical_memory_bytes / MB:g} MB",
        f"Virtual memory:  {geometry.virtual_memory_bytes / MB:.2f} MB",
        f"Page size:       {geometry.page_size / KB:g} KB",
        f"RAM pages:       {geometry.fast_frames}",
        f"SWAP pages:      {geometry.slow_frames}",
        (
            f"Process sizes:   {config.min_process_size_bytes / MB:g}-"
            f"{config.max_process_size_bytes / MB:g} MB"
        ),
        border,
    ]
    return "\n".join(lines)


def format_event(event: SimulationEvent, *, verbose: bool = False) -> str | None:
    """Render an event for the console, or None to suppress it.

    Status reports render as the multi-line block; DEBUG events (page
    hits) are only shown when *verbose*.
    """
    if isinstance(event, StatusReported):
        return "\n" + event.snapshot.format() + "\n"
    if event.level < LogLevel.INFO and not verbose:
        return None
    return f"[{event.level.name}] {event}"


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="pagesim",
        description="Simulate demand paging with RAM, swap and FIFO replacement.",
    )
    parser.add_argument("--config", type=Path, help="JSON file with the four size parameters")
    parser.add_argument("--seed", type=int, help="seed for reproducible runs")
    parser.add_argument("--max-ticks", type=int, help="stop after this many driver ticks")
    parser.add_argument(
        "--warmup",
        type=float,
        default=DEFAULT_WARMUP,
        help="seconds before terminations and accesses begin (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="also print page hits")
    return parser


def run(argv: Sequence[str] | None = None) -> int:
    """Read parameters, run the simulation, and return an exit status.

    This is the ``pagesim`` console entry point.
    """
    args = build_parser().parse_args(argv)

    try:
        if args.config is not None:
            config = SimulatorConfig.from_json(args.config)
        else:
            print("=== PAGING SIMULATOR ===\n")  # noqa: T201
            config = prompt_config()
        simulator = Simulator(config, rng=Random(args.seed))
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}")  # noqa: T201
        return 2
    except (EOFError, KeyboardInterrupt):
        # Ctrl+D / Ctrl+C at a prompt
        print("\nAborted.")  # noqa: T201
        return 1

    print(format_banner(simulator))  # noqa: T201

    def echo(event: SimulationEvent) -> None:
        text = format_event(event, verbose=args.verbose)
        if text is not None:
            print(text)  # noqa: T201

    simulator.subscribe(echo)
    driver = EventDriver(simulator, config=DriverConfig(warmup=args.warmup))
    print("Simulation started...\n")  # noqa: T201
    reason = driver.run(max_ticks=args.max_ticks)
    print(f"=== SIMULATION FINISHED ({reason}) ===")  # noqa: T201
    return 0


def main() -> None:
    """Run the console front end and exit with its status."""
    raise SystemExit(run())
