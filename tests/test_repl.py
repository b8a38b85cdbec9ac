"""Tests for the console front end.

The pure helpers are tested directly; ``run()`` is exercised with a JSON
config file and a small tick limit so it finishes quickly.
"""

import json
from pathlib import Path
from random import Random

import pytest

from pagesim import repl
from pagesim.config import KB, MB, MemoryGeometry, SimulatorConfig
from pagesim.errors import ConfigError
from pagesim.events import PageFault, PageHit, SimulationStopped, StatusReported, StopReason
from pagesim.monitor import MemorySnapshot
from pagesim.repl import build_parser, format_banner, format_event, parse_positive, prompt_config
from pagesim.simulator import Simulator

UNIT_CONFIG = {
    "physical_memory_mb": 1,
    "page_size_kb": 4,
    "min_process_size_mb": 0.25,
    "max_process_size_mb": 0.5,
}


class TestParsePositive:
    """Verify prompt value parsing."""

    def test_accepts_numbers(self) -> None:
        """Integers and decimals both parse, surrounding space ignored."""
        assert parse_positive(" 64 ", name="x") == 64.0
        assert parse_positive("0.5", name="x") == 0.5

    def test_rejects_text(self) -> None:
        """Non-numeric input is a ConfigError naming the field."""
        with pytest.raises(ConfigError, match="page_size_kb: expected a number"):
            parse_positive("lots", name="page_size_kb")

    def test_rejects_non_positive(self) -> None:
        """Zero and negatives are refused."""
        with pytest.raises(ConfigError, match="must be positive"):
            parse_positive("0", name="x")
        with pytest.raises(ConfigError, match="must be positive"):
            parse_positive("-3", name="x")


class TestPromptConfig:
    """Verify interactive parameter entry."""

    def test_reprompts_until_valid(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Bad answers are reported and asked again."""
        answers = iter(["abc", "1", "4", "-1", "0.25", "0.5"])
        config = prompt_config(read=lambda _prompt: next(answers))
        assert config == SimulatorConfig.from_units(**UNIT_CONFIG)
        out = capsys.readouterr().out
        assert "expected a number" in out
        assert "must be positive" in out

    def test_invalid_combination_raises(self) -> None:
        """Each value may be fine while the combination is not."""
        answers = iter(["1", "4", "8", "2"])
        with pytest.raises(ConfigError, match="exceeds maximum"):
            prompt_config(read=lambda _prompt: next(answers))


class TestFormatting:
    """Verify banner and event rendering."""

    def test_banner(self) -> None:
        """The banner lists memory sizes and both frame counts."""
        config = SimulatorConfig.from_units(**UNIT_CONFIG)
        geometry = MemoryGeometry.from_virtual_size(config, 2 * MB)
        text = format_banner(Simulator(config, rng=Random(0), geometry=geometry))
        assert "PAGING SIMULATOR INITIALISED" in text
        assert "Physical memory: 1 MB" in text
        assert "Virtual memory:  2.00 MB" in text
        assert "Page size:       4 KB" in text
        assert f"RAM pages:       {MB // (4 * KB)}" in text
        assert f"SWAP pages:      {MB // (4 * KB)}" in text

    def test_event_has_level_prefix(self) -> None:
        """Ordinary events print as ``[LEVEL] message``."""
        text = format_event(PageFault(pid=1, virtual_page=2))
        assert text == "[WARNING] PAGE FAULT: page 2 of P1 is in swap"

    def test_hits_hidden_unless_verbose(self) -> None:
        """DEBUG events are suppressed by default."""
        hit = PageHit(pid=1, virtual_page=0, frame=0)
        assert format_event(hit) is None
        assert format_event(hit, verbose=True) is not None

    def test_status_renders_block(self) -> None:
        """Status reports print the full memory status block."""
        snapshot = MemorySnapshot(
            fast_occupied=1,
            fast_capacity=2,
            slow_occupied=0,
            slow_capacity=2,
            live_processes=1,
            page_faults=0,
            processes_created=1,
            processes_finished=0,
        )
        text = format_event(StatusReported(snapshot=snapshot))
        assert text is not None
        assert "MEMORY STATUS" in text

    def test_stop_reason_is_readable(self) -> None:
        """The stop event reads as plain words."""
        text = format_event(SimulationStopped(reason=StopReason.OUT_OF_MEMORY))
        assert text == "[ERROR] Simulation stopped: out of memory"


class TestParser:
    """Verify command-line options."""

    def test_defaults(self) -> None:
        """No options means prompting, unseeded, unlimited."""
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.seed is None
        assert args.max_ticks is None
        assert args.verbose is False

    def test_options(self) -> None:
        """Every option parses into its type."""
        args = build_parser().parse_args(
            ["--config", "run.json", "--seed", "7", "--max-ticks", "5", "--warmup", "1.5", "-v"]
        )
        assert args.config == Path("run.json")
        assert (args.seed, args.max_ticks, args.warmup, args.verbose) == (7, 5, 1.5, True)


class TestRun:
    """Verify the console entry point end to end."""

    def test_run_with_config_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A config file and a tick limit give a short, complete run."""
        path = tmp_path / "run.json"
        path.write_text(json.dumps(UNIT_CONFIG))
        status = repl.run(["--config", str(path), "--seed", "1", "--max-ticks", "2"])
        out = capsys.readouterr().out
        assert status == 0
        assert "PAGING SIMULATOR INITIALISED" in out
        assert "MEMORY STATUS" in out
        assert "SIMULATION FINISHED (max_ticks)" in out

    def test_bad_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """An invalid config exits with status 2."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({**UNIT_CONFIG, "page_size_kb": 4096}))
        assert repl.run(["--config", str(path)]) == 2
        assert "Invalid configuration" in capsys.readouterr().out

    def test_eof_at_prompt(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Ctrl+D while prompting aborts with status 1."""

        def no_input() -> SimulatorConfig:
            raise EOFError

        monkeypatch.setattr(repl, "prompt_config", no_input)
        assert repl.run([]) == 1
        assert "Aborted." in capsys.readouterr().out
