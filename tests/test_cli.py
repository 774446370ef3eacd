"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from trendtracker.cli import cli
from trendtracker.db.store import DataStore


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config pointing at a throwaway database with a fixed seed."""
    path = tmp_path / "config.toml"
    path.write_text(
        f'[database]\npath = "{(tmp_path / "cli.db").as_posix()}"\n\n'
        "[generator]\nrandom_seed = 1\n\n"
        '[logging]\nlevel = "WARNING"\n'
    )
    return path


def invoke(config_file: Path, *args: str):
    return CliRunner().invoke(cli, ["--config", str(config_file), *args])


class TestCommands:

    def test_help_lists_lazy_commands(self):
        result = CliRunner().invoke(cli, ["-h"])

        assert result.exit_code == 0
        for name in ["init", "run", "tick", "purge", "trends", "seed", "instruments"]:
            assert name in result.output

    def test_init_writes_template(self, tmp_path: Path):
        target = tmp_path / "new.toml"

        result = CliRunner().invoke(cli, ["--config", str(target), "init"])

        assert result.exit_code == 0
        assert target.exists()

    def test_seed_is_idempotent(self, config_file: Path, tmp_path: Path):
        first = invoke(config_file, "seed")
        second = invoke(config_file, "seed")

        assert first.exit_code == 0
        assert "Added:   8" in first.output
        assert "Added:   0" in second.output
        assert len(DataStore(tmp_path / "cli.db").list_instruments()) == 8

    def test_tick_then_trends(self, config_file: Path):
        tick = invoke(config_file, "tick")
        trends = invoke(config_file, "trends")

        assert tick.exit_code == 0
        assert "SUCCEEDED" in tick.output
        assert trends.exit_code == 0
        assert "AAPL" in trends.output

    def test_tick_single_symbol(self, config_file: Path, tmp_path: Path):
        invoke(config_file, "instruments", "add", "ibm", "IBM Corp", "--exchange", "NYSE")

        result = invoke(config_file, "tick", "IBM")

        assert result.exit_code == 0
        store = DataStore(tmp_path / "cli.db")
        assert store.count_candles(store.get_instrument_by_symbol("IBM").id) == 1

    def test_tick_unknown_symbol_fails(self, config_file: Path):
        result = invoke(config_file, "tick", "NOPE")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_purge_reports_deleted(self, config_file: Path):
        result = invoke(config_file, "purge", "--days", "1")

        assert result.exit_code == 0
        assert "Deleted 0 candles" in result.output


class TestInstrumentCommands:

    def test_add_list_show_remove(self, config_file: Path, tmp_path: Path):
        assert invoke(config_file, "instruments", "add", "IBM", "IBM Corp").exit_code == 0
        duplicate = invoke(config_file, "instruments", "add", "ibm", "Again")
        assert "already tracked" in duplicate.output

        listing = invoke(config_file, "instruments", "list")
        assert "IBM" in listing.output

        invoke(config_file, "tick", "IBM")
        shown = invoke(config_file, "instruments", "show", "ibm")
        assert shown.exit_code == 0
        assert "Candles:    1" in shown.output

        removed = invoke(config_file, "instruments", "remove", "IBM")
        assert removed.exit_code == 0
        assert "1 candles" in removed.output
        assert not DataStore(tmp_path / "cli.db").instrument_exists("IBM")

    def test_update_and_exchanges(self, config_file: Path):
        invoke(config_file, "instruments", "add", "IBM", "IBM Corp")

        result = invoke(config_file, "instruments", "update", "IBM", "--exchange", "NYSE")

        assert result.exit_code == 0
        assert "NYSE" in invoke(config_file, "instruments", "exchanges").output

    def test_candles_paging(self, config_file: Path):
        invoke(config_file, "instruments", "add", "IBM", "IBM Corp")
        for _ in range(3):
            invoke(config_file, "tick", "IBM")

        result = invoke(config_file, "instruments", "candles", "IBM", "--limit", "2")

        assert result.exit_code == 0
        assert "Page 1 of 2 (3 candles)" in result.output

    def test_missing_instrument(self, config_file: Path):
        result = invoke(config_file, "instruments", "show", "NOPE")
        assert result.exit_code == 1
