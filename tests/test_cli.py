"""
Command line and log switch. Nothing here opens a window: every ROM below
fails to load, and the pyglet frontend is blocked from importing.
"""

import logging
import sys

import pytest

from chip8emu import logs
from chip8emu.cli import build_parser, main, quirks_from_args
from chip8emu.config import MEMORY_SIZE, PROGRAM_START, Quirks
from chip8emu.logs import log, set_logs, toggle_logs


@pytest.fixture(autouse=True)
def logs_off():
    set_logs(False)
    yield
    set_logs(False)


@pytest.fixture
def no_frontend(monkeypatch):
    # a None entry makes `import chip8emu.frontend` raise ImportError
    monkeypatch.setitem(sys.modules, "chip8emu.frontend", None)


class TestMain:

    def test_missing_rom_exits_1(self, tmp_path, capsys, no_frontend):
        rom = tmp_path / "nope.ch8"
        assert main([str(rom)]) == 1
        err = capsys.readouterr().err
        assert "Could not read ROM" in err
        assert "nope.ch8" in err

    def test_oversized_rom_exits_1(self, tmp_path, capsys, no_frontend):
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(MEMORY_SIZE - PROGRAM_START + 1))
        assert main([str(rom)]) == 1
        assert "only %d fit in memory" % (MEMORY_SIZE - PROGRAM_START) in capsys.readouterr().err

    def test_missing_argument_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2
        assert "usage: chip8emu" in capsys.readouterr().err

    def test_verbose_turns_logs_on(self, tmp_path, caplog, no_frontend):
        caplog.set_level(logging.DEBUG)
        rom = tmp_path / "nope.ch8"
        assert main(["-v", str(rom)]) == 1
        assert logs.logsOn
        assert "Loading ROM: %s" % rom in caplog.text


class TestArgs:

    def test_defaults(self):
        args = build_parser().parse_args(["game.ch8"])
        assert args.hz == 700
        assert args.scale == 10
        assert not args.mute
        assert quirks_from_args(args) == Quirks()

    def test_quirk_flags(self):
        args = build_parser().parse_args([
            "game.ch8", "--hz", "1000", "--index-overflow", "--key-release",
            "--wrap-sprites", "--shift-uses-vy", "--load-store-increments-index",
        ])
        assert args.hz == 1000
        assert quirks_from_args(args) == Quirks(True, True, True, True, True)


class TestLogs:

    def test_toggle_flips_output(self, caplog):
        caplog.set_level(logging.DEBUG)
        log("hidden")
        assert caplog.text == ""

        assert toggle_logs() is True
        log("shown", 0x200)
        assert "shown 512" in caplog.text

        assert toggle_logs() is False
        caplog.clear()
        log("hidden again")
        assert caplog.text == ""

    def test_logger_level_follows_switch(self):
        assert set_logs(True)
        assert logs.logger.level == logging.DEBUG
        assert not set_logs(False)
        assert logs.logger.level == logging.WARNING
