"""Shared fixtures: a hand-cranked clock and stand-ins for the window and beeper."""

import pytest

from chip8emu.config import Quirks
from chip8emu.emulator import Emulator, Machine


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeScreen:
    def __init__(self):
        self.is_open = True
        self.held = set()
        self.frames = []
        self.polls = 0

    def poll_events(self):
        self.polls += 1

    def pressed_keys(self):
        return frozenset(self.held)

    def present(self, framebuffer):
        self.frames.append(framebuffer.pixels.copy())


class FakeSound:
    def __init__(self):
        self.playing = False
        self.plays = 0
        self.stops = 0

    def play(self):
        self.playing = True
        self.plays += 1

    def stop(self):
        self.playing = False
        self.stops += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def sound():
    return FakeSound()


@pytest.fixture
def make_emu(clock, screen, sound):
    """make_emu(program_bytes, **kwargs) -> Emulator on the fake clock/screen/sound."""

    def _make(program=b"", quirks=None, **kwargs):
        kwargs.setdefault("cpu_hz", 700)
        return Emulator.from_rom(bytes(program), screen, sound, clock=clock,
                                 quirks=quirks or Quirks(), **kwargs)

    return _make


def words(*codes):
    """Big-endian bytes for a list of 16-bit instruction words."""
    out = bytearray()
    for code in codes:
        out += bytes([(code >> 8) & 0xFF, code & 0xFF])
    return bytes(out)


@pytest.fixture
def machine(clock):
    return Machine(clock=clock)
