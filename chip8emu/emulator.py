# Main loop: fetch -> decode -> execute, plus the two 60Hz jobs (timers and
# display refresh). The three run on one thread; each one compares the time
# since it last ran against its own interval, so none of them blocks another.

import time

import numpy as np

from chip8emu.config import CPU_HZ, DISPLAY_HZ, MAX_CATCHUP, Quirks
from chip8emu.cpu import CPU
from chip8emu.decode import decode
from chip8emu.errors import ProgramFinished
from chip8emu.framebuffer import Framebuffer
from chip8emu.keypad import Keypad
from chip8emu.logs import log
from chip8emu.memory import Memory
from chip8emu.registers import RegisterFile
from chip8emu.timers import Timer

REFRESH_INTERVAL = 1.0 / DISPLAY_HZ


class Machine:
    """All of the mutable hardware state, owned by the Emulator."""

    def __init__(self, clock=time.perf_counter):
        self.memory = Memory()
        self.registers = RegisterFile()
        self.delay_timer = Timer(clock=clock)
        self.sound_timer = Timer(clock=clock)

    def tick_timers(self):
        self.delay_timer.tick()
        self.sound_timer.tick()
        return self.sound_timer.active


class SilentSound:
    """Sound that does nothing (--mute, tests)."""

    playing = False

    def play(self):
        self.playing = True

    def stop(self):
        self.playing = False


class Emulator:
    """Runs a Machine against a screen and a sound device.

    screen needs: is_open, poll_events(), pressed_keys(), present(framebuffer)
    sound needs:  play(), stop()
    """

    def __init__(self, machine, screen, sound=None, cpu_hz=CPU_HZ, quirks=None,
                 clock=time.perf_counter, rng=None):
        self.machine = machine
        self.screen = screen
        self.sound = sound if sound is not None else SilentSound()
        self.quirks = quirks or Quirks()
        self.clock = clock

        self.framebuffer = Framebuffer(wrap=self.quirks.wrap_sprites)
        self.keypad = Keypad(screen.pressed_keys)
        self.cpu = CPU(machine, self.framebuffer, self.keypad, self.quirks, rng)

        self.cycle_interval = 1.0 / cpu_hz
        now = clock()
        self.last_cycle = now
        self.last_refresh = now
        # copy of the last frame handed to the screen
        self.shown = None

        # ---- Performance Counters ----
        self.cycle_count = 0
        self.frame_count = 0

        self.finished = False

    @classmethod
    def from_rom(cls, program, screen, sound=None, **kwargs):
        """Build a Machine, load `program` (bytes) into it and wrap it.

        Raises RomError before anything runs if the program does not fit.
        """
        machine = Machine(clock=kwargs.get("clock", time.perf_counter))
        machine.memory.load(program)
        return cls(machine, screen, sound, **kwargs)

    # ---- Cycle ----
    def step(self):
        """One fetch/decode/execute. Raises ProgramFinished at the end of the program."""
        opcode = decode(self.machine.memory.fetch())
        self.cpu.execute(opcode)
        self.cycle_count += 1
        return opcode

    def sync_timers(self):
        if self.machine.tick_timers():
            self.sound.play()
        elif self.sound.playing:
            self.sound.stop()

    def sync_display(self, now):
        if now - self.last_refresh < REFRESH_INTERVAL:
            return False
        self.last_refresh = now
        if not self.framebuffer.dirty:
            return False
        self.framebuffer.dirty = False
        pixels = self.framebuffer.pixels
        if self.shown is not None and np.array_equal(pixels, self.shown):
            # drawn and erased again since the last push
            return False
        self.screen.present(self.framebuffer)
        self.shown = pixels.copy()
        self.frame_count += 1
        return True

    def run_once(self):
        """One pass of the loop. Returns False once the program has finished."""
        now = self.clock()

        ran = 0
        while now - self.last_cycle >= self.cycle_interval and ran < MAX_CATCHUP:
            self.last_cycle += self.cycle_interval
            ran += 1
            try:
                self.step()
            except ProgramFinished as e:
                log(str(e))
                self.finished = True
                break
        if now - self.last_cycle >= self.cycle_interval:
            # too far behind: drop the backlog instead of spiralling
            self.last_cycle = now

        self.sync_timers()
        self.sync_display(now)
        return not self.finished

    def run(self):
        """Loop until the window closes or the program runs off its end.

        Returns True when the program finished on its own.
        """
        while self.screen.is_open and not self.finished:
            self.screen.poll_events()
            self.run_once()
            self.idle()
        self.sound.stop()
        return self.finished

    def idle(self):
        """Sleep until the earliest of the three clocks is due again."""
        now = self.clock()
        due = min(self.last_cycle + self.cycle_interval,
                  self.last_refresh + REFRESH_INTERVAL)
        if due > now:
            time.sleep(min(due - now, 0.001))
