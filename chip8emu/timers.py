# Delay and sound timers: 8-bit counters that count down at 60Hz until they hit 0.
import time

from chip8emu.config import TIMER_HZ

TICK_INTERVAL = 1.0 / TIMER_HZ


class Timer:
    """One 60Hz countdown.

    tick() is cheap and meant to be called every loop iteration: it only
    decrements once a full 1/60s has passed since its last decrement.
    """

    def __init__(self, count=0, clock=time.perf_counter):
        self.clock = clock
        self.count = count & 0xFF
        self.last = clock()

    def set(self, value):
        self.count = value & 0xFF
        self.last = self.clock()

    def tick(self):
        now = self.clock()
        if now - self.last < TICK_INTERVAL:
            return False
        self.last = now
        if self.count == 0:
            return False
        self.count -= 1
        return True

    @property
    def active(self):
        return self.count > 0

    def __repr__(self):
        return "Timer(%d)" % self.count
