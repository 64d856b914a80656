# Input - store key input states and check these before each key opcode.
from chip8emu.config import KEYMAP


class Keypad:
    """16-key hex pad, refreshed from a callable that returns the names of the
    physical keys currently held down (see config.KEYMAP)."""

    def __init__(self, source=None, keymap=KEYMAP):
        self.source = source if source is not None else frozenset
        self.keymap = keymap
        self.keys = [0] * 16
        self.previous = [0] * 16

    def poll(self):
        self.previous = self.keys
        keys = [0] * 16
        for name in self.source():
            value = self.keymap.get(name)
            if value is not None:
                keys[value] = 1
        self.keys = keys
        return keys

    def is_pressed(self, key):
        return bool(self.keys[key & 0xF])

    def first_pressed(self):
        for i, state in enumerate(self.keys):
            if state:
                return i
        return None

    def first_released(self):
        for i in range(16):
            if self.previous[i] and not self.keys[i]:
                return i
        return None
