# CHIP-8 virtual machine.
# Memory - 4096 bytes: font at 0x50, program loaded at 0x200.
# CPU - 16 8-bit registers (V0..VF), index register I, program counter and a call stack.
# Timers - delay and sound, both counting down at 60Hz.
# Output - 64x32 monochrome display & sound buzzer. Input - 16 key hex keypad.

from chip8emu.config import Quirks
from chip8emu.emulator import Emulator, Machine, SilentSound
from chip8emu.errors import (Chip8Error, ProgramFinished, RomError,
                             StackOverflow, StackUnderflow)

__version__ = "0.1.0"

__all__ = [
    "Chip8Error",
    "Emulator",
    "Machine",
    "ProgramFinished",
    "Quirks",
    "RomError",
    "SilentSound",
    "StackOverflow",
    "StackUnderflow",
]
