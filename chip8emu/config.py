from dataclasses import dataclass


# ---- Configuration ----
WIDTH, HEIGHT = 64, 32
SCALE = 10
CPU_HZ = 700
TIMER_HZ = 60
DISPLAY_HZ = 60

# catch-up limit when the loop falls behind the CPU clock
MAX_CATCHUP = 10

# ---- Memory map ----
MEMORY_SIZE = 4096
FONT_START = 0x50
PROGRAM_START = 0x200
STACK_DEPTH = 16

# Physical keyboard block -> CHIP-8 keypad
#   1 2 3 4        1 2 3 C
#   Q W E R   ->   4 5 6 D
#   A S D F        7 8 9 E
#   Z X C V        A 0 B F
KEYPAD_LAYOUT = ("1234", "QWER", "ASDF", "ZXCV")
KEYPAD_VALUES = (
    (0x1, 0x2, 0x3, 0xC),
    (0x4, 0x5, 0x6, 0xD),
    (0x7, 0x8, 0x9, 0xE),
    (0xA, 0x0, 0xB, 0xF),
)

KEYMAP = {
    name: value
    for names, values in zip(KEYPAD_LAYOUT, KEYPAD_VALUES)
    for name, value in zip(names, values)
}


@dataclass(frozen=True)
class Quirks:
    """Behaviour switches for the places where historical interpreters disagree.

    Everything defaults to off, which is the common modern behaviour.

    index_overflow
        FX1E sets VF to 1 when I + VX leaves the 12-bit address range (else 0).
    key_release
        FX0A completes on the release of a key instead of on a press.
    wrap_sprites
        DXYN wraps pixels past the right/bottom edge instead of clipping them.
    shift_uses_vy
        8XY6 / 8XYE shift VY and store the result in VX.
    load_store_increments_index
        FX55 / FX65 leave I pointing one past the last register transferred.
    """

    index_overflow: bool = False
    key_release: bool = False
    wrap_sprites: bool = False
    shift_uses_vy: bool = False
    load_store_increments_index: bool = False
