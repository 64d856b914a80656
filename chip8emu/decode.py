# Instruction decode - Cowgod's CHIP8 Technical reference, section 3.1
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#3.1
#
# Every instruction is 2 bytes, big-endian. Field names follow the reference:
#   nnn - lowest 12 bits (address)
#   n   - lowest 4 bits
#   x   - lower 4 bits of the high byte (register)
#   y   - upper 4 bits of the low byte (register)
#   kk  - lowest 8 bits (byte constant)

from dataclasses import dataclass


class RawInstruction:
    """A 16-bit instruction word with nibble-addressed field access."""

    __slots__ = ("code",)

    def __init__(self, code):
        self.code = code & 0xFFFF

    def field(self, start, count):
        """Return `count` nibbles starting at nibble `start` (1 = most significant).

        >>> RawInstruction(0x4CEE).field(2, 2)
        206
        """
        if not (1 <= start <= 4 and 1 <= count <= 5 - start):
            raise ValueError("bad nibble field (%d, %d)" % (start, count))
        shift = (4 - (start - 1) - count) * 4
        mask = (1 << (count * 4)) - 1
        return (self.code >> shift) & mask

    @property
    def family(self):
        return self.field(1, 1)

    @property
    def x(self):
        return self.field(2, 1)

    @property
    def y(self):
        return self.field(3, 1)

    @property
    def n(self):
        return self.field(4, 1)

    @property
    def kk(self):
        return self.field(3, 2)

    @property
    def nnn(self):
        return self.field(2, 3)

    def __eq__(self, other):
        if isinstance(other, RawInstruction):
            return self.code == other.code
        if isinstance(other, int):
            return self.code == other
        return NotImplemented

    def __hash__(self):
        return hash(self.code)

    def __repr__(self):
        return "RawInstruction(0x%04X)" % self.code


# ---- Opcodes ----

@dataclass(frozen=True)
class Opcode:
    pass


@dataclass(frozen=True)
class ClearScreen(Opcode):        # 00E0
    pass


@dataclass(frozen=True)
class PopSubroutine(Opcode):      # 00EE
    pass


@dataclass(frozen=True)
class Jump(Opcode):               # 1nnn
    addr: int


@dataclass(frozen=True)
class PushSubroutine(Opcode):     # 2nnn
    addr: int


@dataclass(frozen=True)
class SkipEqualConstant(Opcode):  # 3xkk
    x: int
    kk: int


@dataclass(frozen=True)
class SkipNotEqualConstant(Opcode):  # 4xkk
    x: int
    kk: int


@dataclass(frozen=True)
class SkipEqualRegister(Opcode):  # 5xy0
    x: int
    y: int


@dataclass(frozen=True)
class SetRegister(Opcode):        # 6xkk
    x: int
    kk: int


@dataclass(frozen=True)
class AddToRegister(Opcode):      # 7xkk
    x: int
    kk: int


@dataclass(frozen=True)
class CopyRegister(Opcode):       # 8xy0
    x: int
    y: int


@dataclass(frozen=True)
class Or(Opcode):                 # 8xy1
    x: int
    y: int


@dataclass(frozen=True)
class And(Opcode):                # 8xy2
    x: int
    y: int


@dataclass(frozen=True)
class XOr(Opcode):                # 8xy3
    x: int
    y: int


@dataclass(frozen=True)
class Add(Opcode):                # 8xy4
    x: int
    y: int


@dataclass(frozen=True)
class SubtractForward(Opcode):    # 8xy5
    x: int
    y: int


@dataclass(frozen=True)
class RightShift(Opcode):         # 8xy6
    x: int
    y: int


@dataclass(frozen=True)
class SubtractBackward(Opcode):   # 8xy7
    x: int
    y: int


@dataclass(frozen=True)
class LeftShift(Opcode):          # 8xyE
    x: int
    y: int


@dataclass(frozen=True)
class SkipNotEqualRegister(Opcode):  # 9xy0
    x: int
    y: int


@dataclass(frozen=True)
class SetIndexRegister(Opcode):   # Annn
    addr: int


@dataclass(frozen=True)
class JumpWithOffset(Opcode):     # Bnnn (always V0, not the CHIP-48 BXNN form)
    addr: int


@dataclass(frozen=True)
class Random(Opcode):             # Cxkk
    x: int
    kk: int


@dataclass(frozen=True)
class Display(Opcode):            # Dxyn
    x: int
    y: int
    n: int


@dataclass(frozen=True)
class SkipIfPressed(Opcode):      # Ex9E
    x: int


@dataclass(frozen=True)
class SkipIfNotPressed(Opcode):   # ExA1
    x: int


@dataclass(frozen=True)
class CopyDelayToRegister(Opcode):  # Fx07
    x: int


@dataclass(frozen=True)
class GetKey(Opcode):             # Fx0A
    x: int


@dataclass(frozen=True)
class CopyRegisterToDelay(Opcode):  # Fx15
    x: int


@dataclass(frozen=True)
class CopyRegisterToSound(Opcode):  # Fx18
    x: int


@dataclass(frozen=True)
class AddToIndex(Opcode):         # Fx1E
    x: int


@dataclass(frozen=True)
class PointChar(Opcode):          # Fx29
    x: int


@dataclass(frozen=True)
class ToDecimal(Opcode):          # Fx33
    x: int


@dataclass(frozen=True)
class StoreRegisterToMemory(Opcode):  # Fx55
    x: int


@dataclass(frozen=True)
class LoadRegisterFromMemory(Opcode):  # Fx65
    x: int


@dataclass(frozen=True)
class Unrecognized(Opcode):
    raw: int


# 8xy? - register/register ALU ops keyed by the lowest nibble
ALU_OPS = {
    0x0: CopyRegister,
    0x1: Or,
    0x2: And,
    0x3: XOr,
    0x4: Add,
    0x5: SubtractForward,
    0x6: RightShift,
    0x7: SubtractBackward,
    0xE: LeftShift,
}

# Ex?? - keyboard skips keyed by the low byte
KEY_OPS = {
    0x9E: SkipIfPressed,
    0xA1: SkipIfNotPressed,
}

# Fx?? - timers, index and memory transfers keyed by the low byte
MISC_OPS = {
    0x07: CopyDelayToRegister,
    0x0A: GetKey,
    0x15: CopyRegisterToDelay,
    0x18: CopyRegisterToSound,
    0x1E: AddToIndex,
    0x29: PointChar,
    0x33: ToDecimal,
    0x55: StoreRegisterToMemory,
    0x65: LoadRegisterFromMemory,
}

ALL_OPCODES = tuple(Opcode.__subclasses__())


def _family_0(raw):
    if raw.code == 0x00E0:
        return ClearScreen()
    if raw.code == 0x00EE:
        return PopSubroutine()
    # 0nnn (SYS addr) is ignored by modern interpreters
    return Unrecognized(raw.code)


def _family_5(raw):
    if raw.n != 0:
        return Unrecognized(raw.code)
    return SkipEqualRegister(raw.x, raw.y)


def _family_8(raw):
    op = ALU_OPS.get(raw.n)
    if op is None:
        return Unrecognized(raw.code)
    return op(raw.x, raw.y)


def _family_9(raw):
    if raw.n != 0:
        return Unrecognized(raw.code)
    return SkipNotEqualRegister(raw.x, raw.y)


def _family_E(raw):
    op = KEY_OPS.get(raw.kk)
    if op is None:
        return Unrecognized(raw.code)
    return op(raw.x)


def _family_F(raw):
    op = MISC_OPS.get(raw.kk)
    if op is None:
        return Unrecognized(raw.code)
    return op(raw.x)


FAMILIES = {
    0x0: _family_0,
    0x1: lambda raw: Jump(raw.nnn),
    0x2: lambda raw: PushSubroutine(raw.nnn),
    0x3: lambda raw: SkipEqualConstant(raw.x, raw.kk),
    0x4: lambda raw: SkipNotEqualConstant(raw.x, raw.kk),
    0x5: _family_5,
    0x6: lambda raw: SetRegister(raw.x, raw.kk),
    0x7: lambda raw: AddToRegister(raw.x, raw.kk),
    0x8: _family_8,
    0x9: _family_9,
    0xA: lambda raw: SetIndexRegister(raw.nnn),
    0xB: lambda raw: JumpWithOffset(raw.nnn),
    0xC: lambda raw: Random(raw.x, raw.kk),
    0xD: lambda raw: Display(raw.x, raw.y, raw.n),
    0xE: _family_E,
    0xF: _family_F,
}


def decode(code):
    """Turn a 16-bit instruction word into an Opcode. Never raises."""
    raw = code if isinstance(code, RawInstruction) else RawInstruction(code)
    return FAMILIES[raw.family](raw)
