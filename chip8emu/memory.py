# Memory - can hold up to 4096 bytes which includes: the fonts (0x50..0x9F)
# and the inputted ROM (from 0x200). 0x000..0x1FF was the interpreter itself
# on the original machines and stays empty here.

from chip8emu.config import FONT_START, MEMORY_SIZE, PROGRAM_START, STACK_DEPTH
from chip8emu.errors import ProgramFinished, RomError, StackOverflow, StackUnderflow
from chip8emu.logs import log
from chip8emu.registers import IndexRegister, ProgramCounter

# set fonts (binary pixel patterns)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
] #notice 80 bytes

GLYPH_SIZE = 5
ADDR_MASK = MEMORY_SIZE - 1


class Stack:
    """Return addresses for 2nnn / 00EE."""

    def __init__(self, depth=STACK_DEPTH):
        self.depth = depth
        self.addresses = []

    def push(self, addr):
        if len(self.addresses) >= self.depth:
            raise StackOverflow("Stack overflow on CALL to 0x%03X" % addr)
        self.addresses.append(addr)

    def pop(self):
        if not self.addresses:
            raise StackUnderflow("Stack underflow on 00EE")
        return self.addresses.pop()

    def __len__(self):
        return len(self.addresses)


class Memory:
    def __init__(self):
        self.bytes = bytearray(MEMORY_SIZE)
        self.pc = ProgramCounter(PROGRAM_START)
        self.index = IndexRegister()
        self.stack = Stack()

        # Load fontset into memory
        self.bytes[FONT_START:FONT_START + len(FONTSET)] = bytes(FONTSET)

    def get(self, addr):
        return self.bytes[addr & ADDR_MASK]

    def set(self, addr, value):
        self.bytes[addr & ADDR_MASK] = value & 0xFF

    def read(self, addr, length):
        """`length` bytes from addr, wrapping at the top of memory."""
        return bytes(self.bytes[(addr + i) & ADDR_MASK] for i in range(length))

    # ---- Load ROM ----
    def load(self, program):
        program = bytes(program)
        if PROGRAM_START + len(program) > MEMORY_SIZE:
            raise RomError("ROM is %d bytes, only %d fit in memory"
                           % (len(program), MEMORY_SIZE - PROGRAM_START))
        self.bytes[PROGRAM_START:PROGRAM_START + len(program)] = program
        self.pc.set_addr(PROGRAM_START)
        self.pc.set_end(len(program))
        log("Loaded %d bytes, program ends at" % len(program), hex(self.pc.end))

    # ---- Program counter ----
    def fetch(self):
        """Read the instruction word at PC and move past it."""
        addr = self.pc.addr
        code = (self.bytes[addr & ADDR_MASK] << 8) | self.bytes[(addr + 1) & ADDR_MASK]
        self.advance_pc()
        return code

    def advance_pc(self):
        if not self.pc.advance():
            raise ProgramFinished(self.pc.addr)

    def set_pc(self, addr):
        self.pc.set_addr(addr)

    def set_index(self, addr):
        self.index.set_addr(addr)

    # ---- Font / BCD ----
    def point_char(self, digit):
        """Address of the 5-byte glyph for hex digit 0..F."""
        if not 0 <= digit <= 0xF:
            raise ValueError("no glyph for %r" % (digit,))
        return FONT_START + digit * GLYPH_SIZE

    def to_decimal(self, value):
        """Write hundreds, tens and ones of an 8-bit value at I, I+1, I+2."""
        value &= 0xFF
        digits = [value // 100, (value // 10) % 10, value % 10]
        for i, digit in enumerate(digits):
            self.set(self.index.addr + i, digit)
        return digits


def read_rom(path):
    """Read a ROM file, turning any failure into RomError."""
    log("Loading ROM:", path)
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise RomError("Could not read ROM %s: %s" % (path, e.strerror or e)) from e
