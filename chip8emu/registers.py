# We will be storing register values as 16 zeros. VF (register 15) doubles as
# the carry / borrow / shifted-out bit / collision flag, so every operation that
# writes VF reads its operands first.

FLAG = 0xF


class RegisterFile:
    """Sixteen 8-bit registers V0..VF plus the ALU rules of the 8xy? family."""

    def __init__(self):
        self.V = [0] * 16

    def get(self, index):
        return self.V[index]

    def set(self, index, value):
        self.V[index] = value & 0xFF

    def add_wrapping(self, index, value):
        """7xkk - add without touching VF."""
        self.V[index] = (self.V[index] + value) & 0xFF

    # ---- 8xy? ALU ----

    def copy(self, x, y):
        self.V[x] = self.V[y]

    def bit_or(self, x, y):
        self.V[x] |= self.V[y]

    def bit_and(self, x, y):
        self.V[x] &= self.V[y]

    def bit_xor(self, x, y):
        self.V[x] ^= self.V[y]

    def add(self, x, y):
        """Vx = Vx + Vy, VF = carry."""
        total = self.V[x] + self.V[y]
        self.V[x] = total & 0xFF
        self.V[FLAG] = 1 if total > 0xFF else 0

    def subtract(self, x, y):
        """Vx = Vx - Vy, VF = NOT borrow (1 when Vx >= Vy)."""
        vx, vy = self.V[x], self.V[y]
        self.V[x] = (vx - vy) & 0xFF
        self.V[FLAG] = 1 if vx >= vy else 0

    def subtract_reversed(self, x, y):
        """Vx = Vy - Vx, VF = NOT borrow (1 when Vy >= Vx)."""
        vx, vy = self.V[x], self.V[y]
        self.V[x] = (vy - vx) & 0xFF
        self.V[FLAG] = 1 if vy >= vx else 0

    def shift_right(self, x, source=None):
        """Vx = source >> 1, VF = bit shifted out. source defaults to Vx."""
        value = self.V[x if source is None else source]
        self.V[x] = value >> 1
        self.V[FLAG] = value & 1

    def shift_left(self, x, source=None):
        """Vx = source << 1, VF = bit shifted out. source defaults to Vx."""
        value = self.V[x if source is None else source]
        self.V[x] = (value << 1) & 0xFF
        self.V[FLAG] = (value >> 7) & 1

    def __repr__(self):
        return "RegisterFile(%s)" % " ".join("V%X=%02X" % (i, v) for i, v in enumerate(self.V))


class ProgramCounter:
    """Current address plus the end of the loaded program.

    advance() reports False once the counter moves past the end: that is the
    normal way for a program to finish.
    """

    __slots__ = ("addr", "end")

    def __init__(self, addr, end=None):
        self.addr = addr
        self.end = addr if end is None else end

    def advance(self):
        self.addr += 2
        return self.addr <= self.end

    def rewind(self):
        if self.addr >= 2:
            self.addr -= 2

    def set_end(self, length):
        self.end = self.addr + length

    def set_addr(self, addr):
        self.addr = addr

    def __repr__(self):
        return "ProgramCounter(0x%03X, end=0x%03X)" % (self.addr, self.end)


class IndexRegister:
    """I - 16 bits wide, only the low 12 address memory."""

    __slots__ = ("addr",)

    def __init__(self, addr=0):
        self.addr = addr

    def set_addr(self, addr):
        self.addr = addr & 0xFFFF

    def __repr__(self):
        return "IndexRegister(0x%03X)" % self.addr
