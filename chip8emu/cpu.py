# CPU - Cowgod's CHIP8 Technical reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#3.1
#
# Executes one decoded opcode against the machine (memory, registers, timers),
# the framebuffer and the keypad. Fetch has already moved PC past the
# instruction, so jumps just overwrite it and skips advance it once more.

import random

from chip8emu import decode as ops
from chip8emu.config import Quirks
from chip8emu.logs import log, logger
from chip8emu.registers import FLAG


class CPU:
    def __init__(self, machine, framebuffer, keypad, quirks=None, rng=None):
        self.machine = machine
        self.memory = machine.memory
        self.regs = machine.registers
        self.framebuffer = framebuffer
        self.keypad = keypad
        self.quirks = quirks or Quirks()
        self.rng = rng or random.Random()
        self.waiting_for_key = False
        self._unknown = set()

        # Prepare opcode function map
        self.setup_funcmap()

    def execute(self, opcode):
        self.funcmap[type(opcode)](opcode)

    # ---- Opcode function map ----
    def setup_funcmap(self):
        self.funcmap = {
            ops.ClearScreen: self._00E0,             # 00E0 - Clear the display
            ops.PopSubroutine: self._00EE,           # 00EE - Return from a subroutine
            ops.Jump: self._1nnn,                    # 1nnn - Jump to a specific memory address
            ops.PushSubroutine: self._2nnn,          # 2nnn - Call a subroutine at a memory address
            ops.SkipEqualConstant: self._3xkk,       # 3xkk - Skip next if Vx == kk
            ops.SkipNotEqualConstant: self._4xkk,    # 4xkk - Skip next if Vx != kk
            ops.SkipEqualRegister: self._5xy0,       # 5xy0 - Skip next if Vx == Vy
            ops.SetRegister: self._6xkk,             # 6xkk - Vx = kk
            ops.AddToRegister: self._7xkk,           # 7xkk - Vx += kk, no carry
            ops.CopyRegister: self._8xy0,            # 8xy0 - Vx = Vy
            ops.Or: self._8xy1,                      # 8xy1 - Vx |= Vy
            ops.And: self._8xy2,                     # 8xy2 - Vx &= Vy
            ops.XOr: self._8xy3,                     # 8xy3 - Vx ^= Vy
            ops.Add: self._8xy4,                     # 8xy4 - Vx += Vy, VF = carry
            ops.SubtractForward: self._8xy5,         # 8xy5 - Vx -= Vy, VF = NOT borrow
            ops.RightShift: self._8xy6,              # 8xy6 - Vx >>= 1, VF = bit shifted out
            ops.SubtractBackward: self._8xy7,        # 8xy7 - Vx = Vy - Vx, VF = NOT borrow
            ops.LeftShift: self._8xyE,               # 8xyE - Vx <<= 1, VF = bit shifted out
            ops.SkipNotEqualRegister: self._9xy0,    # 9xy0 - Skip next if Vx != Vy
            ops.SetIndexRegister: self._Annn,        # Annn - I = nnn
            ops.JumpWithOffset: self._Bnnn,          # Bnnn - Jump to nnn + V0
            ops.Random: self._Cxkk,                  # Cxkk - Vx = random byte & kk
            ops.Display: self._Dxyn,                 # Dxyn - Draw an n-row sprite from I at (Vx, Vy)
            ops.SkipIfPressed: self._Ex9E,           # Ex9E - Skip next if key Vx is down
            ops.SkipIfNotPressed: self._ExA1,        # ExA1 - Skip next if key Vx is up
            ops.CopyDelayToRegister: self._Fx07,     # Fx07 - Vx = delay timer
            ops.GetKey: self._Fx0A,                  # Fx0A - Wait for a key, store it in Vx
            ops.CopyRegisterToDelay: self._Fx15,     # Fx15 - delay timer = Vx
            ops.CopyRegisterToSound: self._Fx18,     # Fx18 - sound timer = Vx
            ops.AddToIndex: self._Fx1E,              # Fx1E - I += Vx
            ops.PointChar: self._Fx29,               # Fx29 - I = glyph for digit Vx
            ops.ToDecimal: self._Fx33,               # Fx33 - BCD of Vx at I..I+2
            ops.StoreRegisterToMemory: self._Fx55,   # Fx55 - memory[I..I+x] = V0..Vx
            ops.LoadRegisterFromMemory: self._Fx65,  # Fx65 - V0..Vx = memory[I..I+x]
            ops.Unrecognized: self._unrecognized,
        }

    # ---- Opcode Handlers ----

    def _00E0(self, op):
        self.framebuffer.clear()
        log("Clear the display (all pixels turned off)")

    def _00EE(self, op):
        addr = self.memory.stack.pop()
        self.memory.set_pc(addr)
        log("Return to", hex(addr))

    def _1nnn(self, op):
        self.memory.set_pc(op.addr)
        log("Jump to address", hex(op.addr))

    def _2nnn(self, op):
        self.memory.stack.push(self.memory.pc.addr)
        self.memory.set_pc(op.addr)
        log("Call subroutine at", hex(op.addr))

    def _skip(self, condition, reason):
        if condition:
            self.memory.advance_pc()
            log("Skip next instruction:", reason)

    def _3xkk(self, op):
        self._skip(self.regs.get(op.x) == op.kk, f"V{op.x:X} == {op.kk}")

    def _4xkk(self, op):
        self._skip(self.regs.get(op.x) != op.kk, f"V{op.x:X} != {op.kk}")

    def _5xy0(self, op):
        self._skip(self.regs.get(op.x) == self.regs.get(op.y), f"V{op.x:X} == V{op.y:X}")

    def _9xy0(self, op):
        self._skip(self.regs.get(op.x) != self.regs.get(op.y), f"V{op.x:X} != V{op.y:X}")

    def _6xkk(self, op):
        self.regs.set(op.x, op.kk)
        log(f"Set V{op.x:X} = {op.kk}")

    def _7xkk(self, op):
        self.regs.add_wrapping(op.x, op.kk)
        log(f"Add {op.kk} to V{op.x:X}: {self.regs.get(op.x)}")

    def _8xy0(self, op):
        self.regs.copy(op.x, op.y)
        log(f"Copy V{op.y:X} ({self.regs.get(op.y)}) into V{op.x:X}")

    def _8xy1(self, op):
        self.regs.bit_or(op.x, op.y)
        log(f"V{op.x:X} = V{op.x:X} OR V{op.y:X} -> {self.regs.get(op.x)}")

    def _8xy2(self, op):
        self.regs.bit_and(op.x, op.y)
        log(f"V{op.x:X} = V{op.x:X} AND V{op.y:X} -> {self.regs.get(op.x)}")

    def _8xy3(self, op):
        self.regs.bit_xor(op.x, op.y)
        log(f"V{op.x:X} = V{op.x:X} XOR V{op.y:X} -> {self.regs.get(op.x)}")

    def _8xy4(self, op):
        self.regs.add(op.x, op.y)
        log(f"Add V{op.y:X} to V{op.x:X}: result {self.regs.get(op.x)}, carry={self.regs.get(FLAG)}")

    def _8xy5(self, op):
        self.regs.subtract(op.x, op.y)
        log(f"Subtract V{op.y:X} from V{op.x:X}: result {self.regs.get(op.x)}, NOT borrow={self.regs.get(FLAG)}")

    def _8xy6(self, op):
        source = op.y if self.quirks.shift_uses_vy else None
        self.regs.shift_right(op.x, source)
        log(f"Shift V{op.x:X} right by 1: {self.regs.get(op.x)}, least significant bit={self.regs.get(FLAG)}")

    def _8xy7(self, op):
        self.regs.subtract_reversed(op.x, op.y)
        log(f"Set V{op.x:X} = V{op.y:X} - V{op.x:X}: result {self.regs.get(op.x)}, NOT borrow={self.regs.get(FLAG)}")

    def _8xyE(self, op):
        source = op.y if self.quirks.shift_uses_vy else None
        self.regs.shift_left(op.x, source)
        log(f"Shift V{op.x:X} left by 1: {self.regs.get(op.x)}, most significant bit={self.regs.get(FLAG)}")

    def _Annn(self, op):
        self.memory.set_index(op.addr)
        log(f"Set I = {op.addr:03X}")

    def _Bnnn(self, op):
        target = op.addr + self.regs.get(0)
        self.memory.set_pc(target)
        log(f"Jump to address V0 + {op.addr:03X} = {target:03X}")

    def _Cxkk(self, op):
        self.regs.set(op.x, self.rng.getrandbits(8) & op.kk)
        log(f"Set V{op.x:X} = random_byte & {op.kk} -> {self.regs.get(op.x)}")

    def _Dxyn(self, op):
        x, y = self.regs.get(op.x), self.regs.get(op.y)
        rows = self.memory.read(self.memory.index.addr, op.n)
        collision = self.framebuffer.paint(x, y, rows)
        self.regs.set(FLAG, 1 if collision else 0)
        log(f"Drew sprite at ({x}, {y}), collision={self.regs.get(FLAG)}")

    def _Ex9E(self, op):
        self.keypad.poll()
        key = self.regs.get(op.x)
        self._skip(self.keypad.is_pressed(key), f"key {key:X} pressed")

    def _ExA1(self, op):
        self.keypad.poll()
        key = self.regs.get(op.x)
        self._skip(not self.keypad.is_pressed(key), f"key {key:X} not pressed")

    def _Fx07(self, op):
        self.regs.set(op.x, self.machine.delay_timer.count)
        log(f"Set V{op.x:X} = delay timer {self.regs.get(op.x)}")

    def _Fx0A(self, op):
        # LD Vx, K: no key yet -> step PC back so this instruction runs again
        # next cycle; the loop keeps ticking timers and the display meanwhile.
        self.keypad.poll()
        if self.quirks.key_release:
            key = self.keypad.first_released() if self.waiting_for_key else None
        else:
            key = self.keypad.first_pressed()

        if key is None:
            self.waiting_for_key = True
            self.memory.pc.rewind()
            return

        self.waiting_for_key = False
        self.regs.set(op.x, key)
        log(f"Key {key:X} stored in V{op.x:X}")

    def _Fx15(self, op):
        self.machine.delay_timer.set(self.regs.get(op.x))
        log(f"Set delay timer = V{op.x:X} ({self.regs.get(op.x)})")

    def _Fx18(self, op):
        self.machine.sound_timer.set(self.regs.get(op.x))
        log(f"Set sound timer = V{op.x:X} ({self.regs.get(op.x)})")

    def _Fx1E(self, op):
        total = self.memory.index.addr + self.regs.get(op.x)
        if self.quirks.index_overflow:
            self.regs.set(FLAG, 1 if total > 0xFFF else 0)
        self.memory.set_index(total)
        log(f"Set I = I + V{op.x:X} = {self.memory.index.addr:03X}")

    def _Fx29(self, op):
        digit = self.regs.get(op.x) & 0xF
        self.memory.set_index(self.memory.point_char(digit))
        log(f"Set I = glyph {digit:X} at {self.memory.index.addr:03X}")

    def _Fx33(self, op):
        digits = self.memory.to_decimal(self.regs.get(op.x))
        log(f"BCD of V{op.x:X} -> {digits}")

    def _Fx55(self, op):
        base = self.memory.index.addr
        for i in range(op.x + 1):
            self.memory.set(base + i, self.regs.get(i))
        if self.quirks.load_store_increments_index:
            self.memory.set_index(base + op.x + 1)
        log(f"Stored V0..V{op.x:X} at {base:03X}")

    def _Fx65(self, op):
        base = self.memory.index.addr
        for i in range(op.x + 1):
            self.regs.set(i, self.memory.get(base + i))
        if self.quirks.load_store_increments_index:
            self.memory.set_index(base + op.x + 1)
        log(f"Loaded V0..V{op.x:X} from {base:03X}")

    def _unrecognized(self, op):
        # ignored, like most interpreters do; reported once per opcode value
        if op.raw not in self._unknown:
            self._unknown.add(op.raw)
            logger.warning("Unknown opcode: %04X at %03X", op.raw, self.memory.pc.addr - 2)
