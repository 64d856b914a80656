"""
Executor tests: each opcode handler applied directly to a Machine.

PC conventions: execute() runs after fetch, so a fresh CPU here has PC at
0x202 as if the instruction at 0x200 had just been fetched.
"""

import logging
import random

import pytest

from chip8emu import decode as ops
from chip8emu.config import Quirks
from chip8emu.cpu import CPU
from chip8emu.errors import ProgramFinished, StackUnderflow
from chip8emu.framebuffer import Framebuffer
from chip8emu.keypad import Keypad
from chip8emu.registers import FLAG


@pytest.fixture
def held():
    return set()


@pytest.fixture
def make_cpu(machine, held):
    def _make(quirks=None, program=bytes(64)):
        machine.memory.load(program)
        machine.memory.fetch()
        return CPU(machine, Framebuffer(wrap=(quirks or Quirks()).wrap_sprites),
                   Keypad(lambda: held), quirks=quirks, rng=random.Random(1234))
    return _make


def test_every_opcode_has_a_handler(make_cpu):
    cpu = make_cpu()
    assert set(cpu.funcmap) == set(ops.ALL_OPCODES)


class TestControlFlow:

    def test_jump(self, make_cpu):
        cpu = make_cpu()
        cpu.execute(ops.Jump(0x208))
        assert cpu.memory.pc.addr == 0x208

    def test_call_and_return(self, make_cpu):
        cpu = make_cpu()
        cpu.execute(ops.PushSubroutine(0x210))
        assert cpu.memory.pc.addr == 0x210
        assert cpu.memory.stack.addresses == [0x202]
        cpu.execute(ops.PopSubroutine())
        assert cpu.memory.pc.addr == 0x202
        assert len(cpu.memory.stack) == 0

    def test_return_with_empty_stack_is_fatal(self, make_cpu):
        cpu = make_cpu()
        with pytest.raises(StackUnderflow):
            cpu.execute(ops.PopSubroutine())

    def test_jump_with_offset_uses_v0(self, make_cpu):
        cpu = make_cpu()
        cpu.regs.set(0, 0x04)
        cpu.regs.set(2, 0x10)  # BXNN variant would pick V2
        cpu.execute(ops.JumpWithOffset(0x210))
        assert cpu.memory.pc.addr == 0x214


class TestSkips:

    @pytest.mark.parametrize("opcode, skipped", [
        (ops.SkipEqualConstant(1, 0x42), True),
        (ops.SkipEqualConstant(1, 0x43), False),
        (ops.SkipNotEqualConstant(1, 0x43), True),
        (ops.SkipNotEqualConstant(1, 0x42), False),
        (ops.SkipEqualRegister(1, 2), True),
        (ops.SkipEqualRegister(1, 3), False),
        (ops.SkipNotEqualRegister(1, 3), True),
        (ops.SkipNotEqualRegister(1, 2), False),
    ])
    def test_skip(self, make_cpu, opcode, skipped):
        cpu = make_cpu()
        cpu.regs.set(1, 0x42)
        cpu.regs.set(2, 0x42)
        cpu.regs.set(3, 0x07)
        cpu.execute(opcode)
        assert cpu.memory.pc.addr == (0x204 if skipped else 0x202)

    def test_skip_past_program_end_finishes(self, make_cpu):
        cpu = make_cpu(program=b"\x30\x00")
        with pytest.raises(ProgramFinished):
            cpu.execute(ops.SkipEqualConstant(0, 0))

    def test_skip_if_pressed(self, make_cpu, held):
        cpu = make_cpu()
        cpu.regs.set(0, 0x5)
        cpu.execute(ops.SkipIfPressed(0))
        assert cpu.memory.pc.addr == 0x202
        held.add("W")
        cpu.execute(ops.SkipIfPressed(0))
        assert cpu.memory.pc.addr == 0x204

    def test_skip_if_not_pressed(self, make_cpu, held):
        cpu = make_cpu()
        cpu.regs.set(0, 0x5)
        held.add("W")
        cpu.execute(ops.SkipIfNotPressed(0))
        assert cpu.memory.pc.addr == 0x202
        held.clear()
        cpu.execute(ops.SkipIfNotPressed(0))
        assert cpu.memory.pc.addr == 0x204


class TestRegisterOps:

    def test_set_and_add(self, make_cpu):
        cpu = make_cpu()
        cpu.execute(ops.SetRegister(0xA, 0x07))
        assert cpu.regs.get(0xA) == 0x07
        cpu.regs.set(FLAG, 0)
        cpu.execute(ops.AddToRegister(0xA, 0xFF))
        assert cpu.regs.get(0xA) == 0x06
        assert cpu.regs.get(FLAG) == 0

    @pytest.mark.parametrize("opcode, vx, vy, result, flag", [
        (ops.CopyRegister(0, 1), 0x12, 0x34, 0x34, None),
        (ops.Or(0, 1), 0x0F, 0xF0, 0xFF, None),
        (ops.And(0, 1), 0x3C, 0x0F, 0x0C, None),
        (ops.XOr(0, 1), 0xFF, 0x0F, 0xF0, None),
        (ops.Add(0, 1), 0xFF, 0x01, 0x00, 1),
        (ops.Add(0, 1), 0x01, 0x01, 0x02, 0),
        (ops.SubtractForward(0, 1), 0x01, 0x02, 0xFF, 0),
        (ops.SubtractForward(0, 1), 5, 2, 3, 1),
        (ops.SubtractBackward(0, 1), 2, 5, 3, 1),
        (ops.SubtractBackward(0, 1), 5, 2, 0xFD, 0),
        (ops.RightShift(0, 1), 0x03, 0x00, 0x01, 1),
        (ops.LeftShift(0, 1), 0x80, 0x00, 0x00, 1),
    ])
    def test_alu(self, make_cpu, opcode, vx, vy, result, flag):
        cpu = make_cpu()
        cpu.regs.set(0, vx)
        cpu.regs.set(1, vy)
        cpu.regs.set(FLAG, 0xAA)
        cpu.execute(opcode)
        assert cpu.regs.get(0) == result
        assert cpu.regs.get(FLAG) == (0xAA if flag is None else flag)

    def test_shift_uses_vy_quirk(self, make_cpu):
        cpu = make_cpu(Quirks(shift_uses_vy=True))
        cpu.regs.set(0, 0xFF)
        cpu.regs.set(1, 0x02)
        cpu.execute(ops.RightShift(0, 1))
        assert cpu.regs.get(0) == 0x01
        assert cpu.regs.get(FLAG) == 0
        cpu.regs.set(1, 0x81)
        cpu.execute(ops.LeftShift(0, 1))
        assert cpu.regs.get(0) == 0x02
        assert cpu.regs.get(FLAG) == 1

    def test_random_is_masked(self, make_cpu):
        cpu = make_cpu()
        for _ in range(50):
            cpu.execute(ops.Random(3, 0x0F))
            assert cpu.regs.get(3) <= 0x0F
        cpu.execute(ops.Random(3, 0x00))
        assert cpu.regs.get(3) == 0


class TestIndexAndMemory:

    def test_set_index(self, make_cpu):
        cpu = make_cpu()
        cpu.execute(ops.SetIndexRegister(0x123))
        assert cpu.memory.index.addr == 0x123

    def test_add_to_index_leaves_flag_by_default(self, make_cpu):
        cpu = make_cpu()
        cpu.memory.set_index(0xFFF)
        cpu.regs.set(1, 0x02)
        cpu.regs.set(FLAG, 0)
        cpu.execute(ops.AddToIndex(1))
        assert cpu.memory.index.addr == 0x1001
        assert cpu.regs.get(FLAG) == 0

    def test_add_to_index_overflow_quirk(self, make_cpu):
        cpu = make_cpu(Quirks(index_overflow=True))
        cpu.memory.set_index(0xFFF)
        cpu.regs.set(1, 0x02)
        cpu.execute(ops.AddToIndex(1))
        assert cpu.regs.get(FLAG) == 1
        cpu.memory.set_index(0x100)
        cpu.execute(ops.AddToIndex(1))
        assert cpu.regs.get(FLAG) == 0

    def test_point_char(self, make_cpu):
        cpu = make_cpu()
        cpu.regs.set(2, 0xA)
        cpu.execute(ops.PointChar(2))
        assert cpu.memory.index.addr == 0x50 + 0xA * 5

    def test_point_char_uses_low_nibble(self, make_cpu):
        cpu = make_cpu()
        cpu.regs.set(2, 0x1B)
        cpu.execute(ops.PointChar(2))
        assert cpu.memory.index.addr == 0x50 + 0xB * 5

    @pytest.mark.parametrize("value, digits", [(7, [0, 0, 7]), (255, [2, 5, 5]), (128, [1, 2, 8])])
    def test_to_decimal(self, make_cpu, value, digits):
        cpu = make_cpu()
        cpu.memory.set_index(0x400)
        cpu.regs.set(5, value)
        cpu.execute(ops.ToDecimal(5))
        assert list(cpu.memory.read(0x400, 3)) == digits
        assert cpu.memory.index.addr == 0x400

    def test_store_and_load(self, make_cpu):
        cpu = make_cpu()
        for i in range(4):
            cpu.regs.set(i, 0x10 + i)
        cpu.memory.set_index(0x300)
        cpu.execute(ops.StoreRegisterToMemory(2))
        assert list(cpu.memory.read(0x300, 4)) == [0x10, 0x11, 0x12, 0x00]
        assert cpu.memory.index.addr == 0x300

        for i in range(4):
            cpu.regs.set(i, 0)
        cpu.execute(ops.LoadRegisterFromMemory(2))
        assert cpu.regs.V[:4] == [0x10, 0x11, 0x12, 0x00]

    def test_store_load_increment_quirk(self, make_cpu):
        cpu = make_cpu(Quirks(load_store_increments_index=True))
        cpu.memory.set_index(0x300)
        cpu.execute(ops.StoreRegisterToMemory(3))
        assert cpu.memory.index.addr == 0x304
        cpu.execute(ops.LoadRegisterFromMemory(0))
        assert cpu.memory.index.addr == 0x305


class TestTimerOps:

    def test_delay_round_trip(self, make_cpu):
        cpu = make_cpu()
        cpu.regs.set(1, 30)
        cpu.execute(ops.CopyRegisterToDelay(1))
        assert cpu.machine.delay_timer.count == 30
        cpu.execute(ops.CopyDelayToRegister(2))
        assert cpu.regs.get(2) == 30

    def test_sound(self, make_cpu):
        cpu = make_cpu()
        cpu.regs.set(1, 9)
        cpu.execute(ops.CopyRegisterToSound(1))
        assert cpu.machine.sound_timer.count == 9


class TestDisplay:

    def test_draw_font_glyph(self, make_cpu):
        cpu = make_cpu()
        cpu.memory.set_index(0x50)  # "0"
        cpu.regs.set(1, 8)
        cpu.regs.set(2, 4)
        cpu.execute(ops.Display(1, 2, 5))
        assert cpu.regs.get(FLAG) == 0
        assert cpu.framebuffer.pixels[4, 8:12].tolist() == [1, 1, 1, 1]
        assert cpu.framebuffer.pixels[5, 8:12].tolist() == [1, 0, 0, 1]

    def test_draw_twice_collides_and_erases(self, make_cpu):
        cpu = make_cpu()
        cpu.memory.set_index(0x50)
        cpu.execute(ops.Display(0, 0, 5))
        cpu.execute(ops.Display(0, 0, 5))
        assert cpu.regs.get(FLAG) == 1
        assert cpu.framebuffer.lit() == 0

    def test_coordinates_read_before_flag_written(self, make_cpu):
        """DxFn with VF as the x register draws at the old VF."""
        cpu = make_cpu()
        cpu.memory.set_index(0x50)
        cpu.regs.set(FLAG, 10)
        cpu.execute(ops.Display(FLAG, 0, 1))
        assert cpu.framebuffer[10, 0] == 1
        assert cpu.regs.get(FLAG) == 0

    def test_clear_screen(self, make_cpu):
        cpu = make_cpu()
        cpu.memory.set_index(0x50)
        cpu.execute(ops.Display(0, 0, 5))
        cpu.execute(ops.ClearScreen())
        assert cpu.framebuffer.lit() == 0

    def test_sprite_clipped(self, make_cpu):
        cpu = make_cpu()
        cpu.memory.set_index(0x50)
        cpu.regs.set(0, 62)
        cpu.regs.set(1, 0)
        cpu.execute(ops.Display(0, 1, 1))
        assert cpu.framebuffer.lit() == 2

    def test_sprite_wrap_quirk(self, make_cpu):
        cpu = make_cpu(Quirks(wrap_sprites=True))
        cpu.memory.set_index(0x50)
        cpu.regs.set(0, 62)
        cpu.regs.set(1, 0)
        cpu.execute(ops.Display(0, 1, 1))
        assert cpu.framebuffer.lit() == 4
        assert cpu.framebuffer[0, 0] == 1


class TestGetKey:

    def test_no_key_repeats_instruction(self, make_cpu):
        cpu = make_cpu()
        cpu.execute(ops.GetKey(3))
        assert cpu.memory.pc.addr == 0x200
        assert cpu.waiting_for_key

    def test_key_stored(self, make_cpu, held):
        cpu = make_cpu()
        held.add("V")
        cpu.execute(ops.GetKey(3))
        assert cpu.regs.get(3) == 0xF
        assert cpu.memory.pc.addr == 0x202
        assert not cpu.waiting_for_key

    def test_release_quirk(self, make_cpu, held):
        cpu = make_cpu(Quirks(key_release=True))
        held.add("S")
        cpu.execute(ops.GetKey(3))
        assert cpu.memory.pc.addr == 0x200

        # still held: keep waiting
        cpu.memory.fetch()
        cpu.execute(ops.GetKey(3))
        assert cpu.memory.pc.addr == 0x200

        held.clear()
        cpu.memory.fetch()
        cpu.execute(ops.GetKey(3))
        assert cpu.regs.get(3) == 0x8
        assert cpu.memory.pc.addr == 0x202


def test_unrecognized_is_a_no_op(make_cpu):
    cpu = make_cpu()
    before = list(cpu.regs.V)
    cpu.execute(ops.Unrecognized(0x0123))
    cpu.execute(ops.Unrecognized(0x0123))
    assert cpu.regs.V == before
    assert cpu.memory.pc.addr == 0x202


def test_unrecognized_warns_once_per_value(make_cpu, caplog):
    cpu = make_cpu()
    with caplog.at_level(logging.WARNING, logger="chip8emu"):
        cpu.execute(ops.Unrecognized(0x0123))
        cpu.execute(ops.Unrecognized(0x0123))
        cpu.execute(ops.Unrecognized(0x5AB1))
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert warnings == ["Unknown opcode: 0123 at 200", "Unknown opcode: 5AB1 at 200"]
