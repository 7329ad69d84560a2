import random

import pytest

from c8emu.common.config import Quirks
from c8emu.common.hwconf import FONT_BASE, FONT, STACK_SIZE
from c8emu.runtime.executor import Executor, Operands, StackOverflow, StackUnderflow
from c8emu.runtime.state import MachineState

from fixtures import with_catalog, with_resolver  # noqa: F401


@pytest.fixture
def cpu(with_resolver):  # noqa: F811
    yield Executor(MachineState(), with_resolver, rng=random.Random(8))


def run(cpu, *words):
    return [cpu.execute(w) for w in words]


def test_operands():
    o = Operands(0xD12F)
    assert (o.n1, o.n2, o.n3, o.n4) == (0xD, 0x1, 0x2, 0xF)
    assert (o.x, o.y, o.n) == (0x1, 0x2, 0xF)
    assert o.nnn == 0x12F
    assert o.nn == 0x2F


def test_clear_screen(cpu):
    cpu.state.display[0][0] = 1
    cpu.state.display[31][63] = 1
    run(cpu, 0x00E0)
    assert all(pixel == 0 for row in cpu.state.display for pixel in row)


def test_sys_call_does_nothing(cpu):
    assert run(cpu, 0x0123) == [False]
    assert cpu.state.instruction_pointer == 0x200


def test_jump(cpu):
    assert run(cpu, 0x15E4) == [True]
    assert cpu.state.instruction_pointer == 0x5E4


def test_call_and_return(cpu):
    s = cpu.state
    s.instruction_pointer = 0x234
    assert run(cpu, 0x254A) == [True]
    assert s.stack[1] == 0x234
    assert s.stack_pointer == 1
    assert s.instruction_pointer == 0x54A

    assert run(cpu, 0x00EE) == [False]
    assert s.instruction_pointer == 0x234
    assert s.stack_pointer == 0


def test_return_on_empty_stack(cpu):
    with pytest.raises(StackUnderflow):
        run(cpu, 0x00EE)


def test_call_on_full_stack(cpu):
    cpu.state.stack_pointer = STACK_SIZE - 1

    with pytest.raises(StackOverflow):
        run(cpu, 0x2300)


@pytest.mark.parametrize('word, vx, vy, skipped', [
    (0x3405, 5, 0, True),
    (0x3405, 6, 0, False),
    (0x4405, 6, 0, True),
    (0x4405, 5, 0, False),
    (0x5450, 9, 9, True),
    (0x5450, 9, 8, False),
    (0x9450, 9, 8, True),
    (0x9450, 9, 9, False),
])
def test_skips(cpu, word, vx, vy, skipped):
    cpu.state.registers[4] = vx
    cpu.state.registers[5] = vy
    assert run(cpu, word) == [False]
    assert cpu.state.instruction_pointer == (0x202 if skipped else 0x200)


def test_load_and_add_immediate(cpu):
    v = cpu.state.registers
    run(cpu, 0x612C, 0x7101)
    assert v[1] == 45

    v[0xF] = 0x55
    run(cpu, 0x71FF)
    assert v[1] == 44
    assert v[0xF] == 0x55


def test_move_assigns(cpu):
    v = cpu.state.registers
    v[1], v[2] = 3, 4
    run(cpu, 0x8120)
    assert v[1] == 4


def test_bitwise(cpu):
    v = cpu.state.registers
    v[1], v[2] = 0b1100, 0b1010
    run(cpu, 0x8121)
    assert v[1] == 0b1110

    v[1] = 0b1100
    run(cpu, 0x8122)
    assert v[1] == 0b1000

    v[1] = 0b1100
    run(cpu, 0x8123)
    assert v[1] == 0b0110


def test_add_with_carry(cpu):
    v = cpu.state.registers
    v[4], v[5] = 0xFF, 0x01
    run(cpu, 0x8454)
    assert v[4] == 0x00
    assert v[0xF] == 1

    v[4], v[5] = 0x10, 0x01
    run(cpu, 0x8454)
    assert v[4] == 0x11
    assert v[0xF] == 0


def test_subtract_with_borrow(cpu):
    v = cpu.state.registers
    v[4], v[5] = 0x00, 0x01
    run(cpu, 0x8455)
    assert v[4] == 0xFF
    assert v[0xF] == 0

    v[4], v[5] = 0x05, 0x01
    run(cpu, 0x8455)
    assert v[4] == 0x04
    assert v[0xF] == 1


def test_reverse_subtract(cpu):
    v = cpu.state.registers
    v[4], v[5] = 0x02, 0x01
    run(cpu, 0x8457)
    assert v[4] == 0xFF
    assert v[0xF] == 0

    v[4], v[5] = 0x01, 0x03
    run(cpu, 0x8457)
    assert v[4] == 0x02
    assert v[0xF] == 1


def test_shift_right(cpu):
    v = cpu.state.registers
    v[7] = 0b1011
    run(cpu, 0x8706)
    assert v[7] == 0b0101
    assert v[0xF] == 1


def test_shift_left(cpu):
    v = cpu.state.registers
    v[7] = 0b1011
    run(cpu, 0x870E)
    assert v[7] == 0b10110
    assert v[0xF] == 1

    v[7] = 0x81
    run(cpu, 0x870E)
    assert v[7] == 0x02
    assert v[0xF] == 0


def test_shift_left_msb_quirk(with_resolver):  # noqa: F811
    cpu = Executor(MachineState(), with_resolver, Quirks(shift_msb_flag=True))
    v = cpu.state.registers
    v[7] = 0x81
    run(cpu, 0x870E)
    assert v[7] == 0x02
    assert v[0xF] == 1


def test_address_register(cpu):
    s = cpu.state
    run(cpu, 0xA123)
    assert s.address_register == 0x123

    s.registers[2] = 0x10
    run(cpu, 0xF21E)
    assert s.address_register == 0x133


def test_jump_plus_v0(cpu):
    cpu.state.registers[0] = 7
    assert run(cpu, 0xB450) == [True]
    assert cpu.state.instruction_pointer == 0x450 + 7


def test_random_is_bounded(cpu):
    for _ in range(50):
        run(cpu, 0xC303)
        assert 0 <= cpu.state.registers[3] <= 3


def test_draw_and_collision(cpu):
    s = cpu.state
    s.address_register = 0x300
    s.memory[0x300] = 0b10000001
    s.registers[1], s.registers[2] = 2, 3

    run(cpu, 0xD121)
    assert s.display[3][2] == 1
    assert s.display[3][9] == 1
    assert sum(s.display[3]) == 2
    assert s.registers[0xF] == 0

    run(cpu, 0xD121)
    assert sum(s.display[3]) == 0
    assert s.registers[0xF] == 1


def test_draw_wraps(cpu):
    s = cpu.state
    s.address_register = 0x300
    s.memory[0x300:0x302] = bytes([0xC0, 0xC0])
    s.registers[1], s.registers[2] = 63, 31

    run(cpu, 0xD122)
    assert s.display[31][63] == 1
    assert s.display[31][0] == 1
    assert s.display[0][63] == 1
    assert s.display[0][0] == 1
    assert sum(map(sum, s.display)) == 4


def test_font_glyph(cpu):
    s = cpu.state
    s.registers[3] = 0xA
    run(cpu, 0xF329)
    assert s.address_register == FONT_BASE + 5 * 0xA
    assert list(s.memory[s.address_register:s.address_register + 5]) == FONT[50:55]


def test_draw_digit_glyph(cpu):
    s = cpu.state
    s.registers[3] = 0
    run(cpu, 0xF329, 0xD335)
    assert s.display[0][0:4] == [1, 1, 1, 1]
    assert s.display[1][0:4] == [1, 0, 0, 1]


def test_bcd(cpu):
    s = cpu.state
    s.address_register = 0x300
    s.registers[5] = 254
    run(cpu, 0xF533)
    assert list(s.memory[0x300:0x303]) == [2, 5, 4]


def test_keys(cpu):
    s = cpu.state
    s.registers[1] = 0xB
    run(cpu, 0xE19E)
    assert s.instruction_pointer == 0x200
    run(cpu, 0xE1A1)
    assert s.instruction_pointer == 0x202

    s.keypad[0xB] = True
    run(cpu, 0xE19E)
    assert s.instruction_pointer == 0x204
    run(cpu, 0xE1A1)
    assert s.instruction_pointer == 0x204


def test_wait_for_key(cpu):
    s = cpu.state
    assert run(cpu, 0xF40A) == [True]
    assert s.awaiting_key

    s.keypad[0x6] = True
    s.keypad[0x9] = True
    assert run(cpu, 0xF40A) == [False]
    assert not s.awaiting_key
    assert s.registers[4] == 0x6


def test_timers(cpu):
    s = cpu.state
    run(cpu, 0xF207)
    assert s.registers[2] == 0x40

    s.registers[2] = 0x11
    run(cpu, 0xF215, 0xF218)
    assert s.timers.delay == 0x11
    assert s.timers.sound == 0x11


def test_store_and_load_registers_at_pc(cpu):
    s = cpu.state
    s.registers[0:3] = [1, 2, 3]
    run(cpu, 0xF255)
    assert list(s.memory[0x200:0x203]) == [1, 2, 3]

    s.registers[0:3] = [0, 0, 0]
    run(cpu, 0xF165)
    assert s.registers[0:3] == [1, 2, 0]


def test_store_and_load_registers_at_i(with_resolver):  # noqa: F811
    cpu = Executor(MachineState(), with_resolver, Quirks(index_memory_ops=True))
    s = cpu.state
    s.address_register = 0x300
    s.registers[0:2] = [7, 8]
    run(cpu, 0xF155)
    assert list(s.memory[0x300:0x302]) == [7, 8]

    s.registers[0:2] = [0, 0]
    run(cpu, 0xF165)
    assert s.registers[0:2] == [7, 8]


def test_bcd_wraps_at_top_of_memory(cpu):
    s = cpu.state
    s.address_register = 0xFFF
    s.registers[5] = 254
    run(cpu, 0xF533)
    assert len(s.memory) == 4096
    assert s.memory[0xFFF] == 2
    assert s.memory[0x000] == 5
    assert s.memory[0x001] == 4


def test_bcd_after_address_overflow(cpu):
    s = cpu.state
    s.address_register = 0xFFF
    s.registers[1] = 0xFF
    run(cpu, 0xF11E, 0xF133)
    assert s.address_register == 0x10FE
    assert len(s.memory) == 4096
    assert list(s.memory[0x0FE:0x101]) == [2, 5, 5]


def test_store_and_load_wrap_at_top_of_memory(cpu):
    s = cpu.state
    s.instruction_pointer = 0xFFE
    s.registers[0:4] = [1, 2, 3, 4]
    run(cpu, 0xF355)
    assert len(s.memory) == 4096
    assert list(s.memory[0xFFE:0x1000]) == [1, 2]
    assert list(s.memory[0x000:0x002]) == [3, 4]

    s.registers[0:4] = [0, 0, 0, 0]
    run(cpu, 0xF365)
    assert s.registers[0:4] == [1, 2, 3, 4]


def test_indexed_store_wraps_at_top_of_memory(with_resolver):  # noqa: F811
    cpu = Executor(MachineState(), with_resolver, Quirks(index_memory_ops=True))
    s = cpu.state
    s.address_register = 0xFFF
    s.registers[0:2] = [9, 8]
    run(cpu, 0xF155)
    assert len(s.memory) == 4096
    assert (s.memory[0xFFF], s.memory[0x000]) == (9, 8)


def test_jump_plus_v0_stays_in_memory(cpu):
    cpu.state.registers[0] = 0xFF
    run(cpu, 0xBFFF)
    assert cpu.state.instruction_pointer == 0x0FE
