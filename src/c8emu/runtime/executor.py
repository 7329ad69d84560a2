import logging as lg
import random

from c8emu.common.config import Quirks
from c8emu.common.hwconf import (
    FLAG_REG, STACK_SIZE, DISPLAY_WIDTH, DISPLAY_HEIGHT, KEYS,
    FONT_BASE, GLYPH_SIZE, WORD_SIZE
)
from c8emu.runtime.resolver import Resolver, UnknownOpcode
from c8emu.runtime.state import MachineState


class StackOverflow(Exception):
    pass


class StackUnderflow(Exception):
    pass


class Operands:
    n1: int
    n2: int
    n3: int
    n4: int
    nnn: int    # Address
    nn: int     # Immediate

    def __init__(self, word: int):
        self.n1 = (word & 0xF000) >> 12
        self.n2 = (word & 0x0F00) >> 8
        self.n3 = (word & 0x00F0) >> 4
        self.n4 = word & 0x000F
        self.nnn = word & 0x0FFF
        self.nn = word & 0x00FF

    @property
    def x(self) -> int:
        return self.n2

    @property
    def y(self) -> int:
        return self.n3

    @property
    def n(self) -> int:
        return self.n4


# Handlers return True when they left PC where the next fetch must happen
PC_FINAL = True


class Executor:
    def __init__(
        self,
        state: MachineState,
        resolver: Resolver,
        quirks: Quirks | None = None,
        rng: random.Random | None = None
    ):
        self.state = state          # Ref. to machine state
        self.resolver = resolver
        self.quirks = quirks if quirks is not None else Quirks()
        self.rng = rng if rng is not None else random.Random()

    # - Helpers - #

    @property
    def v(self) -> list[int]:
        return self.state.registers

    def set_flag(self, val: int):
        self.v[FLAG_REG] = val

    def skip_if(self, cond: bool):
        if cond:
            self.state.instruction_pointer += WORD_SIZE

    def address(self, addr: int) -> int:
        return addr % len(self.state.memory)

    def memory_base(self) -> int:
        if self.quirks.index_memory_ops:
            return self.state.address_register

        return self.state.instruction_pointer

    # - Flow - #

    def sys(self, o: Operands):
        pass

    def cls(self, o: Operands):
        for row in self.state.display:
            row[:] = [0] * len(row)

    def ret(self, o: Operands):
        s = self.state

        if s.stack_pointer <= 0:
            raise StackUnderflow(f'Return at {s.instruction_pointer:03X} with an empty stack')

        # Loop then steps past the call
        s.instruction_pointer = s.stack[s.stack_pointer]
        s.stack_pointer -= 1

    def jmp(self, o: Operands):
        self.state.instruction_pointer = o.nnn
        return PC_FINAL

    def call(self, o: Operands):
        s = self.state

        if s.stack_pointer + 1 >= STACK_SIZE:
            raise StackOverflow(f'Call at {s.instruction_pointer:03X} with a full stack')

        s.stack_pointer += 1
        s.stack[s.stack_pointer] = s.instruction_pointer
        s.instruction_pointer = o.nnn
        return PC_FINAL

    def jmp_v0(self, o: Operands):
        self.state.instruction_pointer = (o.nnn + self.v[0]) & 0xFFF
        return PC_FINAL

    # - Conditionals - #

    def se_imm(self, o: Operands):
        self.skip_if(self.v[o.x] == o.nn)

    def sne_imm(self, o: Operands):
        self.skip_if(self.v[o.x] != o.nn)

    def se_reg(self, o: Operands):
        self.skip_if(self.v[o.x] == self.v[o.y])

    def sne_reg(self, o: Operands):
        self.skip_if(self.v[o.x] != self.v[o.y])

    # - Arithmetic - #

    def ld_imm(self, o: Operands):
        self.v[o.x] = o.nn

    def add_imm(self, o: Operands):
        self.v[o.x] = (self.v[o.x] + o.nn) & 0xFF

    def mov(self, o: Operands):
        self.v[o.x] = self.v[o.y]

    def bor(self, o: Operands):
        self.v[o.x] |= self.v[o.y]

    def band(self, o: Operands):
        self.v[o.x] &= self.v[o.y]

    def xor(self, o: Operands):
        self.v[o.x] ^= self.v[o.y]

    def add(self, o: Operands):
        result = self.v[o.x] + self.v[o.y]
        self.v[o.x] = result & 0xFF
        self.set_flag(1 if result > 0xFF else 0)

    def sub(self, o: Operands):
        result = self.v[o.x] - self.v[o.y]
        self.v[o.x] = result & 0xFF
        self.set_flag(0 if result < 0 else 1)

    def rsh(self, o: Operands):
        val = self.v[o.x]
        self.v[o.x] = val >> 1
        self.set_flag(val % 2)

    def subn(self, o: Operands):
        result = self.v[o.y] - self.v[o.x]
        self.v[o.x] = result & 0xFF
        self.set_flag(0 if result < 0 else 1)

    def lsh(self, o: Operands):
        val = self.v[o.x]
        bit = 7 if self.quirks.shift_msb_flag else 3
        self.v[o.x] = (val << 1) & 0xFF
        self.set_flag((val >> bit) & 1)

    def rnd(self, o: Operands):
        self.v[o.x] = self.rng.randint(0, o.nn)

    # - Memory - #

    def ld_i(self, o: Operands):
        self.state.address_register = o.nnn

    def add_i(self, o: Operands):
        s = self.state
        s.address_register = (s.address_register + self.v[o.x]) & 0xFFFF

    def glyph(self, o: Operands):
        self.state.address_register = FONT_BASE + GLYPH_SIZE * (self.v[o.x] & 0xF)

    def bcd(self, o: Operands):
        s = self.state
        val = self.v[o.x]
        i = s.address_register
        for k, digit in enumerate([val // 100, (val // 10) % 10, val % 10]):
            s.memory[self.address(i + k)] = digit

    def store(self, o: Operands):
        base = self.memory_base()

        for i in range(o.x + 1):
            self.state.memory[self.address(base + i)] = self.v[i]

    def load(self, o: Operands):
        base = self.memory_base()

        for i in range(o.x + 1):
            self.v[i] = self.state.memory[self.address(base + i)]

    # - Display - #

    def draw(self, o: Operands):
        s = self.state
        left = self.v[o.x] % DISPLAY_WIDTH
        top = self.v[o.y] % DISPLAY_HEIGHT
        erased = 0

        for row in range(o.n):
            sprite = s.memory[self.address(s.address_register + row)]
            line = s.display[(top + row) % DISPLAY_HEIGHT]

            for bit in range(8):
                if not (sprite >> (7 - bit)) & 1:
                    continue

                col = (left + bit) % DISPLAY_WIDTH

                if line[col]:
                    erased = 1

                line[col] ^= 1

        self.set_flag(erased)

    # - Input and timers - #

    def skp(self, o: Operands):
        self.skip_if(self.state.keypad[self.v[o.x] & 0xF])

    def sknp(self, o: Operands):
        self.skip_if(not self.state.keypad[self.v[o.x] & 0xF])

    def wait_key(self, o: Operands):
        s = self.state
        pressed = [k for k in range(KEYS) if s.keypad[k]]

        if not pressed:
            if not s.awaiting_key:
                lg.debug(f'Waiting for a key press into V{o.x:X}')

            s.awaiting_key = True
            return PC_FINAL

        s.awaiting_key = False
        self.v[o.x] = pressed[0]

    def ld_dt(self, o: Operands):
        self.v[o.x] = self.state.timers.delay

    def set_dt(self, o: Operands):
        self.state.timers.delay = self.v[o.x]

    def set_st(self, o: Operands):
        self.state.timers.sound = self.v[o.x]

    HANDLERS = {
        '00E0': cls,
        '00EE': ret,
        '0NNN': sys,
        '1NNN': jmp,
        '2NNN': call,
        '3XNN': se_imm,
        '4XNN': sne_imm,
        '5XY0': se_reg,
        '6XNN': ld_imm,
        '7XNN': add_imm,
        '8XY0': mov,
        '8XY1': bor,
        '8XY2': band,
        '8XY3': xor,
        '8XY4': add,
        '8XY5': sub,
        '8XY6': rsh,
        '8XY7': subn,
        '8XYE': lsh,
        '9XY0': sne_reg,
        'ANNN': ld_i,
        'BNNN': jmp_v0,
        'CXNN': rnd,
        'DXYN': draw,
        'EX9E': skp,
        'EXA1': sknp,
        'FX07': ld_dt,
        'FX0A': wait_key,
        'FX15': set_dt,
        'FX18': set_st,
        'FX1E': add_i,
        'FX29': glyph,
        'FX33': bcd,
        'FX55': store,
        'FX65': load
    }

    # -- Implementation -- #

    def execute(self, word: int) -> bool:
        op = self.resolver.resolve(word)
        lg.debug(f'EXEC {self.state.instruction_pointer:03X} {word:04X} {op}')

        if op not in self.HANDLERS:
            # Described in the catalog but not implemented by this machine
            raise UnknownOpcode(word, op)

        handler = self.HANDLERS[op]
        return bool(handler(self, Operands(word)))
