import logging as lg

from c8emu.common.hwconf import (
    MEMORY_SIZE, ROM_BASE, GP_REGS, STACK_SIZE, TIMER_INIT,
    DISPLAY_WIDTH, DISPLAY_HEIGHT, KEYS, FONT_BASE, FONT
)


class Timers:
    delay: int
    sound: int

    def __init__(self):
        # Decremented by an external driver only
        self.delay = TIMER_INIT
        self.sound = TIMER_INIT


class MachineState:
    memory: bytearray
    registers: list[int]        # V0..VF
    address_register: int       # I
    stack: list[int]
    stack_pointer: int          # Last occupied slot
    instruction_pointer: int    # PC
    timers: Timers
    display: list[list[int]]    # [row][column]
    keypad: list[bool]
    program_running: bool
    awaiting_key: bool          # FX0A is suspended

    def __init__(self):
        self.memory = bytearray(MEMORY_SIZE)
        self.memory[FONT_BASE:FONT_BASE + len(FONT)] = bytes(FONT)

        self.registers = [0] * GP_REGS
        self.address_register = 0
        self.stack = [0] * STACK_SIZE
        self.stack_pointer = 0
        self.instruction_pointer = ROM_BASE
        self.timers = Timers()

        # One list per row, never aliased
        self.display = [[0] * DISPLAY_WIDTH for _ in range(DISPLAY_HEIGHT)]
        self.keypad = [False] * KEYS

        self.program_running = True
        self.awaiting_key = False

    def debug_dump(self):
        state = [f'{k}:{v:X}' for k, v in {
            'PC': self.instruction_pointer,
            'I': self.address_register,
            'SP': self.stack_pointer,
            'DT': self.timers.delay,
            'ST': self.timers.sound
        }.items()]

        state.extend([f'V{i:X}:{self.registers[i]:X}' for i in range(len(self.registers))])

        lg.debug(' '.join(state))
