import sys
from pathlib import Path
import logging as lg
import random
import traceback

import click

from c8emu.common.config import Settings, ConfigError, load_config
from c8emu.common.hwconf import ROM_BASE, WORD_SIZE, HALT_WORD, KEYS
from c8emu.runtime.catalog import OpcodeCatalog, CatalogError
from c8emu.runtime.resolver import Resolver
from c8emu.runtime.executor import Executor
from c8emu.runtime.state import MachineState


EXIT_HALT = 0
EXIT_STEP_LIMIT = 1
EXIT_KEY_WAIT = 2
EXIT_KEYBOARD = 3
EXIT_EXEC_ERROR = 100


class ImageTooLarge(Exception):
    pass


def load_catalog(settings: Settings) -> OpcodeCatalog:
    if settings.opcodes is not None:
        return OpcodeCatalog.from_file(settings.opcodes)

    return OpcodeCatalog.default()


class Emulator:
    state: MachineState
    catalog: OpcodeCatalog
    resolver: Resolver
    executor: Executor

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: OpcodeCatalog | None = None,
        rng: random.Random | None = None
    ):
        settings = settings if settings is not None else Settings()

        self.catalog = catalog if catalog is not None else load_catalog(settings)

        missing = self.catalog.missing(Executor.HANDLERS)

        if missing:
            raise CatalogError(f'Opcode catalog lacks {", ".join(missing)}')

        self.state = MachineState()
        self.resolver = Resolver(self.catalog)
        self.executor = Executor(self.state, self.resolver, settings.quirks, rng)

    # - Collaborator seams - #

    def load_rom(self, rom: bytes):
        rb = ROM_BASE
        memory = self.state.memory

        if rb + len(rom) > len(memory):
            raise ImageTooLarge(
                f'Image of {len(rom)} bytes does not fit above {rb:03X}')

        memory[rb:rb + len(rom)] = rom
        lg.info(f'Loaded {len(rom)} bytes at {rb:03X}')

    def press_key(self, key: int):
        self.state.keypad[key % KEYS] = True

    def release_key(self, key: int):
        self.state.keypad[key % KEYS] = False

    def describe(self, word: int) -> str:
        return self.resolver.describe(word)

    # - Loop - #

    def fetch(self) -> int:
        memory = self.state.memory
        ip = self.state.instruction_pointer

        # Wraps at the top of memory like data accesses do
        return (memory[ip % len(memory)] << 8) | memory[(ip + 1) % len(memory)]

    def kill(self):
        self.state.program_running = False

    def step(self) -> bool:
        word = self.fetch()

        if word == HALT_WORD:
            lg.info(f'Halt word at {self.state.instruction_pointer:03X}')
            self.kill()
            return False

        if not self.executor.execute(word):
            self.state.instruction_pointer += WORD_SIZE

        return True

    def stalled(self) -> bool:
        return self.state.awaiting_key and not any(self.state.keypad)

    def run(self, max_steps: int | None = None, stop_on_key_wait: bool = False) -> int:
        steps = 0

        while self.state.program_running:
            if max_steps is not None and steps >= max_steps:
                break

            # Nobody can press a key, FX0A would retry forever
            if stop_on_key_wait and self.stalled():
                break

            if self.step():
                steps += 1

        return steps


def render_display(state: MachineState) -> str:
    return '\n'.join(
        ''.join('#' if pixel else '.' for pixel in row) for row in state.display
    )


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('-c', '--config', type=click.Path(exists=True, path_type=Path))
@click.option('-n', '--max-steps', type=int, default=None, help='Stop after this many steps')
@click.option('-d', '--show-display', is_flag=True, help='Print the framebuffer on exit')
@click.argument('rom_filename', type=Path)
def run(verbose: bool, config: Path | None, max_steps: int | None,
        show_display: bool, rom_filename: Path):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("C8EMU")

    emu = None

    try:
        settings = load_config(config) if config is not None else Settings()
        emu = Emulator(settings)
        emu.load_rom(rom_filename.read_bytes())
        emu.run(max_steps, stop_on_key_wait=True)

        if verbose:
            emu.state.debug_dump()

        if not emu.state.program_running:
            code = EXIT_HALT
        elif emu.stalled():
            code = EXIT_KEY_WAIT
        else:
            code = EXIT_STEP_LIMIT

        if code == EXIT_KEY_WAIT:
            lg.info(f'Stopped waiting for a key at {emu.state.instruction_pointer:03X}')
        elif code == EXIT_STEP_LIMIT:
            lg.info(f'Step limit {max_steps} reached')
        else:
            lg.info('Execution halted gracefully')

    except KeyboardInterrupt:
        lg.info('Execution halted by the user')
        code = EXIT_KEYBOARD

    except (ConfigError, CatalogError) as e:
        lg.error(f'Cannot start: {e}')
        code = EXIT_EXEC_ERROR

    except Exception as e:
        lg.info(f'Execution halted on general error {e}')
        traceback.print_exc()
        code = EXIT_EXEC_ERROR

    if show_display and emu is not None:
        click.echo(render_display(emu.state))

    sys.exit(code)


if __name__ == '__main__':
    run()
