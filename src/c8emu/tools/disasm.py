from pathlib import Path
import logging as lg

import click

from c8emu.common.config import Settings, load_config
from c8emu.common.hwconf import ROM_BASE, WORD_SIZE
from c8emu.runtime.emulator import load_catalog
from c8emu.runtime.resolver import Resolver, UnknownOpcode


def disassemble(resolver: Resolver, rom: bytes, base: int = ROM_BASE) -> list[str]:
    lines = []

    for offset in range(0, len(rom), WORD_SIZE):
        chunk = rom[offset:offset + WORD_SIZE]

        # Trailing odd byte
        if len(chunk) < WORD_SIZE:
            lines.append(f'{base + offset:03X}  {chunk[0]:02X}')
            break

        word = int.from_bytes(chunk, 'big')

        try:
            op = resolver.resolve(word)
            desc = resolver.catalog.describe(op)
        except UnknownOpcode:
            op, desc = '????', ''

        lines.append(f'{base + offset:03X}  {word:04X}  {op}  {desc}'.rstrip())

    return lines


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('-c', '--config', type=click.Path(exists=True, path_type=Path))
@click.option('-b', '--base', default=hex(ROM_BASE), help='Load address of the image')
@click.argument('rom_filename', type=Path)
def disasm(verbose: bool, config: Path | None, base: str, rom_filename: Path):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.WARNING)

    settings = load_config(config) if config is not None else Settings()
    resolver = Resolver(load_catalog(settings))

    for line in disassemble(resolver, rom_filename.read_bytes(), int(base, 0)):
        click.echo(line)


if __name__ == "__main__":
    disasm()
