''' Opcode descriptor table '''

from pathlib import Path
import logging as lg
from typing import Iterable, Iterator

import pyparsing as pp


DESCRIPTOR_PATH = Path(__file__).parent.parent / 'common' / 'opcodes.txt'
SEPARATOR = '|'
WILDCARDS = 'XYN'


class CatalogError(Exception):
    pass


pattern = pp.Regex(r'[0-9A-F' + WILDCARDS + r']{4}')('pattern')
description = pp.rest_of_line('description')
entry = pattern + pp.Suppress(SEPARATOR) + description


def parse_line(line: str, lineno: int) -> tuple[str, str]:
    if SEPARATOR not in line:
        raise CatalogError(f'Line {lineno}: no "{SEPARATOR}" separator in {line.strip()!r}')

    try:
        parsed = entry.parse_string(line, parse_all=True)
    except pp.ParseException as e:
        raise CatalogError(f'Line {lineno}: malformed entry {line.strip()!r} ({e})') from e

    return (parsed['pattern'], parsed['description'].strip())


class OpcodeCatalog:
    ''' Pattern -> description, read-only once loaded '''

    def __init__(self, entries: dict[str, str]):
        self._entries = dict(entries)

    @classmethod
    def load(cls, lines: Iterable[str]) -> 'OpcodeCatalog':
        entries: dict[str, str] = {}

        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue

            op, desc = parse_line(line, lineno)

            # Later duplicates win
            entries[op] = desc

        lg.debug(f'Loaded {len(entries)} opcode descriptions')
        return cls(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> 'OpcodeCatalog':
        if isinstance(path, str):
            path = Path(path)

        lg.debug(f'Reading opcode descriptors from {path}')
        return cls.load(path.read_text().splitlines())

    @classmethod
    def default(cls) -> 'OpcodeCatalog':
        return cls.from_file(DESCRIPTOR_PATH)

    def describe(self, op: str) -> str:
        return self._entries[op]

    def missing(self, required: Iterable[str]) -> list[str]:
        return [op for op in required if op not in self._entries]

    def __contains__(self, op: object) -> bool:
        return op in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
