import logging as lg

from c8emu.runtime.catalog import OpcodeCatalog, WILDCARDS


class UnknownOpcode(Exception):
    def __init__(self, word: int, nearest: str | None):
        self.word = word
        self.nearest = nearest
        super().__init__(f'No instruction matches {word:04X} (nearest: {nearest})')


def format_word(word: int) -> str:
    return f'{word & 0xFFFF:04X}'


def similarity(op: str, formatted: str) -> int:
    ''' Positional score, leading characters weigh more; wildcards never count '''
    score = 0

    for i, (a, b) in enumerate(zip(op, formatted)):
        if a == b:
            score += len(op) - i

    return score


def compile_pattern(op: str) -> tuple[int, int]:
    ''' (mask, value) over the fixed hex digits of a pattern '''
    mask = 0
    value = 0

    for c in op:
        mask <<= 4
        value <<= 4

        if c not in WILDCARDS:
            mask |= 0xF
            value |= int(c, 16)

    return (mask, value)


def fixed_digits(op: str) -> int:
    return sum(1 for c in op if c not in WILDCARDS)


class Resolver:
    catalog: OpcodeCatalog
    buckets: dict[str | None, list[tuple[str, int, int]]]   # Leading digit -> candidates

    def __init__(self, catalog: OpcodeCatalog):
        self.catalog = catalog
        self.buckets = {}

        for op in catalog:
            mask, value = compile_pattern(op)
            lead = None if op[0] in WILDCARDS else op[0]
            self.buckets.setdefault(lead, []).append((op, mask, value))

        # Most specific pattern first, so 00E0 is tried before 0NNN
        for candidates in self.buckets.values():
            candidates.sort(key=lambda c: fixed_digits(c[0]), reverse=True)

    def nearest(self, word: int) -> str | None:
        formatted = format_word(word)
        best = None
        best_score = -1

        for op in self.catalog:
            score = similarity(op, formatted)

            if score > best_score:
                best, best_score = op, score

        return best

    def resolve(self, word: int) -> str:
        lead = format_word(word)[0]
        candidates = self.buckets.get(lead, []) + self.buckets.get(None, [])

        for op, mask, value in candidates:
            if word & mask == value:
                return op

        nearest = self.nearest(word)
        lg.debug(f'Unresolved word {word:04X}, nearest {nearest}')
        raise UnknownOpcode(word, nearest)

    def describe(self, word: int) -> str:
        return self.catalog.describe(self.resolve(word))
