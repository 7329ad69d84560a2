import random

import pytest

from c8emu.runtime.catalog import OpcodeCatalog
from c8emu.runtime.resolver import Resolver
from c8emu.runtime.emulator import Emulator


@pytest.fixture
def with_catalog():
    yield OpcodeCatalog.default()


@pytest.fixture
def with_resolver(with_catalog):
    yield Resolver(with_catalog)


@pytest.fixture
def with_emulator(with_catalog):
    yield Emulator(catalog=with_catalog, rng=random.Random(8))
