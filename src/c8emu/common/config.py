from dataclasses import dataclass, field, fields
from pathlib import Path
import logging as lg
import tomllib


class ConfigError(Exception):
    pass


@dataclass
class Quirks:
    # 8XYE takes VF from bit 7 instead of bit 3
    shift_msb_flag: bool = False
    # FX55/FX65 address memory from I instead of PC
    index_memory_ops: bool = False


@dataclass
class Settings:
    quirks: Quirks = field(default_factory=Quirks)
    opcodes: Path | None = None     # Descriptor resource override

    def update(
        self,
        opcodes: Path | None = None,
        shift_msb_flag: bool | None = None,
        index_memory_ops: bool | None = None
    ):
        if opcodes is not None:
            self.opcodes = opcodes

        if shift_msb_flag is not None:
            self.quirks.shift_msb_flag = shift_msb_flag

        if index_memory_ops is not None:
            self.quirks.index_memory_ops = index_memory_ops

        return self


def parse_quirks(table: dict) -> Quirks:
    known = {f.name for f in fields(Quirks)}
    quirks = Quirks()

    for key, value in table.items():
        if key not in known:
            raise ConfigError(f'Unknown quirk {key}')

        if not isinstance(value, bool):
            raise ConfigError(f'Quirk {key} must be a boolean, got {value!r}')

        setattr(quirks, key, value)

    return quirks


def parse_config(config: dict, base_dir: Path | None = None) -> Settings:
    settings = Settings()

    for section in config:
        if section not in ('machine', 'quirks'):
            raise ConfigError(f'Unknown section [{section}]')

    settings.quirks = parse_quirks(config.get('quirks', {}))

    machine = config.get('machine', {})

    for key in machine:
        if key != 'opcodes':
            raise ConfigError(f'Unknown machine setting {key}')

    if 'opcodes' in machine:
        opcodes = Path(machine['opcodes'])

        # Relative to the config file
        if base_dir is not None and not opcodes.is_absolute():
            opcodes = base_dir / opcodes

        settings.opcodes = opcodes

    return settings


def load_config(path: str | Path) -> Settings:
    if isinstance(path, str):
        path = Path(path)

    lg.debug(f'Loading config {path}')

    try:
        config = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f'{path}: {e}') from e

    return parse_config(config, path.parent)
