"""
Configuration loading and validation.

The configuration file is YAML (plain JSON files load too):

    entries:
      - selector: HHKB-Classic
        rules:
          input_source: xkb:us
          natural_scroll: false

Entries are kept in declaration order; later entries win on conflict.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml

from .errors import (
    ConfigMalformedError,
    ConfigUnreadableError,
    InvalidBooleanLiteralError,
    UnknownInputSourceError,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceSelector:
    """Substring pattern matched against connected device identifiers."""
    value: str

    def matches(self, device: str) -> bool:
        """True if the device identifier contains the pattern (case-sensitive)."""
        return self.value in device

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Rules:
    """Settings to apply while a matching device is connected. None means unconstrained."""
    input_source: Optional[str] = None
    natural_scroll: Optional[bool] = None


@dataclass(frozen=True)
class ConfigurationEntry:
    """A selector and the rules it triggers."""
    selector: DeviceSelector
    rules: Rules

    def __str__(self):
        parts = []
        if self.rules.input_source is not None:
            parts.append(f"input_source={self.rules.input_source}")
        if self.rules.natural_scroll is not None:
            parts.append(f"natural_scroll={str(self.rules.natural_scroll).lower()}")
        return f"{self.selector.value!r} -> {{{', '.join(parts)}}}"


@dataclass(frozen=True)
class Configuration:
    """Ordered, immutable set of user rules."""
    entries: Tuple[ConfigurationEntry, ...] = ()

    def validate(self, input_sources: Iterable[str]):
        """
        Check every referenced input source against the OS catalog.

        Raises UnknownInputSourceError for the first entry that names an
        input source not in `input_sources`.
        """
        available = set(input_sources)
        for entry in self.entries:
            input_source = entry.rules.input_source
            if input_source is not None and input_source not in available:
                raise UnknownInputSourceError(entry, input_source)


def get_config_path() -> Path:
    """Get the configuration file path."""
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', '~')).expanduser()
    elif os.name == 'posix':
        if 'darwin' in os.uname().sysname.lower():  # macOS
            base = Path.home() / 'Library' / 'Application Support'
        else:  # Linux
            base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))
    else:
        base = Path.home()

    return base / 'switcheroo' / 'config.yaml'


def parse_bool(raw: str) -> bool:
    """Parse the literals `true` and `false`; anything else is rejected."""
    if raw == 'true':
        return True
    if raw == 'false':
        return False
    raise InvalidBooleanLiteralError(raw)


def _parse_rules(index: int, data: Any) -> Rules:
    if data is None:
        return Rules()
    if not isinstance(data, dict):
        raise ConfigMalformedError(f"entries[{index}].rules must be a mapping")

    input_source = data.get('input_source')
    if input_source is not None and not isinstance(input_source, str):
        raise ConfigMalformedError(f"entries[{index}].rules.input_source must be a string")

    natural_scroll = data.get('natural_scroll')
    # bool only; yaml already turned true/false into Python booleans
    if natural_scroll is not None and not isinstance(natural_scroll, bool):
        raise ConfigMalformedError(
            f"entries[{index}].rules.natural_scroll must be true or false, got {natural_scroll!r}"
        )

    return Rules(input_source=input_source, natural_scroll=natural_scroll)


def decode_config(data: Any) -> Configuration:
    """Build a Configuration from an already-parsed document."""
    if not isinstance(data, dict):
        raise ConfigMalformedError("Configuration must be a mapping with an 'entries' list")

    raw_entries = data.get('entries')
    if not isinstance(raw_entries, list):
        raise ConfigMalformedError("Configuration must contain an 'entries' list")

    entries = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise ConfigMalformedError(f"entries[{index}] must be a mapping")
        selector = raw.get('selector')
        if not isinstance(selector, str):
            raise ConfigMalformedError(f"entries[{index}].selector must be a string")
        entries.append(ConfigurationEntry(
            selector=DeviceSelector(selector),
            rules=_parse_rules(index, raw.get('rules')),
        ))

    return Configuration(entries=tuple(entries))


def decode_config_text(text: str) -> Configuration:
    """Parse YAML (or JSON) text into a Configuration."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigMalformedError(f"Failed to parse configuration: {e}") from e
    return decode_config(data)


def load_config(path: Optional[Path] = None) -> Configuration:
    """Load configuration from a YAML file."""
    if path is None:
        path = get_config_path()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ConfigUnreadableError(path, e.strerror or str(e)) from e

    config = decode_config_text(text)
    log.info(f"Loaded {len(config.entries)} configuration entries from {path}")
    return config
