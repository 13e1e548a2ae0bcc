"""
Input source and natural scroll settings for GNOME desktops.

Both are read and written through the `gsettings` tool. Input sources are
identified as "<type>:<id>", e.g. "xkb:us" or "ibus:anthy".

Note that the natural scroll getter returns the persisted preference, i.e.
whatever was last written, not necessarily what the hardware is doing.
"""

import ast
import logging
import subprocess
from typing import List, Sequence, Tuple, Type

from .config import parse_bool
from .errors import (
    ActiveInputSourceUnavailableError,
    ApplyError,
    InputSourceCatalogUnavailableError,
    NaturalScrollUnavailableError,
    SwitcherooError,
)

log = logging.getLogger(__name__)

GSETTINGS = 'gsettings'
DEFAULT_TIMEOUT = 5.0

INPUT_SOURCES_SCHEMA = 'org.gnome.desktop.input-sources'
MOUSE_SCHEMA = 'org.gnome.desktop.peripherals.mouse'
TOUCHPAD_SCHEMA = 'org.gnome.desktop.peripherals.touchpad'
NATURAL_SCROLL_KEY = 'natural-scroll'


def gsettings(args: Sequence[str], error: Type[SwitcherooError], timeout: float = DEFAULT_TIMEOUT) -> str:
    """Run gsettings and return its stripped stdout, raising `error` on failure."""
    cmd = [GSETTINGS, *args]
    log.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=True)
    except FileNotFoundError as e:
        raise error(f"{GSETTINGS} not found") from e
    except subprocess.TimeoutExpired as e:
        raise error(f"{GSETTINGS} {' '.join(args)} timed out after {timeout}s") from e
    except subprocess.CalledProcessError as e:
        raise error(f"{GSETTINGS} {' '.join(args)} failed: {(e.stderr or '').strip()}") from e
    except OSError as e:
        raise error(f"{GSETTINGS} {' '.join(args)} could not be run: {e}") from e
    return result.stdout.strip()


def _strip_type_annotation(text: str) -> str:
    # Empty arrays print with a type prefix, e.g. "@a(ss) []"
    if text.startswith('@'):
        _, _, text = text.partition(' ')
    return text


def parse_sources(text: str) -> List[Tuple[str, str]]:
    """Parse an `a(ss)` value such as "[('xkb', 'us'), ('xkb', 'de')]"."""
    try:
        value = ast.literal_eval(_strip_type_annotation(text))
    except (ValueError, SyntaxError) as e:
        raise ValueError(f"Unexpected input source list: {text}") from e
    if not isinstance(value, list):
        raise ValueError(f"Unexpected input source list: {text}")

    sources = []
    for item in value:
        if not (isinstance(item, tuple) and len(item) == 2 and all(isinstance(s, str) for s in item)):
            raise ValueError(f"Unexpected input source entry: {item!r}")
        sources.append(item)
    return sources


def format_sources(sources: Sequence[Tuple[str, str]]) -> str:
    """Inverse of parse_sources."""
    if not sources:
        return '@a(ss) []'
    return '[' + ', '.join(f"('{kind}', '{name}')" for kind, name in sources) + ']'


def source_key(source: Tuple[str, str]) -> str:
    return f"{source[0]}:{source[1]}"


def parse_source_key(key: str) -> Tuple[str, str]:
    kind, sep, name = key.partition(':')
    if not sep or not kind or not name:
        raise ValueError(f"Input source must look like '<type>:<id>': {key}")
    return kind, name


def parse_uint32(text: str) -> int:
    """Parse a `u` value such as "uint32 2"."""
    return int(text.split()[-1])


class GnomeInputSources:
    """Lists, reads and selects GNOME keyboard input sources."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = timeout

    def _get(self, key: str, error: Type[SwitcherooError]) -> str:
        return gsettings(['get', INPUT_SOURCES_SCHEMA, key], error, self._timeout)

    def _set(self, key: str, value: str):
        gsettings(['set', INPUT_SOURCES_SCHEMA, key, value], ApplyError, self._timeout)

    def _sources(self, error: Type[SwitcherooError]) -> List[Tuple[str, str]]:
        try:
            return parse_sources(self._get('sources', error))
        except ValueError as e:
            raise error(str(e)) from e

    def list_available(self) -> List[str]:
        """Identifiers of all configured input sources, in the user's order."""
        return [source_key(s) for s in self._sources(InputSourceCatalogUnavailableError)]

    def get_active(self) -> str:
        """Identifier of the currently active input source."""
        try:
            mru = parse_sources(self._get('mru-sources', ActiveInputSourceUnavailableError))
            if mru:
                return source_key(mru[0])

            # Older GNOME releases track the active source by index instead
            sources = self._sources(ActiveInputSourceUnavailableError)
            current = parse_uint32(self._get('current', ActiveInputSourceUnavailableError))
        except ValueError as e:
            raise ActiveInputSourceUnavailableError(str(e)) from e

        if not 0 <= current < len(sources):
            raise ActiveInputSourceUnavailableError("no input sources are configured")
        return source_key(sources[current])

    def set_active(self, input_source: str):
        """Make `input_source` the active input source."""
        try:
            wanted = parse_source_key(input_source)
            sources = parse_sources(self._get('sources', ApplyError))
            mru = parse_sources(self._get('mru-sources', ApplyError))
        except ValueError as e:
            raise ApplyError(str(e)) from e

        if wanted not in sources:
            raise ApplyError(f"Unknown input source: {input_source}")

        self._set('mru-sources', format_sources([wanted] + [s for s in mru if s != wanted]))
        self._set('current', str(sources.index(wanted)))


class GnomeNaturalScroll:
    """Reads and writes the GNOME natural scroll preference."""

    def __init__(self, schemas: Sequence[str] = (MOUSE_SCHEMA, TOUCHPAD_SCHEMA),
                 timeout: float = DEFAULT_TIMEOUT):
        self._schemas = tuple(schemas)
        self._timeout = timeout

    def get(self) -> bool:
        """Last persisted natural scroll preference of the first schema."""
        raw = gsettings(['get', self._schemas[0], NATURAL_SCROLL_KEY],
                        NaturalScrollUnavailableError, self._timeout)
        return parse_bool(raw)

    def set(self, natural_scroll: bool):
        value = 'true' if natural_scroll else 'false'
        for schema in self._schemas:
            gsettings(['set', schema, NATURAL_SCROLL_KEY, value], ApplyError, self._timeout)
