"""
Override resolution.

Each setting (input source, natural scroll) gets its own precedence list of
(selector, value) pairs in declaration order. For every distinct selector we
track the connected device identifiers it matches; an override qualifies
while that set is non-empty, and the latest-declared qualifying override wins.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet, Generic, Optional, Set, Tuple, TypeVar

from .config import Configuration, DeviceSelector

log = logging.getLogger(__name__)

T = TypeVar('T')


class Dimension(Enum):
    """A setting that configuration entries can override."""
    INPUT_SOURCE = auto()
    NATURAL_SCROLL = auto()


@dataclass(frozen=True)
class Override(Generic[T]):
    """A single rule value for one dimension."""
    selector: DeviceSelector
    value: T


class Overrides:
    """
    Tracks connected devices per selector and resolves effective settings.

    Only declaration order and whether a selector currently matches at least
    one connected device affect the result. How many devices match, and in
    which order they connected, does not.
    """

    def __init__(self, configuration: Configuration):
        input_source_overrides = []
        natural_scroll_overrides = []
        # Maps each device selector to the IDs of all connected devices it matches.
        self._devices: Dict[DeviceSelector, Set[str]] = {}

        for entry in configuration.entries:
            if entry.rules.input_source is not None:
                input_source_overrides.append(Override(entry.selector, entry.rules.input_source))
            if entry.rules.natural_scroll is not None:
                natural_scroll_overrides.append(Override(entry.selector, entry.rules.natural_scroll))
            self._devices.setdefault(entry.selector, set())

        self._overrides: Dict[Dimension, Tuple[Override, ...]] = {
            Dimension.INPUT_SOURCE: tuple(input_source_overrides),
            Dimension.NATURAL_SCROLL: tuple(natural_scroll_overrides),
        }
        # Fixed at construction; add/remove never touch the key set.
        self._selectors: Tuple[DeviceSelector, ...] = tuple(self._devices)

    @property
    def selectors(self) -> Tuple[DeviceSelector, ...]:
        """Distinct selectors in first-declared order."""
        return self._selectors

    def overrides_for(self, dimension: Dimension) -> Tuple[Override, ...]:
        """Overrides for a dimension in declaration order."""
        return self._overrides[dimension]

    def matches_for(self, selector: DeviceSelector) -> FrozenSet[str]:
        """Connected device IDs currently matched by a selector."""
        return frozenset(self._devices[selector])

    def add_device(self, device: str):
        """Record a connected device against every selector that matches it."""
        for selector in self._selectors:
            if selector.matches(device):
                self._devices[selector].add(device)
                log.debug(f"Device '{device}' matches selector '{selector}'")

    def remove_device(self, device: str):
        """Forget a disconnected device for every selector."""
        for selector in self._selectors:
            self._devices[selector].discard(device)

    def resolve(self, dimension: Dimension) -> Optional[object]:
        """
        Get the effective override for a dimension.

        Returns None when no override currently qualifies.
        """
        for override in reversed(self._overrides[dimension]):
            if self._devices[override.selector]:
                return override.value
        return None

    def get_input_source(self) -> Optional[str]:
        return self.resolve(Dimension.INPUT_SOURCE)

    def get_natural_scroll(self) -> Optional[bool]:
        return self.resolve(Dimension.NATURAL_SCROLL)
