"""
HID keyboard discovery and connect/disconnect monitoring.

Uses hidapi to enumerate keyboards. Devices are identified by their product
string, which is what configuration selectors are matched against.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set

try:
    import hid
    HID_AVAILABLE = True
except ImportError:
    HID_AVAILABLE = False

from .errors import DeviceCatalogUnavailableError

log = logging.getLogger(__name__)

# Standard HID usage page and usage for keyboards
USAGE_PAGE_GENERIC_DESKTOP = 0x01
USAGE_KEYBOARD = 0x06


@dataclass
class HIDDevice:
    """Represents a HID device."""
    path: bytes
    vid: int
    pid: int
    product: str
    manufacturer: str
    usage_page: int
    usage: int

    @property
    def is_keyboard(self) -> bool:
        """Check if this interface is a keyboard."""
        return self.usage_page == USAGE_PAGE_GENERIC_DESKTOP and self.usage == USAGE_KEYBOARD


def enumerate_devices() -> List[HIDDevice]:
    """Enumerate all HID devices."""
    if not HID_AVAILABLE:
        raise DeviceCatalogUnavailableError("hidapi is not available")

    try:
        infos = hid.enumerate()
    except OSError as e:
        raise DeviceCatalogUnavailableError(str(e)) from e

    return [
        HIDDevice(
            path=info.get('path', b''),
            vid=info.get('vendor_id', 0),
            pid=info.get('product_id', 0),
            product=info.get('product_string', '') or '',
            manufacturer=info.get('manufacturer_string', '') or '',
            usage_page=info.get('usage_page', 0),
            usage=info.get('usage', 0),
        )
        for info in infos
    ]


def device_keys(devices: Iterable[HIDDevice]) -> Set[str]:
    """
    Identifiers of the keyboards in `devices`.

    Keyboards without a product string can't be matched by any selector
    and are skipped; see unresolved_keyboards().
    """
    return {device.product for device in devices if device.is_keyboard and device.product}


def unresolved_keyboards(devices: Iterable[HIDDevice]) -> Dict[bytes, HIDDevice]:
    """Keyboards with no product string, keyed by HID path."""
    return {device.path: device for device in devices if device.is_keyboard and not device.product}


def enumerate_keyboards() -> Set[str]:
    """Identifiers of all currently connected keyboards."""
    return device_keys(enumerate_devices())


class HIDMonitor:
    """
    Polls for keyboards being connected and disconnected.

    The first poll reports every keyboard that is already connected. The
    callbacks run on the monitor thread and should only hand the identifier
    off (e.g. to an event queue).
    """

    def __init__(
        self,
        on_add: Callable[[str], None],
        on_remove: Callable[[str], None],
        interval: float = 1.0,
        enumerate_fn: Callable[[], List[HIDDevice]] = enumerate_devices,
    ):
        self._on_add = on_add
        self._on_remove = on_remove
        self._interval = interval
        self._enumerate = enumerate_fn
        self._known: Set[str] = set()
        self._unresolved: Set[bytes] = set()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def known_devices(self) -> Set[str]:
        return set(self._known)

    def poll(self):
        """Diff the connected keyboards against the last poll and report changes."""
        devices = self._enumerate()

        # Unidentifiable keyboards are reported once when they show up, not every poll
        unresolved = unresolved_keyboards(devices)
        for path, device in unresolved.items():
            if path not in self._unresolved:
                log.error(f"Failed to retrieve device key from device: {device.vid:04X}:{device.pid:04X} {path!r}")
        self._unresolved = set(unresolved)

        current = device_keys(devices)
        added = current - self._known
        removed = self._known - current
        self._known = current

        for device in sorted(removed):
            log.debug(f"Device removed: {device}")
            self._on_remove(device)
        for device in sorted(added):
            log.debug(f"Device matched: {device}")
            self._on_add(device)

    def start(self):
        """Start monitoring keyboards."""
        if self._thread is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._monitor_loop, name='switcheroo-hid', daemon=True)
        self._thread.start()

    def stop(self):
        """Stop monitoring."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._interval + 1.0)
            self._thread = None

    def _monitor_loop(self):
        """Main monitoring loop - polls for keyboard changes."""
        while not self._stop_event.is_set():
            try:
                self.poll()
            except DeviceCatalogUnavailableError as e:
                log.warning(f"Device enumeration failed: {e}")
            self._stop_event.wait(self._interval)
