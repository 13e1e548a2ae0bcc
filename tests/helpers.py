"""
Test doubles for the OS-facing collaborators.
"""

import threading

from switcheroo.errors import ApplyError
from switcheroo.hid_monitor import HIDDevice


class FakeInputSources:
    """Records set_active calls; thread-safe so it can sit behind the worker."""

    def __init__(self, available=("xkb:us", "xkb:de", "xkb:fr"), active="xkb:us"):
        self.available = list(available)
        self.active = active
        self.calls = []
        self.fail = False
        self._lock = threading.Lock()

    def list_available(self):
        return list(self.available)

    def get_active(self):
        return self.active

    def set_active(self, input_source):
        with self._lock:
            self.calls.append(input_source)
            if self.fail:
                raise ApplyError("gsettings failed")
            self.active = input_source


class FakeNaturalScroll:

    def __init__(self, value=True):
        self.value = value
        self.calls = []
        self._lock = threading.Lock()

    def get(self):
        return self.value

    def set(self, natural_scroll):
        with self._lock:
            self.calls.append(natural_scroll)
            self.value = natural_scroll


def keyboards(*products):
    """HID keyboard interfaces with the given product strings."""
    return [
        HIDDevice(path=f"/dev/hidraw{i}".encode(), vid=0x04FE, pid=0x0021, product=product,
                  manufacturer="", usage_page=0x01, usage=0x06)
        for i, product in enumerate(products)
    ]
