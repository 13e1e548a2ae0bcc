"""
Switcheroo - Per-device keyboard layout and scroll direction overrides

Applies a preferred input source and natural scroll setting while a matching
keyboard is connected, and restores the user's defaults when it goes away.
"""

__version__ = "0.1.0"
