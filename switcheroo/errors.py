"""
Error types raised by switcheroo.

Everything except ApplyError happens during startup and is fatal: the CLI
reports it and exits before any device event is processed.
"""


class SwitcherooError(Exception):
    """Base exception for switcheroo errors."""
    pass


class ConfigUnreadableError(SwitcherooError):
    """Raised when the configuration file cannot be opened or read."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Failed to read configuration file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ConfigMalformedError(SwitcherooError):
    """Raised when the configuration does not have the expected shape."""
    pass


class DeviceCatalogUnavailableError(SwitcherooError):
    """Raised when the device list cannot be retrieved from the OS."""

    def __init__(self, reason: str = ""):
        message = "Failed to retrieve device list from the operating system."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InputSourceCatalogUnavailableError(SwitcherooError):
    """Raised when the input source list cannot be retrieved from the OS."""

    def __init__(self, reason: str = ""):
        message = "Failed to retrieve input source list from the operating system."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ActiveInputSourceUnavailableError(SwitcherooError):
    """Raised when the currently active input source cannot be determined."""

    def __init__(self, reason: str = ""):
        message = "Failed to retrieve active input source."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NaturalScrollUnavailableError(SwitcherooError):
    """Raised when the natural scroll preference cannot be read."""

    def __init__(self, reason: str = ""):
        message = "Failed to retrieve natural scroll setting."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnknownInputSourceError(SwitcherooError):
    """Raised when a configuration entry names an input source the OS doesn't have."""

    def __init__(self, entry, input_source: str):
        self.entry = entry
        self.input_source = input_source
        super().__init__(
            f"Input source {input_source} in this configuration file entry is unknown: {entry}"
        )


class InvalidBooleanLiteralError(SwitcherooError):
    """Raised for a natural scroll value other than `true` or `false`."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(
            f"Invalid setting for natural scroll (only `false` and `true` are valid): {raw}"
        )


class ApplyError(SwitcherooError):
    """Raised when pushing a setting to the OS fails at runtime."""
    pass
