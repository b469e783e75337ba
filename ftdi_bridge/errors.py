"""
errors.py – Exceptions raised by the bridge
============================================
All errors derive from BridgeError so callers can catch the whole family.
Errors coming straight from pyftdi / pyusb during a session are not wrapped.
"""


class BridgeError(IOError):
    """Base class for all bridge errors."""


class ShortWriteError(BridgeError):
    """The transport accepted fewer bytes than requested."""

    def __init__(self, expected: int, written: int):
        super().__init__(
            f"Expected to write {expected} bytes, only {written} written")
        self.expected = expected
        self.written  = written


class SyncError(BridgeError):
    """MPSSE did not echo the bad-opcode response within the retry bound."""

    def __init__(self, attempts: int, message: str | None = None):
        super().__init__(
            message or f"Could not synchronize with MPSSE after {attempts} attempts")
        self.attempts = attempts


class PollTimeoutError(BridgeError, TimeoutError):
    """Expected bytes were not received before the poll deadline."""

    def __init__(self, expected: int, received: int, timeout: float):
        super().__init__(
            f"Timed out after {timeout}s polling for {expected} bytes "
            f"({received} received)")
        self.expected = expected
        self.received = received
        self.timeout  = timeout


class DeviceNotFoundError(BridgeError):
    """No USB device matches the vendor/product selection."""


class PermissionDeniedError(BridgeError, PermissionError):
    """The operation needs elevated privileges (e.g. driver unload)."""
