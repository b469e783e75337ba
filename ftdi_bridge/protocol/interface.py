"""
interface.py – Common SPI bus capability
=========================================
HardwareSPI (MPSSE-clocked) and SoftwareSPI (bit-banged) both implement
SpiBus, so device drivers can be written once against this interface.

State per transfer:

  Idle → (CS assert) → Clocking (N bit edges) → (CS de-assert) → Idle

A transport error while clocking aborts the rest of the transfer and
propagates to the caller unchanged; there is no partial-byte retry. CS is
still de-asserted on the way out.

Both backends take the same payloads: an int is one byte, anything
bytes-like is sent as is, and an empty payload is a ValueError.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager

from .modes import ChipSelectPolicy


class SpiBus(ABC):
    """Capability shared by every SPI backend."""

    policy: ChipSelectPolicy

    @abstractmethod
    def configure(self, *args, **kwargs) -> None:
        """Pins, clock and bit order; backend-specific arguments."""

    @abstractmethod
    def write(self, data) -> None:
        """Half-duplex write."""

    @abstractmethod
    def read(self, length: int) -> bytes:
        """Half-duplex read of `length` bytes."""

    @abstractmethod
    def transfer(self, data):
        """Full-duplex exchange; returns as many bytes as were sent."""

    @abstractmethod
    def assert_chip_select(self) -> None:
        ...

    @abstractmethod
    def de_assert_chip_select(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def take_control_of_cs(self) -> None:
        """Caller drives CS; transfers stop bracketing it."""
        self.policy.manual = True

    def release_control_of_cs(self) -> None:
        self.policy.manual = False

    @contextmanager
    def selected(self):
        """
        Holds CS asserted across several transfers.

        Example (same register to four daisy-chained chips):
            with bus.selected():
                for _ in range(4):
                    bus.write(bytes([reg, value]))
        """
        previous = self.policy.manual
        try:
            self.take_control_of_cs()
            self.assert_chip_select()
            try:
                yield self
            finally:
                self.de_assert_chip_select()
        finally:
            self.policy.manual = previous

    @staticmethod
    def _payload(data) -> tuple[bytes, bool]:
        """
        Normalizes a transfer argument to (bytes, single).

        An int is one byte and `single` is True for it, so transfer() can
        hand back an int. Empty payloads are rejected.
        """
        single = isinstance(data, int)
        payload = bytes([data & 0xFF]) if single else bytes(data)
        if not payload:
            raise ValueError("SPI payload must not be empty")
        return payload, single

    def _begin_transfer(self) -> None:
        if self.policy.brackets_transfers:
            self.assert_chip_select()

    def _end_transfer(self) -> None:
        if self.policy.brackets_transfers:
            self.de_assert_chip_select()

    @contextmanager
    def _bracketed(self):
        """CS window of one transfer; CS is released even if clocking fails."""
        self._begin_transfer()
        try:
            yield
        finally:
            self._end_transfer()

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()
