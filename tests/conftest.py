"""
Shared fixtures: an in-memory transport standing in for the FTDI chip.
"""

from collections import deque

import pytest

from ftdi_bridge.constants import DEFAULT_PIN, BAD_OPCODE_ECHO
from ftdi_bridge.core.mpsse import MpsseDriver
from ftdi_bridge.protocol.hardware_spi import HardwareSPI
from ftdi_bridge.protocol.modes import SpiMode, BitOrder
from ftdi_bridge.protocol.software_spi import SoftwareSPI


class FakeTransport:
    """Records writes, serves scripted reads and pin samples."""

    def __init__(self, responses=(), pin_samples=()):
        self.writes: list[bytes] = []
        self.reads = deque(bytes(r) for r in responses)
        self.pin_samples = deque(pin_samples)
        self.read_calls = 0
        self.bitmodes = []
        self.chunk_size = None
        self.pacing = None
        self.opened = False
        self.closed = False
        self.short_by = 0
        self.fail_after = None

    def queue(self, *chunks) -> None:
        self.reads.extend(bytes(c) for c in chunks)

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def set_bitmode(self, mask, mode) -> None:
        self.bitmodes.append((mask, mode))

    def set_chunk_size(self, size) -> None:
        self.chunk_size = size

    def set_pacing(self, hz) -> int:
        self.pacing = hz
        return hz

    def write(self, data) -> int:
        # fail_after: the write after that many successful ones fails, once
        if self.fail_after is not None and len(self.writes) >= self.fail_after:
            self.fail_after = None
            raise IOError("USB bulk write error")
        self.writes.append(bytes(data))
        return len(data) - self.short_by

    def read_into(self, buffer) -> int:
        self.read_calls += 1
        if not self.reads:
            return 0
        data = self.reads.popleft()
        buffer[:len(data)] = data
        return len(data)

    def read_pins(self) -> int:
        return self.pin_samples.popleft() if self.pin_samples else 0


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def driver(transport):
    drv = MpsseDriver(transport)
    drv.initialize()
    return drv


@pytest.fixture
def synced_transport():
    return FakeTransport(responses=[BAD_OPCODE_ECHO])


@pytest.fixture
def hw_spi(driver, transport):
    spi = HardwareSPI(driver)
    spi.configure(DEFAULT_PIN, 1_000_000, SpiMode.MODE0, BitOrder.MSB_FIRST)
    transport.writes.clear()
    return spi


@pytest.fixture
def soft_spi(transport):
    spi = SoftwareSPI(MpsseDriver(transport))
    spi.configure(10_000, BitOrder.MSB_FIRST)
    transport.writes.clear()
    return spi


@pytest.fixture
def fake_transport_cls():
    return FakeTransport
