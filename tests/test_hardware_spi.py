"""
MPSSE hardware SPI: command bytes, chip-select handling, pin setup.
"""

import pytest

from ftdi_bridge.constants import (
    D3, D5, TRIGGER_PIN, NO_PIN, DEFAULT_PIN, HARDWARE_PIN,
)
from ftdi_bridge.errors import ShortWriteError, PollTimeoutError
from ftdi_bridge.gpio import Direction
from ftdi_bridge.protocol.hardware_spi import HardwareSPI
from ftdi_bridge.protocol.modes import (
    SpiMode, BitOrder, ChipSelectPolicy, encode_length,
)


def gpio(level_low, dir_low, level_high=0, dir_high=0):
    return bytes([0x80, level_low, dir_low, 0x82, level_high, dir_high])


@pytest.fixture
def bracketed_spi(driver, transport):
    spi = HardwareSPI(driver, policy=ChipSelectPolicy(constant_assert=False))
    spi.configure(DEFAULT_PIN, 1_000_000, SpiMode.MODE0, BitOrder.MSB_FIRST)
    transport.writes.clear()
    return spi


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_configure_sequence(driver, transport):
    spi = HardwareSPI(driver)
    spi.configure(DEFAULT_PIN, 1_000_000, SpiMode.MODE0, BitOrder.MSB_FIRST)
    assert transport.writes == [
        gpio(0x00, 0x01),                 # clock idle first
        gpio(0x08, 0x09),                 # CS idle high
        bytes([0x8A, 0x97, 0x8D]),
        bytes([0x86, 29, 0x00]),
        gpio(0x08, 0x0B),                 # SCK/MOSI out, MISO in
    ]
    assert spi.chip_select == D3


@pytest.mark.parametrize("mode, idle", [
    (SpiMode.MODE0, 0x00), (SpiMode.MODE1, 0x00),
    (SpiMode.MODE2, 0x01), (SpiMode.MODE3, 0x01),
])
def test_clock_idle_pushed_first(driver, transport, mode, idle):
    HardwareSPI(driver).configure(NO_PIN, 1_000_000, mode)
    assert transport.writes[0] == gpio(idle, 0x01)
    assert transport.writes[-1] == gpio(idle, 0x03)


def test_configure_rejects_bad_cs_pin(driver):
    with pytest.raises(ValueError):
        HardwareSPI(driver).configure(16)


def test_trigger_pin_configured_high(driver, transport):
    spi = HardwareSPI(driver)
    spi.enable_trigger()
    spi.configure(NO_PIN)
    assert transport.writes[1] == gpio(0x80, 0x81)

    transport.writes.clear()
    spi.trigger_pulse()
    assert transport.writes == [gpio(0x80, 0x83), gpio(0x00, 0x83)]


def test_pin_helpers_push_banks(hw_spi, transport):
    hw_spi.config_pin(D5, Direction.OUTPUT)
    hw_spi.output_high(D5)
    hw_spi.output_low(D5)
    assert transport.writes == [
        gpio(0x08, 0x2B), gpio(0x28, 0x2B), gpio(0x08, 0x2B),
    ]


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------

def test_bracketed_write_end_to_end(bracketed_spi, transport):
    bracketed_spi.write(bytes([0x01, 0x02]))
    assert transport.writes == [
        gpio(0x00, 0x0B),
        bytes([0x10, 0x01, 0x00]),
        bytes([0x01, 0x02]),
        gpio(0x08, 0x0B),
    ]


def test_constant_assert_leaves_cs_alone(hw_spi, transport):
    hw_spi.write([0xAA])
    assert transport.writes == [bytes([0x10, 0x00, 0x00]), b"\xAA"]


@pytest.mark.parametrize("length, field", [
    (1, b"\x00\x00"), (2, b"\x01\x00"), (256, b"\xFF\x00"), (65536, b"\xFF\xFF"),
])
def test_length_field(hw_spi, transport, length, field):
    assert encode_length(length) == field
    hw_spi.write(bytes(length))
    assert transport.writes[0][1:] == field


@pytest.mark.parametrize("length", [0, 65537])
def test_length_out_of_range(hw_spi, transport, length):
    with pytest.raises(ValueError):
        hw_spi.write(bytes(length))
    assert transport.writes == []


@pytest.mark.parametrize("mode, order, opcodes", [
    (SpiMode.MODE0, BitOrder.MSB_FIRST, (0x10, 0x24, 0x34)),
    (SpiMode.MODE1, BitOrder.MSB_FIRST, (0x11, 0x20, 0x31)),
    (SpiMode.MODE2, BitOrder.MSB_FIRST, (0x10, 0x24, 0x34)),
    (SpiMode.MODE3, BitOrder.MSB_FIRST, (0x11, 0x20, 0x31)),
    (SpiMode.MODE0, BitOrder.LSB_FIRST, (0x18, 0x2C, 0x3C)),
    (SpiMode.MODE1, BitOrder.LSB_FIRST, (0x19, 0x28, 0x39)),
])
def test_opcodes(driver, transport, mode, order, opcodes):
    spi = HardwareSPI(driver)
    spi.configure(NO_PIN, 1_000_000, mode, order)
    transport.writes.clear()

    spi.write([0x00])
    transport.queue(b"\x00")
    spi.read(1)
    transport.queue(b"\x00")
    spi.transfer([0x00])

    assert [transport.writes[i][0] for i in (0, 2, 3)] == list(opcodes)


def test_read_command_and_data(hw_spi, transport):
    transport.queue(b"\x12", b"\x34\x56")
    assert hw_spi.read(3) == b"\x12\x34\x56"
    assert transport.writes == [bytes([0x24, 0x02, 0x00, 0x87])]


def test_transfer_single_write(hw_spi, transport):
    transport.queue(b"\xCA\xFE")
    assert hw_spi.transfer([0xDE, 0xAD]) == b"\xCA\xFE"
    assert transport.writes == [bytes([0x34, 0x01, 0x00, 0xDE, 0xAD, 0x87])]


def test_bracketed_transfer_deasserts_after_command(bracketed_spi, transport):
    transport.queue(b"\x55")
    bracketed_spi.transfer([0x01])
    assert transport.writes == [
        gpio(0x00, 0x0B),
        bytes([0x34, 0x00, 0x00, 0x01, 0x87]),
        gpio(0x08, 0x0B),
    ]


def test_transfer_timeout(hw_spi):
    with pytest.raises(PollTimeoutError):
        hw_spi.transfer([0x01, 0x02], timeout=0)


def test_short_write_propagates(hw_spi, transport):
    transport.short_by = 1
    with pytest.raises(ShortWriteError):
        hw_spi.write([0x01, 0x02])
    assert len(transport.writes) == 1


def test_write_byte(hw_spi, transport):
    hw_spi.write_byte(0x1FF)
    assert transport.writes == [bytes([0x10, 0x00, 0x00]), b"\xFF"]


# ---------------------------------------------------------------------------
# Chip select
# ---------------------------------------------------------------------------

def test_manual_cs_window(bracketed_spi, transport):
    with bracketed_spi.selected():
        bracketed_spi.write([0x01])
        bracketed_spi.write([0x02])
    assert transport.writes == [
        gpio(0x00, 0x0B),
        bytes([0x10, 0x00, 0x00]), b"\x01",
        bytes([0x10, 0x00, 0x00]), b"\x02",
        gpio(0x08, 0x0B),
    ]
    assert not bracketed_spi.policy.manual


def test_take_control_of_cs(bracketed_spi, transport):
    bracketed_spi.take_control_of_cs()
    bracketed_spi.write([0x01])
    assert len(transport.writes) == 2

    bracketed_spi.release_control_of_cs()
    bracketed_spi.write([0x01])
    assert len(transport.writes) == 6


@pytest.mark.parametrize("chip_select", [NO_PIN, HARDWARE_PIN])
def test_cs_without_software_pin(driver, transport, chip_select):
    spi = HardwareSPI(driver, policy=ChipSelectPolicy(constant_assert=False))
    spi.configure(chip_select)
    transport.writes.clear()

    spi.assert_chip_select()
    spi.de_assert_chip_select()
    assert transport.writes == []
    assert spi.hardware_controlled == (chip_select == HARDWARE_PIN)


def test_active_high_cs(driver, transport):
    spi = HardwareSPI(driver, policy=ChipSelectPolicy(active_low=False))
    spi.configure(D5)
    assert transport.writes[1] == gpio(0x00, 0x21)

    transport.writes.clear()
    spi.assert_chip_select()
    assert transport.writes == [gpio(0x20, 0x23)]


def test_close(hw_spi, transport):
    with hw_spi:
        pass
    assert transport.closed
