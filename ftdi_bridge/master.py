"""
master.py – Facade: open a configured SPI bus
==============================================
open_spi() opens the FTDI device, brings it up and returns a configured
SpiBus. The backend (MPSSE hardware SPI or bit-banged software SPI) is
chosen here, once; device drivers only see the SpiBus interface.

Typical use:
    from ftdi_bridge import open_spi, SpiMode, DEFAULT_PIN

    with open_spi(chip_select=DEFAULT_PIN, clock_hz=1_000_000) as spi:
        spi.policy.constant_assert = False
        spi.write(bytes([0x01, 0x02]))
"""

from .constants import (
    VENDOR_ID, PRODUCT_ID, CHANNEL,
    NO_PIN, SPI_SPEED_HZ, SOFT_SPI_SPEED_HZ, SYNC_MAX_RETRIES,
)
from .core.mpsse import MpsseDriver
from .protocol.hardware_spi import HardwareSPI
from .protocol.interface import SpiBus
from .protocol.modes import SpiMode, BitOrder, ChipSelectPolicy
from .protocol.software_spi import SoftwareSPI
from .utils.log import CommunicationLog


def open_spi(
    software:       bool     = False,
    *,
    vendor:         int      = VENDOR_ID,
    product:        int      = PRODUCT_ID,
    channel:        int      = CHANNEL,
    unload_drivers: bool     = False,
    chip_select:    int      = NO_PIN,
    clock_hz:       int | None = None,
    mode:           SpiMode  = SpiMode.MODE0,
    bit_order:      BitOrder = BitOrder.MSB_FIRST,
    policy:         ChipSelectPolicy | None = None,
    enable_trigger: bool     = False,
    sleeping_poll:  bool     = False,
    max_retries:    int      = SYNC_MAX_RETRIES,
    log:            CommunicationLog | None = None,
) -> SpiBus:
    """
    Opens the device and returns a ready SPI bus.

    Parameters
    ----------
    software : bool
        False – HardwareSPI (MPSSE clocked), True – SoftwareSPI (bit-bang).
    vendor / product / channel : int
        USB device selection.
    unload_drivers : bool
        Unload platform serial drivers first (root required).
    chip_select : int
        Hardware SPI CS pin or NO_PIN / DEFAULT_PIN / HARDWARE_PIN.
        Software SPI always uses D3.
    clock_hz : int | None
        SPI clock (hardware) or pacing ceiling (software); per-backend
        default when None.
    mode : SpiMode
        Hardware SPI only; software SPI always samples on the rising edge.
    bit_order : BitOrder
    policy : ChipSelectPolicy | None
        CS polarity/bracketing; default active-low, constant assert.
    enable_trigger : bool
        Hardware SPI: configure D7 as trigger output.
    sleeping_poll : bool
        Sleep between empty poll reads.
    max_retries : int
        MPSSE sync read attempts (hardware SPI).
    log : CommunicationLog | None
        Wire dump of everything sent and received.

    Raises
    ------
    DeviceNotFoundError, PermissionDeniedError, SyncError
        Bring-up failed; the device is closed, no bus is returned.
    """
    driver = MpsseDriver.open(
        vendor, product, channel, unload_drivers,
        sleeping_poll=sleeping_poll, log=log,
    )

    if software:
        bus = SoftwareSPI(driver, policy=policy)
        try:
            bus.configure(clock_hz or SOFT_SPI_SPEED_HZ, bit_order)
        except BaseException:
            driver.close()
            raise
        return bus

    driver.bring_up(max_retries=max_retries)
    bus = HardwareSPI(driver, policy=policy)
    if enable_trigger:
        bus.enable_trigger()
    try:
        bus.configure(chip_select, clock_hz or SPI_SPEED_HZ, mode, bit_order)
    except BaseException:
        driver.close()
        raise
    return bus
