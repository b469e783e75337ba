"""
transport.py – USB transport to the FTDI chip
==============================================
Responsible for:
  • opening the FTDI device by vendor/product id and channel (pyftdi)
  • optional unload/reload of the platform serial drivers
  • raw bulk writes and reads, bitmode selection, chunk sizes
  • pin sampling and pacing for bit-bang mode

This is the only module that imports pyftdi. Everything above it works
against the small method set defined here, which keeps the protocol layers
testable with an in-memory transport.
"""

import errno
import logging
import os
import platform
import subprocess

from pyftdi.ftdi import Ftdi
from pyftdi.usbtools import UsbToolsError
from usb.core import USBError

from ..constants import VENDOR_ID, PRODUCT_ID, CHANNEL, CHUNK_SIZE
from ..errors import DeviceNotFoundError, PermissionDeniedError

log = logging.getLogger(__name__)

BitMode = Ftdi.BitMode

# module sets unloaded / reloaded to gain exclusive access to the chip
_LINUX_MODULES  = ("ftdi_sio", "usbserial")
_DARWIN_KEXTS   = ("com.apple.driver.AppleUSBFTDI",
                   "/System/Library/Extensions/FTDIUSBSerialDriver.kext")


def is_running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _driver_commands(unload: bool) -> list[list[str]]:
    system = platform.system()
    if system == "Linux":
        if unload:
            return [["modprobe", "-r", "-q", mod] for mod in _LINUX_MODULES]
        return [["modprobe", "-q", mod] for mod in _LINUX_MODULES]
    if system == "Darwin":
        if unload:
            return [["kextunload", "-b", _DARWIN_KEXTS[0]],
                    ["kextunload", _DARWIN_KEXTS[1]]]
        return [["kextload", "-b", _DARWIN_KEXTS[0]],
                ["kextload", _DARWIN_KEXTS[1]]]
    return []


def set_serial_drivers(unload: bool) -> None:
    """
    Unloads (unload=True) or reloads the platform FTDI serial drivers.

    Not needed when udev rules grant access to the device. Raises
    PermissionDeniedError when not running as root; a failing command
    raises subprocess.CalledProcessError.
    """
    if not is_running_as_root():
        raise PermissionDeniedError(
            "Unloading FTDI serial drivers requires root privileges")
    for cmd in _driver_commands(unload):
        log.info("Running %s", " ".join(cmd))
        subprocess.run(cmd, check=True)


class FtdiTransport:
    """
    Thin wrapper over pyftdi.Ftdi exposing only the primitives the MPSSE
    driver needs.

    Parameters
    ----------
    vendor : int
        USB vendor id (0x0403 for FTDI).
    product : int
        USB product id (0x6014 for FT232H).
    channel : int
        FTDI interface, starting from 1.
    unload_drivers : bool
        Unload ftdi_sio/usbserial before opening, reload them on close.

    Example
    -------
    transport = FtdiTransport()
    transport.open()
    transport.set_bitmode(0xFF, BitMode.MPSSE)
    transport.write(bytes([0xAB]))
    transport.close()
    """

    def __init__(
        self,
        vendor:         int  = VENDOR_ID,
        product:        int  = PRODUCT_ID,
        channel:        int  = CHANNEL,
        unload_drivers: bool = False,
    ):
        self.vendor         = vendor
        self.product        = product
        self.channel        = channel
        self.unload_drivers = unload_drivers
        self._drivers_unloaded = False
        self._ftdi = Ftdi()

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    def open(self) -> None:
        """
        Opens the device.

        Raises DeviceNotFoundError when nothing matches vendor/product and
        PermissionDeniedError when the USB node is not accessible.
        """
        if self.unload_drivers:
            set_serial_drivers(unload=True)
            self._drivers_unloaded = True

        log.info("Opening FTDI device %04X:%04X channel %d",
                 self.vendor, self.product, self.channel)
        try:
            self._ftdi.open(self.vendor, self.product, interface=self.channel)
        except UsbToolsError as exc:
            raise DeviceNotFoundError(
                f"No USB device matches {self.vendor:04X}:{self.product:04X}"
            ) from exc
        except USBError as exc:
            if exc.errno == errno.EACCES:
                raise PermissionDeniedError(
                    f"Access denied to {self.vendor:04X}:{self.product:04X}"
                ) from exc
            raise

    def close(self) -> None:
        """Closes the device and reloads drivers unloaded by open()."""
        log.info("Closing FTDI device")
        self._ftdi.close()
        if self._drivers_unloaded:
            set_serial_drivers(unload=False)
            self._drivers_unloaded = False

    @property
    def is_open(self) -> bool:
        return self._ftdi.is_connected

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_bitmode(self, mask: int, mode: BitMode) -> None:
        self._ftdi.set_bitmode(mask, mode)

    def set_chunk_size(self, size: int = CHUNK_SIZE) -> None:
        """Sets both USB read and write chunk sizes."""
        self._ftdi.read_data_set_chunksize(size)
        self._ftdi.write_data_set_chunksize(size)

    def set_pacing(self, hz: int) -> int:
        """Bit-bang pin update rate; returns the rate the chip accepted."""
        return self._ftdi.set_baudrate(hz, constrain=False)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def write(self, data: bytes) -> int:
        """Bulk write; returns the count reported by the device."""
        return self._ftdi.write_data(data)

    def read_into(self, buffer: bytearray) -> int:
        """
        Reads whatever is available (up to len(buffer)) into buffer.

        Returns the number of bytes stored; 0 when nothing is pending.
        """
        data = self._ftdi.read_data(len(buffer))
        buffer[:len(data)] = data
        return len(data)

    def read_pins(self) -> int:
        """Instant sample of the bank-A pins (bit-bang mode)."""
        return self._ftdi.read_pins()
