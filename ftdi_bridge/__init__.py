"""
ftdi_bridge – GPIO and SPI over an FTDI MPSSE chip (FT232H)
============================================================
Package layout:
    ftdi_bridge/
    ├── __init__.py          – public API
    ├── constants.py         – opcodes, pins, defaults, timing
    ├── errors.py            – exception hierarchy
    ├── gpio.py              – 16-bit direction/level register model
    ├── core/
    │   ├── transport.py     – pyftdi USB transport
    │   ├── handshake.py     – bad-opcode MPSSE synchronization
    │   └── mpsse.py         – MpsseDriver (clock, GPIO banks, poll reads)
    ├── protocol/
    │   ├── modes.py         – SPI modes, bit order, CS policy, length field
    │   ├── interface.py     – SpiBus interface shared by both backends
    │   ├── hardware_spi.py  – MPSSE-clocked SPI
    │   └── software_spi.py  – bit-banged SPI
    ├── utils/
    │   └── log.py           – CommunicationLog (TX/RX wire dump)
    └── master.py            – open_spi() factory

Quick start:
    from ftdi_bridge import open_spi, DEFAULT_PIN

    with open_spi(chip_select=DEFAULT_PIN) as spi:
        spi.write(bytes([0x0C, 0x01]))
        data = spi.read(4)
"""

from .master import open_spi                        # noqa: F401 – main entry point
from .core.mpsse import MpsseDriver, ClockConfig, clock_divisor   # noqa: F401
from .core.transport import FtdiTransport           # noqa: F401
from .gpio import (                                 # noqa: F401
    GpioRegisters, PinConfiguration, PinState, Direction,
    bank_index, bit_offset,
)
from .protocol import (                             # noqa: F401
    SpiBus, HardwareSPI, SoftwareSPI,
    SpiMode, BitOrder, ClockEdge, ChipSelectPolicy,
)
from .errors import (                               # noqa: F401
    BridgeError, ShortWriteError, SyncError, PollTimeoutError,
    DeviceNotFoundError, PermissionDeniedError,
)
from .constants import (                            # noqa: F401
    D0, D1, D2, D3, D4, D5, D6, D7,
    C0, C1, C2, C3, C4, C5, C6, C7,
    NO_PIN, DEFAULT_PIN, HARDWARE_PIN,
)
from .utils.log import CommunicationLog             # noqa: F401

__version__ = "1.0.0"
__all__ = ["open_spi", "MpsseDriver", "HardwareSPI", "SoftwareSPI", "SpiBus"]
