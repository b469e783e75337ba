from .modes import SpiMode, BitOrder, ClockEdge, ChipSelectPolicy     # noqa: F401
from .interface import SpiBus                                          # noqa: F401
from .hardware_spi import HardwareSPI                                  # noqa: F401
from .software_spi import SoftwareSPI                                  # noqa: F401
