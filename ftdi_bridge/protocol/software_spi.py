"""
software_spi.py – Bit-banged SPI on bank A
===========================================
Every clock edge is a separate pin write, so one byte costs 24 USB
writes (data, clock low, clock high per bit). Expect tens of kHz at best.

Pin roles (bank A):

  clk  mosi miso  cs  rst           trig
   |    |    |    |    |             |
   D0   D1   D2   D3   D4  D5  D6    D7

Per bit:  MOSI ← bit,  CLK ← LOW,  CLK ← HIGH  (target samples on rising)
"""

import logging
import time

from ..constants import (
    D0, D1, D2, D3, D4, D7,
    SOFT_SPI_SPEED_HZ, PIN_SETTLE_S,
)
from ..core.transport import BitMode
from ..gpio import Direction, PinConfiguration, PinState
from .interface import SpiBus
from .modes import BitOrder, ChipSelectPolicy

log = logging.getLogger(__name__)


class SoftwareSPI(SpiBus):
    """
    SPI emulated by toggling GPIO pins in bit-bang mode.

    Parameters
    ----------
    driver : MpsseDriver
        Driver over an opened transport; configure() switches the chip to
        bit-bang mode, so no MPSSE bring-up is needed.
    policy : ChipSelectPolicy | None
        Default active-low with constant assert: CS is left to the caller
        and a write emits only data/clock pushes.
    """

    def __init__(self, driver, *, policy: ChipSelectPolicy | None = None):
        self.driver = driver
        self.policy = policy if policy is not None else ChipSelectPolicy()

        self.clk  = D0
        self.mosi = D1
        self.miso = D2
        self.cs   = D3
        self.rst  = D4
        self.trig = D7

        self.bit_order    = BitOrder.MSB_FIRST
        self.max_speed_hz = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(
        self,
        max_speed_hz: int      = SOFT_SPI_SPEED_HZ,
        bit_order:    BitOrder = BitOrder.MSB_FIRST,
    ) -> None:
        """
        Fixes pin roles, enters bit-bang mode and pushes the idle state.

        max_speed_hz only sets the chip's pin update pacing, it is a
        ceiling rather than a per-bit guarantee.
        """
        self.driver.config_pins([
            PinConfiguration(self.clk,  Direction.OUTPUT, PinState.LOW),
            PinConfiguration(self.mosi, Direction.OUTPUT, PinState.LOW),
            PinConfiguration(self.miso, Direction.INPUT),
            PinConfiguration(self.cs,   Direction.OUTPUT, self.policy.idle_level),
            PinConfiguration(self.rst,  Direction.OUTPUT, PinState.HIGH),
            PinConfiguration(self.trig, Direction.OUTPUT, PinState.LOW),
        ], write=False)

        self.driver.initialize(BitMode.BITBANG, self.driver.registers.direction)
        self.max_speed_hz = self.driver.set_pacing(max_speed_hz)
        self.set_bit_order(bit_order)

        self.driver.write_pins()
        time.sleep(PIN_SETTLE_S)
        log.debug("Software SPI ready, pins 0x%02X, pacing %s Hz",
                  self.driver.registers.level & 0xFF, self.max_speed_hz)

    def set_bit_order(self, order: BitOrder) -> None:
        self.bit_order = BitOrder(order)

    def config_pin(self, pin: int, direction: Direction) -> None:
        """Changes a bank-A pin direction; the bit-bang mask is re-sent."""
        self.driver.set_config_pin(pin, direction)
        self.driver.transport.set_bitmode(self.driver.registers.direction & 0xFF,
                                          BitMode.BITBANG)
        self.driver.write_pins()

    def output_high(self, pin: int) -> None:
        self._drive(pin, PinState.HIGH)

    def output_low(self, pin: int) -> None:
        self._drive(pin, PinState.LOW)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def write(self, data: int | bytes | bytearray | list[int]) -> None:
        """Clocks out one byte (int) or every byte of a payload."""
        data, _ = self._payload(data)

        with self._bracketed():
            for value in data:
                self._clock_byte(value, sample=False)

    def transfer(self, data: int | bytes | bytearray | list[int]) -> int | bytes:
        """
        Full-duplex: MISO is sampled after each rising clock edge.

        Returns an int for an int argument, bytes otherwise.
        """
        data, single = self._payload(data)

        with self._bracketed():
            response = bytes(self._clock_byte(value, sample=True) for value in data)
        return response[0] if single else response

    def read(self, length: int) -> bytes:
        """Clocks out zeros and returns what came back on MISO."""
        if length < 1:
            raise ValueError(f"Read length must be positive, got {length}")
        return self.transfer(bytes(length))

    def _bit_shifts(self) -> range:
        if self.bit_order == BitOrder.MSB_FIRST:
            return range(7, -1, -1)
        return range(8)

    def _clock_byte(self, value: int, sample: bool) -> int:
        drv = self.driver
        response = 0
        for shift in self._bit_shifts():
            drv.set_pin(self.mosi, PinState((value >> shift) & 1))
            drv.write_pins()
            drv.set_low(self.clk)
            drv.write_pins()
            drv.set_high(self.clk)
            drv.write_pins()

            if sample and (drv.read_pins() >> self.miso) & 1:
                response |= 1 << shift

        # Clock rests low; the next pin write carries it to the wire.
        drv.set_low(self.clk)
        return response

    # ------------------------------------------------------------------
    # Single-pin controls
    # ------------------------------------------------------------------

    def _drive(self, pin: int, state: PinState) -> None:
        self.driver.set_pin(pin, state)
        self.driver.write_pins()

    def assert_chip_select(self) -> None:
        self._drive(self.cs, self.policy.asserted_level)

    def de_assert_chip_select(self) -> None:
        self._drive(self.cs, self.policy.idle_level)

    def set_reset(self, level: bool | PinState) -> None:
        if isinstance(level, bool):
            level = PinState.HIGH if level else PinState.LOW
        self._drive(self.rst, level)

    def is_pin_high(self, pin: int) -> bool:
        return self.driver.registers.is_high(pin)

    def toggle_pin(self, pin: int) -> None:
        self._drive(pin, PinState.LOW if self.is_pin_high(pin) else PinState.HIGH)

    def pulse_pin(self, pin: int) -> None:
        """Toggles twice, leaving the pin where it started."""
        self.toggle_pin(pin)
        self.toggle_pin(pin)

    def trigger_pulse(self) -> None:
        """Pulse on the trigger pin for external instruments."""
        self.pulse_pin(self.trig)

    def close(self) -> None:
        log.info("Closing software SPI")
        self.driver.close()
