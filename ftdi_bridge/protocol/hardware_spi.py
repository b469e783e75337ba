"""
hardware_spi.py – SPI clocked by the MPSSE engine
==================================================
Pin roles on the FT232H in MPSSE mode:

  D0 – SCK   clock, idles at the mode's CPOL level
  D1 – MOSI  data out
  D2 – MISO  data in
  D3 – CS    default software chip select (any free pin can be used)
  D7 – trigger output for a logic analyser (optional)

Each transfer is one clock-bytes command:

  ┌────────┬──────────────┬──────────────┬──────────────┬─────────────┐
  │ opcode │  len-1 (lo)  │  len-1 (hi)  │  data ...    │ 0x87 (reads)│
  └────────┴──────────────┴──────────────┴──────────────┴─────────────┘

The opcode carries bit order (bit 3) and the clock edges (bits 0 and 2).
The 0x87 flush makes the chip return read data without waiting for a
full USB packet.
"""

import logging

from ..constants import (
    D0, D1, D2, TRIGGER_PIN,
    NO_PIN, DEFAULT_PIN, HARDWARE_PIN, DEFAULT_CS_PIN,
    SPI_SPEED_HZ, TRANSFER_TIMEOUT_S,
    CMD_CLOCK_BYTES_OUT, CMD_CLOCK_BYTES_IN, CMD_CLOCK_BYTES_IN_OUT,
    CMD_SEND_IMMEDIATE,
)
from ..gpio import Direction, PinConfiguration, PinState, check_pin
from .interface import SpiBus
from .modes import (
    SpiMode, BitOrder, ChipSelectPolicy, encode_length, clock_opcode,
)

log = logging.getLogger(__name__)


class HardwareSPI(SpiBus):
    """
    MPSSE SPI master.

    Parameters
    ----------
    driver : MpsseDriver
        Driver after bring_up() (MPSSE enabled, clock set, synchronized).
    policy : ChipSelectPolicy | None
        CS polarity and bracketing; default active-low, constant assert.

    Example
    -------
    spi = HardwareSPI(driver)
    spi.configure(DEFAULT_PIN, 1_000_000, SpiMode.MODE0, BitOrder.MSB_FIRST)
    spi.policy.constant_assert = False
    spi.write(bytes([0x01, 0x02]))
    """

    def __init__(self, driver, *, policy: ChipSelectPolicy | None = None):
        self.driver    = driver
        self.policy    = policy if policy is not None else ChipSelectPolicy()
        self.chip_select         = NO_PIN
        self.hardware_controlled = False
        self.trigger_enabled     = False
        self.clock_hz  = None
        self.mode      = SpiMode.MODE0
        self.bit_order = BitOrder.MSB_FIRST

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(
        self,
        chip_select: int      = NO_PIN,
        clock_hz:    int      = SPI_SPEED_HZ,
        mode:        SpiMode  = SpiMode.MODE0,
        bit_order:   BitOrder = BitOrder.MSB_FIRST,
    ) -> None:
        """
        Sets up pins, clock, mode and bit order.

        chip_select is a pin number or one of NO_PIN, DEFAULT_PIN (D3) and
        HARDWARE_PIN (CS driven by the target; assert/de-assert do nothing).
        D0..D2 carry SCK/MOSI/MISO and are rejected as chip select.
        The clock line reaches its idle level before any other pin is
        touched, so the first edge the target sees is a real one.
        """
        mode = SpiMode(mode)

        if chip_select == DEFAULT_PIN:
            chip_select = DEFAULT_CS_PIN
        if chip_select not in (NO_PIN, HARDWARE_PIN):
            check_pin(chip_select)
            if chip_select in (D0, D1, D2):
                raise ValueError(
                    f"Pin {chip_select} is SCK/MOSI/MISO, it cannot be chip select")
        self.hardware_controlled = chip_select == HARDWARE_PIN
        self.chip_select = chip_select

        drv = self.driver
        drv.set_config_pin(D0, Direction.OUTPUT)
        drv.output(D0, mode.idle_level)

        if self.trigger_enabled:
            drv.set_config_pin(TRIGGER_PIN, Direction.OUTPUT)
            drv.output_high(TRIGGER_PIN)

        if self._software_cs:
            drv.set_config_pin(chip_select, Direction.OUTPUT)
            drv.output(chip_select, self.policy.idle_level)

        self.set_clock(clock_hz)
        self.set_mode(mode)
        self.set_bit_order(bit_order)

    def set_clock(self, hz: int) -> None:
        self.driver.configure(hz)
        self.clock_hz = hz

    def set_mode(self, mode: SpiMode) -> None:
        """Stores the mode's clock edges and pushes the idle clock level."""
        self.mode = SpiMode(mode)
        self.driver.config_pins([
            PinConfiguration(D0, Direction.OUTPUT, self.mode.idle_level),
            PinConfiguration(D1, Direction.OUTPUT),
            PinConfiguration(D2, Direction.INPUT),
        ])

    def set_bit_order(self, order: BitOrder) -> None:
        self.bit_order = BitOrder(order)

    def configure_pins(self, pins: list[PinConfiguration]) -> None:
        self.driver.config_pins(pins, write=True)

    # Pin access for device drivers (reset, data/command lines, ...)

    def config_pin(self, pin: int, direction: Direction) -> None:
        self.driver.config_pin(pin, direction)

    def output_high(self, pin: int) -> None:
        self.driver.output_high(pin)

    def output_low(self, pin: int) -> None:
        self.driver.output_low(pin)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def write(self, data: int | bytes | bytearray | list[int]) -> None:
        """
        Half-duplex write on MOSI; an int is sent as one byte.

        Command (opcode + length) and payload go out as two transport
        writes, bracketed by CS when the policy asks for it.
        """
        data, _ = self._payload(data)
        command = bytes([clock_opcode(CMD_CLOCK_BYTES_OUT, self.bit_order,
                                      write_edge=self.mode.write_edge)])
        command += encode_length(len(data))

        with self._bracketed():
            self.driver.write(command, step=f"SPI write command ({len(data)}B)")
            self.driver.write(data, step="SPI write data")

    def write_byte(self, value: int) -> None:
        self.write(value & 0xFF)

    def read(self, length: int, timeout: float | None = None) -> bytes:
        """Half-duplex read of `length` bytes from MISO."""
        command = bytes([clock_opcode(CMD_CLOCK_BYTES_IN, self.bit_order,
                                      read_edge=self.mode.read_edge)])
        command += encode_length(length) + bytes([CMD_SEND_IMMEDIATE])

        with self._bracketed():
            self.driver.write(command, step=f"SPI read command ({length}B)")
        return self.driver.poll_read(length, timeout, step="SPI read data")

    def transfer(self, data: int | bytes | bytearray | list[int],
                 timeout: float = TRANSFER_TIMEOUT_S) -> int | bytes:
        """
        Full-duplex exchange: len(data) bytes out, as many back.

        Command, payload and flush are sent as a single write. Returns an
        int for an int argument, bytes otherwise.
        """
        data, single = self._payload(data)
        opcode = clock_opcode(CMD_CLOCK_BYTES_IN_OUT, self.bit_order,
                              write_edge=self.mode.write_edge,
                              read_edge=self.mode.read_edge)
        packet = bytes([opcode]) + encode_length(len(data)) + data
        packet += bytes([CMD_SEND_IMMEDIATE])

        with self._bracketed():
            self.driver.write(packet, step=f"SPI transfer ({len(data)}B)")
        try:
            response = self.driver.poll_read(len(data), timeout,
                                             step="SPI transfer data")
        except TimeoutError:
            log.warning("SPI transfer of %d bytes got no full response", len(data))
            raise
        return response[0] if single else response

    # ------------------------------------------------------------------
    # Chip select
    # ------------------------------------------------------------------

    @property
    def _software_cs(self) -> bool:
        return self.chip_select not in (NO_PIN, HARDWARE_PIN)

    def assert_chip_select(self) -> None:
        if self._software_cs:
            self.driver.output(self.chip_select, self.policy.asserted_level)

    def de_assert_chip_select(self) -> None:
        if self._software_cs:
            self.driver.output(self.chip_select, self.policy.idle_level)

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------

    def enable_trigger(self) -> None:
        """D7 becomes a trigger output at the next configure()."""
        self.trigger_enabled = True

    def trigger_pulse(self) -> None:
        """High-then-low pulse on D7 for a logic analyser."""
        self.driver.output(TRIGGER_PIN, PinState.HIGH)
        self.driver.output(TRIGGER_PIN, PinState.LOW)

    def close(self) -> None:
        log.info("Closing hardware SPI")
        self.driver.close()
