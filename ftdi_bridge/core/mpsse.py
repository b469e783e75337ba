"""
mpsse.py – MPSSE protocol driver
=================================
MpsseDriver owns the USB transport and the GPIO register model and turns
logical operations into MPSSE command bytes:

  • bring-up      initialize → configure (clock) → synchronize
  • GPIO          6-byte set-banks command, 2-byte read-banks command
  • raw I/O       write / write_byte / poll_read
  • bit-bang      write_pins / read_pins / set_pacing (software SPI)

Typical use:
    from ftdi_bridge.core.mpsse import MpsseDriver
    from ftdi_bridge.constants import D4

    with MpsseDriver.open() as drv:
        drv.bring_up()
        drv.config_pin(D4, Direction.OUTPUT)
        drv.output_high(D4)

Single owner only: one driver instance per handle, no internal locking.
"""

import logging
import time
from dataclasses import dataclass

from ..constants import (
    VENDOR_ID, PRODUCT_ID, CHANNEL,
    CHUNK_SIZE, BASE_CLOCK, BRING_UP_CLOCK_HZ, MAX_CLOCK_HZ,
    POLL_TIMEOUT_S, POLL_SLEEP_S, SYNC_MAX_RETRIES,
    CMD_SET_BANK_LOW, CMD_SET_BANK_HIGH,
    CMD_READ_BANK_LOW, CMD_READ_BANK_HIGH,
    CMD_DISABLE_CLK_DIV5,
    CMD_ENABLE_ADAPTIVE, CMD_DISABLE_ADAPTIVE,
    CMD_ENABLE_3PHASE, CMD_DISABLE_3PHASE,
    CMD_SET_DIVISOR,
)
from ..errors import BridgeError, ShortWriteError, PollTimeoutError
from ..gpio import (
    GpioRegisters, PinConfiguration, PinState, Direction, check_pin,
)
from ..utils.log import CommunicationLog, TX, RX
from .handshake import synchronize
from .transport import FtdiTransport, BitMode

log = logging.getLogger(__name__)


def clock_divisor(clock_hz: int, three_phase: bool = False) -> int:
    """
    MPSSE clock divisor for the requested frequency.

    divisor = ceil((BASE_CLOCK - clock_hz) / clock_hz) & 0xFFFF, scaled by
    2/3 for three-phase clocking. The 30 MHz basis is the value validated
    against FT232H hardware.

    >>> clock_divisor(1_000_000)
    29
    """
    if clock_hz <= 0:
        raise ValueError(f"Clock must be positive, got {clock_hz}")
    if clock_hz > MAX_CLOCK_HZ:
        raise ValueError(f"Clock {clock_hz} Hz above maximum {MAX_CLOCK_HZ} Hz")
    divisor = -(-(BASE_CLOCK - clock_hz) // clock_hz) & 0xFFFF
    if three_phase:
        divisor = int(divisor * 2 / 3)
    return divisor


@dataclass(frozen=True)
class ClockConfig:
    frequency:   int
    adaptive:    bool = False
    three_phase: bool = False

    @property
    def divisor(self) -> int:
        return clock_divisor(self.frequency, self.three_phase)


class MpsseDriver:
    """
    FT232H MPSSE command driver.

    Parameters
    ----------
    transport : FtdiTransport
        Opened transport (or any object with the same methods).
    sleeping_poll : bool
        Sleep poll_interval seconds between empty reads in poll_read().
    poll_interval : float
        Sleep length used when sleeping_poll is on.
    poll_timeout : float
        Default poll_read timeout [s].
    log : CommunicationLog | None
        Optional wire dump of every TX/RX.
    """

    def __init__(
        self,
        transport,
        *,
        sleeping_poll: bool  = False,
        poll_interval: float = POLL_SLEEP_S,
        poll_timeout:  float = POLL_TIMEOUT_S,
        log:           CommunicationLog | None = None,
    ):
        self._transport    = transport
        self.registers     = GpioRegisters()
        self.clock: ClockConfig | None = None
        self.bitmode: BitMode | None   = None
        self.sleeping_poll = sleeping_poll
        self.poll_interval = poll_interval
        self.poll_timeout  = poll_timeout
        self.log           = log
        self._chunk: bytearray | None = None

    @classmethod
    def open(
        cls,
        vendor:         int  = VENDOR_ID,
        product:        int  = PRODUCT_ID,
        channel:        int  = CHANNEL,
        unload_drivers: bool = False,
        **kwargs,
    ) -> "MpsseDriver":
        """Opens the USB device and wraps it; no MPSSE commands sent yet."""
        transport = FtdiTransport(vendor, product, channel, unload_drivers)
        transport.open()
        return cls(transport, **kwargs)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()

    def close(self) -> None:
        """Releases the USB handle and forgets register/clock state."""
        self._transport.close()
        self.registers.reset()
        self.clock   = None
        self.bitmode = None
        self._chunk  = None

    @property
    def transport(self):
        return self._transport

    # ------------------------------------------------------------------
    # Bring-up
    # ------------------------------------------------------------------

    def bring_up(
        self,
        clock_hz:    int = BRING_UP_CLOCK_HZ,
        max_retries: int = SYNC_MAX_RETRIES,
    ) -> None:
        """
        initialize() + configure(clock_hz) + synchronize().

        On any failure the transport is closed before the error propagates,
        leaving no half-configured handle behind.
        """
        try:
            self.initialize()
            self.configure(clock_hz)
            self.synchronize(max_retries)
        except BaseException:
            log.error("MPSSE bring-up failed, closing device")
            self.close()
            raise

    def initialize(self, bitmode: BitMode = BitMode.MPSSE, direction: int = 0xFF) -> None:
        """
        Selects the chip mode and sets 64 KiB USB chunks.

        direction is the pin mask handed to the bitmode request; MPSSE
        ignores it, bit-bang mode uses it as the bank-A output mask.
        """
        self._transport.set_bitmode(direction & 0xFF, bitmode)
        self._transport.set_chunk_size(CHUNK_SIZE)
        self._chunk  = bytearray(CHUNK_SIZE)
        self.bitmode = bitmode
        log.debug("Bitmode %s enabled, chunk size %d", bitmode.name, CHUNK_SIZE)

    def configure(
        self,
        clock_hz:    int,
        adaptive:    bool = False,
        three_phase: bool = False,
    ) -> ClockConfig:
        """
        Sets the MPSSE clock.

        One write turns off divide-by-5 and sets adaptive / three-phase
        clocking, a second write loads the divisor (low byte, high byte).
        """
        config  = ClockConfig(clock_hz, adaptive, three_phase)
        divisor = config.divisor

        self.write(bytes([
            CMD_DISABLE_CLK_DIV5,
            CMD_ENABLE_ADAPTIVE if adaptive else CMD_DISABLE_ADAPTIVE,
            CMD_ENABLE_3PHASE if three_phase else CMD_DISABLE_3PHASE,
        ]), step="clock mode")
        self.write(bytes([CMD_SET_DIVISOR, divisor & 0xFF, (divisor >> 8) & 0xFF]),
                   step=f"clock divisor {divisor} ({clock_hz} Hz)")

        self.clock = config
        return config

    def synchronize(self, max_retries: int = SYNC_MAX_RETRIES) -> int:
        """Bad-opcode handshake, see core.handshake.synchronize()."""
        return synchronize(self, max_retries)

    # ------------------------------------------------------------------
    # Raw transport I/O
    # ------------------------------------------------------------------

    def write(self, data: bytes | bytearray | list[int], step: str = "write") -> int:
        """Writes data as one transport transaction; ShortWriteError if cut."""
        data = bytes(data)
        if self.log is not None:
            self.log.add(step, TX, data)
        written = self._transport.write(data)
        if written != len(data):
            raise ShortWriteError(len(data), written)
        return written

    def write_byte(self, value: int, step: str = "write byte") -> int:
        return self.write(bytes([value & 0xFF]), step=step)

    def poll_read(
        self,
        expected: int,
        timeout:  float | None = None,
        step:     str = "poll read",
    ) -> bytes:
        """
        Reads until exactly `expected` bytes have arrived.

        At least one read is attempted even with a zero timeout. Bytes
        arriving beyond `expected` in the same chunk are discarded.

        Raises
        ------
        PollTimeoutError
            Fewer than `expected` bytes arrived within `timeout` seconds.
        """
        if self._chunk is None:
            raise BridgeError("Driver not initialized")
        if timeout is None:
            timeout = self.poll_timeout

        response = bytearray()
        deadline = time.monotonic() + timeout
        while True:
            count = self._transport.read_into(self._chunk)
            if count:
                missing = expected - len(response)
                response += self._chunk[:min(count, missing)]

            if len(response) >= expected:
                data = bytes(response)
                if self.log is not None:
                    self.log.add(step, RX, data)
                return data

            if time.monotonic() >= deadline:
                raise PollTimeoutError(expected, len(response), timeout)

            if self.sleeping_poll:
                time.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # GPIO banks
    # ------------------------------------------------------------------

    def gpio_command(self) -> bytes:
        """Set-banks command for the current register snapshot."""
        level_low,  dir_low  = self.registers.bank_bytes(0)
        level_high, dir_high = self.registers.bank_bytes(1)
        return bytes([
            CMD_SET_BANK_LOW,  level_low,  dir_low,
            CMD_SET_BANK_HIGH, level_high, dir_high,
        ])

    def write_gpio_banks(self) -> None:
        """Pushes both banks in one 6-byte transaction."""
        self.write(self.gpio_command(), step="set GPIO banks")

    def read_gpio_banks(self) -> int:
        """Reads both banks; D0..D7 in the low byte, C0..C7 in the high byte."""
        self.write(bytes([CMD_READ_BANK_LOW, CMD_READ_BANK_HIGH]), step="read GPIO banks")
        data = self.poll_read(2, step="GPIO banks")
        return data[0] | (data[1] << 8)

    # ------------------------------------------------------------------
    # Pins – staging only (no device write)
    # ------------------------------------------------------------------

    def set_config_pin(self, pin: int, direction: Direction) -> None:
        self.registers.set_direction(pin, direction)

    def set_pin(self, pin: int, state: PinState) -> None:
        self.registers.set_level(pin, state)

    def set_high(self, pin: int) -> None:
        self.registers.set_level(pin, PinState.HIGH)

    def set_low(self, pin: int) -> None:
        self.registers.set_level(pin, PinState.LOW)

    # ------------------------------------------------------------------
    # Pins – stage and push
    # ------------------------------------------------------------------

    def config_pin(self, pin: int, direction: Direction) -> None:
        self.registers.set_direction(pin, direction)
        self.write_gpio_banks()

    def config_pins(self, pins: list[PinConfiguration], write: bool = True) -> None:
        """
        Applies several pin configurations, then pushes once.

        A DONT_CARE value only changes direction.
        """
        for cfg in pins:
            self.registers.set_direction(cfg.pin, cfg.direction)
            if cfg.value != PinState.DONT_CARE:
                self.registers.set_level(cfg.pin, cfg.value)
        if write:
            self.write_gpio_banks()

    def output(self, pin: int, state: PinState | bool) -> None:
        if isinstance(state, bool):
            state = PinState.HIGH if state else PinState.LOW
        self.registers.set_level(pin, state)
        self.write_gpio_banks()

    def output_high(self, pin: int) -> None:
        self.output(pin, PinState.HIGH)

    def output_low(self, pin: int) -> None:
        self.output(pin, PinState.LOW)

    def read_input(self, pin: int) -> PinState:
        """Live pin value from a bank read, never from the level register."""
        check_pin(pin)
        pins = self.read_gpio_banks()
        return PinState.HIGH if (pins >> pin) & 1 else PinState.LOW

    # ------------------------------------------------------------------
    # Bit-bang primitives (bank A only)
    # ------------------------------------------------------------------

    def write_pins(self) -> None:
        """Raw pin write: bank-A level byte as a single transport byte."""
        self.write_byte(self.registers.level & 0xFF, step="bit-bang pins")

    def read_pins(self) -> int:
        """Instant bank-A sample."""
        value = self._transport.read_pins()
        if self.log is not None:
            self.log.add("bit-bang sample", RX, [value])
        return value

    def set_pacing(self, hz: int) -> int:
        """Bit-bang update rate; no MPSSE divisor involved."""
        if hz <= 0:
            raise ValueError(f"Pacing must be positive, got {hz}")
        return self._transport.set_pacing(hz)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def to_binary_string(self) -> str:
        return self.registers.to_binary_string()

    def __str__(self) -> str:
        clock = f"{self.clock.frequency} Hz" if self.clock else "unset"
        return f"MpsseDriver(clock={clock})\n{self.registers.to_binary_string()}"
