"""
gpio.py – GPIO register model
==============================
Two 16-bit words mirror the pin state of the FT232H:

  direction  – bit p = 1 → pin p is an output
  level      – bit p = 1 → pin p driven HIGH (outputs only)

Pins 0..7 live in bank A (D0..D7), pins 8..15 in bank B (C0..C7).

Nothing here talks to the device. The MPSSE driver reads a snapshot of
both registers to build its set-bank commands. For input pins `level`
is stale; the live value comes from a bank read on the driver.
"""

from dataclasses import dataclass
from enum import IntEnum

from .constants import PIN_COUNT, BANK_WIDTH


class PinState(IntEnum):
    LOW       = 0
    HIGH      = 1
    DONT_CARE = 2   # configuration requests only, never stored


class Direction(IntEnum):
    OUTPUT = 0
    INPUT  = 1


@dataclass(frozen=True)
class PinConfiguration:
    """One entry of a batched pin configuration request."""

    pin:       int
    direction: Direction
    value:     PinState = PinState.DONT_CARE


def check_pin(pin: int) -> int:
    """Returns pin unchanged, raises ValueError outside 0..15."""
    if not 0 <= pin < PIN_COUNT:
        raise ValueError(f"Pin {pin} out of range 0..{PIN_COUNT - 1}")
    return pin


def bank_index(pin: int) -> int:
    """0 for bank A (D0..D7), 1 for bank B (C0..C7)."""
    return check_pin(pin) // BANK_WIDTH


def bit_offset(pin: int) -> int:
    """Bit position of the pin inside its 8-bit bank."""
    return check_pin(pin) % BANK_WIDTH


def pin_mask(pin: int) -> int:
    return 1 << check_pin(pin)


class GpioRegisters:
    """
    Direction and level registers for all 16 pins.

    Example
    -------
    regs = GpioRegisters()
    regs.set_direction(D3, Direction.OUTPUT)
    regs.set_level(D3, PinState.HIGH)
    direction, level = regs.bank_snapshot()
    """

    def __init__(self):
        self.direction = 0
        self.level     = 0

    def set_direction(self, pin: int, direction: Direction) -> None:
        """
        Marks the pin as output or input.

        Switching a pin to input also clears its level bit, so a stale
        driven value is never mistaken for a read.
        """
        mask = pin_mask(pin)
        if direction == Direction.INPUT:
            self.direction &= ~mask & 0xFFFF
            self.level     &= ~mask & 0xFFFF
        else:
            self.direction |= mask

    def set_level(self, pin: int, state: PinState) -> None:
        if state == PinState.DONT_CARE:
            raise ValueError("DONT_CARE cannot be stored as a pin level")
        mask = pin_mask(pin)
        if state == PinState.HIGH:
            self.level |= mask
        else:
            self.level &= ~mask & 0xFFFF

    def is_output(self, pin: int) -> bool:
        return bool(self.direction & pin_mask(pin))

    def is_high(self, pin: int) -> bool:
        return bool(self.level & pin_mask(pin))

    def bank_snapshot(self) -> tuple[int, int]:
        """Returns (direction, level) as 16-bit words."""
        return self.direction & 0xFFFF, self.level & 0xFFFF

    def bank_bytes(self, bank: int) -> tuple[int, int]:
        """Returns (level, direction) bytes for bank 0 (A) or 1 (B)."""
        shift = bank * BANK_WIDTH
        return (self.level >> shift) & 0xFF, (self.direction >> shift) & 0xFF

    def reset(self) -> None:
        self.direction = 0
        self.level     = 0

    def to_binary_string(self) -> str:
        """Register dump with a pin ruler; pin 0 is the rightmost digit."""
        return (
            "1111110000000000\n"
            "5432109876543210\n"
            f"{self.direction:016b} : Direction\n"
            f"{self.level:016b} : Level"
        )

    def __repr__(self) -> str:
        return (f"GpioRegisters(direction=0x{self.direction:04X}, "
                f"level=0x{self.level:04X})")
