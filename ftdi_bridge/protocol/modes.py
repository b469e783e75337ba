"""
modes.py – SPI mode, bit order, chip-select policy and length encoding
=======================================================================
Mode table (CPOL/CPHA):

  ┌──────┬───────────────┬────────────────┬────────────┐
  │ Mode │  data out on  │  sampled on    │ clock idle │
  ├──────┼───────────────┼────────────────┼────────────┤
  │  0   │  rising       │  falling       │  LOW       │
  │  1   │  falling      │  rising        │  LOW       │
  │  2   │  rising       │  falling       │  HIGH      │
  │  3   │  falling      │  rising        │  HIGH      │
  └──────┴───────────────┴────────────────┴────────────┘

In the MPSSE opcodes the write-edge bit (bit 0) and the read-edge bit
(bit 2) are 1 for "falling edge".
"""

import struct
from dataclasses import dataclass
from enum import IntEnum

from ..constants import (
    MAX_TRANSFER_LEN,
    OPCODE_WRITE_EDGE_BIT, OPCODE_READ_EDGE_BIT, OPCODE_LSB_FIRST_BIT,
)
from ..gpio import PinState


class ClockEdge(IntEnum):
    RISING  = 0
    FALLING = 1


class BitOrder(IntEnum):
    MSB_FIRST = 0
    LSB_FIRST = 1


class SpiMode(IntEnum):
    MODE0 = 0
    MODE1 = 1
    MODE2 = 2
    MODE3 = 3

    @property
    def write_edge(self) -> ClockEdge:
        return ClockEdge.RISING if self in (SpiMode.MODE0, SpiMode.MODE2) else ClockEdge.FALLING

    @property
    def read_edge(self) -> ClockEdge:
        return ClockEdge.FALLING if self in (SpiMode.MODE0, SpiMode.MODE2) else ClockEdge.RISING

    @property
    def idle_level(self) -> PinState:
        return PinState.LOW if self in (SpiMode.MODE0, SpiMode.MODE1) else PinState.HIGH

    def edges(self) -> tuple[ClockEdge, ClockEdge, PinState]:
        """(write edge, read edge, idle clock level)."""
        return self.write_edge, self.read_edge, self.idle_level


@dataclass
class ChipSelectPolicy:
    """
    How chip select is driven around transfers.

    active_low
        CS asserted = pin LOW (standard SPI).
    constant_assert
        True: the caller keeps CS asserted, transfers never touch it.
        False: each transfer asserts before and de-asserts after.
    manual
        Set by take_control_of_cs(); suppresses per-transfer bracketing so
        several transfers share one assertion window.
    """

    active_low:      bool = True
    constant_assert: bool = True
    manual:          bool = False

    @property
    def brackets_transfers(self) -> bool:
        return not self.constant_assert and not self.manual

    @property
    def asserted_level(self) -> PinState:
        return PinState.LOW if self.active_low else PinState.HIGH

    @property
    def idle_level(self) -> PinState:
        return PinState.HIGH if self.active_low else PinState.LOW


def encode_length(length: int) -> bytes:
    """
    Length field of a clock-bytes command: (length - 1), little-endian.

    0 encodes a 1-byte transfer and 0xFFFF a 65536-byte one. Longer
    payloads must be split by the caller.
    """
    if not 1 <= length <= MAX_TRANSFER_LEN:
        raise ValueError(
            f"SPI transfer length must be 1..{MAX_TRANSFER_LEN}, got {length}")
    return struct.pack("<H", length - 1)


def clock_opcode(base: int, bit_order: BitOrder,
                 write_edge: ClockEdge | None = None,
                 read_edge:  ClockEdge | None = None) -> int:
    """Ors bit order and clock edges into a clock-bytes base opcode."""
    opcode = base | (int(bit_order) << OPCODE_LSB_FIRST_BIT)
    if write_edge is not None:
        opcode |= int(write_edge) << OPCODE_WRITE_EDGE_BIT
    if read_edge is not None:
        opcode |= int(read_edge) << OPCODE_READ_EDGE_BIT
    return opcode
