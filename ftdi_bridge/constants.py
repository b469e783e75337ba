"""
constants.py – FTDI MPSSE bridge constants
==========================================
Opcodes, pin names, device defaults and timing constants.

Every default used by the driver and the SPI layers lives here, so wiring
or timing can be tuned without touching the protocol logic.
"""

# ---------------------------------------------------------------------------
# Device selection
# ---------------------------------------------------------------------------
VENDOR_ID   = 0x0403   # FTDI
PRODUCT_ID  = 0x6014   # FT232H
CHANNEL     = 1        # pyftdi interface numbering starts at 1

# ---------------------------------------------------------------------------
# Pins: bank A (D0..D7) and bank B (C0..C7)
# ---------------------------------------------------------------------------
D0, D1, D2, D3, D4, D5, D6, D7 = range(0, 8)
C0, C1, C2, C3, C4, C5, C6, C7 = range(8, 16)

PIN_COUNT  = 16
BANK_WIDTH = 8

# Pin selectors accepted where a chip-select pin is requested
NO_PIN       = -1   # no chip select assigned
DEFAULT_PIN  = -2   # resolve to DEFAULT_CS_PIN
HARDWARE_PIN = -3   # chip select driven by the target hardware

DEFAULT_CS_PIN = D3
TRIGGER_PIN    = D7

# ---------------------------------------------------------------------------
# MPSSE opcodes
# ---------------------------------------------------------------------------
CMD_BAD_OPCODE         = 0xAB
BAD_OPCODE_ECHO        = bytes([0xFA, 0xAB])

CMD_SET_BANK_LOW       = 0x80
CMD_SET_BANK_HIGH      = 0x82
CMD_READ_BANK_LOW      = 0x81
CMD_READ_BANK_HIGH     = 0x83

CMD_CLOCK_BYTES_OUT    = 0x10
CMD_CLOCK_BYTES_IN     = 0x20
CMD_CLOCK_BYTES_IN_OUT = 0x30
CMD_SEND_IMMEDIATE     = 0x87

CMD_DISABLE_CLK_DIV5   = 0x8A
CMD_ENABLE_ADAPTIVE    = 0x96
CMD_DISABLE_ADAPTIVE   = 0x97
CMD_ENABLE_3PHASE      = 0x8C
CMD_DISABLE_3PHASE     = 0x8D
CMD_SET_DIVISOR        = 0x86

# Bit positions inside the clock-bytes opcodes
OPCODE_WRITE_EDGE_BIT = 0   # 1 = data out changes on the falling edge
OPCODE_READ_EDGE_BIT  = 2   # 1 = data in sampled on the falling edge
OPCODE_LSB_FIRST_BIT  = 3

# ---------------------------------------------------------------------------
# Transport / clocking
# ---------------------------------------------------------------------------
CHUNK_SIZE        = 65536        # USB read/write chunk, also max SPI length
MAX_TRANSFER_LEN  = 65536
BASE_CLOCK        = 30_000_000   # divisor basis validated on hardware
BRING_UP_CLOCK_HZ = 20_000_000
SPI_SPEED_HZ      = 1_000_000
SOFT_SPI_SPEED_HZ = 10_000
MAX_CLOCK_HZ      = 30_000_000

# ---------------------------------------------------------------------------
# Timing [seconds]
# ---------------------------------------------------------------------------
POLL_TIMEOUT_S     = 3.0     # default poll_read timeout
TRANSFER_TIMEOUT_S = 1.0     # full-duplex transfer response timeout
POLL_SLEEP_S       = 0.001   # sleep between polls when sleeping_poll is on
PIN_SETTLE_S       = 0.001   # settle time after the first bit-bang push

SYNC_MAX_RETRIES = 10
