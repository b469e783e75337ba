"""
handshake.py – MPSSE synchronization with a deliberately bad opcode
====================================================================
After MPSSE is enabled the chip's buffers may still hold stale bytes.
Sending an opcode the engine does not know makes it answer with the
fixed pair 0xFA 0xAB; once that echo is read back the command stream and
the response stream are aligned.

  Host                       MPSSE
  ────                       ─────
  0xAB (bad opcode) ───────►
                    ◄──────  ...stale bytes...
                    ◄──────  0xFA 0xAB

Must run once after clock configuration and before any GPIO/SPI command.
"""

import logging

from ..constants import CMD_BAD_OPCODE, BAD_OPCODE_ECHO, SYNC_MAX_RETRIES
from ..errors import PollTimeoutError, SyncError

log = logging.getLogger(__name__)


def synchronize(driver, max_retries: int = SYNC_MAX_RETRIES,
                timeout: float | None = None) -> int:
    """
    Sends the bad opcode and polls 2-byte reads until the echo arrives.

    Parameters
    ----------
    driver : MpsseDriver
        Driver with write_byte() and poll_read().
    max_retries : int
        Number of 2-byte poll reads allowed (values < 1 mean the default).
    timeout : float | None
        Per-read timeout in seconds, driver default when None.

    Returns
    -------
    int
        Number of poll reads it took to see the echo.

    Raises
    ------
    SyncError
        The echo did not show up within max_retries reads, or a read timed
        out.
    """
    if max_retries < 1:
        max_retries = SYNC_MAX_RETRIES

    driver.write_byte(CMD_BAD_OPCODE, step="sync: bad opcode")

    for attempt in range(1, max_retries + 1):
        try:
            data = driver.poll_read(2, timeout, step=f"sync: echo read {attempt}")
        except PollTimeoutError as exc:
            raise SyncError(attempt, f"MPSSE sync read timed out: {exc}") from exc

        if data == BAD_OPCODE_ECHO:
            log.info("MPSSE synchronized after %d read(s)", attempt)
            return attempt

        log.debug("MPSSE sync attempt %d got %s, retrying", attempt, data.hex())

    raise SyncError(max_retries)
