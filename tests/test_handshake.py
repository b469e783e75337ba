"""
Bad-opcode synchronization: retry bound, timeouts, wire bytes.
"""

import pytest

from ftdi_bridge.constants import BAD_OPCODE_ECHO, SYNC_MAX_RETRIES
from ftdi_bridge.core.handshake import synchronize
from ftdi_bridge.errors import SyncError

STALE = b"\x00\x00"


@pytest.mark.parametrize("echo_on, max_retries", [
    (1, 1), (1, 10), (3, 3), (3, 5), (10, 10),
    (2, 1), (4, 3), (11, 10),
])
def test_echo_within_bound(driver, transport, echo_on, max_retries):
    transport.queue(*([STALE] * (echo_on - 1)), BAD_OPCODE_ECHO)

    if echo_on <= max_retries:
        assert synchronize(driver, max_retries) == echo_on
        assert transport.read_calls == echo_on
    else:
        with pytest.raises(SyncError) as info:
            synchronize(driver, max_retries)
        assert info.value.attempts == max_retries
        assert transport.read_calls == max_retries


def test_first_write_is_bad_opcode(driver, transport):
    transport.queue(BAD_OPCODE_ECHO)
    synchronize(driver)
    assert transport.writes == [b"\xAB"]


def test_never_echoing_device(driver, transport):
    transport.queue(*([b"\xFA\x00"] * 20))
    with pytest.raises(SyncError):
        synchronize(driver, 4)
    assert transport.read_calls == 4
    assert transport.writes == [b"\xAB"]


def test_stale_bytes_are_split_across_reads(driver, transport):
    # one 2-byte poll read may span several USB reads
    transport.queue(b"\x11", b"\x22", b"\xFA", b"\xAB")
    assert synchronize(driver, 2) == 2


def test_silent_device_times_out(driver):
    with pytest.raises(SyncError) as info:
        synchronize(driver, 5, timeout=0)
    assert info.value.attempts == 1
    assert isinstance(info.value.__cause__, TimeoutError)


def test_non_positive_bound_uses_default(driver, transport):
    transport.queue(*([STALE] * (SYNC_MAX_RETRIES - 1)), BAD_OPCODE_ECHO)
    assert synchronize(driver, 0) == SYNC_MAX_RETRIES


def test_driver_method_delegates(driver, transport):
    transport.queue(STALE, BAD_OPCODE_ECHO)
    assert driver.synchronize() == 2
