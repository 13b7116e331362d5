"""
ESC/POS command encoders.

Every function here is pure: it returns the exact byte sequence for one
printer instruction and performs no I/O. Control-code primitives come from
python-escpos so the byte values are shared with the wider ESC/POS ecosystem.

Wire reference (subset used by this package):
    ESC @           1B 40           initialize
    DLE EOT n       10 04 n         real-time status request, n = 1..4
    GS a 0          1D 61 00        disable Automatic Status Back
    GS V B 0        1D 56 42 00     feed 0 and cut at current position
    ESC E n         1B 45 n         bold on/off
    ESC - n         1B 2D n         underline on/off
    GS ! n          1D 21 n         character size (width << 4 | height)
    ESC a n         1B 61 n         justification
    LF              0A              print and feed one line
    ESC d n         1B 64 n         print and feed n lines
"""

from __future__ import annotations

from enum import IntEnum

from escpos.constants import DLE, EOT, ESC, GS, HW_INIT

# Largest magnification factor accepted by char_size(); larger values are clamped.
MAX_MAGNIFICATION = 8

_HDR_RT_STATUS = DLE + EOT
_HDR_ASB = GS + b"a"
_HDR_FEED_LINES = ESC + b"d"
_HDR_CUT = GS + b"VB"
_HDR_BOLD = ESC + b"E"
_HDR_UNDERLINE = ESC + b"-"
_HDR_CHAR_SIZE = GS + b"!"
_HDR_JUSTIFY = ESC + b"a"

LF = b"\n"


class StatusRequest(IntEnum):
    """Parameter of DLE EOT; replies arrive in the order requested."""

    PRINTER_STATUS = 1
    OFFLINE_CAUSE = 2
    ERROR_CAUSE = 3
    PAPER_STATUS = 4


class Justify(IntEnum):
    LEFT = 0
    CENTER = 1
    RIGHT = 2


def _command(header: bytes, *params: int) -> bytes:
    """Header followed by one byte per parameter. Raises ValueError outside 0..255."""
    return header + bytes(params)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


def init() -> bytes:
    """Reset the printer to its power-on state. First command of every session."""
    return bytes(HW_INIT)


def disable_auto_status_back() -> bytes:
    """
    Stop unsolicited status pushes so that polled replies are the only bytes
    on the IN endpoint. Only reliable when the printer powered on online.
    """
    return _command(_HDR_ASB, 0)


def print_and_feed() -> bytes:
    return LF


def print_and_feed_lines(n: int) -> bytes:
    return _command(_HDR_FEED_LINES, n)


def cut() -> bytes:
    """Feed 0 and cut at the current position."""
    return _command(_HDR_CUT, 0)


def bold(enable: bool) -> bytes:
    return _command(_HDR_BOLD, int(bool(enable)))


def underline(enable: bool) -> bytes:
    return _command(_HDR_UNDERLINE, int(bool(enable)))


def char_size(h_magnify: int, w_magnify: int) -> bytes:
    """
    Select character size. Both factors are clamped to [0, MAX_MAGNIFICATION]
    and packed as width in the high nibble, height in the low nibble.
    0 means normal size; 1 doubles that dimension.
    """
    height = _clamp(h_magnify, 0, MAX_MAGNIFICATION)
    width = _clamp(w_magnify, 0, MAX_MAGNIFICATION)
    return _command(_HDR_CHAR_SIZE, (width << 4) | height)


def justify(mode: Justify) -> bytes:
    return _command(_HDR_JUSTIFY, Justify(mode).value)


def status_request(kind: StatusRequest) -> bytes:
    return _command(_HDR_RT_STATUS, StatusRequest(kind).value)


def status_poll() -> bytes:
    """All four status requests batched into one write; the reply is 4 bytes in the same order."""
    return b"".join(
        status_request(kind)
        for kind in (
            StatusRequest.PRINTER_STATUS,
            StatusRequest.OFFLINE_CAUSE,
            StatusRequest.ERROR_CAUSE,
            StatusRequest.PAPER_STATUS,
        )
    )


__all__ = [
    "LF",
    "MAX_MAGNIFICATION",
    "Justify",
    "StatusRequest",
    "bold",
    "char_size",
    "cut",
    "disable_auto_status_back",
    "init",
    "justify",
    "print_and_feed",
    "print_and_feed_lines",
    "status_poll",
    "status_request",
    "underline",
]
