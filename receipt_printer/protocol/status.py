"""
Real-time status decoding.

A status poll (see commands.status_poll) yields exactly four bytes:
[printer status, offline cause, error cause, paper status]. Each byte has
fixed marker bits (mask 0b10010011 must read 0b00010010); a reply that does
not match is treated as indeterminate and decodes to None, never to a
partial result.

Paper sensor priority: when the paper-end sensor reports no paper, the
near-end sensor is ignored and the paper is NOT_PRESENT. Only when paper is
present does the near-end sensor decide between NEAR_END and ADEQUATE.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

STATUS_REPLY_LEN = 4

_FIXED_BITS_MASK = 0b10010011
_FIXED_BITS_VALUE = 0b00010010

_OFFLINE_BIT = 0b1000

_COVER_OPEN_BIT = 0b100
_PAPER_FEED_STOP_BIT = 0b100000
_ERROR_BIT = 0b1000000

_CUTTER_ERROR_BIT = 0b1000
_UNRECOVERABLE_ERROR_BIT = 0b100000
_AUTO_RECOVERABLE_ERROR_BIT = 0b1000000

_PAPER_NEAR_END_BITS = 0b1100
_PAPER_END_BITS = 0b1100000


class PaperStatus(str, Enum):
    ADEQUATE = "adequate"
    NEAR_END = "near_end"
    NOT_PRESENT = "not_present"


@dataclass(frozen=True)
class PrinterError:
    """Error-cause flags; independent, more than one may be set."""

    is_cutter_error: bool
    is_fatal_error: bool
    is_recoverable_error: bool


@dataclass(frozen=True)
class OfflineCause:
    is_cover_open: bool
    is_paper_empty: bool
    error: Optional[PrinterError] = None


@dataclass(frozen=True)
class PrinterStatus:
    is_online: bool
    paper_status: PaperStatus
    offline_cause: Optional[OfflineCause] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["paper_status"] = self.paper_status.value
        return data


def is_well_formed(byte: int) -> bool:
    return (byte & _FIXED_BITS_MASK) == _FIXED_BITS_VALUE


def _decode_paper(paper_byte: int) -> PaperStatus:
    if paper_byte & _PAPER_END_BITS:
        return PaperStatus.NOT_PRESENT
    if paper_byte & _PAPER_NEAR_END_BITS:
        return PaperStatus.NEAR_END
    return PaperStatus.ADEQUATE


def decode_status(reply: Sequence[int]) -> Optional[PrinterStatus]:
    """
    Decode a 4-byte status reply.

    Returns None when the reply has the wrong length or any byte fails the
    fixed-bit template.
    """
    if len(reply) != STATUS_REPLY_LEN:
        return None
    if not all(is_well_formed(b) for b in reply):
        return None
    printer_byte, offline_byte, error_byte, paper_byte = reply

    is_online = (printer_byte & _OFFLINE_BIT) == 0
    paper_status = _decode_paper(paper_byte)
    if is_online:
        return PrinterStatus(is_online=True, paper_status=paper_status)

    error = None
    if offline_byte & _ERROR_BIT:
        error = PrinterError(
            is_cutter_error=bool(error_byte & _CUTTER_ERROR_BIT),
            is_fatal_error=bool(error_byte & _UNRECOVERABLE_ERROR_BIT),
            is_recoverable_error=bool(error_byte & _AUTO_RECOVERABLE_ERROR_BIT),
        )
    cause = OfflineCause(
        is_cover_open=bool(offline_byte & _COVER_OPEN_BIT),
        is_paper_empty=bool(offline_byte & _PAPER_FEED_STOP_BIT),
        error=error,
    )
    return PrinterStatus(is_online=False, paper_status=paper_status, offline_cause=cause)


# ANSI colors for terminal output
GREEN = "\x1b[32;1m"
RED = "\x1b[31;1m"
YELLOW = "\x1b[33;1m"
MAGENTA = "\x1b[35m"
RESET = "\x1b[0m"

_PAPER_LABELS = {
    PaperStatus.ADEQUATE: ("OK", GREEN),
    PaperStatus.NEAR_END: ("LOW", YELLOW),
    PaperStatus.NOT_PRESENT: ("EMPTY", RED),
}


def format_status(status: PrinterStatus, color: bool = True) -> str:
    """
    One-line summary, e.g. "Status: OFFLINE - Paper: LOW - Issues: cover-open".
    """

    def paint(text: str, code: str) -> str:
        return f"{code}{text}{RESET}" if color else text

    state = paint("ONLINE", GREEN) if status.is_online else paint("OFFLINE", RED)
    paper_text, paper_color = _PAPER_LABELS[status.paper_status]
    line = f"Status: {state} - Paper: {paint(paper_text, paper_color)}"

    cause = status.offline_cause
    if status.is_online or cause is None:
        return line

    issues = []
    if cause.error is not None:
        if cause.error.is_fatal_error:
            issues.append(paint("fatal-error", RED))
        if cause.error.is_recoverable_error:
            issues.append(paint("auto-recovery", YELLOW))
        if cause.error.is_cutter_error:
            issues.append(paint("cutter-error", MAGENTA))
    if cause.is_cover_open:
        issues.append(paint("cover-open", MAGENTA))
    if cause.is_paper_empty:
        issues.append(paint("no-paper", MAGENTA))
    if issues:
        line = f"{line} - Issues: {', '.join(issues)}"
    return line


__all__ = [
    "STATUS_REPLY_LEN",
    "OfflineCause",
    "PaperStatus",
    "PrinterError",
    "PrinterStatus",
    "decode_status",
    "format_status",
    "is_well_formed",
]
