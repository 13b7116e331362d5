"""
ESC/POS protocol codec.

- commands: pure encoders producing exact command byte sequences
- status: decoder for the 4-byte real-time status reply

Usage:
    >>> from receipt_printer.protocol import commands, decode_status
    >>> commands.bold(True) + b"Total" + commands.bold(False)
    b'\\x1bE\\x01Total\\x1bE\\x00'
    >>> decode_status(b"\\x12\\x12\\x12\\x12").is_online
    True
"""

from . import commands
from .commands import Justify, StatusRequest
from .status import (
    STATUS_REPLY_LEN,
    OfflineCause,
    PaperStatus,
    PrinterError,
    PrinterStatus,
    decode_status,
    format_status,
)

__all__ = [
    "STATUS_REPLY_LEN",
    "Justify",
    "OfflineCause",
    "PaperStatus",
    "PrinterError",
    "PrinterStatus",
    "StatusRequest",
    "commands",
    "decode_status",
    "format_status",
]
