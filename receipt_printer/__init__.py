"""
Receipt Printer package

ESC/POS receipt printing over a raw USB bulk transport:
- protocol: command encoders and the 4-byte status decoder
- transport: simulated (hex dump) and pyusb bulk transports
- printing: markdown compilation and the Printer controller
- core: configuration, logging and error types
- cli: the `receipt-printer` command

Typical use:
    >>> from receipt_printer import Printer, format_status
    >>> with Printer.usb(0x04B8, 0x0202) as p:
    ...     status = p.status()
    ...     p.print_markup("# Receipt\\n\\n**Total** 4.20").cut()
"""

from __future__ import annotations

from .core.errors import (
    ConfigError,
    MarkupError,
    PartialWriteError,
    ReceiptPrinterError,
    TransportError,
)
from .printing.markup import MarkupNode, TextPolicy, compile_markdown, compile_tree, parse_markdown
from .printing.printer import Printer
from .protocol import commands
from .protocol.status import OfflineCause, PaperStatus, PrinterError, PrinterStatus, decode_status, format_status
from .transport import SimulatedTransport, Transport, UsbTransport

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "MarkupError",
    "MarkupNode",
    "OfflineCause",
    "PaperStatus",
    "PartialWriteError",
    "Printer",
    "PrinterError",
    "PrinterStatus",
    "ReceiptPrinterError",
    "SimulatedTransport",
    "TextPolicy",
    "Transport",
    "TransportError",
    "UsbTransport",
    "__version__",
    "commands",
    "compile_markdown",
    "compile_tree",
    "decode_status",
    "format_status",
    "parse_markdown",
]
