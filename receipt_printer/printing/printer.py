"""
Printer controller.

Owns exactly one Transport and sequences the session:
- open(): drain stale bytes, ESC @, disable Automatic Status Back
- status(): batched DLE EOT poll, processing delay, 4-byte reply, decode
- print()/print_markup()/cut(): plain writes

Each call succeeds or raises on its own; nothing is rolled back. A failed cut
after a successful print leaves the printed output on the paper.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Union

from receipt_printer.core.errors import ReceiptPrinterError, TransportError
from receipt_printer.core.schemas import (
    DEFAULT_IO_TIMEOUT_MS,
    DEFAULT_PROCESSING_DELAY_MS,
    DEFAULT_PRODUCT_ID,
    DEFAULT_VENDOR_ID,
    PrinterSettings,
)
from receipt_printer.protocol import commands
from receipt_printer.protocol.commands import Justify
from receipt_printer.protocol.status import STATUS_REPLY_LEN, PrinterStatus, decode_status
from receipt_printer.transport.base import Transport
from receipt_printer.transport.simulated import SimulatedTransport
from receipt_printer.transport.usb_bulk import UsbTransport

from .markup import TextPolicy, compile_markdown

logger = logging.getLogger(__name__)

DEFAULT_PROCESSING_DELAY = DEFAULT_PROCESSING_DELAY_MS / 1000.0


class Printer:
    """
    A ready-to-use printer session. Construct through open(), usb(),
    simulated() or from_settings(); the constructor alone does not talk to
    the device.
    """

    def __init__(
        self,
        transport: Transport,
        processing_delay: float = DEFAULT_PROCESSING_DELAY,
        text_policy: Union[TextPolicy, str] = TextPolicy.RAW,
    ) -> None:
        self.transport = transport
        self.processing_delay = processing_delay
        self.text_policy = TextPolicy(text_policy)

    @classmethod
    def open(
        cls,
        transport: Transport,
        processing_delay: float = DEFAULT_PROCESSING_DELAY,
        text_policy: Union[TextPolicy, str] = TextPolicy.RAW,
    ) -> "Printer":
        """
        Take ownership of `transport` and run the boot sequence. If the
        sequence fails the transport is closed before the error propagates.
        """
        printer = cls(transport, processing_delay=processing_delay, text_policy=text_policy)
        try:
            printer.initialize()
        except ReceiptPrinterError:
            transport.close()
            raise
        return printer

    @classmethod
    def usb(
        cls,
        vendor_id: int = DEFAULT_VENDOR_ID,
        product_id: int = DEFAULT_PRODUCT_ID,
        timeout_ms: int = DEFAULT_IO_TIMEOUT_MS,
        processing_delay: float = DEFAULT_PROCESSING_DELAY,
    ) -> "Printer":
        transport = UsbTransport.open(
            vendor_id,
            product_id,
            timeout_ms=timeout_ms,
            processing_delay=processing_delay,
        )
        return cls.open(transport, processing_delay=processing_delay)

    @classmethod
    def simulated(cls, processing_delay: float = DEFAULT_PROCESSING_DELAY) -> "Printer":
        return cls.open(SimulatedTransport(), processing_delay=processing_delay)

    @classmethod
    def from_settings(cls, settings: PrinterSettings) -> "Printer":
        delay = settings.processing_delay_ms / 1000.0
        if settings.simulate:
            transport: Transport = SimulatedTransport()
        else:
            transport = UsbTransport.open(
                settings.usb_vendor_id,
                settings.usb_product_id,
                timeout_ms=settings.io_timeout_ms,
                processing_delay=delay,
            )
        return cls.open(transport, processing_delay=delay, text_policy=settings.text_policy)

    def initialize(self) -> "Printer":
        """
        Bring the printer to a known state.

        The printer pushes an undocumented burst of bytes after power-on (a few
        more when it powers on offline, since ASB starts out enabled). Those
        bytes stay queued until the host reads them, so they are drained
        before anything is sent.
        """
        self.transport.drain()
        self.transport.write(commands.init())
        # Only reliable when the printer powered on online; otherwise ASB
        # messages may still arrive.
        self.transport.write(commands.disable_auto_status_back())
        logger.info("Printer initialized via %s transport", self.transport.backend)
        return self

    def status(self) -> Optional[PrinterStatus]:
        """
        Poll and decode the real-time status. Returns None when the printer
        could not be reached or the reply was short or malformed.
        """
        try:
            self.transport.write(commands.status_poll())
            # The printer assembles the 4-byte reply asynchronously
            time.sleep(self.processing_delay)
            buf = bytearray(STATUS_REPLY_LEN)
            n = self.transport.read(buf)
        except TransportError as e:
            logger.warning("Status poll failed: %s", e)
            return None
        if n != STATUS_REPLY_LEN:
            logger.warning("Short status reply: expected %d byte(s), got %d", STATUS_REPLY_LEN, n)
            return None
        status = decode_status(buf)
        if status is None:
            logger.warning("Indeterminate status reply: [%s]", bytes(buf).hex(" "))
        return status

    def print(self, data: Union[bytes, str]) -> "Printer":
        """Send raw bytes (str is encoded as UTF-8) without any transformation."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self.transport.write(payload)
        return self

    def print_markup(self, text: str) -> "Printer":
        """Compile markdown to printer bytes and send them as a single write."""
        self.transport.write(compile_markdown(text, self.text_policy))
        return self

    def print_and_feed(self, lines: int = 1) -> "Printer":
        if lines == 1:
            self.transport.write(commands.print_and_feed())
        elif lines > 1:
            self.transport.write(commands.print_and_feed_lines(lines))
        return self

    def justify(self, mode: Justify) -> "Printer":
        self.transport.write(commands.justify(mode))
        return self

    def cut(self) -> "Printer":
        self.transport.write(commands.cut())
        return self

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "Printer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["DEFAULT_PROCESSING_DELAY", "Printer"]
