"""
Exception types for Receipt Printer.

Transport failures carry enough context (backend, endpoint address, byte
counts) to diagnose a cabling or hardware problem from the message alone.
A status reply that fails validation is not an error: decoding returns None.
"""

from __future__ import annotations

from typing import Optional


class ReceiptPrinterError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(ReceiptPrinterError):
    """Invalid or unreadable configuration."""


class TransportError(ReceiptPrinterError):
    """
    A read/write/drain against the printer failed.

    `backend` names the transport ("simulated" or "usb"); `endpoint` is the
    USB endpoint address involved, when there is one.
    """

    def __init__(self, context: str, backend: str = "usb", endpoint: Optional[int] = None) -> None:
        super().__init__(context)
        self.context = context
        self.backend = backend
        self.endpoint = endpoint

    def __str__(self) -> str:
        label = "USB" if self.backend == "usb" else self.backend.capitalize()
        msg = f"{label} transport error: {self.context}"
        cause = self.__cause__
        if cause is not None and str(cause):
            msg = f"{msg} - {cause}"
        return msg


class DeviceNotFoundError(TransportError):
    pass


class EndpointDiscoveryError(TransportError):
    pass


class InterfaceClaimError(TransportError):
    pass


class StallRecoveryError(TransportError):
    """The endpoint stalled and the single clear-halt + retry did not succeed."""


class PartialWriteError(TransportError):
    """The device accepted fewer bytes than were sent."""

    def __init__(self, expected: int, written: int, payload: bytes, endpoint: Optional[int] = None) -> None:
        self.expected = expected
        self.written = written
        self.payload = bytes(payload)
        super().__init__(
            f"Partial write: expected {expected}, got {written} - data: [{self.payload.hex(' ')}]",
            backend="usb",
            endpoint=endpoint,
        )


class MarkupError(ReceiptPrinterError):
    """The markup document could not be parsed into a tree."""


__all__ = [
    "ConfigError",
    "DeviceNotFoundError",
    "EndpointDiscoveryError",
    "InterfaceClaimError",
    "MarkupError",
    "PartialWriteError",
    "ReceiptPrinterError",
    "StallRecoveryError",
    "TransportError",
]
