"""
Transports for talking to the printer.

- base: the Transport interface (read / write / drain / close)
- simulated: interactive hex-dump transport for working without hardware
- usb_bulk: pyusb bulk transport with one-shot stall recovery
"""

from .base import Transport
from .simulated import SimulatedTransport, hex_dump, parse_hex_line
from .usb_bulk import UsbTransport, find_bulk_endpoints

__all__ = [
    "SimulatedTransport",
    "Transport",
    "UsbTransport",
    "find_bulk_endpoints",
    "hex_dump",
    "parse_hex_line",
]
