"""
USB bulk transport built on pyusb.

The printer is located by vendor/product ID; the first interface of the
active configuration that exposes both a bulk IN and a bulk OUT endpoint is
claimed once, at open time. Every transfer uses the same recovery policy:
on a pipe stall (EPIPE) the halt is cleared on the failing endpoint, the
printer is given the processing delay, and the transfer is retried exactly
once. Any other failure, or a second failure, is raised to the caller.
"""

from __future__ import annotations

import errno
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any, Optional, Tuple, TypeVar

import usb.core
import usb.util

from receipt_printer.core.errors import (
    DeviceNotFoundError,
    EndpointDiscoveryError,
    InterfaceClaimError,
    PartialWriteError,
    StallRecoveryError,
    TransportError,
)
from receipt_printer.core.schemas import DEFAULT_IO_TIMEOUT_MS, DEFAULT_PROCESSING_DELAY_MS

from .base import Buffer, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

DRAIN_CHUNK_SIZE = 16
# Drain only needs to see the line go quiet; a full I/O timeout per call would stall startup.
DEFAULT_DRAIN_TIMEOUT_MS = 200


def find_bulk_endpoints(interfaces: Iterable[Any]) -> Optional[Tuple[int, int, int]]:
    """
    Return (in_address, out_address, interface_number) for the first interface
    exposing both a bulk IN and a bulk OUT endpoint, or None.
    """
    for intf in interfaces:
        in_ep: Optional[int] = None
        out_ep: Optional[int] = None
        for ep in intf:
            if usb.util.endpoint_type(ep.bmAttributes) != usb.util.ENDPOINT_TYPE_BULK:
                continue
            if usb.util.endpoint_direction(ep.bEndpointAddress) == usb.util.ENDPOINT_IN:
                if in_ep is None:
                    in_ep = ep.bEndpointAddress
            elif out_ep is None:
                out_ep = ep.bEndpointAddress
        if in_ep is not None and out_ep is not None:
            return in_ep, out_ep, intf.bInterfaceNumber
    return None


def _is_stall(e: usb.core.USBError) -> bool:
    return getattr(e, "errno", None) == errno.EPIPE


class UsbTransport(Transport):
    backend = "usb"

    def __init__(
        self,
        device: Any,
        in_endpoint: int,
        out_endpoint: int,
        interface: int,
        timeout_ms: int = DEFAULT_IO_TIMEOUT_MS,
        processing_delay: float = DEFAULT_PROCESSING_DELAY_MS / 1000.0,
        drain_timeout_ms: int = DEFAULT_DRAIN_TIMEOUT_MS,
    ) -> None:
        self._device = device
        self.in_endpoint = in_endpoint
        self.out_endpoint = out_endpoint
        self.interface = interface
        self.timeout_ms = timeout_ms
        self.processing_delay = processing_delay
        self.drain_timeout_ms = drain_timeout_ms

    @classmethod
    def open(
        cls,
        vendor_id: int,
        product_id: int,
        timeout_ms: int = DEFAULT_IO_TIMEOUT_MS,
        processing_delay: float = DEFAULT_PROCESSING_DELAY_MS / 1000.0,
    ) -> "UsbTransport":
        """
        Find the device, discover its bulk endpoints and claim the interface.
        """
        ids = f"vid={vendor_id:#06x}, pid={product_id:#06x}"
        try:
            device = usb.core.find(idVendor=vendor_id, idProduct=product_id)
        except usb.core.NoBackendError as e:
            raise TransportError("No libusb backend available") from e
        if device is None:
            raise DeviceNotFoundError(f"Device ({ids}) not found")

        try:
            try:
                config = device.get_active_configuration()
            except usb.core.USBError:
                device.set_configuration()
                config = device.get_active_configuration()
        except usb.core.USBError as e:
            raise EndpointDiscoveryError(f"Could not read active configuration of device ({ids})") from e

        found = find_bulk_endpoints(config)
        if found is None:
            raise EndpointDiscoveryError(f"No suitable bulk endpoints found for device ({ids})")
        in_ep, out_ep, if_num = found

        try:
            if device.is_kernel_driver_active(if_num):
                device.detach_kernel_driver(if_num)
        except NotImplementedError:
            # Kernel driver queries are Linux-only
            pass
        except usb.core.USBError as e:
            raise InterfaceClaimError(f"Failed to detach kernel driver from USB interface {if_num}") from e

        try:
            usb.util.claim_interface(device, if_num)
        except usb.core.USBError as e:
            raise InterfaceClaimError(f"Failed to claim USB interface {if_num}") from e

        logger.info(
            "Opened USB printer (%s) interface=%d in=%#04x out=%#04x",
            ids,
            if_num,
            in_ep,
            out_ep,
        )
        return cls(
            device,
            in_ep,
            out_ep,
            if_num,
            timeout_ms=timeout_ms,
            processing_delay=processing_delay,
        )

    def _io_with_retry(self, endpoint: int, io_func: Callable[[], T]) -> T:
        try:
            return io_func()
        except usb.core.USBError as e:
            if not _is_stall(e):
                raise TransportError(f"I/O error on endpoint {endpoint:#04x}", endpoint=endpoint) from e
            logger.warning("Endpoint %#04x stalled; clearing halt and retrying once", endpoint)

        try:
            self._device.clear_halt(endpoint)
        except usb.core.USBError as e:
            raise StallRecoveryError(f"Failed to clear halt on endpoint {endpoint:#04x}", endpoint=endpoint) from e
        time.sleep(self.processing_delay)
        try:
            return io_func()
        except usb.core.USBError as e:
            raise StallRecoveryError(
                f"Failed to retry I/O operation on endpoint {endpoint:#04x}",
                endpoint=endpoint,
            ) from e

    def _read_into(self, buf: Buffer, timeout_ms: int) -> int:
        size = len(buf)

        def _read():
            try:
                return self._device.read(self.in_endpoint, size, timeout_ms)
            except usb.core.USBTimeoutError:
                # Nothing queued on the IN endpoint
                return b""

        data = bytes(self._io_with_retry(self.in_endpoint, _read))
        n = min(len(data), size)
        buf[:n] = data[:n]
        logger.debug("Read %d byte(s) from endpoint %#04x", n, self.in_endpoint)
        return n

    def read(self, buf: Buffer) -> int:
        return self._read_into(buf, self.timeout_ms)

    def write(self, data: bytes) -> int:
        payload = bytes(data)
        written = self._io_with_retry(
            self.out_endpoint,
            lambda: self._device.write(self.out_endpoint, payload, self.timeout_ms),
        )
        if written != len(payload):
            raise PartialWriteError(len(payload), written, payload[:written], endpoint=self.out_endpoint)
        logger.debug("Wrote %d byte(s) to endpoint %#04x", written, self.out_endpoint)
        return written

    def drain(self) -> None:
        scratch = bytearray(DRAIN_CHUNK_SIZE)
        discarded = 0
        while True:
            n = self._read_into(scratch, self.drain_timeout_ms)
            if n == 0:
                break
            discarded += n
        if discarded:
            logger.info("Drained %d stale byte(s) from the printer", discarded)

    def close(self) -> None:
        try:
            usb.util.release_interface(self._device, self.interface)
            usb.util.dispose_resources(self._device)
        except usb.core.USBError as e:
            logger.warning("Error releasing USB interface %d: %s", self.interface, e)


__all__ = ["DRAIN_CHUNK_SIZE", "UsbTransport", "find_bulk_endpoints"]
