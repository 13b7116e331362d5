from __future__ import annotations

"""
Pydantic schema for printer settings.

The merged configuration (file, environment, command line) is validated here
before any USB device is touched, so a bad vendor ID fails fast with a clear
message instead of a "device not found" later on.
"""

from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, Field, field_validator

# Epson TM-T88IV
DEFAULT_VENDOR_ID = 0x04B8
DEFAULT_PRODUCT_ID = 0x0202

DEFAULT_IO_TIMEOUT_MS = 5000
DEFAULT_PROCESSING_DELAY_MS = 500


def parse_usb_id(value: Union[str, int]) -> int:
    """
    Parse a USB vendor/product ID. Strings are read as hex with an optional
    0x prefix ("04b8", "0x04b8"), matching how IDs are shown by lsusb.
    """
    if isinstance(value, int):
        return value
    s = str(value).strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    if not s:
        raise ValueError("empty USB id")
    return int(s, 16)


class PrinterSettings(BaseModel):
    """Validated settings for one printer session."""

    usb_vendor_id: int = Field(default=DEFAULT_VENDOR_ID, ge=0, le=0xFFFF, description="USB vendor ID")
    usb_product_id: int = Field(default=DEFAULT_PRODUCT_ID, ge=0, le=0xFFFF, description="USB product ID")
    io_timeout_ms: int = Field(default=DEFAULT_IO_TIMEOUT_MS, gt=0, description="Per-transfer USB timeout")
    processing_delay_ms: int = Field(
        default=DEFAULT_PROCESSING_DELAY_MS,
        gt=0,
        description="Time the printer needs to assemble a status reply or recover from a stall",
    )
    simulate: bool = Field(default=False, description="Use the interactive hex transport instead of USB")
    text_policy: Literal["raw", "strip"] = Field(
        default="raw",
        description="How control characters inside markup text are handled",
    )

    @field_validator("usb_vendor_id", "usb_product_id", mode="before")
    @classmethod
    def _parse_ids(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_usb_id(v)
        return v

    @property
    def device_label(self) -> str:
        if self.simulate:
            return "sim"
        return f"{self.usb_vendor_id:04x}:{self.usb_product_id:04x}"

    def to_config(self) -> Dict[str, Any]:
        """Serialize back to the on-disk JSON shape (hex string IDs)."""
        data = self.model_dump()
        data["usb_vendor_id"] = f"0x{self.usb_vendor_id:04x}"
        data["usb_product_id"] = f"0x{self.usb_product_id:04x}"
        return data


__all__ = [
    "DEFAULT_IO_TIMEOUT_MS",
    "DEFAULT_PROCESSING_DELAY_MS",
    "DEFAULT_PRODUCT_ID",
    "DEFAULT_VENDOR_ID",
    "PrinterSettings",
    "parse_usb_id",
]
