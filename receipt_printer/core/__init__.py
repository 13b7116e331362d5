"""
Core utilities for Receipt Printer.

This package groups helpers used across the protocol, transport and CLI layers:
- config: config path resolution, JSON load/save, settings merge
- schemas: pydantic PrinterSettings
- logging: device-aware log filter/formatters and root logger config
- errors: exception hierarchy

Exports are explicit to keep static analyzers (e.g., Pyright) happy.
"""

from .config import (
    default_config_path,
    get_config_path,
    load_config,
    load_settings,
    save_config,
)
from .errors import (
    ConfigError,
    DeviceNotFoundError,
    EndpointDiscoveryError,
    InterfaceClaimError,
    MarkupError,
    PartialWriteError,
    ReceiptPrinterError,
    StallRecoveryError,
    TransportError,
)
from .logging import (
    DeviceFilter,
    JsonFormatter,
    configure_logging,
)
from .schemas import (
    DEFAULT_PRODUCT_ID,
    DEFAULT_VENDOR_ID,
    PrinterSettings,
    parse_usb_id,
)

__all__ = [
    # config
    "default_config_path",
    "get_config_path",
    "load_config",
    "load_settings",
    "save_config",
    # schemas
    "DEFAULT_PRODUCT_ID",
    "DEFAULT_VENDOR_ID",
    "PrinterSettings",
    "parse_usb_id",
    # logging
    "configure_logging",
    "DeviceFilter",
    "JsonFormatter",
    # errors
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
