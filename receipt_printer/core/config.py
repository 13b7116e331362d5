"""
Config utilities for Receipt Printer.

Responsibilities:
- Resolve the config path with environment and XDG support
- Provide JSON load/save helpers
- Merge file, environment and caller overrides into validated PrinterSettings
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from receipt_printer.core.errors import ConfigError
from receipt_printer.core.schemas import PrinterSettings

logger = logging.getLogger(__name__)

# Environment variable -> settings key
ENV_OVERRIDES: Dict[str, str] = {
    "RECEIPTPRINTER_VENDOR_ID": "usb_vendor_id",
    "RECEIPTPRINTER_PRODUCT_ID": "usb_product_id",
    "RECEIPTPRINTER_IO_TIMEOUT_MS": "io_timeout_ms",
    "RECEIPTPRINTER_PROCESSING_DELAY_MS": "processing_delay_ms",
}


def default_config_path() -> str:
    """
    Resolve the default config path using:
    1) $XDG_CONFIG_HOME/receipt-printer/config.json
    2) ~/.config/receipt-printer/config.json
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return str(Path(xdg) / "receipt-printer" / "config.json")
    return str(Path.home() / ".config" / "receipt-printer" / "config.json")


def get_config_path() -> str:
    """
    Return the config path honoring RECEIPTPRINTER_CONFIG_PATH override.
    """
    return os.environ.get("RECEIPTPRINTER_CONFIG_PATH", default_config_path())


def load_config(path: Optional[str] = None) -> Optional[dict[str, Any]]:
    """
    Load the JSON config if it exists; return None if missing.

    Raises:
        json.JSONDecodeError if the file exists but contains invalid JSON.
        OSError for I/O errors other than missing file.
    """
    cfg_path = Path(path or get_config_path())
    if not cfg_path.exists():
        return None
    with cfg_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def save_config(data: Mapping[str, Any], path: Optional[str] = None) -> None:
    """
    Save the JSON config, creating parent directories as needed.

    Writes atomically by using a temporary file and os.replace().
    Raises OSError on I/O failures.
    """
    cfg_path = Path(path or get_config_path())
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = cfg_path.with_suffix(cfg_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(dict(data), f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, cfg_path)


def _env_values() -> Dict[str, str]:
    values: Dict[str, str] = {}
    for env_name, key in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw.strip():
            values[key] = raw.strip()
    return values


def load_settings(path: Optional[str] = None, overrides: Optional[Mapping[str, Any]] = None) -> PrinterSettings:
    """
    Build PrinterSettings from (lowest to highest precedence) built-in
    defaults, the JSON config file, environment variables and `overrides`.
    Override values of None are ignored so argparse namespaces can be passed
    through unfiltered.

    Raises:
        ConfigError if the file is unreadable or any value fails validation.
    """
    merged: Dict[str, Any] = {}
    try:
        file_cfg = load_config(path)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read config file {path or get_config_path()}: {e}") from e
    if file_cfg:
        if not isinstance(file_cfg, dict):
            raise ConfigError("Config file must contain a JSON object")
        merged.update(file_cfg)
    merged.update(_env_values())
    if overrides:
        merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        settings = PrinterSettings.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid printer settings: {e}") from e
    logger.debug("Loaded settings for device %s", settings.device_label)
    return settings


__all__ = [
    "ENV_OVERRIDES",
    "default_config_path",
    "get_config_path",
    "load_config",
    "load_settings",
    "save_config",
]
