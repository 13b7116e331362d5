import json
import logging

import pytest

from receipt_printer.core.config import default_config_path, get_config_path, load_config, load_settings, save_config
from receipt_printer.core.errors import ConfigError
from receipt_printer.core.logging import DeviceFilter, JsonFormatter, configure_logging
from receipt_printer.core.schemas import DEFAULT_PRODUCT_ID, DEFAULT_VENDOR_ID, PrinterSettings, parse_usb_id


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "RECEIPTPRINTER_CONFIG_PATH",
        "RECEIPTPRINTER_VENDOR_ID",
        "RECEIPTPRINTER_PRODUCT_ID",
        "RECEIPTPRINTER_IO_TIMEOUT_MS",
        "RECEIPTPRINTER_PROCESSING_DELAY_MS",
        "RECEIPTPRINTER_JSON_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_default_config_path_honors_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_path() == str(tmp_path / "receipt-printer" / "config.json")
    monkeypatch.setenv("RECEIPTPRINTER_CONFIG_PATH", "/x/cfg.json")
    assert get_config_path() == "/x/cfg.json"


def test_save_and_load_roundtrip(tmp_path):
    path = tmp_path / "nested" / "cfg.json"
    save_config({"usb_vendor_id": "0x0519"}, path=str(path))
    assert load_config(str(path)) == {"usb_vendor_id": "0x0519"}
    assert not (tmp_path / "nested" / "cfg.json.tmp").exists()


def test_load_config_missing_returns_none(tmp_path):
    assert load_config(str(tmp_path / "missing.json")) is None


def test_defaults_without_config(tmp_path):
    s = load_settings(str(tmp_path / "missing.json"))
    assert (s.usb_vendor_id, s.usb_product_id) == (DEFAULT_VENDOR_ID, DEFAULT_PRODUCT_ID)
    assert s.io_timeout_ms == 5000 and s.processing_delay_ms == 500
    assert s.simulate is False and s.text_policy == "raw"


def test_precedence_file_env_override(tmp_path, monkeypatch):
    path = tmp_path / "cfg.json"
    save_config({"usb_vendor_id": "0x0519", "usb_product_id": "0x0001", "io_timeout_ms": 1000}, path=str(path))
    monkeypatch.setenv("RECEIPTPRINTER_PRODUCT_ID", "0x0002")
    s = load_settings(str(path), overrides={"usb_vendor_id": "1208", "simulate": None})
    assert s.usb_vendor_id == 0x1208
    assert s.usb_product_id == 0x0002
    assert s.io_timeout_ms == 1000
    assert s.simulate is False


def test_invalid_values_raise_config_error(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "none.json"), overrides={"usb_vendor_id": "0x1ffff"})
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "none.json"), overrides={"usb_product_id": "xyz"})
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "none.json"), overrides={"processing_delay_ms": 0})


def test_invalid_json_raises_config_error(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(str(path))


def test_parse_usb_id():
    assert parse_usb_id("0x04B8") == 0x04B8
    assert parse_usb_id("0202") == 0x0202
    assert parse_usb_id(42) == 42
    with pytest.raises(ValueError):
        parse_usb_id("0x")


def test_settings_label_and_config_shape():
    s = PrinterSettings(usb_vendor_id=0x04B8, usb_product_id=0x0202)
    assert s.device_label == "04b8:0202"
    assert s.to_config()["usb_vendor_id"] == "0x04b8"
    assert PrinterSettings(simulate=True).device_label == "sim"


def test_device_filter_and_json_formatter():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello %s", ("there",), None)
    assert DeviceFilter("04b8:0202").filter(record) is True
    data = json.loads(JsonFormatter().format(record))
    assert data["msg"] == "hello there"
    assert data["device"] == "04b8:0202"
    assert data["level"] == "INFO"


def test_configure_logging_replaces_handlers():
    root = configure_logging(level="DEBUG", device="sim", json_logs=True)
    try:
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        configure_logging(level="DEBUG", device="sim")
        assert len(root.handlers) == 1
    finally:
        root.handlers = []
        root.setLevel(logging.WARNING)
