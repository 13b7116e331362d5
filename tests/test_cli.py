import json
from typing import List

import pytest

from receipt_printer import cli
from receipt_printer.core.config import load_config, load_settings
from receipt_printer.core.errors import DeviceNotFoundError
from receipt_printer.printing import printer as printer_mod
from receipt_printer.printing.printer import Printer
from receipt_printer.protocol import commands

from test_printer import FakeTransport


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.setenv("RECEIPTPRINTER_CONFIG_PATH", str(tmp_path / "cfg.json"))
    for name in ("RECEIPTPRINTER_VENDOR_ID", "RECEIPTPRINTER_PRODUCT_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(printer_mod.time, "sleep", lambda s: None)
    monkeypatch.setattr(cli, "configure_logging", lambda **kw: None)


def _use_transport(monkeypatch, transport):
    captured = {}

    def _from_settings(settings):
        captured["settings"] = settings
        return Printer.open(transport)

    monkeypatch.setattr(cli.Printer, "from_settings", staticmethod(_from_settings))
    return captured


def test_status_prints_summary(monkeypatch, capsys):
    captured = _use_transport(monkeypatch, FakeTransport(replies=[b"\x12\x12\x12\x12"]))
    rc = cli.main(["--vendor-id", "0x0519", "--product-id", "0001", "status", "--no-color"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == "Status: ONLINE - Paper: OK"
    assert captured["settings"].usb_vendor_id == 0x0519
    assert captured["settings"].usb_product_id == 0x0001


def test_status_json(monkeypatch, capsys):
    _use_transport(monkeypatch, FakeTransport(replies=[b"\x12\x12\x12\x72"]))
    assert cli.main(["status", "--json"]) == 0
    assert '"paper_status": "not_present"' in capsys.readouterr().out


def test_status_unavailable(monkeypatch, capsys):
    _use_transport(monkeypatch, FakeTransport(replies=[b"\x00"]))
    assert cli.main(["status"]) == 1
    assert "Failed to retrieve printer status." in capsys.readouterr().out


def test_print_markdown_file_then_cut(monkeypatch, tmp_path):
    t = FakeTransport()
    _use_transport(monkeypatch, t)
    doc = tmp_path / "receipt.md"
    doc.write_text("### Hi\n", encoding="utf-8")
    assert cli.main(["print", str(doc), "--feed", "2"]) == 0
    assert t.writes[2:] == [b"\x1bE\x01Hi\x1bE\x00\n\n", b"\x1bd\x02", commands.cut()]


def test_print_text_file_raw(monkeypatch, tmp_path):
    t = FakeTransport()
    _use_transport(monkeypatch, t)
    doc = tmp_path / "receipt.txt"
    doc.write_bytes(b"# not markdown\n")
    assert cli.main(["print", str(doc), "--no-cut"]) == 0
    assert t.writes[2:] == [b"# not markdown\n"]


def test_print_missing_file(monkeypatch, tmp_path, capsys):
    _use_transport(monkeypatch, FakeTransport())
    assert cli.main(["print", str(tmp_path / "nope.txt")]) == 2
    assert "Error: cannot read" in capsys.readouterr().err


@pytest.mark.parametrize("feed", ["256", "300", "-1", "two"])
def test_print_feed_out_of_range_is_usage_error(monkeypatch, tmp_path, capsys, feed):
    t = FakeTransport()
    _use_transport(monkeypatch, t)
    doc = tmp_path / "receipt.txt"
    doc.write_bytes(b"hello\n")
    with pytest.raises(SystemExit) as exc:
        cli.main(["print", str(doc), "--feed", feed])
    assert exc.value.code == 2
    assert "--feed" in capsys.readouterr().err
    assert t.writes == []


def test_print_feed_upper_bound(monkeypatch, tmp_path):
    t = FakeTransport()
    _use_transport(monkeypatch, t)
    doc = tmp_path / "receipt.txt"
    doc.write_bytes(b"hello\n")
    assert cli.main(["print", str(doc), "--feed", "255", "--no-cut"]) == 0
    assert t.writes[-1] == b"\x1bd\xff"


def test_config_shows_effective_settings(capsys):
    assert cli.main(["--vendor-id", "0519", "config"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["usb_vendor_id"] == "0x0519"
    assert data["usb_product_id"] == "0x0202"
    assert data["simulate"] is False


def test_config_save_round_trips_through_load(tmp_path, capsys):
    path = tmp_path / "saved" / "printer.json"
    assert cli.main(["--config", str(path), "--product-id", "0001", "config", "--save"]) == 0
    assert f"Saved settings to {path}" in capsys.readouterr().out
    data = load_config(str(path))
    assert data["usb_product_id"] == "0x0001"
    assert data["usb_vendor_id"] == "0x04b8"
    assert load_settings(str(path)).usb_product_id == 0x0001


def test_config_save_defaults_to_env_path(tmp_path):
    assert cli.main(["--simulate", "config", "--save"]) == 0
    assert load_config(str(tmp_path / "cfg.json"))["simulate"] is True


def test_config_save_unwritable_path(tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    assert cli.main(["--config", str(blocker / "printer.json"), "config", "--save"]) == 1
    assert "Error: cannot write" in capsys.readouterr().err


def test_transport_error_is_reported(monkeypatch, capsys):
    def _from_settings(settings):
        raise DeviceNotFoundError("Device (vid=0x04b8, pid=0x0202) not found")

    monkeypatch.setattr(cli.Printer, "from_settings", staticmethod(_from_settings))
    assert cli.main(["status"]) == 1
    assert "USB transport error: Device (vid=0x04b8, pid=0x0202) not found" in capsys.readouterr().err


def test_invalid_vendor_id(capsys):
    assert cli.main(["--vendor-id", "zz", "status"]) == 1
    assert "Invalid printer settings" in capsys.readouterr().err


def test_simulated_session_end_to_end(monkeypatch, capsys):
    import io

    monkeypatch.setattr("sys.stdin", io.StringIO("1a 12 12 12\n"))
    rc = cli.main(["--simulate", "status", "--no-color"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "P -> [0]:" in out and "P <- [0]:" in out
    assert "Status: OFFLINE - Paper: OK" in out
