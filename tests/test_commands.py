import pytest

from receipt_printer.protocol import commands
from receipt_printer.protocol.commands import Justify, StatusRequest


def test_fixed_commands_match_wire_bytes():
    assert commands.init() == b"\x1b\x40"
    assert commands.disable_auto_status_back() == b"\x1d\x61\x00"
    assert commands.cut() == b"\x1d\x56\x42\x00"
    assert commands.print_and_feed() == b"\x0a"


def test_parameterized_commands():
    assert commands.print_and_feed_lines(3) == b"\x1b\x64\x03"
    assert commands.bold(True) == b"\x1b\x45\x01"
    assert commands.bold(False) == b"\x1b\x45\x00"
    assert commands.underline(True) == b"\x1b\x2d\x01"
    assert commands.underline(False) == b"\x1b\x2d\x00"


@pytest.mark.parametrize("mode,param", [(Justify.LEFT, 0), (Justify.CENTER, 1), (Justify.RIGHT, 2)])
def test_justify(mode, param):
    assert commands.justify(mode) == b"\x1b\x61" + bytes([param])


def test_char_size_packs_width_high_nibble():
    assert commands.char_size(0, 0) == b"\x1d\x21\x00"
    assert commands.char_size(1, 1) == b"\x1d\x21\x11"
    assert commands.char_size(2, 3) == b"\x1d\x21\x32"


def test_char_size_clamps_above_eight():
    assert commands.char_size(10, 0) == commands.char_size(8, 0)
    assert commands.char_size(0, 200) == commands.char_size(0, 8) == b"\x1d\x21\x80"
    assert commands.char_size(-1, -5) == commands.char_size(0, 0)


def test_status_requests():
    assert commands.status_request(StatusRequest.PRINTER_STATUS) == b"\x10\x04\x01"
    assert commands.status_request(StatusRequest.PAPER_STATUS) == b"\x10\x04\x04"
    assert commands.status_poll() == b"\x10\x04\x01\x10\x04\x02\x10\x04\x03\x10\x04\x04"


def test_feed_lines_rejects_out_of_range():
    with pytest.raises(ValueError):
        commands.print_and_feed_lines(256)
