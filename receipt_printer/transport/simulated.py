"""
Interactive stand-in for a printer.

Writes are shown as a hex dump; reads prompt for a line of whitespace
separated hex bytes ("12 12 0x12 0x12"). Useful for exercising the
protocol without hardware and for feeding hand-crafted status replies.
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional, TextIO

from receipt_printer.core.errors import TransportError

from .base import Buffer, Transport

logger = logging.getLogger(__name__)

BYTES_PER_ROW = 16


def hex_dump(data: bytes) -> str:
    """
    Classic offset / hex / ASCII dump, 16 bytes per row.

        00000000  1b 40                                             |.@|
    """
    lines: List[str] = []
    for offset in range(0, len(data), BYTES_PER_ROW):
        row = data[offset : offset + BYTES_PER_ROW]
        hex_part = " ".join(f"{b:02x}" for b in row)
        ascii_part = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
        lines.append(f"{offset:08x}  {hex_part:<{BYTES_PER_ROW * 3 - 1}}  |{ascii_part}|")
    if not lines:
        lines.append("(empty)")
    return "\n".join(lines)


def parse_hex_line(line: str) -> bytes:
    """
    Parse whitespace separated hex tokens, each with an optional 0x prefix.

    Raises:
        ValueError on any token that is not a single byte in hex.
    """
    values = []
    for token in line.split():
        digits = token[2:] if token.lower().startswith("0x") else token
        if not digits or len(digits) > 2:
            raise ValueError(f"not a hex byte: {token!r}")
        values.append(int(digits, 16))
    return bytes(values)


class SimulatedTransport(Transport):
    backend = "simulated"

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        self._stdin = stdin
        self._stdout = stdout
        self.write_count = 0
        self.read_count = 0

    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    def read(self, buf: Buffer) -> int:
        print(f"P <- [{self.read_count}]:", file=self.stdout, flush=True)
        line = self.stdin.readline()
        try:
            values = parse_hex_line(line)
        except ValueError as e:
            raise TransportError(
                "Invalid hex format. Use format like: '0x41 0x42' or '41 42'",
                backend=self.backend,
            ) from e
        self.read_count += 1
        n = min(len(values), len(buf))
        buf[:n] = values[:n]
        logger.debug("Simulated read of %d byte(s)", n)
        return n

    def write(self, data: bytes) -> int:
        print(f"P -> [{self.write_count}]:", file=self.stdout)
        print(hex_dump(bytes(data)), file=self.stdout, flush=True)
        self.write_count += 1
        return len(data)

    def drain(self) -> None:
        return None


__all__ = ["SimulatedTransport", "hex_dump", "parse_hex_line"]
