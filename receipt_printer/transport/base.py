"""Base transport class for receipt printers."""

from __future__ import annotations

import abc
from typing import Union

Buffer = Union[bytearray, memoryview]


class Transport(metaclass=abc.ABCMeta):
    """
    Exclusive, blocking byte channel to one printer.

    A transport is owned by a single Printer for its whole lifetime and is
    not safe to share between concurrent writers.
    """

    # Short name used in log lines and error messages
    backend: str = "transport"

    @abc.abstractmethod
    def read(self, buf: Buffer) -> int:
        """Read available reply bytes into `buf`.

        Args:
            buf: Destination buffer; at most len(buf) bytes are copied.

        Returns:
            int: Number of bytes placed in `buf` (0 when nothing was available)
        """
        raise NotImplementedError

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Write all of `data` to the printer.

        Returns:
            int: Number of bytes written (always len(data) on success)
        """
        raise NotImplementedError

    @abc.abstractmethod
    def drain(self) -> None:
        """Discard buffered incoming bytes until none remain."""
        raise NotImplementedError

    def close(self) -> None:
        """Release the underlying channel. Default: nothing to release."""
        return None

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
