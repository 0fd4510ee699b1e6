"""HCI transport over a UART link to a Bluetooth controller."""

from __future__ import annotations

import time
from typing import Optional, Union

import serial

DEFAULT_BAUDRATE = 912600
SLOW_BAUDRATE = 119600


class UartTransport:
    """Byte stream to an HCI controller over a serial port.

    ``uart`` is either a port name, for which an unopened ``serial.Serial``
    is created, or an object with the pyserial interface (``baudrate``,
    ``is_open``, ``open``, ``close``, ``in_waiting``, ``read``, ``write``
    and ``flush``).
    """

    def __init__(self, uart: Union[str, "serial.Serial"],
                 baudrate: int = DEFAULT_BAUDRATE) -> None:
        if isinstance(uart, str):
            port = serial.Serial(port=None, baudrate=baudrate)
            port.port = uart
            uart = port
        self.uart = uart
        self.baudrate = baudrate
        self._peeked: Optional[int] = None

    def __enter__(self) -> "UartTransport":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()

    def begin(self) -> bool:
        """Open the port at the configured baud rate."""
        self.uart.baudrate = self.baudrate
        if not self.uart.is_open:
            self.uart.open()
        self._peeked = None
        return True

    def end(self) -> None:
        """Close the port and drop any peeked byte."""
        self.uart.close()
        self._peeked = None

    def wait(self, timeout) -> bool:
        """Wait up to ``timeout`` milliseconds for data; True when data is available."""
        deadline = time.monotonic() + timeout / 1000.0
        while True:
            if self.available():
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.0005)

    def available(self) -> int:
        """Number of bytes ready to be read."""
        pending = 1 if self._peeked is not None else 0
        return pending + int(self.uart.in_waiting)

    def _read_one(self) -> int:
        if not self.uart.in_waiting:
            return -1
        chunk = self.uart.read(1)
        return chunk[0] if chunk else -1

    def peek(self) -> int:
        """Next byte without consuming it, or -1 when none is available."""
        if self._peeked is None:
            value = self._read_one()
            if value < 0:
                return -1
            self._peeked = value
        return self._peeked

    def read(self) -> int:
        """Consume and return the next byte, or -1 when none is available."""
        if self._peeked is not None:
            value, self._peeked = self._peeked, None
            return value
        return self._read_one()

    def write(self, data) -> int:
        """Write ``data``, flush it to the wire and return the number of bytes written."""
        written = self.uart.write(bytes(data))
        self.uart.flush()
        return len(data) if written is None else written