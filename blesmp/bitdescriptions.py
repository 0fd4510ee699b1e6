"""Security Manager AuthReq flags and I/O capability values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

BONDING_BIT = 0b00000001
MITM_BIT = 0b00000100
SC_BIT = 0b00001000
KEYPRESS_BIT = 0b00010000
CT2_BIT = 0b00100000


class IOCap(IntEnum):
    """Input/output capability of a device during pairing."""

    DISPLAY_ONLY = 0x00
    DISPLAY_YES_NO = 0x01
    KEYBOARD_ONLY = 0x02
    NO_INPUT_NO_OUTPUT = 0x03
    KEYBOARD_DISPLAY = 0x04


def _check_octet(value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"octet out of range: {value}")
    return value


@dataclass
class AuthReq:
    """The AuthReq octet of a pairing request or response."""

    octet: int = 0

    def __post_init__(self) -> None:
        _check_octet(self.octet)

    def _get(self, bit: int) -> bool:
        return bool(self.octet & bit)

    def _set(self, bit: int, state: bool) -> None:
        self.octet = (self.octet | bit) if state else (self.octet & ~bit & 0xFF)

    @property
    def bonding(self) -> bool:
        """True when bonding is requested."""
        return self._get(BONDING_BIT)

    @bonding.setter
    def bonding(self, state: bool) -> None:
        self._set(BONDING_BIT, state)

    @property
    def mitm(self) -> bool:
        """True when man-in-the-middle protection is requested."""
        return self._get(MITM_BIT)

    @mitm.setter
    def mitm(self, state: bool) -> None:
        self._set(MITM_BIT, state)

    @property
    def sc(self) -> bool:
        """True when LE Secure Connections pairing is supported."""
        return self._get(SC_BIT)

    @sc.setter
    def sc(self, state: bool) -> None:
        self._set(SC_BIT, state)

    @property
    def keypress(self) -> bool:
        """True when keypress notifications are requested."""
        return self._get(KEYPRESS_BIT)

    @keypress.setter
    def keypress(self, state: bool) -> None:
        self._set(KEYPRESS_BIT, state)

    @property
    def ct2(self) -> bool:
        """True when the h7 function is supported."""
        return self._get(CT2_BIT)

    @ct2.setter
    def ct2(self, state: bool) -> None:
        self._set(CT2_BIT, state)