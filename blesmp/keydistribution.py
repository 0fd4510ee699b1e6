"""Security Manager key distribution flags."""

from __future__ import annotations

from dataclasses import dataclass

ENC_KEY_BIT = 0b00000001
ID_KEY_BIT = 0b00000010
SIGN_KEY_BIT = 0b00000100
LINK_KEY_BIT = 0b00001000


@dataclass
class KeyDistribution:
    """The initiator or responder key distribution octet."""

    octet: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.octet <= 0xFF:
            raise ValueError(f"octet out of range: {self.octet}")

    def _get(self, bit: int) -> bool:
        return bool(self.octet & bit)

    def _set(self, bit: int, state: bool) -> None:
        self.octet = (self.octet | bit) if state else (self.octet & ~bit & 0xFF)

    @property
    def enc_key(self) -> bool:
        """LTK distribution; ignored when SMP runs on the LE transport."""
        return self._get(ENC_KEY_BIT)

    @enc_key.setter
    def enc_key(self, state: bool) -> None:
        self._set(ENC_KEY_BIT, state)

    @property
    def id_key(self) -> bool:
        """IRK and identity address distribution."""
        return self._get(ID_KEY_BIT)

    @id_key.setter
    def id_key(self, state: bool) -> None:
        self._set(ID_KEY_BIT, state)

    @property
    def sign_key(self) -> bool:
        """CSRK distribution."""
        return self._get(SIGN_KEY_BIT)

    @sign_key.setter
    def sign_key(self, state: bool) -> None:
        self._set(SIGN_KEY_BIT, state)

    @property
    def link_key(self) -> bool:
        """Derivation of a BR/EDR link key from the LTK."""
        return self._get(LINK_KEY_BIT)

    @link_key.setter
    def link_key(self, state: bool) -> None:
        self._set(LINK_KEY_BIT, state)