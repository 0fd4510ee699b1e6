"""Bluetooth LE Secure Connections crypto toolbox (AES-CMAC, f5, f6, g2, ah)."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_SIZE = 16
DHKEY_LENGTH = 32
NONCE_LENGTH = 16
ADDRESS_LENGTH = 7
_RB = 0x87
_MASK_128 = (1 << 128) - 1

F5_SALT = bytes.fromhex("6C888391AAF5A53860370BDB5A6083BE")
F5_KEY_ID = bytes((0x62, 0x74, 0x6C, 0x65))
F5_LENGTH = bytes((0x01, 0x00))


def _expect(name: str, value, size: int) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(data)}")
    return data


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def _double(block: bytes) -> bytes:
    value = int.from_bytes(block, "big") << 1
    if value >> 128:
        value = (value & _MASK_128) ^ _RB
    return value.to_bytes(BLOCK_SIZE, "big")


def aes_128(key, block) -> bytes:
    """Encrypt one 16-byte block with AES-128 (most significant byte first)."""
    key = _expect("key", key, BLOCK_SIZE)
    block = _expect("block", block, BLOCK_SIZE)
    encryptor = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
    return encryptor.update(block) + encryptor.finalize()


def generate_subkey(key) -> tuple[bytes, bytes]:
    """Return the CMAC subkeys (K1, K2) for *key*."""
    l_block = aes_128(key, bytes(BLOCK_SIZE))
    k1 = _double(l_block)
    return k1, _double(k1)


def aes_cmac(key, message) -> bytes:
    """Compute the AES-CMAC of *message* under *key*."""
    key = _expect("key", key, BLOCK_SIZE)
    message = bytes(message)
    k1, k2 = generate_subkey(key)
    blocks = [message[i:i + BLOCK_SIZE] for i in range(0, len(message), BLOCK_SIZE)] or [b""]
    *leading, last = blocks
    if len(last) == BLOCK_SIZE:
        m_last = _xor(last, k1)
    else:
        padded = last + b"\x80" + bytes(BLOCK_SIZE - len(last) - 1)
        m_last = _xor(padded, k2)
    encryptor = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
    x = bytes(BLOCK_SIZE)
    for block in leading:
        x = encryptor.update(_xor(x, block))
    return encryptor.update(_xor(x, m_last))


def f5(dhkey, n_master, n_slave, addr_master, addr_slave) -> tuple[bytes, bytes]:
    """LE Secure Connections key generation; returns (MacKey, LTK).

    Addresses are 7 bytes: the address type followed by the 6-byte address.
    """
    dhkey = _expect("dhkey", dhkey, DHKEY_LENGTH)
    n_master = _expect("n_master", n_master, NONCE_LENGTH)
    n_slave = _expect("n_slave", n_slave, NONCE_LENGTH)
    addr_master = _expect("addr_master", addr_master, ADDRESS_LENGTH)
    addr_slave = _expect("addr_slave", addr_slave, ADDRESS_LENGTH)

    t = aes_cmac(F5_SALT, dhkey)
    body = F5_KEY_ID + n_master + n_slave + addr_master + addr_slave + F5_LENGTH
    mac_key = aes_cmac(t, b"\x00" + body)
    ltk = aes_cmac(t, b"\x01" + body)
    return mac_key, ltk


def f6(w, n1, n2, r, io_cap, a1, a2) -> bytes:
    """LE Secure Connections check value generation."""
    message = (
        _expect("n1", n1, NONCE_LENGTH)
        + _expect("n2", n2, NONCE_LENGTH)
        + _expect("r", r, BLOCK_SIZE)
        + _expect("io_cap", io_cap, 3)
        + _expect("a1", a1, ADDRESS_LENGTH)
        + _expect("a2", a2, ADDRESS_LENGTH)
    )
    return aes_cmac(_expect("w", w, BLOCK_SIZE), message)


def g2(u, v, x, y) -> int:
    """LE Secure Connections numeric comparison value as a 32-bit integer."""
    message = _expect("u", u, 32) + _expect("v", v, 32) + _expect("y", y, NONCE_LENGTH)
    mac = aes_cmac(_expect("x", x, NONCE_LENGTH), message)
    return int.from_bytes(mac[12:], "big")


def ah(k, r) -> bytes:
    """Random address hash function: 3-byte hash of the 3-byte *r* under IRK *k*."""
    r = _expect("r", r, 3)
    return aes_128(k, bytes(13) + r)[13:]


def format_bytes(data) -> str:
    """Render bytes as a comma separated list of hex values, e.g. '0x6B, 0xC1'."""
    return ", ".join(f"0x{b:X}" for b in bytes(data))