"""L2CAP signalling and Security Manager handling for LE connections."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Callable, Dict, Optional

from blesmp import btct
from blesmp.bitdescriptions import AuthReq, IOCap
from blesmp.keydistribution import KeyDistribution

SIGNALING_CID = 0x0005
SECURITY_CID = 0x0006

CONNECTION_PARAMETER_UPDATE_REQUEST = 0x12
CONNECTION_PARAMETER_UPDATE_RESPONSE = 0x13

CONNECTION_PAIRING_REQUEST = 0x01
CONNECTION_PAIRING_RESPONSE = 0x02
CONNECTION_PAIRING_CONFIRM = 0x03
CONNECTION_PAIRING_RANDOM = 0x04
CONNECTION_PAIRING_FAILED = 0x05
CONNECTION_ENCRYPTION_INFORMATION = 0x06
CONNECTION_MASTER_IDENTIFICATION = 0x07
CONNECTION_IDENTITY_INFORMATION = 0x08
CONNECTION_IDENTITY_ADDRESS = 0x09
CONNECTION_SIGNING_INFORMATION = 0x0A
CONNECTION_SECURITY_REQUEST = 0x0B
CONNECTION_PAIRING_PUBLIC_KEY = 0x0C
CONNECTION_PAIRING_DHKEY_CHECK = 0x0D
CONNECTION_PAIRING_KEYPRESS = 0x0E

PAIRING_FAILED_PAIRING_NOT_SUPPORTED = 0x05
PAIRING_FAILED_DHKEY_CHECK = 0x0B
PAIRING_FAILED_NUMERIC_COMPARISON = 0x0C

LOCAL_AUTHREQ = 0b00101101
MAX_ENCRYPTION_KEY_SIZE = 0x10

OGF_LE_CTL = 0x08
LE_READ_LOCAL_P256 = 0x0025

_SIGNALING_HEADER = struct.Struct("<BBH")
_PARAMETER_UPDATE = struct.Struct("<HHHH")


class PeerEncryption(IntFlag):
    """Progress of pairing and encryption with a peer."""

    NO_ENCRYPTION = 0
    PAIRING_REQUEST = 1 << 0
    REQUESTED_ENCRYPTION = 1 << 1
    SENT_PUBKEY = 1 << 2
    DH_KEY_CALCULATED = 1 << 3
    RECEIVED_DH_CHECK = 1 << 4
    SENT_DH_CHECK = 1 << 5
    ENCRYPTED = 1 << 7


@dataclass
class _Peer:
    address_type: int
    address: bytes
    encryption: PeerEncryption = PeerEncryption.NO_ENCRYPTION
    io_cap: bytes = bytes(3)

    def address_with_type(self) -> bytes:
        """Type octet followed by the address, most significant byte first."""
        return bytes([self.address_type]) + self.address[::-1]


@dataclass
class _SecurityState:
    na: bytes = bytes(16)
    nb: bytes = field(default_factory=lambda: os.urandom(16))
    local_public_key: bytes = bytes(64)
    remote_public_key: bytes = bytes(64)
    dhkey: bytes = bytes(32)
    ltk: bytes = bytes(16)
    remote_dhkey_check: bytes = bytes(16)
    local_io_cap: IOCap = IOCap.DISPLAY_ONLY
    local_auth_req: AuthReq = field(default_factory=lambda: AuthReq(LOCAL_AUTHREQ))
    peer_irk: bytes = bytes(16)
    local_irk: bytes = bytes(16)
    local_key_distribution: KeyDistribution = field(default_factory=KeyDistribution)
    remote_key_distribution: KeyDistribution = field(default_factory=KeyDistribution)
    display_code: Optional[Callable[[int], None]] = None
    confirm_pairing: Optional[Callable[[], bool]] = None
    store_ltk: Optional[Callable[[bytes, bytes], None]] = None


class L2CAPSignaling:
    """Handles the LE signalling channel and the Security Manager channel.

    ``link`` is the controller side and must provide:
    ``send_acl(handle, cid, payload)``,
    ``le_conn_update(handle, min_interval, max_interval, latency, supervision_timeout)``,
    ``send_command(opcode, params)``,
    ``local_address()`` returning the 6-byte local address, most significant byte first,
    and ``save_new_address(address_type, address, peer_irk, local_irk)``.

    ``pairing_enabled`` is 0 (off), 1 (on) or 2 (allow a single pairing).
    """

    def __init__(self, link, *, pairing_enabled: int = 1) -> None:
        self.link = link
        self.min_interval = 0
        self.max_interval = 0
        self.supervision_timeout = 0
        self.pairing_enabled = pairing_enabled
        self.peers: Dict[int, _Peer] = {}
        self.security = _SecurityState()

    # connection bookkeeping

    def add_connection(self, handle, role, peer_bdaddr_type, peer_bdaddr, interval,
                       latency, supervision_timeout, master_clock_accuracy) -> None:
        """Record a new connection and, as peripheral, ask for preferred parameters.

        ``peer_bdaddr`` is the 6-byte address as carried by HCI (least significant first).
        """
        self.peers[handle] = _Peer(peer_bdaddr_type, bytes(peer_bdaddr))
        if role != 1:
            return

        update = False
        new_min = new_max = interval
        new_timeout = supervision_timeout

        if self.min_interval and self.max_interval:
            if interval < self.min_interval or interval > self.max_interval:
                new_min, new_max = self.min_interval, self.max_interval
                update = True

        if self.supervision_timeout and supervision_timeout != self.supervision_timeout:
            new_timeout = self.supervision_timeout
            update = True

        if update:
            request = struct.pack(
                "<BBHHHHH", CONNECTION_PARAMETER_UPDATE_REQUEST, 0x01, 8,
                new_min, new_max, 0x0000, new_timeout,
            )
            self.link.send_acl(handle, SIGNALING_CID, request)

    def remove_connection(self, handle, reason) -> None:
        """Forget everything known about a closed connection."""
        self.peers.pop(handle, None)

    def set_connection_interval(self, min_interval, max_interval) -> None:
        """Set the preferred connection interval range (0 disables the check)."""
        self.min_interval = min_interval
        self.max_interval = max_interval

    def set_supervision_timeout(self, supervision_timeout) -> None:
        """Set the preferred supervision timeout (0 disables the check)."""
        self.supervision_timeout = supervision_timeout

    def pairing_allowed(self) -> bool:
        """True while pairing requests are accepted."""
        return self.pairing_enabled > 0

    # encryption state helpers

    def _encryption(self, handle: int) -> PeerEncryption:
        peer = self.peers.get(handle)
        return peer.encryption if peer else PeerEncryption.NO_ENCRYPTION

    def _set_encryption(self, handle: int, value: PeerEncryption) -> bool:
        peer = self.peers.get(handle)
        if peer is None:
            return False
        peer.encryption = PeerEncryption(value)
        return True

    def _fail(self, handle: int, reason: int) -> None:
        self.link.send_acl(handle, SECURITY_CID, bytes([CONNECTION_PAIRING_FAILED, reason]))
        self._set_encryption(handle, PeerEncryption.NO_ENCRYPTION)

    # signalling channel

    def handle_data(self, connection_handle, data) -> None:
        """Process one PDU received on the signalling channel; malformed PDUs are ignored."""
        data = bytes(data)
        if len(data) < _SIGNALING_HEADER.size:
            return
        code, identifier, length = _SIGNALING_HEADER.unpack_from(data)
        if len(data) != _SIGNALING_HEADER.size + length:
            return
        payload = data[_SIGNALING_HEADER.size:]
        if code == CONNECTION_PARAMETER_UPDATE_REQUEST:
            self._parameter_update_request(connection_handle, identifier, payload)

    def _parameter_update_request(self, handle: int, identifier: int, payload: bytes) -> None:
        if len(payload) < _PARAMETER_UPDATE.size:
            return
        min_interval, max_interval, latency, timeout = _PARAMETER_UPDATE.unpack_from(payload)

        accepted = True
        if self.min_interval and self.max_interval:
            if min_interval < self.min_interval or max_interval > self.max_interval:
                accepted = False
        if self.supervision_timeout and timeout != self.supervision_timeout:
            accepted = False

        response = struct.pack(
            "<BBHH", CONNECTION_PARAMETER_UPDATE_RESPONSE, identifier, 2,
            0x0000 if accepted else 0x0001,
        )
        self.link.send_acl(handle, SIGNALING_CID, response)
        if accepted:
            self.link.le_conn_update(handle, min_interval, max_interval, latency, timeout)

    # security manager channel

    def handle_security_data(self, connection_handle, data) -> None:
        """Process one Security Manager PDU; truncated PDUs are ignored."""
        data = bytes(data)
        if not data:
            return
        handler = {
            CONNECTION_PAIRING_REQUEST: (7, self._pairing_request),
            CONNECTION_PAIRING_RANDOM: (17, self._pairing_random),
            CONNECTION_PAIRING_FAILED: (1, self._pairing_failed),
            CONNECTION_IDENTITY_INFORMATION: (17, self._identity_information),
            CONNECTION_IDENTITY_ADDRESS: (8, self._identity_address),
            CONNECTION_PAIRING_PUBLIC_KEY: (65, self._public_key),
            CONNECTION_PAIRING_DHKEY_CHECK: (17, self._dhkey_check),
        }.get(data[0])
        if handler is None:
            return
        minimum, method = handler
        if len(data) < minimum:
            return
        method(connection_handle, data)

    def _pairing_request(self, handle: int, data: bytes) -> None:
        if not self.pairing_allowed():
            self._fail(handle, PAIRING_FAILED_PAIRING_NOT_SUPPORTED)
            return
        if self.pairing_enabled >= 2:
            self.pairing_enabled = 0

        io_capability, oob_flag, auth_req = data[1], data[2], data[3]

        key_distribution = KeyDistribution()
        key_distribution.id_key = True
        self.security.remote_key_distribution = KeyDistribution(key_distribution.octet)
        self.security.local_key_distribution = KeyDistribution(key_distribution.octet)

        peer = self.peers.get(handle)
        if peer is not None:
            peer.io_cap = bytes([auth_req, oob_flag, io_capability])
        self._set_encryption(handle, self._encryption(handle) | PeerEncryption.PAIRING_REQUEST)

        response = bytes([
            CONNECTION_PAIRING_RESPONSE,
            int(self.security.local_io_cap),
            0x00,
            self.security.local_auth_req.octet,
            MAX_ENCRYPTION_KEY_SIZE,
            key_distribution.octet,
            key_distribution.octet,
        ])
        self.link.send_acl(handle, SECURITY_CID, response)

    def _pairing_random(self, handle: int, data: bytes) -> None:
        state = self.security
        state.na = data[1:17][::-1]
        response = bytes([CONNECTION_PAIRING_RANDOM]) + state.nb[::-1]
        self.link.send_acl(handle, SECURITY_CID, response)

        u = state.remote_public_key[:32][::-1]
        v = state.local_public_key[:32][::-1]
        result = btct.g2(u, v, state.na, state.nb)

        if state.display_code is not None:
            state.display_code(result % 1000000)
        if state.confirm_pairing is not None and not state.confirm_pairing():
            self._fail(handle, PAIRING_FAILED_NUMERIC_COMPARISON)

    def _pairing_failed(self, handle: int, data: bytes) -> None:
        self._set_encryption(handle, PeerEncryption.NO_ENCRYPTION)

    def _identity_information(self, handle: int, data: bytes) -> None:
        self.security.peer_irk = data[1:17][::-1]

    def _identity_address(self, handle: int, data: bytes) -> None:
        state = self.security
        address_type = data[1]
        peer_address = data[2:8][::-1]
        self.link.save_new_address(address_type, peer_address, state.peer_irk, state.local_irk)
        if state.store_ltk is not None:
            state.store_ltk(peer_address, state.ltk)

    def _public_key(self, handle: int, data: bytes) -> None:
        self._set_encryption(
            handle, self._encryption(handle) | PeerEncryption.REQUESTED_ENCRYPTION
        )
        self.security.remote_public_key = data[1:65]
        self.link.send_command((OGF_LE_CTL << 10) | LE_READ_LOCAL_P256, b"")

    def _dhkey_check(self, handle: int, data: bytes) -> None:
        remote_check = data[1:17][::-1]
        state = self._encryption(handle) | PeerEncryption.RECEIVED_DH_CHECK
        self._set_encryption(handle, state)
        if not state & PeerEncryption.DH_KEY_CALCULATED:
            self.security.remote_dhkey_check = remote_check
        else:
            self.sm_calculate_ltk_and_confirm(handle, remote_check)

    def sm_calculate_ltk_and_confirm(self, handle, expected_ea) -> None:
        """Derive the LTK, verify the peer's DHKey check and answer with ours.

        Raises KeyError when ``handle`` is not a known connection.
        """
        peer = self.peers[handle]
        state = self.security
        remote_address = peer.address_with_type()
        local_address = b"\x00" + bytes(self.link.local_address())

        mac_key, state.ltk = btct.f5(state.dhkey, state.na, state.nb,
                                     remote_address, local_address)

        r = bytes(16)
        local_io_cap = bytes([state.local_auth_req.octet, 0x00, int(state.local_io_cap)])
        ea = btct.f6(mac_key, state.na, state.nb, r, peer.io_cap, remote_address, local_address)
        eb = btct.f6(mac_key, state.nb, state.na, r, local_io_cap, local_address, remote_address)

        if ea == bytes(expected_ea):
            reply = bytes([CONNECTION_PAIRING_DHKEY_CHECK]) + eb[::-1]
            self.link.send_acl(handle, SECURITY_CID, reply)
            self._set_encryption(handle, peer.encryption | PeerEncryption.SENT_DH_CHECK)
        else:
            self._fail(handle, PAIRING_FAILED_DHKEY_CHECK)