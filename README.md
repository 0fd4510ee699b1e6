# blesmp

Building blocks for the host side of Bluetooth Low Energy LE Secure
Connections pairing.

- `blesmp.bitdescriptions`: `AuthReq`, a dataclass around the SMP AuthReq
  octet with read/write boolean properties `bonding`, `mitm`, `sc`,
  `keypress` and `ct2`, and the `IOCap` enumeration (`DISPLAY_ONLY`,
  `DISPLAY_YES_NO`, `KEYBOARD_ONLY`, `NO_INPUT_NO_OUTPUT`,
  `KEYBOARD_DISPLAY`).
- `blesmp.keydistribution`: `KeyDistribution`, a dataclass around the SMP key
  distribution octet with read/write boolean properties `enc_key`, `id_key`,
  `sign_key` and `link_key`. Both dataclasses raise `ValueError` for an octet
  outside 0..255.
- `blesmp.btct`: the LE Secure Connections crypto toolbox: `aes_128`,
  `generate_subkey`, `aes_cmac`, `f5`, `f6`, `g2`, `ah` and `format_bytes`.
  Inputs of the wrong length raise `ValueError`.
- `blesmp.l2cap`: `L2CAPSignaling`, which answers connection parameter update
  requests on the signalling channel and handles Security Manager packets
  (pairing request, pairing random, pairing failed, identity information,
  identity address, public key and DHKey check), plus the `PeerEncryption`
  flags that track pairing progress per connection.
- `blesmp.transport`: `UartTransport`, an HCI byte transport over a serial
  port (pyserial).

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

### Crypto toolbox

```python
from blesmp.btct import aes_cmac, f5, g2, ah, format_bytes

mac = aes_cmac(bytes(16), b"")          # 16-byte CMAC
print(format_bytes(mac[:2]))             # e.g. "0x76, 0x3C"

# Numeric comparison value (32-bit integer); users compare value % 1000000.
value = g2(bytes(32), bytes(32), bytes(16), bytes(16))

# MacKey and LTK from a DH key; addresses are 7 bytes: type octet + 6-byte address.
mac_key, ltk = f5(bytes(32), bytes(16), bytes(16),
                  bytes(7), bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66]))

# Random address hash: 3 bytes out of a 16-byte IRK and a 3-byte prand.
hash_ = ah(bytes(16), b"\x00\x00\x01")
```

### Flag octets

```python
from blesmp.bitdescriptions import AuthReq
from blesmp.keydistribution import KeyDistribution

req = AuthReq(0b00101101)
(req.bonding, req.mitm, req.sc, req.keypress, req.ct2)  # (True, True, True, False, True)
req.keypress = True
req.octet                                                # 0b00111101

kd = KeyDistribution()
kd.id_key = True
kd.octet                                                 # 0x02
```

### L2CAP signalling and Security Manager

`L2CAPSignaling` does not talk to a controller itself; it is given a `link`
object providing `send_acl(handle, cid, payload)`,
`le_conn_update(handle, min_interval, max_interval, latency, supervision_timeout)`,
`send_command(opcode, params)`, `local_address()` (6 bytes, most significant
first) and `save_new_address(address_type, address, peer_irk, local_irk)`.

```python
from blesmp.l2cap import L2CAPSignaling, SIGNALING_CID

class Link:
    def __init__(self):
        self.sent = []
    def send_acl(self, handle, cid, payload):
        self.sent.append((handle, cid, payload))
    def le_conn_update(self, handle, min_interval, max_interval, latency, timeout):
        pass
    def send_command(self, opcode, params):
        pass
    def local_address(self):
        return bytes([0xC0, 0x00, 0x00, 0x00, 0x00, 0x01])
    def save_new_address(self, address_type, address, peer_irk, local_irk):
        pass

link = Link()
signaling = L2CAPSignaling(link)
signaling.set_connection_interval(6, 12)
# As peripheral (role 1) with an interval outside 6..12, a parameter update
# request is sent on the signalling channel.
signaling.add_connection(0x40, 1, 0, bytes(6), 24, 0, 400, 0)
assert link.sent[0][1] == SIGNALING_CID
```

`pairing_enabled` is 0 (pairing requests are rejected), 1 (accepted) or 2
(one pairing accepted, then off); `pairing_allowed()` reports it. Pairing
state lives in `signaling.security`: nonces, public keys, `dhkey`, `ltk`,
IRKs, the local `local_io_cap` and `local_auth_req`, and the optional
callbacks `display_code(value)`, `confirm_pairing()` and
`store_ltk(address, ltk)`.

### UART transport

```python
from blesmp.transport import UartTransport

with UartTransport("/dev/ttyUSB0", 912600) as transport:
    transport.write(b"\x01\x03\x0c\x00")  # HCI Reset
    if transport.wait(1000):               # milliseconds
        while transport.available():
            print(hex(transport.read()))
```

`read()` and `peek()` return -1 when no byte is available. Instead of a port
name, any object with the pyserial interface may be passed.

## What this package does not do

There is no HCI command/event layer: nothing here builds HCI packets, parses
controller events, computes the DH key or fills in the local public key; those
values must be placed in `L2CAPSignaling.security` by the caller, and the
`link` object must carry packets to the controller. There is no ATT/GATT
server, no advertising or scanning, and no command-line program.