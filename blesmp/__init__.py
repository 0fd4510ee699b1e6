"""Bluetooth LE Secure Connections tools: flag octets, crypto toolbox, L2CAP signalling and Security Manager handling, and an HCI UART transport."""

__version__ = "0.1.0"
__all__ = ["bitdescriptions", "keydistribution", "btct", "l2cap", "transport"]