#!/usr/bin/env python3
"""
XCM Toolkit — Hex Utilities

Strict hex string ↔ bytes conversion for raw XCM messages.
Accepted: optional 0x prefix, hex digits only, even digit count.
"""

import re

HEX_RE = re.compile(r"(0x)?[0-9a-fA-F]*")


class InputFormatError(ValueError):
    """Raised when a message is not valid hex."""


def is_hex(value: str) -> bool:
    """True for '0x'-prefixed or bare hex with an even digit count.

    >>> is_hex("0x0304")
    True
    >>> is_hex("0x030")
    False
    """
    if not isinstance(value, str) or not HEX_RE.fullmatch(value):
        return False
    digits = value[2:] if value.startswith("0x") else value
    return len(digits) % 2 == 0


def hex_to_bytes(value: str) -> bytes:
    """Convert a hex string to bytes, raising InputFormatError if malformed."""
    if not is_hex(value):
        raise InputFormatError("Expected hex string for message input")
    digits = value[2:] if value.startswith("0x") else value
    return bytes.fromhex(digits)


def to_bytes(message: bytes | bytearray | memoryview | str) -> bytes:
    """Accept raw bytes or a hex string."""
    if isinstance(message, str):
        return hex_to_bytes(message)
    if isinstance(message, (bytes, bytearray, memoryview)):
        return bytes(message)
    raise InputFormatError(f"Unsupported message type: {type(message).__name__}")


def bytes_to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()
