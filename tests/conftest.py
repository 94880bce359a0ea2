import json
from typing import Any, Callable

import pytest

# tests/conftest.py

STABLE = "XcmVersionedXcm"
STAGING = "StagingXcmVersionedXcm"


class FakeCodec:
    """Stand-in decode capability: 2-byte big-endian length + compact JSON.

    Only the schema names in `accepts` decode; every call is recorded.
    """

    def __init__(self, accepts=(STABLE, STAGING)):
        self.accepts = set(accepts)
        self.calls = []

    def decode(self, schema: str, data: bytes):
        self.calls.append((schema, len(data)))
        if schema not in self.accepts:
            raise NotImplementedError(f'Decoder class for "{schema}" not found')
        if len(data) < 2:
            raise ValueError("Not enough bytes for length prefix")
        size = int.from_bytes(data[:2], "big")
        body = data[2:2 + size]
        if len(body) < size:
            raise ValueError(f"Expected {size} bytes, got {len(body)}")
        return json.loads(body.decode("utf-8"))

    def encode(self, schema: str, value) -> bytes:
        body = json.dumps(value, separators=(",", ":")).encode("utf-8")
        return len(body).to_bytes(2, "big") + body


@pytest.fixture
def codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def staging_codec() -> FakeCodec:
    """Codec that only knows the staging type name."""
    return FakeCodec(accepts=(STAGING,))


@pytest.fixture
def make_fragment() -> Callable[[Any], bytes]:
    """
    Return a helper that encodes a value the way FakeCodec expects.
    Usage: raw = make_fragment({"V3": ["ClearOrigin"]})
    """
    def _make(value) -> bytes:
        return FakeCodec().encode(STABLE, value)
    return _make
