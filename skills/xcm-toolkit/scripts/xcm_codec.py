#!/usr/bin/env python3
"""
XCM Toolkit — Codec

Decode capability for SCALE-encoded XCM, plus the type resolver that tries
several schema names (stable "XcmVersionedXcm" vs staging
"StagingXcmVersionedXcm") until one decodes.

A codec is any object with:
  decode(schema, data: bytes) -> value   (must not require all bytes consumed)
  encode(schema, value) -> bytes
and optionally:
  decode_prefix(schema, data: bytes) -> (value, consumed byte count)

ScaleCodec is the real one, backed by scalecodec and type_registry.json.

依賴：scalecodec (pip install scalecodec)
"""

import hashlib
import json
import os
from collections.abc import Mapping

TYPE_REGISTRY_FILE = os.environ.get(
    "XCM_TYPE_REGISTRY",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "type_registry.json"),
)

BUILTIN_SCHEMAS = ("XcmVersionedXcm", "StagingXcmVersionedXcm")


def parse_schemas(text: str | None) -> tuple[str, ...]:
    """Comma-separated schema names; empty input means the built-in pair."""
    schemas = tuple(s.strip() for s in (text or "").split(",") if s.strip())
    return schemas or BUILTIN_SCHEMAS


DEFAULT_SCHEMAS = parse_schemas(os.environ.get("XCM_SCHEMAS"))


class SchemaResolutionError(ValueError):
    """Every schema failed to decode the bytes.

    `errors` keeps (schema, exception) for each attempt, in order.
    `cause` is the most specific of them: the latest one with a message.
    """

    def __init__(self, errors: list):
        self.errors = list(errors)
        self.cause = None
        for _, err in reversed(self.errors):
            if str(err):
                self.cause = err
                break
        if self.cause is None and self.errors:
            self.cause = self.errors[0][1]
        message = str(self.cause) if self.cause is not None and str(self.cause) else ""
        super().__init__(message or "Failed to decode XcmVersionedXcm")

    @property
    def schemas(self) -> list[str]:
        return [schema for schema, _ in self.errors]


class ScaleCodec:
    """scalecodec-backed decode capability."""

    def __init__(self, registry_file: str = TYPE_REGISTRY_FILE):
        from scalecodec.base import RuntimeConfigurationObject
        from scalecodec.type_registry import load_type_registry_file, load_type_registry_preset

        self.registry_file = registry_file
        self.runtime_config = RuntimeConfigurationObject()
        self.runtime_config.update_type_registry(load_type_registry_preset("core"))
        self.runtime_config.update_type_registry(load_type_registry_file(registry_file))

    def decode(self, schema: str, data: bytes):
        return self.decode_prefix(schema, data)[0]

    def decode_prefix(self, schema: str, data: bytes) -> tuple:
        """Decode the head of `data`; returns (value, bytes consumed)."""
        from scalecodec.base import ScaleBytes

        obj = self.runtime_config.create_scale_object(schema, data=ScaleBytes(bytearray(data)))
        # Trailing bytes belong to the next fragment
        value = obj.decode(check_remaining=False)
        return value, obj.data.offset

    def encode(self, schema: str, value) -> bytes:
        obj = self.runtime_config.create_scale_object(schema)
        return bytes(obj.encode(value).data)


def load_codec(registry_file: str | None = None) -> ScaleCodec:
    return ScaleCodec(registry_file or TYPE_REGISTRY_FILE)


# ── Enum-shaped values ────────────────────────────────
# scalecodec decodes an enum variant either to its bare name ("ClearOrigin")
# or to a one-key dict ({"DepositAsset": {...}}).

def tag_of(value) -> str | None:
    """Variant name of an enum-shaped value, None if it has none."""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping) and len(value) == 1:
        return next(iter(value))
    return None


def payload_of(value):
    """Variant payload of an enum-shaped value (None for unit variants)."""
    if isinstance(value, Mapping) and len(value) == 1:
        return next(iter(value.values()))
    return None


def to_display_string(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def blake2_256(data: bytes) -> bytes:
    return hashlib.blake2b(bytes(data), digest_size=32).digest()


class XcmValue:
    """One decoded message, tied to the codec and schema that produced it."""

    def __init__(self, codec, schema: str, value, raw: bytes | None = None):
        self.codec = codec
        self.schema = schema
        self.value = value
        # Input bytes the decoder consumed, when it reports them
        self.raw = bytes(raw) if raw is not None else None
        self._encoded: bytes | None = None

    def to_bytes(self) -> bytes:
        """Re-encode under the same schema."""
        if self._encoded is None:
            self._encoded = bytes(self.codec.encode(self.schema, self.value))
        return self._encoded

    def source_bytes(self) -> bytes:
        """The bytes this message was decoded from (re-encoded if unknown)."""
        return self.raw if self.raw is not None else self.to_bytes()

    def to_human(self):
        return self.value

    @property
    def tag(self) -> str | None:
        return tag_of(self.value)

    @property
    def payload(self):
        return payload_of(self.value)

    def is_(self, tag: str) -> bool:
        return self.tag == tag

    def __str__(self) -> str:
        return to_display_string(self.value)

    def __repr__(self) -> str:
        return f"XcmValue(schema={self.schema!r}, tag={self.tag!r})"


def resolve_type(codec, data: bytes, schemas=DEFAULT_SCHEMAS) -> XcmValue:
    """Decode `data` under the first schema that accepts it.

    Raises SchemaResolutionError when every schema fails.
    """
    schemas = list(schemas)
    if not schemas:
        raise ValueError("No schema names to try")

    decode_prefix = getattr(codec, "decode_prefix", None)
    errors = []
    for schema in schemas:
        try:
            if decode_prefix is not None:
                value, consumed = decode_prefix(schema, data)
            else:
                value, consumed = codec.decode(schema, data), None
        except Exception as e:
            errors.append((schema, e))
            continue
        raw = bytes(data[:consumed]) if consumed is not None else None
        return XcmValue(codec, schema, value, raw)

    err = SchemaResolutionError(errors)
    raise err from err.cause
