#!/usr/bin/env python3
"""
XCM Toolkit — Generic XCM Decoder

Decodes a raw XCM message (one or more concatenated VersionedXcm fragments,
V1..V5) and pretty-prints each fragment: blake2 hash, full human view, and
every instruction with a friendly label when it is a known one.

Usage:
  python3 decode_xcm.py 0x0304...
  python3 decode_xcm.py --file message.hex
  echo 0x0304... | python3 decode_xcm.py --json
  python3 decode_xcm.py 0x0304... --schema XcmVersionedXcm --fallback-schema StagingXcmVersionedXcm

依賴：scalecodec (pip install scalecodec)
"""

import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import NamedTuple

sys.path.insert(0, os.path.dirname(__file__))
from hex_utils import InputFormatError, bytes_to_hex, is_hex, to_bytes
from xcm_codec import (
    DEFAULT_SCHEMAS, TYPE_REGISTRY_FILE, SchemaResolutionError,
    blake2_256, load_codec, payload_of, resolve_type, tag_of, to_display_string,
)

# Most recent first
VERSIONS = ("V5", "V4", "V3", "V2", "V1")
FALLBACK_VERSION = "V5"

INSTRUCTION_LABELS = {
    # Common across versions
    "ReserveAssetDeposited": "Reserve Asset Deposited",
    "DepositAsset": "Deposit Asset",
    "WithdrawAsset": "Withdraw Asset",
    "BuyExecution": "Buy Execution",
    "Transact": "Transact",
    "DescendOrigin": "Descend Origin",
    "SetAppendix": "Set Appendix",
    # V3+ / V4+ / V5
    "ExpectTransactStatus": "Expect Transact Status",
    "ReportTransactStatus": "Report Transact Status",
    "SetTopic": "Set Topic",
    "ClearTopic": "Clear Topic",
    "ExchangeAsset": "Exchange Asset",
    "DepositReserveAsset": "Deposit Reserve Asset",
    "TransferAsset": "Transfer Asset",
    "TransferReserveAsset": "Transfer Reserve Asset",
}

SEPARATOR = "-------------------"


class UnwrappedXcm(NamedTuple):
    version: str
    instructions: list
    known_version: bool = True
    tag: str | None = None


def split_fragments(codec, message, schemas=DEFAULT_SCHEMAS) -> list:
    """Split a raw message into decoded VersionedXcm fragments.

    A fragment that no schema can decode ends the loop; everything decoded
    before it is still returned. Malformed hex raises InputFormatError.

    The step size is the byte count the codec reports consuming. Codecs that
    do not report it are measured by re-encoding, and the re-encoded bytes
    must then be a prefix of the remaining buffer.
    """
    remaining = to_bytes(message)
    fragments = []

    while len(remaining) != 0:
        n = len(fragments) + 1
        try:
            fragment = resolve_type(codec, remaining, schemas)
        except SchemaResolutionError as e:
            print(f"[decode] ❌ {e} (tried: {', '.join(e.schemas)}; "
                  f"{len(remaining)} bytes left)", file=sys.stderr)
            break

        if fragment.raw is not None:
            consumed = len(fragment.raw)
            if consumed == 0:
                print(f"[decode] ❌ Fragment {n} consumed 0 bytes, stopping", file=sys.stderr)
                break
            try:
                encoded = fragment.to_bytes()
            except Exception as e:
                encoded = None
                print(f"[decode] ⚠️  Fragment {n} does not re-encode ({e})", file=sys.stderr)
            if encoded is not None and encoded != fragment.raw:
                print(f"[decode] ⚠️  Fragment {n} re-encodes to {len(encoded)} bytes "
                      f"but {consumed} were consumed; hashing the consumed bytes", file=sys.stderr)
        else:
            encoded = fragment.to_bytes()
            consumed = len(encoded)
            if consumed == 0 or consumed > len(remaining):
                print(f"[decode] ❌ Fragment {n} re-encodes to {consumed} bytes "
                      f"({len(remaining)} left), stopping", file=sys.stderr)
                break
            if remaining[:consumed] != encoded:
                print(f"[decode] ❌ Fragment {n} does not re-encode to its input bytes, stopping",
                      file=sys.stderr)
                break

        fragments.append(fragment)
        remaining = remaining[consumed:]

    return fragments


def is_sequence(value) -> bool:
    """A list-like value (strings and bytes do not count)."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def normalize_v1(payload) -> list:
    """V1 payloads come either as a bare instruction list or wrapped one level.

    The bundled type_registry.json leaves the V0/V1 payload types undefined,
    so ScaleCodec never produces a V1 value; this only runs for codecs that
    can decode V1.
    """
    if is_sequence(payload):
        return list(payload)
    inner = payload_of(payload)
    if is_sequence(inner):
        return list(inner)
    # A single V1 message
    return [payload]


def unwrap_versioned_xcm(vxcm) -> UnwrappedXcm:
    """Turn a VersionedXcm into (version label, list of instructions).

    An unknown version tag gives ("V5", []) with known_version=False.
    """
    value = getattr(vxcm, "value", vxcm)
    tag = tag_of(value)
    payload = payload_of(value)

    for version in VERSIONS:
        if tag != version:
            continue
        if version == "V1":
            return UnwrappedXcm(version, normalize_v1(payload), True, tag)
        return UnwrappedXcm(version, list(payload or []), True, tag)

    return UnwrappedXcm(FALLBACK_VERSION, [], False, tag)


def classify_instruction(instruction) -> str | None:
    """Short label for known instructions, None otherwise."""
    tag = tag_of(getattr(instruction, "value", instruction))
    if tag is None:
        return None
    return INSTRUCTION_LABELS.get(tag)


def describe_fragments(fragments: list) -> list[dict]:
    """Machine-readable view of decoded fragments, in order."""
    described = []
    for i, fragment in enumerate(fragments, start=1):
        unwrapped = unwrap_versioned_xcm(fragment)
        described.append({
            "index": i,
            "hash": bytes_to_hex(blake2_256(fragment.source_bytes())),
            "schema": fragment.schema,
            "version": unwrapped.version,
            "known_version": unwrapped.known_version,
            "tag": unwrapped.tag,
            "instructions": [
                {"label": classify_instruction(instr), "value": instr}
                for instr in unwrapped.instructions
            ],
            "human": fragment.to_human(),
        })
    return described


def print_report(fragments: list, out=None):
    """Pretty-print every fragment in order."""
    out = out or sys.stdout
    for i, fragment in enumerate(fragments, start=1):
        digest = bytes_to_hex(blake2_256(fragment.source_bytes()))
        print(f"Blake2 hash of fragment {i} is: {digest}\n", file=out)

        print(json.dumps(fragment.to_human(), indent=2, ensure_ascii=False, default=str), "\n", file=out)

        unwrapped = unwrap_versioned_xcm(fragment)
        if not unwrapped.known_version:
            print(f"⚠️  Unknown version tag {unwrapped.tag!r}, no instructions shown\n", file=out)

        for instruction in unwrapped.instructions:
            label = classify_instruction(instruction)
            if label:
                print(f"{label}:", file=out)
            print(to_display_string(instruction), "\n", file=out)

        print(f"{SEPARATOR}\n", file=out)


def decode_xcm_generic(codec, message, schemas=DEFAULT_SCHEMAS, out=None) -> list:
    """Split, then print the report. Returns the fragments."""
    fragments = split_fragments(codec, message, schemas)
    print_report(fragments, out)
    return fragments


def read_message(args) -> bytes | str:
    """Message from argv, --file, or stdin."""
    if args.message:
        return args.message.strip()
    if args.file:
        with open(args.file, "rb") as f:
            raw = f.read()
        try:
            text = raw.decode("ascii").strip()
        except UnicodeDecodeError:
            return raw
        # 0x-prefixed text is always hex, so malformed hex fails loudly
        return text if text.startswith("0x") or is_hex(text) else raw
    if not sys.stdin.isatty():
        return sys.stdin.read().strip()
    return ""


def main(argv=None):
    parser = argparse.ArgumentParser(description="Decode a raw VersionedXcm message (V1..V5)")
    parser.add_argument("message", nargs="?", help="Hex-encoded message (or use --file / stdin)")
    parser.add_argument("--file", "-f", help="File holding the message (0x-hex text or raw bytes)")
    parser.add_argument("--schema", default=DEFAULT_SCHEMAS[0], help="Primary type name")
    parser.add_argument("--fallback-schema", dest="fallback",
                        default=DEFAULT_SCHEMAS[1] if len(DEFAULT_SCHEMAS) > 1 else None,
                        help="Type name tried when the primary fails")
    parser.add_argument("--registry", default=TYPE_REGISTRY_FILE, help="scalecodec type registry JSON")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args(argv)

    message = read_message(args)
    if not message:
        print("Usage: decode_xcm.py <hex_message> | --file <path>", file=sys.stderr)
        sys.exit(1)

    schemas = [s for s in (args.schema, args.fallback) if s]

    try:
        codec = load_codec(args.registry)
    except ImportError:
        print("❌ scalecodec not installed: pip install scalecodec", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"❌ Cannot load type registry {args.registry}: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.json:
            fragments = split_fragments(codec, message, schemas)
            print(json.dumps(describe_fragments(fragments), indent=2, ensure_ascii=False, default=str))
        else:
            fragments = decode_xcm_generic(codec, message, schemas)
    except InputFormatError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    print(f"[decode] {len(fragments)} fragment(s) decoded", file=sys.stderr)


if __name__ == "__main__":
    main()
