#!/usr/bin/env python3
"""
XCM Toolkit — Multilocation Derivative Account

Calculates the account a remote origin gets on this chain.

兩種模式：
  1. ParaId → Address (no hashing): sovereign account of a child/sibling chain
       "para"/"sibl" + para_id (u32 LE) + zero padding → 32 bytes
  2. Descend origin: blake2_256(family + location encoding)

Usage:
  python3 derivative_account.py --parents 1 --para-id 1000
  python3 derivative_account.py --parents 1 --para-id 1000 --address 0x...
  python3 derivative_account.py --parents 2 --consensus Kusama --para-id 2023 --address 0x...
  python3 derivative_account.py --parents 2 --consensus Polkadot --para-id 2004

依賴：scalecodec (pip install scalecodec)
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(__file__))
from hex_utils import bytes_to_hex, hex_to_bytes
from xcm_codec import blake2_256, load_codec

SS58_FORMAT = 42
ETH_ADDRESS_LENGTH = 42  # "0x" + 40 hex

CONSENSUS_BYTES = {"Polkadot": 2, "Kusama": 3}

# Junction layout used for the GlobalConsensus preimage
JUNCTION_TYPE = "XcmV1Junction"
# Interior/junctions header in the GlobalConsensus preimage
JUNCTIONS_HEADER = b"\x08"


def parse_address(address: str) -> tuple[str, bytes]:
    """Return (account type, raw key) for an H160 or SS58 address."""
    if len(address) == ETH_ADDRESS_LENGTH:
        return "AccountKey20", hex_to_bytes(address)

    from scalecodec.utils.ss58 import ss58_decode
    key_hex = ss58_decode(address)
    return "AccountId32", bytes.fromhex(key_hex[2:] if key_hex.startswith("0x") else key_hex)


def family_for(parents: int, para_id: int | None, has_address: bool) -> str:
    """Name of the origin family hashed into the account."""
    if parents == 0 and para_id:
        return "ChildChain"
    if parents == 1 and para_id is None:
        return "ParentChain"
    if parents == 2:
        return "glblcnsnss" if has_address else "glblcnsnss/prchn_"
    return "SiblingChain"


def sovereign_account(para_id: int, parents: int) -> bytes:
    """ParaId → 32-byte account without hashing ("para" for children, "sibl" for siblings)."""
    if parents not in (0, 1):
        raise ValueError("Sovereign accounts exist for parents 0 or 1 only")
    prefix = b"para" if parents == 0 else b"sibl"
    encoded = prefix + para_id.to_bytes(4, "little")
    return encoded + bytes(32 - len(encoded))


def descend_origin_preimage(
    parents: int,
    para_id: int | None = None,
    address: str | None = None,
    consensus: str | None = None,
    codec=None,
) -> bytes:
    """Bytes hashed into the descend-origin account."""
    if parents == 2 and not consensus:
        raise ValueError("For 2 Parents, Consensus type must be specified as Polkadot or Kusama")
    if consensus is not None and consensus not in CONSENSUS_BYTES:
        raise ValueError(f"Unknown consensus: {consensus} (known: {', '.join(CONSENSUS_BYTES)})")

    consensus_bytes = bytes([CONSENSUS_BYTES[consensus]]) if parents == 2 else b""
    family = family_for(parents, para_id, bool(address)).encode()

    if not address:
        # (b"glblcnsnss/prchn_", NetworkId, para_id).using_encoded(blake2_256)
        para_bytes = para_id.to_bytes(4, "little") if para_id is not None else b""
        return family + consensus_bytes + para_bytes

    codec = codec or load_codec()
    acc_type, key = parse_address(address)

    if parents == 2:
        if acc_type != "AccountKey20":
            raise ValueError("GlobalConsensus (parents=2) branch currently supports AccountKey20 (20-byte) addresses only")
        if para_id is None:
            raise ValueError("ParaId must be provided for parents=2 GlobalConsensus case")
        junctions = [
            {"Parachain": para_id},
            {"AccountKey20": {"network": consensus, "key": bytes_to_hex(key)}},
        ]
        encoded = b"".join(codec.encode(JUNCTION_TYPE, j) for j in junctions)
        return family + consensus_bytes + JUNCTIONS_HEADER + encoded

    para_bytes = codec.encode("Compact<u32>", para_id) if para_id is not None else b""
    length = codec.encode("Compact<u32>", len(acc_type) + len(key))
    return family + para_bytes + length + acc_type.encode() + key


def derivative_account(parents: int, para_id: int | None = None, address: str | None = None,
                       consensus: str | None = None, codec=None) -> dict:
    """Compute the derivative account. Returns a dict ready for printing."""
    if parents not in (0, 1, 2):
        raise ValueError(f"parents must be 0, 1 or 2 (got {parents})")
    if para_id is not None and not 0 <= para_id <= 0xFFFFFFFF:
        raise ValueError(f"para-id out of u32 range: {para_id}")

    if not address and not consensus and para_id is not None and parents in (0, 1):
        account = sovereign_account(para_id, parents)
        return {
            "mode": "sovereign",
            "type": "para" if parents == 0 else "sibl",
            "parents": parents,
            "para_id": para_id,
            "address32": bytes_to_hex(account),
            "address20": bytes_to_hex(account[:20]),
            "account": account,
        }

    preimage = descend_origin_preimage(parents, para_id, address, consensus, codec)
    digest = blake2_256(preimage)
    result = {
        "mode": "descend-origin",
        "family": family_for(parents, para_id, bool(address)),
        "parents": parents,
        "para_id": para_id,
        "consensus": consensus,
        "preimage": bytes_to_hex(preimage),
        "address32": bytes_to_hex(digest[:32]),
        "address20": bytes_to_hex(digest[:20]),
    }
    if address:
        result["account_type"] = parse_address(address)[0]
        result["address"] = address
    return result


def main():
    parser = argparse.ArgumentParser(description="Calculate a multilocation derivative account")
    parser.add_argument("--address", "-a", help="H160 (0x...) or SS58 address of the remote origin")
    parser.add_argument("--parents", type=int, required=True, choices=[0, 1, 2])
    parser.add_argument("--para-id", "-p", dest="para_id", type=int)
    parser.add_argument("--consensus", "-c", choices=sorted(CONSENSUS_BYTES))
    args = parser.parse_args()

    try:
        result = derivative_account(args.parents, args.para_id, args.address, args.consensus)
    except ImportError:
        print("❌ scalecodec not installed: pip install scalecodec", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    if result["mode"] == "sovereign":
        from scalecodec.utils.ss58 import ss58_encode
        print("ParaId → Address (no hashing)")
        print(f"Type:        {result['type']}")
        print(f"Parents:     {result['parents']}")
        print(f"ParaId:      {result['para_id']}")
        print(f"32-byte raw: {result['address32']}")
        print(f"20-byte raw: {result['address20']}")
        print(f"SS58:        {ss58_encode(result['account'], ss58_format=SS58_FORMAT)}")
        return

    if not args.address:
        print(f"toHash: {result['preimage']}")

    print(f"Remote Origin calculated as {result['family']}")
    if result["para_id"] is not None:
        print(f"ParaID {result['para_id']}")
    print(f"Parents {result['parents']}")
    if result["consensus"]:
        print(f"Consensus {result['consensus']}")
    if args.address:
        print(f"{result['account_type']}: {args.address}")

    print(f"32 byte address is {result['address32']}")
    print(f"20 byte address is {result['address20']}")


if __name__ == "__main__":
    main()
