#!/usr/bin/env python3
"""
Earn-out TEE Command Line Interface

Usage:
    earnout-tee keygen --output <file> [--kid <kid>]
    earnout-tee compute --documents <file> [--simple] [--initial-kpi <n>] [--key <file>]
    earnout-tee verify (--bytes-hex <hex> | --bytes-file <file>) [--documents <file>] [--public-key <hex>]
    earnout-tee hash --documents <file>
"""

import argparse
import json
import sys
from typing import List, Optional

from .attestation import SoftwareAttester
from .errors import EarnoutTEEError
from .keys import SigningIdentity
from .service import OPERATION_SIMPLE, OPERATION_WITH_ATTESTATION, ComputeService
from .util import hex_to_bytes


def load_json(path: str):
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def _load_identity(path: Optional[str]) -> SigningIdentity:
    if path:
        return SigningIdentity.from_file(path)
    print("No --key given, signing with an ephemeral key", file=sys.stderr)
    return SigningIdentity.generate(kid="tee-ephemeral")


def cmd_keygen(args) -> int:
    """Generate a signing key file."""
    identity = SigningIdentity.generate(kid=args.kid)
    identity.save(args.output)
    print(f"Key saved to: {args.output}", file=sys.stderr)
    print(identity.public_key.hex())
    return 0


def cmd_compute(args) -> int:
    """Run the KPI pipeline over a document file."""
    documents = load_json(args.documents)
    if args.simple:
        service = ComputeService()
        data = service.compute(documents, OPERATION_SIMPLE, args.initial_kpi)
    else:
        service = ComputeService(SoftwareAttester(_load_identity(args.key)))
        data = service.compute(documents, OPERATION_WITH_ATTESTATION)
    print(json.dumps({"success": True, "data": data}, indent=2))
    return 0


def cmd_verify(args) -> int:
    """Decode and verify attestation bytes."""
    from .verifier import verify_attestation_bytes

    if args.bytes_hex:
        data = bytes.fromhex(args.bytes_hex)
    else:
        raw = load_json(args.bytes_file)
        if isinstance(raw, dict):
            raw = raw.get("data", raw).get("attestation_bytes", raw)
        data = raw

    trusted = hex_to_bytes(args.public_key, 32, "public key") if args.public_key else None
    documents = load_json(args.documents) if args.documents else None

    result = verify_attestation_bytes(data, trusted_public_key=trusted, documents=documents)
    if result.valid:
        print("VALID")
        print(json.dumps(result.attestation.to_dict(), indent=2))
        return 0
    print("INVALID: " + "; ".join(result.errors))
    return 1


def cmd_hash(args) -> int:
    """Print the computation hash an attestation over these documents would carry."""
    from .attestation import computation_hash

    documents = load_json(args.documents)
    result = ComputeService().compute_simple(documents)
    print(f"computation_hash: {computation_hash(documents, result.kpi).hex()}")
    print(f"kpi_minor_units: {result.kpi}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="earnout-tee",
        description="Compute and attest earn-out KPIs from financial documents",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("keygen", help="Generate an Ed25519 signing key file")
    p.add_argument("--output", required=True)
    p.add_argument("--kid", default="tee-ed25519-01")
    p.set_defaults(func=cmd_keygen)

    p = sub.add_parser("compute", help="Compute a KPI, attested unless --simple")
    p.add_argument("--documents", required=True, help="JSON array of documents")
    p.add_argument("--simple", action="store_true")
    p.add_argument("--initial-kpi", default=0)
    p.add_argument("--key", help="Key file written by keygen")
    p.set_defaults(func=cmd_compute)

    p = sub.add_parser("verify", help="Verify attestation bytes")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--bytes-hex")
    src.add_argument("--bytes-file", help="JSON byte array or a compute response")
    p.add_argument("--documents")
    p.add_argument("--public-key")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("hash", help="Print the computation hash for a document file")
    p.add_argument("--documents", required=True)
    p.set_defaults(func=cmd_hash)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except EarnoutTEEError as e:
        print(f"✗ {e.code}: {e.message}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
