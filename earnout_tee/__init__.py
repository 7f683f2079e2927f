"""
Earn-out KPI computation and attestation.

Turns a set of decrypted financial documents into a single KPI value and a
signed attestation an on-chain escrow contract can verify before releasing
funds:

    raw documents -> normalize -> aggregate -> attest -> encode (144 bytes)

The computation is deterministic: two honest runs over the same request
produce the same KPI and the same computation hash. Only the timestamp
(and therefore the signature) differs.

Usage:
    from earnout_tee import ComputeService, SigningIdentity, SoftwareAttester

    identity = SigningIdentity.generate()
    service = ComputeService(SoftwareAttester(identity))

    attested = service.compute_with_attestation([
        {"journalEntryId": "JE-1", "credits": [{"account": "Sales Revenue", "amount": 50000}]},
        {"employeeDetails": {}, "grossPay": 20000},
    ])
    attested.kpi_result.kpi            # 3000000 (minor units)
    len(attested.attestation_bytes)    # 144
"""

__version__ = "0.1.0"

from .aggregator import KPIResult, aggregate
from .attestation import Attestation, Attester, SoftwareAttester, computation_hash, signing_message
from .canonicalization import canonicalize, canonicalize_str
from .documents import DocumentKind, JournalEntry, PayrollRecord
from .encoding import ATTESTATION_LENGTH, decode, encode
from .errors import (
    ClassificationError,
    EarnoutTEEError,
    EncodingError,
    InternalError,
    SigningError,
    ValidationError,
)
from .keys import SigningIdentity, verify_ed25519
from .normalizer import NormalizedEntry, normalize
from .service import AttestedKPI, ComputeService
from .verifier import VerificationResult, verify_attestation, verify_attestation_bytes

__all__ = [
    "Attestation",
    "AttestedKPI",
    "Attester",
    "ATTESTATION_LENGTH",
    "ClassificationError",
    "ComputeService",
    "DocumentKind",
    "EarnoutTEEError",
    "EncodingError",
    "InternalError",
    "JournalEntry",
    "KPIResult",
    "NormalizedEntry",
    "PayrollRecord",
    "SigningError",
    "SigningIdentity",
    "SoftwareAttester",
    "ValidationError",
    "VerificationResult",
    "aggregate",
    "canonicalize",
    "canonicalize_str",
    "computation_hash",
    "decode",
    "encode",
    "normalize",
    "signing_message",
    "verify_attestation",
    "verify_attestation_bytes",
    "verify_ed25519",
]
