"""
Tamper-evidence suite.

Every attestation must verify under its own key, and any single-byte change
to the signed fields of the encoded attestation must break verification.
"""

import unittest

from earnout_tee.aggregator import aggregate
from earnout_tee.attestation import SoftwareAttester
from earnout_tee.encoding import decode, encode
from earnout_tee.keys import SigningIdentity
from earnout_tee.normalizer import normalize
from earnout_tee.verifier import verify_attestation, verify_attestation_bytes

DOCUMENTS = [
    {"journalEntryId": "JE-1", "credits": [{"account": "Sales Revenue", "amount": 50000}]},
    {"employeeDetails": {}, "grossPay": 20000},
]

# (field, start, end) offsets inside the 144-byte layout
SIGNED_RANGES = [
    ("computation_hash", 0, 32),
    ("kpi_value", 32, 40),
    ("timestamp", 40, 48),
    ("signature", 80, 144),
]


class TestSingleByteTampering(unittest.TestCase):

    def setUp(self):
        self.identity = SigningIdentity.from_seed(b"\x07" * 32)
        attester = SoftwareAttester(self.identity, clock=lambda: 1_760_000_000_000)
        self.attestation = attester.attest(aggregate(normalize(DOCUMENTS)), DOCUMENTS)
        self.encoded = encode(self.attestation)

    def test_untouched_bytes_verify(self):
        result = verify_attestation_bytes(self.encoded, trusted_public_key=self.identity.public_key,
                                          documents=DOCUMENTS)
        self.assertTrue(result.valid, result.errors)

    def test_every_signed_byte_flip_fails(self):
        for name, start, end in SIGNED_RANGES:
            for offset in range(start, end):
                with self.subTest(field=name, offset=offset):
                    tampered = bytearray(self.encoded)
                    tampered[offset] ^= 0x01
                    try:
                        att = decode(bytes(tampered))
                    except Exception:
                        # A flip that makes the bytes undecodable is also a rejection.
                        continue
                    self.assertFalse(verify_attestation(att).valid)

    def test_swapped_public_key_fails(self):
        other = SigningIdentity.from_seed(b"\x08" * 32)
        tampered = bytearray(self.encoded)
        tampered[48:80] = other.public_key
        result = verify_attestation_bytes(bytes(tampered))
        self.assertFalse(result.valid)
        self.assertIn("invalid signature", result.errors)

    def test_untrusted_key_reported(self):
        other = SigningIdentity.from_seed(b"\x09" * 32)
        result = verify_attestation(self.attestation, trusted_public_key=other.public_key)
        self.assertFalse(result.valid)
        self.assertEqual(result.errors, ["untrusted tee_public_key"])

    def test_expected_kpi_mismatch(self):
        result = verify_attestation(self.attestation, expected_kpi=1)
        self.assertFalse(result.valid)

    def test_freshness_window(self):
        fresh = verify_attestation(self.attestation, max_age_ms=1000, now_ms=1_760_000_000_500)
        stale = verify_attestation(self.attestation, max_age_ms=1000, now_ms=1_760_000_002_000)
        self.assertTrue(fresh.valid)
        self.assertFalse(stale.valid)


if __name__ == "__main__":
    unittest.main()
