"""
Signing identity management.

A SigningIdentity is the process-wide Ed25519 key pair the attester signs
with. It is built once at startup, never mutated, and shared read-only by
every request.
"""

import json
import logging
import os
from typing import Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .util import b64d, b64e, hex_to_bytes

logger = logging.getLogger(__name__)

PUBLIC_KEY_LENGTH = 32
SEED_LENGTH = 32


class SigningIdentity:
    """Read-only Ed25519 key pair owned by the process."""

    __slots__ = ("_sk", "_public_key", "_kid")

    def __init__(self, signing_key: SigningKey, kid: str = "tee-ed25519-01"):
        self._sk = signing_key
        self._public_key = bytes(signing_key.verify_key)
        self._kid = kid

    def __setattr__(self, name, value):
        if hasattr(self, "_kid"):
            raise AttributeError("SigningIdentity is read-only")
        super().__setattr__(name, value)

    @classmethod
    def generate(cls, kid: str = "tee-ed25519-01") -> "SigningIdentity":
        return cls(SigningKey.generate(), kid=kid)

    @classmethod
    def from_seed(cls, seed: bytes, kid: str = "tee-ed25519-01") -> "SigningIdentity":
        if len(seed) != SEED_LENGTH:
            raise ValueError(f"Ed25519 seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        return cls(SigningKey(seed), kid=kid)

    @classmethod
    def from_seed_hex(cls, seed_hex: str, kid: str = "tee-ed25519-01") -> "SigningIdentity":
        return cls.from_seed(hex_to_bytes(seed_hex, SEED_LENGTH, "signing key"), kid=kid)

    @classmethod
    def from_file(cls, path: str) -> "SigningIdentity":
        """Load a key file of the form ``{"kid": ..., "private_key_b64": ...}``."""
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return cls.from_seed(b64d(raw["private_key_b64"]), kid=raw.get("kid", "tee-ed25519-01"))

    @property
    def kid(self) -> str:
        return self._kid

    @property
    def public_key(self) -> bytes:
        return self._public_key

    def sign(self, message: bytes) -> bytes:
        """Return the detached 64-byte Ed25519 signature over ``message``."""
        return self._sk.sign(message).signature

    def save(self, path: str) -> None:
        """Write the key file. The private key is stored unencrypted."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({
                "kid": self._kid,
                "private_key_b64": b64e(bytes(self._sk)),
                "public_key_hex": self._public_key.hex(),
            }, f, indent=2)

    def __repr__(self) -> str:
        return f"SigningIdentity(kid={self._kid!r}, public_key={self._public_key.hex()})"


def verify_ed25519(signature: bytes, message: bytes, public_key: bytes) -> bool:
    """
    Verify a detached Ed25519 signature.

    Returns:
        True if signature is valid, False otherwise (including malformed keys
        or signatures of the wrong length)
    """
    if len(public_key) != PUBLIC_KEY_LENGTH or len(signature) != 64:
        return False
    try:
        VerifyKey(public_key).verify(message, signature)
        return True
    except BadSignatureError:
        return False


def load_signing_identity(
    key_hex: Optional[str] = None,
    key_path: Optional[str] = None,
    allow_ephemeral: bool = True,
) -> SigningIdentity:
    """
    Build the process signing identity from configuration.

    Precedence: explicit hex seed, then key file, then (if allowed) a freshly
    generated key that lives only as long as the process.

    Raises:
        RuntimeError: if no key is configured and ephemeral keys are not allowed
    """
    if key_hex:
        identity = SigningIdentity.from_seed_hex(key_hex)
        logger.info("loaded signing identity from hex seed", extra={"extra_fields": {"kid": identity.kid}})
        return identity

    if key_path and os.path.exists(key_path):
        identity = SigningIdentity.from_file(key_path)
        logger.info("loaded signing identity from %s", key_path, extra={"extra_fields": {"kid": identity.kid}})
        return identity

    if not allow_ephemeral:
        raise RuntimeError(
            "No TEE signing key configured; set TEE_SIGNING_KEY_HEX or TEE_SIGNING_KEY_PATH"
        )

    identity = SigningIdentity.generate(kid="tee-ephemeral")
    logger.warning(
        "no signing key configured, generated ephemeral identity %s",
        identity.public_key.hex(),
    )
    return identity
