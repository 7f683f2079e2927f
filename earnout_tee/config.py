"""
Configuration module for the earn-out KPI attestation service.

Centralizes all configuration with environment variable support and
validation.
"""

import os
from pathlib import Path
from typing import Dict

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("EARNOUT_ENV", "dev")  # dev|stage|prod


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in ("1", "true", "yes")


# Signing configuration
SIGNING_KEY_PATH = os.getenv("TEE_SIGNING_KEY_PATH", "secrets/tee_signing_key.json")
SIGNING_KEY_HEX = os.getenv("TEE_SIGNING_KEY_HEX", "")
ALLOW_EPHEMERAL_KEY = _env_bool("TEE_ALLOW_EPHEMERAL_KEY", ENV != "prod")

# Verification
ATTESTATION_MAX_AGE_MS = int(os.getenv("ATTESTATION_MAX_AGE_MS", str(60 * 60 * 1000)))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = _env_bool("LOG_JSON", True)
LOG_FILE = os.getenv("LOG_FILE") or None


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Check that the configured signing key source is usable.
    Returns dict of check -> ok.
    """
    checks = {
        "signing_key": bool(SIGNING_KEY_HEX) or Path(SIGNING_KEY_PATH).exists() or ALLOW_EPHEMERAL_KEY,
        "max_age_positive": ATTESTATION_MAX_AGE_MS > 0,
    }
    if is_production():
        checks["no_ephemeral_key_in_prod"] = not ALLOW_EPHEMERAL_KEY
    return checks


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("EARNOUT_DEBUG", "").lower() in ("1", "true", "yes")
