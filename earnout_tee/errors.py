"""
Error taxonomy for the earn-out KPI attestation service.

Every error carries a machine-readable ``code`` and the HTTP status the API
surfaces it with.
"""

from typing import Any, Dict, Optional


class EarnoutTEEError(Exception):
    """Base class for all pipeline errors."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message}


class ValidationError(EarnoutTEEError):
    """Malformed or empty top-level request."""

    code = "VALIDATION_ERROR"
    http_status = 400


class ClassificationError(EarnoutTEEError):
    """A document matches no known shape or carries an unparsable amount."""

    code = "CLASSIFICATION_ERROR"
    http_status = 422

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"document {index}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["index"] = self.index
        return body


class EncodingError(EarnoutTEEError):
    """
    Attestation bytes could not be produced or decoded.

    Decoding externally supplied bytes is a caller error (400); failing to
    encode an attestation this process produced is a bug (500).
    """

    code = "ENCODING_ERROR"

    def __init__(self, message: str, caller_error: bool = True):
        self.http_status = 400 if caller_error else 500
        super().__init__(message)


class SigningError(EarnoutTEEError):
    """The signing identity is unavailable. Fatal, never retried."""

    code = "SIGNING_ERROR"
    http_status = 500


class InternalError(EarnoutTEEError):
    """Any other unexpected failure. Detail is logged, never returned."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str = "Internal server error during KPI computation",
                 cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
