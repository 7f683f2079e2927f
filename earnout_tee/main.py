import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import config
from .attestation import SoftwareAttester
from .errors import EarnoutTEEError, SigningError, ValidationError
from .keys import load_signing_identity
from .logging_config import audit_log, configure_logging, set_request_id
from .models import ComputeRequest, VerifyRequest
from .service import ComputeService
from .util import hex_to_bytes
from .verifier import verify_attestation_bytes

logger = logging.getLogger(__name__)


def build_compute_service() -> ComputeService:
    """Build the service and its signing identity once, from configuration."""
    identity = load_signing_identity(
        key_hex=config.SIGNING_KEY_HEX or None,
        key_path=config.SIGNING_KEY_PATH,
        allow_ephemeral=config.ALLOW_EPHEMERAL_KEY,
    )
    return ComputeService(attester=SoftwareAttester(identity))


def get_compute_service(request: Request) -> ComputeService:
    service = request.app.state.compute_service
    if service is None:
        raise SigningError("compute service is not initialized")
    return service


def create_app(service: Optional[ComputeService] = None) -> FastAPI:
    """
    Create the HTTP application.

    Args:
        service: Pre-built service to inject. When omitted the service is
            built from configuration on startup.
    """
    app = FastAPI(title="Earn-out KPI Attestation Service")
    app.state.compute_service = service

    @app.on_event("startup")
    def _startup():
        configure_logging(
            level="DEBUG" if config.is_debug() else config.LOG_LEVEL,
            json_format=config.LOG_JSON,
            log_file=config.LOG_FILE,
        )
        failed = [name for name, ok in config.validate_config().items() if not ok]
        if failed:
            logger.warning("configuration checks failed: %s", ", ".join(failed))
        if app.state.compute_service is None:
            app.state.compute_service = build_compute_service()

    @app.middleware("http")
    async def _request_id(request: Request, call_next):
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(EarnoutTEEError)
    async def _pipeline_error(request: Request, exc: EarnoutTEEError):
        if exc.http_status >= 500:
            logger.error("request failed: %s", exc.message, exc_info=getattr(exc, "cause", None))
            body = {"success": False, "error": exc.code,
                    "message": "Internal server error during KPI computation"}
            if isinstance(exc, SigningError):
                body["message"] = "Attestation signing is unavailable"
            return JSONResponse(body, status_code=exc.http_status)
        return JSONResponse(exc.to_dict(), status_code=exc.http_status)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()})
        return JSONResponse(
            {"success": False, "error": "VALIDATION_ERROR",
             "message": f"Invalid request: {', '.join(f for f in fields if f) or 'malformed body'}"},
            status_code=400,
        )

    @app.get("/health")
    def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")}

    @app.get("/compute")
    def compute_info():
        return {
            "endpoint": "/compute",
            "methods": ["POST"],
            "description": "Compute KPI from financial documents with TEE attestation",
            "usage": {
                "documents": "Array of financial document objects",
                "operation": 'Optional: "simple" | "with_attestation" (default)',
                "initial_kpi": "Optional: Initial KPI value, simple mode only (default: 0)",
            },
            "example": {
                "documents": [
                    {"journalEntryId": "JE-2025-001", "credits": [{"account": "Sales Revenue", "amount": 50000}]},
                    {"employeeDetails": {}, "grossPay": 20000},
                ],
                "operation": "with_attestation",
            },
            "warning": "Attestations are signed by a software key, not a hardware enclave.",
        }

    @app.post("/compute")
    def compute(req: ComputeRequest, service: ComputeService = Depends(get_compute_service)):
        data = service.compute(req.documents, req.operation, req.initial_kpi)
        message = ("KPI calculated successfully (simple mode)" if req.operation == "simple"
                   else "KPI calculated with TEE attestation")
        return {"success": True, "data": data, "message": message}

    @app.get("/tee/public_key")
    def tee_public_key(service: ComputeService = Depends(get_compute_service)):
        if service.attester is None:
            raise SigningError("TEE attester is not configured")
        return {"tee_public_key": service.attester.public_key.hex(), "algorithm": "ed25519"}

    @app.post("/attestation/verify")
    def verify(req: VerifyRequest, service: ComputeService = Depends(get_compute_service)):
        if req.tee_public_key is not None:
            try:
                trusted = hex_to_bytes(req.tee_public_key, 32, "tee_public_key")
            except ValueError as e:
                raise ValidationError(f"Invalid request: {e}") from e
        elif service.attester is not None:
            trusted = service.attester.public_key
        else:
            trusted = None

        result = verify_attestation_bytes(
            req.attestation_bytes,
            trusted_public_key=trusted,
            documents=req.documents,
            max_age_ms=config.ATTESTATION_MAX_AGE_MS if req.max_age_ms is None else req.max_age_ms,
        )
        audit_log.verification_result(result.valid, result.errors)
        return {"success": True, "data": result.to_dict()}

    return app


app = create_app()
