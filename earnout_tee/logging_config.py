"""
Logging configuration for the earn-out KPI attestation service.

Provides structured JSON logging for audit trails and debugging. Document
contents are never logged, only counts, hashes and indices.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format suitable for
    log aggregation systems like ELK, Splunk, or CloudWatch.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for audit events.

    Records every KPI computation, every attestation issued and every
    security-relevant failure.
    """

    def __init__(self, name: str = "earnout_tee.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def compute_request(self, operation: str, document_count: int) -> None:
        self._log(
            logging.INFO,
            "COMPUTE_REQUEST",
            operation=operation,
            document_count=document_count,
            message=f"{operation} computation requested over {document_count} documents"
        )

    def kpi_computed(self, operation: str, kpi_minor_units: int, entries_processed: int) -> None:
        self._log(
            logging.INFO,
            "KPI_COMPUTED",
            operation=operation,
            kpi_minor_units=kpi_minor_units,
            entries_processed=entries_processed,
            message=f"KPI computed ({operation})"
        )

    def attestation_issued(self, computation_hash: str, kpi_minor_units: int, timestamp: int,
                           tee_public_key: str) -> None:
        self._log(
            logging.INFO,
            "ATTESTATION_ISSUED",
            computation_hash=computation_hash,
            kpi_minor_units=kpi_minor_units,
            attestation_timestamp=timestamp,
            tee_public_key=tee_public_key,
            message=f"Attestation issued for {computation_hash}"
        )

    def classification_rejected(self, index: int, reason: str) -> None:
        self._log(
            logging.WARNING,
            "CLASSIFICATION_REJECTED",
            index=index,
            reason=reason,
            message=f"Document {index} rejected"
        )

    def verification_result(self, valid: bool, errors: Optional[list] = None) -> None:
        level = logging.INFO if valid else logging.WARNING
        self._log(
            level,
            "VERIFICATION_RESULT",
            valid=valid,
            errors=errors or [],
            message=f"Attestation verification {'passed' if valid else 'failed'}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


# Global audit logger instance
audit_log = AuditLogger()
