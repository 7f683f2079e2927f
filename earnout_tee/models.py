from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ComputeRequest(BaseModel):
    documents: List[Any]
    operation: Literal["simple", "with_attestation"] = "with_attestation"
    initial_kpi: Optional[Union[int, float, str]] = 0


class VerifyRequest(BaseModel):
    attestation_bytes: List[int]
    documents: Optional[List[Any]] = None
    tee_public_key: Optional[str] = None
    max_age_ms: Optional[int] = Field(default=None, ge=0)
