"""
Typed financial document variants.

Raw documents arrive as untyped JSON objects. Each variant below is a
pydantic model that either accepts a raw object or rejects it; amounts are
converted to integer minor units while validating.
"""

from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import (
    AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator,
)

from .util import to_minor_units


class DocumentKind(str, Enum):
    JOURNAL_ENTRY = "JournalEntry"
    PAYROLL = "Payroll"


def _parse_amount(value: Any) -> int:
    return to_minor_units(value, allow_negative=False)


MinorUnits = Annotated[int, BeforeValidator(_parse_amount)]


class LedgerLine(BaseModel):
    """One credit or debit leg of a journal entry."""
    model_config = ConfigDict(extra="allow", frozen=True)

    account: str
    amount: MinorUnits


class JournalEntry(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    kind: ClassVar[DocumentKind] = DocumentKind.JOURNAL_ENTRY
    # Keys whose presence makes a raw object a candidate for this variant.
    shape_keys: ClassVar[Tuple[str, ...]] = ("credits", "debits")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("journalEntryId", "id"))
    credits: List[LedgerLine] = Field(default_factory=list)
    debits: List[LedgerLine] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        raise ValueError("journal entry id must be a string")

    @model_validator(mode="before")
    @classmethod
    def _requires_legs(cls, data):
        if isinstance(data, dict) and "credits" not in data and "debits" not in data:
            raise ValueError("journal entry needs a credits or debits array")
        return data

    def contribution(self) -> int:
        """Credited amounts minus debited amounts, in minor units."""
        return sum(line.amount for line in self.credits) - sum(line.amount for line in self.debits)


class PayrollRecord(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    kind: ClassVar[DocumentKind] = DocumentKind.PAYROLL
    shape_keys: ClassVar[Tuple[str, ...]] = ("grossPay",)

    employee_details: Dict[str, Any] = Field(default_factory=dict, validation_alias="employeeDetails")
    gross_pay: MinorUnits = Field(validation_alias="grossPay")

    def contribution(self) -> int:
        """Payroll always reduces the KPI."""
        return -self.gross_pay


# Classification priority order. The first variant that accepts a record wins.
DOCUMENT_VARIANTS = (JournalEntry, PayrollRecord)
