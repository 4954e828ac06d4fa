"""
Pydantic models for wallet statement data.
"""
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN = "Unknown"
ZERO_BALANCE = "NGN 0.00"


class TransactionRecord(BaseModel):
    """Individual transaction record."""
    model_config = ConfigDict(frozen=True)

    date: str
    time: str = UNKNOWN
    type: Literal["Credit", "Debit"]
    amount: str
    balance: str
    category: str = "Wallet"
    to_from: str
    description: str
    transaction_reference: str = UNKNOWN


class StatementRecord(BaseModel):
    """Complete statement data structure."""
    model_config = ConfigDict(frozen=True)

    account_holder: str = UNKNOWN
    account_number: str = UNKNOWN
    opening_balance: str = ZERO_BALANCE
    closing_balance: str = ZERO_BALANCE
    statement_period: str = UNKNOWN
    transactions: List[TransactionRecord] = Field(default_factory=list)

    @field_validator('account_number')
    @classmethod
    def validate_account_number(cls, v):
        """Account numbers are a run of digits or the unknown sentinel."""
        if v != UNKNOWN and not v.isdigit():
            raise ValueError(f"Account number must be digits: {v}")
        return v


class LineFailure(BaseModel):
    """A line that looked like a transaction but could not be decomposed."""
    model_config = ConfigDict(frozen=True)

    line_number: int
    line: str
    error: str


class ExtractionResult(BaseModel):
    """Statement record plus the diagnostics collected during the scan."""
    model_config = ConfigDict(frozen=True)

    template_id: str
    statement: StatementRecord
    failures: List[LineFailure] = Field(default_factory=list)
