"""Wallet ledger models"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class LedgerDirection(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class WalletLedgerEntry(BaseModel):
    """Append-only wallet movement"""
    user_id: str
    direction: LedgerDirection
    amount: float = Field(gt=0)
    balance_after: float = Field(ge=0)
    reference_type: str
    reference_id: str
    description: Optional[str] = None
    created_at: datetime
