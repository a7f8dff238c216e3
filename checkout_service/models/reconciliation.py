"""Reconciliation models for post-commit side effects"""

from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime
from enum import Enum


class TaskKind(str, Enum):
    WALLET_DEBIT = "wallet_debit"
    COUPON_USAGE = "coupon_usage"
    CART_CLEAR = "cart_clear"
    STOCK_COMMIT = "stock_commit"


class ReconciliationTask(BaseModel):
    """Side effect that failed after its order was committed"""
    task_id: str
    order_id: str
    user_id: str
    kind: TaskKind
    payload: dict[str, Any] = Field(default_factory=dict)
    attempts: int = 1
    last_error: Optional[str] = None
    resolved: bool = False
    created_at: datetime
    updated_at: datetime


class RetrySummary(BaseModel):
    resolved: list[str] = []
    still_failing: list[str] = []
