"""Credit ledger models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CreditBalance(BaseModel):
    """Per-user counters for the current monthly window."""

    user_id: str
    available_credits: int
    used_credits: int = 0
    total_credits: int = 0
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None


class DeductionResult(BaseModel):
    success: bool
    remaining: Optional[int] = None
    error: Optional[str] = None


class RenewalResponse(BaseModel):
    renewed: int
