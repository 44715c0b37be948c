"""
Expense Pydantic schemas.

The create schema is the typed boundary for client-submitted splits:
malformed or duplicate shares are rejected before any entry is built.
"""

from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional, List, Dict
from batchhub.app.models.expense import ExpenseCategory
from batchhub.app.schemas.auth import UserBrief


class ShareInput(BaseModel):
    """One debtor's portion of an expense."""
    debtor_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class ExpenseCreate(BaseModel):
    """Schema for recording an expense paid by the current user."""
    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    category: ExpenseCategory = ExpenseCategory.OTHER
    community_id: int
    event_id: Optional[int] = None
    shares: List[ShareInput] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=2000)
    receipt: Optional[str] = Field(None, max_length=500, description="Opaque attachment reference")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @model_validator(mode="after")
    def unique_debtors(self):
        seen = set()
        for share in self.shares:
            if share.debtor_id in seen:
                raise ValueError(f"Debtor {share.debtor_id} appears more than once in shares")
            seen.add(share.debtor_id)
        return self


class ShareResponse(BaseModel):
    debtor: UserBrief
    amount: float
    is_settled: bool
    settled_at: Optional[datetime]

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    """Expense with payer and debtors resolved to display form."""
    id: int
    title: str
    amount: float
    category: ExpenseCategory
    payer: UserBrief
    community_id: int
    event_id: Optional[int]
    receipt: Optional[str]
    notes: Optional[str]
    created_at: datetime
    shares: List[ShareResponse]

    class Config:
        from_attributes = True


class BalanceSummaryResponse(BaseModel):
    """Outstanding position of the current user within a scope."""
    total_paid: float
    total_owed: float
    net_balance: float
    balances: Dict[int, float] = Field(
        ..., description="Counterparty user id -> amount; positive means they owe you"
    )


class SettleResponse(BaseModel):
    status: str = "success"
    expense_id: int
    debtor_id: int
    changed: bool = Field(..., description="False when the share was already settled")
