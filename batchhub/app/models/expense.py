"""
Expense (ledger entry) and per-debtor share models.

An expense records who paid and how much each debtor owes them. Shares
change only through settlement, which flips `is_settled` once and for good.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from batchhub.app.db.session import Base


class ExpenseCategory(str, enum.Enum):
    FOOD = "food"
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    title = Column(String(200), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(Enum(ExpenseCategory), default=ExpenseCategory.OTHER, nullable=False)

    # Payer owns the entry
    paid_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Scope
    community_id = Column(Integer, ForeignKey("communities.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True)

    receipt = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Immutable
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    payer = relationship("User", foreign_keys=[paid_by_id])
    shares = relationship(
        "ExpenseShare",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseShare.id",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Expense(id={self.id}, title='{self.title}', amount={self.amount}, payer={self.paid_by_id})>"


class ExpenseShare(Base):
    __tablename__ = "expense_shares"
    __table_args__ = (
        UniqueConstraint("expense_id", "debtor_id", name="uq_expense_share_debtor"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    debtor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)

    is_settled = Column(Boolean, default=False, nullable=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    expense = relationship("Expense", back_populates="shares")
    debtor = relationship("User")

    def __repr__(self):
        return f"<ExpenseShare(expense={self.expense_id}, debtor={self.debtor_id}, amount={self.amount}, settled={self.is_settled})>"
