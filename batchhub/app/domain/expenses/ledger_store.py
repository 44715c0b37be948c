"""
Expense Ledger Store (Domain Logic).

Persists and retrieves expenses scoped by community or event. Methods flush
but never commit; the request handler owns the transaction.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, desc
from sqlalchemy.orm import selectinload

from batchhub.app.core.config import settings
from batchhub.app.core.exceptions import ValidationError, NotFound, PermissionDenied, InvalidScope
from batchhub.app.models.community import Community
from batchhub.app.models.event import Event, EventExpenseLink
from batchhub.app.models.expense import Expense, ExpenseShare
from batchhub.app.models.user import User
from batchhub.app.schemas.expense import ExpenseCreate, ShareInput

logger = logging.getLogger("batchhub.expenses")


def _with_parties(query):
    """Eager-load payer and debtors so entries can be rendered outside the session."""
    return query.options(
        selectinload(Expense.payer),
        selectinload(Expense.shares).selectinload(ExpenseShare.debtor),
    ).execution_options(populate_existing=True)


def check_split_total(
    amount: Decimal,
    shares: Sequence[ShareInput],
    mode: Optional[str] = None,
    tolerance: Optional[Decimal] = None
) -> None:
    """
    Enforce sum(shares) == amount when running in strict split mode.

    Lenient mode stores client splits as given.
    """
    mode = mode or settings.expense_split_mode
    if mode != "strict":
        return

    tolerance = settings.split_tolerance if tolerance is None else tolerance
    total = sum((share.amount for share in shares), Decimal("0"))
    if abs(total - amount) > tolerance:
        raise ValidationError(
            message="Shares do not add up to the expense amount",
            errors=[{
                "field": "shares",
                "message": f"Sum of shares {total} differs from amount {amount}",
            }]
        )


class ExpenseStore:

    @staticmethod
    async def create(
        db: AsyncSession,
        payer_id: int,
        data: ExpenseCreate,
        split_mode: Optional[str] = None
    ) -> Expense:
        """
        Record a new expense paid by `payer_id`.

        Flow:
        1. Community exists
        2. Event (if any) exists and belongs to the same community
        3. Every debtor is a known user
        4. Split total check (strict mode only)
        5. Persist expense + shares, register with the event

        Raises:
            NotFound: community or event unknown
            ValidationError: event in another community, unknown debtors, bad split
        """
        community = await db.get(Community, data.community_id)
        if community is None:
            raise NotFound("Community", data.community_id)

        event = None
        if data.event_id is not None:
            event = await db.get(Event, data.event_id)
            if event is None:
                raise NotFound("Event", data.event_id)
            if event.community_id != data.community_id:
                raise ValidationError(
                    message="Event does not belong to this community",
                    errors=[{
                        "field": "event_id",
                        "message": f"Event {event.id} belongs to community {event.community_id}",
                    }]
                )

        debtor_ids = [share.debtor_id for share in data.shares]
        if debtor_ids:
            result = await db.execute(select(User.id).where(User.id.in_(debtor_ids)))
            missing = sorted(set(debtor_ids) - set(result.scalars().all()))
            if missing:
                raise ValidationError(
                    message="Shares reference unknown users",
                    errors=[{"field": "shares", "message": "Unknown debtor", "debtor_ids": missing}]
                )

        check_split_total(data.amount, data.shares, split_mode)

        expense = Expense(
            title=data.title,
            amount=data.amount,
            category=data.category,
            paid_by_id=payer_id,
            community_id=data.community_id,
            event_id=data.event_id,
            receipt=data.receipt,
            notes=data.notes,
            shares=[
                ExpenseShare(debtor_id=share.debtor_id, amount=share.amount)
                for share in data.shares
            ],
        )
        db.add(expense)
        await db.flush()

        if event is not None:
            db.add(EventExpenseLink(event_id=event.id, expense_id=expense.id))
            await db.flush()

        logger.info(
            "Expense %s created by user %s in community %s (event=%s, shares=%d)",
            expense.id, payer_id, data.community_id, data.event_id, len(debtor_ids)
        )
        return expense

    @staticmethod
    async def get(db: AsyncSession, expense_id: int) -> Expense:
        """Fetch one expense with payer and debtors loaded."""
        result = await db.execute(_with_parties(select(Expense).where(Expense.id == expense_id)))
        expense = result.scalar_one_or_none()
        if expense is None:
            raise NotFound("Expense", expense_id)
        return expense

    @staticmethod
    async def list_by_scope(
        db: AsyncSession,
        community_id: Optional[int] = None,
        event_id: Optional[int] = None
    ) -> List[Expense]:
        """
        List expenses of one scope, newest first.

        The event selector wins when both are given.

        Raises:
            InvalidScope: neither selector supplied
        """
        query = select(Expense)
        if event_id is not None:
            query = query.where(Expense.event_id == event_id)
        elif community_id is not None:
            query = query.where(Expense.community_id == community_id)
        else:
            raise InvalidScope()

        query = query.order_by(desc(Expense.created_at), desc(Expense.id))
        result = await db.execute(_with_parties(query))
        return list(result.scalars().all())

    @staticmethod
    async def resolve_scope(
        db: AsyncSession,
        community_id: Optional[int] = None,
        event_id: Optional[int] = None
    ) -> int:
        """
        Return the community id that governs access to a scope.

        Scopes that no longer exist surface as NotFound here rather than
        as empty listings.
        """
        if event_id is not None:
            event = await db.get(Event, event_id)
            if event is None:
                raise NotFound("Event", event_id)
            return event.community_id

        if community_id is not None:
            if await db.get(Community, community_id) is None:
                raise NotFound("Community", community_id)
            return community_id

        raise InvalidScope()

    @staticmethod
    async def delete(db: AsyncSession, expense_id: int, requesting_user_id: int) -> Expense:
        """
        Delete an expense. Only its payer may do so.

        The expense is first removed from its event's list, then deleted
        together with its shares.

        Raises:
            NotFound: unknown expense
            PermissionDenied: requester is not the payer
        """
        expense = await ExpenseStore.get(db, expense_id)

        if expense.paid_by_id != requesting_user_id:
            raise PermissionDenied(
                "Only the creator can delete this expense",
                details={"expense_id": expense_id}
            )

        await db.execute(delete(EventExpenseLink).where(EventExpenseLink.expense_id == expense.id))
        await db.delete(expense)
        await db.flush()

        logger.info("Expense %s deleted by user %s", expense_id, requesting_user_id)
        return expense
