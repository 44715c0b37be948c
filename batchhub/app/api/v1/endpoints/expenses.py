"""
Expense API Endpoints.

Thin handlers: authenticate, check community membership, delegate to the
expense domain services, audit, commit.
"""

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from batchhub.app.db.session import get_db
from batchhub.app.schemas.expense import (
    ExpenseCreate, ExpenseResponse, BalanceSummaryResponse, SettleResponse
)
from batchhub.app.core.dependencies import get_current_user
from batchhub.app.core.guards import require_community_member
from batchhub.app.domain.expenses.ledger_store import ExpenseStore
from batchhub.app.domain.expenses.balances import compute_balance_summary
from batchhub.app.domain.expenses.settlement import SettlementRecorder
from batchhub.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: ExpenseCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record an expense paid by the current user.

    The payer must be a member of the community; shares name the debtors.
    """
    await require_community_member(db, data.community_id, current_user)

    expense = await ExpenseStore.create(db, current_user["user_id"], data)

    await log_event(
        db=db,
        action=AuditAction.EXPENSE_CREATED,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="expense",
        target_id=expense.id,
        metadata={
            "community_id": data.community_id,
            "event_id": data.event_id,
            "amount": str(data.amount),
            "debtor_ids": [share.debtor_id for share in data.shares],
        }
    )
    await db.commit()

    return ExpenseResponse.model_validate(await ExpenseStore.get(db, expense.id))


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    community_id: Optional[int] = Query(None, description="Community scope"),
    event_id: Optional[int] = Query(None, description="Event scope (takes precedence)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List expenses of a community or event, newest first."""
    scope_community = await ExpenseStore.resolve_scope(db, community_id, event_id)
    await require_community_member(db, scope_community, current_user)

    expenses = await ExpenseStore.list_by_scope(db, community_id=community_id, event_id=event_id)
    return [ExpenseResponse.model_validate(expense) for expense in expenses]


@router.get("/summary", response_model=BalanceSummaryResponse)
async def get_balance_summary(
    community_id: Optional[int] = Query(None, description="Community scope"),
    event_id: Optional[int] = Query(None, description="Event scope (takes precedence)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Outstanding balances of the current user within a scope.

    Positive balances are owed to the current user; negative ones are owed by them.
    """
    scope_community = await ExpenseStore.resolve_scope(db, community_id, event_id)
    await require_community_member(db, scope_community, current_user)

    expenses = await ExpenseStore.list_by_scope(db, community_id=community_id, event_id=event_id)
    summary = compute_balance_summary(expenses, current_user["user_id"])

    return BalanceSummaryResponse(**summary.model_dump())


@router.put("/{expense_id}/settle/{debtor_id}", response_model=SettleResponse)
async def settle_share(
    expense_id: int = Path(..., description="Expense ID"),
    debtor_id: int = Path(..., description="User whose share is being settled"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark a debtor's share as paid.

    Either the payer or the debtor may confirm. Repeating the call is a no-op.
    """
    changed = await SettlementRecorder.mark_settled(db, expense_id, debtor_id, current_user["user_id"])

    if changed:
        await log_event(
            db=db,
            action=AuditAction.SHARE_SETTLED,
            actor_id=current_user["user_id"],
            actor_email=current_user.get("sub"),
            target_type="expense",
            target_id=expense_id,
            metadata={"debtor_id": debtor_id}
        )
    await db.commit()

    return SettleResponse(expense_id=expense_id, debtor_id=debtor_id, changed=changed)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int = Path(..., description="Expense ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete an expense (payer only)."""
    expense = await ExpenseStore.delete(db, expense_id, current_user["user_id"])

    await log_event(
        db=db,
        action=AuditAction.EXPENSE_DELETED,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="expense",
        target_id=expense_id,
        metadata={"community_id": expense.community_id, "event_id": expense.event_id}
    )
    await db.commit()

    return {"status": "success", "message": "Expense deleted successfully"}
