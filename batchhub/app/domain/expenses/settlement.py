"""
Settlement Recorder.

Marks one debtor's share of one expense as paid. Settlement is
irreversible and idempotent.
"""

import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from batchhub.app.core.exceptions import NotFound, PermissionDenied
from batchhub.app.models.expense import Expense, ExpenseShare

logger = logging.getLogger("batchhub.expenses")


class SettlementRecorder:

    @staticmethod
    async def mark_settled(
        db: AsyncSession,
        expense_id: int,
        debtor_id: int,
        requesting_user_id: int
    ) -> bool:
        """
        Mark the share of `debtor_id` within `expense_id` as settled.

        Either party to that specific debt (payer or debtor) may confirm.
        The flag is set with a single conditional UPDATE on the share row,
        so settling sibling shares concurrently never loses a write.

        Returns:
            True if this call settled the share, False if it already was.

        Raises:
            NotFound: unknown expense, or debtor has no share in it
            PermissionDenied: requester is neither payer nor debtor
        """
        payer_id = (
            await db.execute(select(Expense.paid_by_id).where(Expense.id == expense_id))
        ).scalar_one_or_none()
        if payer_id is None:
            raise NotFound("Expense", expense_id)

        share_id = (
            await db.execute(
                select(ExpenseShare.id).where(
                    ExpenseShare.expense_id == expense_id,
                    ExpenseShare.debtor_id == debtor_id,
                )
            )
        ).scalar_one_or_none()
        if share_id is None:
            raise NotFound(
                "ExpenseShare",
                debtor_id,
                message="User not found in expense split"
            )

        if requesting_user_id not in (payer_id, debtor_id):
            raise PermissionDenied(
                "Only the payer or the debtor can settle this share",
                details={"expense_id": expense_id, "debtor_id": debtor_id}
            )

        result = await db.execute(
            update(ExpenseShare)
            .where(ExpenseShare.id == share_id, ExpenseShare.is_settled.is_(False))
            .values(is_settled=True, settled_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount > 0

        if changed:
            logger.info(
                "Share of user %s on expense %s settled by user %s",
                debtor_id, expense_id, requesting_user_id
            )
        return changed
