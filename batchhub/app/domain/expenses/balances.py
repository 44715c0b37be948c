"""
Balance Aggregator.

Computes the outstanding position of one user over a set of expenses.
Pure and read-only: recomputed from scratch on every call.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable
from pydantic import BaseModel

ZERO = Decimal("0")


class BalanceSummary(BaseModel):
    """
    total_paid: gross amount of every expense the viewer paid
    total_owed: viewer's unsettled shares on expenses paid by others
    balances: counterparty id -> amount; positive means they owe the viewer
    """
    total_paid: Decimal
    total_owed: Decimal
    net_balance: Decimal
    balances: Dict[int, Decimal]


def _dec(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_balance_summary(entries: Iterable, viewer_id: int) -> BalanceSummary:
    """
    Net the viewer's position across `entries`.

    Each entry needs `paid_by_id`, `amount` and `shares`; each share needs
    `debtor_id`, `amount` and `is_settled`. Settled shares contribute to
    nothing, while total_paid stays gross regardless of settlement.
    """
    total_paid = ZERO
    total_owed = ZERO
    balances: Dict[int, Decimal] = {}

    for entry in entries:
        if entry.paid_by_id == viewer_id:
            total_paid += _dec(entry.amount)
            for share in entry.shares:
                if share.debtor_id == viewer_id or share.is_settled:
                    continue
                balances[share.debtor_id] = balances.get(share.debtor_id, ZERO) + _dec(share.amount)
        else:
            for share in entry.shares:
                if share.debtor_id != viewer_id or share.is_settled:
                    continue
                owed = _dec(share.amount)
                total_owed += owed
                balances[entry.paid_by_id] = balances.get(entry.paid_by_id, ZERO) - owed

    return BalanceSummary(
        total_paid=total_paid,
        total_owed=total_owed,
        net_balance=total_paid - total_owed,
        balances=balances,
    )
