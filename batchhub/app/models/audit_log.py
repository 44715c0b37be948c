"""
Audit Log Database Model.

Append-only trail of authentication events and financial mutations.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from batchhub.app.db.session import Base


class AuditLog(Base):
    """
    Audit log row.

    Events logged:
    - USER_CREATED / LOGIN_SUCCESS / LOGIN_FAILED / TOKEN_REVOKED
    - COMMUNITY_CREATED / COMMUNITY_JOINED / COMMUNITY_LEFT
    - EVENT_CREATED
    - EXPENSE_CREATED / EXPENSE_DELETED / SHARE_SETTLED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for anonymous failures)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Entity acted upon, e.g. ("expense", 12)
    target_type = Column(String(50), nullable=True)
    target_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_id}, target={self.target_type}:{self.target_id})>"
