"""
Community and membership models.

A community is joined with a six character invite code. Membership rows
double as the moderator list.
"""

import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from batchhub.app.db.session import Base


class CommunityType(str, enum.Enum):
    ACADEMIC = "academic"
    CHILLOUT = "chillout"


class Community(Base):
    __tablename__ = "communities"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(Enum(CommunityType), nullable=False)
    code = Column(String(6), unique=True, index=True, nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Settings, editable by moderators
    is_private = Column(Boolean, default=False, nullable=False)
    allow_uploads = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    memberships = relationship(
        "CommunityMember",
        back_populates="community",
        cascade="all, delete-orphan",
        order_by="CommunityMember.id",
    )

    def __repr__(self):
        return f"<Community(id={self.id}, name='{self.name}', code='{self.code}')>"


class CommunityMember(Base):
    __tablename__ = "community_members"
    __table_args__ = (
        UniqueConstraint("community_id", "user_id", name="uq_community_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_moderator = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    community = relationship("Community", back_populates="memberships")
    user = relationship("User")

    def __repr__(self):
        return f"<CommunityMember(community={self.community_id}, user={self.user_id}, mod={self.is_moderator})>"
