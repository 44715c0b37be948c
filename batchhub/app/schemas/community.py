"""
Community Pydantic schemas.
"""

from pydantic import BaseModel, StringConstraints, model_validator
from datetime import datetime
from typing import Annotated, List, Optional
from batchhub.app.models.community import CommunityType
from batchhub.app.schemas.auth import UserBrief


class CommunityCreate(BaseModel):
    """Schema for creating a community. Text is stripped before length checks."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50)]
    description: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=500)]
    type: CommunityType


class CommunityJoin(BaseModel):
    """Join by invite code (case-insensitive)."""
    code: Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=6, max_length=6)]


class CommunitySettingsUpdate(BaseModel):
    """Partial settings update; omitted fields keep their value."""
    is_private: Optional[bool] = None
    allow_uploads: Optional[bool] = None

    @model_validator(mode="after")
    def not_empty(self):
        if self.is_private is None and self.allow_uploads is None:
            raise ValueError("No settings to update")
        return self


class CommunityResponse(BaseModel):
    id: int
    name: str
    description: str
    type: CommunityType
    code: str
    creator_id: int
    is_private: bool
    allow_uploads: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MemberResponse(BaseModel):
    user: UserBrief
    is_moderator: bool
    joined_at: datetime

    class Config:
        from_attributes = True


class CommunityDetailResponse(CommunityResponse):
    memberships: List[MemberResponse]
