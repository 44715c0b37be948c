"""
Community API Endpoints.

Create, join by invite code, list, view, configure and leave communities.
"""

import secrets
import string
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import List

from batchhub.app.db.session import get_db
from batchhub.app.models.community import Community, CommunityMember
from batchhub.app.schemas.community import (
    CommunityCreate, CommunityJoin, CommunitySettingsUpdate, CommunityResponse, CommunityDetailResponse
)
from batchhub.app.core.dependencies import get_current_user
from batchhub.app.core.exceptions import PermissionDenied
from batchhub.app.core.guards import get_membership, require_community_member
from batchhub.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/communities", tags=["Communities"])

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


async def generate_unique_code(db: AsyncSession, attempts: int = 10) -> str:
    """Pick a random invite code not used by any community."""
    for _ in range(attempts):
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        taken = await db.execute(select(Community.id).where(Community.code == code))
        if taken.scalar_one_or_none() is None:
            return code
    raise RuntimeError("Could not allocate a unique community code")


@router.post("", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    data: CommunityCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a community.

    The creator becomes its first member and moderator.
    """
    community = Community(
        name=data.name,
        description=data.description,
        type=data.type,
        code=await generate_unique_code(db),
        creator_id=current_user["user_id"],
        memberships=[CommunityMember(user_id=current_user["user_id"], is_moderator=True)],
    )
    db.add(community)
    await db.flush()

    await log_event(
        db=db,
        action=AuditAction.COMMUNITY_CREATED,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="community",
        target_id=community.id,
        metadata={"name": community.name, "code": community.code}
    )
    await db.commit()
    await db.refresh(community)

    return CommunityResponse.model_validate(community)


@router.post("/join", response_model=CommunityResponse)
async def join_community(
    data: CommunityJoin,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Join a community using its invite code."""
    result = await db.execute(select(Community).where(Community.code == data.code))
    community = result.scalar_one_or_none()

    if not community:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Community not found")

    if await get_membership(db, community.id, current_user["user_id"]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already a member")

    db.add(CommunityMember(community_id=community.id, user_id=current_user["user_id"]))
    await log_event(
        db=db,
        action=AuditAction.COMMUNITY_JOINED,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="community",
        target_id=community.id
    )
    await db.commit()

    return CommunityResponse.model_validate(community)


@router.get("/mine", response_model=List[CommunityResponse])
async def list_my_communities(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List communities the current user belongs to."""
    query = (
        select(Community)
        .join(CommunityMember, CommunityMember.community_id == Community.id)
        .where(CommunityMember.user_id == current_user["user_id"])
        .order_by(Community.id)
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{community_id}", response_model=CommunityDetailResponse)
async def get_community(
    community_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Community details with its members (members only)."""
    await require_community_member(db, community_id, current_user)

    result = await db.execute(
        select(Community)
        .where(Community.id == community_id)
        .options(selectinload(Community.memberships).selectinload(CommunityMember.user))
        .execution_options(populate_existing=True)
    )
    return CommunityDetailResponse.model_validate(result.scalar_one())


@router.put("/{community_id}/settings", response_model=CommunityResponse)
async def update_community_settings(
    community_id: int,
    data: CommunitySettingsUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update community settings (moderators only)."""
    community = await require_community_member(db, community_id, current_user)

    membership = await get_membership(db, community_id, current_user["user_id"])
    if not membership.is_moderator:
        raise PermissionDenied(
            "Only moderators can update settings",
            details={"community_id": community_id}
        )

    changes = data.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(community, field, value)

    await log_event(
        db=db,
        action=AuditAction.COMMUNITY_SETTINGS_UPDATED,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="community",
        target_id=community_id,
        metadata=changes
    )
    await db.commit()

    return CommunityResponse.model_validate(community)


@router.delete("/{community_id}/leave")
async def leave_community(
    community_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Leave a community. The creator cannot leave."""
    community = await require_community_member(db, community_id, current_user)

    if community.creator_id == current_user["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Creator cannot leave the community"
        )

    membership = await get_membership(db, community_id, current_user["user_id"])
    await db.delete(membership)
    await log_event(
        db=db,
        action=AuditAction.COMMUNITY_LEFT,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="community",
        target_id=community_id
    )
    await db.commit()

    return {"status": "success", "message": "Left community successfully"}
