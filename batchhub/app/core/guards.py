"""
Community membership guards.

Every community-scoped read or write goes through here before touching
the domain layer.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from batchhub.app.core.exceptions import NotFound, PermissionDenied
from batchhub.app.models.community import Community, CommunityMember


async def get_membership(db: AsyncSession, community_id: int, user_id: int):
    """Return the membership row, or None if the user is not a member."""
    result = await db.execute(
        select(CommunityMember).where(
            CommunityMember.community_id == community_id,
            CommunityMember.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def require_community_member(db: AsyncSession, community_id: int, current_user: dict) -> Community:
    """
    Ensure the authenticated user belongs to the community.

    Usage:
        community = await require_community_member(db, data.community_id, current_user)

    Raises:
        NotFound: community does not exist
        PermissionDenied: user is not a member
    """
    community = await db.get(Community, community_id)
    if community is None:
        raise NotFound("Community", community_id)

    if await get_membership(db, community_id, current_user["user_id"]) is None:
        raise PermissionDenied(
            "Not a member of this community",
            details={"community_id": community_id}
        )

    return community
