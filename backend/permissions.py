# permissions.py - Capability checks for playbook mutations
#
# Each check takes the acting user ID and the playbook and raises
# PermissionDeniedError when the capability is missing.

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import PermissionDeniedError
from models import (
    Channel, ChannelMember, Playbook, PlaybookMember, PlaybookRole,
    TeamMember, User, UserGroup, UserRole,
)

MANAGE_PROPERTIES = "playbook_manage_properties"
MANAGE_MEMBERS = "playbook_manage_members"
MAKE_PUBLIC = "playbook_make_public"
MAKE_PRIVATE = "playbook_make_private"
VIEW_TEAM = "view_team"
BROADCAST = "broadcast_to_channel"


class PlaybookPermissions:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------------- lookups ----------------

    async def _active_user(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user or not user.is_active or user.deleted_at is not None:
            return None
        return user

    async def _team_membership(self, user_id: str, team_id: str) -> Optional[TeamMember]:
        result = await self.db.execute(
            select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _playbook_role(self, user_id: str, playbook: Playbook) -> Optional[PlaybookRole]:
        result = await self.db.execute(
            select(PlaybookMember.role).where(
                PlaybookMember.playbook_id == playbook.id,
                PlaybookMember.member_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _is_admin_for(self, user_id: str, playbook: Playbook) -> bool:
        """System admin, or admin of the playbook's team, or playbook admin."""
        user = await self._active_user(user_id)
        if not user:
            return False
        if user.role == UserRole.SYSTEM_ADMIN:
            return True
        membership = await self._team_membership(user_id, playbook.team_id)
        if membership and membership.is_team_admin:
            return True
        return await self._playbook_role(user_id, playbook) == PlaybookRole.ADMIN

    # ---------------- playbook capabilities ----------------

    async def playbook_manage_properties(self, user_id: str, playbook: Playbook) -> None:
        if await self._is_admin_for(user_id, playbook):
            return
        if await self._active_user(user_id) and await self._playbook_role(user_id, playbook) is not None:
            return
        raise PermissionDeniedError(
            f"user {user_id} may not manage properties of playbook {playbook.id}",
            capability=MANAGE_PROPERTIES,
        )

    async def playbook_manage_members(self, user_id: str, playbook: Playbook) -> None:
        if not await self._is_admin_for(user_id, playbook):
            raise PermissionDeniedError(
                f"user {user_id} may not manage members of playbook {playbook.id}",
                capability=MANAGE_MEMBERS,
            )

    async def playbook_make_public(self, user_id: str, playbook: Playbook) -> None:
        if not await self._is_admin_for(user_id, playbook):
            raise PermissionDeniedError(
                f"user {user_id} may not make playbook {playbook.id} public",
                capability=MAKE_PUBLIC,
            )

    async def playbook_make_private(self, user_id: str, playbook: Playbook) -> None:
        if not await self._is_admin_for(user_id, playbook):
            raise PermissionDeniedError(
                f"user {user_id} may not make playbook {playbook.id} private",
                capability=MAKE_PRIVATE,
            )

    # ---------------- team / channel / group rules ----------------

    async def has_permission_to_team(self, user_id: str, team_id: str) -> bool:
        """view-team: can ``user_id`` see ``team_id`` at all?"""
        user = await self._active_user(user_id)
        if not user:
            return False
        if user.role == UserRole.SYSTEM_ADMIN:
            return True
        return await self._team_membership(user_id, team_id) is not None

    async def filter_invited_user_ids(self, user_ids: List[str], team_id: str) -> List[str]:
        filtered = []
        for user_id in user_ids:
            if await self.has_permission_to_team(user_id, team_id):
                filtered.append(user_id)
        return filtered

    async def filter_invited_group_ids(self, group_ids: List[str]) -> List[str]:
        if not group_ids:
            return []
        result = await self.db.execute(
            select(UserGroup.id).where(
                UserGroup.id.in_(group_ids),
                UserGroup.allow_reference.is_(True),
                UserGroup.delete_at == 0,
            )
        )
        allowed = set(result.scalars().all())
        return [group_id for group_id in group_ids if group_id in allowed]

    async def has_permission_to_channel(self, user_id: str, channel_id: str) -> bool:
        result = await self.db.execute(select(Channel.id).where(Channel.id == channel_id))
        if result.scalar_one_or_none() is None:
            return False
        user = await self._active_user(user_id)
        if not user:
            return False
        if user.role == UserRole.SYSTEM_ADMIN:
            return True
        result = await self.db.execute(
            select(ChannelMember).where(
                ChannelMember.channel_id == channel_id, ChannelMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def no_added_broadcast_channels_without_permission(
        self, user_id: str, channel_ids: List[str], previous_channel_ids: List[str],
    ) -> None:
        """Only channels absent from ``previous_channel_ids`` are checked."""
        previous = set(previous_channel_ids)
        for channel_id in channel_ids:
            if channel_id in previous:
                continue
            if not await self.has_permission_to_channel(user_id, channel_id):
                raise PermissionDeniedError(
                    f"user {user_id} does not have permission to broadcast to channel {channel_id}",
                    capability=BROADCAST,
                )
