"""
Business logic for groups and membership.

Creating a group enrols the admin as its first member (done by the
storage layer in one unit of work) and, when the admin already has a
user record, points that record at the new group.  Joining a group
does the same for the joining member.
"""

from __future__ import annotations

import logging
from typing import List

from ..core.exceptions import DuplicateError, NotFoundError
from ..schemas.activity import ActivityType
from ..schemas.group import (
    GroupCreate,
    GroupMemberAdd,
    GroupMemberCreate,
    GroupMemberRead,
    GroupRead,
    GroupUpdate,
)
from ..schemas.proposal import ProposalRead
from ..schemas.user import UserRead
from ..storage.base import SaccoStorage
from .activity_service import ActivityService

logger = logging.getLogger(__name__)


class GroupService:
    """Service class for groups."""

    @classmethod
    async def create_group(cls, storage: SaccoStorage, data: GroupCreate) -> GroupRead:
        group = await storage.create_group(data)
        logger.info("Group %s '%s' created by %s", group.id, group.name, group.admin)
        await storage.update_user(group.admin, {"group_id": group.id, "registered": True})
        await ActivityService.record(
            storage,
            group.id,
            group.admin,
            ActivityType.CREATE_GROUP,
            f"{group.admin} created group {group.name}",
        )
        return group

    @classmethod
    async def list_groups(cls, storage: SaccoStorage) -> List[GroupRead]:
        return await storage.get_groups()

    @classmethod
    async def get_group(cls, storage: SaccoStorage, group_id: int) -> GroupRead:
        group = await storage.get_group(group_id)
        if group is None:
            raise NotFoundError("Group not found")
        return group

    @classmethod
    async def update_group(cls, storage: SaccoStorage, group_id: int, data: GroupUpdate) -> GroupRead:
        group = await storage.update_group(group_id, data.model_dump(exclude_unset=True))
        if group is None:
            raise NotFoundError("Group not found")
        logger.info("Updated group %s", group_id)
        return group

    @classmethod
    async def list_members(cls, storage: SaccoStorage, group_id: int) -> List[UserRead]:
        return await storage.get_group_members(group_id)

    @classmethod
    async def add_member(
        cls, storage: SaccoStorage, group_id: int, data: GroupMemberAdd
    ) -> GroupMemberRead:
        """Enrol an address in a group.

        Raises ``NotFoundError`` for an unknown group and
        ``DuplicateError`` if the address is already a member.
        """
        group = await cls.get_group(storage, group_id)
        if await storage.is_group_member(group.id, data.member_address):
            raise DuplicateError("Already a member of this group")
        try:
            member = await storage.add_group_member(
                GroupMemberCreate(group_id=group.id, member_address=data.member_address)
            )
        except DuplicateError as exc:
            raise DuplicateError("Already a member of this group") from exc
        await storage.update_user(member.member_address, {"group_id": group.id, "registered": True})
        logger.info("%s joined group %s", member.member_address, group.id)
        await ActivityService.record(
            storage,
            group.id,
            member.member_address,
            ActivityType.JOIN_GROUP,
            f"{member.member_address} joined the group",
        )
        return member

    @classmethod
    async def list_proposals(cls, storage: SaccoStorage, group_id: int) -> List[ProposalRead]:
        return await storage.get_group_proposals(group_id)
