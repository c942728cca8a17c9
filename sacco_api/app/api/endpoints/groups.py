"""
Group endpoints.

Covers group creation and listing, membership, and the per-group
proposal list and activity feed.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sacco_api.app.api.deps import get_storage
from sacco_api.app.core.exceptions import DuplicateError, NotFoundError
from sacco_api.app.schemas.activity import ActivityRead
from sacco_api.app.schemas.group import (
    GroupCreate,
    GroupMemberAdd,
    GroupMemberRead,
    GroupRead,
    GroupUpdate,
)
from sacco_api.app.schemas.proposal import ProposalRead
from sacco_api.app.schemas.user import UserRead
from sacco_api.app.services.activity_service import ActivityService
from sacco_api.app.services.group_service import GroupService
from sacco_api.app.storage import SaccoStorage
from sacco_api.app.storage.base import DEFAULT_ACTIVITY_LIMIT

router = APIRouter()


@router.post("", response_model=GroupRead, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_in: GroupCreate, storage: SaccoStorage = Depends(get_storage)
) -> GroupRead:
    """Create a group.  The admin becomes its first member."""
    return await GroupService.create_group(storage, group_in)


@router.get("", response_model=List[GroupRead])
async def list_groups(storage: SaccoStorage = Depends(get_storage)) -> List[GroupRead]:
    return await GroupService.list_groups(storage)


@router.get("/{group_id}", response_model=GroupRead)
async def get_group(group_id: int, storage: SaccoStorage = Depends(get_storage)) -> GroupRead:
    try:
        return await GroupService.get_group(storage, group_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.patch("/{group_id}", response_model=GroupRead)
async def update_group(
    group_id: int,
    updates: GroupUpdate,
    storage: SaccoStorage = Depends(get_storage),
) -> GroupRead:
    try:
        return await GroupService.update_group(storage, group_id, updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{group_id}/members", response_model=List[UserRead])
async def list_group_members(
    group_id: int, storage: SaccoStorage = Depends(get_storage)
) -> List[UserRead]:
    """Registered users belonging to the group, in joining order."""
    return await GroupService.list_members(storage, group_id)


@router.post(
    "/{group_id}/members",
    response_model=GroupMemberRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_group_member(
    group_id: int,
    member_in: GroupMemberAdd,
    storage: SaccoStorage = Depends(get_storage),
) -> GroupMemberRead:
    """Join a group.

    Returns 404 if the group does not exist and 400 if the address is
    already a member.
    """
    try:
        return await GroupService.add_member(storage, group_id, member_in)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except DuplicateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/{group_id}/proposals", response_model=List[ProposalRead])
async def list_group_proposals(
    group_id: int, storage: SaccoStorage = Depends(get_storage)
) -> List[ProposalRead]:
    return await GroupService.list_proposals(storage, group_id)


@router.get("/{group_id}/activities", response_model=List[ActivityRead])
async def list_group_activities(
    group_id: int,
    limit: int = Query(DEFAULT_ACTIVITY_LIMIT, ge=1, le=100),
    storage: SaccoStorage = Depends(get_storage),
) -> List[ActivityRead]:
    """Latest activities of the group, most recent first."""
    return await ActivityService.list_group_activities(storage, group_id, limit)
