"""
Pydantic models for groups and group membership.

A group is created by its admin, who becomes the first member.  The
deposit and loan totals are maintained from chain events and cannot
be set on creation.
"""

from typing import Optional

from pydantic import Field, field_validator

from .common import ADDRESS_MAX_LENGTH, CamelModel, reject_null


class GroupCreate(CamelModel):
    """Schema for creating a group."""

    name: str = Field(..., min_length=1, examples=["Nairobi Traders"])
    admin: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH)


class GroupRead(GroupCreate):
    """Schema for reading a group from the API."""

    id: int
    total_deposits: int = 0
    total_loaned: int = 0


class GroupUpdate(CamelModel):
    """Schema for updating a group.

    All fields are optional; only provided fields will be updated.
    """

    name: Optional[str] = Field(None, min_length=1)
    admin: Optional[str] = Field(None, min_length=1, max_length=ADDRESS_MAX_LENGTH)
    total_deposits: Optional[int] = None
    total_loaned: Optional[int] = None

    @field_validator("name", "admin", "total_deposits", "total_loaned")
    @classmethod
    def reject_null_values(cls, value):
        return reject_null(value)


class GroupMemberAdd(CamelModel):
    """Request body for joining a group; the group comes from the URL."""

    member_address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH)


class GroupMemberCreate(GroupMemberAdd):
    group_id: int


class GroupMemberRead(GroupMemberCreate):
    id: int
