"""
Pydantic models for Sacco members.

A user is identified by a wallet address.  The remaining fields mirror
the member record kept by the on-chain contract (deposits, credit
score, default flag) so the frontend can render them without a chain
call.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import ADDRESS_MAX_LENGTH, CamelModel, reject_null


class UserBase(CamelModel):
    group_id: Optional[int] = Field(None, examples=[1])
    total_deposits: int = Field(0, examples=[250])
    credit_score: int = Field(100, examples=[100])
    last_deposit_time: Optional[datetime] = Field(None, examples=["2025-09-01T10:00:00Z"])
    registered: bool = Field(False, examples=[True])
    is_defaulted: bool = Field(False, examples=[False])


class UserCreate(UserBase):
    """Schema for registering a user.

    ``address`` is stored lowercased; lookups by any case variant
    resolve to the same record.  ``last_deposit_time`` defaults to the
    creation time when omitted.
    """

    address: str = Field(
        ...,
        min_length=1,
        max_length=ADDRESS_MAX_LENGTH,
        examples=["0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"],
    )


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    address: str


class UserUpdate(CamelModel):
    """Schema for updating a user.

    All fields are optional; only provided fields will be updated.
    The address itself cannot be changed, and ``null`` is accepted only
    for ``groupId`` and ``lastDepositTime``.
    """

    group_id: Optional[int] = None
    total_deposits: Optional[int] = None
    credit_score: Optional[int] = None
    last_deposit_time: Optional[datetime] = None
    registered: Optional[bool] = None
    is_defaulted: Optional[bool] = None

    @field_validator("total_deposits", "credit_score", "registered", "is_defaulted")
    @classmethod
    def reject_null_values(cls, value):
        return reject_null(value)
