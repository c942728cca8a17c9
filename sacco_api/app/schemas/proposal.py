"""
Pydantic models for group proposals and votes.

Tallies (``votes_yes``/``votes_no``) are maintained by the storage
layer when votes are cast and cannot be supplied by clients on
creation.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import ADDRESS_MAX_LENGTH, CamelModel, reject_null


class ProposalBase(CamelModel):
    group_id: int
    description: str = Field(..., min_length=1, examples=["Raise the loan ceiling to 1000 USDC"])
    deadline: datetime = Field(..., examples=["2025-10-01T00:00:00Z"])


class ProposalCreate(ProposalBase):
    """Schema for creating a proposal.

    ``creator_address`` is only used for the activity feed entry; when
    omitted the group admin is credited.
    """

    creator_address: Optional[str] = Field(None, max_length=ADDRESS_MAX_LENGTH)


class ProposalRead(ProposalBase):
    id: int
    votes_yes: int = 0
    votes_no: int = 0
    executed: bool = False
    created_at: Optional[datetime] = None


class ProposalUpdate(CamelModel):
    """Schema for updating a proposal.

    All fields are optional; only provided fields will be updated.
    ``executor_address`` is not stored; it names the member credited
    in the activity feed when ``executed`` is set.
    """

    description: Optional[str] = Field(None, min_length=1)
    deadline: Optional[datetime] = None
    executed: Optional[bool] = None
    executor_address: Optional[str] = Field(None, max_length=ADDRESS_MAX_LENGTH)

    @field_validator("description", "deadline", "executed")
    @classmethod
    def reject_null_values(cls, value):
        return reject_null(value)


class VoteCast(CamelModel):
    """Request body for voting; the proposal comes from the URL."""

    voter_address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH)
    vote: bool


class VoteCreate(VoteCast):
    proposal_id: int


class VoteRead(VoteCreate):
    id: int
