"""
Pydantic models for the group activity feed.

Activities are an append-only audit log: each mutation the API
performs on behalf of a member adds a short human-readable line.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .common import ADDRESS_MAX_LENGTH, CamelModel


class ActivityType(str, Enum):
    CREATE_GROUP = "create_group"
    JOIN_GROUP = "join_group"
    LOAN_REQUEST = "loan_request"
    LOAN_UPDATE = "loan_update"
    LOAN_APPROVED = "loan_approved"
    LOAN_REPAID = "loan_repaid"
    LOAN_DEFAULTED = "loan_defaulted"
    GUARANTOR_ADDED = "guarantor_added"
    GUARANTOR_APPROVED = "guarantor_approved"
    PROPOSAL_CREATED = "proposal_created"
    PROPOSAL_EXECUTED = "proposal_executed"
    VOTE_CAST = "vote_cast"


class ActivityCreate(CamelModel):
    group_id: int
    user_address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH)
    activity_type: str = Field(..., min_length=1, max_length=50)
    description: str


class ActivityRead(ActivityCreate):
    id: int
    timestamp: Optional[datetime] = None
