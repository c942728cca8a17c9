"""
Proposal and vote endpoints.

Proposals are created in a group and voted on by its members.  The
group's proposal list lives under ``/groups/{group_id}/proposals``.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from sacco_api.app.api.deps import get_storage
from sacco_api.app.core.exceptions import DuplicateError, NotFoundError
from sacco_api.app.schemas.proposal import (
    ProposalCreate,
    ProposalRead,
    ProposalUpdate,
    VoteCast,
    VoteRead,
)
from sacco_api.app.services.proposal_service import ProposalService
from sacco_api.app.storage import SaccoStorage

router = APIRouter()


@router.post("", response_model=ProposalRead, status_code=status.HTTP_201_CREATED)
async def create_proposal(
    proposal_in: ProposalCreate, storage: SaccoStorage = Depends(get_storage)
) -> ProposalRead:
    try:
        return await ProposalService.create_proposal(storage, proposal_in)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{proposal_id}", response_model=ProposalRead)
async def get_proposal(
    proposal_id: int, storage: SaccoStorage = Depends(get_storage)
) -> ProposalRead:
    try:
        return await ProposalService.get_proposal(storage, proposal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.patch("/{proposal_id}", response_model=ProposalRead)
async def update_proposal(
    proposal_id: int,
    updates: ProposalUpdate,
    storage: SaccoStorage = Depends(get_storage),
) -> ProposalRead:
    """Update a proposal, typically to mark it executed.

    ``executorAddress`` in the body names the member credited in the
    activity feed; it is not stored on the proposal.
    """
    try:
        return await ProposalService.update_proposal(storage, proposal_id, updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{proposal_id}/votes", response_model=List[VoteRead])
async def list_votes(
    proposal_id: int, storage: SaccoStorage = Depends(get_storage)
) -> List[VoteRead]:
    try:
        return await ProposalService.list_votes(storage, proposal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post(
    "/{proposal_id}/votes",
    response_model=VoteRead,
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    proposal_id: int,
    vote_in: VoteCast,
    storage: SaccoStorage = Depends(get_storage),
) -> VoteRead:
    """Cast a yes/no vote.  Each address may vote once per proposal."""
    try:
        return await ProposalService.cast_vote(storage, proposal_id, vote_in)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except DuplicateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
