"""
Business logic for group proposals and voting.

One vote per address per proposal: the check here gives the client a
clear error, and the storage layer enforces the same rule so that two
concurrent requests cannot both be counted.  Deadlines are not
enforced; proposals are executed on chain and mirrored here.
"""

from __future__ import annotations

import logging
from typing import List

from ..core.exceptions import DuplicateError, NotFoundError
from ..schemas.activity import ActivityType
from ..schemas.proposal import (
    ProposalCreate,
    ProposalRead,
    ProposalUpdate,
    VoteCast,
    VoteCreate,
    VoteRead,
)
from ..storage.base import SaccoStorage
from .activity_service import ActivityService

logger = logging.getLogger(__name__)


class ProposalService:
    """Service class for proposals and votes."""

    @classmethod
    async def create_proposal(cls, storage: SaccoStorage, data: ProposalCreate) -> ProposalRead:
        """Create a proposal in an existing group.

        The feed entry is credited to ``creator_address`` or, when it is
        missing, to the group admin.
        """
        group = await storage.get_group(data.group_id)
        if group is None:
            raise NotFoundError("Group not found")
        proposal = await storage.create_proposal(data)
        logger.info("Proposal %s created in group %s", proposal.id, group.id)
        await ActivityService.record(
            storage,
            group.id,
            data.creator_address or group.admin,
            ActivityType.PROPOSAL_CREATED,
            f"New proposal: {proposal.description}",
        )
        return proposal

    @classmethod
    async def get_proposal(cls, storage: SaccoStorage, proposal_id: int) -> ProposalRead:
        proposal = await storage.get_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal not found")
        return proposal

    @classmethod
    async def update_proposal(
        cls, storage: SaccoStorage, proposal_id: int, data: ProposalUpdate
    ) -> ProposalRead:
        updates = data.model_dump(exclude_unset=True, exclude={"executor_address"})
        proposal = await storage.update_proposal(proposal_id, updates)
        if proposal is None:
            raise NotFoundError("Proposal not found")
        logger.info("Updated proposal %s", proposal.id)
        if data.executed:
            executor = data.executor_address
            if not executor:
                group = await storage.get_group(proposal.group_id)
                executor = group.admin if group else None
            if executor:
                await ActivityService.record(
                    storage,
                    proposal.group_id,
                    executor,
                    ActivityType.PROPOSAL_EXECUTED,
                    f'Proposal "{proposal.description}" was executed',
                )
        return proposal

    @classmethod
    async def list_votes(cls, storage: SaccoStorage, proposal_id: int) -> List[VoteRead]:
        proposal = await cls.get_proposal(storage, proposal_id)
        return await storage.get_votes(proposal.id)

    @classmethod
    async def cast_vote(cls, storage: SaccoStorage, proposal_id: int, data: VoteCast) -> VoteRead:
        """Record a yes/no vote.

        Raises ``NotFoundError`` for an unknown proposal and
        ``DuplicateError`` if the address already voted on it.
        """
        proposal = await cls.get_proposal(storage, proposal_id)
        if await storage.has_voted(proposal.id, data.voter_address):
            raise DuplicateError("Already voted on this proposal")
        try:
            vote = await storage.add_vote(
                VoteCreate(proposal_id=proposal.id, voter_address=data.voter_address, vote=data.vote)
            )
        except DuplicateError as exc:
            raise DuplicateError("Already voted on this proposal") from exc
        logger.info(
            "%s voted %s on proposal %s", vote.voter_address, "yes" if vote.vote else "no", proposal.id
        )
        await ActivityService.record(
            storage,
            proposal.group_id,
            vote.voter_address,
            ActivityType.VOTE_CAST,
            f'{vote.voter_address} voted {"Yes" if vote.vote else "No"} on proposal: '
            f'"{proposal.description}"',
        )
        return vote
