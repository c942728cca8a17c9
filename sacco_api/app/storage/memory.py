"""
In-memory storage backend.

Keeps one dict per entity plus secondary indexes (members by group,
loans by borrower, guarantors by loan, proposals by group, votes by
proposal, activities by group) and a counter per entity for ids.
Nothing survives a restart; use it for tests and demos.

Mutations run under a re-entrant lock.  The two multi-step writes
(``create_group`` and ``add_vote``) validate before they touch any
map, so either both of their writes land or neither does.
"""

from __future__ import annotations

import itertools
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional

from ..core.exceptions import DuplicateError
from ..schemas.activity import ActivityCreate, ActivityRead
from ..schemas.common import utcnow
from ..schemas.group import GroupCreate, GroupMemberCreate, GroupMemberRead, GroupRead
from ..schemas.loan import GuarantorCreate, GuarantorRead, LoanCreate, LoanRead
from ..schemas.proposal import ProposalCreate, ProposalRead, VoteCreate, VoteRead
from ..schemas.user import UserCreate, UserRead
from .base import (
    DEFAULT_ACTIVITY_LIMIT,
    GROUP_UPDATE_FIELDS,
    LOAN_UPDATE_FIELDS,
    PROPOSAL_UPDATE_FIELDS,
    USER_UPDATE_FIELDS,
    SaccoStorage,
    filter_updates,
    normalize_address,
)


class MemStorage(SaccoStorage):
    """Dict-backed implementation of :class:`SaccoStorage`."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: Dict[str, UserRead] = {}
        self._groups: Dict[int, GroupRead] = {}
        self._members: Dict[int, List[GroupMemberRead]] = defaultdict(list)
        self._loans: Dict[int, LoanRead] = {}
        self._loans_by_borrower: Dict[str, List[int]] = defaultdict(list)
        self._guarantors: Dict[int, List[GuarantorRead]] = defaultdict(list)
        self._proposals: Dict[int, ProposalRead] = {}
        self._proposals_by_group: Dict[int, List[int]] = defaultdict(list)
        self._votes: Dict[int, List[VoteRead]] = defaultdict(list)
        self._activities: Dict[int, List[ActivityRead]] = defaultdict(list)
        self._ids = {
            name: itertools.count(1)
            for name in (
                "user", "group", "group_member", "loan",
                "guarantor", "proposal", "vote", "activity",
            )
        }

    def _next_id(self, entity: str) -> int:
        return next(self._ids[entity])

    # Users ---------------------------------------------------------------

    async def get_user(self, address: str) -> Optional[UserRead]:
        return self._users.get(normalize_address(address))

    async def create_user(self, data: UserCreate) -> UserRead:
        address = normalize_address(data.address)
        with self._lock:
            if address in self._users:
                raise DuplicateError(f"User {address} already exists")
            fields = data.model_dump()
            fields["address"] = address
            if fields["last_deposit_time"] is None:
                fields["last_deposit_time"] = utcnow()
            user = UserRead(id=self._next_id("user"), **fields)
            self._users[address] = user
        return user

    async def update_user(self, address: str, data: Dict[str, Any]) -> Optional[UserRead]:
        address = normalize_address(address)
        with self._lock:
            user = self._users.get(address)
            if user is None:
                return None
            user = user.model_copy(update=filter_updates(data, USER_UPDATE_FIELDS))
            self._users[address] = user
        return user

    # Groups --------------------------------------------------------------

    async def get_group(self, group_id: int) -> Optional[GroupRead]:
        return self._groups.get(group_id)

    async def get_groups(self) -> List[GroupRead]:
        return list(self._groups.values())

    async def create_group(self, data: GroupCreate) -> GroupRead:
        admin = normalize_address(data.admin)
        with self._lock:
            group = GroupRead(
                id=self._next_id("group"),
                name=data.name,
                admin=admin,
                total_deposits=0,
                total_loaned=0,
            )
            self._groups[group.id] = group
            self._insert_member(group.id, admin)
        return group

    async def update_group(self, group_id: int, data: Dict[str, Any]) -> Optional[GroupRead]:
        updates = filter_updates(data, GROUP_UPDATE_FIELDS)
        if updates.get("admin"):
            updates["admin"] = normalize_address(updates["admin"])
        with self._lock:
            group = self._groups.get(group_id)
            if group is None:
                return None
            group = group.model_copy(update=updates)
            self._groups[group_id] = group
        return group

    async def get_group_members(self, group_id: int) -> List[UserRead]:
        users = []
        for member in self._members.get(group_id, []):
            user = self._users.get(member.member_address)
            if user is not None:
                users.append(user)
        return users

    async def add_group_member(self, data: GroupMemberCreate) -> GroupMemberRead:
        address = normalize_address(data.member_address)
        with self._lock:
            if self._find_member(data.group_id, address) is not None:
                raise DuplicateError(f"{address} is already a member of group {data.group_id}")
            return self._insert_member(data.group_id, address)

    def _find_member(self, group_id: int, address: str) -> Optional[GroupMemberRead]:
        for member in self._members.get(group_id, []):
            if member.member_address == address:
                return member
        return None

    def _insert_member(self, group_id: int, address: str) -> GroupMemberRead:
        member = GroupMemberRead(
            id=self._next_id("group_member"), group_id=group_id, member_address=address
        )
        self._members[group_id].append(member)
        return member

    async def is_group_member(self, group_id: int, address: str) -> bool:
        return self._find_member(group_id, normalize_address(address)) is not None

    async def get_user_group(self, address: str) -> Optional[GroupRead]:
        address = normalize_address(address)
        memberships = [
            member
            for members in self._members.values()
            for member in members
            if member.member_address == address
        ]
        if not memberships:
            return None
        earliest = min(memberships, key=lambda member: member.id)
        return self._groups.get(earliest.group_id)

    # Loans ---------------------------------------------------------------

    async def get_loan(self, loan_id: int) -> Optional[LoanRead]:
        return self._loans.get(loan_id)

    async def get_user_loans(self, address: str) -> List[LoanRead]:
        loan_ids = self._loans_by_borrower.get(normalize_address(address), [])
        return [self._loans[loan_id] for loan_id in loan_ids if loan_id in self._loans]

    async def create_loan(self, data: LoanCreate) -> LoanRead:
        borrower = normalize_address(data.borrower_address)
        with self._lock:
            loan = LoanRead(
                id=self._next_id("loan"),
                borrower_address=borrower,
                amount=data.amount,
                due_date=data.due_date,
                repaid=data.repaid,
                approved=data.approved,
                defaulted=data.defaulted,
                created_at=utcnow(),
            )
            self._loans[loan.id] = loan
            self._loans_by_borrower[borrower].append(loan.id)
        return loan

    async def update_loan(self, loan_id: int, data: Dict[str, Any]) -> Optional[LoanRead]:
        with self._lock:
            loan = self._loans.get(loan_id)
            if loan is None:
                return None
            loan = loan.model_copy(update=filter_updates(data, LOAN_UPDATE_FIELDS))
            self._loans[loan_id] = loan
        return loan

    # Guarantors ----------------------------------------------------------

    async def get_loan_guarantors(self, loan_id: int) -> List[GuarantorRead]:
        return list(self._guarantors.get(loan_id, []))

    async def add_guarantor(self, data: GuarantorCreate) -> GuarantorRead:
        with self._lock:
            guarantor = GuarantorRead(
                id=self._next_id("guarantor"),
                loan_id=data.loan_id,
                guarantor_address=normalize_address(data.guarantor_address),
                approved=data.approved,
            )
            self._guarantors[data.loan_id].append(guarantor)
        return guarantor

    async def update_guarantor(
        self, loan_id: int, address: str, approved: bool
    ) -> Optional[GuarantorRead]:
        address = normalize_address(address)
        with self._lock:
            guarantors = self._guarantors.get(loan_id, [])
            for index, guarantor in enumerate(guarantors):
                if guarantor.guarantor_address == address:
                    guarantors[index] = guarantor.model_copy(update={"approved": approved})
                    return guarantors[index]
        return None

    async def get_guarantor_requests(
        self, address: str, approved: Optional[bool] = None
    ) -> List[GuarantorRead]:
        address = normalize_address(address)
        rows = [
            guarantor
            for guarantors in self._guarantors.values()
            for guarantor in guarantors
            if guarantor.guarantor_address == address
            and (approved is None or guarantor.approved == approved)
        ]
        return sorted(rows, key=lambda guarantor: guarantor.id)

    # Proposals -----------------------------------------------------------

    async def get_proposal(self, proposal_id: int) -> Optional[ProposalRead]:
        return self._proposals.get(proposal_id)

    async def get_group_proposals(self, group_id: int) -> List[ProposalRead]:
        proposal_ids = self._proposals_by_group.get(group_id, [])
        return [self._proposals[pid] for pid in proposal_ids if pid in self._proposals]

    async def create_proposal(self, data: ProposalCreate) -> ProposalRead:
        with self._lock:
            proposal = ProposalRead(
                id=self._next_id("proposal"),
                group_id=data.group_id,
                description=data.description,
                deadline=data.deadline,
                votes_yes=0,
                votes_no=0,
                executed=False,
                created_at=utcnow(),
            )
            self._proposals[proposal.id] = proposal
            self._proposals_by_group[data.group_id].append(proposal.id)
        return proposal

    async def update_proposal(
        self, proposal_id: int, data: Dict[str, Any]
    ) -> Optional[ProposalRead]:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            if proposal is None:
                return None
            proposal = proposal.model_copy(update=filter_updates(data, PROPOSAL_UPDATE_FIELDS))
            self._proposals[proposal_id] = proposal
        return proposal

    # Votes ---------------------------------------------------------------

    async def get_votes(self, proposal_id: int) -> List[VoteRead]:
        return list(self._votes.get(proposal_id, []))

    async def add_vote(self, data: VoteCreate) -> VoteRead:
        voter = normalize_address(data.voter_address)
        with self._lock:
            if any(v.voter_address == voter for v in self._votes.get(data.proposal_id, [])):
                raise DuplicateError(f"{voter} already voted on proposal {data.proposal_id}")
            vote = VoteRead(
                id=self._next_id("vote"),
                proposal_id=data.proposal_id,
                voter_address=voter,
                vote=data.vote,
            )
            self._votes[data.proposal_id].append(vote)
            proposal = self._proposals.get(data.proposal_id)
            if proposal is not None:
                tally = "votes_yes" if data.vote else "votes_no"
                self._proposals[proposal.id] = proposal.model_copy(
                    update={tally: getattr(proposal, tally) + 1}
                )
        return vote

    async def has_voted(self, proposal_id: int, address: str) -> bool:
        address = normalize_address(address)
        return any(v.voter_address == address for v in self._votes.get(proposal_id, []))

    # Activities ----------------------------------------------------------

    async def get_group_activities(
        self, group_id: int, limit: int = DEFAULT_ACTIVITY_LIMIT
    ) -> List[ActivityRead]:
        activities = sorted(
            self._activities.get(group_id, []),
            key=lambda activity: (activity.timestamp, activity.id),
            reverse=True,
        )
        return activities[:limit]

    async def add_activity(self, data: ActivityCreate) -> ActivityRead:
        with self._lock:
            activity = ActivityRead(
                id=self._next_id("activity"),
                group_id=data.group_id,
                user_address=normalize_address(data.user_address),
                activity_type=data.activity_type,
                description=data.description,
                timestamp=utcnow(),
            )
            self._activities[data.group_id].append(activity)
        return activity
