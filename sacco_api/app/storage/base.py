"""
Storage interface shared by the in-memory and SQLite backends.

Every operation is a coroutine and returns pydantic ``Read`` models.
Reads return ``None`` (or an empty list) when nothing matches and
updates on a missing record return ``None`` rather than raising, so
handlers can turn that into a 404.  Addresses are lowercased by the
implementations on every write and lookup.

Two operations perform more than one write and must do so as a single
unit of work:

* ``create_group`` inserts the group and enrols its admin as the
  first member.
* ``add_vote`` records the vote and increments the matching tally on
  the proposal.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Optional

from ..schemas.activity import ActivityCreate, ActivityRead
from ..schemas.group import GroupCreate, GroupMemberCreate, GroupMemberRead, GroupRead
from ..schemas.loan import GuarantorCreate, GuarantorRead, LoanCreate, LoanRead
from ..schemas.proposal import ProposalCreate, ProposalRead, VoteCreate, VoteRead
from ..schemas.user import UserCreate, UserRead

DEFAULT_ACTIVITY_LIMIT = 10


def normalize_address(address: str) -> str:
    """Canonical form of a wallet address used as a lookup key."""
    return address.strip().lower()


class SaccoStorage(abc.ABC):
    """Abstract storage backend.

    ``update_*`` methods take a plain dict of the fields to change
    (typically ``Update.model_dump(exclude_unset=True)``); keys that
    are not columns of the entity are ignored.
    """

    async def setup(self) -> None:
        """Prepare the backend before the first request."""

    # Users ---------------------------------------------------------------

    @abc.abstractmethod
    async def get_user(self, address: str) -> Optional[UserRead]:
        ...

    @abc.abstractmethod
    async def create_user(self, data: UserCreate) -> UserRead:
        """Insert a user; raises ``DuplicateError`` if the address exists."""

    @abc.abstractmethod
    async def update_user(self, address: str, data: Dict[str, Any]) -> Optional[UserRead]:
        ...

    # Groups --------------------------------------------------------------

    @abc.abstractmethod
    async def get_group(self, group_id: int) -> Optional[GroupRead]:
        ...

    @abc.abstractmethod
    async def get_groups(self) -> List[GroupRead]:
        ...

    @abc.abstractmethod
    async def create_group(self, data: GroupCreate) -> GroupRead:
        """Insert a group and add its admin as the first member."""

    @abc.abstractmethod
    async def update_group(self, group_id: int, data: Dict[str, Any]) -> Optional[GroupRead]:
        ...

    @abc.abstractmethod
    async def get_group_members(self, group_id: int) -> List[UserRead]:
        """Users belonging to a group; memberships without a user record are skipped."""

    @abc.abstractmethod
    async def add_group_member(self, data: GroupMemberCreate) -> GroupMemberRead:
        """Insert a membership; raises ``DuplicateError`` on a repeat."""

    @abc.abstractmethod
    async def is_group_member(self, group_id: int, address: str) -> bool:
        ...

    @abc.abstractmethod
    async def get_user_group(self, address: str) -> Optional[GroupRead]:
        """The earliest group the address joined, if any."""

    # Loans ---------------------------------------------------------------

    @abc.abstractmethod
    async def get_loan(self, loan_id: int) -> Optional[LoanRead]:
        ...

    @abc.abstractmethod
    async def get_user_loans(self, address: str) -> List[LoanRead]:
        ...

    @abc.abstractmethod
    async def create_loan(self, data: LoanCreate) -> LoanRead:
        """Insert a loan.  ``data.guarantors`` is not handled here."""

    @abc.abstractmethod
    async def update_loan(self, loan_id: int, data: Dict[str, Any]) -> Optional[LoanRead]:
        ...

    # Guarantors ----------------------------------------------------------

    @abc.abstractmethod
    async def get_loan_guarantors(self, loan_id: int) -> List[GuarantorRead]:
        ...

    @abc.abstractmethod
    async def add_guarantor(self, data: GuarantorCreate) -> GuarantorRead:
        ...

    @abc.abstractmethod
    async def update_guarantor(
        self, loan_id: int, address: str, approved: bool
    ) -> Optional[GuarantorRead]:
        ...

    @abc.abstractmethod
    async def get_guarantor_requests(
        self, address: str, approved: Optional[bool] = None
    ) -> List[GuarantorRead]:
        """Guarantor rows for an address, optionally filtered by approval."""

    # Proposals -----------------------------------------------------------

    @abc.abstractmethod
    async def get_proposal(self, proposal_id: int) -> Optional[ProposalRead]:
        ...

    @abc.abstractmethod
    async def get_group_proposals(self, group_id: int) -> List[ProposalRead]:
        ...

    @abc.abstractmethod
    async def create_proposal(self, data: ProposalCreate) -> ProposalRead:
        """Insert a proposal with zero tallies; ``creator_address`` is not stored."""

    @abc.abstractmethod
    async def update_proposal(
        self, proposal_id: int, data: Dict[str, Any]
    ) -> Optional[ProposalRead]:
        ...

    # Votes ---------------------------------------------------------------

    @abc.abstractmethod
    async def get_votes(self, proposal_id: int) -> List[VoteRead]:
        ...

    @abc.abstractmethod
    async def add_vote(self, data: VoteCreate) -> VoteRead:
        """Record a vote and bump the proposal tally.

        Raises ``DuplicateError`` if the voter already voted on the
        proposal; in that case neither write happens.
        """

    @abc.abstractmethod
    async def has_voted(self, proposal_id: int, address: str) -> bool:
        ...

    # Activities ----------------------------------------------------------

    @abc.abstractmethod
    async def get_group_activities(
        self, group_id: int, limit: int = DEFAULT_ACTIVITY_LIMIT
    ) -> List[ActivityRead]:
        """At most ``limit`` activities of a group, most recent first."""

    @abc.abstractmethod
    async def add_activity(self, data: ActivityCreate) -> ActivityRead:
        ...


# Columns that ``update_*`` may change, per entity.  Identifiers and the
# user address are never updatable.
USER_UPDATE_FIELDS = frozenset(
    {"group_id", "total_deposits", "credit_score", "last_deposit_time", "registered", "is_defaulted"}
)
GROUP_UPDATE_FIELDS = frozenset({"name", "admin", "total_deposits", "total_loaned"})
LOAN_UPDATE_FIELDS = frozenset({"amount", "due_date", "repaid", "approved", "defaulted"})
PROPOSAL_UPDATE_FIELDS = frozenset({"description", "deadline", "executed", "votes_yes", "votes_no"})


def filter_updates(data: Dict[str, Any], allowed: frozenset) -> Dict[str, Any]:
    """Drop keys of ``data`` that are not updatable columns."""
    return {key: value for key, value in data.items() if key in allowed}
