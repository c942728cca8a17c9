"""
SQLite storage backend.

Each operation opens its own connection through ``core.db`` and
closes it before returning.  All queries use parameterised statements.
Booleans are stored as 0/1 and timestamps as ISO strings; rows are
converted back through the pydantic ``Read`` schemas.

``create_group`` and ``add_vote`` run both of their statements in a
single transaction and roll back if either fails.  Unique indices on
users, memberships and votes surface as ``DuplicateError``.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from ..core.db import get_connection, get_database_path, init_db
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

ModelT = TypeVar("ModelT", bound=BaseModel)


def _to_db(value: Any) -> Any:
    """Convert a Python value to what the column stores."""
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SQLiteStorage(SaccoStorage):
    """SQLite implementation of :class:`SaccoStorage`.

    Parameters
    ----------
    db_path : Optional[str]
        Database file.  Defaults to ``settings.database_url`` resolved
        by ``core.db.get_database_path``.
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = get_database_path(db_path)

    async def setup(self) -> None:
        version = init_db(self.db_path)
        logging.getLogger(__name__).info(
            "SQLite storage ready at %s (schema version %s)", self.db_path, version
        )

    # Helpers -------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        return get_connection(self.db_path)

    @staticmethod
    def _row_to(model: Type[ModelT], row: Optional[sqlite3.Row]) -> Optional[ModelT]:
        if row is None:
            return None
        return model.model_validate(dict(row))

    def _fetch_one(self, model: Type[ModelT], query: str, params: tuple) -> Optional[ModelT]:
        conn = self._connect()
        try:
            row = conn.execute(query, params).fetchone()
            return self._row_to(model, row)
        finally:
            conn.close()

    def _fetch_all(self, model: Type[ModelT], query: str, params: tuple = ()) -> List[ModelT]:
        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
            return [model.model_validate(dict(row)) for row in rows]
        finally:
            conn.close()

    def _insert(self, table: str, values: Dict[str, Any]) -> int:
        """Insert one row and return its id, committing immediately."""
        conn = self._connect()
        try:
            cursor = conn.execute(self._insert_sql(table, values), self._params(values))
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    @staticmethod
    def _insert_sql(table: str, values: Dict[str, Any]) -> str:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        return f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"

    @staticmethod
    def _params(values: Dict[str, Any]) -> tuple:
        return tuple(_to_db(value) for value in values.values())

    def _update(self, table: str, key_column: str, key: Any, updates: Dict[str, Any]) -> None:
        """Apply a partial update.  Column names come from the ``*_UPDATE_FIELDS`` sets."""
        if not updates:
            return
        assignments = ", ".join(f"{column} = ?" for column in updates)
        conn = self._connect()
        try:
            conn.execute(
                f"UPDATE {table} SET {assignments} WHERE {key_column} = ?",
                self._params(updates) + (key,),
            )
            conn.commit()
        finally:
            conn.close()

    # Users ---------------------------------------------------------------

    async def get_user(self, address: str) -> Optional[UserRead]:
        return self._fetch_one(
            UserRead, "SELECT * FROM users WHERE address = ?", (normalize_address(address),)
        )

    async def create_user(self, data: UserCreate) -> UserRead:
        values = data.model_dump()
        values["address"] = normalize_address(data.address)
        if values["last_deposit_time"] is None:
            values["last_deposit_time"] = utcnow()
        try:
            user_id = self._insert("users", values)
        except sqlite3.IntegrityError as exc:
            raise DuplicateError(f"User {values['address']} already exists") from exc
        return self._fetch_one(UserRead, "SELECT * FROM users WHERE id = ?", (user_id,))

    async def update_user(self, address: str, data: Dict[str, Any]) -> Optional[UserRead]:
        address = normalize_address(address)
        self._update("users", "address", address, filter_updates(data, USER_UPDATE_FIELDS))
        return await self.get_user(address)

    # Groups --------------------------------------------------------------

    async def get_group(self, group_id: int) -> Optional[GroupRead]:
        return self._fetch_one(GroupRead, "SELECT * FROM groups WHERE id = ?", (group_id,))

    async def get_groups(self) -> List[GroupRead]:
        return self._fetch_all(GroupRead, "SELECT * FROM groups ORDER BY id")

    async def create_group(self, data: GroupCreate) -> GroupRead:
        admin = normalize_address(data.admin)
        conn = self._connect()
        try:
            cursor = conn.execute(
                "INSERT INTO groups (name, admin, total_deposits, total_loaned) VALUES (?, ?, 0, 0)",
                (data.name, admin),
            )
            group_id = cursor.lastrowid
            conn.execute(
                "INSERT INTO group_members (group_id, member_address) VALUES (?, ?)",
                (group_id, admin),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return await self.get_group(group_id)

    async def update_group(self, group_id: int, data: Dict[str, Any]) -> Optional[GroupRead]:
        updates = filter_updates(data, GROUP_UPDATE_FIELDS)
        if updates.get("admin"):
            updates["admin"] = normalize_address(updates["admin"])
        self._update("groups", "id", group_id, updates)
        return await self.get_group(group_id)

    async def get_group_members(self, group_id: int) -> List[UserRead]:
        return self._fetch_all(
            UserRead,
            """
            SELECT users.* FROM group_members
            JOIN users ON users.address = group_members.member_address
            WHERE group_members.group_id = ?
            ORDER BY group_members.id
            """,
            (group_id,),
        )

    async def add_group_member(self, data: GroupMemberCreate) -> GroupMemberRead:
        values = {
            "group_id": data.group_id,
            "member_address": normalize_address(data.member_address),
        }
        try:
            member_id = self._insert("group_members", values)
        except sqlite3.IntegrityError as exc:
            raise DuplicateError(
                f"{values['member_address']} is already a member of group {data.group_id}"
            ) from exc
        return GroupMemberRead(id=member_id, **values)

    async def is_group_member(self, group_id: int, address: str) -> bool:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT 1 FROM group_members WHERE group_id = ? AND member_address = ?",
                (group_id, normalize_address(address)),
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    async def get_user_group(self, address: str) -> Optional[GroupRead]:
        return self._fetch_one(
            GroupRead,
            """
            SELECT groups.* FROM group_members
            JOIN groups ON groups.id = group_members.group_id
            WHERE group_members.member_address = ?
            ORDER BY group_members.id
            LIMIT 1
            """,
            (normalize_address(address),),
        )

    # Loans ---------------------------------------------------------------

    async def get_loan(self, loan_id: int) -> Optional[LoanRead]:
        return self._fetch_one(LoanRead, "SELECT * FROM loans WHERE id = ?", (loan_id,))

    async def get_user_loans(self, address: str) -> List[LoanRead]:
        return self._fetch_all(
            LoanRead,
            "SELECT * FROM loans WHERE borrower_address = ? ORDER BY id",
            (normalize_address(address),),
        )

    async def create_loan(self, data: LoanCreate) -> LoanRead:
        loan_id = self._insert(
            "loans",
            {
                "borrower_address": normalize_address(data.borrower_address),
                "amount": data.amount,
                "due_date": data.due_date,
                "repaid": data.repaid,
                "approved": data.approved,
                "defaulted": data.defaulted,
                "created_at": utcnow(),
            },
        )
        return await self.get_loan(loan_id)

    async def update_loan(self, loan_id: int, data: Dict[str, Any]) -> Optional[LoanRead]:
        self._update("loans", "id", loan_id, filter_updates(data, LOAN_UPDATE_FIELDS))
        return await self.get_loan(loan_id)

    # Guarantors ----------------------------------------------------------

    async def get_loan_guarantors(self, loan_id: int) -> List[GuarantorRead]:
        return self._fetch_all(
            GuarantorRead, "SELECT * FROM guarantors WHERE loan_id = ? ORDER BY id", (loan_id,)
        )

    async def add_guarantor(self, data: GuarantorCreate) -> GuarantorRead:
        values = {
            "loan_id": data.loan_id,
            "guarantor_address": normalize_address(data.guarantor_address),
            "approved": data.approved,
        }
        guarantor_id = self._insert("guarantors", values)
        return GuarantorRead(id=guarantor_id, **values)

    async def update_guarantor(
        self, loan_id: int, address: str, approved: bool
    ) -> Optional[GuarantorRead]:
        guarantor = self._fetch_one(
            GuarantorRead,
            "SELECT * FROM guarantors WHERE loan_id = ? AND guarantor_address = ? ORDER BY id LIMIT 1",
            (loan_id, normalize_address(address)),
        )
        if guarantor is None:
            return None
        self._update("guarantors", "id", guarantor.id, {"approved": approved})
        return guarantor.model_copy(update={"approved": approved})

    async def get_guarantor_requests(
        self, address: str, approved: Optional[bool] = None
    ) -> List[GuarantorRead]:
        query = "SELECT * FROM guarantors WHERE guarantor_address = ?"
        params: list = [normalize_address(address)]
        if approved is not None:
            query += " AND approved = ?"
            params.append(_to_db(approved))
        query += " ORDER BY id"
        return self._fetch_all(GuarantorRead, query, tuple(params))

    # Proposals -----------------------------------------------------------

    async def get_proposal(self, proposal_id: int) -> Optional[ProposalRead]:
        return self._fetch_one(
            ProposalRead, "SELECT * FROM proposals WHERE id = ?", (proposal_id,)
        )

    async def get_group_proposals(self, group_id: int) -> List[ProposalRead]:
        return self._fetch_all(
            ProposalRead, "SELECT * FROM proposals WHERE group_id = ? ORDER BY id", (group_id,)
        )

    async def create_proposal(self, data: ProposalCreate) -> ProposalRead:
        proposal_id = self._insert(
            "proposals",
            {
                "group_id": data.group_id,
                "description": data.description,
                "deadline": data.deadline,
                "votes_yes": 0,
                "votes_no": 0,
                "executed": False,
                "created_at": utcnow(),
            },
        )
        return await self.get_proposal(proposal_id)

    async def update_proposal(
        self, proposal_id: int, data: Dict[str, Any]
    ) -> Optional[ProposalRead]:
        self._update("proposals", "id", proposal_id, filter_updates(data, PROPOSAL_UPDATE_FIELDS))
        return await self.get_proposal(proposal_id)

    # Votes ---------------------------------------------------------------

    async def get_votes(self, proposal_id: int) -> List[VoteRead]:
        return self._fetch_all(
            VoteRead, "SELECT * FROM votes WHERE proposal_id = ? ORDER BY id", (proposal_id,)
        )

    async def add_vote(self, data: VoteCreate) -> VoteRead:
        voter = normalize_address(data.voter_address)
        tally = "votes_yes" if data.vote else "votes_no"
        conn = self._connect()
        try:
            cursor = conn.execute(
                "INSERT INTO votes (proposal_id, voter_address, vote) VALUES (?, ?, ?)",
                (data.proposal_id, voter, _to_db(data.vote)),
            )
            vote_id = cursor.lastrowid
            conn.execute(
                f"UPDATE proposals SET {tally} = {tally} + 1 WHERE id = ?",
                (data.proposal_id,),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise DuplicateError(f"{voter} already voted on proposal {data.proposal_id}") from exc
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return VoteRead(id=vote_id, proposal_id=data.proposal_id, voter_address=voter, vote=data.vote)

    async def has_voted(self, proposal_id: int, address: str) -> bool:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT 1 FROM votes WHERE proposal_id = ? AND voter_address = ?",
                (proposal_id, normalize_address(address)),
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    # Activities ----------------------------------------------------------

    async def get_group_activities(
        self, group_id: int, limit: int = DEFAULT_ACTIVITY_LIMIT
    ) -> List[ActivityRead]:
        return self._fetch_all(
            ActivityRead,
            """
            SELECT * FROM activities WHERE group_id = ?
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
            """,
            (group_id, limit),
        )

    async def add_activity(self, data: ActivityCreate) -> ActivityRead:
        values = {
            "group_id": data.group_id,
            "user_address": normalize_address(data.user_address),
            "activity_type": data.activity_type,
            "description": data.description,
            "timestamp": utcnow(),
        }
        activity_id = self._insert("activities", values)
        return ActivityRead(id=activity_id, **values)
