"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations (``init_db``).  It uses
SQLite as a lightweight embedded database; to switch to another DBMS
you would replace connection logic and adapt SQL syntax accordingly.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .config import settings


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            address VARCHAR(42) NOT NULL UNIQUE,
            group_id INTEGER,
            total_deposits INTEGER DEFAULT 0,
            credit_score INTEGER DEFAULT 100,
            last_deposit_time TIMESTAMP,
            registered INTEGER DEFAULT 0,
            is_defaulted INTEGER DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS groups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            admin VARCHAR(42) NOT NULL,
            total_deposits INTEGER DEFAULT 0,
            total_loaned INTEGER DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS group_members (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            group_id INTEGER NOT NULL,
            member_address VARCHAR(42) NOT NULL
        );

        CREATE TABLE IF NOT EXISTS loans (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            borrower_address VARCHAR(42) NOT NULL,
            amount INTEGER NOT NULL,
            due_date TIMESTAMP NOT NULL,
            repaid INTEGER DEFAULT 0,
            approved INTEGER DEFAULT 0,
            defaulted INTEGER DEFAULT 0,
            created_at TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS guarantors (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            loan_id INTEGER NOT NULL,
            guarantor_address VARCHAR(42) NOT NULL,
            approved INTEGER DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS proposals (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            group_id INTEGER NOT NULL,
            description TEXT NOT NULL,
            votes_yes INTEGER DEFAULT 0,
            votes_no INTEGER DEFAULT 0,
            deadline TIMESTAMP NOT NULL,
            executed INTEGER DEFAULT 0,
            created_at TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS votes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            proposal_id INTEGER NOT NULL,
            voter_address VARCHAR(42) NOT NULL,
            vote INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS activities (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            group_id INTEGER NOT NULL,
            user_address VARCHAR(42) NOT NULL,
            activity_type VARCHAR(50) NOT NULL,
            description TEXT NOT NULL,
            timestamp TIMESTAMP
        );
        """,
    ),
    # Migration 2: lookup indices and uniqueness rules
    (
        2,
        """
        -- One membership row per (group, address) and one vote per
        -- (proposal, voter).  Handlers check these before writing; the
        -- indices close the gap between check and insert.
        CREATE UNIQUE INDEX IF NOT EXISTS idx_group_members_unique
            ON group_members(group_id, member_address);
        CREATE UNIQUE INDEX IF NOT EXISTS idx_votes_unique
            ON votes(proposal_id, voter_address);

        CREATE INDEX IF NOT EXISTS idx_group_members_address ON group_members(member_address);
        CREATE INDEX IF NOT EXISTS idx_loans_borrower ON loans(borrower_address);
        CREATE INDEX IF NOT EXISTS idx_guarantors_loan_id ON guarantors(loan_id);
        CREATE INDEX IF NOT EXISTS idx_guarantors_address ON guarantors(guarantor_address);
        CREATE INDEX IF NOT EXISTS idx_proposals_group_id ON proposals(group_id);
        CREATE INDEX IF NOT EXISTS idx_activities_group_ts ON activities(group_id, timestamp);
        """,
    ),
]


def get_database_path(db_url: Optional[str] = None) -> str:
    """Compute the path to the SQLite database file.

    ``db_url`` defaults to ``settings.database_url``.  An absolute path
    is used directly; anything else is resolved relative to the project
    root.
    """
    db_url = db_url or settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent  # project root
    return str((base_dir / db_url).resolve())


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name.  No
    type detection is enabled; timestamps are stored as ISO strings
    and parsed by the pydantic schemas.
    """
    conn = sqlite3.connect(db_path or get_database_path())
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: Optional[str] = None) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection(db_path)
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None) -> int:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  Returns the schema version after the run.  If you
    add a new migration, append it with an incremented version number.
    """
    with get_cursor(db_path) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
    return current_version
