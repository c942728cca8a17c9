"""
Business logic for Sacco members.

Users are keyed by wallet address.  Registration is idempotent: a
second registration of a known address returns the stored record
instead of failing, because the frontend registers whenever it sees a
wallet it has no record for.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from ..core.exceptions import DuplicateError, NotFoundError
from ..schemas.group import GroupRead
from ..schemas.loan import LoanWithGuarantors
from ..schemas.user import UserCreate, UserRead, UserUpdate
from ..storage.base import SaccoStorage

logger = logging.getLogger(__name__)


class UserService:
    """Service class for users."""

    @classmethod
    async def register_user(cls, storage: SaccoStorage, data: UserCreate) -> Tuple[UserRead, bool]:
        """Create a user unless the address is already known.

        Returns ``(user, created)`` where ``created`` is ``False`` when an
        existing record was returned.
        """
        existing = await storage.get_user(data.address)
        if existing is not None:
            return existing, False
        try:
            user = await storage.create_user(data)
        except DuplicateError:
            # Registered concurrently between the lookup and the insert.
            existing = await storage.get_user(data.address)
            if existing is None:
                raise
            return existing, False
        logger.info("Registered user %s", user.address)
        return user, True

    @classmethod
    async def get_user(cls, storage: SaccoStorage, address: str) -> UserRead:
        user = await storage.get_user(address)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @classmethod
    async def update_user(cls, storage: SaccoStorage, address: str, data: UserUpdate) -> UserRead:
        """Apply the fields explicitly set in ``data``."""
        user = await storage.update_user(address, data.model_dump(exclude_unset=True))
        if user is None:
            raise NotFoundError("User not found")
        logger.info("Updated user %s", user.address)
        return user

    @classmethod
    async def get_user_group(cls, storage: SaccoStorage, address: str) -> GroupRead:
        group = await storage.get_user_group(address)
        if group is None:
            raise NotFoundError("User not in any group")
        return group

    @classmethod
    async def list_user_loans(cls, storage: SaccoStorage, address: str) -> List[LoanWithGuarantors]:
        """Loans borrowed by ``address``, each with its guarantors."""
        loans = await storage.get_user_loans(address)
        result = []
        for loan in loans:
            guarantors = await storage.get_loan_guarantors(loan.id)
            result.append(LoanWithGuarantors(**loan.model_dump(), guarantors=guarantors))
        return result
