"""
Business logic for loans and guarantors.

Loan state (approval, repayment, default) is decided on chain; these
operations mirror it.  Activity entries are written to the borrower's
group, so a borrower without a user record or without a group produces
no feed entries.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..core.exceptions import NotFoundError
from ..schemas.activity import ActivityType
from ..schemas.loan import (
    GuarantorAdd,
    GuarantorCreate,
    GuarantorRead,
    GuarantorRequest,
    LoanCreate,
    LoanRead,
    LoanUpdate,
    LoanWithGuarantors,
)
from ..storage.base import SaccoStorage
from .activity_service import ActivityService

logger = logging.getLogger(__name__)


class LoanService:
    """Service class for loans and their guarantors."""

    @staticmethod
    async def _borrower_group_id(storage: SaccoStorage, loan: LoanRead) -> Optional[int]:
        user = await storage.get_user(loan.borrower_address)
        return user.group_id if user is not None else None

    @classmethod
    async def request_loan(cls, storage: SaccoStorage, data: LoanCreate) -> LoanRead:
        """Create a loan and its (unapproved) guarantors."""
        loan = await storage.create_loan(data)
        for guarantor_address in data.guarantors:
            await storage.add_guarantor(
                GuarantorCreate(loan_id=loan.id, guarantor_address=guarantor_address, approved=False)
            )
        logger.info(
            "Loan %s of %s requested by %s with %d guarantor(s)",
            loan.id, loan.amount, loan.borrower_address, len(data.guarantors),
        )
        group_id = await cls._borrower_group_id(storage, loan)
        if group_id:
            await ActivityService.record(
                storage,
                group_id,
                loan.borrower_address,
                ActivityType.LOAN_REQUEST,
                f"{loan.borrower_address} requested a loan of {loan.amount} USDC",
            )
        return loan

    @classmethod
    async def get_loan(cls, storage: SaccoStorage, loan_id: int) -> LoanWithGuarantors:
        loan = await storage.get_loan(loan_id)
        if loan is None:
            raise NotFoundError("Loan not found")
        guarantors = await storage.get_loan_guarantors(loan.id)
        return LoanWithGuarantors(**loan.model_dump(), guarantors=guarantors)

    @classmethod
    async def update_loan(cls, storage: SaccoStorage, loan_id: int, data: LoanUpdate) -> LoanRead:
        """Apply a partial update and describe it in the borrower's group feed.

        The activity type follows the first flag set to true in the
        request, checked in the order approved, repaid, defaulted.
        """
        loan = await storage.update_loan(loan_id, data.model_dump(exclude_unset=True))
        if loan is None:
            raise NotFoundError("Loan not found")
        logger.info("Updated loan %s", loan.id)

        group_id = await cls._borrower_group_id(storage, loan)
        if group_id:
            if data.approved:
                activity_type = ActivityType.LOAN_APPROVED
                description = f"Loan for {loan.borrower_address} was approved"
            elif data.repaid:
                activity_type = ActivityType.LOAN_REPAID
                description = f"{loan.borrower_address} repaid loan of {loan.amount} USDC"
            elif data.defaulted:
                activity_type = ActivityType.LOAN_DEFAULTED
                description = f"{loan.borrower_address} defaulted on loan of {loan.amount} USDC"
            else:
                activity_type = ActivityType.LOAN_UPDATE
                description = f"Loan {loan.id} was updated"
            await ActivityService.record(
                storage, group_id, loan.borrower_address, activity_type, description
            )
        return loan

    @classmethod
    async def list_guarantors(cls, storage: SaccoStorage, loan_id: int) -> List[GuarantorRead]:
        if await storage.get_loan(loan_id) is None:
            raise NotFoundError("Loan not found")
        return await storage.get_loan_guarantors(loan_id)

    @classmethod
    async def add_guarantor(
        cls, storage: SaccoStorage, loan_id: int, data: GuarantorAdd
    ) -> GuarantorRead:
        loan = await storage.get_loan(loan_id)
        if loan is None:
            raise NotFoundError("Loan not found")
        guarantor = await storage.add_guarantor(
            GuarantorCreate(
                loan_id=loan.id, guarantor_address=data.guarantor_address, approved=data.approved
            )
        )
        logger.info("%s added as guarantor of loan %s", guarantor.guarantor_address, loan.id)
        group_id = await cls._borrower_group_id(storage, loan)
        if group_id:
            await ActivityService.record(
                storage,
                group_id,
                guarantor.guarantor_address,
                ActivityType.GUARANTOR_ADDED,
                f"{guarantor.guarantor_address} was added as guarantor for "
                f"{loan.borrower_address}'s loan",
            )
        return guarantor

    @classmethod
    async def set_guarantor_approval(
        cls, storage: SaccoStorage, loan_id: int, address: str, approved: bool
    ) -> GuarantorRead:
        """Record a guarantor's approve/decline decision on a loan."""
        guarantor = await storage.update_guarantor(loan_id, address, approved)
        if guarantor is None:
            raise NotFoundError("Guarantor not found")
        logger.info(
            "Guarantor %s %s loan %s",
            guarantor.guarantor_address, "approved" if approved else "declined", loan_id,
        )
        if approved:
            loan = await storage.get_loan(loan_id)
            group_id = await cls._borrower_group_id(storage, loan) if loan else None
            if group_id:
                await ActivityService.record(
                    storage,
                    group_id,
                    guarantor.guarantor_address,
                    ActivityType.GUARANTOR_APPROVED,
                    f"{guarantor.guarantor_address} approved loan for {loan.borrower_address}",
                )
        return guarantor

    @classmethod
    async def list_guarantor_requests(
        cls, storage: SaccoStorage, address: str, approved: Optional[bool] = None
    ) -> List[GuarantorRequest]:
        """Loans ``address`` was asked to guarantee, each with the loan attached.

        ``approved=False`` gives the pending requests and ``approved=True``
        the history of approved ones.
        """
        items = []
        for guarantor in await storage.get_guarantor_requests(address, approved):
            loan = await storage.get_loan(guarantor.loan_id)
            if loan is None:
                continue
            items.append(GuarantorRequest(**guarantor.model_dump(), loan=loan))
        return items
