"""
Loan and guarantor endpoints.

Guarantors are nested under their loan and addressed by wallet
address: ``PATCH /loans/{loan_id}/guarantors/{address}`` records an
approve or decline decision.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from sacco_api.app.api.deps import get_storage
from sacco_api.app.core.exceptions import NotFoundError
from sacco_api.app.schemas.loan import (
    GuarantorAdd,
    GuarantorRead,
    GuarantorUpdate,
    LoanCreate,
    LoanRead,
    LoanUpdate,
    LoanWithGuarantors,
)
from sacco_api.app.services.loan_service import LoanService
from sacco_api.app.storage import SaccoStorage

router = APIRouter()


@router.post("", response_model=LoanRead, status_code=status.HTTP_201_CREATED)
async def request_loan(loan_in: LoanCreate, storage: SaccoStorage = Depends(get_storage)) -> LoanRead:
    """Request a loan.

    Addresses listed in ``guarantors`` are attached to the loan as
    unapproved guarantors.
    """
    return await LoanService.request_loan(storage, loan_in)


@router.get("/{loan_id}", response_model=LoanWithGuarantors)
async def get_loan(loan_id: int, storage: SaccoStorage = Depends(get_storage)) -> LoanWithGuarantors:
    try:
        return await LoanService.get_loan(storage, loan_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.patch("/{loan_id}", response_model=LoanRead)
async def update_loan(
    loan_id: int,
    updates: LoanUpdate,
    storage: SaccoStorage = Depends(get_storage),
) -> LoanRead:
    """Update loan flags or terms.  Omitted fields are left unchanged."""
    try:
        return await LoanService.update_loan(storage, loan_id, updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{loan_id}/guarantors", response_model=List[GuarantorRead])
async def list_loan_guarantors(
    loan_id: int, storage: SaccoStorage = Depends(get_storage)
) -> List[GuarantorRead]:
    try:
        return await LoanService.list_guarantors(storage, loan_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post(
    "/{loan_id}/guarantors",
    response_model=GuarantorRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_guarantor(
    loan_id: int,
    guarantor_in: GuarantorAdd,
    storage: SaccoStorage = Depends(get_storage),
) -> GuarantorRead:
    try:
        return await LoanService.add_guarantor(storage, loan_id, guarantor_in)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.patch("/{loan_id}/guarantors/{address}", response_model=GuarantorRead)
async def update_guarantor(
    loan_id: int,
    address: str,
    decision: GuarantorUpdate,
    storage: SaccoStorage = Depends(get_storage),
) -> GuarantorRead:
    """Approve (``{"approved": true}``) or decline a guarantee request."""
    try:
        return await LoanService.set_guarantor_approval(storage, loan_id, address, decision.approved)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
