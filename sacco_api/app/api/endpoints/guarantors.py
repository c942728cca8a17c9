"""
Guarantor request endpoints.

Lists the loans a member was asked to guarantee.  The frontend shows
two tabs: pending requests (``?approved=false``) and approved history
(``?approved=true``); omitting the filter returns both.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from sacco_api.app.api.deps import get_storage
from sacco_api.app.schemas.loan import GuarantorRequest
from sacco_api.app.services.loan_service import LoanService
from sacco_api.app.storage import SaccoStorage

router = APIRouter()


@router.get("/{address}", response_model=List[GuarantorRequest])
async def list_guarantor_requests(
    address: str,
    approved: Optional[bool] = Query(None, description="Filter by approval state"),
    storage: SaccoStorage = Depends(get_storage),
) -> List[GuarantorRequest]:
    return await LoanService.list_guarantor_requests(storage, address, approved)
