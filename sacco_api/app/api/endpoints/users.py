"""
User endpoints.

Users are addressed by wallet address in the URL; any case variant of
an address resolves to the same record.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sacco_api.app.api.deps import get_storage
from sacco_api.app.core.exceptions import NotFoundError
from sacco_api.app.schemas.group import GroupRead
from sacco_api.app.schemas.loan import LoanWithGuarantors
from sacco_api.app.schemas.user import UserCreate, UserRead, UserUpdate
from sacco_api.app.services.user_service import UserService
from sacco_api.app.storage import SaccoStorage

router = APIRouter()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    response: Response,
    storage: SaccoStorage = Depends(get_storage),
) -> UserRead:
    """Register a wallet address.

    Returns 201 with the new record, or 200 with the stored record if
    the address is already registered.
    """
    user, created = await UserService.register_user(storage, user_in)
    if not created:
        response.status_code = status.HTTP_200_OK
    return user


@router.get("/{address}", response_model=UserRead)
async def get_user(address: str, storage: SaccoStorage = Depends(get_storage)) -> UserRead:
    try:
        return await UserService.get_user(storage, address)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.patch("/{address}", response_model=UserRead)
async def update_user(
    address: str,
    updates: UserUpdate,
    storage: SaccoStorage = Depends(get_storage),
) -> UserRead:
    """Update a user.  Fields omitted from the body are left unchanged."""
    try:
        return await UserService.update_user(storage, address, updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{address}/group", response_model=GroupRead)
async def get_user_group(address: str, storage: SaccoStorage = Depends(get_storage)) -> GroupRead:
    try:
        return await UserService.get_user_group(storage, address)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{address}/loans", response_model=List[LoanWithGuarantors])
async def list_user_loans(
    address: str, storage: SaccoStorage = Depends(get_storage)
) -> List[LoanWithGuarantors]:
    """Loans borrowed by the address, each including its guarantors."""
    return await UserService.list_user_loans(storage, address)
