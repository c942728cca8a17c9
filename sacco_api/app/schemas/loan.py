"""
Pydantic models for loans and their guarantors.

A loan goes through requested → approved → repaid or defaulted.  The
flags are independent booleans mirrored from the contract; nothing
here enforces the lifecycle.  Guarantors are group members who
co-sign a loan before it is disbursed.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .common import ADDRESS_MAX_LENGTH, Address, CamelModel, reject_null


class LoanBase(CamelModel):
    borrower_address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH)
    amount: int = Field(..., gt=0, examples=[500])
    due_date: datetime = Field(..., examples=["2025-12-01T00:00:00Z"])
    repaid: bool = False
    approved: bool = False
    defaulted: bool = False


class LoanCreate(LoanBase):
    """Schema for requesting a loan.

    ``guarantors`` is an optional list of addresses; each one is
    recorded as an unapproved guarantor of the new loan.
    """

    guarantors: List[Address] = Field(default_factory=list)


class LoanRead(LoanBase):
    """Schema for reading a loan from the API."""

    id: int
    created_at: Optional[datetime] = None


class LoanUpdate(CamelModel):
    """Schema for updating a loan.

    All fields are optional; only provided fields will be updated.
    """

    amount: Optional[int] = Field(None, gt=0)
    due_date: Optional[datetime] = None
    repaid: Optional[bool] = None
    approved: Optional[bool] = None
    defaulted: Optional[bool] = None

    @field_validator("amount", "due_date", "repaid", "approved", "defaulted")
    @classmethod
    def reject_null_values(cls, value):
        return reject_null(value)


class GuarantorAdd(CamelModel):
    """Request body for adding a guarantor; the loan comes from the URL."""

    guarantor_address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LENGTH)
    approved: bool = False


class GuarantorCreate(GuarantorAdd):
    loan_id: int


class GuarantorRead(GuarantorCreate):
    id: int


class GuarantorUpdate(CamelModel):
    approved: bool


class LoanWithGuarantors(LoanRead):
    guarantors: List[GuarantorRead] = Field(default_factory=list)


class GuarantorRequest(GuarantorRead):
    """A guarantor row together with the loan it guarantees.

    Used for the pending/approved lists a guarantor sees.
    """

    loan: LoanRead
