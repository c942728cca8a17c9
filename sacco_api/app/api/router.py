"""
Top‑level API router.

This router aggregates the domain‑specific routers under a unified
prefix.  When new domains are introduced, update this file to include
their routers.
"""

from fastapi import APIRouter

from .endpoints import groups, guarantors, loans, proposals, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(groups.router, prefix="/groups", tags=["groups"])
router.include_router(loans.router, prefix="/loans", tags=["loans"])
router.include_router(guarantors.router, prefix="/guarantors", tags=["guarantors"])
router.include_router(proposals.router, prefix="/proposals", tags=["proposals"])
