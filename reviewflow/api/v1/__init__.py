"""
API v1 routes.
"""

from fastapi import APIRouter

from reviewflow.api.v1 import assignments, items, reviews

router = APIRouter()

router.include_router(items.router, prefix="/items", tags=["Verification"])
router.include_router(reviews.router, tags=["Review Queues"])
router.include_router(assignments.router, tags=["Mentor Assignments"])
