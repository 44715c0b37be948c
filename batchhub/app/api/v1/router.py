"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from batchhub.app.api.v1.endpoints import auth, communities, events, expenses

router = APIRouter()

router.include_router(auth.router)
router.include_router(communities.router)
router.include_router(events.router)
router.include_router(expenses.router)
