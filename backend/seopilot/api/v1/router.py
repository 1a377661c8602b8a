"""
API v1 router aggregating all endpoints.
"""
from fastapi import APIRouter

from seopilot.api.v1.scans import router as scans_router
from seopilot.api.v1.fixes import router as fixes_router
from seopilot.api.v1.changes import router as changes_router
from seopilot.api.v1.changes import metrics_router

api_router = APIRouter()

api_router.include_router(scans_router)
api_router.include_router(fixes_router)
api_router.include_router(changes_router)
api_router.include_router(metrics_router)
