"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import cron, reports, admin_config, bills

api_router = APIRouter()

api_router.include_router(
    cron.router,
    prefix="/cron",
    tags=["cron"]
)

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["reports"]
)

api_router.include_router(
    admin_config.router,
    prefix="/admin/config",
    tags=["admin"]
)

api_router.include_router(
    bills.router,
    prefix="/bills",
    tags=["bills"]
)
