"""FastAPI routers for the hub management domain."""

from __future__ import annotations

from fastapi import APIRouter

from app.hubs.api import (
	admin,
	ai,
	audit,
	auth,
	events,
	hubs,
	notifications,
	programmes,
	projects,
	uploads,
)

router = APIRouter(prefix="/api/hms/v1")

router.include_router(auth.router)
router.include_router(hubs.router)
router.include_router(projects.router)
router.include_router(programmes.router)
router.include_router(events.router)
router.include_router(notifications.router)
router.include_router(admin.router)
router.include_router(audit.router)
router.include_router(ai.router)
router.include_router(uploads.router)

__all__ = ["router"]
