"""Liveness/readiness probes and the Prometheus scrape target."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.infra.auth import AuthenticatedUser, get_optional_user
from app.obs import health
from app.settings import settings

router = APIRouter(prefix="", tags=["ops"])


async def require_metrics_access(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> None:
	"""Scrapes need the ops token unless metrics are public; signed-in admins may also read them."""
	if settings.obs_metrics_public or (user is not None and user.is_admin):
		return
	if not settings.obs_admin_token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	if x_admin_token != settings.obs_admin_token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/health/ready")
async def health_ready() -> Response:
	status_code, payload = await health.readiness()
	return JSONResponse(content=payload, status_code=status_code)


@router.get("/metrics")
async def prometheus_metrics(_: None = Depends(require_metrics_access)) -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
