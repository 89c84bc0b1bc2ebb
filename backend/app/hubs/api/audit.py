"""Audit log query, manual entry and export endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.audit_service import AuditService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(prefix="/admin/audit-logs", tags=["hms:audit"])
_service = AuditService()


@router.get("", response_model=dto.AuditLogListResponse)
async def list_audit_logs_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=50, ge=1, le=100),
	user_id: Optional[UUID] = Query(default=None),
	action: Optional[str] = Query(default=None, max_length=80),
	entity_type: Optional[str] = Query(default=None, max_length=80),
	start_date: Optional[datetime] = Query(default=None),
	end_date: Optional[datetime] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.AuditLogListResponse:
	try:
		return await _service.list_logs(
			auth_user,
			page=page,
			limit=limit,
			user_id=user_id,
			action=action,
			entity_type=entity_type,
			start_date=start_date,
			end_date=end_date,
		)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("", response_model=dto.AuditLogResponse, status_code=201)
async def create_audit_log_endpoint(
	payload: dto.AuditLogCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.AuditLogResponse:
	try:
		return await _service.create_log(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/export")
async def export_audit_logs_endpoint(
	format: str = Query(default="csv", max_length=10),
	user_id: Optional[UUID] = Query(default=None),
	action: Optional[str] = Query(default=None, max_length=80),
	entity_type: Optional[str] = Query(default=None, max_length=80),
	start_date: Optional[datetime] = Query(default=None),
	end_date: Optional[datetime] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> Response:
	try:
		body, media_type = await _service.export(
			auth_user,
			format=format,
			user_id=user_id,
			action=action,
			entity_type=entity_type,
			start_date=start_date,
			end_date=end_date,
		)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc
	filename = f"audit-logs-{date.today().isoformat()}.{format.lower()}"
	return Response(
		content=body,
		media_type=media_type,
		headers={"Content-Disposition": f'attachment; filename="{filename}"'},
	)


__all__ = ["router"]
