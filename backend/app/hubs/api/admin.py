"""Administrative dashboard, user management, settings and health endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.admin_service import AdminService
from app.hubs.domain.settings_service import SystemSettingsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(prefix="/admin", tags=["hms:admin"])
_service = AdminService()
_settings_service = SystemSettingsService()


@router.get("/dashboard", response_model=dto.DashboardResponse)
async def dashboard_endpoint(
	start: Optional[datetime] = Query(default=None),
	end: Optional[datetime] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.DashboardResponse:
	try:
		return await _service.dashboard(auth_user, start=start, end=end)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/users", response_model=dto.UserListResponse)
async def list_users_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=20, ge=1, le=100),
	search: Optional[str] = Query(default=None, max_length=120),
	role: Optional[str] = Query(default=None, pattern="^(STUDENT|ADMIN)$"),
	status: Optional[str] = Query(default=None, pattern="^(active|inactive)$"),
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.UserListResponse:
	try:
		return await _service.list_users(auth_user, page=page, limit=limit, search=search, role=role, status=status)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/users/{user_id}", response_model=dto.UserResponse)
async def get_user_endpoint(user_id: UUID, auth_user: AuthenticatedUser = Depends(get_admin_user)) -> dto.UserResponse:
	try:
		return await _service.get_user(auth_user, user_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.patch("/users/{user_id}", response_model=dto.UserResponse)
async def update_user_endpoint(
	user_id: UUID,
	payload: dto.UserUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.UserResponse:
	try:
		return await _service.update_user(auth_user, user_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.delete("/users/{user_id}", response_model=dto.MessageResponse)
async def delete_user_endpoint(user_id: UUID, auth_user: AuthenticatedUser = Depends(get_admin_user)) -> dto.MessageResponse:
	try:
		return await _service.delete_user(auth_user, user_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hubs", response_model=dto.HubResponse, status_code=201)
async def create_admin_hub_endpoint(
	payload: dto.AdminHubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.HubResponse:
	try:
		return await _service.create_hub(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/bulk-actions", response_model=dto.BulkActionResponse)
async def bulk_actions_endpoint(
	payload: dto.BulkActionRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.BulkActionResponse:
	try:
		return await _service.bulk_action(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/settings", response_model=dto.SettingsResponse)
async def get_settings_endpoint(auth_user: AuthenticatedUser = Depends(get_admin_user)) -> dto.SettingsResponse:
	try:
		return await _settings_service.get_settings(auth_user)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.put("/settings", response_model=dto.SettingsResponse)
async def update_settings_endpoint(
	payload: Dict[str, Dict[str, Any]] = Body(...),
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.SettingsResponse:
	try:
		return await _settings_service.update_settings(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/settings", response_model=dto.ActionResponse)
async def settings_action_endpoint(
	payload: dto.ActionRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.ActionResponse:
	try:
		return await _settings_service.settings_action(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/system-health", response_model=dto.SystemHealthResponse)
async def system_health_endpoint(auth_user: AuthenticatedUser = Depends(get_admin_user)) -> dto.SystemHealthResponse:
	try:
		return await _settings_service.system_health(auth_user)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/system-health", response_model=dto.ActionResponse)
async def system_health_action_endpoint(
	payload: dto.ActionRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.ActionResponse:
	try:
		return await _settings_service.health_action(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
