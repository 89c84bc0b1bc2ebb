"""Programme browsing, creation and application endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.programmes_service import ProgrammesService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["hms:programmes"])
_service = ProgrammesService()


@router.get("/programmes", response_model=dto.ProgrammeListResponse)
async def list_programmes_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=12, ge=1, le=100),
	search: Optional[str] = Query(default=None, max_length=120),
	hub_id: Optional[UUID] = Query(default=None),
) -> dto.ProgrammeListResponse:
	try:
		return await _service.list_programmes(page=page, limit=limit, search=search, hub_id=hub_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/programmes", response_model=dto.ProgrammeResponse, status_code=201)
async def create_programme_endpoint(
	payload: dto.ProgrammeCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProgrammeResponse:
	try:
		return await _service.create_programme(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/programmes/{programme_id}", response_model=dto.ProgrammeResponse)
async def get_programme_endpoint(programme_id: UUID) -> dto.ProgrammeResponse:
	try:
		return await _service.get_programme(programme_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hubs/{hub_id}/programmes", response_model=dto.ProgrammeResponse, status_code=201)
async def create_hub_programme_endpoint(
	hub_id: UUID,
	payload: dto.HubProgrammeCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProgrammeResponse:
	try:
		return await _service.create_hub_programme(auth_user, hub_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/manage/programmes", response_model=list[dto.ManagedProgrammeResponse])
async def list_managed_programmes_endpoint(
	hub_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.ManagedProgrammeResponse]:
	try:
		return await _service.list_managed_programmes(auth_user, hub_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/programmes/{programme_id}/join-requests", response_model=dto.JoinRequestResponse, status_code=201)
async def request_programme_membership_endpoint(
	programme_id: UUID,
	payload: dto.JoinRequestCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.request_to_join(auth_user, programme_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/programmes/{programme_id}/hub-member-join", response_model=dto.JoinRequestResponse, status_code=201)
async def hub_member_join_endpoint(
	programme_id: UUID,
	payload: dto.JoinRequestCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.hub_member_join(auth_user, programme_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/programmes/{programme_id}/join-requests", response_model=list[dto.JoinRequestResponse])
async def list_programme_requests_endpoint(
	programme_id: UUID,
	status: Optional[str] = Query(default=None, pattern=dto.REQUEST_STATUS_PATTERN),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.JoinRequestResponse]:
	try:
		return await _service.list_requests(auth_user, programme_id, status=status)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/programme-join-requests/{request_id}/review", response_model=dto.JoinRequestResponse)
async def review_programme_request_endpoint(
	request_id: UUID,
	payload: dto.ReviewRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.review_request(auth_user, request_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
