"""Hub browsing, creation and membership request endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.hubs_service import HubsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["hms:hubs"])
_service = HubsService()


@router.get("/hubs", response_model=dto.HubListResponse)
async def list_hubs_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=12, ge=1, le=100),
	search: Optional[str] = Query(default=None, max_length=120),
	category: Optional[str] = Query(default=None, max_length=80),
) -> dto.HubListResponse:
	try:
		return await _service.list_hubs(page=page, limit=limit, search=search, category=category)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hubs", response_model=dto.HubResponse, status_code=201)
async def create_hub_endpoint(
	payload: dto.HubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.HubResponse:
	try:
		return await _service.create_hub(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}", response_model=dto.HubDetailResponse)
async def get_hub_endpoint(hub_id: UUID) -> dto.HubDetailResponse:
	try:
		return await _service.get_hub(hub_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/members", response_model=dto.HubMemberListResponse)
async def list_hub_members_endpoint(
	hub_id: UUID,
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=24, ge=1, le=100),
	search: Optional[str] = Query(default=None, max_length=120),
	role: Optional[str] = Query(default=None, pattern="^(HUB_LEADER|SUPERVISOR|MEMBER)$"),
	skill: Optional[str] = Query(default=None, max_length=80),
) -> dto.HubMemberListResponse:
	try:
		return await _service.list_members(hub_id, page=page, limit=limit, search=search, role=role, skill=skill)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/membership", response_model=dto.MembershipResponse)
async def get_membership_endpoint(
	hub_id: UUID,
	user_id: Optional[UUID] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MembershipResponse:
	try:
		return await _service.get_membership(hub_id, user_id or auth_user.id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hubs/{hub_id}/join-requests", response_model=dto.JoinRequestResponse, status_code=201)
async def request_hub_membership_endpoint(
	hub_id: UUID,
	payload: dto.JoinRequestCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.request_to_join(auth_user, hub_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/join-requests", response_model=list[dto.JoinRequestResponse])
async def list_hub_requests_endpoint(
	hub_id: UUID,
	status: Optional[str] = Query(default=None, pattern=dto.REQUEST_STATUS_PATTERN),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.JoinRequestResponse]:
	try:
		return await _service.list_requests(auth_user, hub_id, status=status)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hub-join-requests/{request_id}/review", response_model=dto.JoinRequestResponse)
async def review_hub_request_endpoint(
	request_id: UUID,
	payload: dto.ReviewRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.review_request(auth_user, request_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
