"""Event browsing, creation, registration and feedback endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.events_service import EventsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["hms:events"])
_service = EventsService()


@router.get("/events", response_model=dto.EventListResponse)
async def list_events_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=12, ge=1, le=100),
	search: Optional[str] = Query(default=None, max_length=120),
	hub_id: Optional[UUID] = Query(default=None),
	upcoming: bool = Query(default=False),
) -> dto.EventListResponse:
	try:
		return await _service.list_events(page=page, limit=limit, search=search, hub_id=hub_id, upcoming=upcoming)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/events", response_model=dto.EventResponse, status_code=201)
async def create_event_endpoint(
	payload: dto.EventCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventResponse:
	try:
		return await _service.create_event(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/events/{event_id}", response_model=dto.EventResponse)
async def get_event_endpoint(event_id: UUID) -> dto.EventResponse:
	try:
		return await _service.get_event(event_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.patch("/events/{event_id}", response_model=dto.EventResponse)
async def update_event_endpoint(
	event_id: UUID,
	payload: dto.EventUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventResponse:
	try:
		return await _service.update_event(auth_user, event_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hubs/{hub_id}/events", response_model=dto.EventResponse, status_code=201)
async def create_hub_event_endpoint(
	hub_id: UUID,
	payload: dto.EventBase,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventResponse:
	try:
		return await _service.create_hub_event(auth_user, hub_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/manage/events", response_model=list[dto.ManagedEventResponse])
async def list_managed_events_endpoint(
	hub_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.ManagedEventResponse]:
	try:
		return await _service.list_managed_events(auth_user, hub_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/events/{event_id}/register", response_model=dto.EventRegistrationResponse, status_code=201)
async def register_for_event_endpoint(
	event_id: UUID,
	payload: dto.EventRegisterRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventRegistrationResponse:
	try:
		return await _service.register(auth_user, event_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/events/{event_id}/feedback", response_model=dto.FeedbackResponse, status_code=201)
async def submit_feedback_endpoint(
	event_id: UUID,
	payload: dto.FeedbackCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.FeedbackResponse:
	try:
		return await _service.submit_feedback(auth_user, event_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
