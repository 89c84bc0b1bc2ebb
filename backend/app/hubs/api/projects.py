"""Project, project membership, suggestion and progress report endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.projects_service import ProjectsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["hms:projects"])
_service = ProjectsService()


@router.get("/projects", response_model=dto.ProjectListResponse)
async def list_projects_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=12, ge=1, le=100),
	search: Optional[str] = Query(default=None, max_length=120),
	hub_id: Optional[UUID] = Query(default=None),
	status: Optional[str] = Query(default=None, pattern="^(PLANNING|IN_PROGRESS|COMPLETED)$"),
) -> dto.ProjectListResponse:
	try:
		return await _service.list_projects(page=page, limit=limit, search=search, hub_id=hub_id, status=status)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/projects", response_model=dto.ProjectResponse, status_code=201)
async def create_project_endpoint(
	payload: dto.ProjectCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProjectResponse:
	try:
		return await _service.create_project(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/projects/{project_id}", response_model=dto.ProjectResponse)
async def get_project_endpoint(project_id: UUID) -> dto.ProjectResponse:
	try:
		return await _service.get_project(project_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hubs/{hub_id}/projects", response_model=dto.ProjectResponse, status_code=201)
async def create_hub_project_endpoint(
	hub_id: UUID,
	payload: dto.ProjectBase,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProjectResponse:
	try:
		return await _service.create_hub_project(auth_user, hub_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/manage/projects", response_model=list[dto.ManagedProjectResponse])
async def list_managed_projects_endpoint(
	hub_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.ManagedProjectResponse]:
	try:
		return await _service.list_managed_projects(auth_user, hub_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/projects/{project_id}/join-requests", response_model=dto.JoinRequestResponse, status_code=201)
async def request_project_membership_endpoint(
	project_id: UUID,
	payload: dto.JoinRequestCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.request_to_join(auth_user, project_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/projects/{project_id}/join-requests", response_model=list[dto.JoinRequestResponse])
async def list_project_requests_endpoint(
	project_id: UUID,
	status: Optional[str] = Query(default=None, pattern=dto.REQUEST_STATUS_PATTERN),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.JoinRequestResponse]:
	try:
		return await _service.list_requests(auth_user, project_id, status=status)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/project-join-requests/{request_id}/review", response_model=dto.JoinRequestResponse)
async def review_project_request_endpoint(
	request_id: UUID,
	payload: dto.ReviewRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JoinRequestResponse:
	try:
		return await _service.review_request(auth_user, request_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/projects/{project_id}/members", response_model=list[dto.ProjectMemberResponse])
async def list_project_members_endpoint(project_id: UUID) -> list[dto.ProjectMemberResponse]:
	try:
		return await _service.list_members(project_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/projects/{project_id}/members", response_model=dto.ProjectMemberResponse, status_code=201)
async def add_project_member_endpoint(
	project_id: UUID,
	payload: dto.ProjectMemberAddRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProjectMemberResponse:
	try:
		return await _service.add_member(auth_user, project_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/projects/{project_id}/suggestions", response_model=dto.SuggestionResponse, status_code=201)
async def submit_suggestion_endpoint(
	project_id: UUID,
	payload: dto.SuggestionCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.SuggestionResponse:
	try:
		return await _service.submit_suggestion(auth_user, project_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/hubs/{hub_id}/suggestions", response_model=list[dto.SuggestionResponse])
async def list_suggestions_endpoint(
	hub_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.SuggestionResponse]:
	try:
		return await _service.list_suggestions(auth_user, hub_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/suggestions/{suggestion_id}/respond", response_model=dto.SuggestionRespondResponse)
async def respond_to_suggestion_endpoint(
	suggestion_id: UUID,
	payload: dto.SuggestionRespondRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.SuggestionRespondResponse:
	try:
		return await _service.respond_to_suggestion(auth_user, suggestion_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/projects/{project_id}/progress-reports", response_model=dto.ProgressReportResponse, status_code=201)
async def submit_progress_report_endpoint(
	project_id: UUID,
	payload: dto.ProgressReportCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProgressReportResponse:
	try:
		return await _service.submit_progress_report(auth_user, project_id, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.get("/progress-reports", response_model=list[dto.ProgressReportResponse])
async def list_progress_reports_endpoint(
	project_id: Optional[UUID] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.ProgressReportResponse]:
	try:
		return await _service.list_progress_reports(auth_user, project_id=project_id)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
