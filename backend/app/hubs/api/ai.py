"""Insight, recommendation and assistant endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.chatbot_service import ChatbotService
from app.hubs.domain.insights_service import InsightsService
from app.hubs.domain.recommendations_service import RecommendationsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_admin_user, get_current_user, get_optional_user

router = APIRouter(prefix="/ai", tags=["hms:ai"])
_insights = InsightsService()
_recommendations = RecommendationsService()
_chatbot = ChatbotService()


@router.post("/insights", response_model=dto.InsightListResponse)
async def system_insights_endpoint(
	payload: dto.SystemMetricsRequest,
	auth_user: AuthenticatedUser = Depends(get_admin_user),
) -> dto.InsightListResponse:
	try:
		return await _insights.system_insights(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/hub-recommendations", response_model=dto.HubRecommendationsResponse)
async def hub_recommendations_endpoint(
	payload: dto.HubRecommendationsRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.HubRecommendationsResponse:
	try:
		return await _insights.hub_recommendations(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/project-success", response_model=dto.ProjectSuccessResponse)
async def project_success_endpoint(
	payload: dto.ProjectSuccessRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ProjectSuccessResponse:
	return _insights.predict_project_success(payload)


@router.post("/analytics-insights", response_model=dto.InsightListResponse)
async def analytics_insights_endpoint(
	payload: dto.AnalyticsInsightsRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.InsightListResponse:
	return _insights.analytics_insights(payload)


@router.post("/recommendations", response_model=dto.RecommendationListResponse)
async def recommendations_endpoint(
	payload: dto.RecommendationRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.RecommendationListResponse:
	try:
		return await _recommendations.recommend(auth_user, payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/chat", response_model=dto.ChatResponse)
async def chat_endpoint(
	payload: dto.ChatRequest,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> dto.ChatResponse:
	try:
		return await _chatbot.reply(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
