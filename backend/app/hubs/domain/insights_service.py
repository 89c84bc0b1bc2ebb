"""Dashboard and analytics insights backed by a completion provider with rule fallbacks."""

from __future__ import annotations

import json
import logging
import re
from datetime import date

from pydantic import ValidationError as PydanticValidationError

from app.hubs.domain import insights_rules
from app.hubs.domain.exceptions import AIUnavailableError
from app.hubs.infra import ai_providers
from app.hubs.schemas import dto
from app.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

ANALYST_PROMPT = (
	"You are an AI analyst specializing in educational platform analytics. Provide concise, actionable insights."
)
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def system_metrics_prompt(metrics: dto.SystemMetricsRequest) -> str:
	return f"""Analyze the following UDSM Hub Management System metrics and provide actionable insights:

Total Users: {metrics.total_users}
Active Users: {metrics.active_users}
Total Hubs: {metrics.total_hubs}
Total Projects: {metrics.total_projects}
Total Events: {metrics.total_events}
Engagement Rate: {metrics.engagement_rate}%
Growth Rate: {metrics.growth_rate}%

Please provide insights in the following categories:
1. User engagement trends
2. Hub performance recommendations
3. Project success predictions
4. Event optimization suggestions
5. System alerts or concerns

Format your response as a JSON array of insights with type, title, description, confidence (0-1), actionable (boolean), and priority."""


def hub_prompt(hub: dto.HubRecommendationsRequest) -> str:
	return f"""Based on the following hub data, provide 5 specific recommendations to improve hub performance:

Hub Name: {hub.name}
Members: {hub.member_count}
Projects: {hub.project_count}
Events: {hub.event_count}
Engagement Rate: {hub.engagement_rate}%

Focus on actionable strategies for growth, engagement, and impact."""


def parse_insights(text: str) -> list[dto.InsightResponse]:
	"""Parse a model reply that should hold a JSON array of insights."""
	payload = json.loads(_FENCE_RE.sub("", text.strip()))
	if not isinstance(payload, list):
		raise ValueError("expected a JSON array")
	return [dto.InsightResponse.model_validate(item) for item in payload]


class InsightsService:
	"""Wraps the provider manager and the fixed-threshold rules."""

	def __init__(self, *, manager: ai_providers.AIProviderManager | None = None) -> None:
		self._manager = manager

	@property
	def manager(self) -> ai_providers.AIProviderManager:
		return self._manager or ai_providers.get_manager()

	async def system_insights(self, metrics: dto.SystemMetricsRequest) -> dto.InsightListResponse:
		if self.manager.is_available():
			try:
				text, provider = await self.manager.complete(
					system_metrics_prompt(metrics),
					system_prompt=ANALYST_PROMPT,
					max_tokens=2000,
					temperature=0.3,
				)
				insights = parse_insights(text)
			except (AIUnavailableError, ValueError, PydanticValidationError) as exc:
				logger.warning("system insights fell back to rules: %s", exc)
			else:
				obs_metrics.inc_ai_insight("system", provider)
				return dto.InsightListResponse(insights=insights, source=provider)
		obs_metrics.inc_ai_insight("system", "fallback")
		return dto.InsightListResponse(insights=insights_rules.system_insights(metrics), source="fallback")

	async def hub_recommendations(self, hub: dto.HubRecommendationsRequest) -> dto.HubRecommendationsResponse:
		if self.manager.is_available():
			try:
				text, provider = await self.manager.complete(
					hub_prompt(hub),
					system_prompt=ANALYST_PROMPT,
					max_tokens=1000,
					temperature=0.5,
				)
			except AIUnavailableError as exc:
				logger.warning("hub recommendations fell back to defaults: %s", exc)
			else:
				lines = [line.strip() for line in text.splitlines() if line.strip()][:5]
				if lines:
					obs_metrics.inc_ai_insight("hub_recommendations", provider)
					return dto.HubRecommendationsResponse(recommendations=lines, source=provider)
		obs_metrics.inc_ai_insight("hub_recommendations", "fallback")
		return dto.HubRecommendationsResponse(
			recommendations=list(insights_rules.HUB_RECOMMENDATIONS_FALLBACK),
			source="fallback",
		)

	def predict_project_success(self, payload: dto.ProjectSuccessRequest) -> dto.ProjectSuccessResponse:
		return dto.ProjectSuccessResponse(score=insights_rules.predict_project_success(payload))

	def analytics_insights(
		self,
		payload: dto.AnalyticsInsightsRequest,
		*,
		today: date | None = None,
	) -> dto.InsightListResponse:
		insights = insights_rules.analytics_insights(payload.analytics_data, user_role=payload.user_role, today=today)
		obs_metrics.inc_ai_insight("analytics", "rules")
		return dto.InsightListResponse(insights=insights, source="rules")
