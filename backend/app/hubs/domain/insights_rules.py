"""Fixed-threshold analytics rules used when no completion provider answers.

Every rule reads one slice of the analytics payload and returns zero or more
insights. Thresholds and wording match the analytics dashboard copy.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from app.hubs.schemas import dto

PRIORITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}

HUB_RECOMMENDATIONS_FALLBACK = (
	"Increase member engagement through regular events",
	"Create collaborative projects to foster teamwork",
	"Establish mentorship programs",
	"Develop partnerships with industry leaders",
	"Implement feedback collection systems",
)


def _fmt(value: float) -> str:
	return f"{round(float(value), 2):g}"


def _insight(
	id: str,
	type: str,
	title: str,
	description: str,
	confidence: float,
	priority: str,
	impact: str,
	recommendations: Iterable[str],
) -> dto.InsightResponse:
	return dto.InsightResponse(
		id=id,
		type=type,
		title=title,
		description=description,
		confidence=confidence,
		priority=priority,
		actionable=True,
		impact=impact,
		recommendations=list(recommendations),
	)


def user_engagement(data: dto.UserEngagementData) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	rate = data.engagement_rate
	if rate < 25:
		insights.append(
			_insight(
				"critical-engagement",
				"alert",
				"Critical: User Engagement Below Threshold",
				f"User engagement rate of {_fmt(rate)}% is critically low. "
				"Immediate intervention required to prevent user churn.",
				0.92,
				"critical",
				"negative",
				(
					"Launch emergency re-engagement campaign targeting inactive users",
					"Implement push notifications for important updates",
					"Create personalized content recommendations",
					"Introduce urgent gamification elements (badges, leaderboards)",
					"Conduct user surveys to identify pain points",
				),
			)
		)
	elif rate < 40:
		insights.append(
			_insight(
				"low-engagement",
				"recommendation",
				"User Engagement Needs Improvement",
				f"Current engagement rate of {_fmt(rate)}% is below industry standards. "
				"Strategic improvements needed.",
				0.85,
				"high",
				"negative",
				(
					"Implement weekly engagement challenges",
					"Create more interactive content formats",
					"Improve onboarding experience for new users",
					"Add social features to increase community interaction",
				),
			)
		)

	if data.trend > 20:
		insights.append(
			_insight(
				"rapid-growth",
				"trend",
				"Exceptional Growth Rate Detected",
				f"User base growing at {_fmt(data.trend)}% - exceptional performance requiring infrastructure scaling.",
				0.94,
				"high",
				"positive",
				(
					"Scale server infrastructure immediately",
					"Prepare customer support for increased volume",
					"Optimize database queries for higher load",
					"Plan feature rollouts to capitalize on growth momentum",
				),
			)
		)
	elif data.trend < -5:
		insights.append(
			_insight(
				"declining-growth",
				"alert",
				"User Growth Declining",
				f"Negative growth trend of {_fmt(data.trend)}% indicates potential platform issues or market saturation.",
				0.78,
				"high",
				"negative",
				(
					"Analyze user feedback for platform issues",
					"Launch targeted marketing campaigns",
					"Introduce referral incentive programs",
					"Conduct competitive analysis",
				),
			)
		)

	if data.total_users > 0:
		active_ratio = data.active_users / data.total_users * 100
		if active_ratio < 30:
			insights.append(
				_insight(
					"low-active-ratio",
					"recommendation",
					"Low Active User Ratio",
					f"Only {active_ratio:.1f}% of users are active. "
					"Many registered users are not engaging with the platform.",
					0.81,
					"medium",
					"neutral",
					(
						"Create re-activation email campaigns",
						"Implement progressive web app features",
						"Add mobile notifications for important updates",
						"Simplify user interface and navigation",
					),
				)
			)
	return insights


def hub_performance(data: dto.HubPerformanceData, user_role: str) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	if data.total_hubs > 0:
		active_ratio = data.active_hubs / data.total_hubs * 100
		if active_ratio < 70:
			insights.append(
				_insight(
					"inactive-hubs",
					"recommendation",
					"Multiple Hubs Showing Low Activity",
					f"{_fmt(100 - active_ratio)}% of hubs are inactive or underperforming. "
					"Hub consolidation or revitalization needed.",
					0.76,
					"medium",
					"negative",
					(
						"Identify and support struggling hub leaders",
						"Create inter-hub collaboration events",
						"Provide hub management training and resources",
						"Consider merging similar low-activity hubs",
					),
				)
			)

	if data.average_members < 8:
		insights.append(
			_insight(
				"small-hub-size",
				"recommendation",
				"Hub Membership Below Optimal Size",
				f"Average hub size of {_fmt(data.average_members)} members is below the optimal range "
				"of 15-30 for maximum collaboration.",
				0.73,
				"medium",
				"neutral",
				(
					"Launch targeted recruitment campaigns for each hub",
					"Improve hub discovery algorithms",
					"Create cross-promotional opportunities between hubs",
					"Implement member referral rewards",
				),
			)
		)

	if data.top_performing_hubs and user_role.upper() == "ADMIN":
		insights.append(
			_insight(
				"top-performer-analysis",
				"trend",
				"Success Patterns Identified in Top Hubs",
				"Analysis of top-performing hubs reveals best practices that can be replicated across the platform.",
				0.87,
				"medium",
				"positive",
				(
					"Document and share best practices from top hubs",
					"Create mentorship programs pairing successful and struggling hubs",
					"Implement features that successful hubs use most",
					"Recognize and reward top-performing hub leaders",
				),
			)
		)
	return insights


def project_metrics(data: dto.ProjectMetricsData) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	if data.completion_rate < 50:
		insights.append(
			_insight(
				"low-project-completion",
				"alert",
				"Project Completion Rate Critically Low",
				f"Only {_fmt(data.completion_rate)}% of projects are completed successfully. "
				"This indicates systemic issues in project management.",
				0.89,
				"high",
				"negative",
				(
					"Implement mandatory project planning workshops",
					"Create project milestone tracking system",
					"Assign mentors to all new projects",
					"Develop project success prediction algorithms",
					"Provide project management tools and templates",
				),
			)
		)
	elif data.completion_rate < 70:
		insights.append(
			_insight(
				"moderate-project-completion",
				"recommendation",
				"Project Completion Rate Needs Improvement",
				f"Project completion rate of {_fmt(data.completion_rate)}% is below optimal. "
				"Strategic interventions can improve success rates.",
				0.82,
				"medium",
				"negative",
				(
					"Introduce project check-in requirements",
					"Create peer review and feedback systems",
					"Offer project management certification programs",
					"Implement early warning systems for at-risk projects",
				),
			)
		)

	if data.average_completion_time > 180:
		insights.append(
			_insight(
				"long-project-duration",
				"recommendation",
				"Projects Taking Longer Than Expected",
				f"Average completion time of {_fmt(data.average_completion_time)} days suggests projects "
				"may be too ambitious or poorly scoped.",
				0.75,
				"medium",
				"neutral",
				(
					"Encourage smaller, more focused project scopes",
					"Implement agile project management methodologies",
					"Create project timeline estimation tools",
					"Provide training on realistic goal setting",
				),
			)
		)

	# volume is judged against a nominal ten hubs
	if data.total_projects / 10 < 2:
		insights.append(
			_insight(
				"low-project-volume",
				"recommendation",
				"Low Project Creation Rate",
				"Few projects are being initiated. This may indicate barriers to project creation "
				"or lack of innovation culture.",
				0.71,
				"medium",
				"negative",
				(
					"Simplify project proposal process",
					"Create project idea generation workshops",
					"Offer seed funding for innovative projects",
					"Showcase successful projects to inspire others",
				),
			)
		)
	return insights


def event_metrics(data: dto.EventMetricsData) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	if data.average_attendance < 40:
		insights.append(
			_insight(
				"low-event-attendance",
				"recommendation",
				"Event Attendance Below Expectations",
				f"Average attendance of {_fmt(data.average_attendance)}% indicates events may not be "
				"meeting user needs or expectations.",
				0.84,
				"medium",
				"negative",
				(
					"Survey users about preferred event topics and formats",
					"Improve event promotion and marketing strategies",
					"Offer attendance incentives and recognition",
					"Create more interactive and engaging event formats",
					"Optimize event timing based on user availability",
				),
			)
		)

	if data.upcoming_events < 5:
		insights.append(
			_insight(
				"low-upcoming-events",
				"alert",
				"Insufficient Upcoming Events",
				f"Only {data.upcoming_events} upcoming events scheduled. "
				"Users need consistent event programming to maintain engagement.",
				0.79,
				"medium",
				"negative",
				(
					"Create quarterly event planning calendars",
					"Encourage hub leaders to schedule regular events",
					"Develop recurring event series (weekly workshops, monthly seminars)",
					"Partner with external organizations for guest events",
				),
			)
		)

	if data.popular_event_types:
		insights.append(
			_insight(
				"event-type-optimization",
				"trend",
				"Event Type Preferences Identified",
				"User preferences for specific event types can guide future event planning and resource allocation.",
				0.86,
				"low",
				"positive",
				(
					f"Focus on popular event types: {', '.join(data.popular_event_types[:3])}",
					"Create specialized tracks for high-demand topics",
					"Train more facilitators in popular event formats",
					"Develop templates for successful event types",
				),
			)
		)
	return insights


def cross_metric(data: dto.AnalyticsData) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	if data.hub_performance.average_members > 15 and data.project_metrics.completion_rate > 70:
		insights.append(
			_insight(
				"hub-size-success-correlation",
				"trend",
				"Strong Correlation: Hub Size and Project Success",
				"Larger hubs (15+ members) show significantly higher project completion rates. "
				"This suggests optimal hub sizing strategies.",
				0.83,
				"medium",
				"positive",
				(
					"Target hub growth to 15-30 member range",
					"Provide additional support to smaller hubs",
					"Create hub merger opportunities for very small hubs",
					"Study successful large hubs for best practices",
				),
			)
		)
	if data.user_engagement.engagement_rate < 40 and data.event_metrics.average_attendance < 50:
		insights.append(
			_insight(
				"engagement-event-correlation",
				"recommendation",
				"Low Engagement Correlates with Poor Event Attendance",
				"Users with low platform engagement are also less likely to attend events, "
				"suggesting a compound engagement problem.",
				0.77,
				"high",
				"negative",
				(
					"Create integrated engagement campaigns combining platform and event activities",
					"Use event attendance as an engagement metric",
					"Develop event-based onboarding for new users",
					"Create exclusive events for highly engaged users",
				),
			)
		)
	return insights


def predictive(data: dto.AnalyticsData, *, today: date | None = None) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	month = (today or date.today()).month
	# academic year runs September through May
	if month >= 9 or month <= 5:
		insights.append(
			_insight(
				"seasonal-prediction",
				"prediction",
				"Academic Season Activity Surge Predicted",
				"Historical patterns suggest 40-60% increase in platform activity during academic months. "
				"Infrastructure scaling recommended.",
				0.91,
				"medium",
				"positive",
				(
					"Scale server capacity by 50% before peak periods",
					"Increase customer support availability",
					"Prepare additional content and events",
					"Monitor performance metrics closely during surge",
				),
			)
		)

	if data.user_engagement.trend < -2:
		insights.append(
			_insight(
				"churn-prediction",
				"prediction",
				"User Churn Risk Increasing",
				"Declining engagement trends suggest potential user churn in the next 30-60 days without intervention.",
				0.74,
				"high",
				"negative",
				(
					"Launch immediate user retention campaigns",
					"Identify and contact at-risk users personally",
					"Implement win-back email sequences",
					"Create exclusive content for returning users",
				),
			)
		)

	total_users = data.user_engagement.total_users
	total_hubs = data.hub_performance.total_hubs
	users_per_hub = total_users / total_hubs if total_hubs else float(total_users)
	if users_per_hub > 50:
		insights.append(
			_insight(
				"expansion-opportunity",
				"prediction",
				"Hub Expansion Opportunity Identified",
				"High user-to-hub ratio suggests demand for additional specialized hubs. "
				"Strategic expansion could capture unmet needs.",
				0.68,
				"low",
				"positive",
				(
					"Survey users about desired new hub topics",
					"Analyze user interests for hub creation opportunities",
					"Recruit potential hub leaders from active members",
					"Create pilot programs for new hub concepts",
				),
			)
		)
	return insights


def sort_insights(insights: list[dto.InsightResponse]) -> list[dto.InsightResponse]:
	"""Highest priority first, then highest confidence."""
	return sorted(
		insights,
		key=lambda item: (PRIORITY_RANK.get(item.priority, 0), item.confidence),
		reverse=True,
	)


def analytics_insights(
	data: dto.AnalyticsData,
	*,
	user_role: str = "STUDENT",
	today: date | None = None,
) -> list[dto.InsightResponse]:
	insights: list[dto.InsightResponse] = []
	insights += user_engagement(data.user_engagement)
	insights += hub_performance(data.hub_performance, user_role)
	insights += project_metrics(data.project_metrics)
	insights += event_metrics(data.event_metrics)
	insights += cross_metric(data)
	insights += predictive(data, today=today)
	return sort_insights(insights)


def system_insights(metrics: dto.SystemMetricsRequest) -> list[dto.InsightResponse]:
	"""Fallback dashboard insights derived from the headline counters."""
	insights: list[dto.InsightResponse] = []
	if metrics.engagement_rate < 30:
		insights.append(
			dto.InsightResponse(
				type="alert",
				title="Low User Engagement",
				description="User engagement is below optimal levels. "
				"Consider implementing gamification or incentive programs.",
				confidence=0.8,
				priority="high",
			)
		)
	if metrics.growth_rate > 20:
		insights.append(
			dto.InsightResponse(
				type="trend",
				title="Strong Growth Trend",
				description="The platform is experiencing healthy growth. Ensure infrastructure can handle increased load.",
				confidence=0.9,
				priority="medium",
			)
		)
	if metrics.total_users > 0 and metrics.total_hubs / metrics.total_users < 0.1:
		insights.append(
			dto.InsightResponse(
				type="recommendation",
				title="Consider Creating More Hubs",
				description="The hub-to-user ratio suggests there may be demand for more specialized communities.",
				confidence=0.7,
				priority="medium",
			)
		)
	return insights


def predict_project_success(payload: dto.ProjectSuccessRequest) -> float:
	score = 0.5
	if 3 <= payload.member_count <= 7:
		score += 0.2
	if 30 <= payload.duration_days <= 180:
		score += 0.15
	if payload.skills_match > 0.7:
		score += 0.15
	if payload.hub_activity_score > 0.6:
		score += 0.1
	return round(min(score, 1.0), 2)
