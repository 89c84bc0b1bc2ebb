"""Pydantic schemas for the hub management API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

_VISIBILITY_PATTERN = "^(PUBLIC|AUTHENTICATED|HUB_MEMBERS|PROGRAMME_MEMBERS)$"
_PUBLISH_PATTERN = "^(DRAFT|PUBLISHED|ARCHIVED)$"
_PROJECT_STATUS_PATTERN = "^(PLANNING|IN_PROGRESS|COMPLETED)$"
REQUEST_STATUS_PATTERN = "^(PENDING|APPROVED|REJECTED|pending|approved|rejected)$"


class PaginationMeta(BaseModel):
	page: int
	limit: int
	total: int
	total_pages: int


class MessageResponse(BaseModel):
	message: str


# --- Accounts -----------------------------------------------------------------


class UserResponse(BaseModel):
	id: UUID
	email: str
	first_name: str
	last_name: str
	role: str
	degree_programme: Optional[str] = None
	skills: List[str] = Field(default_factory=list)
	interests: List[str] = Field(default_factory=list)
	bio: Optional[str] = None
	profile_picture: Optional[str] = None
	is_google_user: bool = False
	is_active: bool = True
	last_login_at: Optional[datetime] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class SignupRequest(BaseModel):
	first_name: str = Field(..., min_length=2, max_length=80)
	last_name: str = Field(..., min_length=2, max_length=80)
	email: EmailStr
	password: str = Field(..., min_length=8, max_length=128)
	degree_programme: Optional[str] = Field(default=None, max_length=160)


class SignupResponse(BaseModel):
	user: UserResponse
	redirect_url: str


class OtpSendRequest(BaseModel):
	email: EmailStr


class OtpVerifyRequest(BaseModel):
	email: EmailStr
	otp: str = Field(..., min_length=1, max_length=12)


class ForgotPasswordRequest(BaseModel):
	email: EmailStr


class ResetPasswordRequest(BaseModel):
	email: EmailStr
	otp: str = Field(..., min_length=1, max_length=12)
	new_password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
	email: EmailStr
	password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
	access_token: str
	token_type: str = "bearer"
	expires_in: int
	user: UserResponse
	redirect_url: str


# --- Hubs ---------------------------------------------------------------------


class HubCountsResponse(BaseModel):
	members: int = 0
	projects: int = 0
	programmes: int = 0
	events: int = 0


class HubCreateRequest(BaseModel):
	name: str = Field(..., min_length=3, max_length=120)
	description: str = Field(..., min_length=10, max_length=4000)
	card_bio: Optional[str] = Field(default=None, max_length=280)
	logo: Optional[str] = None
	cover_image: Optional[str] = None
	vision: Optional[str] = Field(default=None, max_length=2000)
	mission: Optional[str] = Field(default=None, max_length=2000)
	objectives: List[str] = Field(default_factory=list, max_length=20)
	categories: List[str] = Field(default_factory=list, max_length=10)


class HubResponse(BaseModel):
	id: UUID
	name: str
	description: str
	card_bio: Optional[str] = None
	logo: Optional[str] = None
	cover_image: Optional[str] = None
	vision: Optional[str] = None
	mission: Optional[str] = None
	objectives: List[str] = Field(default_factory=list)
	categories: List[str] = Field(default_factory=list)
	is_active: bool
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	counts: HubCountsResponse = Field(default_factory=HubCountsResponse)

	model_config = ConfigDict(from_attributes=True)


class HubListResponse(BaseModel):
	items: List[HubResponse]
	pagination: PaginationMeta


class HubMemberResponse(BaseModel):
	id: UUID
	hub_id: UUID
	user_id: UUID
	role: str
	joined_at: datetime
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	email: Optional[str] = None
	skills: List[str] = Field(default_factory=list)
	profile_picture: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class HubMemberListResponse(BaseModel):
	items: List[HubMemberResponse]
	pagination: PaginationMeta


class MembershipResponse(BaseModel):
	is_member: bool
	membership: Optional[HubMemberResponse] = None


class JoinRequestCreateRequest(BaseModel):
	user_id: Optional[UUID] = None
	message: Optional[str] = Field(default=None, max_length=1000)


class JoinRequestResponse(BaseModel):
	id: UUID
	target_id: UUID
	user_id: UUID
	message: Optional[str] = None
	status: str
	responded_by: Optional[UUID] = None
	responded_at: Optional[datetime] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ReviewRequest(BaseModel):
	action: str = Field(..., min_length=1, max_length=16)


# --- Projects -----------------------------------------------------------------


class ProjectBase(BaseModel):
	title: str = Field(..., min_length=3, max_length=200)
	description: str = Field(..., min_length=10, max_length=8000)
	objectives: Optional[str] = Field(default=None, max_length=4000)
	cover_image: Optional[str] = None
	skills_required: List[str] = Field(default_factory=list, max_length=30)
	visibility: str = Field(default="HUB_MEMBERS", pattern=_VISIBILITY_PATTERN)
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None


class ProjectCreateRequest(ProjectBase):
	hub_id: UUID


class ProjectResponse(BaseModel):
	id: UUID
	hub_id: UUID
	title: str
	description: str
	objectives: Optional[str] = None
	cover_image: Optional[str] = None
	skills_required: List[str] = Field(default_factory=list)
	status: str
	visibility: str
	publish_status: str
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ProjectListResponse(BaseModel):
	items: List[ProjectResponse]
	pagination: PaginationMeta


class ProjectMemberResponse(BaseModel):
	id: UUID
	project_id: UUID
	user_id: UUID
	role: str
	joined_at: datetime
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	email: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class ProjectMemberAddRequest(BaseModel):
	user_id: UUID
	role: str = Field(default="MEMBER", pattern="^(LEAD|MEMBER|SUPERVISOR|HUB_LEADER)$")


class SuggestionCreateRequest(BaseModel):
	title: str = Field(..., min_length=3, max_length=200)
	content: str = Field(..., min_length=10, max_length=8000)


class SuggestionEdit(BaseModel):
	title: Optional[str] = Field(default=None, min_length=3, max_length=200)
	content: Optional[str] = Field(default=None, min_length=10, max_length=8000)


class SuggestionRespondRequest(BaseModel):
	action: str = Field(..., min_length=1, max_length=16)
	message: Optional[str] = Field(default=None, max_length=2000)
	edited_data: Optional[SuggestionEdit] = None


class SuggestionResponse(BaseModel):
	id: UUID
	project_id: UUID
	user_id: UUID
	title: str
	content: str
	status: str
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class SuggestionRespondResponse(BaseModel):
	suggestion: SuggestionResponse
	project: Optional[ProjectResponse] = None


class ProgressReportCreateRequest(BaseModel):
	title: str = Field(..., min_length=3, max_length=200)
	content: str = Field(..., min_length=1, max_length=20000)
	attachments: List[str] = Field(default_factory=list, max_length=10)


class ProgressReportResponse(BaseModel):
	id: UUID
	project_id: UUID
	user_id: UUID
	title: str
	content: str
	attachments: List[str] = Field(default_factory=list)
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


# --- Programmes ---------------------------------------------------------------


class ProgrammeBase(BaseModel):
	title: str = Field(..., min_length=3, max_length=200)
	description: str = Field(..., min_length=10, max_length=8000)
	cover_image: Optional[str] = None
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	max_participants: Optional[int] = Field(default=None, ge=1)
	application_deadline: Optional[datetime] = None
	prerequisites: List[str] = Field(default_factory=list)
	learning_outcomes: List[str] = Field(default_factory=list)
	curriculum: Optional[Any] = None


class ProgrammeCreateRequest(ProgrammeBase):
	hub_id: UUID


class HubProgrammeCreateRequest(ProgrammeBase):
	supervisor_ids: List[UUID] = Field(default_factory=list, max_length=10)


class ProgrammeResponse(BaseModel):
	id: UUID
	hub_id: UUID
	title: str
	description: str
	cover_image: Optional[str] = None
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	max_participants: Optional[int] = None
	application_deadline: Optional[datetime] = None
	prerequisites: List[str] = Field(default_factory=list)
	learning_outcomes: List[str] = Field(default_factory=list)
	curriculum: Optional[Any] = None
	publish_status: str
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	member_count: Optional[int] = None

	model_config = ConfigDict(from_attributes=True)


class ProgrammeListResponse(BaseModel):
	items: List[ProgrammeResponse]
	pagination: PaginationMeta


# --- Events -------------------------------------------------------------------


class EventBase(BaseModel):
	title: str = Field(..., min_length=3, max_length=200)
	description: str = Field(..., min_length=10, max_length=8000)
	event_type: str = Field(default="GENERAL", max_length=40)
	cover_image: Optional[str] = None
	start_date: datetime
	end_date: Optional[datetime] = None
	is_online: bool = False
	venue: Optional[str] = Field(default=None, max_length=200)
	meeting_link: Optional[str] = Field(default=None, max_length=500)
	capacity: Optional[int] = Field(default=None, ge=1)
	visibility: str = Field(default="HUB_MEMBERS", pattern=_VISIBILITY_PATTERN)
	requirements: List[str] = Field(default_factory=list)
	tags: List[str] = Field(default_factory=list, max_length=20)
	speakers: Optional[Any] = None
	agenda: Optional[Any] = None


class EventCreateRequest(EventBase):
	hub_id: UUID


class EventUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, min_length=3, max_length=200)
	description: Optional[str] = Field(default=None, min_length=10, max_length=8000)
	event_type: Optional[str] = Field(default=None, max_length=40)
	cover_image: Optional[str] = None
	start_date: Optional[datetime] = None
	end_date: Optional[datetime] = None
	is_online: Optional[bool] = None
	venue: Optional[str] = Field(default=None, max_length=200)
	meeting_link: Optional[str] = Field(default=None, max_length=500)
	capacity: Optional[int] = Field(default=None, ge=1)
	visibility: Optional[str] = Field(default=None, pattern=_VISIBILITY_PATTERN)
	requirements: Optional[List[str]] = None
	tags: Optional[List[str]] = None
	speakers: Optional[Any] = None
	agenda: Optional[Any] = None
	publish_status: Optional[str] = Field(default=None, pattern=_PUBLISH_PATTERN)


class EventResponse(BaseModel):
	id: UUID
	hub_id: UUID
	title: str
	description: str
	event_type: str
	cover_image: Optional[str] = None
	start_date: datetime
	end_date: Optional[datetime] = None
	is_online: bool
	venue: Optional[str] = None
	meeting_link: Optional[str] = None
	capacity: Optional[int] = None
	visibility: str
	requirements: List[str] = Field(default_factory=list)
	tags: List[str] = Field(default_factory=list)
	speakers: Optional[Any] = None
	agenda: Optional[Any] = None
	publish_status: str
	created_by: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime
	registration_count: Optional[int] = None

	model_config = ConfigDict(from_attributes=True)


class EventListResponse(BaseModel):
	items: List[EventResponse]
	pagination: PaginationMeta


class EventRegisterRequest(BaseModel):
	user_id: Optional[UUID] = None


class EventRegistrationResponse(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	status: str
	attended: bool
	registered_at: datetime

	model_config = ConfigDict(from_attributes=True)


class ManagedProjectResponse(ProjectResponse):
	"""Project as seen by its hub leader, drafts included."""

	pending_requests: List[JoinRequestResponse] = Field(default_factory=list)


class ManagedProgrammeResponse(ProgrammeResponse):
	pending_requests: List[JoinRequestResponse] = Field(default_factory=list)


class ManagedEventResponse(EventResponse):
	pending_registrations: List[EventRegistrationResponse] = Field(default_factory=list)


class HubDetailResponse(HubResponse):
	members: List[HubMemberResponse] = Field(default_factory=list)
	projects: List[ProjectResponse] = Field(default_factory=list)
	programmes: List[ProgrammeResponse] = Field(default_factory=list)
	events: List[EventResponse] = Field(default_factory=list)


class FeedbackCreateRequest(BaseModel):
	rating: int = Field(..., ge=1, le=5)
	comment: Optional[str] = Field(default=None, max_length=2000)


class FeedbackResponse(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	rating: int
	comment: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


# --- Notifications ------------------------------------------------------------


class NotificationResponse(BaseModel):
	id: int
	user_id: UUID
	title: str
	message: str
	type: str
	priority: str
	action_url: Optional[str] = None
	metadata: Optional[Dict[str, Any]] = None
	is_read: bool
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
	items: List[NotificationResponse]
	next_cursor: Optional[str] = None


class NotificationMarkReadRequest(BaseModel):
	ids: List[int] = Field(..., min_length=1, max_length=200)
	mark_read: bool = True


class NotificationMarkResponse(BaseModel):
	updated: int


class NotificationUnreadResponse(BaseModel):
	count: int


# --- Administration -----------------------------------------------------------


class DashboardStats(BaseModel):
	total_users: int
	active_users: int
	total_hubs: int
	total_projects: int
	total_events: int
	pending_requests: int


class ChartPoint(BaseModel):
	month: str
	users: int
	registrations: int


class HubActivityPoint(BaseModel):
	hub: str
	events: int
	projects: int
	total: int


class ProjectCompletionPoint(BaseModel):
	hub: str
	completion_rate: float


class ActivityItem(BaseModel):
	id: UUID
	action: str
	title: str
	description: str
	entity_type: str
	entity_id: Optional[str] = None
	user_email: Optional[str] = None
	created_at: datetime


class InsightResponse(BaseModel):
	id: Optional[str] = None
	type: str
	title: str
	description: str
	confidence: float
	actionable: bool = True
	priority: str
	impact: Optional[str] = None
	recommendations: List[str] = Field(default_factory=list)


class DashboardResponse(BaseModel):
	stats: DashboardStats
	engagement_rate: float
	growth_rate: float
	chart_data: List[ChartPoint]
	hub_activity: List[HubActivityPoint]
	project_completion: List[ProjectCompletionPoint]
	period_start: datetime
	period_end: datetime
	recent_activity: List[ActivityItem]
	insights: List[InsightResponse]


class UserListResponse(BaseModel):
	items: List[UserResponse]
	pagination: PaginationMeta


class UserUpdateRequest(BaseModel):
	email: Optional[EmailStr] = None
	first_name: Optional[str] = Field(default=None, min_length=2, max_length=80)
	last_name: Optional[str] = Field(default=None, min_length=2, max_length=80)
	role: Optional[str] = Field(default=None, pattern="^(STUDENT|ADMIN)$")
	skills: Optional[List[str]] = None
	is_active: Optional[bool] = None


class AdminHubCreateRequest(BaseModel):
	name: str = Field(..., min_length=2, max_length=120)
	description: str = Field(..., min_length=10, max_length=4000)
	card_bio: str = Field(..., min_length=5, max_length=280)
	categories: List[str] = Field(..., min_length=1, max_length=10)
	vision: str = Field(..., min_length=10, max_length=2000)
	mission: str = Field(..., min_length=10, max_length=2000)
	objectives: List[str] = Field(..., min_length=1, max_length=20)
	logo: Optional[str] = None
	cover_image: Optional[str] = None
	hub_leader_id: UUID
	hub_supervisor_id: UUID


class BulkActionRequest(BaseModel):
	entity: str = Field(..., min_length=1, max_length=20)
	action: str = Field(..., min_length=1, max_length=20)
	ids: List[UUID] = Field(..., min_length=1, max_length=500)
	value: Optional[str] = Field(default=None, max_length=40)


class BulkActionResponse(BaseModel):
	entity: str
	action: str
	affected: int


class SettingsResponse(BaseModel):
	settings: Dict[str, Dict[str, Any]]


class ActionRequest(BaseModel):
	action: str = Field(..., min_length=1, max_length=40)


class ActionResponse(BaseModel):
	action: str
	success: bool = True
	message: str
	data: Optional[Dict[str, Any]] = None


class SystemHealthResponse(BaseModel):
	status: str
	services: Dict[str, Dict[str, Any]]
	checked_at: datetime


# --- Audit ----------------------------------------------------------------------


class AuditLogResponse(BaseModel):
	id: UUID
	user_id: Optional[UUID] = None
	user_email: Optional[str] = None
	action: str
	entity_type: str
	entity_id: Optional[str] = None
	metadata: Optional[Dict[str, Any]] = None
	success: bool
	ip_address: Optional[str] = None
	user_agent: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class AuditLogListResponse(BaseModel):
	items: List[AuditLogResponse]
	pagination: PaginationMeta


class AuditLogCreateRequest(BaseModel):
	action: str = Field(..., min_length=1, max_length=80)
	entity_type: str = Field(..., min_length=1, max_length=80)
	entity_id: Optional[str] = Field(default=None, max_length=80)
	metadata: Optional[Dict[str, Any]] = None
	success: bool = True


# --- Insights and assistant --------------------------------------------------


class SystemMetricsRequest(BaseModel):
	total_users: int = Field(default=0, ge=0)
	active_users: int = Field(default=0, ge=0)
	total_hubs: int = Field(default=0, ge=0)
	total_projects: int = Field(default=0, ge=0)
	total_events: int = Field(default=0, ge=0)
	engagement_rate: float = 0.0
	growth_rate: float = 0.0


class InsightListResponse(BaseModel):
	insights: List[InsightResponse]
	source: str


class HubRecommendationsRequest(BaseModel):
	name: str = Field(..., min_length=1, max_length=120)
	member_count: int = Field(default=0, ge=0)
	project_count: int = Field(default=0, ge=0)
	event_count: int = Field(default=0, ge=0)
	engagement_rate: float = 0.0


class HubRecommendationsResponse(BaseModel):
	recommendations: List[str]
	source: str


class ProjectSuccessRequest(BaseModel):
	member_count: int = Field(default=0, ge=0)
	duration_days: float = Field(default=0, ge=0)
	skills_match: float = Field(default=0, ge=0, le=1)
	hub_activity_score: float = Field(default=0, ge=0, le=1)


class ProjectSuccessResponse(BaseModel):
	score: float


class UserEngagementData(BaseModel):
	total_users: int = 0
	active_users: int = 0
	engagement_rate: float = 0.0
	trend: float = 0.0


class HubPerformanceData(BaseModel):
	total_hubs: int = 0
	active_hubs: int = 0
	average_members: float = 0.0
	top_performing_hubs: List[Any] = Field(default_factory=list)


class ProjectMetricsData(BaseModel):
	total_projects: int = 0
	completed_projects: int = 0
	completion_rate: float = 0.0
	average_completion_time: float = 0.0


class EventMetricsData(BaseModel):
	total_events: int = 0
	upcoming_events: int = 0
	average_attendance: float = 0.0
	popular_event_types: List[str] = Field(default_factory=list)


class AnalyticsData(BaseModel):
	user_engagement: UserEngagementData = Field(default_factory=UserEngagementData)
	hub_performance: HubPerformanceData = Field(default_factory=HubPerformanceData)
	project_metrics: ProjectMetricsData = Field(default_factory=ProjectMetricsData)
	event_metrics: EventMetricsData = Field(default_factory=EventMetricsData)


class AnalyticsInsightsRequest(BaseModel):
	analytics_data: AnalyticsData = Field(default_factory=AnalyticsData)
	user_role: str = "STUDENT"
	hub_id: Optional[UUID] = None


class RecommendationRequest(BaseModel):
	user_id: Optional[UUID] = None
	context: Optional[str] = Field(default=None, pattern="^(all|event|project|programme|hub|user)$")
	limit: int = Field(default=5, ge=1, le=20)


class RecommendationResponse(BaseModel):
	id: str
	type: str
	title: str
	description: str
	confidence: float
	reason: str
	data: Dict[str, Any] = Field(default_factory=dict)


class RecommendationListResponse(BaseModel):
	recommendations: List[RecommendationResponse]


class ChatRequest(BaseModel):
	message: str = Field(..., min_length=1, max_length=2000)
	context: Dict[str, Any] = Field(default_factory=dict)


class ChatResponse(BaseModel):
	response: str
	type: str
	intent: str
	suggestions: List[str] = Field(default_factory=list)
	source: str = "knowledge_base"


# --- Uploads --------------------------------------------------------------------


class UploadResponse(BaseModel):
	url: str
	key: str
	type: str
	name: str
	size: int
