"""Help-desk assistant: keyword intents over a fixed knowledge base, with an optional model answer."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from app.hubs.domain.exceptions import AIUnavailableError
from app.hubs.infra import ai_providers
from app.hubs.schemas import dto
from app.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

GREETING_RE = re.compile(r"^(hi|hello|hey|good morning|good afternoon|good evening)")
THANKS_RE = re.compile(r"thank|thanks|appreciate")
MENU_RE = re.compile(r"what can you|what do you|options|topics|menu|capabilities")


@dataclass(frozen=True, slots=True)
class KnowledgeEntry:
	intent: str
	keywords: tuple[str, ...]
	response: str
	suggestions: tuple[str, ...]


KNOWLEDGE_BASE: tuple[KnowledgeEntry, ...] = (
	KnowledgeEntry(
		"event_registration",
		("event", "register", "registration", "attend", "participate"),
		"""To register for events:

1. **Browse Events**: Go to the Events page or your hub dashboard
2. **Find Event**: Use search or filters to find events you're interested in
3. **Check Eligibility**: Events may be PUBLIC, for authenticated users, or hub members only
4. **Click Register**: Click the "Register" button on the event page
5. **Get Confirmation**: You'll receive a notification once your registration is confirmed

**Note**: Some events have capacity limits and may fill up quickly!""",
		("How to find upcoming events?", "What if an event is full?", "How to cancel registration?"),
	),
	KnowledgeEntry(
		"project_joining",
		("project", "join", "collaborate", "team", "participate"),
		"""To join projects:

1. **Hub Membership Required**: You must be a member of the hub that owns the project
2. **Browse Projects**: Visit your hub's projects section
3. **Review Details**: Check project objectives, required skills, and timeline
4. **Submit Request**: Click "Join Project" and submit your request
5. **Wait for Approval**: Project leaders will review your application
6. **Start Contributing**: Once approved, you can access project resources and tasks

**For Non-Hub Members**: You need to join the hub first before participating in projects.""",
		("How to join a hub?", "What skills are needed for projects?", "How to propose a new project?"),
	),
	KnowledgeEntry(
		"programme_enrollment",
		("programme", "program", "enroll", "course", "learning", "education"),
		"""To enroll in programmes:

1. **Browse Programmes**: Visit the Programmes page to see all available options
2. **Check Requirements**: Review prerequisites, capacity and the application deadline
3. **Apply**: Click "Join Programme" and submit your application
4. **Wait for Approval**: Programme supervisors review every application
5. **Track Progress**: Monitor your progress through the programme dashboard
6. **Earn Certificate**: Complete all modules to receive your certificate""",
		("What programmes are available?", "How long do programmes take?", "Are programmes free?"),
	),
	KnowledgeEntry(
		"hub_joining",
		("hub", "join", "community", "member", "membership"),
		"""To join a hub:

1. **Explore Hubs**: Browse available hubs on the Hubs page
2. **Find Your Interest**: Look for hubs that match your interests and skills
3. **Submit Request**: Click "Join Hub" and submit a membership request
4. **Include Message**: Explain why you want to join and what you can contribute
5. **Wait for Approval**: Hub leaders will review your request
6. **Get Notified**: You'll receive a notification when approved""",
		("What hubs are available?", "How to create a new hub?", "What are hub member benefits?"),
	),
	KnowledgeEntry(
		"navigation",
		("navigate", "find", "where", "how to use", "dashboard", "menu"),
		"""Platform Navigation Guide:

**Main Sections**:
- **Dashboard**: Your personalized overview and activities
- **Hubs**: Browse and join communities
- **Events**: Discover and register for events
- **Projects**: Collaborate on innovative projects
- **Programmes**: Enroll in learning opportunities

**User-Specific Areas**:
- **Students**: Access dashboard, browse content, join programmes
- **Hub Members**: Additional access to hub-specific content and projects
- **Hub Leaders**: Manage hubs, create events/projects
- **Admins**: Full system management capabilities""",
		("How to update my profile?", "Where to find my registrations?", "How to contact support?"),
	),
	KnowledgeEntry(
		"technical_support",
		("help", "support", "problem", "issue", "error", "bug", "technical"),
		"""Technical Support:

**Common Issues**:
- **Login Problems**: Try clearing browser cache or reset password
- **File Upload Issues**: Check file size (max 10MB) and format
- **Page Not Loading**: Refresh page or try different browser
- **Notification Issues**: Check browser notification permissions

**Get Help**:
- **Email Support**: support@udsm.ac.tz
- **User Guide**: Available in the Help section

**For Urgent Issues**: Contact your hub leader or system administrator.""",
		("How to reset password?", "File upload not working", "Contact system admin"),
	),
	KnowledgeEntry(
		"policies",
		("policy", "rules", "guidelines", "terms", "conditions"),
		"""Platform Policies:

**User Guidelines**:
- Respect all community members
- Use appropriate language in all communications
- Share accurate information only
- Respect intellectual property rights

**Content Policies**:
- No spam or irrelevant content
- No offensive or discriminatory material
- Proper attribution for shared resources
- Follow academic integrity standards

For detailed policies, contact administration at admin@udsm.ac.tz""",
		("How to report inappropriate content?", "Privacy settings", "Academic integrity guidelines"),
	),
)

_BY_INTENT = {entry.intent: entry for entry in KNOWLEDGE_BASE}

GREETING_RESPONSE = (
	"Hello! I'm here to help you navigate the UDSM Hub Management System. What would you like to know about?"
)
THANKS_RESPONSE = (
	"You're welcome! Is there anything else I can help you with regarding the UDSM Hub Management System?"
)
GENERAL_RESPONSE = """I can help you with various aspects of the UDSM Hub Management System:

- **Hubs**: Join communities and collaborate
- **Events**: Register for workshops and seminars
- **Projects**: Participate in innovative projects
- **Programmes**: Enroll in learning opportunities

What specific area would you like help with?"""
ESCALATION_RESPONSE = """I understand you're asking about "{message}", but I don't have specific information on that topic.

Here's what I can help you with:
- Hub membership and activities
- Event registration and participation
- Project collaboration
- Programme enrollment
- Platform navigation
- Technical support

For specific questions not covered here, please contact:
- **General Support**: support@udsm.ac.tz
- **Academic Queries**: academic@udsm.ac.tz
- **Technical Issues**: tech@udsm.ac.tz

Would you like help with any of these topics?"""


def detect_intent(message: str) -> str:
	"""Knowledge-base keywords win, then greetings, thanks and menu requests."""
	text = message.strip().lower()
	for entry in KNOWLEDGE_BASE:
		if any(keyword in text for keyword in entry.keywords):
			return entry.intent
	if GREETING_RE.search(text):
		return "greeting"
	if THANKS_RE.search(text):
		return "thanks"
	if MENU_RE.search(text):
		return "general"
	return "unknown"


def knowledge_answer(intent: str, message: str) -> dto.ChatResponse:
	if intent == "greeting":
		return dto.ChatResponse(
			response=GREETING_RESPONSE,
			type="text",
			intent=intent,
			suggestions=["How to join a hub?", "How to register for events?", "How to enroll in programmes?"],
		)
	if intent == "thanks":
		return dto.ChatResponse(
			response=THANKS_RESPONSE,
			type="text",
			intent=intent,
			suggestions=["Browse available hubs", "Find upcoming events", "Explore programmes"],
		)
	if intent == "general":
		return dto.ChatResponse(
			response=GENERAL_RESPONSE,
			type="text",
			intent=intent,
			suggestions=["Join a hub", "Register for events", "Find projects", "Enroll in programmes"],
		)
	entry = _BY_INTENT.get(intent)
	if entry is not None:
		return dto.ChatResponse(
			response=entry.response,
			type="text",
			intent=intent,
			suggestions=list(entry.suggestions),
		)
	return dto.ChatResponse(
		response=ESCALATION_RESPONSE.format(message=message.strip()),
		type="escalation",
		intent="escalation",
		suggestions=["Contact support", "Browse help topics", "Return to main menu"],
	)


class ChatbotService:
	"""Answers help-desk questions for signed-in and anonymous visitors."""

	def __init__(self, *, manager: ai_providers.AIProviderManager | None = None) -> None:
		self._manager = manager

	@property
	def manager(self) -> ai_providers.AIProviderManager:
		return self._manager or ai_providers.get_manager()

	async def reply(self, payload: dto.ChatRequest) -> dto.ChatResponse:
		intent = detect_intent(payload.message)
		if intent != "unknown" or not self.manager.is_available():
			obs_metrics.inc_ai_insight("chatbot", "knowledge_base")
			return knowledge_answer(intent, payload.message)
		try:
			text, provider = await self.manager.complete(payload.message, context=payload.context, max_tokens=800)
		except AIUnavailableError:
			logger.warning("chatbot provider unavailable, escalating")
			obs_metrics.inc_ai_insight("chatbot", "fallback")
			return knowledge_answer(intent, payload.message)
		obs_metrics.inc_ai_insight("chatbot", provider)
		return dto.ChatResponse(
			response=text.strip(),
			type="text",
			intent="ai",
			suggestions=["Browse available hubs", "Find upcoming events", "Contact support"],
			source=provider,
		)
