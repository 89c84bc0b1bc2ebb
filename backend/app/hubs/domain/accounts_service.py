"""Sign-up, one-time passcodes, password reset and login."""

from __future__ import annotations

import logging
import uuid

from app.hubs.domain import policies, repo as repo_module
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, NotFoundError, ServiceUnavailableError, UnauthorizedError
from app.hubs.domain.models import User
from app.hubs.domain.notifications_service import NotificationService
from app.hubs.infra import mailer, otp
from app.hubs.schemas import dto
from app.infra import jwt as jwt_helper
from app.infra.auth import AuthenticatedUser
from app.infra.password import check_needs_rehash, hash_password, verify_password
from app.obs import metrics as obs_metrics
from app.settings import settings

logger = logging.getLogger(__name__)

WELCOME_TITLE = "Welcome to UDSM Hub System"
WELCOME_MESSAGE = "Your account has been created. Explore hubs, projects, programmes and events to get started."


def dashboard_url(user: User) -> str:
	if user.role == "ADMIN":
		return "/admin/dashboard"
	return f"/dashboard/{user.id}"


async def _deliver_otp(email: str, *, purpose: str) -> None:
	"""Issue and mail a code; an undelivered code is revoked so the caller can retry."""
	code = await otp.issue(email, purpose=purpose)
	if not await mailer.send_otp_email(email, code, purpose=purpose):
		await otp.revoke(email, purpose=purpose)
		obs_metrics.inc_auth_event(f"otp_{purpose}", "mail_failed")
		logger.warning("otp email not delivered", extra={"purpose": purpose})
		raise ServiceUnavailableError("email_unavailable")


class AccountsService:
	"""Account lifecycle for students and administrators."""

	def __init__(
		self,
		*,
		repository: repo_module.HubsRepository | None = None,
		notifications: NotificationService | None = None,
		audit: AuditService | None = None,
	) -> None:
		self.repo = repository or repo_module.HubsRepository()
		self.notifications = notifications or NotificationService(repository=self.repo)
		self.audit = audit or AuditService(repository=self.repo)

	@staticmethod
	def to_response(user: User) -> dto.UserResponse:
		return dto.UserResponse.model_validate(user.model_dump())

	async def signup(self, payload: dto.SignupRequest) -> dto.SignupResponse:
		policies.validate_signup_password(payload.password)
		email = str(payload.email).strip().lower()
		if await self.repo.get_user_by_email(email):
			raise BadRequestError("email_registered")
		user = await self.repo.create_user(
			email=email,
			password_hash=hash_password(payload.password),
			first_name=payload.first_name.strip(),
			last_name=payload.last_name.strip(),
			role="STUDENT",
			degree_programme=payload.degree_programme,
		)
		await self.notifications.notify(
			user_id=user.id,
			title=WELCOME_TITLE,
			message=WELCOME_MESSAGE,
			type="SYSTEM",
			priority="MEDIUM",
			action_url="/home/dashboard",
		)
		await self.audit.record(user_id=user.id, action="USER_REGISTERED", entity_type="USER", entity_id=user.id)
		obs_metrics.inc_auth_event("signup", "ok")
		return dto.SignupResponse(user=self.to_response(user), redirect_url=f"/dashboard/{user.id}")

	async def send_otp(self, payload: dto.OtpSendRequest) -> dto.MessageResponse:
		email = str(payload.email).strip().lower()
		if await self.repo.get_user_by_email(email):
			raise BadRequestError("email_registered")
		if await otp.get_active(email, purpose="signup"):
			return dto.MessageResponse(message="OTP already sent. Please check your email.")
		await _deliver_otp(email, purpose="signup")
		obs_metrics.inc_auth_event("otp_sent", "ok")
		return dto.MessageResponse(message="OTP sent successfully")

	async def verify_otp(self, payload: dto.OtpVerifyRequest) -> dto.MessageResponse:
		if not await otp.verify(str(payload.email), payload.otp, purpose="signup"):
			obs_metrics.inc_auth_event("otp_verify", "invalid")
			raise BadRequestError("otp_invalid")
		obs_metrics.inc_auth_event("otp_verify", "ok")
		return dto.MessageResponse(message="Email verified successfully")

	async def forgot_password(self, payload: dto.ForgotPasswordRequest) -> dto.MessageResponse:
		user = await self.repo.get_user_by_email(str(payload.email))
		if user is None or user.deleted_at is not None:
			raise BadRequestError("email_not_registered")
		if user.is_google_user:
			raise BadRequestError("google_account")
		await _deliver_otp(user.email, purpose="reset")
		obs_metrics.inc_auth_event("password_reset_requested", "ok")
		return dto.MessageResponse(message="Password reset code sent to your email")

	async def reset_password(self, payload: dto.ResetPasswordRequest) -> dto.MessageResponse:
		email = str(payload.email)
		if not await otp.verify(email, payload.otp, purpose="reset", consume=False):
			raise BadRequestError("otp_invalid")
		policies.validate_reset_password(payload.new_password)
		user = await self.repo.get_user_by_email(email)
		if user is None or user.deleted_at is not None:
			raise BadRequestError("email_not_registered")
		await self.repo.update_password(user.id, hash_password(payload.new_password))
		await otp.verify(email, payload.otp, purpose="reset")
		await self.audit.record(user_id=user.id, action="PASSWORD_RESET", entity_type="USER", entity_id=user.id)
		obs_metrics.inc_auth_event("password_reset", "ok")
		return dto.MessageResponse(message="Password reset successfully")

	async def login(self, payload: dto.LoginRequest) -> dto.LoginResponse:
		user = await self.repo.get_user_by_email(str(payload.email))
		if user is None or user.deleted_at is not None or not user.is_active:
			obs_metrics.inc_auth_event("login", "unknown_user")
			raise UnauthorizedError("invalid_credentials")
		if user.is_google_user:
			raise BadRequestError("google_account")
		if not user.password_hash:
			raise BadRequestError("password_not_set")
		if not verify_password(user.password_hash, payload.password):
			obs_metrics.inc_auth_event("login", "bad_password")
			await self.audit.record(
				user_id=user.id,
				action="USER_LOGIN",
				entity_type="USER",
				entity_id=user.id,
				success=False,
			)
			raise UnauthorizedError("invalid_credentials")
		if check_needs_rehash(user.password_hash):
			await self.repo.update_password(user.id, hash_password(payload.password))
		await self.repo.touch_last_login(user.id)
		await self.audit.record(
			user_id=user.id,
			action="USER_LOGIN",
			entity_type="USER",
			entity_id=user.id,
			metadata={"email": user.email},
		)
		ttl = int(settings.access_ttl_minutes) * 60
		token = jwt_helper.encode_access(
			{
				"sub": str(user.id),
				"sid": str(uuid.uuid4()),
				"role": user.role,
				"email": user.email,
				"name": user.full_name,
			},
			ttl_seconds=ttl,
		)
		obs_metrics.inc_auth_event("login", "ok")
		return dto.LoginResponse(
			access_token=token,
			expires_in=ttl,
			user=self.to_response(user),
			redirect_url=dashboard_url(user),
		)

	async def me(self, user: AuthenticatedUser) -> dto.UserResponse:
		record = await self.repo.get_user(user.id)
		if record is None or record.deleted_at is not None:
			raise NotFoundError("user_not_found")
		return self.to_response(record)
