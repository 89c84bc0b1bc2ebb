from datetime import datetime, timezone

import pytest

from app.hubs.domain import accounts_service
from app.hubs.domain.accounts_service import AccountsService
from app.hubs.domain.exceptions import BadRequestError, NotFoundError, ServiceUnavailableError, UnauthorizedError
from app.hubs.infra import otp
from app.hubs.schemas import dto
from app.infra import jwt as jwt_helper
from app.infra.auth import AuthenticatedUser
from app.infra.password import hash_password


@pytest.fixture()
def sent_codes(monkeypatch):
	outbox: list[tuple[str, str, str]] = []

	async def _send(email: str, code: str, *, purpose: str = "signup") -> bool:
		outbox.append((email, code, purpose))
		return True

	monkeypatch.setattr(accounts_service.mailer, "send_otp_email", _send)
	return outbox


@pytest.mark.asyncio
async def test_signup_creates_student_and_welcomes(repo):
	service = AccountsService(repository=repo)

	result = await service.signup(
		dto.SignupRequest(
			first_name="Amani",
			last_name="Said",
			email="Amani.Said@udsm.ac.tz",
			password="hubsecret1",
		)
	)

	assert result.user.role == "STUDENT"
	assert result.user.email == "amani.said@udsm.ac.tz"
	assert result.redirect_url == f"/dashboard/{result.user.id}"
	stored = await repo.get_user(result.user.id)
	assert stored.password_hash and stored.password_hash != "hubsecret1"
	assert [note.title for note in repo.notifications_for(result.user.id)] == ["Welcome to UDSM Hub System"]
	assert "USER_REGISTERED" in repo.audit_actions()


@pytest.mark.asyncio
async def test_signup_weak_password_checked_first(repo):
	repo.add_user(email="taken@udsm.ac.tz")
	service = AccountsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.signup(
			dto.SignupRequest(first_name="Amani", last_name="Said", email="taken@udsm.ac.tz", password="nodigits!")
		)
	assert exc.value.detail == "weak_password"


@pytest.mark.asyncio
async def test_signup_duplicate_email(repo):
	repo.add_user(email="taken@udsm.ac.tz")
	service = AccountsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.signup(
			dto.SignupRequest(first_name="Amani", last_name="Said", email="taken@udsm.ac.tz", password="hubsecret1")
		)
	assert exc.value.detail == "email_registered"


@pytest.mark.asyncio
async def test_send_otp_is_idempotent_while_active(repo, sent_codes):
	service = AccountsService(repository=repo)

	first = await service.send_otp(dto.OtpSendRequest(email="new@udsm.ac.tz"))
	second = await service.send_otp(dto.OtpSendRequest(email="new@udsm.ac.tz"))

	assert first.message == "OTP sent successfully"
	assert second.message == "OTP already sent. Please check your email."
	assert len(sent_codes) == 1
	assert len(sent_codes[0][1]) == otp.OTP_LENGTH


@pytest.mark.asyncio
async def test_undelivered_otp_is_revoked(repo, monkeypatch):
	attempts = []

	async def _relay_down(email: str, code: str, *, purpose: str = "signup") -> bool:
		attempts.append(code)
		return False

	monkeypatch.setattr(accounts_service.mailer, "send_otp_email", _relay_down)
	service = AccountsService(repository=repo)

	for _ in range(2):
		with pytest.raises(ServiceUnavailableError) as exc:
			await service.send_otp(dto.OtpSendRequest(email="new@udsm.ac.tz"))
		assert exc.value.detail == "email_unavailable"
		assert exc.value.status_code == 503

	assert len(attempts) == 2
	assert await otp.get_active("new@udsm.ac.tz", purpose="signup") is None

	user = repo.add_user(email="known@udsm.ac.tz")
	with pytest.raises(ServiceUnavailableError):
		await service.forgot_password(dto.ForgotPasswordRequest(email=user.email))
	assert await otp.get_active(user.email, purpose="reset") is None


@pytest.mark.asyncio
async def test_verify_otp_consumes_code(repo, sent_codes):
	service = AccountsService(repository=repo)
	await service.send_otp(dto.OtpSendRequest(email="new@udsm.ac.tz"))
	code = sent_codes[0][1]

	with pytest.raises(BadRequestError) as exc:
		await service.verify_otp(dto.OtpVerifyRequest(email="new@udsm.ac.tz", otp="000000" if code != "000000" else "111111"))
	assert exc.value.detail == "otp_invalid"

	result = await service.verify_otp(dto.OtpVerifyRequest(email="new@udsm.ac.tz", otp=code))
	assert result.message == "Email verified successfully"
	assert await otp.get_active("new@udsm.ac.tz", purpose="signup") is None


@pytest.mark.asyncio
async def test_password_reset_flow(repo, sent_codes):
	user = repo.add_user(email="reset@udsm.ac.tz", password_hash=hash_password("oldpass12"))
	service = AccountsService(repository=repo)

	await service.forgot_password(dto.ForgotPasswordRequest(email="reset@udsm.ac.tz"))
	code = sent_codes[-1][1]
	assert sent_codes[-1][2] == "reset"

	with pytest.raises(BadRequestError) as exc:
		await service.reset_password(
			dto.ResetPasswordRequest(email="reset@udsm.ac.tz", otp=code, new_password="12345678")
		)
	assert exc.value.detail == "weak_password"

	result = await service.reset_password(
		dto.ResetPasswordRequest(email="reset@udsm.ac.tz", otp=code, new_password="newpass12")
	)
	assert result.message == "Password reset successfully"
	assert (await repo.get_user(user.id)).password_hash != user.password_hash
	assert await otp.get_active("reset@udsm.ac.tz", purpose="reset") is None


@pytest.mark.asyncio
async def test_forgot_password_rejects_google_account(repo, sent_codes):
	repo.add_user(email="g@udsm.ac.tz", is_google_user=True)
	service = AccountsService(repository=repo)
	with pytest.raises(BadRequestError) as exc:
		await service.forgot_password(dto.ForgotPasswordRequest(email="g@udsm.ac.tz"))
	assert exc.value.detail == "google_account"
	assert sent_codes == []


@pytest.mark.asyncio
async def test_login_issues_token(repo):
	user = repo.add_user(email="login@udsm.ac.tz", password_hash=hash_password("hubsecret1"), role="ADMIN")
	service = AccountsService(repository=repo)

	result = await service.login(dto.LoginRequest(email="login@udsm.ac.tz", password="hubsecret1"))

	assert result.redirect_url == "/admin/dashboard"
	claims = jwt_helper.decode_access(result.access_token)
	assert claims["sub"] == str(user.id)
	assert claims["role"] == "ADMIN"
	assert (await repo.get_user(user.id)).last_login_at is not None
	assert repo.audit_logs[-1].action == "USER_LOGIN" and repo.audit_logs[-1].success


@pytest.mark.asyncio
async def test_login_wrong_password_audited(repo):
	repo.add_user(email="login@udsm.ac.tz", password_hash=hash_password("hubsecret1"))
	service = AccountsService(repository=repo)
	with pytest.raises(UnauthorizedError) as exc:
		await service.login(dto.LoginRequest(email="login@udsm.ac.tz", password="wrongpass1"))
	assert exc.value.detail == "invalid_credentials"
	assert repo.audit_logs[-1].success is False


@pytest.mark.asyncio
async def test_login_unknown_and_google_users(repo):
	repo.add_user(email="g@udsm.ac.tz", is_google_user=True)
	service = AccountsService(repository=repo)
	with pytest.raises(UnauthorizedError):
		await service.login(dto.LoginRequest(email="ghost@udsm.ac.tz", password="whatever1"))
	with pytest.raises(BadRequestError) as exc:
		await service.login(dto.LoginRequest(email="g@udsm.ac.tz", password="whatever1"))
	assert exc.value.detail == "google_account"


@pytest.mark.asyncio
async def test_me_hides_deleted_accounts(repo):
	user = repo.add_user(deleted_at=datetime.now(timezone.utc))
	service = AccountsService(repository=repo)
	with pytest.raises(NotFoundError):
		await service.me(AuthenticatedUser(id=str(user.id)))
