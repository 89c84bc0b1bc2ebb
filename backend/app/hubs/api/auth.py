"""Sign-up, passcode, password reset and session endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from app.hubs.api._errors import DomainErrors, to_http_error
from app.hubs.domain.accounts_service import AccountsService
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user
from app.infra.cookies import clear_session_cookie, set_session_cookie

router = APIRouter(prefix="/auth", tags=["hms:auth"])
_service = AccountsService()


@router.post("/signup", response_model=dto.SignupResponse, status_code=201)
async def signup_endpoint(payload: dto.SignupRequest) -> dto.SignupResponse:
	try:
		return await _service.signup(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/otp/send", response_model=dto.MessageResponse)
async def send_otp_endpoint(payload: dto.OtpSendRequest) -> dto.MessageResponse:
	try:
		return await _service.send_otp(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/otp/verify", response_model=dto.MessageResponse)
async def verify_otp_endpoint(payload: dto.OtpVerifyRequest) -> dto.MessageResponse:
	try:
		return await _service.verify_otp(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/forgot-password", response_model=dto.MessageResponse)
async def forgot_password_endpoint(payload: dto.ForgotPasswordRequest) -> dto.MessageResponse:
	try:
		return await _service.forgot_password(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/reset-password", response_model=dto.MessageResponse)
async def reset_password_endpoint(payload: dto.ResetPasswordRequest) -> dto.MessageResponse:
	try:
		return await _service.reset_password(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


@router.post("/login", response_model=dto.LoginResponse)
async def login_endpoint(payload: dto.LoginRequest, response: Response) -> dto.LoginResponse:
	try:
		result = await _service.login(payload)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc
	set_session_cookie(response, access_token=result.access_token)
	return result


@router.post("/logout", response_model=dto.MessageResponse)
async def logout_endpoint(response: Response) -> dto.MessageResponse:
	clear_session_cookie(response)
	return dto.MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=dto.UserResponse)
async def me_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> dto.UserResponse:
	try:
		return await _service.me(auth_user)
	except DomainErrors as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
