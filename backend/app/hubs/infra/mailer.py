"""Transactional email for account flows (sign-up and password reset codes)."""

from __future__ import annotations

import hashlib
import logging
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

from app.settings import settings

logger = logging.getLogger(__name__)

_PURPOSE_SUBJECTS = {
	"signup": "Your UDSM Hub System verification code",
	"reset": "Reset your UDSM Hub System password",
}


def mask_email(email: str) -> str:
	return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:12]


def _smtp_configured() -> bool:
	if not settings.smtp_host:
		return False
	return settings.smtp_host != "localhost" or settings.is_dev()


async def send_email(to_email: str, subject: str, body_html: str) -> bool:
	"""Send an HTML email; failures are logged and reported as False."""
	if not _smtp_configured():
		logger.warning("SMTP not configured, skipping email to %s", mask_email(to_email))
		return False

	msg = EmailMessage()
	msg["From"] = formataddr((settings.smtp_from_name, settings.smtp_from_email))
	msg["To"] = to_email
	msg["Subject"] = subject
	msg.set_content(body_html, subtype="html")

	# STARTTLS on 587, implicit TLS on 465
	start_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 587
	use_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 465
	try:
		await aiosmtplib.send(
			msg,
			hostname=settings.smtp_host,
			port=settings.smtp_port,
			username=settings.smtp_user,
			password=settings.smtp_password,
			start_tls=start_tls,
			use_tls=use_tls,
		)
	except (aiosmtplib.SMTPException, OSError) as exc:
		logger.error("Failed to send email to %s: %s", mask_email(to_email), exc)
		return False
	logger.info("Email sent to %s", mask_email(to_email))
	return True


async def send_otp_email(email: str, code: str, *, purpose: str = "signup") -> bool:
	minutes = max(1, settings.otp_ttl_seconds // 60)
	subject = _PURPOSE_SUBJECTS.get(purpose, _PURPOSE_SUBJECTS["signup"])
	action = "reset your password" if purpose == "reset" else "complete your registration"
	body = f"""
	<html>
		<body>
			<p>Hello,</p>
			<p>Use the code below to {action}:</p>
			<p style="font-size: 24px; letter-spacing: 4px;"><strong>{code}</strong></p>
			<p>The code expires in {minutes} minutes.</p>
			<p>If you did not request this, please ignore this email.</p>
		</body>
	</html>
	"""
	return await send_email(email, subject, body)
