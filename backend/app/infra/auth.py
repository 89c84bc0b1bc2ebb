"""Authentication helpers for FastAPI endpoints.

- Bearer JWTs are preferred, then the httpOnly session cookie.
- Dev headers (X-User-Id / X-User-Roles) are only respected in development.
- A reusable roles guard is provided for admin-only routes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.infra import jwt as jwt_helper
from app.infra.cookies import SESSION_COOKIE_NAME
from app.settings import settings

ADMIN_ROLE = "ADMIN"
STUDENT_ROLE = "STUDENT"


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	email: Optional[str] = None
	display_name: Optional[str] = None
	roles: Tuple[str, ...] = ()
	session_id: Optional[str] = None

	def has_role(self, role: str) -> bool:
		return role.upper() in {r.upper() for r in self.roles}

	@property
	def is_admin(self) -> bool:
		return self.has_role(ADMIN_ROLE)


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser.

	Roles can be a list or a comma-separated string under ``roles`` or ``role``.
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	display_name = payload.get("name")
	email = payload.get("email")
	roles_claim = payload.get("roles") or payload.get("role")
	roles: Tuple[str, ...]
	if isinstance(roles_claim, (list, tuple)):
		roles = tuple(str(r).strip() for r in roles_claim if str(r).strip())
	elif isinstance(roles_claim, str):
		roles = tuple(part.strip() for part in roles_claim.split(",") if part.strip())
	else:
		roles = ()

	session_id = payload.get("sid")

	return AuthenticatedUser(
		id=sub,
		email=str(email) if email is not None else None,
		display_name=str(display_name) if display_name is not None else None,
		roles=roles,
		session_id=str(session_id).strip() if session_id is not None else None,
	)


async def get_current_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments a valid
	Bearer JWT or session cookie is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	cookie_token = request.cookies.get(SESSION_COOKIE_NAME)
	if cookie_token:
		return verify_access_jwt(cookie_token)

	if settings.is_dev() and x_user_id:
		roles = tuple(filter(None, (x_user_roles or STUDENT_ROLE).split(",")))
		return AuthenticatedUser(id=x_user_id, roles=roles)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


async def get_optional_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthenticatedUser]:
	"""Like get_current_user but returns None for anonymous callers."""
	try:
		return await get_current_user(request, x_user_id, x_user_roles, credentials)
	except HTTPException:
		return None


def require_roles(*required: Iterable[str]):
	"""Return a dependency that enforces the presence of any of the given roles.

	Usage:
		@router.get("/admin", dependencies=[Depends(require_roles("ADMIN"))])
	"""
	required_set = {str(r).strip() for r in required if str(r).strip()}

	async def _dep(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
		if not required_set:
			return user
		if any(user.has_role(r) for r in required_set):
			return user
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")

	return _dep


get_admin_user = require_roles(ADMIN_ROLE)
