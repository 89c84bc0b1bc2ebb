from datetime import datetime, timezone
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.hubs.api import admin as admin_api
from app.hubs.api import audit as audit_api
from app.hubs.api import auth as auth_api
from app.hubs.api import events as events_api
from app.hubs.api import hubs as hubs_api
from app.hubs.api import projects as projects_api
from app.hubs.domain.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.hubs.schemas import dto
from app.infra import rate_limit
from app.infra.cookies import SESSION_COOKIE_NAME
from app.main import app, lifespan
from app.obs import tracing
from app.settings import settings

BASE = "/api/hms/v1"
STUDENT_HEADERS = {"X-User-Id": "00000000-0000-0000-0000-000000000001", "X-User-Roles": "STUDENT"}
ADMIN_HEADERS = {"X-User-Id": "00000000-0000-0000-0000-0000000000aa", "X-User-Roles": "ADMIN"}


def _user_response() -> dto.UserResponse:
	return dto.UserResponse(
		id=uuid4(),
		email="amani@udsm.ac.tz",
		first_name="Amani",
		last_name="Said",
		role="STUDENT",
		created_at=datetime.now(timezone.utc),
	)


@pytest.mark.asyncio
async def test_me_requires_authentication(api_client: AsyncClient):
	resp = await api_client.get(f"{BASE}/auth/me")
	assert resp.status_code == 401
	body = resp.json()
	assert body["error"] == "invalid_token"
	assert "request_id" in body


@pytest.mark.asyncio
async def test_validation_errors_use_error_body(api_client: AsyncClient):
	resp = await api_client.post(f"{BASE}/auth/signup", json={"email": "not-an-email"})
	assert resp.status_code == 422
	body = resp.json()
	assert body["error"] == "validation_error"
	assert isinstance(body["errors"], list) and body["errors"]


@pytest.mark.asyncio
async def test_admin_routes_reject_students(api_client: AsyncClient):
	resp = await api_client.get(f"{BASE}/admin/dashboard", headers=STUDENT_HEADERS)
	assert resp.status_code == 403
	assert resp.json()["detail"] == "insufficient_role"


@pytest.mark.asyncio
async def test_dashboard_date_range_reaches_service(api_client: AsyncClient, monkeypatch):
	seen = {}

	class _Admin:
		async def dashboard(self, user, *, start=None, end=None):
			seen.update(start=start, end=end)
			raise ValidationError("invalid_date_range")

	monkeypatch.setattr(admin_api, "_service", _Admin())
	resp = await api_client.get(
		f"{BASE}/admin/dashboard",
		params={"start": "2026-09-30T00:00:00Z", "end": "2026-09-01T00:00:00Z"},
		headers=ADMIN_HEADERS,
	)
	assert resp.status_code == 422
	assert resp.json()["detail"] == "invalid_date_range"
	assert (seen["start"].day, seen["end"].day) == (30, 1)


@pytest.mark.asyncio
async def test_domain_not_found_maps_to_404(api_client: AsyncClient, monkeypatch):
	class _Hubs:
		async def get_hub(self, hub_id):
			raise NotFoundError("hub_not_found")

	monkeypatch.setattr(hubs_api, "_service", _Hubs())
	resp = await api_client.get(f"{BASE}/hubs/{uuid4()}")
	assert resp.status_code == 404
	assert resp.json()["detail"] == "hub_not_found"


@pytest.mark.asyncio
async def test_rate_limited_otp_maps_to_429(api_client: AsyncClient, monkeypatch):
	class _Accounts:
		async def send_otp(self, payload):
			raise rate_limit.RateLimitExceeded("rate_limited")

	monkeypatch.setattr(auth_api, "_service", _Accounts())
	resp = await api_client.post(f"{BASE}/auth/otp/send", json={"email": "new@udsm.ac.tz"})
	assert resp.status_code == 429
	assert resp.json()["detail"] == "rate_limited"


@pytest.mark.asyncio
async def test_login_sets_session_cookie_and_logout_clears_it(api_client: AsyncClient, monkeypatch):
	class _Accounts:
		async def login(self, payload):
			return dto.LoginResponse(
				access_token="signed-token",
				expires_in=3600,
				user=_user_response(),
				redirect_url="/dashboard/me",
			)

	monkeypatch.setattr(auth_api, "_service", _Accounts())
	resp = await api_client.post(f"{BASE}/auth/login", json={"email": "amani@udsm.ac.tz", "password": "hubsecret1"})
	assert resp.status_code == 200
	assert resp.json()["token_type"] == "bearer"
	set_cookie = resp.headers["set-cookie"]
	assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=signed-token")
	assert "httponly" in set_cookie.lower()

	resp = await api_client.post(f"{BASE}/auth/logout")
	assert resp.status_code == 200
	assert resp.json() == {"message": "Logged out successfully"}
	assert f'{SESSION_COOKIE_NAME}=""' in resp.headers["set-cookie"]


@pytest.mark.asyncio
async def test_event_registration_passes_caller(api_client: AsyncClient, monkeypatch):
	seen = {}
	event_id = uuid4()

	class _Events:
		async def register(self, user, event_id, payload):
			seen["user"] = user.id
			return dto.EventRegistrationResponse(
				id=uuid4(),
				event_id=event_id,
				user_id=user.id,
				status="APPROVED",
				attended=False,
				registered_at=datetime.now(timezone.utc),
			)

	monkeypatch.setattr(events_api, "_service", _Events())
	resp = await api_client.post(f"{BASE}/events/{event_id}/register", json={}, headers=STUDENT_HEADERS)
	assert resp.status_code == 201
	assert seen["user"] == STUDENT_HEADERS["X-User-Id"]
	assert resp.json()["status"] == "APPROVED"


@pytest.mark.asyncio
async def test_audit_export_attachment(api_client: AsyncClient, monkeypatch):
	class _Audit:
		async def export(self, user, **filters):
			assert filters["format"] == "csv"
			return "Timestamp,User Email\n", "text/csv"

	monkeypatch.setattr(audit_api, "_service", _Audit())
	resp = await api_client.get(f"{BASE}/admin/audit-logs/export", params={"format": "csv"}, headers=ADMIN_HEADERS)
	assert resp.status_code == 200
	assert resp.headers["content-type"].startswith("text/csv")
	disposition = resp.headers["content-disposition"]
	assert disposition.startswith('attachment; filename="audit-logs-')
	assert disposition.endswith('.csv"')


@pytest.mark.asyncio
async def test_upload_requires_file(api_client: AsyncClient):
	resp = await api_client.post(f"{BASE}/uploads", data={"folder": "avatars"}, headers=STUDENT_HEADERS)
	assert resp.status_code == 400
	assert resp.json()["detail"] == "file_missing"


@pytest.mark.asyncio
async def test_upload_rejects_unknown_type(api_client: AsyncClient):
	resp = await api_client.post(
		f"{BASE}/uploads",
		files={"file": ("run.sh", b"echo hi", "application/x-sh")},
		headers=STUDENT_HEADERS,
	)
	assert resp.status_code == 400
	assert resp.json()["detail"] == "mime_invalid"


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(api_client: AsyncClient, monkeypatch):
	monkeypatch.setattr(settings, "upload_max_bytes", 4)
	resp = await api_client.post(
		f"{BASE}/uploads",
		files={"file": ("notes.txt", b"too large", "text/plain")},
		headers=STUDENT_HEADERS,
	)
	assert resp.status_code == 400
	assert resp.json()["detail"] == "size_exceeded"


@pytest.mark.asyncio
async def test_upload_stores_file(api_client: AsyncClient, monkeypatch, tmp_path):
	monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
	monkeypatch.setattr(settings, "upload_base_url", "http://files.test/uploads")
	resp = await api_client.post(
		f"{BASE}/uploads",
		data={"folder": "avatars"},
		files={"file": ("face.png", b"\x89PNG fake", "image/png")},
		headers=STUDENT_HEADERS,
	)
	assert resp.status_code == 201
	body = resp.json()
	assert body["type"] == "image/png"
	assert body["name"] == "face.png"
	assert body["url"].startswith("http://files.test/uploads/avatars/")
	assert (tmp_path / body["key"]).read_bytes() == b"\x89PNG fake"


@pytest.mark.asyncio
async def test_liveness_reports_service(api_client: AsyncClient):
	resp = await api_client.get("/health/live")
	assert resp.status_code == 200
	assert resp.json() == {"status": "ok", "service": settings.service_name, "commit": settings.git_commit}


@pytest.mark.asyncio
async def test_metrics_access(api_client: AsyncClient, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", False)
	monkeypatch.setattr(settings, "obs_admin_token", "scrape-me")

	resp = await api_client.get("/metrics", headers=STUDENT_HEADERS)
	assert resp.status_code == 403
	assert resp.json()["detail"] == "forbidden"

	resp = await api_client.get("/metrics", headers={"X-Admin-Token": "scrape-me"})
	assert resp.status_code == 200
	assert "hms_http_requests_total" in resp.text

	resp = await api_client.get("/metrics", headers=ADMIN_HEADERS)
	assert resp.status_code == 200


@pytest.mark.asyncio
async def test_unexpected_failure_is_internal_error(monkeypatch):
	class _Hubs:
		async def get_hub(self, hub_id):
			raise RuntimeError("connection to postgres at 10.0.0.5 refused")

	monkeypatch.setattr(hubs_api, "_service", _Hubs())
	transport = ASGITransport(app=app, raise_app_exceptions=False)
	async with AsyncClient(transport=transport, base_url="http://hms.test") as client:
		resp = await client.get(f"{BASE}/hubs/{uuid4()}")
	assert resp.status_code == 500
	body = resp.json()
	assert body["error"] == "internal_error"
	assert "postgres" not in resp.text


@pytest.mark.asyncio
async def test_lifespan_flushes_tracing(monkeypatch):
	class _Provider:
		flushed = 0

		def shutdown(self):
			self.flushed += 1

	class _Trace:
		provider = _Provider()

		def get_tracer_provider(self):
			return self.provider

	fake_trace = _Trace()
	monkeypatch.setattr(tracing, "trace", fake_trace)
	monkeypatch.setattr(tracing, "_instrumented", True)

	async with lifespan(app):
		pass

	assert fake_trace.provider.flushed == 1
	assert tracing._instrumented is False
	tracing.shutdown_tracing()
	assert fake_trace.provider.flushed == 1


@pytest.mark.asyncio
async def test_manage_projects_route_is_leader_only(api_client: AsyncClient, monkeypatch):
	hub_id = uuid4()

	class _Projects:
		async def list_managed_projects(self, user, requested_hub):
			assert requested_hub == hub_id
			raise ForbiddenError("hub_leader_required")

	monkeypatch.setattr(projects_api, "_service", _Projects())
	resp = await api_client.get(f"{BASE}/hubs/{hub_id}/manage/projects", headers=STUDENT_HEADERS)
	assert resp.status_code == 403
	assert resp.json()["detail"] == "hub_leader_required"

	resp = await api_client.get(f"{BASE}/hubs/{hub_id}/manage/projects")
	assert resp.status_code == 401
