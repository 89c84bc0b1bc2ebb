"""System settings and system health for the admin console."""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from app.hubs.domain import policies, repo as repo_module
from app.hubs.domain.audit_service import AuditService
from app.hubs.domain.exceptions import BadRequestError, ValidationError
from app.hubs.infra import ai_providers
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser
from app.infra.redis import redis_client
from app.obs import health
from app.settings import settings

logger = logging.getLogger(__name__)

CACHE_KEY = "hms:settings"
CACHE_TTL_SECONDS = 300
MAX_UPLOAD_CEILING = 100 * 1024 * 1024
MIN_PASSWORD_LENGTH = 6

DEFAULT_SETTINGS: dict[str, dict[str, Any]] = {
	"general": {
		"site_name": "UDSM Hub Management System",
		"site_description": "University of Dar es Salaam Hub Management System - Connect, Collaborate, and Grow",
		"contact_email": "support@udsm.ac.tz",
		"maintenance_mode": False,
		"allow_registration": True,
		"require_email_verification": False,
	},
	"security": {
		"session_timeout_minutes": 24 * 60,
		"max_login_attempts": 5,
		"password_min_length": 8,
		"require_strong_passwords": True,
		"enable_two_factor": False,
		"allow_google_auth": True,
	},
	"notifications": {
		"enable_email_notifications": True,
		"enable_push_notifications": True,
		"notification_frequency": "immediate",
	},
	"features": {
		"enable_ai_features": True,
		"enable_realtime_notifications": True,
		"enable_file_uploads": True,
		"max_file_size": 10 * 1024 * 1024,
		"allowed_file_types": ["jpg", "jpeg", "png", "gif", "pdf", "doc", "docx", "txt"],
	},
	"integrations": {
		"storage_enabled": True,
		"email_enabled": False,
		"ai_enabled": False,
		"analytics_enabled": True,
	},
	"limits": {
		"max_hubs_per_user": 5,
		"max_projects_per_hub": 50,
		"max_events_per_hub": 100,
		"max_members_per_hub": 500,
		"max_file_size_per_upload": 10 * 1024 * 1024,
	},
}

SECTIONS = tuple(DEFAULT_SETTINGS)


def integration_status() -> dict[str, Any]:
	"""Integration flags reflect configuration, never stored values."""
	return {
		"storage_enabled": bool(settings.upload_dir),
		"email_enabled": bool(settings.smtp_user and settings.smtp_password),
		"ai_enabled": bool(ai_providers.configured_providers()),
		"ai_providers": ai_providers.get_manager().available(),
		"analytics_enabled": True,
	}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
	merged = copy.deepcopy(dict(base))
	for key, value in override.items():
		if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
			merged[key] = deep_merge(merged[key], value)
		else:
			merged[key] = copy.deepcopy(value)
	return merged


def _int_setting(value: Any) -> int:
	if isinstance(value, bool):
		raise ValidationError("invalid_setting_value")
	try:
		return int(value)
	except (TypeError, ValueError) as exc:
		raise ValidationError("invalid_setting_value") from exc


def validate_update(payload: Mapping[str, Mapping[str, Any]]) -> None:
	unknown = [section for section in payload if section not in SECTIONS]
	if unknown:
		raise BadRequestError("unknown_settings_section")
	if any(not isinstance(values, Mapping) for values in payload.values()):
		raise ValidationError("invalid_setting_value")
	min_length = payload.get("security", {}).get("password_min_length")
	if min_length is not None and _int_setting(min_length) < MIN_PASSWORD_LENGTH:
		raise BadRequestError("password_min_length_too_small")
	max_upload = payload.get("limits", {}).get("max_file_size_per_upload")
	if max_upload is not None and _int_setting(max_upload) > MAX_UPLOAD_CEILING:
		raise BadRequestError("max_file_size_too_large")



class SystemSettingsService:
	"""Stored settings merged over defaults, plus dependency health checks."""

	def __init__(
		self,
		*,
		repository: repo_module.HubsRepository | None = None,
		audit: AuditService | None = None,
	) -> None:
		self.repo = repository or repo_module.HubsRepository()
		self.audit = audit or AuditService(repository=self.repo)

	async def _stored(self) -> dict[str, dict[str, Any]]:
		cached = await redis_client.get(CACHE_KEY)
		if cached:
			return json.loads(cached)
		stored = await self.repo.load_settings()
		await redis_client.set(CACHE_KEY, json.dumps(stored), ex=CACHE_TTL_SECONDS)
		return stored

	async def _invalidate(self) -> int:
		return await redis_client.delete_prefix(CACHE_KEY)

	async def effective_settings(self) -> dict[str, dict[str, Any]]:
		merged = deep_merge(DEFAULT_SETTINGS, await self._stored())
		merged["integrations"] = deep_merge(merged.get("integrations", {}), integration_status())
		return merged

	async def get_settings(self, user: AuthenticatedUser) -> dto.SettingsResponse:
		policies.assert_admin(user)
		return dto.SettingsResponse(settings=await self.effective_settings())

	async def update_settings(
		self,
		user: AuthenticatedUser,
		payload: Mapping[str, Mapping[str, Any]],
	) -> dto.SettingsResponse:
		policies.assert_admin(user)
		validate_update(payload)
		stored = deep_merge(await self.repo.load_settings(), payload)
		stored.pop("integrations", None)
		await self.repo.save_settings(stored, updated_by=user.id)
		await self._invalidate()
		await self.audit.record(
			user_id=user.id,
			action="SYSTEM_SETTINGS_UPDATED",
			entity_type="SYSTEM_SETTINGS",
			metadata={"changedSections": sorted(payload)},
		)
		return dto.SettingsResponse(settings=await self.effective_settings())

	async def settings_action(self, user: AuthenticatedUser, payload: dto.ActionRequest) -> dto.ActionResponse:
		policies.assert_admin(user)
		action = payload.action
		if action == "reset_to_defaults":
			await self.repo.clear_settings()
			await self._invalidate()
			await self.audit.record(
				user_id=user.id,
				action="SYSTEM_SETTINGS_RESET",
				entity_type="SYSTEM_SETTINGS",
			)
			return dto.ActionResponse(
				action=action,
				message="System settings reset to defaults",
				data={"settings": await self.effective_settings()},
			)
		if action == "backup_settings":
			backup = {
				"timestamp": datetime.now(timezone.utc).isoformat(),
				"settings": await self.effective_settings(),
				"created_by": user.email or user.id,
			}
			return dto.ActionResponse(action=action, message="Settings backup created successfully", data={"backup": backup})
		if action == "test_integrations":
			database = await health.postgres_status()
			status = integration_status()
			tests = {
				"storage": status["storage_enabled"],
				"email": status["email_enabled"],
				"ai": status["ai_enabled"],
				"database": bool(database.get("ok")),
			}
			return dto.ActionResponse(action=action, message="Integration tests completed", data={"tests": tests})
		raise BadRequestError("invalid_action")

	async def system_health(self, user: AuthenticatedUser) -> dto.SystemHealthResponse:
		policies.assert_admin(user)
		services = {
			"database": await health.postgres_status(),
			"redis": await health.redis_status(),
		}
		overall = health.worst_status([item.get("status", "error") for item in services.values()])
		return dto.SystemHealthResponse(status=overall, services=services, checked_at=datetime.now(timezone.utc))

	async def health_action(self, user: AuthenticatedUser, payload: dto.ActionRequest) -> dto.ActionResponse:
		policies.assert_admin(user)
		action = payload.action
		if action == "run_diagnostics":
			report = await self.system_health(user)
			return dto.ActionResponse(
				action=action,
				message="System diagnostics completed successfully",
				data=report.model_dump(mode="json"),
			)
		if action == "clear_cache":
			removed = await self._invalidate()
			await self.audit.record(user_id=user.id, action="SYSTEM_CACHE_CLEARED", entity_type="SYSTEM")
			return dto.ActionResponse(action=action, message="System cache cleared successfully", data={"removed": removed})
		if action == "restart_services":
			logger.info("restart requested", extra={"requested_by": user.id})
			return dto.ActionResponse(action=action, message="Service restart acknowledged")
		raise BadRequestError("invalid_action")
