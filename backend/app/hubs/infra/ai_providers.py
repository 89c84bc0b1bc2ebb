"""Chat-completion providers (OpenAI, Google Gemini, Azure OpenAI) behind one manager."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import httpx

from app.hubs.domain.exceptions import AIUnavailableError
from app.settings import settings

logger = logging.getLogger(__name__)

AZURE_API_VERSION = "2023-12-01-preview"
PROVIDER_ORDER = ("google", "openai", "azure")

SYSTEM_PROMPT = """You are an AI assistant for the UDSM Hub Management System, a university platform for student collaboration and learning.

Context:
- User Role: {role}
- Platform: University of Dar es Salaam Hub Management System
- Purpose: Help users navigate the platform, understand features, and get support

Your capabilities:
- Answer questions about platform features (hubs, events, projects, programmes)
- Guide users through common tasks
- Provide information about policies and procedures
- Offer technical support for basic issues
- Escalate complex issues to human support

Guidelines:
- Be helpful, friendly, and professional
- Use clear, concise language appropriate for university students
- When you don't know something, admit it and suggest contacting support
- Focus on actionable advice and step-by-step guidance
- Do not ask for sensitive information"""


@dataclass(frozen=True, slots=True)
class ProviderConfig:
	name: str
	api_key: str
	model: str
	base_url: str


def build_system_prompt(context: Mapping[str, Any] | None = None) -> str:
	role = (context or {}).get("user_role") or (context or {}).get("userRole") or "Student"
	return SYSTEM_PROMPT.format(role=role)


def configured_providers() -> dict[str, ProviderConfig]:
	"""Providers enabled by the API keys present in settings."""
	configs: dict[str, ProviderConfig] = {}
	if settings.openai_api_key:
		configs["openai"] = ProviderConfig("openai", settings.openai_api_key, settings.openai_model, settings.openai_base_url)
	if settings.google_ai_api_key:
		configs["google"] = ProviderConfig(
			"google", settings.google_ai_api_key, settings.google_ai_model, settings.google_ai_base_url
		)
	if settings.azure_openai_api_key and settings.azure_openai_endpoint:
		configs["azure"] = ProviderConfig(
			"azure", settings.azure_openai_api_key, settings.azure_openai_deployment, settings.azure_openai_endpoint
		)
	return configs


class AIProviderManager:
	"""Routes a completion to the preferred provider, falling back to any other configured one."""

	def __init__(
		self,
		*,
		providers: Mapping[str, ProviderConfig] | None = None,
		client_factory: Callable[[], httpx.AsyncClient] | None = None,
		timeout: float | None = None,
	) -> None:
		self._providers = dict(providers) if providers is not None else None
		self._client_factory = client_factory
		self._timeout = timeout if timeout is not None else settings.ai_timeout_seconds

	@property
	def providers(self) -> dict[str, ProviderConfig]:
		if self._providers is not None:
			return self._providers
		return configured_providers()

	def available(self) -> list[str]:
		configs = self.providers
		return [name for name in PROVIDER_ORDER if name in configs]

	def is_available(self, provider: str | None = None) -> bool:
		if provider:
			return provider in self.providers
		return bool(self.providers)

	def _candidates(self, preferred: str | None) -> list[ProviderConfig]:
		configs = self.providers
		order = self.available()
		wanted = preferred or settings.ai_default_provider
		if wanted in configs:
			order = [wanted] + [name for name in order if name != wanted]
		return [configs[name] for name in order]

	def _client(self) -> httpx.AsyncClient:
		if self._client_factory is not None:
			return self._client_factory()
		return httpx.AsyncClient(timeout=self._timeout)

	async def complete(
		self,
		message: str,
		*,
		context: Mapping[str, Any] | None = None,
		system_prompt: str | None = None,
		provider: str | None = None,
		max_tokens: int = 1000,
		temperature: float = 0.7,
	) -> tuple[str, str]:
		"""Return ``(text, provider_name)`` or raise AIUnavailableError."""
		candidates = self._candidates(provider)
		if not candidates:
			raise AIUnavailableError("no_ai_provider")
		prompt = system_prompt or build_system_prompt(context)
		async with self._client() as client:
			for config in candidates:
				try:
					text = await self._call(client, config, prompt, message, max_tokens, temperature)
				except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
					logger.warning("AI provider %s failed: %s", config.name, exc)
					continue
				return text, config.name
		raise AIUnavailableError("ai_providers_failed")

	async def _call(
		self,
		client: httpx.AsyncClient,
		config: ProviderConfig,
		system_prompt: str,
		message: str,
		max_tokens: int,
		temperature: float,
	) -> str:
		messages = [
			{"role": "system", "content": system_prompt},
			{"role": "user", "content": message},
		]
		if config.name == "google":
			response = await client.post(
				f"{config.base_url}/models/{config.model}:generateContent",
				params={"key": config.api_key},
				json={
					"contents": [{"parts": [{"text": f"{system_prompt}\n\nUser: {message}"}]}],
					"generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
				},
			)
			response.raise_for_status()
			return response.json()["candidates"][0]["content"]["parts"][0]["text"]
		if config.name == "azure":
			response = await client.post(
				f"{config.base_url.rstrip('/')}/openai/deployments/{config.model}/chat/completions",
				params={"api-version": AZURE_API_VERSION},
				headers={"api-key": config.api_key},
				json={"messages": messages, "max_tokens": max_tokens, "temperature": temperature},
			)
			response.raise_for_status()
			return response.json()["choices"][0]["message"]["content"]
		response = await client.post(
			f"{config.base_url}/chat/completions",
			headers={"Authorization": f"Bearer {config.api_key}"},
			json={"model": config.model, "messages": messages, "max_tokens": max_tokens, "temperature": temperature},
		)
		response.raise_for_status()
		return response.json()["choices"][0]["message"]["content"]


_manager: Optional[AIProviderManager] = None


def get_manager() -> AIProviderManager:
	global _manager
	if _manager is None:
		_manager = AIProviderManager()
	return _manager
