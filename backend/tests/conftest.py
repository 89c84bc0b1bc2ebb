import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

from app.infra import postgres
from app.infra.redis import redis_client, set_redis_client
from app.main import app
from app.settings import settings

_AI_KEYS = ("openai_api_key", "google_ai_api_key", "azure_openai_api_key", "azure_openai_endpoint")


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	"""OTP codes, rate limits and the settings cache live in an in-process Redis."""
	previous = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(previous)
		await client.aclose()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings(monkeypatch):
	"""Dev mode enables X-User-Id/X-User-Roles auth; AI keys are cleared so no provider is reachable."""
	monkeypatch.setattr(settings, "environment", "dev")
	for key in _AI_KEYS:
		monkeypatch.setattr(settings, key, None)


@pytest_asyncio.fixture
async def api_client():
	async with AsyncClient(transport=ASGITransport(app=app), base_url="http://hms.test") as client:
		yield client
