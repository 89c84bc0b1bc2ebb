"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from app.api import ops
from app.api.errors import install_error_handlers
from app.api.middleware_request_id import RequestIdMiddleware
from app.hubs.api import router as hubs_router
from app.hubs.sockets import server as hubs_sockets
from app.infra import postgres
from app.obs import init as obs_init, tracing
from app.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()
		tracing.shutdown_tracing()


app = FastAPI(title="UDSM Hub Management System", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# Static serving for uploaded files in dev
if settings.is_dev():
	upload_root = Path(settings.upload_dir).resolve()
	upload_root.mkdir(parents=True, exist_ok=True)
	app.mount("/uploads", StaticFiles(directory=str(upload_root), check_dir=True), name="uploads")

# Use the same allowed origins for Socket.IO as for the REST API
sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
hubs_sockets.register(sio)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)

# Ensure every request carries an X-Request-Id and make it available on request.state
app.add_middleware(RequestIdMiddleware)

app.include_router(ops.router, tags=["ops"])
app.include_router(hubs_router)
