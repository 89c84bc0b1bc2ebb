"""Authenticated media upload endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from app.hubs.infra import storage
from app.hubs.schemas import dto
from app.infra.auth import AuthenticatedUser, get_current_user
from app.obs import metrics as obs_metrics
from app.settings import settings

router = APIRouter(tags=["hms:uploads"])
logger = logging.getLogger(__name__)


def _reject(detail: str) -> HTTPException:
	obs_metrics.inc_upload(detail)
	return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.post("/uploads", response_model=dto.UploadResponse, status_code=201)
async def upload_endpoint(
	file: UploadFile | None = File(default=None),
	folder: str = Form(default="hms"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.UploadResponse:
	if file is None:
		raise _reject("file_missing")
	content = await file.read()
	if not content:
		raise _reject("file_missing")
	content_type = (file.content_type or "").lower()
	if content_type not in storage.ALLOWED_MIME_TYPES:
		raise _reject("mime_invalid")
	if len(content) > settings.upload_max_bytes:
		raise _reject("size_exceeded")
	stored = storage.save_bytes(
		user_id=auth_user.id,
		folder=folder,
		content=content,
		content_type=content_type,
		filename=file.filename,
	)
	obs_metrics.inc_upload("ok")
	logger.info("upload stored", extra={"key": stored.key, "size": stored.size})
	return dto.UploadResponse(
		url=stored.url,
		key=stored.key,
		type=stored.content_type,
		name=file.filename or stored.key.rsplit("/", 1)[-1],
		size=stored.size,
	)


__all__ = ["router"]
