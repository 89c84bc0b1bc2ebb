"""Local file storage for uploaded media, served under ``/uploads``."""

from __future__ import annotations

import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path

import ulid

from app.settings import settings

ALLOWED_MIME_TYPES = {
	"image/jpeg": ".jpg",
	"image/png": ".png",
	"image/gif": ".gif",
	"image/webp": ".webp",
	"application/pdf": ".pdf",
	"application/msword": ".doc",
	"application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
	"text/plain": ".txt",
}

_FOLDER_RE = re.compile(r"[^a-zA-Z0-9_-]+")


@dataclass(slots=True)
class StoredFile:
	key: str
	url: str
	content_type: str
	size: int


def safe_folder(folder: str | None) -> str:
	cleaned = _FOLDER_RE.sub("", folder or "")
	return cleaned or "hms"


def extension_for(content_type: str, filename: str | None = None) -> str:
	ext = ALLOWED_MIME_TYPES.get(content_type.lower())
	if ext:
		return ext
	guessed = mimetypes.guess_extension(content_type) if content_type else None
	if guessed:
		return guessed
	return Path(filename or "").suffix.lower()


def save_bytes(*, user_id: str, folder: str, content: bytes, content_type: str, filename: str | None = None) -> StoredFile:
	"""Write the payload to ``{folder}/{user_id}/{ulid}{ext}`` below the upload root."""
	folder = safe_folder(folder)
	name = f"{ulid.new().str}{extension_for(content_type, filename)}"
	target_dir = Path(settings.upload_dir) / folder / str(user_id)
	target_dir.mkdir(parents=True, exist_ok=True)
	(target_dir / name).write_bytes(content)
	key = f"{folder}/{user_id}/{name}"
	url = f"{settings.upload_base_url.rstrip('/')}/{key}"
	return StoredFile(key=key, url=url, content_type=content_type, size=len(content))
