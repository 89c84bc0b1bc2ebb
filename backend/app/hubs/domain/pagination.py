"""Page/limit normalisation shared by the list endpoints."""

from __future__ import annotations

import math

from app.hubs.schemas import dto

MAX_LIMIT = 100


def window(page: int, limit: int, *, max_limit: int = MAX_LIMIT) -> tuple[int, int, int]:
	"""Clamp ``page``/``limit`` and return ``(page, limit, offset)``."""
	page = max(1, int(page or 1))
	limit = max(1, min(int(limit or 1), max_limit))
	return page, limit, (page - 1) * limit


def meta(page: int, limit: int, total: int) -> dto.PaginationMeta:
	return dto.PaginationMeta(
		page=page,
		limit=limit,
		total=total,
		total_pages=math.ceil(total / limit) if limit else 0,
	)
