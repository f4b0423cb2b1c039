"""Error translation helpers for the clubs API."""

from __future__ import annotations

import asyncpg
from fastapi import HTTPException, status

from app.clubs.domain import exceptions
from app.obs.logging import get_logger

logger = get_logger("clubs.api")

# Failures a client may safely retry without changing the request
_RETRYABLE_DB_ERRORS = (
	asyncpg.SerializationError,
	asyncpg.DeadlockDetectedError,
)


def to_http_error(exc: Exception) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	if isinstance(exc, exceptions.ClubError):
		return HTTPException(status_code=exc.status_code, detail=exc.to_payload())
	if isinstance(exc, _RETRYABLE_DB_ERRORS):
		return HTTPException(
			status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
			detail=exceptions.InternalError("transaction_conflict").to_payload(),
		)
	logger.error("club_operation_failed", exc_info=exc, extra={"error": type(exc).__name__})
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail=exceptions.InternalError().to_payload(),
	)
