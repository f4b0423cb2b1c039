"""Authentication helpers for FastAPI endpoints.

Identity comes from the gateway's HS256 access token (user id, region, role,
email). Dev headers are only respected in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.settings import settings
from app.infra import jwt as jwt_helper
from app.obs import metrics as obs_metrics


ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"


@dataclass(slots=True)
class AuthenticatedUser:
	id: UUID
	region: str
	role: str = ROLE_USER
	email: Optional[str] = None

	@property
	def is_admin(self) -> bool:
		return self.role == ROLE_ADMIN


_bearer_scheme = HTTPBearer(auto_error=False)


def _parse_user_id(raw: str) -> UUID:
	try:
		return UUID(raw)
	except ValueError as exc:
		obs_metrics.inc_auth_failure("invalid_subject")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from exc


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser.

	Requirements:
	- issuer="identity-gateway", audience="clubs-api"
	- required claims: sub, region, role, exp, iat
	- role is ADMIN or USER (case-insensitive)
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception as exc:
		obs_metrics.inc_auth_failure("invalid_token")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from exc

	sub = str(payload.get("sub") or "").strip()
	region = str(payload.get("region") or "").strip()
	if not sub or not region:
		obs_metrics.inc_auth_failure("invalid_token")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	email = payload.get("email")
	return AuthenticatedUser(
		id=_parse_user_id(sub),
		region=region,
		role=str(payload.get("role")).strip().upper(),
		email=str(email) if email is not None else None,
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_region: Optional[str] = Header(default=None, alias="X-User-Region"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	# In dev only, allow X-User-* fallback for local tools
	if settings.is_dev():
		if x_user_id and x_user_region:
			role = (x_user_role or ROLE_USER).strip().upper()
			if role not in (ROLE_ADMIN, ROLE_USER):
				raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
			return AuthenticatedUser(id=_parse_user_id(x_user_id.strip()), region=x_user_region, role=role)

	obs_metrics.inc_auth_failure("missing_credentials")
	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.is_admin:
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")
