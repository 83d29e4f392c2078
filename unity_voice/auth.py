"""Bearer token verification for the ``/api`` routes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    user_id: str
    email: Optional[str] = None


def _user_id_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    for key in ("userId", "id"):
        value = claims.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def decode_token(token: str, settings: Settings) -> AuthenticatedUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise credentials_exception from exc
    user_id = _user_id_from_claims(claims)
    if user_id is None:
        logger.warning("Bearer token carries no user id claim")
        raise credentials_exception
    return AuthenticatedUser(user_id=user_id, email=claims.get("email"))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> AuthenticatedUser:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_token(credentials.credentials, settings)


__all__ = ["AuthenticatedUser", "decode_token", "get_current_user"]
