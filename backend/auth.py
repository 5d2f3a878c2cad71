# auth.py - Resolves the acting user of a playbook mutation from a bearer token
# Tokens are HS256 JWTs whose "sub" is the user ID; the user must still be
# active when the request arrives.

import os
import uuid
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from models import User, UserRole

logger = logging.getLogger("playbooks.auth")

SECRET_KEY = os.getenv("JWT_SECRET_KEY") or secrets.token_urlsafe(64)
if "JWT_SECRET_KEY" not in os.environ:
    logger.warning("JWT_SECRET_KEY not set, tokens will not survive a restart")

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    username: str
    display_name: str
    is_system_admin: bool


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


class AuthService:
    @staticmethod
    def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        issued = datetime.now(timezone.utc)
        claims = {
            "sub": user_id,
            "type": TOKEN_TYPE,
            "iat": issued,
            "exp": issued + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def user_id_from_token(token: str) -> str:
        try:
            claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise _unauthorized("Token expired")
        except JWTError:
            raise _unauthorized("Invalid token")

        if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
            raise _unauthorized("Invalid token")
        return claims["sub"]


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    """FastAPI dependency: the active user the request acts as"""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    user_id = AuthService.user_id_from_token(credentials.credentials)

    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None or not user.is_active or user.deleted_at is not None:
        logger.info(f"Rejected token for unknown or inactive user {user_id}")
        raise _unauthorized("User not found or inactive")

    return CurrentUser(
        id=user.id,
        username=user.username,
        display_name=user.display_name or "",
        is_system_admin=user.role == UserRole.SYSTEM_ADMIN,
    )
