"""Access tokens for the mock backend (HS256 JWTs issued with PyJWT)"""

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Header

from .database.users import user_db
from .errors import ApiError
from .models.user import User

JWT_ALGORITHM = "HS256"


def jwt_secret() -> str:
    return os.getenv("MOCK_BACKEND_JWT_SECRET", "mock-backend-dev-secret-not-for-production")


def token_ttl() -> timedelta:
    return timedelta(minutes=int(os.getenv("MOCK_BACKEND_TOKEN_TTL_MINUTES", "60")))


def issue_tokens(user: User) -> dict:
    """Access and refresh token pair for a user"""
    now = datetime.now(timezone.utc)
    claims = {"sub": user.id, "email": user.email, "role": user.role, "iat": now}
    access = jwt.encode(
        {**claims, "exp": now + token_ttl(), "jti": str(uuid.uuid4()), "typ": "access"},
        jwt_secret(),
        algorithm=JWT_ALGORITHM,
    )
    refresh = jwt.encode(
        {**claims, "exp": now + timedelta(days=7), "jti": str(uuid.uuid4()), "typ": "refresh"},
        jwt_secret(),
        algorithm=JWT_ALGORITHM,
    )
    return {"accessToken": access, "refreshToken": refresh}


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def decode_token(token: str) -> dict:
    try:
        claims = jwt.decode(token, jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise ApiError(401, "TOKEN_EXPIRED", "Session expired, please sign in again")
    except jwt.InvalidTokenError:
        raise ApiError(401, "UNAUTHORIZED", "Invalid access token")
    if claims.get("jti") in user_db.revoked_tokens:
        raise ApiError(401, "UNAUTHORIZED", "Access token has been revoked")
    return claims


async def optional_user(authorization: Optional[str] = Header(None)) -> Optional[User]:
    """The signed-in user, or None for anonymous requests"""
    token = _bearer(authorization)
    if not token:
        return None
    claims = decode_token(token)
    user = user_db.get_user(str(claims.get("sub")))
    if not user:
        raise ApiError(401, "UNAUTHORIZED", "Unknown user")
    if user.banned:
        raise ApiError(403, "FORBIDDEN", "Account is suspended")
    return user


async def require_user(authorization: Optional[str] = Header(None)) -> User:
    user = await optional_user(authorization)
    if user is None:
        raise ApiError(401, "UNAUTHORIZED", "Sign in required")
    return user


async def require_admin(authorization: Optional[str] = Header(None)) -> User:
    user = await require_user(authorization)
    if user.role.upper() != "ADMIN":
        raise ApiError(403, "FORBIDDEN", "Admin access required")
    return user


def revoke(authorization: Optional[str]) -> None:
    """Revoke the presented access token; unreadable tokens are ignored"""
    token = _bearer(authorization)
    if not token:
        return
    try:
        claims = jwt.decode(token, jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return
    if claims.get("jti"):
        user_db.revoked_tokens.add(claims["jti"])
