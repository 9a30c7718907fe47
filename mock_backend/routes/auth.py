"""Authentication routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from ..database.users import user_db
from ..errors import ApiError, envelope
from ..models.user import LoginRequest, RegisterRequest, User
from ..security import issue_tokens, require_user, revoke

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


def _session_body(user: User) -> dict:
    return {"user": user.to_wire(), **issue_tokens(user)}


@router.post("/auth/login")
async def login(request: LoginRequest):
    user = user_db.authenticate(request.email, request.password)
    if not user:
        raise ApiError(401, "INVALID_CREDENTIALS", "Invalid email or password")
    if user.banned:
        raise ApiError(403, "FORBIDDEN", "Account is suspended")
    logger.info(f"User {user.email} signed in")
    return envelope(_session_body(user))


@router.post("/auth/register", status_code=201)
async def register(request: RegisterRequest):
    if user_db.get_by_email(request.email):
        raise ApiError(409, "EMAIL_TAKEN", "Email is already registered", {"email": "taken"})
    user = user_db.create_user(request.email, request.password, name=request.name)
    logger.info(f"Registered user {user.email}")
    return envelope(_session_body(user), status_code=201)


@router.post("/auth/logout")
async def logout(authorization: Optional[str] = Header(None)):
    revoke(authorization)
    return envelope(None)


@router.get("/user-details")
async def user_details(user: User = Depends(require_user)):
    return envelope(user.to_wire())
