"""Account routes for proxied sessions"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from ..core.session import StorefrontSession
from ..models.base import WireModel
from ..services.errors import Outcome
from .common import get_session, respond

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(WireModel):
    email: str
    password: str = Field(min_length=1)


class RegisterRequest(WireModel):
    email: str
    name: Optional[str] = None
    password: str = Field(min_length=6)


@router.post("/login")
async def login(request: LoginRequest, session: StorefrontSession = Depends(get_session)):
    """Sign in; a guest cart held by the session is merged into the user cart"""
    outcome = await session.auth.login(request.email, request.password)
    return respond(session, outcome)


@router.post("/register")
async def register(request: RegisterRequest, session: StorefrontSession = Depends(get_session)):
    outcome = await session.auth.register(request.email, request.name or "", request.password)
    return respond(session, outcome)


@router.post("/logout")
async def logout(session: StorefrontSession = Depends(get_session)):
    outcome = await session.auth.logout()
    return respond(session, outcome)


@router.get("/me")
async def me(session: StorefrontSession = Depends(get_session)):
    user = await session.auth.restore_session()
    return respond(session, Outcome.success(user))
