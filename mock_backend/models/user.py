"""Account models for the mock backend"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ApiModel


class User(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str = "CUSTOMER"
    phone: Optional[str] = None
    address: Optional[str] = None
    banned: bool = False
    created_at: datetime
    password_hash: str = Field(exclude=True)
    password_salt: str = Field(exclude=True)


class LoginRequest(ApiModel):
    email: str
    password: str


class RegisterRequest(ApiModel):
    email: str
    name: Optional[str] = None
    password: str = Field(min_length=6)
