"""Account models"""

from typing import Optional

from .base import WireModel


class UserProfile(WireModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str = "CUSTOMER"
    phone: Optional[str] = None
    address: Optional[str] = None
    banned: bool = False
    created_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role.upper() == "ADMIN"


class AuthTokens(WireModel):
    """Body of a successful login or registration"""
    user: UserProfile
    access_token: str
    refresh_token: Optional[str] = None
