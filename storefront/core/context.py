"""Per-client state: storage, access token and signed-in user"""

import logging
from enum import Enum
from typing import Optional

import jwt

from .config import Settings, get_settings
from .storage import ClientStorage, FileStorage, MemoryStorage
from ..models.user import UserProfile

logger = logging.getLogger(__name__)


class CartPhase(str, Enum):
    """Where the current cart stands from the client's point of view"""
    UNRESOLVED = "unresolved"
    GUEST = "guest"
    MERGING = "merging"
    USER = "user"


class ClientContext:
    """
    Everything one storefront client keeps between requests.

    Created at application start (or per proxy session) and torn down on
    logout. The cart services receive it explicitly instead of reading module
    globals.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[ClientStorage] = None,
    ):
        self.settings = settings or get_settings()
        if storage is None:
            storage = (
                FileStorage(self.settings.storage_path)
                if self.settings.storage_path
                else MemoryStorage()
            )
        self.storage = storage
        self.user: Optional[UserProfile] = None
        self._access_token: Optional[str] = None

    # ==================== Access token ====================

    @property
    def access_token(self) -> Optional[str]:
        if self._access_token is None:
            self._access_token = self.storage.get(self.settings.access_token_storage_key)
        return self._access_token

    @property
    def authenticated(self) -> bool:
        return bool(self.access_token)

    def token_claims(self) -> dict:
        """
        Claims of the current access token.

        Read without verifying the signature: the backend verifies tokens,
        the client only needs the subject for display and coupon previews.
        """
        token = self.access_token
        if not token:
            return {}
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            logger.warning("Access token is not a readable JWT")
            return {}

    @property
    def user_id(self) -> Optional[str]:
        if self.user:
            return self.user.id
        sub = self.token_claims().get("sub")
        return str(sub) if sub is not None else None

    def sign_in(self, access_token: str, user: Optional[UserProfile] = None) -> None:
        self._access_token = access_token
        self.storage.set(self.settings.access_token_storage_key, access_token)
        self.user = user
        logger.info(f"Signed in as {user.email if user else self.user_id}")

    def sign_out(self) -> None:
        self._access_token = None
        self.user = None
        self.storage.remove(self.settings.access_token_storage_key)
        logger.info("Signed out")

    # ==================== Guest cart identity ====================

    def read_guest_cart_id(self) -> Optional[str]:
        return self.storage.get(self.settings.guest_cart_storage_key)

    def write_guest_cart_id(self, cart_id: str) -> None:
        self.storage.set(self.settings.guest_cart_storage_key, cart_id)

    def clear_guest_cart_id(self) -> None:
        self.storage.remove(self.settings.guest_cart_storage_key)
