"""Sign-in, registration and sign-out, wired to the cart engine"""

import logging
from typing import Optional

from ..models.user import AuthTokens, UserProfile
from .cart_engine import CartSyncEngine
from .errors import BackendError, Outcome, StorefrontError

logger = logging.getLogger(__name__)


class AuthService:
    """
    Account session for one client.

    Signing in or registering is the signed-out -> signed-in edge the cart
    engine merges on; signing out drops the engine back to unresolved.
    """

    def __init__(self, engine: CartSyncEngine):
        self.engine = engine
        self.client = engine.client
        self.context = engine.context

    async def _signed_in(self, data: dict) -> Outcome[UserProfile]:
        tokens = AuthTokens.model_validate(data or {})
        self.context.sign_in(tokens.access_token, tokens.user)
        await self.engine.on_auth_changed(True)
        return Outcome.success(tokens.user)

    async def login(self, email: str, password: str) -> Outcome[UserProfile]:
        try:
            data = await self.client.login(email, password)
        except StorefrontError as e:
            logger.info(f"Login failed for {email}: {e}")
            return Outcome.failure(e)
        return await self._signed_in(data)

    async def register(self, email: str, name: str, password: str) -> Outcome[UserProfile]:
        try:
            data = await self.client.register(email, name, password)
        except StorefrontError as e:
            logger.info(f"Registration failed for {email}: {e}")
            return Outcome.failure(e)
        return await self._signed_in(data)

    async def logout(self) -> Outcome[None]:
        """Sign out locally even when the backend call fails"""
        try:
            await self.client.logout()
        except StorefrontError as e:
            logger.warning(f"Backend logout failed, signing out locally: {e}")
        self.context.sign_out()
        await self.engine.on_auth_changed(False)
        return Outcome.success()

    async def restore_session(self) -> Optional[UserProfile]:
        """
        Re-validate a persisted access token at start-up.

        A token the backend rejects is dropped; an unreachable backend keeps
        it for the next attempt.
        """
        if not self.context.access_token:
            return None
        try:
            data = await self.client.get_me()
        except BackendError as e:
            logger.info(f"Stored session rejected ({e.status}); signing out")
            self.context.sign_out()
            return None
        except StorefrontError as e:
            logger.warning(f"Could not verify stored session: {e}")
            return None
        self.context.user = UserProfile.model_validate(data)
        return self.context.user
