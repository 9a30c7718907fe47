"""Session management for proxied storefront clients"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx

from .config import Settings, get_settings
from .context import ClientContext
from .storage import MemoryStorage
from ..services.auth import AuthService
from ..services.backend_client import BackendClient
from ..services.cart_engine import CartSyncEngine
from ..services.checkout import CheckoutService

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StorefrontSession:
    """One browser session: its own storage, token and cart engine"""
    session_id: str
    context: ClientContext
    client: BackendClient
    engine: CartSyncEngine
    auth: AuthService
    checkout: CheckoutService
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    started: bool = False

    def touch(self) -> None:
        self.updated_at = _now()

    async def ensure_started(self) -> None:
        """Resolve the cart the first time the session is used"""
        if self.started:
            return
        self.started = True
        await self.engine.start()


class SessionManager:
    """
    Keeps one StorefrontSession per `X-Session-Id`.

    All sessions share a single httpx client; each gets its own
    BackendClient so the bearer token never leaks between sessions.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport
        self.sessions: dict[str, StorefrontSession] = {}
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.settings.request_timeout,
                transport=self.transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and forget all sessions"""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        self.sessions.clear()

    def create_session(self, session_id: Optional[str] = None) -> StorefrontSession:
        """Create a new session"""
        session_id = session_id or str(uuid.uuid4())
        context = ClientContext(settings=self.settings, storage=MemoryStorage())
        client = BackendClient(context, http_client=self.http_client)
        engine = CartSyncEngine(client, context)
        session = StorefrontSession(
            session_id=session_id,
            context=context,
            client=client,
            engine=engine,
            auth=AuthService(engine),
            checkout=CheckoutService(engine),
        )
        self.sessions[session_id] = session
        logger.debug(f"Created session {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[StorefrontSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> StorefrontSession:
        """
        Get existing session or create new one under the given id.

        Idle sessions are swept whenever a new one is created.
        """
        session = self.sessions.get(session_id) if session_id else None
        if session is None:
            self.cleanup_old_sessions()
            session = self.create_session(session_id)
        session.touch()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Remove sessions idle for longer than max_age_hours"""
        max_age_hours = max_age_hours or self.settings.session_max_age_hours
        now = _now()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        if old_sessions:
            logger.info(f"Removed {len(old_sessions)} idle sessions")
        return len(old_sessions)


# Singleton instance
session_manager = SessionManager()
