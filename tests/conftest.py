"""Pytest configuration and fixtures"""
import os

import httpx
import pytest

# Keep the mock backend quiet and deterministic under test
os.environ.setdefault("MOCK_BACKEND_JWT_SECRET", "mock-backend-test-secret-0123456789abcdef")
os.environ.setdefault("MOCK_BACKEND_LOG_LEVEL", "WARNING")

from mock_backend.database import reset_all
from mock_backend.main import app as backend_app
from storefront.core.config import Settings
from storefront.core.context import ClientContext
from storefront.core.storage import MemoryStorage
from storefront.services.backend_client import BackendClient
from storefront.services.cart_engine import CartSyncEngine

BACKEND_URL = "http://backend/api"


@pytest.fixture(autouse=True)
def reset_backend():
    """Fresh seeded backend for every test"""
    reset_all()
    yield
    reset_all()


@pytest.fixture
def settings():
    """Settings that ignore the developer's config/.env"""
    return Settings(_env_file=None, backend_base_url=BACKEND_URL)


@pytest.fixture
async def make_engine(settings):
    """
    Factory for engines wired to the in-process mock backend.

    Each engine has its own storage, so two engines behave like two browsers.
    """
    clients = []

    def factory(storage=None, **engine_kwargs) -> CartSyncEngine:
        context = ClientContext(settings=settings, storage=storage or MemoryStorage())
        client = BackendClient(context, transport=httpx.ASGITransport(app=backend_app))
        clients.append(client)
        return CartSyncEngine(client, context, **engine_kwargs)

    yield factory

    for client in clients:
        await client.close()


@pytest.fixture
async def make_mock_engine(settings):
    """Factory for engines whose backend is a request handler function"""
    clients = []

    def factory(handler, storage=None, **engine_kwargs) -> CartSyncEngine:
        context = ClientContext(settings=settings, storage=storage or MemoryStorage())
        client = BackendClient(context, transport=httpx.MockTransport(handler))
        clients.append(client)
        return CartSyncEngine(client, context, **engine_kwargs)

    yield factory

    for client in clients:
        await client.close()
