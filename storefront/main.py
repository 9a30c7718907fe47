"""
Storefront Proxy Application

Keeps one cart engine per browser session and exposes it over HTTP.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.session import session_manager
from .routes import auth_router, cart_router, checkout_router, coupons_router

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront proxy starting up...")
    logger.info(f"Backend URL: {settings.backend_base_url}")
    logger.info(f"Optimistic failure policy: {settings.optimistic_failure_policy.value}")

    yield

    logger.info("Storefront proxy shutting down...")
    await session_manager.close()


# Create FastAPI app
app = FastAPI(
    title="Storefront",
    description="Cart sync proxy for the storefront backend",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Id"],
)

# Include routers
app.include_router(cart_router)
app.include_router(coupons_router)
app.include_router(auth_router)
app.include_router(checkout_router)


@app.get("/")
async def root():
    """API info"""
    return {
        "message": "Storefront API",
        "docs": "/docs",
        "endpoints": {
            "cart": "/api/cart",
            "coupons": "/api/coupons",
            "auth": "/api/auth",
            "checkout": "/api/checkout",
            "orders": "/api/orders",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    removed = session_manager.cleanup_old_sessions()
    return {
        "status": "healthy",
        "service": "storefront",
        "backend_url": settings.backend_base_url,
        "sessions": len(session_manager.sessions),
        "expired_sessions_removed": removed,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
