"""
Mock Backend Application

An in-memory storefront backend implementing the cart, coupon, auth and
order API the storefront client talks to. Every response is a
`{data, meta, error}` envelope.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from .database import product_db
from .errors import ApiError, error_envelope
from .routes import (
    auth_router,
    carts_router,
    coupons_router,
    admin_coupons_router,
    me_router,
    orders_router,
)

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=os.getenv("MOCK_BACKEND_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Mock Backend starting up...")
    logger.info(f"Catalog: {len(product_db.get_all_products())} products")
    yield
    logger.info("Mock Backend shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Mock Storefront Backend",
    description="In-memory storefront backend for development and tests",
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
)


# ==================== Error envelopes ====================

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_envelope(exc.status, exc.code, exc.message, exc.fields)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
    return error_envelope(exc.status_code, code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = {
        ".".join(str(part) for part in error["loc"] if part != "body"): error["msg"]
        for error in exc.errors()
    }
    return error_envelope(422, "VALIDATION_ERROR", "Invalid request", fields)


# Include API routers
app.include_router(carts_router)
app.include_router(me_router)
app.include_router(coupons_router)
app.include_router(admin_coupons_router)
app.include_router(auth_router)
app.include_router(orders_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mock-backend"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mock_backend.main:app",
        host=os.getenv("MOCK_BACKEND_HOST", "0.0.0.0"),
        port=int(os.getenv("MOCK_BACKEND_PORT", "8080")),
        reload=True,
    )
