"""Storefront Configuration"""

from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class OptimisticFailurePolicy(str, Enum):
    """What happens to an optimistic cart edit when the backend rejects it"""
    KEEP = "keep"
    ROLLBACK = "rollback"


class MergeStrategy(str, Enum):
    """How a guest cart is folded into the user cart on login"""
    SUM = "sum"
    REPLACE = "replace"


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 3000

    # Backend API
    backend_base_url: str = "http://localhost:8080/api"
    request_timeout: float = 30.0

    # Client storage
    guest_cart_storage_key: str = "RC_GUEST_CART_ID"
    access_token_storage_key: str = "RC_ACCESS_TOKEN"
    local_cart_storage_key: str = "RC_LOCAL_CART_VIEW"
    storage_path: Optional[str] = None  # JSON file; in-memory when unset

    # Cart sync behaviour
    optimistic_failure_policy: OptimisticFailurePolicy = OptimisticFailurePolicy.KEEP
    serialize_mutations: bool = False
    merge_strategy: MergeStrategy = MergeStrategy.SUM
    local_fallback: bool = False  # offline cart when the backend is unreachable

    # Proxy sessions
    session_max_age_hours: int = 24

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
