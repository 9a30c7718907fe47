"""Storefront client errors and the success/failure outcome type"""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class StorefrontError(Exception):
    """Base exception for storefront client errors"""

    status: Optional[int] = None
    code: Optional[str] = None

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.fields: dict[str, str] = {}

    @property
    def message(self) -> str:
        return str(self)


class BackendUnavailableError(StorefrontError):
    """Backend could not be reached (connection refused, timeout, ...)"""
    code = "BACKEND_UNAVAILABLE"


class BackendError(StorefrontError):
    """Backend answered with an error envelope or a non-2xx status"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        fields: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.fields = dict(fields or {})

    @property
    def is_not_found(self) -> bool:
        return self.status == 404 or self.code == "NOT_FOUND"

    @property
    def is_conflict(self) -> bool:
        return self.status == 409 or self.code == "CONFLICT"

    def __repr__(self) -> str:
        return f"BackendError(status={self.status}, code={self.code!r}, message={str(self)!r})"


class StockConflictError(BackendError):
    """Order placement refused because some lines exceed available stock"""

    def __init__(self, source: BackendError, adjustments: dict[str, int]):
        super().__init__(
            "Some items are out of stock. Quantities were adjusted. Please review and retry.",
            status=source.status,
            code=source.code,
            fields=source.fields,
        )
        # product id -> quantity the cart line was reduced to
        self.adjustments = adjustments


@dataclass
class Outcome(Generic[T]):
    """
    Result of a cart-facing operation.

    Truthy on success. Failures carry the error instead of raising it, so a
    view can show inline feedback without crashing.
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[StorefrontError] = None
    meta: dict = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Optional[T] = None, **meta) -> "Outcome[T]":
        return cls(ok=True, value=value, meta=meta)

    @classmethod
    def failure(cls, error: StorefrontError, value: Optional[T] = None) -> "Outcome[T]":
        return cls(ok=False, value=value, error=error)

    @property
    def message(self) -> Optional[str]:
        if self.error is None:
            return None
        if isinstance(self.error, BackendUnavailableError):
            return "Could not reach the store. Please try again."
        return self.error.message

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def fields(self) -> dict[str, str]:
        return dict(self.error.fields) if self.error else {}
