"""Session lookup and envelope responses shared by the proxy routes"""

from typing import Any, Optional

from fastapi import Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..core.session import StorefrontSession, session_manager
from ..services.errors import BackendUnavailableError, Outcome, StockConflictError

SESSION_HEADER = "X-Session-Id"


async def get_session(
    x_session_id: Optional[str] = Header(None, alias=SESSION_HEADER),
) -> StorefrontSession:
    """Session named by the request header, created on first use"""
    session = session_manager.get_or_create_session(x_session_id)
    await session.ensure_started()
    return session


def _to_json(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, BaseModel):
        if hasattr(value, "to_wire"):
            return value.to_wire()
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    return value


def failure_status(outcome: Outcome) -> int:
    error = outcome.error
    if isinstance(error, BackendUnavailableError):
        return 502
    if error is not None and error.status and error.status >= 400:
        return error.status
    return 400


def respond(session: StorefrontSession, outcome: Outcome, status_code: int = 200) -> JSONResponse:
    """Render an outcome as a `{data, meta, error}` envelope"""
    meta = dict(outcome.meta)
    meta["phase"] = session.engine.phase.value
    meta["cartCount"] = session.engine.cart_count
    meta["authenticated"] = session.context.authenticated

    error = None
    if not outcome.ok:
        status_code = failure_status(outcome)
        error = {
            "code": outcome.code,
            "message": outcome.message,
            "fields": outcome.fields or None,
        }
        if isinstance(outcome.error, StockConflictError):
            error["adjustments"] = outcome.error.adjustments

    response = JSONResponse(
        status_code=status_code,
        content={"data": _to_json(outcome.value), "meta": meta, "error": error},
    )
    response.headers[SESSION_HEADER] = session.session_id
    return response
