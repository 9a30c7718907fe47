"""Backend errors and the response envelope"""

from typing import Any, Optional

from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Error rendered as `{data: null, error: {...}}`"""

    def __init__(
        self,
        status: int,
        code: str,
        message: str,
        fields: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message
        self.fields = fields


def not_found(what: str) -> ApiError:
    return ApiError(404, "NOT_FOUND", f"{what} not found")


def envelope(data: Any = None, meta: Optional[dict] = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"data": data, "meta": meta, "error": None},
    )


def error_envelope(
    status_code: int,
    code: str,
    message: str,
    fields: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "data": None,
            "meta": None,
            "error": {"code": code, "message": message, "fields": fields},
        },
    )
