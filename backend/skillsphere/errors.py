import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.exceptions import DomainException

logger = logging.getLogger(__name__)


def _title_from_status(status_code: int) -> str:
    mapping = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        409: "Conflict",
        413: "Payload Too Large",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return mapping.get(status_code, "Error")


def _envelope(
    *,
    status: int,
    message: Optional[str] = None,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message or _title_from_status(status),
        "code": code or _title_from_status(status).lower().replace(" ", "_"),
        "details": jsonable_encoder(details) if details is not None else {},
    }


def _parse_detail(detail: Any) -> tuple[Optional[str], Optional[str], Optional[Any]]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        detail_text = message if isinstance(message, str) else None
        details = detail.get("details") or detail.get("errors")
        return detail_text, code, details
    if isinstance(detail, str):
        return detail, None, None
    if detail is None:
        return None, None, None
    return str(detail), None, None


def register_error_handlers(app: FastAPI) -> None:
    async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message, code, details = _parse_detail(exc.detail)
        return JSONResponse(
            _envelope(status=exc.status_code, message=message, code=code, details=details),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    app.add_exception_handler(HTTPException, _http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception)  # type: ignore[arg-type]

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        http_exc = exc.to_http_exception()
        return await _http_exception(request, http_exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            _envelope(
                status=422,
                message="Request validation failed",
                code="validation_error",
                details={"errors": jsonable_encoder(exc.errors())},
            ),
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
        details = {"error": str(exc)} if settings.is_development else None
        return JSONResponse(
            _envelope(
                status=500,
                message="Internal Server Error",
                code="internal_server_error",
                details=details,
            ),
            status_code=500,
        )
