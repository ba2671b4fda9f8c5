import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


def _error_payload(code: str, message: str, details):
    return {"code": code, "message": message, "details": details}


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class CMSError(HTTPException):
    status_code = 500
    code = "cms_error"

    def __init__(self, message: str, details=None):
        super().__init__(
            status_code=self.status_code,
            detail=_error_payload(self.code, message, details),
        )
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(CMSError):
    status_code = 404
    code = "not_found"


class InvalidTransitionError(CMSError):
    status_code = 409
    code = "invalid_transition"


class InvalidOperationError(CMSError):
    status_code = 400
    code = "invalid_operation"


class ConflictError(CMSError):
    status_code = 409
    code = "conflict"


class StorageFailureError(CMSError):
    status_code = 503
    code = "storage_failure"


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        code = f"http_{exc.status_code}"
        message = "Request failed"
        details = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(code, message, details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # exc.errors() ctx may contain raw Exception objects (not JSON-serialisable).
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items()}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=_error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(StaleDataError)
    async def stale_data_handler(request: Request, exc: StaleDataError):
        return JSONResponse(
            status_code=409,
            content=_error_payload(
                "conflict", "Page was modified concurrently; reload and retry", None
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=503,
            content=_error_payload("storage_failure", "Storage failure", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", None),
        )
