"""Global exception handlers that log errors and shape error bodies."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.core.errors import BackendError, ConfigError, GatewayError, NotFoundError
from gateway.observability.constants import CORRELATION_ID_HEADER, LogEvents
from gateway.observability.context import get_correlation_id
from gateway.observability.logger import get_logger
from gateway.schemas.chat import ErrorResponse

logger = get_logger(__name__)

GATEWAY_ERROR_STATUS_MAP: dict[type[GatewayError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConfigError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    BackendError: status.HTTP_502_BAD_GATEWAY,
}

HTTP_ERROR_NAMES = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
}


def _get_gateway_error_status(exc: GatewayError) -> int:
    """Walk the MRO so subclasses inherit their parent's status code."""
    for cls in type(exc).__mro__:
        if cls in GATEWAY_ERROR_STATUS_MAP:
            return GATEWAY_ERROR_STATUS_MAP[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(
    status_code: int, body: ErrorResponse, headers: dict | None = None
) -> JSONResponse:
    correlation_id = get_correlation_id()
    response_headers = dict(headers or {})
    if correlation_id:
        response_headers[CORRELATION_ID_HEADER] = correlation_id
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=response_headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        status_code = _get_gateway_error_status(exc)
        log_method = logger.warning if status_code < 500 else logger.error
        log_method(
            LogEvents.REQUEST_FAILED,
            status_code=status_code,
            error_type=type(exc).__name__,
            error=exc.message,
            path=str(request.url.path),
            method=request.method,
        )
        details = exc.detail if isinstance(exc.detail, dict) else None
        return _error_response(
            status_code,
            ErrorResponse(error=type(exc).__name__, message=exc.message, details=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 401:
            event = LogEvents.ERROR_UNAUTHORIZED
        elif exc.status_code >= 500:
            event = LogEvents.REQUEST_FAILED
        else:
            event = LogEvents.REQUEST_COMPLETED

        log_method = logger.warning if exc.status_code < 500 else logger.error
        log_method(
            event,
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=str(request.url.path),
            method=request.method,
        )
        return _error_response(
            exc.status_code,
            ErrorResponse(
                error=HTTP_ERROR_NAMES.get(exc.status_code, "http_error"),
                message=str(exc.detail),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log the full error and return a generic body (no details exposed)."""
        logger.error(
            LogEvents.ERROR_UNHANDLED,
            path=str(request.url.path),
            method=request.method,
            error_type=type(exc).__name__,
            error_message=str(exc),
            exc_info=True,
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(
                error="internal_error",
                message="An internal error occurred. Please try again later.",
            ),
        )
