"""Global exception handlers for consistent error responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.errors import PersistenceError, ServiceError
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Translate a ServiceError into its HTTP status and JSON body."""
    if isinstance(exc, PersistenceError):
        logger.error(
            "Persistence failure on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
    else:
        logger.warning(
            "%s on %s %s: %s",
            exc.kind,
            request.method,
            request.url.path,
            exc.message,
        )

    body = exc.to_dict()
    request_id = get_request_id()
    if request_id:
        body["request_id"] = request_id
    return JSONResponse(status_code=exc.status_code, content=body)


def add_exception_handlers(app: FastAPI) -> None:
    """Register handlers for all typed service errors."""
    app.add_exception_handler(ServiceError, service_error_handler)
