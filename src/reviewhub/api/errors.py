"""HTTP mapping for ReviewHub domain errors.

Protean's own handlers (`register_exception_handlers`) cover ValidationError
and ObjectNotFoundError; these cover the rest of the taxonomy.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reviewhub.errors import ConcurrencyConflict, ConsistencyError, InvalidTransition, PermissionDenied
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)


def register_domain_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PermissionDenied)
    async def permission_denied(request: Request, exc: PermissionDenied):
        return JSONResponse(status_code=403, content={"error": exc.reason})

    @app.exception_handler(InvalidTransition)
    async def invalid_transition(request: Request, exc: InvalidTransition):
        return JSONResponse(status_code=409, content={"error": exc.reason})

    @app.exception_handler(ConcurrencyConflict)
    async def concurrency_conflict(request: Request, exc: ConcurrencyConflict):
        return JSONResponse(status_code=409, content={"error": exc.reason, "retryable": True})

    @app.exception_handler(ConsistencyError)
    async def consistency_error(request: Request, exc: ConsistencyError):
        logger.error("consistency_error", path=request.url.path, reason=exc.reason, **exc.details)
        return JSONResponse(status_code=500, content={"error": exc.reason})
