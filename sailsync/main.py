"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from sailsync.api.v1 import assignments, availability, board, general_events, maintenance, notifications
from sailsync.application.errors import NotFoundError, AssignmentConflictError, StoreWriteError
from sailsync.application.scheduler import start_scheduler, shutdown_scheduler
from sailsync.config import get_settings
from sailsync.domain.assignment import AssignmentStateError
from sailsync.domain.availability import AvailabilityValidationError
from sailsync.domain.general_event import EventResponseError
from sailsync.domain.maintenance import MaintenanceValidationError
from sailsync.infrastructure.db.session import check_db_connection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not, including sync routes"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


# === Domain error -> HTTP ===

_ERROR_CODES = {
    AssignmentStateError: "ASSIGNMENT_STATE",
    EventResponseError: "EVENT_RESPONSE",
    MaintenanceValidationError: "MAINTENANCE_VALIDATION",
    AvailabilityValidationError: "AVAILABILITY_VALIDATION",
}


async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc), "code": "NOT_FOUND"})


async def _conflict(request: Request, exc: AssignmentConflictError):
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "code": "ASSIGNMENT_CONFLICT",
            "conflicts": [
                {"code": c.code, "detail": c.detail, "user_id": c.user_id, "day": c.day}
                for c in exc.conflicts
            ],
        },
    )


async def _invalid(request: Request, exc: ValueError):
    code = next((v for k, v in _ERROR_CODES.items() if isinstance(exc, k)), "INVALID")
    return JSONResponse(status_code=400, content={"detail": str(exc), "code": code})


async def _store_failed(request: Request, exc: StoreWriteError):
    logger.error("Store write failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc), "code": "STORE_UNAVAILABLE"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    try:
        yield
    finally:
        shutdown_scheduler()


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="SailSync",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorLoggingMiddleware)

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AssignmentConflictError, _conflict)
    app.add_exception_handler(StoreWriteError, _store_failed)
    app.add_exception_handler(ValueError, _invalid)

    app.include_router(board.router)
    app.include_router(assignments.router)
    app.include_router(availability.router)
    app.include_router(general_events.router)
    app.include_router(maintenance.router)
    app.include_router(notifications.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sailsync.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
