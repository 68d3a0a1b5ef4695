"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.api.v1 import auth, live, push, transactions
from app.application.errors import LedgerError
from app.application.fanout import TransactionFanout
from app.application.live_channels import LiveChannelHub
from app.application.push_service import build_push_dispatcher
from app.config import get_settings
from app.infrastructure.db.session import check_db_connection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not, logs it, answers 500"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content="Internal Server Error", status_code=500, media_type="text/plain")


def create_app(hub: LiveChannelHub | None = None, dispatcher=None) -> FastAPI:
    """
    Application factory

    Args:
        hub: live channel hub (default: a fresh one per app)
        dispatcher: push dispatcher (default: built from settings, no-op without VAPID keys)
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.live_hub = hub if hub is not None else LiveChannelHub()
        app.state.push_dispatcher = dispatcher or build_push_dispatcher(settings)
        app.state.fanout = TransactionFanout(app.state.live_hub, app.state.push_dispatcher)
        yield
        await app.state.fanout.drain()

    app = FastAPI(
        title="Savvy Tabungan",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorLoggingMiddleware)
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
        return PlainTextResponse("Data tidak lengkap", status_code=400)

    app.include_router(auth.router)
    app.include_router(push.router)
    app.include_router(transactions.router)
    app.include_router(live.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (store reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=get_settings().PORT,
    )
