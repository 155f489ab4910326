"""
FastAPI application entry point
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from api.dependencies import build_approval_engine
from api.middleware import RequestIDMiddleware
from api.routes import payments as payments_routes
from application.services.payment_service import ApprovalEngine
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging


configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: release the engine's outbound clients on shutdown"""
    yield
    engine = getattr(app.state, "approval_engine", None)
    close = getattr(getattr(engine, "notifier", None), "aclose", None)
    if callable(close):
        try:
            await close()
        except Exception as exc:
            logger.warning("notifier_close_failed", error=str(exc))
    logger.info("application_shutdown")


def create_app(engine: Optional[ApprovalEngine] = None) -> FastAPI:
    """Build the app; tests pass an engine wired with stub collaborators."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="Payment approval engine",
    )
    app.state.approval_engine = engine or build_approval_engine()

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    app.include_router(payments_routes.router, prefix="/api/v1")

    @app.get("/", tags=["Root"])
    async def root():
        return success_response(
            data={
                "name": settings.PROJECT_NAME,
                "version": settings.VERSION,
                "docs": "/docs",
            }
        )

    @app.get("/health", tags=["Health"])
    async def health_check():
        return success_response(data={"status": "healthy"})

    logger.info("application_created", environment=settings.ENVIRONMENT)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
