"""O Gran Camiño 2025 Assistant - Main Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from grancamino.api.middleware import setup_middleware
from grancamino.api.routes import limiter, router as api_router
from grancamino.api.schemas import HealthResponse
from grancamino.core.config import Settings, settings as default_settings
from grancamino.core.constants import ERROR_MESSAGES, ErrorCode
from grancamino.core.logging import LoggerFactory
from grancamino.core.metrics import generate_metrics
from grancamino.services.container import Services

logger = logging.getLogger(__name__)


def create_app(services: Optional[Services] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI app. ``services`` is built from ``settings`` at startup
    unless one is supplied (tests pass a container with fake providers).
    """
    settings = settings or (services.settings if services else default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle manager."""
        LoggerFactory.initialize(level=settings.LOG_LEVEL, format_type=settings.LOG_FORMAT, log_file=settings.LOG_FILE)
        logger.info(f"Starting {settings.TITLE} v{settings.VERSION}")

        if getattr(app.state, "services", None) is None:
            app.state.services = Services.build(settings)

        yield

        await app.state.services.cache.clear()
        logger.info("Shutting down...")

    app = FastAPI(
        title=settings.TITLE,
        version=settings.VERSION,
        lifespan=lifespan
    )
    app.state.services = services
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=429,
            content={"success": False, "error": ERROR_MESSAGES[ErrorCode.RATE_LIMITED]}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            message = ERROR_MESSAGES[ErrorCode.METHOD_NOT_ALLOWED]
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": message},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": ERROR_MESSAGES[ErrorCode.BAD_REQUEST]}
        )

    setup_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.ALLOWED_ORIGINS.split(",")],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/health", response_model=HealthResponse)
    def health_check(request: Request):
        """Health check endpoint. Missing providers degrade, they do not fail."""
        services: Services = request.app.state.services
        components = {
            "drive": services.drive.available,
            "supabase": services.records.available,
            "llm": services.llm.client is not None,
            "cache": services.cache.get_stats(),
        }
        ready = all(components[name] for name in ("drive", "supabase", "llm"))
        return HealthResponse(
            status="healthy" if ready else "degraded",
            version=settings.VERSION,
            components=components
        )

    @app.get("/metrics")
    def metrics_endpoint():
        return Response(content=generate_metrics(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("grancamino.main:app", host=default_settings.HOST, port=default_settings.PORT)
