"""
FastAPI application for the session service.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from api.auth import router as auth_router
from sessionauth.config import AuthConfig
from sessionauth.dependencies import AuthServices, build_services
from sessionauth.exceptions import AuthException
from sessionauth.middleware import AuthenticationGate

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_error_response(status_code: int, message: str, data: dict | None = None) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "data": data
        }
    )


async def auth_exception_handler(request: Request, exc: AuthException) -> JSONResponse:
    return create_error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = create_error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error_details = [
        {"field": error["loc"][-1] if error.get("loc") else "unknown", "message": error.get("msg", "")}
        for error in exc.errors()
    ]
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        data={"validation_errors": error_details}
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception occurred",
        extra={"path": request.url.path, "method": request.method}
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="Internal server error"
    )


def create_app(config: AuthConfig | None = None, services: AuthServices | None = None) -> FastAPI:
    config = config or (services.config if services else AuthConfig())
    services = services or build_services(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown."""
        logger.info("Starting up application...")
        if config.JANITOR_ENABLED:
            services.janitor.start()
        yield
        logger.info("Shutting down application...")
        await services.janitor.stop()
        if services.db_manager is not None:
            await services.db_manager.close()

    app = FastAPI(
        title="Session Auth API",
        description="Access credentials, rotating refresh sessions and revocation",
        lifespan=lifespan,
    )
    app.state.auth = services

    app.add_middleware(
        AuthenticationGate,
        session_manager=services.session_manager,
        issuer=services.issuer,
        header_name=config.HEADER_NAME,
        header_prefix=config.HEADER_PREFIX,
        public_paths=config.PUBLIC_PATH_PREFIXES,
    )

    app.add_exception_handler(AuthException, auth_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        if services.db_manager is not None and not await services.db_manager.check_connection():
            return create_error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable", {"status": "degraded"}
            )
        return JSONResponse(
            content={"success": True, "message": "System operational", "data": {"status": "ok"}}
        )

    return app


def _create_default_app() -> FastAPI:
    config = AuthConfig()
    configure_logging(config.LOG_LEVEL)
    return create_app(config)


app = _create_default_app()
