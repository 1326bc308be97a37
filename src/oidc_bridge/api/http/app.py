"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from oidc_bridge.api.http.app_data import ApplicationDependencies
from oidc_bridge.api.http.routers import auth, health
from oidc_bridge.core.exceptions import ConfigurationError, LoginError
from oidc_bridge.runtime.logging import configure_logging
from oidc_bridge.runtime.settings import load_config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        return response


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")
            response.headers.setdefault("X-Request-ID", request_id)
            return response
        except HTTPException as exc:
            logger.bind(status_code=exc.status_code).exception("request.error")
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )
        except Exception as exc:
            logger.bind(status_code=500, error_type=type(exc).__name__).exception(
                "request.error"
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


def _login_error_handler(request: Request, exc: LoginError) -> JSONResponse:
    logger.warning("Login denied: {}", exc)
    return JSONResponse(status_code=403, content={"detail": str(exc)})


def _configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error("Configuration error: {}", exc)
    return JSONResponse(
        status_code=500, content={"detail": "Configuration issue in openidconnect app"}
    )


def _provider_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.error("Identity provider request failed: {}", exc)
    return JSONResponse(
        status_code=502, content={"detail": "Identity provider is unavailable"}
    )


def create_app(deps: ApplicationDependencies | None = None) -> FastAPI:
    """Build the HTTP application around ``deps``.

    Without ``deps`` the configuration is loaded from the environment and
    config.yaml, and logging is configured from it.
    """
    if deps is None:
        config = load_config()
        configure_logging(config.logging, config.app.environment)
        deps = ApplicationDependencies.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting up application in {} environment", deps.config.app.environment
        )
        deps.database_service.create_tables()
        try:
            yield
        finally:
            logger.info("Shutting down application")
            close = getattr(deps.http_fetcher, "close", None)
            if close is not None:
                close()
            deps.database_service.close()

    production = deps.config.app.environment == "production"
    app = FastAPI(
        title="oidc-bridge",
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
    )
    app.state.app_dependencies = deps

    app.add_middleware(SecurityHeadersMiddleware)
    app.middleware("http")(log_requests)

    app.add_exception_handler(LoginError, _login_error_handler)
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)
    app.add_exception_handler(httpx.HTTPError, _provider_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    return app
