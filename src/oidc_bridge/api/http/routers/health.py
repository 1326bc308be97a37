"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from oidc_bridge.api.http.app_data import ApplicationDependencies
from oidc_bridge.api.http.deps import get_app_dependencies

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=None)
def health(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> dict[str, Any] | JSONResponse:
    """Report whether the process and its database are usable.

    Returns 200 when the database answers and 503 otherwise.
    """
    db_healthy = app_deps.database_service.health_check()
    body = {
        "status": "healthy" if db_healthy else "unhealthy",
        "checks": {
            "database": {
                "status": "healthy" if db_healthy else "unhealthy",
                "type": "postgresql"
                if "postgresql" in app_deps.config.database.url
                else "sqlite",
            },
            "auth_sessions": {"pending": len(app_deps.session_storage)},
        },
    }
    if not db_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
