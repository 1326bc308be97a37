"""Authorization code flow endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger

from oidc_bridge.api.http.app_data import ApplicationDependencies
from oidc_bridge.api.http.deps import (
    get_app_dependencies,
    get_config_loader,
    get_login_flow_service,
    get_session_storage,
    get_token_source,
)
from oidc_bridge.core.interfaces import TokenSource
from oidc_bridge.core.services import LoginFlowService, verify_nonce
from oidc_bridge.core.storage import AuthSession, SessionStorage
from oidc_bridge.runtime.config import OpenIdConfigLoader

router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_SESSION_COOKIE = "oidc_auth_session"


def _safe_return_to(value: str | None) -> str | None:
    """Keep only same-origin paths; protocol-relative values are dropped."""
    if not value or not value.startswith("/") or value[1:2] in ("/", "\\"):
        return None
    return value


def _cookie_settings(app_deps: ApplicationDependencies) -> dict[str, Any]:
    return {
        "httponly": True,
        "secure": app_deps.config.app.environment == "production",
        "samesite": "lax",
        "path": "/",
    }


@router.get("/login")
def login(
    request: Request,
    return_to: str | None = None,
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
    loader: OpenIdConfigLoader = Depends(get_config_loader),
    token_source: TokenSource = Depends(get_token_source),
    storage: SessionStorage = Depends(get_session_storage),
) -> RedirectResponse:
    """Start a login by redirecting to the identity provider."""
    redirect_uri = loader.require().redirect_url or str(
        request.url_for("auth_callback")
    )
    auth_request = token_source.authorization_request(redirect_uri)

    session = AuthSession(
        state=auth_request.state,
        code_verifier=auth_request.code_verifier,
        nonce=auth_request.nonce,
        redirect_uri=redirect_uri,
        return_to=_safe_return_to(return_to),
    )
    storage.set(session)

    response = RedirectResponse(url=auth_request.url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=AUTH_SESSION_COOKIE,
        value=session.id,
        max_age=app_deps.config.app.auth_session_ttl_seconds,
        **_cookie_settings(app_deps),
    )
    return response


@router.get("/callback", name="auth_callback")
def callback(
    request: Request,
    state: str | None = None,
    code: str | None = None,
    error: str | None = None,
    storage: SessionStorage = Depends(get_session_storage),
    token_source: TokenSource = Depends(get_token_source),
    login_flow: LoginFlowService = Depends(get_login_flow_service),
) -> JSONResponse:
    """Finish a login: exchange the code, then bind the user to an account."""
    session_id = request.cookies.get(AUTH_SESSION_COOKIE)
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing auth session")

    # Single use, whatever the outcome
    session = storage.pop(session_id)
    if session is None or session.state != state:
        raise HTTPException(status_code=400, detail="Invalid or expired auth session")

    if error or not code:
        logger.warning("Provider returned no authorization code: {}", error)
        raise HTTPException(status_code=400, detail="Login was not completed")

    tokens = token_source.authenticate(code, session.code_verifier, session.redirect_uri)
    verify_nonce(tokens, session.nonce)
    claims = token_source.fetch_claims(tokens)
    result = login_flow.login(claims)

    response = JSONResponse(
        {
            "account": result.account.uid,
            "display_name": result.account.display_name,
            "email": result.account.email,
            "groups_added": sorted(result.added),
            "groups_removed": sorted(result.removed),
            "return_to": session.return_to,
        }
    )
    response.delete_cookie(AUTH_SESSION_COOKIE, path="/")
    return response
