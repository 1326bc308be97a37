"""OIDC protocol handshake backed by authlib's httpx client.

``AuthlibTokenSource`` wraps an ``OAuth2Client`` instead of extending it: the
login flow only ever sees the ``TokenSource`` protocol. Token signatures are
not validated here; claims come from the userinfo endpoint or, when
configured, from the access token payload as issued.
"""

import json
from typing import Any

from authlib.common.encoding import to_bytes, urlsafe_b64decode
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import OAuth2Client
from loguru import logger

from oidc_bridge.core.exceptions import ConfigurationError, LoginError
from oidc_bridge.core.interfaces import AuthorizationRequest, TokenResponse
from oidc_bridge.core.security import (
    generate_code_verifier,
    generate_nonce,
    generate_state,
)
from oidc_bridge.core.types.claims import Claims
from oidc_bridge.runtime.config.config_data import OpenIdConfig

WELL_KNOWN_PATH = "/.well-known/openid-configuration"
DEFAULT_TIMEOUT = 10.0


def decode_jwt_payload(token: str) -> dict[str, Any]:
    """Return the payload of a compact JWT without checking its signature."""
    try:
        _, payload, _ = token.split(".")
        claims = json.loads(urlsafe_b64decode(to_bytes(payload)))
    except (ValueError, TypeError) as e:
        raise LoginError("Token is not a JWT.") from e
    if not isinstance(claims, dict):
        raise LoginError("Token payload is not a JSON object.")
    return claims


def verify_nonce(tokens: TokenResponse, expected: str) -> None:
    """Reject an ID token whose nonce differs from the one sent at login.

    Responses without an ID token, or ID tokens without a nonce, pass.
    """
    if not tokens.id_token:
        return
    nonce = decode_jwt_payload(tokens.id_token).get("nonce")
    if nonce is not None and nonce != expected:
        logger.warning("ID token nonce does not match the login request")
        raise LoginError("ID token nonce mismatch.")


class AuthlibTokenSource:
    """Token source for one OpenID configuration."""

    def __init__(self, config: OpenIdConfig, client: OAuth2Client | None = None):
        if not config.provider_url or not config.client_id:
            raise ConfigurationError("provider-url and client-id must be configured.")
        self._config = config
        self._client = client or OAuth2Client(
            client_id=config.client_id,
            client_secret=config.client_secret,
            scope=" ".join(config.scopes),
            code_challenge_method="S256",
            verify=not config.insecure,
            timeout=DEFAULT_TIMEOUT,
        )
        self._well_known: dict[str, Any] | None = None

    def well_known_config(self) -> dict[str, Any]:
        if self._well_known is None:
            url = self._config.provider_url.rstrip("/") + WELL_KNOWN_PATH
            logger.debug("Fetching provider configuration from {}", url)
            response = self._client.get(url, withhold_token=True)
            response.raise_for_status()
            self._well_known = response.json()
        return self._well_known

    def _endpoint(self, name: str) -> str:
        overrides = self._config.provider_params or {}
        endpoint = overrides.get(name) or self.well_known_config().get(name)
        if not endpoint:
            raise ConfigurationError(f"Provider does not publish {name}.")
        return endpoint

    def authorization_request(self, redirect_uri: str) -> AuthorizationRequest:
        state = generate_state()
        nonce = generate_nonce()
        code_verifier = generate_code_verifier()
        url, _ = self._client.create_authorization_url(
            self._endpoint("authorization_endpoint"),
            state=state,
            nonce=nonce,
            code_verifier=code_verifier,
            redirect_uri=redirect_uri,
            **(self._config.auth_params or {}),
        )
        return AuthorizationRequest(
            url=url, state=state, code_verifier=code_verifier, nonce=nonce
        )

    def authenticate(
        self, code: str, code_verifier: str, redirect_uri: str
    ) -> TokenResponse:
        try:
            token = self._client.fetch_token(
                self._endpoint("token_endpoint"),
                grant_type="authorization_code",
                code=code,
                code_verifier=code_verifier,
                redirect_uri=redirect_uri,
            )
        except OAuthError as e:
            logger.warning("Token exchange rejected by provider: {}", e)
            raise LoginError("Authorization code was rejected.") from e
        return TokenResponse.model_validate(dict(token))

    def fetch_claims(self, tokens: TokenResponse) -> Claims:
        if self._config.use_access_token_payload_for_user_info:
            return Claims(decode_jwt_payload(tokens.access_token))

        self._client.token = tokens.model_dump(exclude_none=True)
        response = self._client.get(self._endpoint("userinfo_endpoint"))
        response.raise_for_status()
        return Claims(response.json())

    def close(self) -> None:
        self._client.close()
