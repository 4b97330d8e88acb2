"""OAuth2 authorization-code flow against the Microsoft identity platform.

The token endpoint is called with :mod:`httpx`; every call builds its own
client and closes it before returning.  Public helpers validate their
parameters first, then wrap any failure in a stage-specific error.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

import httpx
from .config import AUTHORIZE_PATH, TOKEN_HOST, TOKEN_PATH, OAuthConfig
from .errors import (
    AuthUrlGenerationError,
    InvalidCredentialsError,
    TokenAcquisitionError,
    TokenRefreshError,
    wrap,
)
from .logging import get_logger
from .models import DEFAULT_STATE, Credentials, Token
from .validation import validate_params

logger = get_logger(__name__)


class TokenEndpointError(Exception):
    """The token endpoint rejected the request or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthorizationCodeClient:
    """Authorization-code grant client bound to the fixed provider endpoints."""

    def __init__(self, credentials: Credentials, config: OAuthConfig | None = None) -> None:
        self.credentials = credentials
        self._config = config or OAuthConfig()

    @property
    def authorize_endpoint(self) -> str:
        return f"{TOKEN_HOST}{AUTHORIZE_PATH}"

    @property
    def token_endpoint(self) -> str:
        return f"{TOKEN_HOST}{TOKEN_PATH}"

    def authorize_url(self, *, redirect_uri: str, scope: str, state: str) -> str:
        """Compose the URL the user visits to grant consent.  No I/O."""
        params = {
            "response_type": "code",
            "client_id": self.credentials.client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "state": state,
        }
        return f"{self.authorize_endpoint}?{urlencode(params)}"

    async def get_token(self, *, code: str, redirect_uri: str, scope: str) -> Token:
        """Exchange a single-use authorization code for a token pair."""
        return await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "scope": scope,
            }
        )

    async def refresh(self, token: Token) -> Token:
        """Exchange the refresh token held in *token* for a new token pair."""
        refresh_token = token.get("refresh_token")
        if not refresh_token:
            raise TokenEndpointError("token has no refresh_token")

        form = {"grant_type": "refresh_token", "refresh_token": refresh_token}
        if token.get("scope"):
            form["scope"] = token["scope"]
        return await self._request_token(form)

    async def _request_token(self, form: dict[str, str]) -> Token:
        data = {
            **form,
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret,
        }
        async with httpx.AsyncClient(
            base_url=TOKEN_HOST,
            timeout=httpx.Timeout(self._config.timeout_seconds),
        ) as client:
            response = await client.post(
                TOKEN_PATH,
                data=data,
                headers={"Accept": "application/json"},
            )

        if response.is_error:
            raise TokenEndpointError(_error_message(response), response.status_code)

        body = response.json()
        if not isinstance(body, dict):
            raise TokenEndpointError("token response is not a JSON object", response.status_code)

        logger.debug(
            "oauth_token_response",
            grant_type=form["grant_type"],
            status_code=response.status_code,
        )
        return body


def _error_message(response: httpx.Response) -> str:
    """Prefer the provider's ``error_description`` over the bare HTTP status."""
    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        description = payload.get("error_description") or payload.get("error")
        if description:
            return str(description)
    return f"HTTP {response.status_code} from token endpoint"


# ----------------------------------------------------------------------
# Public helpers
# ----------------------------------------------------------------------


def get_auth_client(
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    config: OAuthConfig | None = None,
) -> AuthorizationCodeClient:
    """Build a client for the fixed provider endpoints.

    Raises :class:`InvalidCredentialsError` if any credential is empty.
    """
    if not client_id or not client_secret or not redirect_uri:
        raise InvalidCredentialsError()
    credentials = Credentials(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
    )
    return AuthorizationCodeClient(credentials, config)


def generate_auth_url(
    *,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    scope: str,
    state: str | None = None,
) -> str:
    """Return the authorization URL for the user to visit.

    *state* falls back to a fixed literal when omitted.  That default gives
    no CSRF protection; pass a unique value per authorization attempt.
    """
    validate_params(
        {
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "scope": scope,
        },
        ["client_id", "client_secret", "redirect_uri", "scope"],
    )
    client = get_auth_client(client_id, client_secret, redirect_uri)
    try:
        return client.authorize_url(
            redirect_uri=redirect_uri,
            scope=scope,
            state=state or DEFAULT_STATE,
        )
    except Exception as exc:
        logger.error("auth_url_generation_failed", error=str(exc))
        raise wrap(AuthUrlGenerationError, exc) from exc


async def get_token(
    *,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    code: str,
    scope: str,
    config: OAuthConfig | None = None,
) -> Token:
    """Exchange an authorization code for the provider's token object.

    The token is returned exactly as the provider sent it.  Codes are
    single-use, so a failed exchange is never retried here.
    """
    validate_params(
        {
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "code": code,
            "scope": scope,
        },
        ["client_id", "client_secret", "redirect_uri", "code", "scope"],
    )
    client = get_auth_client(client_id, client_secret, redirect_uri, config)
    try:
        token = await client.get_token(code=code, redirect_uri=redirect_uri, scope=scope)
    except Exception as exc:
        logger.error("oauth_token_acquisition_failed", error=str(exc))
        raise wrap(TokenAcquisitionError, exc) from exc

    logger.info("oauth_token_acquired", token_type=token.get("token_type"))
    return token


async def refresh_token(
    *,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    token: Token,
    config: OAuthConfig | None = None,
) -> Token:
    """Refresh a previously obtained token and return the new token object.

    Only the presence of *token* is validated; a token lacking a
    ``refresh_token`` fails inside the client as :class:`TokenRefreshError`.
    """
    validate_params(
        {
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "token": token,
        },
        ["client_id", "client_secret", "redirect_uri", "token"],
    )
    client = get_auth_client(client_id, client_secret, redirect_uri, config)
    try:
        refreshed = await client.refresh(token)
    except Exception as exc:
        logger.error("oauth_token_refresh_failed", error=str(exc))
        raise wrap(TokenRefreshError, exc) from exc

    logger.info("oauth_token_refreshed", token_type=refreshed.get("token_type"))
    return refreshed
