"""Runtime settings loaded from environment variables.

Provider endpoints are module constants rather than settings: pointing the
package at another identity provider is a code change, not configuration.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

TOKEN_HOST = "https://login.microsoftonline.com"
TOKEN_PATH = "/common/oauth2/v2.0/token"
AUTHORIZE_PATH = "/common/oauth2/v2.0/authorize"

IMAP_HOST = "outlook.office365.com"
IMAP_PORT = 993


class OAuthConfig(BaseSettings):
    """HTTP settings for the token endpoint client."""

    model_config = {"env_prefix": "OUTLOOK_OAUTH_"}

    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")


class ImapConfig(BaseSettings):
    """IMAP connection settings."""

    model_config = {"env_prefix": "OUTLOOK_IMAP_"}

    verify_certificate: bool = Field(
        default=False,
        description="Validate the server TLS certificate (disabled unless opted in)",
    )
    timeout_seconds: float | None = Field(
        default=None,
        description="Socket timeout in seconds; None blocks indefinitely",
    )
