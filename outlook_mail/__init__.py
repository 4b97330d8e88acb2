"""Outlook mail connector: OAuth2 authorization-code helpers and an
XOAUTH2 IMAP mailbox reader.

Public API re-exported here for convenience::

    from outlook_mail import generate_auth_url, get_token, read_mail
"""

from .config import ImapConfig, OAuthConfig
from .errors import (
    AuthUrlGenerationError,
    FetchError,
    ImapConnectionError,
    InvalidCredentialsError,
    MailboxOpenError,
    MissingCredentialsError,
    MissingParameterError,
    OutlookMailError,
    TokenAcquisitionError,
    TokenRefreshError,
)
from .imap_client import AsyncImapClient
from .logging import get_logger, redact_secrets, setup_logging
from .models import Credentials, MailMessage, Token
from .oauth import (
    AuthorizationCodeClient,
    generate_auth_url,
    get_auth_client,
    get_token,
    refresh_token,
)
from .reader import read_mail
from .validation import validate_params
from .xoauth2 import build_xoauth2_string

__all__ = [
    "AsyncImapClient",
    "AuthUrlGenerationError",
    "AuthorizationCodeClient",
    "Credentials",
    "FetchError",
    "ImapConfig",
    "ImapConnectionError",
    "InvalidCredentialsError",
    "MailMessage",
    "MailboxOpenError",
    "MissingCredentialsError",
    "MissingParameterError",
    "OAuthConfig",
    "OutlookMailError",
    "Token",
    "TokenAcquisitionError",
    "TokenRefreshError",
    "build_xoauth2_string",
    "generate_auth_url",
    "get_auth_client",
    "get_logger",
    "get_token",
    "read_mail",
    "redact_secrets",
    "refresh_token",
    "setup_logging",
    "validate_params",
]
