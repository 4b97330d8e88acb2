"""Data models shared by the OAuth2 and mailbox operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Provider token response, passed through to the caller untouched.
Token = dict[str, Any]

DEFAULT_STATE = "random-state"
DEFAULT_FOLDER = "INBOX"


@dataclass(frozen=True)
class Credentials:
    """Registered application identity used to build an OAuth2 client."""

    client_id: str
    client_secret: str
    redirect_uri: str


@dataclass
class MailMessage:
    """A fetched message: raw From/To/Subject/Date header block and decoded text body."""

    header: str
    body: str
