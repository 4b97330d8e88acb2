"""Exception taxonomy for the OAuth2 and mailbox operations.

Every failure raised from a delegated library is wrapped in one of these
with a stable stage prefix and the underlying message appended.
"""

from __future__ import annotations


class OutlookMailError(Exception):
    """Base class for every error raised by this package."""


class MissingParameterError(OutlookMailError, ValueError):
    """A required call parameter was absent or empty."""

    def __init__(self, param: str) -> None:
        super().__init__(f"{param} is required")
        self.param = param


class InvalidCredentialsError(OutlookMailError, ValueError):
    """The credential set handed to the client factory was incomplete."""

    def __init__(self) -> None:
        super().__init__("client_id, client_secret, and redirect_uri are required")


class AuthUrlGenerationError(OutlookMailError):
    """Composing the authorization URL failed."""

    prefix = "Error generating auth URL: "


class TokenAcquisitionError(OutlookMailError):
    """The authorization code could not be exchanged for a token."""

    prefix = "Error getting token: "


class TokenRefreshError(OutlookMailError):
    """A stored token could not be refreshed."""

    prefix = "Error refreshing token: "


class MissingCredentialsError(OutlookMailError, ValueError):
    """Raised before any connection attempt when mailbox credentials are absent."""

    def __init__(self) -> None:
        super().__init__("user_email and access_token are required")


class MailboxOpenError(OutlookMailError):
    """The requested folder could not be selected."""

    prefix = "Error opening mailbox: "


class FetchError(OutlookMailError):
    """The bulk FETCH failed; no partial results are returned."""

    prefix = "Fetch error: "


class ImapConnectionError(OutlookMailError):
    """Connection-level IMAP failure (connect, authenticate, or protocol error)."""

    prefix = "IMAP error: "


def wrap(error_cls: type[OutlookMailError], exc: BaseException, prefix: str | None = None) -> OutlookMailError:
    """Build *error_cls* with its stage prefix and the message of *exc* appended."""
    stage = prefix if prefix is not None else getattr(error_cls, "prefix", "")
    return error_cls(f"{stage}{exc}")
