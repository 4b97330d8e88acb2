"""Async IMAP client wrapping stdlib imaplib with asyncio.to_thread."""

from __future__ import annotations

import asyncio
import base64
import imaplib
import ssl

from .config import IMAP_HOST, IMAP_PORT, ImapConfig
from .errors import FetchError, ImapConnectionError, MailboxOpenError, wrap
from .logging import get_logger
from .models import MailMessage
from .parser import HEADER_SECTION, TEXT_SECTION, assemble_messages
from .xoauth2 import xoauth2_payload

logger = get_logger(__name__)

FETCH_ITEMS = f"(BODY.PEEK[{HEADER_SECTION}] BODY.PEEK[{TEXT_SECTION}])"


def encode_mailbox_name(name: str) -> str:
    """Encode *name* as IMAP modified UTF-7 (RFC 3501 section 5.1.3)."""
    out: list[str] = []
    pending: list[str] = []

    def flush() -> None:
        if pending:
            raw = "".join(pending).encode("utf-16-be")
            encoded = base64.b64encode(raw).decode("ascii").rstrip("=").replace("/", ",")
            out.append(f"&{encoded}-")
            pending.clear()

    for char in name:
        if 0x20 <= ord(char) <= 0x7E:
            flush()
            out.append("&-" if char == "&" else char)
        else:
            pending.append(char)
    flush()
    return "".join(out)


def _quote_mailbox(name: str) -> str:
    if name and not any(c in name for c in ' "(){\\%*'):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class AsyncImapClient:
    """Async-friendly IMAP client authenticating with XOAUTH2.

    All blocking ``imaplib`` operations are wrapped with
    ``asyncio.to_thread()`` to avoid blocking the event loop.  One instance
    serves one read; callers must call :meth:`disconnect` on every path
    once :meth:`connect` has been attempted.
    """

    def __init__(
        self,
        user_email: str,
        access_token: str,
        config: ImapConfig | None = None,
    ) -> None:
        self._user_email = user_email
        self._access_token = access_token
        self._config = config or ImapConfig()
        self._conn: imaplib.IMAP4_SSL | None = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the TLS connection and authenticate with XOAUTH2."""
        try:
            await asyncio.to_thread(self._open_sync)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.error("imap_connect_failed", host=IMAP_HOST, error=str(exc))
            raise wrap(ImapConnectionError, exc, "Connection error: ") from exc

        try:
            await asyncio.to_thread(self._authenticate_sync)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.error("imap_auth_failed", host=IMAP_HOST, user=self._user_email, error=str(exc))
            raise wrap(ImapConnectionError, exc) from exc

        logger.info("imap_connected", host=IMAP_HOST, user=self._user_email)

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._config.verify_certificate:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _open_sync(self) -> None:
        self._conn = imaplib.IMAP4_SSL(
            IMAP_HOST,
            IMAP_PORT,
            ssl_context=self._ssl_context(),
            timeout=self._config.timeout_seconds,
        )

    def _authenticate_sync(self) -> None:
        assert self._conn is not None
        payload = xoauth2_payload(self._user_email, self._access_token)
        # imaplib base64-encodes whatever the callback returns.
        self._conn.authenticate("XOAUTH2", lambda _challenge: payload)

    async def disconnect(self) -> None:
        """Logout if a connection was opened; safe to call more than once."""
        if self._conn is not None:
            await asyncio.to_thread(self._disconnect_sync)
            self._conn = None
            logger.info("imap_disconnected")

    def _disconnect_sync(self) -> None:
        assert self._conn is not None
        try:
            self._conn.logout()
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.debug("imap_logout_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Folder and message retrieval
    # ------------------------------------------------------------------

    async def open_folder(self, folder: str) -> int:
        """Select *folder* read-only and return its message count."""
        assert self._conn is not None, "Not connected"
        try:
            status, data = await asyncio.to_thread(
                self._conn.select, _quote_mailbox(encode_mailbox_name(folder)), True
            )
        except (imaplib.IMAP4.error, UnicodeError) as exc:
            logger.error("imap_folder_open_failed", folder=folder, error=str(exc))
            raise wrap(MailboxOpenError, exc) from exc
        except OSError as exc:
            raise wrap(ImapConnectionError, exc) from exc

        if status != "OK":
            reason = _response_text(data) or status
            logger.error("imap_folder_open_failed", folder=folder, error=reason)
            raise MailboxOpenError(f"{MailboxOpenError.prefix}{reason}")

        count = int(data[0]) if data and data[0] else 0
        logger.info("imap_folder_opened", folder=folder, exists=count)
        return count

    async def fetch_messages(self) -> list[MailMessage]:
        """Fetch header and text parts for every message in the selected folder."""
        assert self._conn is not None, "Not connected"
        try:
            status, data = await asyncio.to_thread(self._conn.fetch, "1:*", FETCH_ITEMS)
        except imaplib.IMAP4.error as exc:
            logger.error("imap_fetch_failed", error=str(exc))
            raise wrap(FetchError, exc) from exc
        except OSError as exc:
            raise wrap(ImapConnectionError, exc) from exc

        if status != "OK":
            reason = _response_text(data) or status
            logger.error("imap_fetch_failed", error=reason)
            raise FetchError(f"{FetchError.prefix}{reason}")

        try:
            messages = assemble_messages(data)
        except ValueError as exc:
            raise wrap(FetchError, exc) from exc

        logger.debug("imap_fetch_complete", fetched=len(messages))
        return messages


def _response_text(data: list | None) -> str:
    if not data or not isinstance(data[0], bytes):
        return ""
    return data[0].decode("utf-8", errors="replace")
