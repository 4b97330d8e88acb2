"""Shared test fixtures for the outlook_mail test suite."""

from __future__ import annotations

import imaplib
import socketserver
import threading
from dataclasses import dataclass, field
from unittest.mock import MagicMock

import pytest

from outlook_mail.config import ImapConfig, OAuthConfig

TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
HEADER_META = b"BODY[HEADER.FIELDS (FROM TO SUBJECT DATE)]"


@pytest.fixture
def credentials() -> dict[str, str]:
    return {
        "client_id": "client-123",
        "client_secret": "secret-456",
        "redirect_uri": "https://app.example.com/callback",
    }


@pytest.fixture
def token() -> dict[str, object]:
    return {
        "token_type": "Bearer",
        "scope": "https://outlook.office.com/IMAP.AccessAsUser.All offline_access",
        "expires_in": 3599,
        "ext_expires_in": 3599,
        "access_token": "eyJ0eXAi.access",
        "refresh_token": "M.R3_BAY.refresh",
    }


@pytest.fixture
def oauth_config() -> OAuthConfig:
    return OAuthConfig(timeout_seconds=5.0)


@pytest.fixture
def imap_config() -> ImapConfig:
    return ImapConfig(verify_certificate=False, timeout_seconds=None)


# ------------------------------------------------------------------
# IMAP response builders
# ------------------------------------------------------------------


def header_block(*, from_addr: str, subject: str, to_addr: str = "me@example.com") -> bytes:
    return (
        f"From: {from_addr}\r\n"
        f"To: {to_addr}\r\n"
        f"Subject: {subject}\r\n"
        "Date: Mon, 02 Jun 2025 12:00:00 +0000\r\n"
        "\r\n"
    ).encode()


def build_fetch_data(messages: list[tuple[bytes, bytes]]) -> list:
    """Build an imaplib-style FETCH response, header literal first."""
    data: list = []
    for seq, (header, body) in enumerate(messages, start=1):
        data.append((b"%d (%s {%d}" % (seq, HEADER_META, len(header)), header))
        data.append((b" BODY[TEXT] {%d}" % len(body), body))
        data.append(b")")
    return data


def make_mock_imap(
    *,
    exists: int = 0,
    fetch_data: list | None = None,
    select_status: str = "OK",
    fetch_status: str = "OK",
) -> MagicMock:
    """Create a mock imaplib.IMAP4_SSL with programmed responses."""
    mock = MagicMock()
    mock.authenticate.return_value = ("OK", [b"AUTHENTICATE completed."])
    if select_status == "OK":
        mock.select.return_value = ("OK", [str(exists).encode()])
    else:
        mock.select.return_value = (select_status, [b"Mailbox doesn't exist: Nope"])
    if fetch_status == "OK":
        mock.fetch.return_value = ("OK", fetch_data or [])
    else:
        mock.fetch.return_value = (fetch_status, [b"FETCH failed"])
    mock.logout.return_value = ("BYE", [b"Logging out"])
    return mock


def fetch_response(seq: int, header: bytes, body: bytes) -> bytes:
    """One untagged FETCH response line as a server sends it on the wire."""
    return (
        b"* %d FETCH (%s {%d}\r\n%s BODY[TEXT] {%d}\r\n%s)\r\n"
        % (seq, HEADER_META, len(header), header, len(body), body)
    )


# ------------------------------------------------------------------
# Local IMAP server speaking just enough of the protocol for imaplib
# ------------------------------------------------------------------


@dataclass
class FakeImapState:
    """Programmed mailboxes and a record of what the client sent."""

    # wire mailbox name -> untagged FETCH responses, one per message
    mailboxes: dict[str, list[bytes]] = field(default_factory=dict)
    # extra untagged lines sent before the FETCH completion
    unsolicited: list[bytes] = field(default_factory=list)
    reject_auth: bool = False
    auth_strings: list[str] = field(default_factory=list)
    examined: list[str] = field(default_factory=list)
    fetches: list[str] = field(default_factory=list)
    logged_out: bool = False


class _FakeImapHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        state: FakeImapState = self.server.state  # type: ignore[attr-defined]
        selected: list[bytes] = []
        self.wfile.write(b"* OK fake IMAP4rev1 ready\r\n")

        while True:
            line = self.rfile.readline()
            if not line:
                return
            tag, _, rest = line.rstrip(b"\r\n").partition(b" ")
            command, _, args = rest.partition(b" ")
            command = command.upper()

            if command == b"CAPABILITY":
                self.wfile.write(b"* CAPABILITY IMAP4rev1 AUTH=XOAUTH2\r\n%s OK done\r\n" % tag)
            elif command == b"AUTHENTICATE":
                self.wfile.write(b"+ \r\n")
                state.auth_strings.append(self.rfile.readline().strip().decode())
                if state.reject_auth:
                    self.wfile.write(b"%s NO AUTHENTICATE failed.\r\n" % tag)
                else:
                    self.wfile.write(b"%s OK AUTHENTICATE completed.\r\n" % tag)
            elif command in (b"EXAMINE", b"SELECT"):
                name = args.decode()
                state.examined.append(name)
                if name not in state.mailboxes:
                    self.wfile.write(b"%s NO Mailbox doesn't exist: %s\r\n" % (tag, args))
                    continue
                selected = state.mailboxes[name]
                self.wfile.write(
                    b"* %d EXISTS\r\n%s OK [READ-ONLY] EXAMINE completed.\r\n" % (len(selected), tag)
                )
            elif command == b"FETCH":
                state.fetches.append(args.decode())
                self.wfile.write(b"".join(selected) + b"".join(state.unsolicited))
                self.wfile.write(b"%s OK FETCH completed.\r\n" % tag)
            elif command == b"LOGOUT":
                state.logged_out = True
                self.wfile.write(b"* BYE logging out\r\n%s OK LOGOUT completed.\r\n" % tag)
                return
            else:
                self.wfile.write(b"%s BAD unknown command\r\n" % tag)


@pytest.fixture
def fake_imap_server():
    """Start a local IMAP server and yield ``(state, imap4_ssl_factory)``.

    The factory stands in for ``imaplib.IMAP4_SSL`` and returns a plain
    ``imaplib.IMAP4`` connected to the local server, so real imaplib
    command encoding and response framing are exercised.
    """
    state = FakeImapState()
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), _FakeImapHandler)
    server.daemon_threads = True
    server.state = state  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    port = server.server_address[1]

    def factory(host, port_, ssl_context=None, timeout=None):
        return imaplib.IMAP4("127.0.0.1", port, timeout=5)

    try:
        yield state, factory
    finally:
        server.shutdown()
        server.server_close()
