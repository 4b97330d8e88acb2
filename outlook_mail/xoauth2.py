"""SASL XOAUTH2 credential string for token-based IMAP login."""

from __future__ import annotations

import base64


def xoauth2_payload(user_email: str, access_token: str) -> bytes:
    r"""Raw SASL payload: ``user=<email>\x01auth=Bearer <token>\x01\x01``."""
    return f"user={user_email}\x01auth=Bearer {access_token}\x01\x01".encode()


def build_xoauth2_string(user_email: str, access_token: str) -> str:
    """Base64-encoded XOAUTH2 string as sent on the wire."""
    return base64.b64encode(xoauth2_payload(user_email, access_token)).decode("ascii")
