"""Reassembly of IMAP FETCH responses into :class:`MailMessage` objects.

``imaplib`` returns a flat list in which every literal arrives as a
``(metadata, payload)`` tuple and any text between or after literals
arrives as plain bytes.  The first chunk of a message carries the
sequence number; later chunks of the same message carry only section
names and their values, which may be a literal, a quoted string or NIL.
"""

from __future__ import annotations

import quopri
import re
from collections.abc import Iterable

from .models import MailMessage

HEADER_SECTION = "HEADER.FIELDS (FROM TO SUBJECT DATE)"
TEXT_SECTION = "TEXT"

_SEQ_RE = re.compile(rb"^\s*(\d+)\s+\(")
_SECTION_RE = re.compile(
    rb'BODY\[([^\]]*)\](?:<\d+>)?\s+(NIL|"(?:[^"\\]|\\.)*"|\{\d+\})',
    re.IGNORECASE,
)
_QUOTED_ESCAPE_RE = re.compile(rb"\\(.)")


def decode_header(raw: bytes) -> str:
    """Header bytes are kept verbatim as UTF-8 text."""
    return raw.decode("utf-8", errors="replace")


def decode_body(raw: bytes) -> str:
    """Decode a quoted-printable text part, then interpret it as UTF-8."""
    return quopri.decodestring(raw).decode("utf-8", errors="replace")


def _section_value(token: bytes, literal: bytes | None) -> bytes:
    if token.startswith(b"{"):
        return literal or b""
    if token.upper() == b"NIL":
        return b""
    return _QUOTED_ESCAPE_RE.sub(rb"\1", token[1:-1])


def assemble_messages(data: Iterable[bytes | tuple[bytes, bytes] | None]) -> list[MailMessage]:
    """Pair header and text sections by sequence number, in delivery order.

    Sequence numbers that carry no BODY section (unsolicited FLAGS
    updates, for example) produce no message.  Raises :class:`ValueError`
    if a section arrives before any sequence number has been seen.
    """
    parts: dict[int, dict[str, bytes]] = {}
    current: int | None = None

    for item in data:
        if item is None:
            continue
        if isinstance(item, tuple):
            meta, literal = item[0], item[1]
        else:
            meta, literal = item, None

        match = _SEQ_RE.match(meta)
        if match:
            current = int(match.group(1))

        for section in _SECTION_RE.finditer(meta):
            if current is None:
                raise ValueError(f"unexpected FETCH response item: {meta[:40]!r}")
            name = section.group(1).decode("ascii", errors="replace").upper()
            parts.setdefault(current, {})[name] = _section_value(section.group(2), literal)

    messages: list[MailMessage] = []
    for sections in parts.values():
        header = next((v for k, v in sections.items() if k.startswith("HEADER")), b"")
        body = sections.get(TEXT_SECTION, b"")
        messages.append(MailMessage(header=decode_header(header), body=decode_body(body)))
    return messages
