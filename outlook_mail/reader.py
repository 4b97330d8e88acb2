"""Read a whole mailbox folder with a bearer token."""

from __future__ import annotations

from .config import ImapConfig
from .errors import MissingCredentialsError
from .imap_client import AsyncImapClient
from .logging import get_logger
from .models import DEFAULT_FOLDER, MailMessage

logger = get_logger(__name__)


async def read_mail(
    *,
    user_email: str,
    access_token: str,
    folder: str = DEFAULT_FOLDER,
    config: ImapConfig | None = None,
) -> list[MailMessage]:
    """Return every message in *folder* as header/body pairs.

    Messages are ordered by sequence number as the server delivers them.
    The result is all-or-nothing: any failure raises and no partial list
    is returned.  The connection is logged out on every exit path.
    """
    if not user_email or not access_token:
        raise MissingCredentialsError()

    client = AsyncImapClient(user_email, access_token, config)
    try:
        await client.connect()
        count = await client.open_folder(folder)
        # FETCH 1:* is a protocol error on an empty folder
        messages = await client.fetch_messages() if count else []
    finally:
        await client.disconnect()

    logger.info("mailbox_read", folder=folder, messages=len(messages))
    return messages
