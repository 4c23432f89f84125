"""Transactional email over the Mailjet v3.1 send API.

Used only by the worker. When Mailjet credentials are not configured the
message is logged instead of sent, so local runs need no mail account.
"""

from __future__ import annotations

import logging

import httpx

from mentorship.core.config import SETTINGS

logger = logging.getLogger(__name__)

MAILJET_SEND_URL = "https://api.mailjet.com/v3.1/send"
SENDER_NAME = "Bit2Byte"
_TIMEOUT_SECONDS = 10.0


class MailDeliveryError(Exception):
    pass


def build_message(
    *, to: list[str], subject: str, text: str, html: str | None = None
) -> dict:
    message: dict = {
        "From": {"Email": SETTINGS.mail_from, "Name": SENDER_NAME},
        "To": [{"Email": addr} for addr in to],
        "Subject": subject,
        "TextPart": text,
    }
    if html:
        message["HTMLPart"] = html
    return {"Messages": [message]}


async def send_email(
    *,
    to: list[str],
    subject: str,
    text: str,
    html: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Send one message to every address in ``to``.

    Raises MailDeliveryError on transport errors or non-2xx responses.
    """
    if not to:
        raise MailDeliveryError("no recipients")

    if not SETTINGS.mail_configured:
        logger.info("Mail not configured; would send subject=%r to=%s", subject, to)
        return

    body = build_message(to=to, subject=subject, text=text, html=html)
    auth = (SETTINGS.mailjet_api_key or "", SETTINGS.mailjet_api_secret or "")
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=_TIMEOUT_SECONDS)
    try:
        resp = await http.post(MAILJET_SEND_URL, json=body, auth=auth)
    except httpx.HTTPError as e:
        raise MailDeliveryError(f"mailjet request failed: {e}") from e
    finally:
        if owns_client:
            await http.aclose()

    if resp.status_code >= 300:
        raise MailDeliveryError(f"mailjet returned {resp.status_code}: {resp.text}")
    logger.info("Mail sent subject=%r recipients=%d", subject, len(to))
