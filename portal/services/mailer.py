"""Send reminder emails through the Mailchimp campaigns API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from portal.core.config import Settings

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Mailchimp not configured"


class MailchimpApiError(Exception):
    """Raised when the Mailchimp API answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class MailResult:
    success: bool
    campaign_id: str | None = None
    error: str | None = None


def is_mailchimp_configured(settings: Settings) -> bool:
    if settings.MAILCHIMP_API_KEY is None:
        return False
    if not settings.MAILCHIMP_API_KEY.get_secret_value().strip():
        return False
    if not settings.MAILCHIMP_SERVER_PREFIX or not settings.MAILCHIMP_SERVER_PREFIX.strip():
        return False
    return True


def _base_url(settings: Settings) -> str:
    return f"https://{settings.MAILCHIMP_SERVER_PREFIX.strip()}.api.mailchimp.com/3.0"


def _raise_for_status(resp: httpx.Response, what: str) -> None:
    if resp.status_code < 400:
        return
    try:
        body = resp.json()
        detail = body.get("detail") or body.get("title") or resp.text[:500]
    except ValueError:
        detail = resp.text[:500] if resp.text else "Unknown error"
    raise MailchimpApiError(f"Mailchimp {what} failed: {detail}", resp.status_code)


class Mailer:
    """
    Thin Mailchimp client: each message is a one-off campaign to the
    configured audience (create, set HTML content, send).

    Pass `client` to reuse a connection pool or to inject a fake in tests.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._client = client

    async def send(self, to: str, subject: str, html: str, from_name: str | None = None) -> MailResult:
        if not is_mailchimp_configured(self.settings):
            logger.warning("Mailchimp not configured, skipping email send")
            return MailResult(success=False, error=NOT_CONFIGURED)
        try:
            if self._client is not None:
                campaign_id = await self._send(self._client, to, subject, html, from_name)
            else:
                async with httpx.AsyncClient() as client:
                    campaign_id = await self._send(client, to, subject, html, from_name)
        except MailchimpApiError as e:
            logger.error("Mailchimp email error: %s", e.message)
            return MailResult(success=False, error=e.message)
        except httpx.HTTPError as e:
            logger.error("Mailchimp request failed: %s", e)
            return MailResult(success=False, error=str(e) or "Mailchimp request failed")
        return MailResult(success=True, campaign_id=campaign_id)

    async def _send(
        self,
        client: httpx.AsyncClient,
        to: str,
        subject: str,
        html: str,
        from_name: str | None,
    ) -> str:
        settings = self.settings
        base = _base_url(settings)
        headers = {
            "Authorization": f"Bearer {settings.MAILCHIMP_API_KEY.get_secret_value()}",
        }
        timeout = settings.MAILCHIMP_REQUEST_TIMEOUT_SEC
        payload: dict[str, Any] = {
            "type": "regular",
            "recipients": {"list_id": settings.MAILCHIMP_LIST_ID},
            "settings": {
                "subject_line": subject,
                "from_name": from_name or settings.MAIL_FROM_NAME,
                "reply_to": settings.SUPPORT_EMAIL,
            },
        }
        resp = await client.post(f"{base}/campaigns", json=payload, headers=headers, timeout=timeout)
        _raise_for_status(resp, "campaign creation")
        campaign_id = resp.json().get("id")
        if not campaign_id:
            raise MailchimpApiError("Mailchimp response missing campaign id.")

        resp = await client.put(
            f"{base}/campaigns/{campaign_id}/content",
            json={"html": html},
            headers=headers,
            timeout=timeout,
        )
        _raise_for_status(resp, "set content")

        resp = await client.post(
            f"{base}/campaigns/{campaign_id}/actions/send",
            headers=headers,
            timeout=timeout,
        )
        _raise_for_status(resp, "send")
        logger.info("Reminder campaign sent", extra={"campaign_id": campaign_id, "to": to})
        return campaign_id
