"""Unit tests for portal.services.mailer: configuration check and the Mailchimp campaign calls."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

import httpx
from pydantic import SecretStr

from portal.services.mailer import NOT_CONFIGURED, Mailer, is_mailchimp_configured


def _settings(**overrides: object) -> MagicMock:
    settings = MagicMock()
    settings.MAILCHIMP_API_KEY = SecretStr("key-us1")
    settings.MAILCHIMP_SERVER_PREFIX = "us1"
    settings.MAILCHIMP_LIST_ID = "list123"
    settings.MAILCHIMP_REQUEST_TIMEOUT_SEC = 5.0
    settings.MAIL_FROM_NAME = "Arts and Aging"
    settings.SUPPORT_EMAIL = "info@example.org"
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def _response(status_code: int = 200, body: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body or {}
    resp.text = ""
    return resp


class TestIsMailchimpConfigured(unittest.TestCase):
    def test_missing_key(self) -> None:
        self.assertFalse(is_mailchimp_configured(_settings(MAILCHIMP_API_KEY=None)))

    def test_blank_prefix(self) -> None:
        self.assertFalse(is_mailchimp_configured(_settings(MAILCHIMP_SERVER_PREFIX=" ")))

    def test_configured(self) -> None:
        self.assertTrue(is_mailchimp_configured(_settings()))


class TestMailerSend(unittest.TestCase):
    def test_not_configured_returns_failure_without_calls(self) -> None:
        client = MagicMock()
        result = asyncio.run(
            Mailer(_settings(MAILCHIMP_API_KEY=None), client=client).send("a@b.org", "s", "<p>h</p>")
        )
        self.assertFalse(result.success)
        self.assertEqual(result.error, NOT_CONFIGURED)
        client.post.assert_not_called()

    def test_create_content_send(self) -> None:
        client = MagicMock()
        client.post = AsyncMock(side_effect=[_response(body={"id": "camp1"}), _response(204)])
        client.put = AsyncMock(return_value=_response())
        result = asyncio.run(Mailer(_settings(), client=client).send("a@b.org", "Subject", "<p>h</p>"))
        self.assertTrue(result.success)
        self.assertEqual(result.campaign_id, "camp1")

        create_call, send_call = client.post.await_args_list
        self.assertEqual(create_call.args[0], "https://us1.api.mailchimp.com/3.0/campaigns")
        payload = create_call.kwargs["json"]
        self.assertEqual(payload["recipients"], {"list_id": "list123"})
        self.assertEqual(payload["settings"]["subject_line"], "Subject")
        self.assertEqual(create_call.kwargs["headers"]["Authorization"], "Bearer key-us1")
        self.assertEqual(
            client.put.await_args.args[0], "https://us1.api.mailchimp.com/3.0/campaigns/camp1/content"
        )
        self.assertEqual(client.put.await_args.kwargs["json"], {"html": "<p>h</p>"})
        self.assertTrue(send_call.args[0].endswith("/campaigns/camp1/actions/send"))

    def test_api_error_becomes_failure_result(self) -> None:
        client = MagicMock()
        client.post = AsyncMock(return_value=_response(400, {"detail": "List not found"}))
        result = asyncio.run(Mailer(_settings(), client=client).send("a@b.org", "s", "h"))
        self.assertFalse(result.success)
        self.assertIn("List not found", result.error)
        client.post.assert_awaited_once()

    def test_transport_error_becomes_failure_result(self) -> None:
        client = MagicMock()
        client.post = AsyncMock(side_effect=httpx.ConnectError("no route"))
        result = asyncio.run(Mailer(_settings(), client=client).send("a@b.org", "s", "h"))
        self.assertFalse(result.success)
        self.assertIn("no route", result.error)
