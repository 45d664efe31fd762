"""Tests for the health endpoint."""

import unittest
from unittest.mock import patch

from support import clear_overrides, make_client, make_session_factory


class TestHealth(unittest.TestCase):
    def setUp(self) -> None:
        self.client = make_client(make_session_factory())

    def tearDown(self) -> None:
        clear_overrides()

    def test_connected(self) -> None:
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["database"], "connected")

    def test_disconnected_still_ok(self) -> None:
        with patch("portal.api.health.check_db_connected", return_value=False):
            resp = self.client.get("/api/health/")
        self.assertEqual(resp.json()["database"], "disconnected")
