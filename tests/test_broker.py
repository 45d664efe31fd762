"""Unit tests for portal.core.broker: subscriptions, cross-thread publish, publish-after-commit."""

import asyncio
import threading
import unittest
from unittest.mock import MagicMock, patch

from portal.core.broker import NotificationBroker, defer_publish, discard_pending, publish_pending


class TestNotificationBroker(unittest.TestCase):
    def test_publish_wakes_only_matching_user(self) -> None:
        broker = NotificationBroker()

        async def run() -> tuple[bool, bool]:
            mine = broker.subscribe(1)
            other = broker.subscribe(2)
            broker.publish([1])
            return await mine.wait(0.5), await other.wait(0.05)

        woke_mine, woke_other = asyncio.run(run())
        self.assertTrue(woke_mine)
        self.assertFalse(woke_other)

    def test_publish_from_another_thread(self) -> None:
        broker = NotificationBroker()

        async def run() -> bool:
            sub = broker.subscribe(7)
            threading.Thread(target=broker.publish, args=([7],)).start()
            return await sub.wait(1.0)

        self.assertTrue(asyncio.run(run()))

    def test_unsubscribe_removes_subscription(self) -> None:
        broker = NotificationBroker()

        async def run() -> None:
            sub = broker.subscribe(3)
            self.assertEqual(broker.subscriber_count(3), 1)
            broker.unsubscribe(sub)
            broker.unsubscribe(sub)
            self.assertEqual(broker.subscriber_count(3), 0)
            self.assertEqual(broker.subscriber_count(), 0)

        asyncio.run(run())


class TestPendingPublish(unittest.TestCase):
    def test_publish_pending_sends_collected_ids_once(self) -> None:
        db = MagicMock()
        db.info = {}
        defer_publish(db, [1, 2])
        defer_publish(db, [2, 3])
        with patch("portal.core.broker.broker") as mock_broker:
            publish_pending(db)
            publish_pending(db)
        mock_broker.publish.assert_called_once_with({1, 2, 3})

    def test_discard_pending_drops_ids(self) -> None:
        db = MagicMock()
        db.info = {}
        defer_publish(db, [1])
        discard_pending(db)
        with patch("portal.core.broker.broker") as mock_broker:
            publish_pending(db)
        mock_broker.publish.assert_not_called()
