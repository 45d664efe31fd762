"""Tests for event reminder scheduling, the send batch, and email rendering."""

import asyncio
import unittest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from portal.core.clock import utcnow
from portal.core.config import settings
from portal.core.errors import InputValidationError
from portal.models import EmailReminder, EventAttendance
from portal.services.mailer import MailResult
from portal.services.reminders import (
    CANCELLED,
    FAILED,
    NO_RECIPIENT,
    PENDING,
    SENT,
    cancel_event_reminders,
    process_pending_reminders,
    render_reminder_email,
    reminder_status,
    schedule_event_reminders,
)

from support import (
    add_event, add_user, auth_header, clear_overrides, make_client, make_session_factory, seed_session,
)


def _fake_mailer(*results: MailResult) -> MagicMock:
    mailer = MagicMock()
    mailer.send = AsyncMock(side_effect=list(results))
    return mailer


class TestScheduleReminders(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.home_admin = add_user(self.db, email="home@example.org", role="HOME_ADMIN")
        self.facilitator = add_user(self.db, email="fac@example.org", role="FACILITATOR")
        self.contractor = add_user(self.db, email="con@example.org", role="CONTRACTOR")
        self.volunteer = add_user(self.db, email="vol@example.org", role="VOLUNTEER")

    def tearDown(self) -> None:
        self.db.close()

    def _event(self, start_in: timedelta, **kwargs):
        event = add_event(self.db, start_in, home_admin_id=self.home_admin.id, max_attendees=10, **kwargs)
        for user, status in (
            (self.facilitator, "YES"),
            (self.contractor, "YES"),
            (self.volunteer, "YES"),
        ):
            self.db.add(EventAttendance(event_id=event.id, user_id=user.id, status=status))
        self.db.commit()
        return event

    def test_home_admin_and_confirmed_staff(self) -> None:
        event = self._event(timedelta(days=10))
        created = schedule_event_reminders(self.db, event.id)
        got = {(r.recipient_id, r.reminder_type) for r in created}
        self.assertEqual(
            got,
            {
                (self.home_admin.id, "7_DAY"),
                (self.home_admin.id, "5_DAY"),
                (self.facilitator.id, "3_DAY"),
                (self.facilitator.id, "1_DAY"),
                (self.contractor.id, "3_DAY"),
                (self.contractor.id, "1_DAY"),
            },
        )
        self.assertTrue(all(r.status == PENDING for r in created))

    def test_past_dates_skipped(self) -> None:
        event = self._event(timedelta(days=4))
        created = schedule_event_reminders(self.db, event.id)
        self.assertEqual({r.reminder_type for r in created}, {"3_DAY", "1_DAY"})

    def test_maybe_attendee_not_reminded(self) -> None:
        event = self._event(timedelta(days=10))
        self.db.query(EventAttendance).filter(EventAttendance.user_id == self.contractor.id).update(
            {EventAttendance.status: "MAYBE"}
        )
        self.db.commit()
        created = schedule_event_reminders(self.db, event.id)
        self.assertNotIn(self.contractor.id, {r.recipient_id for r in created})

    def test_unpublished_or_missing_event(self) -> None:
        event = self._event(timedelta(days=10), status="DRAFT")
        with self.assertRaises(InputValidationError):
            schedule_event_reminders(self.db, event.id)
        with self.assertRaises(InputValidationError):
            schedule_event_reminders(self.db, 999)
        self.assertEqual(self.db.query(EmailReminder).count(), 0)

    def test_cancel_and_status(self) -> None:
        event = self._event(timedelta(days=10))
        schedule_event_reminders(self.db, event.id)
        self.assertEqual(cancel_event_reminders(self.db, event.id), 6)
        status = reminder_status(self.db, event.id)
        self.assertEqual(status["stats"]["total"], 6)
        self.assertEqual(status["stats"]["cancelled"], 6)
        self.assertEqual(status["stats"]["pending"], 0)
        self.assertTrue(all(r.status == CANCELLED for r in status["reminders"]))
        # Cancelling again touches nothing.
        self.assertEqual(cancel_event_reminders(self.db, event.id), 0)


class TestProcessReminders(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.user = add_user(self.db, email="fac@example.org", name="Fran")
        self.event = add_event(self.db, timedelta(days=1))

    def tearDown(self) -> None:
        self.db.close()

    def _reminder(self, recipient_id: int | None, due_in: timedelta = timedelta(minutes=-5)) -> EmailReminder:
        reminder = EmailReminder(
            event_id=self.event.id,
            recipient_type="STAFF",
            recipient_id=recipient_id,
            reminder_type="1_DAY",
            scheduled_for=utcnow() + due_in,
            status=PENDING,
        )
        self.db.add(reminder)
        self.db.commit()
        return reminder

    def _run(self, mailer: MagicMock) -> dict[str, int]:
        return asyncio.run(process_pending_reminders(self.db, settings, mailer))

    def test_sent_and_failed(self) -> None:
        first = self._reminder(self.user.id)
        second = self._reminder(self.user.id)
        mailer = _fake_mailer(
            MailResult(success=True, campaign_id="camp1"),
            MailResult(success=False, error="Mailchimp not configured"),
        )
        results = self._run(mailer)
        self.assertEqual(results, {"processed": 2, "sent": 1, "failed": 1})
        self.db.refresh(first)
        self.db.refresh(second)
        self.assertEqual((first.status, first.campaign_id), (SENT, "camp1"))
        self.assertIsNotNone(first.sent_at)
        self.assertEqual((second.status, second.error), (FAILED, "Mailchimp not configured"))
        to, subject, _html = mailer.send.await_args_list[0].args
        self.assertEqual(to, "fac@example.org")
        self.assertEqual(subject, "Event Reminder: Music Afternoon - 1 day away")

    def test_missing_recipient_fails_without_sending(self) -> None:
        reminder = self._reminder(None)
        mailer = _fake_mailer()
        results = self._run(mailer)
        self.assertEqual(results, {"processed": 1, "sent": 0, "failed": 1})
        self.db.refresh(reminder)
        self.assertEqual((reminder.status, reminder.error), (FAILED, NO_RECIPIENT))
        mailer.send.assert_not_awaited()

    def test_future_and_finished_reminders_ignored(self) -> None:
        self._reminder(self.user.id, due_in=timedelta(hours=1))
        self._reminder(self.user.id)
        mailer = _fake_mailer(MailResult(success=True, campaign_id="c"))
        self.assertEqual(self._run(mailer)["processed"], 1)
        # The SENT one is not picked up again.
        self.assertEqual(self._run(_fake_mailer())["processed"], 0)

    def test_unexpected_error_marks_failed_and_continues(self) -> None:
        first = self._reminder(self.user.id)
        self._reminder(self.user.id)
        mailer = _fake_mailer(RuntimeError("boom"), MailResult(success=True, campaign_id="c"))
        with self.assertLogs("portal.services.reminders", level="ERROR"):
            results = self._run(mailer)
        self.assertEqual(results, {"processed": 2, "sent": 1, "failed": 1})
        self.db.refresh(first)
        self.assertEqual((first.status, first.error), (FAILED, "boom"))


class TestRenderReminderEmail(unittest.TestCase):
    def test_event_text_is_escaped(self) -> None:
        reminder = MagicMock(reminder_type="7_DAY", recipient_type="HOME_ADMIN")
        recipient = MagicMock()
        recipient.name = "Pat <b>"
        event = MagicMock(
            id=4,
            title="Paint & <script>",
            description="<img src=x>",
            location_name="Hall",
            location_address="1 Main St",
            home_name="Sunny Home",
            start_at=utcnow(),
        )
        subject, body = render_reminder_email(reminder, recipient, event, settings)
        self.assertEqual(subject, "Reminder: Paint & <script> is 7 days away")
        self.assertIn("Paint &amp; &lt;script&gt;", body)
        self.assertNotIn("<script>", body)
        self.assertNotIn("<img src=x>", body)
        self.assertIn("Hi Pat &lt;b&gt;", body)
        self.assertIn("/events/4", body)
        # Home admins are not shown their own facility.
        self.assertNotIn("Sunny Home", body)


class TestReminderApi(unittest.TestCase):
    def test_admin_schedules_and_reads_status(self) -> None:
        factory = make_session_factory()
        client = make_client(factory)
        try:
            db = seed_session(factory)
            admin = add_user(db, email="admin@example.org", role="ADMIN")
            home = add_user(db, email="home@example.org", role="HOME_ADMIN")
            event = add_event(db, timedelta(days=10), home_admin_id=home.id)
            db.close()
            resp = client.post(f"/api/events/{event.id}/reminders", headers=auth_header(admin))
            self.assertEqual(resp.status_code, 201)
            self.assertEqual(resp.json(), {"success": True, "scheduled": 2})
            resp = client.get(f"/api/events/{event.id}/reminders", headers=auth_header(admin))
            self.assertEqual(resp.json()["stats"]["pending"], 2)
            resp = client.get(f"/api/events/{event.id}/reminders", headers=auth_header(home))
            self.assertEqual(resp.status_code, 403)
            resp = client.get("/api/events/999/reminders", headers=auth_header(admin))
            self.assertEqual(resp.status_code, 404)
        finally:
            clear_overrides()


class TestReminderCli(unittest.TestCase):
    def test_exit_codes(self) -> None:
        from portal import reminders as cli

        session = MagicMock()
        with patch.object(cli, "SessionLocal", return_value=session), patch.object(
            cli, "process_pending_reminders", AsyncMock(return_value={"processed": 0, "sent": 0, "failed": 0})
        ):
            self.assertEqual(cli.main(), 0)
        session.close.assert_called_once()

        with patch.object(cli, "SessionLocal", return_value=MagicMock()), patch.object(
            cli, "process_pending_reminders", AsyncMock(side_effect=RuntimeError("db down"))
        ), self.assertLogs("portal.reminders", level="ERROR"):
            self.assertEqual(cli.main(), 1)
