"""Tests for the invitation lifecycle: create, redeem once, expiry, cancel, public preview."""

import unittest
from datetime import timedelta
from unittest.mock import patch

from portal.core.clock import utcnow
from portal.core.errors import InputValidationError, NotFoundError
from portal.core.security import verify_password
from portal.models import AuditLog, Invitation, User
from portal.services.invitations import (
    ACCEPTED,
    INVALID_INVITATION,
    accept_invitation,
    cancel_invitation,
    create_invitation,
    is_redeemable,
)

from support import (
    actor, add_user, auth_header, clear_overrides, make_client, make_session_factory, seed_session,
)


class InvitationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = make_session_factory()
        self.db = self.factory()
        self.admin = add_user(self.db, email="admin@example.org", role="ADMIN", name="Ada Admin")

    def tearDown(self) -> None:
        self.db.close()


class TestCreateInvitation(InvitationTestCase):
    def test_creates_pending_invitation_with_hex_token(self) -> None:
        inv = create_invitation(self.db, actor(self.admin), " New@Example.org ", "FACILITATOR")
        self.assertEqual(inv.email, "new@example.org")
        self.assertEqual(inv.status, "PENDING")
        self.assertEqual(len(inv.token), 64)
        int(inv.token, 16)
        self.assertTrue(is_redeemable(inv))
        actions = [a.action for a in self.db.query(AuditLog).all()]
        self.assertEqual(actions, ["INVITATION_CREATED"])

    def test_existing_account_rejected(self) -> None:
        add_user(self.db, email="taken@example.org")
        with self.assertRaises(InputValidationError) as ctx:
            create_invitation(self.db, actor(self.admin), "taken@example.org", "VOLUNTEER")
        self.assertEqual(ctx.exception.message, "User already exists")

    def test_invalid_role_rejected(self) -> None:
        with self.assertRaises(InputValidationError):
            create_invitation(self.db, actor(self.admin), "x@example.org", "WIZARD")

    def test_placeholder_account_is_linked(self) -> None:
        placeholder = add_user(
            self.db, email="ph@example.org", status="PENDING", password_hash=None, name=None
        )
        inv = create_invitation(self.db, actor(self.admin), "ph@example.org", "CONTRACTOR")
        self.assertEqual(inv.user_id, placeholder.id)


class TestAcceptInvitation(InvitationTestCase):
    def test_accept_creates_user_and_marks_accepted(self) -> None:
        inv = create_invitation(self.db, actor(self.admin), "new@example.org", "FACILITATOR")
        user = accept_invitation(self.db, inv.token, "Nina New", "secret123")
        self.assertEqual(user.role, "FACILITATOR")
        self.assertEqual(user.status, "ACTIVE")
        self.assertTrue(verify_password("secret123", user.password_hash))
        self.db.refresh(inv)
        self.assertEqual(inv.status, ACCEPTED)
        self.assertIn("INVITATION_ACCEPTED", [a.action for a in self.db.query(AuditLog).all()])

    def test_second_redemption_fails_without_new_user(self) -> None:
        inv = create_invitation(self.db, actor(self.admin), "new@example.org", "VOLUNTEER")
        accept_invitation(self.db, inv.token, "Nina New", "secret123")
        users_before = self.db.query(User).count()
        with self.assertRaises(InputValidationError) as ctx:
            accept_invitation(self.db, inv.token, "Someone Else", "other-pass")
        self.assertEqual(ctx.exception.message, INVALID_INVITATION)
        self.assertEqual(self.db.query(User).count(), users_before)

    def test_expired_token_rejected(self) -> None:
        inv = create_invitation(self.db, actor(self.admin), "late@example.org", "VOLUNTEER")
        inv.expires_at = utcnow() - timedelta(minutes=1)
        self.db.commit()
        with self.assertRaises(InputValidationError) as ctx:
            accept_invitation(self.db, inv.token, "Late Larry", "secret123")
        self.assertEqual(ctx.exception.message, INVALID_INVITATION)
        self.assertIsNone(self.db.query(User).filter(User.email == "late@example.org").first())

    def test_expiry_instant_is_still_redeemable(self) -> None:
        moment = utcnow()
        inv = Invitation(status="PENDING", expires_at=moment)
        with patch("portal.services.invitations.utcnow", return_value=moment):
            self.assertTrue(is_redeemable(inv))
        with patch("portal.services.invitations.utcnow", return_value=moment + timedelta(microseconds=1)):
            self.assertFalse(is_redeemable(inv))

    def test_unknown_token_rejected(self) -> None:
        with self.assertRaises(InputValidationError):
            accept_invitation(self.db, "nope", "Name", "secret123")

    def test_input_checked_before_token(self) -> None:
        with self.assertRaises(InputValidationError) as ctx:
            accept_invitation(self.db, "nope", "Name", "short")
        self.assertEqual(ctx.exception.message, "Password too short")
        with self.assertRaises(InputValidationError) as ctx:
            accept_invitation(self.db, "nope", "  ", "secret123")
        self.assertEqual(ctx.exception.message, "Name required")

    def test_placeholder_is_activated_not_duplicated(self) -> None:
        add_user(self.db, email="ph@example.org", status="PENDING", password_hash=None, name=None)
        inv = create_invitation(self.db, actor(self.admin), "ph@example.org", "CONTRACTOR")
        user = accept_invitation(self.db, inv.token, "Pat Holder", "secret123")
        self.assertEqual(self.db.query(User).filter(User.email == "ph@example.org").count(), 1)
        self.assertEqual(user.role, "CONTRACTOR")
        self.assertEqual(user.status, "ACTIVE")


class TestCancelInvitation(InvitationTestCase):
    def test_cancel_deletes_and_audits(self) -> None:
        inv = create_invitation(self.db, actor(self.admin), "gone@example.org", "VOLUNTEER")
        cancel_invitation(self.db, actor(self.admin), inv.id)
        self.assertEqual(self.db.query(Invitation).count(), 0)
        self.assertIn("INVITATION_CANCELLED", [a.action for a in self.db.query(AuditLog).all()])

    def test_cancel_missing_raises_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            cancel_invitation(self.db, actor(self.admin), 999)


class TestInvitationApi(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = make_session_factory()
        self.client = make_client(self.factory)
        db = seed_session(self.factory)
        self.admin = add_user(db, email="admin@example.org", role="ADMIN")
        self.staff = add_user(db, email="staff@example.org", role="FACILITATOR")
        db.close()

    def tearDown(self) -> None:
        clear_overrides()

    def test_non_admin_cannot_create(self) -> None:
        resp = self.client.post(
            "/api/invitations",
            json={"email": "x@example.org", "role": "VOLUNTEER"},
            headers=auth_header(self.staff),
        )
        self.assertEqual(resp.status_code, 403)

    def test_create_preview_accept_twice(self) -> None:
        resp = self.client.post(
            "/api/invitations",
            json={"email": "new@example.org", "role": "VOLUNTEER"},
            headers=auth_header(self.admin),
        )
        self.assertEqual(resp.status_code, 201)
        token = resp.json()["token"]

        preview = self.client.get(f"/api/invitations/{token}")
        self.assertEqual(preview.json(), {"email": "new@example.org", "role": "VOLUNTEER", "valid": True})

        body = {"token": token, "name": "Nina New", "password": "secret123"}
        first = self.client.post("/api/invitations/accept", json=body)
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.json()["success"])

        second = self.client.post("/api/invitations/accept", json=body)
        self.assertEqual(second.json(), {"error": "Invalid or expired invitation"})
        db = seed_session(self.factory)
        self.assertEqual(db.query(User).filter(User.email == "new@example.org").count(), 1)
        db.close()

        preview = self.client.get(f"/api/invitations/{token}")
        self.assertFalse(preview.json()["valid"])

    def test_unknown_token_preview_is_404(self) -> None:
        resp = self.client.get("/api/invitations/does-not-exist")
        self.assertEqual(resp.status_code, 404)
