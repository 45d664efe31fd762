"""Unit tests for portal.core.roles: policy table, labels, portal paths."""

import unittest

from portal.core.roles import POLICY, Role, is_allowed, is_valid_role, portal_path, role_label


class TestPolicy(unittest.TestCase):
    def test_invitation_create_is_admin_only(self) -> None:
        for role in Role:
            self.assertEqual(is_allowed(role.value, "invitation.create"), role is Role.ADMIN)

    def test_time_entry_submit_is_payroll_and_admin(self) -> None:
        allowed = {r for r in Role if is_allowed(r.value, "time_entry.submit")}
        self.assertEqual(allowed, {Role.PAYROLL, Role.ADMIN})

    def test_unknown_action_denied_for_everyone(self) -> None:
        for role in Role:
            self.assertFalse(is_allowed(role.value, "nuke.everything"))

    def test_unknown_or_missing_role_denied(self) -> None:
        self.assertFalse(is_allowed("SUPERUSER", "notifications.read"))
        self.assertFalse(is_allowed(None, "notifications.read"))

    def test_every_policy_entry_admits_admin(self) -> None:
        for action, roles in POLICY.items():
            self.assertIn(Role.ADMIN, roles, action)


class TestRoleHelpers(unittest.TestCase):
    def test_is_valid_role(self) -> None:
        self.assertTrue(is_valid_role("HOME_ADMIN"))
        self.assertFalse(is_valid_role("home_admin"))

    def test_role_label(self) -> None:
        self.assertEqual(role_label("PARTNER"), "Community Partner")
        self.assertEqual(role_label("PARTNER", short=True), "Partners")
        self.assertEqual(role_label("MYSTERY"), "MYSTERY")

    def test_portal_path(self) -> None:
        self.assertEqual(portal_path("ADMIN"), "/admin")
        self.assertEqual(portal_path("PAYROLL"), "/payroll")
        self.assertEqual(portal_path("HOME_ADMIN"), "/dashboard")
        self.assertEqual(portal_path("VOLUNTEER"), "/staff")
        self.assertEqual(portal_path(None), "/")
