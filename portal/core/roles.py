"""
User roles, statuses, and the declarative access policy.

Every role-gated action is listed once in POLICY; route dependencies consult
it through is_allowed() instead of embedding their own allow-lists.
"""

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    BOARD = "BOARD"
    PAYROLL = "PAYROLL"
    HOME_ADMIN = "HOME_ADMIN"
    FACILITATOR = "FACILITATOR"
    CONTRACTOR = "CONTRACTOR"
    VOLUNTEER = "VOLUNTEER"
    PARTNER = "PARTNER"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    # Placeholder account created before the person accepted an invitation.
    PENDING = "PENDING"


VALID_ROLES = tuple(r.value for r in Role)

ROLE_LABELS: dict[Role, str] = {
    Role.ADMIN: "Administrator",
    Role.BOARD: "Board Member",
    Role.PAYROLL: "Payroll Staff",
    Role.HOME_ADMIN: "Home Administrator",
    Role.FACILITATOR: "Facilitator",
    Role.CONTRACTOR: "Contractor",
    Role.VOLUNTEER: "Volunteer",
    Role.PARTNER: "Community Partner",
}

ROLE_LABELS_SHORT: dict[Role, str] = {
    Role.ADMIN: "Administration",
    Role.BOARD: "Board",
    Role.PAYROLL: "Payroll",
    Role.HOME_ADMIN: "Home Admins",
    Role.FACILITATOR: "Facilitators",
    Role.CONTRACTOR: "Contractors",
    Role.VOLUNTEER: "Volunteers",
    Role.PARTNER: "Partners",
}

STAFF_ROLES = frozenset(
    {Role.FACILITATOR, Role.CONTRACTOR, Role.VOLUNTEER, Role.BOARD, Role.PARTNER}
)
ALL_ROLES = frozenset(Role)
ADMIN_ONLY = frozenset({Role.ADMIN})
PAYROLL_AND_ADMIN = frozenset({Role.PAYROLL, Role.ADMIN})

# action name -> roles allowed to perform it
POLICY: dict[str, frozenset[Role]] = {
    "users.list": ADMIN_ONLY,
    "users.update": ADMIN_ONLY,
    "users.stats": ADMIN_ONLY,
    "invitation.list": ADMIN_ONLY,
    "invitation.create": ADMIN_ONLY,
    "invitation.cancel": ADMIN_ONLY,
    "time_entry.submit": PAYROLL_AND_ADMIN,
    "check_in.quick": ALL_ROLES,
    "work.start": ALL_ROLES,
    "work.end": ALL_ROLES,
    "work.log": ALL_ROLES,
    "request.submit": PAYROLL_AND_ADMIN,
    "request.review": ADMIN_ONLY,
    "request.attach": ALL_ROLES,
    "event.check_in": ALL_ROLES,
    "event.rsvp": ALL_ROLES,
    "reminders.run": ADMIN_ONLY,
    "reminders.status": ADMIN_ONLY,
    "reminders.schedule": ADMIN_ONLY,
    "notifications.read": ALL_ROLES,
}

_PORTALS: dict[Role, str] = {
    Role.ADMIN: "/admin",
    Role.PAYROLL: "/payroll",
    Role.HOME_ADMIN: "/dashboard",
}


def is_valid_role(role: str) -> bool:
    return role in VALID_ROLES


def role_label(role: str, short: bool = False) -> str:
    """Display label for a role; unknown roles are returned unchanged."""
    if not is_valid_role(role):
        return role
    labels = ROLE_LABELS_SHORT if short else ROLE_LABELS
    return labels[Role(role)]


def is_allowed(role: str | None, action: str) -> bool:
    """True if `role` may perform `action`. Unknown actions and roles are denied."""
    allowed = POLICY.get(action)
    if allowed is None or role is None or not is_valid_role(role):
        return False
    return Role(role) in allowed


def portal_path(role: str | None) -> str:
    """Home portal for a role: admins, payroll and home admins each have their own."""
    if role is None or not is_valid_role(role):
        return "/"
    r = Role(role)
    if r in _PORTALS:
        return _PORTALS[r]
    if r in STAFF_ROLES:
        return "/staff"
    return "/"
