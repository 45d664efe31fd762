"""
Invitation lifecycle: PENDING -> ACCEPTED on redemption, or deleted on cancel.

Expiry is checked at redemption time only; there is no background sweep.
"""

import logging
import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from portal.core.clock import ensure_utc, utcnow
from portal.core.errors import InputValidationError, NotFoundError
from portal.core.roles import UserStatus, is_valid_role
from portal.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from portal.core.transaction import atomic
from portal.models import Invitation, User
from portal.schemas.auth import CurrentUser
from portal.services import audit
from portal.services.auth import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"

INVALID_INVITATION = "Invalid or expired invitation"


def _new_token() -> str:
    return secrets.token_hex(32)


def is_redeemable(invitation: Invitation | None) -> bool:
    """A token is usable only while PENDING and until its expiry instant."""
    if invitation is None or invitation.status != PENDING:
        return False
    return ensure_utc(invitation.expires_at) >= utcnow()


def create_invitation(
    db: Session,
    actor: CurrentUser,
    email: str,
    role: str,
    ttl_days: int = 7,
) -> Invitation:
    """
    Create a PENDING invitation and return it (its token is shown to the admin).

    Fails when the email belongs to a real account (one with a password, or
    ACTIVE). A placeholder account for that email is linked so acceptance
    activates it instead of creating a second user.
    """
    email = normalize_email(email or "")
    if not is_valid_email(email) or not is_valid_role(role):
        raise InputValidationError("Invalid fields")

    existing = db.query(User).filter(User.email == email).first()
    if existing is not None and (
        existing.password_hash or existing.status == UserStatus.ACTIVE.value
    ):
        raise InputValidationError("User already exists")

    with atomic(db, "Failed to create invitation"):
        invitation = Invitation(
            email=email,
            role=role,
            token=_new_token(),
            status=PENDING,
            expires_at=utcnow() + timedelta(days=ttl_days),
            created_by_id=actor.id,
            user_id=existing.id if existing is not None else None,
        )
        db.add(invitation)
        db.flush()
        audit.record(db, "INVITATION_CREATED", {"email": email, "role": role}, actor.id)
    db.refresh(invitation)
    logger.info(
        "Invitation created",
        extra={"invitation_id": invitation.id, "role": role, "created_by": actor.id},
    )
    return invitation


def cancel_invitation(db: Session, actor: CurrentUser, invitation_id: int) -> None:
    """Delete an invitation (terminal). Missing invitations raise NotFoundError."""
    with atomic(db, "Failed to cancel invitation"):
        invitation = db.get(Invitation, invitation_id)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        details = {"email": invitation.email, "role": invitation.role}
        db.delete(invitation)
        db.flush()
        audit.record(db, "INVITATION_CANCELLED", details, actor.id)


def get_by_token(db: Session, token: str) -> Invitation | None:
    if not token:
        return None
    return db.query(Invitation).filter(Invitation.token == token).first()


def list_invitations(db: Session) -> list[Invitation]:
    return db.query(Invitation).order_by(Invitation.created_at.desc(), Invitation.id.desc()).all()


def accept_invitation(db: Session, token: str, name: str, password: str) -> User:
    """
    Redeem a token: create (or activate the linked placeholder) user with the
    invitation's role and mark the invitation ACCEPTED, in one transaction.

    The invitation row is locked for the duration, so two concurrent
    redemptions of the same token cannot both see it PENDING.
    """
    if not password or len(password) < PASSWORD_MIN_LEN:
        raise InputValidationError("Password too short")
    if len(password) > PASSWORD_MAX_LEN:
        raise InputValidationError("Password too long")
    name = (name or "").strip()
    if not name:
        raise InputValidationError("Name required")

    with atomic(db, "Failed to create or activate user"):
        invitation = (
            db.query(Invitation)
            .filter(Invitation.token == token)
            .with_for_update()
            .first()
        )
        if not is_redeemable(invitation):
            raise InputValidationError(INVALID_INVITATION)

        hashed = hash_password(password)
        user = db.get(User, invitation.user_id) if invitation.user_id else None
        if user is None:
            user = db.query(User).filter(User.email == invitation.email).first()
        if user is not None and user.password_hash:
            # Someone registered this email after the invitation was sent.
            raise InputValidationError(INVALID_INVITATION)
        if user is None:
            user = User(email=invitation.email)
            db.add(user)
        user.name = name
        user.password_hash = hashed
        user.role = invitation.role
        user.status = UserStatus.ACTIVE.value
        invitation.status = ACCEPTED
        db.flush()
        audit.record(
            db,
            "INVITATION_ACCEPTED",
            {"email": invitation.email, "role": invitation.role},
            user.id,
        )
    db.refresh(user)
    logger.info("Invitation accepted", extra={"invitation_id": invitation.id, "user_id": user.id})
    return user
