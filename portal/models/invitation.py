"""ORM model for sign-up invitations."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from portal.core.clock import utcnow
from portal.models.base import Base


class Invitation(Base):
    """
    Single-use, time-boxed invitation to create an account with a fixed role.

    status: PENDING until redeemed, then ACCEPTED. Cancelled invitations are
    deleted. `user_id` links a placeholder account to activate on acceptance.
    """

    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    role = Column(String(32), nullable=False)
    token = Column(String(128), nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default="PENDING")
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
