"""ORM model for application users (credentials, role, onboarding progress)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from portal.core.clock import utcnow
from portal.models.base import Base


class User(Base):
    """
    Staff, partner or care-home account.

    role: one of portal.core.roles.Role. status: ACTIVE, INACTIVE, or PENDING
    for placeholder accounts that have no password yet.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default="VOLUNTEER")
    status = Column(String(16), nullable=False, default="ACTIVE", index=True)
    phone = Column(String(64), nullable=True)
    # JSON text: {"email": bool, "sms": bool, "inApp": bool}
    notification_preferences = Column(Text, nullable=True)
    onboarding_completed_at = Column(DateTime(timezone=True), nullable=True)
    onboarding_skip_count = Column(Integer, nullable=False, default=0)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
