"""ORM model for the append-only audit trail."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from portal.core.clock import utcnow
from portal.models.base import Base, JSONType


class AuditLog(Base):
    """Privileged state transition: action tag, JSON details, acting user. Never updated."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(64), nullable=False, index=True)
    details = Column(JSONType, nullable=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
