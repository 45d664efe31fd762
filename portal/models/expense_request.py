"""ORM model for expense, sick-day and day-off requests."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, func

from portal.core.clock import utcnow
from portal.models.base import Base, JSONType


class ExpenseRequest(Base):
    """
    Request submitted by payroll staff and approved or rejected by an admin.

    category: SICK_DAY, OFF_DAY or EXPENSE. attachments: list of file
    metadata dicts (id, url, name, type, size, uploaded_at, uploaded_by).
    """

    __tablename__ = "expense_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = Column(String(16), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=True)
    receipt_url = Column(String(1024), nullable=True)
    attachments = Column(JSONType, nullable=True)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
