"""Expense, sick-day and day-off requests: submission, review, and attachment metadata."""

import logging
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from portal.core.clock import utcnow
from portal.core.errors import InputValidationError, NotFoundError, UnauthorizedError
from portal.core.roles import Role
from portal.core.transaction import atomic
from portal.models import ExpenseRequest
from portal.schemas.auth import CurrentUser
from portal.services import audit
from portal.services.notifications import NotificationType, notify, notify_admins

logger = logging.getLogger(__name__)

CATEGORIES = ("SICK_DAY", "OFF_DAY", "EXPENSE")
REVIEW_STATUSES = ("APPROVED", "REJECTED")
ALLOWED_RECEIPT_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png"})

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.]")


@dataclass
class Receipt:
    """Uploaded receipt file as read from the request."""

    filename: str
    content_type: str
    content: bytes


def category_text(category: str) -> str:
    if category == "SICK_DAY":
        return "sick day"
    if category == "OFF_DAY":
        return "day off"
    return "expense"


def sanitize_filename(name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", name) or "receipt"


def save_receipt(receipt: Receipt, upload_dir: str, max_bytes: int) -> str:
    """Validate and write a receipt to disk; return its public URL path."""
    if len(receipt.content) > max_bytes:
        raise InputValidationError(
            f"File size exceeds {max_bytes // (1024 * 1024)}MB limit"
        )
    if receipt.content_type not in ALLOWED_RECEIPT_TYPES:
        raise InputValidationError("Invalid file type. Only PDF, JPG, and PNG are allowed.")
    file_name = f"{int(time.time() * 1000)}-{sanitize_filename(receipt.filename)}"
    target_dir = Path(upload_dir)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / file_name).write_bytes(receipt.content)
    except OSError as e:
        logger.exception("Receipt write failed")
        raise InputValidationError("Failed to upload file", cause=e) from e
    return f"/uploads/{file_name}"


def submit_request(
    db: Session,
    actor: CurrentUser,
    category: str,
    description: str,
    amount: float | None = None,
    receipt_url: str | None = None,
) -> ExpenseRequest:
    """Create a PENDING request and let every admin know about it."""
    if category not in CATEGORIES:
        raise InputValidationError("Invalid input fields")
    description = (description or "").strip()
    if not description:
        raise InputValidationError("Description is required")

    with atomic(db, "Failed to submit request"):
        request = ExpenseRequest(
            user_id=actor.id,
            category=category,
            description=description,
            amount=amount,
            receipt_url=receipt_url,
            attachments=[],
            status="PENDING",
        )
        db.add(request)
        db.flush()
        audit.record(
            db,
            "REQUEST_CREATED",
            {"category": category, "amount": amount},
            actor.id,
        )
        text = category_text(category)
        notify_admins(
            db,
            NotificationType.EXPENSE_SUBMITTED,
            title=f"{text.capitalize()} Request",
            message=f'{actor.name or "Staff member"} submitted a {text} request: "{description}"',
            link="/admin/expenses",
        )
    db.refresh(request)
    return request


def update_request_status(
    db: Session,
    actor: CurrentUser,
    request_id: int,
    status: str,
) -> ExpenseRequest:
    """Approve or reject a request; the requester is notified (best-effort)."""
    if status not in REVIEW_STATUSES:
        raise InputValidationError("Invalid status")
    with atomic(db, "Failed to update request status"):
        request = db.get(ExpenseRequest, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        request.status = status
        db.flush()
        audit.record(
            db,
            f"REQUEST_{status}",
            {"requestId": request.id, "amount": request.amount, "category": request.category},
            actor.id,
        )
        status_text = status.lower()
        notify(
            db,
            [request.user_id],
            NotificationType.EXPENSE_APPROVED if status == "APPROVED" else NotificationType.EXPENSE_REJECTED,
            title=f"Request {status_text.capitalize()}",
            message=f"Your {category_text(request.category)} request has been {status_text}.",
            link="/payroll/requests",
        )
    db.refresh(request)
    return request


def _editable_request(db: Session, actor: CurrentUser, request_id: int) -> ExpenseRequest:
    request = db.get(ExpenseRequest, request_id)
    if request is None:
        raise NotFoundError("Request not found")
    if request.user_id != actor.id and actor.role != Role.ADMIN.value:
        raise UnauthorizedError()
    return request


def attach_file(
    db: Session,
    actor: CurrentUser,
    request_id: int,
    url: str,
    name: str,
    file_type: str,
    size: int,
) -> dict[str, Any]:
    """Record metadata for a file already stored elsewhere; owner or admin only."""
    with atomic(db, "Failed to attach file"):
        request = _editable_request(db, actor, request_id)
        attachment = {
            "id": f"file_{uuid.uuid4().hex[:12]}",
            "url": url,
            "name": name,
            "type": file_type,
            "size": size,
            "uploaded_at": utcnow().isoformat(),
            "uploaded_by": actor.id,
        }
        # Reassign so the JSON column is flagged dirty.
        request.attachments = [*(request.attachments or []), attachment]
    return attachment


def remove_file(db: Session, actor: CurrentUser, request_id: int, file_id: str) -> None:
    with atomic(db, "Failed to remove file"):
        request = _editable_request(db, actor, request_id)
        remaining = [a for a in (request.attachments or []) if a.get("id") != file_id]
        if len(remaining) == len(request.attachments or []):
            raise NotFoundError("Attachment not found")
        request.attachments = remaining


def list_requests(db: Session, actor: CurrentUser) -> list[ExpenseRequest]:
    """Admins see every request; everyone else sees their own."""
    q = db.query(ExpenseRequest)
    if actor.role != Role.ADMIN.value:
        q = q.filter(ExpenseRequest.user_id == actor.id)
    return q.order_by(ExpenseRequest.created_at.desc(), ExpenseRequest.id.desc()).all()
