"""Expense, sick-day and day-off requests: submit (JSON or multipart), review, attachments."""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, UploadFile
from sqlalchemy.orm import Session

from portal.api.deps import get_current_user, require_action
from portal.core.config import settings
from portal.core.database import get_db
from portal.core.errors import InputValidationError
from portal.schemas.auth import CurrentUser
from portal.schemas.notifications import SuccessResponse
from portal.schemas.requests import (
    AttachmentCreate,
    AttachmentResponse,
    RequestItem,
    RequestList,
    StatusUpdate,
)
from portal.services import requests as request_service
from portal.services.requests import Receipt

router = APIRouter()


def _is_upload_file(obj: object) -> bool:
    if isinstance(obj, UploadFile):
        return True
    return hasattr(obj, "read") and callable(getattr(obj, "read", None)) and hasattr(obj, "filename")


def _parse_amount(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InputValidationError("Invalid input fields")


async def _read_submission(request: Request) -> tuple[dict[str, Any], Receipt | None]:
    """Return (fields, receipt) from a JSON body or a multipart form."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            body = await request.json()
        except json.JSONDecodeError as e:
            raise InputValidationError("Invalid JSON", cause=e) from e
        if not isinstance(body, dict):
            raise InputValidationError("Invalid input fields")
        return body, None
    if content_type == "multipart/form-data":
        form = await request.form()
        fields = {k: v for k, v in form.items() if not _is_upload_file(v)}
        file = form.get("receipt")
        receipt = None
        if file is not None and _is_upload_file(file) and getattr(file, "filename", ""):
            receipt = Receipt(
                filename=file.filename,
                content_type=(getattr(file, "content_type", None) or "").lower(),
                content=await file.read(),
            )
        return fields, receipt
    raise InputValidationError("Content-Type must be application/json or multipart/form-data.")


@router.get("", response_model=RequestList)
def list_requests(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RequestList:
    """Admins see every request; everyone else sees their own."""
    rows = request_service.list_requests(db, current_user)
    return RequestList(requests=[RequestItem.model_validate(r) for r in rows])


@router.post("", response_model=RequestItem, status_code=201)
async def submit_request(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(require_action("request.submit"))],
    db: Annotated[Session, Depends(get_db)],
) -> RequestItem:
    """
    Submit a request.

    - **JSON body**: `category`, `description`, optional `amount`.
    - **Multipart form**: the same fields plus an optional `receipt` file
      (PDF, JPG or PNG, at most MAX_RECEIPT_BYTES).
    """
    fields, receipt = await _read_submission(request)
    category = str(fields.get("category") or "")
    description = str(fields.get("description") or "")
    amount = _parse_amount(fields.get("amount"))
    if category not in request_service.CATEGORIES or not description.strip():
        raise InputValidationError("Invalid input fields")
    receipt_url = None
    if receipt is not None:
        receipt_url = request_service.save_receipt(
            receipt, settings.UPLOAD_DIR, settings.MAX_RECEIPT_BYTES
        )
    row = request_service.submit_request(
        db, current_user, category, description, amount=amount, receipt_url=receipt_url
    )
    return RequestItem.model_validate(row)


@router.patch("/{request_id}/status", response_model=RequestItem)
def update_status(
    request_id: int,
    body: StatusUpdate,
    admin: Annotated[CurrentUser, Depends(require_action("request.review"))],
    db: Annotated[Session, Depends(get_db)],
) -> RequestItem:
    row = request_service.update_request_status(db, admin, request_id, body.status)
    return RequestItem.model_validate(row)


@router.post("/{request_id}/attachments", response_model=AttachmentResponse, status_code=201)
def attach_file(
    request_id: int,
    body: AttachmentCreate,
    current_user: Annotated[CurrentUser, Depends(require_action("request.attach"))],
    db: Annotated[Session, Depends(get_db)],
) -> AttachmentResponse:
    attachment = request_service.attach_file(
        db, current_user, request_id, body.url, body.name, body.type, body.size
    )
    return AttachmentResponse(attachment=attachment)


@router.delete("/{request_id}/attachments/{file_id}", response_model=SuccessResponse)
def remove_file(
    request_id: int,
    file_id: str,
    current_user: Annotated[CurrentUser, Depends(require_action("request.attach"))],
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    request_service.remove_file(db, current_user, request_id, file_id)
    return SuccessResponse()
