"""
/api/v1/submissions endpoints.
Handles intake, listing, review, voucher linkage and attachment download.

Conditional operations (approve, reject, link, delete) answer 200 with
{"ok": false} when their precondition does not hold; that is a soft
outcome, not an error.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from intake.config import settings
from intake.dependencies import get_submission_store, verify_api_key
from intake.exceptions import AttachmentTooLargeError, ImportPayloadError
from intake.models.enums import SubmissionStatus
from intake.schemas.submissions import (
    AttachmentContent,
    CreateResult,
    ImportResult,
    InboxScanResponse,
    LinkVoucherRequest,
    OkResult,
    ReviewRequest,
    SubmissionCreateRequest,
    SubmissionDetail,
    SubmissionImportRequest,
    SubmissionListResponse,
    SubmissionSummary,
)
from intake.storage.encoding import encode_base64, to_create_payload
from intake.storage.submission_store import SubmissionStore

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/submissions",
    tags=["submissions"],
    dependencies=[Depends(verify_api_key)],
)


def _too_large(e: AttachmentTooLargeError) -> HTTPException:
    return HTTPException(status_code=413, detail=e.message)


@router.get("", response_model=SubmissionListResponse)
async def list_submissions(
    status_filter: Optional[SubmissionStatus] = Query(None, alias="status"),
    limit: int = Query(settings.LIST_DEFAULT_LIMIT, ge=1, le=settings.LIST_MAX_LIMIT),
    offset: int = Query(0, ge=0),
    store: SubmissionStore = Depends(get_submission_store),
):
    """List submissions, newest first, with optional status filter."""
    page = await store.list_submissions(status=status_filter, limit=limit, offset=offset)
    return SubmissionListResponse(rows=page.rows, total=page.total, limit=limit, offset=offset)


@router.get("/summary", response_model=SubmissionSummary)
async def submissions_summary(store: SubmissionStore = Depends(get_submission_store)):
    return await store.summary()


@router.post("", response_model=CreateResult, status_code=status.HTTP_201_CREATED)
async def create_submission(
    body: SubmissionCreateRequest,
    store: SubmissionStore = Depends(get_submission_store),
):
    """Create one submission. Attachment payloads arrive base64-encoded."""
    try:
        payload = to_create_payload(body, body.attachments, max_bytes=store.max_attachment_bytes)
    except ImportPayloadError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except AttachmentTooLargeError as e:
        raise _too_large(e)
    return await store.create(payload)


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def import_submissions(
    body: SubmissionImportRequest,
    store: SubmissionStore = Depends(get_submission_store),
):
    """Import a batch of submissions. All or nothing."""
    try:
        return await store.import_batch(body)
    except ImportPayloadError as e:
        logger.warning("import_rejected", index=e.index, filename=e.filename, error=e.message)
        raise HTTPException(
            status_code=422,
            detail={"message": e.message, "index": e.index, "filename": e.filename},
        )
    except AttachmentTooLargeError as e:
        raise _too_large(e)


@router.post("/inbox/scan", response_model=InboxScanResponse, status_code=status.HTTP_202_ACCEPTED)
async def scan_inbox():
    """Queue an import of every file waiting in the inbox directory."""
    try:
        from intake.worker.jobs import enqueue_inbox_import

        job_id = enqueue_inbox_import()
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Queue unavailable: {str(e)}")
    return InboxScanResponse(job_id=job_id, inbox_dir=settings.INBOX_DIR)


@router.get("/attachments/{attachment_id}", response_model=AttachmentContent)
async def read_attachment(
    attachment_id: int,
    store: SubmissionStore = Depends(get_submission_store),
):
    """Attachment with its payload as base64."""
    att = await store.get_attachment(attachment_id)
    if att is None:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return AttachmentContent(
        id=att.id,
        submission_id=att.submission_id,
        filename=att.filename,
        mime_type=att.mime_type,
        data_base64=encode_base64(att.data),
        size_bytes=len(att.data),
        created_at=att.created_at,
    )


@router.get("/attachments/{attachment_id}/raw")
async def download_attachment(
    attachment_id: int,
    store: SubmissionStore = Depends(get_submission_store),
):
    """Attachment payload as raw bytes."""
    att = await store.get_attachment(attachment_id)
    if att is None:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return Response(
        content=att.data,
        media_type=att.mime_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{att.filename}"'},
    )


@router.get("/{submission_id}", response_model=SubmissionDetail)
async def get_submission(
    submission_id: int,
    store: SubmissionStore = Depends(get_submission_store),
):
    submission = await store.get(submission_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


@router.post("/{submission_id}/approve", response_model=OkResult)
async def approve_submission(
    submission_id: int,
    body: Optional[ReviewRequest] = None,
    store: SubmissionStore = Depends(get_submission_store),
):
    notes = body.reviewer_notes if body else None
    return await store.approve(submission_id, reviewer_notes=notes)


@router.post("/{submission_id}/reject", response_model=OkResult)
async def reject_submission(
    submission_id: int,
    body: Optional[ReviewRequest] = None,
    store: SubmissionStore = Depends(get_submission_store),
):
    notes = body.reviewer_notes if body else None
    return await store.reject(submission_id, reviewer_notes=notes)


@router.post("/{submission_id}/link-voucher", response_model=OkResult)
async def link_voucher(
    submission_id: int,
    body: LinkVoucherRequest,
    store: SubmissionStore = Depends(get_submission_store),
):
    """Called back by the ledger once a voucher was created from the submission."""
    return await store.link_to_voucher(submission_id, body.voucher_id)


@router.delete("/{submission_id}", response_model=OkResult)
async def delete_submission(
    submission_id: int,
    store: SubmissionStore = Depends(get_submission_store),
):
    return await store.delete(submission_id)
