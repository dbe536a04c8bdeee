"""
Pydantic schemas for submissions: store payloads, store results and the
/api/v1/submissions request/response bodies.
"""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from intake.models.enums import PaymentMethod, Sphere, SubmissionStatus, SubmissionType


# ── Attachment payloads ──────────────────────────────────────

class AttachmentUpload(BaseModel):
    """Attachment carrying raw bytes, as handed to the store's create()."""
    filename: str = Field(min_length=1)
    mime_type: Optional[str] = None
    data: bytes


class EncodedAttachment(BaseModel):
    """Attachment carrying base64 text, as transported in JSON."""
    filename: str = Field(min_length=1)
    mime_type: Optional[str] = None
    data: str


# ── Submission payloads ──────────────────────────────────────

class SubmissionFields(BaseModel):
    """Fields shared by every way of creating a submission."""
    external_id: Optional[str] = None
    date: date_type
    type: SubmissionType
    sphere: Optional[Sphere] = None
    payment_method: Optional[PaymentMethod] = None
    description: Optional[str] = None
    gross_amount: Decimal
    category_hint: Optional[str] = None
    counterparty: Optional[str] = None
    submitted_by: str = Field(min_length=1)


class SubmissionCreate(SubmissionFields):
    attachments: list[AttachmentUpload] = []


class SubmissionCreateRequest(SubmissionFields):
    """JSON body of POST /api/v1/submissions."""
    attachments: list[EncodedAttachment] = []


class SubmissionImportItem(SubmissionFields):
    type: SubmissionType = SubmissionType.OUT
    attachments: list[EncodedAttachment] = []


class SubmissionImportRequest(BaseModel):
    submissions: list[SubmissionImportItem]


class ReviewRequest(BaseModel):
    reviewer_notes: Optional[str] = None


class LinkVoucherRequest(BaseModel):
    voucher_id: int


# ── Results ──────────────────────────────────────────────────

class AttachmentMeta(BaseModel):
    """Attachment listing entry. Never carries the payload."""
    id: int
    filename: str
    mime_type: Optional[str] = None

    model_config = {"from_attributes": True}


class SubmissionDetail(BaseModel):
    id: int
    external_id: Optional[str] = None
    date: str
    type: SubmissionType
    sphere: Optional[Sphere] = None
    payment_method: Optional[PaymentMethod] = None
    description: Optional[str] = None
    gross_amount: Decimal
    category_hint: Optional[str] = None
    counterparty: Optional[str] = None
    submitted_by: str
    submitted_at: datetime
    status: SubmissionStatus
    reviewed_at: Optional[datetime] = None
    reviewer_notes: Optional[str] = None
    voucher_id: Optional[int] = None
    attachments: list[AttachmentMeta] = []

    model_config = {"from_attributes": True}


class SubmissionPage(BaseModel):
    rows: list[SubmissionDetail]
    total: int


class SubmissionListResponse(SubmissionPage):
    """Paginated submission list response."""
    limit: int
    offset: int


class CreateResult(BaseModel):
    id: int


class ImportResult(BaseModel):
    imported: int
    ids: list[int]


class OkResult(BaseModel):
    ok: bool


class SubmissionSummary(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


class AttachmentContent(BaseModel):
    """Full attachment with its payload as base64 text."""
    id: int
    submission_id: int
    filename: str
    mime_type: Optional[str] = None
    data_base64: str
    size_bytes: int
    created_at: datetime


class InboxScanResponse(BaseModel):
    job_id: str
    inbox_dir: str
