"""
SQLAlchemy ORM models.
Column names match the submissions DDL of the bookkeeping database.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from intake.models.database import Base
from intake.models.enums import (
    PaymentMethod,
    Sphere,
    SubmissionStatus,
    SubmissionType,
    check_in,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ────────────────────────────────────────────────────────────
# SUBMISSIONS
# ────────────────────────────────────────────────────────────
class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    type: Mapped[str] = mapped_column(
        String(3), nullable=False, default=SubmissionType.OUT.value,
        server_default=SubmissionType.OUT.value,
    )
    sphere: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gross_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0"), server_default="0"
    )
    category_hint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    counterparty: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    submitted_by: Mapped[str] = mapped_column(Text, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=SubmissionStatus.PENDING.value,
        server_default=SubmissionStatus.PENDING.value,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reviewer_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Ledger vouchers live outside this schema, so no FK here
    voucher_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Relationships
    attachments = relationship(
        "SubmissionAttachment",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(check_in("type", SubmissionType), name="ck_submissions_type"),
        CheckConstraint(check_in("status", SubmissionStatus), name="ck_submissions_status"),
        CheckConstraint(
            f"sphere IS NULL OR {check_in('sphere', Sphere)}", name="ck_submissions_sphere"
        ),
        CheckConstraint(
            f"payment_method IS NULL OR {check_in('payment_method', PaymentMethod)}",
            name="ck_submissions_payment_method",
        ),
        Index("idx_submissions_status", "status"),
        Index("idx_submissions_date", "date"),
        Index("idx_submissions_submitted", "submitted_at"),
    )


# ────────────────────────────────────────────────────────────
# SUBMISSION ATTACHMENTS
# ────────────────────────────────────────────────────────────
class SubmissionAttachment(Base):
    __tablename__ = "submission_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    submission = relationship("Submission", back_populates="attachments")

    __table_args__ = (
        Index("idx_submission_attachments_submission", "submission_id"),
    )
