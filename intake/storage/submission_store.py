"""
Submission store: lifecycle owner for submissions and their attachment sets.

Every write is one short transaction. Review transitions are a single
predicate-guarded UPDATE (WHERE status = 'pending'), so concurrent
reviewers race safely and exactly one of them wins.
"""

from datetime import date as date_type
from enum import Enum
from typing import Optional

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake.config import settings
from intake.models.enums import SubmissionSource, SubmissionStatus
from intake.models.tables import Submission, SubmissionAttachment, utcnow
from intake.observability.metrics import (
    submission_review_conflicts_total,
    submissions_by_status,
    submissions_created_total,
    submissions_reviewed_total,
)
from intake.schemas.submissions import (
    AttachmentMeta,
    CreateResult,
    ImportResult,
    OkResult,
    SubmissionCreate,
    SubmissionDetail,
    SubmissionImportRequest,
    SubmissionPage,
    SubmissionSummary,
)
from intake.storage.attachment_store import AttachmentStore
from intake.storage.encoding import check_size, to_create_payload

logger = structlog.get_logger(__name__)


def _value(v):
    """Plain column value for an enum member (or pass-through)."""
    return v.value if isinstance(v, Enum) else v


def _iso(d) -> str:
    return d.isoformat() if isinstance(d, date_type) else d


_COLUMNS = [c.key for c in Submission.__table__.columns]


def _to_detail(row: Submission, attachments: list[AttachmentMeta]) -> SubmissionDetail:
    # Built from column values only; the relationship is never lazy-loaded
    return SubmissionDetail(
        **{name: getattr(row, name) for name in _COLUMNS},
        attachments=attachments,
    )


class SubmissionStore:
    """
    List, create, import, review, link and delete submissions.

    The session factory is the injected storage handle; the store never
    reaches for the application-wide engine itself.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        attachments: Optional[AttachmentStore] = None,
        link_requires_approval: Optional[bool] = None,
        max_attachment_bytes: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self.attachments = attachments or AttachmentStore(session_factory)
        self.link_requires_approval = (
            settings.LINK_REQUIRES_APPROVAL
            if link_requires_approval is None
            else link_requires_approval
        )
        self.max_attachment_bytes = (
            settings.max_attachment_bytes
            if max_attachment_bytes is None
            else max_attachment_bytes
        )

    # ── Reads ────────────────────────────────────────────────

    async def list_submissions(
        self,
        status: Optional[SubmissionStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> SubmissionPage:
        """
        Page of submissions, most recently submitted first.
        `total` counts the same filter, ignoring limit/offset.
        """
        if limit is None:
            limit = settings.LIST_DEFAULT_LIMIT

        query = select(Submission)
        if status is not None:
            query = query.where(Submission.status == SubmissionStatus(status).value)

        async with self._session_factory() as session:
            count_query = select(func.count()).select_from(query.subquery())
            total = (await session.execute(count_query)).scalar() or 0

            result = await session.execute(
                query.order_by(Submission.submitted_at.desc(), Submission.id.desc())
                .offset(offset)
                .limit(limit)
            )
            rows = result.scalars().all()
            meta = await self.attachments.list_meta(session, [r.id for r in rows])

        return SubmissionPage(
            rows=[_to_detail(r, meta.get(r.id, [])) for r in rows],
            total=total,
        )

    async def get(self, submission_id: int) -> Optional[SubmissionDetail]:
        """Single submission with attachment metadata, or None."""
        async with self._session_factory() as session:
            row = await session.get(Submission, submission_id)
            if row is None:
                return None
            meta = await self.attachments.list_meta(session, [row.id])
        return _to_detail(row, meta.get(row.id, []))

    async def get_attachment(self, attachment_id: int) -> Optional[SubmissionAttachment]:
        return await self.attachments.get(attachment_id)

    async def summary(self) -> SubmissionSummary:
        """Counts per status across all submissions."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Submission.status, func.count(Submission.id)).group_by(Submission.status)
            )
            stats = {row[0]: row[1] for row in result.all()}

        counts = {s.value: stats.get(s.value, 0) for s in SubmissionStatus}
        for status_value, count in counts.items():
            submissions_by_status.labels(status=status_value).set(count)
        return SubmissionSummary(**counts, total=sum(counts.values()))

    # ── Writes ───────────────────────────────────────────────

    def _new_row(self, payload: SubmissionCreate) -> Submission:
        return Submission(
            external_id=payload.external_id or None,
            date=_iso(payload.date),
            type=_value(payload.type),
            sphere=_value(payload.sphere) or None,
            payment_method=_value(payload.payment_method) or None,
            description=payload.description or None,
            gross_amount=payload.gross_amount,
            category_hint=payload.category_hint or None,
            counterparty=payload.counterparty or None,
            submitted_by=payload.submitted_by,
            status=SubmissionStatus.PENDING.value,
        )

    async def _insert(self, session: AsyncSession, payload: SubmissionCreate) -> int:
        row = self._new_row(payload)
        session.add(row)
        await session.flush()
        await self.attachments.add_many(session, row.id, payload.attachments)
        return row.id

    async def create(
        self,
        payload: SubmissionCreate,
        source: SubmissionSource = SubmissionSource.CREATE,
    ) -> CreateResult:
        """
        Persist one submission and all of its attachments atomically.
        Any failure rolls back the submission row as well.
        """
        check_size(payload.attachments, self.max_attachment_bytes)

        async with self._session_factory() as session:
            async with session.begin():
                new_id = await self._insert(session, payload)

        submissions_created_total.labels(source=_value(source)).inc()
        logger.info(
            "submission_created",
            submission_id=new_id,
            submitted_by=payload.submitted_by,
            attachments=len(payload.attachments),
            source=_value(source),
        )
        return CreateResult(id=new_id)

    async def import_batch(
        self,
        payload: SubmissionImportRequest,
        source: SubmissionSource = SubmissionSource.IMPORT,
    ) -> ImportResult:
        """
        Persist a batch of submissions in one transaction: all or nothing.
        Attachment payloads are decoded before the transaction opens, so a
        malformed payload aborts without any write.
        """
        decoded = [
            to_create_payload(item, item.attachments, index=i, max_bytes=self.max_attachment_bytes)
            for i, item in enumerate(payload.submissions)
        ]

        ids: list[int] = []
        async with self._session_factory() as session:
            async with session.begin():
                for item in decoded:
                    ids.append(await self._insert(session, item))

        if ids:
            submissions_created_total.labels(source=_value(source)).inc(len(ids))
        logger.info("submissions_imported", imported=len(ids), ids=ids, source=_value(source))
        return ImportResult(imported=len(ids), ids=ids)

    async def _review(
        self,
        submission_id: int,
        target: SubmissionStatus,
        reviewer_notes: Optional[str],
    ) -> OkResult:
        stmt = (
            update(Submission)
            .where(
                Submission.id == submission_id,
                Submission.status == SubmissionStatus.PENDING.value,
            )
            .values(
                status=target.value,
                reviewed_at=utcnow(),
                reviewer_notes=reviewer_notes or None,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)

        ok = result.rowcount > 0
        if ok:
            submissions_reviewed_total.labels(outcome=target.value).inc()
            logger.info("submission_reviewed", submission_id=submission_id, status=target.value)
        else:
            submission_review_conflicts_total.labels(outcome=target.value).inc()
            logger.info(
                "submission_review_skipped",
                submission_id=submission_id,
                requested=target.value,
            )
        return OkResult(ok=ok)

    async def approve(self, submission_id: int, reviewer_notes: Optional[str] = None) -> OkResult:
        """pending -> approved. ok=False if not pending (or unknown)."""
        return await self._review(submission_id, SubmissionStatus.APPROVED, reviewer_notes)

    async def reject(self, submission_id: int, reviewer_notes: Optional[str] = None) -> OkResult:
        """pending -> rejected. ok=False if not pending (or unknown)."""
        return await self._review(submission_id, SubmissionStatus.REJECTED, reviewer_notes)

    async def link_to_voucher(self, submission_id: int, voucher_id: int) -> OkResult:
        """
        Record the ledger voucher created from a submission.
        With link_requires_approval the update is guarded on status = approved.
        """
        stmt = update(Submission).where(Submission.id == submission_id)
        if self.link_requires_approval:
            stmt = stmt.where(Submission.status == SubmissionStatus.APPROVED.value)
        stmt = stmt.values(voucher_id=voucher_id).execution_options(synchronize_session=False)

        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)

        ok = result.rowcount > 0
        logger.info(
            "submission_linked" if ok else "submission_link_skipped",
            submission_id=submission_id,
            voucher_id=voucher_id,
        )
        return OkResult(ok=ok)

    async def delete(self, submission_id: int) -> OkResult:
        """Hard delete of a submission together with its attachments."""
        async with self._session_factory() as session:
            async with session.begin():
                removed = await self.attachments.delete_for_submission(session, submission_id)
                result = await session.execute(
                    delete(Submission)
                    .where(Submission.id == submission_id)
                    .execution_options(synchronize_session=False)
                )

        ok = result.rowcount > 0
        if ok:
            logger.info("submission_deleted", submission_id=submission_id, attachments=removed)
        return OkResult(ok=ok)
