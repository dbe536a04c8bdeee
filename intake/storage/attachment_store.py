"""
Attachment store: binary payloads owned by exactly one submission.
Writes only happen inside a transaction opened by the submission store.
"""

from typing import Optional, Sequence

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake.models.tables import SubmissionAttachment
from intake.observability.metrics import submission_attachments_stored_bytes_total
from intake.schemas.submissions import AttachmentMeta, AttachmentUpload

logger = structlog.get_logger(__name__)


class AttachmentStore:
    """
    Insert and read submission attachments.
    Attachments are immutable: there is no update.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add_many(
        self,
        session: AsyncSession,
        submission_id: int,
        attachments: Sequence[AttachmentUpload],
    ) -> list[SubmissionAttachment]:
        """
        Insert attachment rows for one submission in the caller's transaction.
        Does not commit.
        """
        rows = [
            SubmissionAttachment(
                submission_id=submission_id,
                filename=att.filename,
                mime_type=att.mime_type or None,
                data=att.data,
            )
            for att in attachments
        ]
        if not rows:
            return rows

        session.add_all(rows)
        await session.flush()

        size = sum(len(r.data) for r in rows)
        submission_attachments_stored_bytes_total.inc(size)
        logger.debug(
            "attachments_stored",
            submission_id=submission_id,
            count=len(rows),
            size_bytes=size,
        )
        return rows

    async def list_meta(
        self, session: AsyncSession, submission_ids: Sequence[int]
    ) -> dict[int, list[AttachmentMeta]]:
        """Attachment metadata for a set of submissions, keyed by submission id."""
        if not submission_ids:
            return {}

        result = await session.execute(
            select(
                SubmissionAttachment.id,
                SubmissionAttachment.submission_id,
                SubmissionAttachment.filename,
                SubmissionAttachment.mime_type,
            )
            .where(SubmissionAttachment.submission_id.in_(submission_ids))
            .order_by(SubmissionAttachment.id)
        )
        meta: dict[int, list[AttachmentMeta]] = {}
        for att_id, submission_id, filename, mime_type in result.all():
            meta.setdefault(submission_id, []).append(
                AttachmentMeta(id=att_id, filename=filename, mime_type=mime_type)
            )
        return meta

    async def delete_for_submission(self, session: AsyncSession, submission_id: int) -> int:
        """Remove every attachment of a submission in the caller's transaction."""
        result = await session.execute(
            delete(SubmissionAttachment).where(
                SubmissionAttachment.submission_id == submission_id
            )
        )
        return result.rowcount

    async def get(self, attachment_id: int) -> Optional[SubmissionAttachment]:
        """Point read including the binary payload. None if unknown."""
        async with self._session_factory() as session:
            return await session.get(SubmissionAttachment, attachment_id)
