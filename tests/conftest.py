"""
Shared test fixtures.
Every test gets its own SQLite database file.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from intake.models.database import create_engine_and_factory, init_db
from intake.models.tables import SubmissionAttachment
from intake.schemas.submissions import AttachmentUpload, SubmissionCreate
from intake.storage.attachment_store import AttachmentStore
from intake.storage.submission_store import SubmissionStore


@pytest.fixture
async def session_factory(tmp_path):
    engine, factory = create_engine_and_factory(f"sqlite+aiosqlite:///{tmp_path / 'intake.db'}")
    await init_db(engine)
    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return SubmissionStore(session_factory, link_requires_approval=False)


@pytest.fixture
def receipt_bytes():
    """PDF header plus every byte value, so binary round trips are meaningful."""
    return b"%PDF-1.4\n" + bytes(range(256)) + b"\n%%EOF"


@pytest.fixture
def make_submission(receipt_bytes):
    """Build a SubmissionCreate; keyword overrides replace defaults."""

    def _make(with_attachment: bool = True, **overrides) -> SubmissionCreate:
        fields = {
            "date": "2024-01-10",
            "type": "OUT",
            "gross_amount": Decimal("42.50"),
            "submitted_by": "alice",
            "description": "Printer paper",
        }
        fields.update(overrides)
        if with_attachment and "attachments" not in fields:
            fields["attachments"] = [
                AttachmentUpload(filename="receipt.pdf", mime_type="application/pdf", data=receipt_bytes)
            ]
        return SubmissionCreate(**fields)

    return _make


@pytest.fixture
def count_attachments(session_factory):
    """Count attachment rows, optionally for one submission id."""

    async def _count(submission_id=None) -> int:
        query = select(func.count(SubmissionAttachment.id))
        if submission_id is not None:
            query = query.where(SubmissionAttachment.submission_id == submission_id)
        async with session_factory() as session:
            return (await session.execute(query)).scalar()

    return _count


class FailingAttachmentStore(AttachmentStore):
    """Raises a storage error on the n-th add_many call."""

    def __init__(self, session_factory, fail_on_call: int):
        super().__init__(session_factory)
        self.fail_on_call = fail_on_call
        self.calls = 0

    async def add_many(self, session, submission_id, attachments):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise IntegrityError("INSERT INTO submission_attachments", {}, Exception("disk full"))
        return await super().add_many(session, submission_id, attachments)


@pytest.fixture
def failing_store(session_factory):
    """SubmissionStore whose attachment inserts fail on the given call."""

    def _make(fail_on_call: int) -> SubmissionStore:
        return SubmissionStore(
            session_factory,
            attachments=FailingAttachmentStore(session_factory, fail_on_call),
        )

    return _make
