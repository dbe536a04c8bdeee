"""
RQ job functions for the inbox importer.
These are the entry points that the worker calls.
"""

from pathlib import Path
from typing import Optional

import structlog
from redis import Redis
from rq import Queue
from sqlalchemy.exc import SQLAlchemyError

from intake.config import settings
from intake.exceptions import IntakeError
from intake.inbox.parser import parse_submission_file
from intake.models.enums import SubmissionSource
from intake.observability.metrics import inbox_files_total
from intake.schemas.submissions import SubmissionImportRequest
from intake.storage.submission_store import SubmissionStore

logger = structlog.get_logger(__name__)

PROCESSED_DIR = "processed"
FAILED_DIR = "failed"


def get_queue() -> Queue:
    """Get the intake job queue."""
    conn = Redis.from_url(settings.REDIS_URL)
    return Queue(settings.QUEUE_NAME, connection=conn)


def enqueue_inbox_import(inbox_dir: Optional[str] = None) -> str:
    """
    Enqueue a scan of the inbox directory.
    Returns the job ID.
    """
    target = inbox_dir or settings.INBOX_DIR
    q = get_queue()
    job = q.enqueue(
        import_inbox_job,
        target,
        job_timeout=settings.JOB_TIMEOUT_SECONDS,
        result_ttl=86400,  # Keep results for 24 hours
        failure_ttl=604800,  # Keep failures for 7 days
    )
    logger.info("job_enqueued", job_id=job.id, inbox_dir=target)
    return job.id


def _move(path: Path, target_dir: Path) -> Path:
    """Move a handled inbox file, never overwriting an earlier one of the same name."""
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / path.name
    counter = 1
    while target.exists():
        target = target_dir / f"{path.stem}.{counter}{path.suffix}"
        counter += 1
    return path.replace(target)


async def import_inbox(
    store: SubmissionStore,
    inbox_dir: Path,
    pattern: Optional[str] = None,
) -> dict:
    """
    Import every matching file in the inbox.
    Each file is one batch (one transaction); a bad file is moved to
    failed/ and does not affect the others.
    """
    inbox_dir = Path(inbox_dir)
    summary = {"files": 0, "imported": 0, "failed": 0, "ids": []}
    if not inbox_dir.is_dir():
        logger.warning("inbox_missing", inbox_dir=str(inbox_dir))
        return summary

    for path in sorted(inbox_dir.glob(pattern or settings.INBOX_PATTERN)):
        if not path.is_file():
            continue
        summary["files"] += 1

        try:
            items = parse_submission_file(path)
            result = await store.import_batch(
                SubmissionImportRequest(submissions=items),
                source=SubmissionSource.INBOX,
            )
        except (IntakeError, SQLAlchemyError) as e:
            summary["failed"] += 1
            inbox_files_total.labels(result="failed").inc()
            _move(path, inbox_dir / FAILED_DIR)
            logger.warning("inbox_file_failed", path=str(path), error=str(e))
            continue

        summary["imported"] += result.imported
        summary["ids"].extend(result.ids)
        inbox_files_total.labels(result="imported").inc()
        _move(path, inbox_dir / PROCESSED_DIR)
        logger.info("inbox_file_imported", path=str(path), imported=result.imported)

    return summary


def import_inbox_job(inbox_dir: Optional[str] = None) -> dict:
    """
    Main job function: import the inbox directory.
    This runs inside the RQ worker process.
    """
    import asyncio

    target = Path(inbox_dir or settings.INBOX_DIR)
    logger.info("job_started", inbox_dir=str(target))

    try:
        result = asyncio.run(_import_inbox_async(target))
        logger.info(
            "job_completed",
            inbox_dir=str(target),
            imported=result["imported"],
            failed=result["failed"],
        )
        return result
    except Exception as e:
        logger.error("job_failed", inbox_dir=str(target), error=str(e))
        raise


async def _import_inbox_async(inbox_dir: Path) -> dict:
    """
    Async wrapper for the inbox import.
    Uses a dedicated engine: each job runs on its own event loop.
    """
    from intake.models.database import create_engine_and_factory, init_db

    engine, factory = create_engine_and_factory(settings.DATABASE_URL, echo=settings.DB_ECHO)
    try:
        await init_db(engine)
        return await import_inbox(SubmissionStore(factory), inbox_dir)
    finally:
        await engine.dispose()
