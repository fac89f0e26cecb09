"""
Document Custody Background Jobs

Reconciles blob storage against document metadata rows:
1. Deletes blobs that no row references (left behind by a crash between
   blob write and row insert, or by a failed compensating delete)
2. Reports rows whose blob is missing so an operator can restore them

Design Principles:
- Job is idempotent (safe to run multiple times)
- Job opens its own database session
- Blobs younger than the grace period are skipped so in-flight uploads
  are never mistaken for orphans
- Rows are never deleted here; a missing blob needs a human decision

Schedule:
- Runs every ORPHAN_SWEEP_INTERVAL_MINUTES (default 60)
- Can be triggered manually via the debug jobs endpoint
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from admissions.core.config import settings
from admissions.core.database import async_session_maker
from admissions.core.scheduler import register_job
from admissions.core.storage import LocalBlobStorage, get_storage
from admissions.modules.documents import repository

logger = logging.getLogger(__name__)

JOB_ID_SWEEP_ORPHAN_BLOBS = "documents_sweep_orphan_blobs"


async def sweep_orphan_blobs(storage: LocalBlobStorage | None = None) -> dict[str, Any]:
    """
    Delete unreferenced blobs and report rows with missing blobs.

    Returns:
        Summary dict with counts and the affected locators / document ids
    """
    storage = storage or get_storage()
    cutoff = datetime.now(UTC) - timedelta(minutes=settings.orphan_grace_minutes)

    async with async_session_maker() as db:
        rows = await repository.get_all_locators_with_ids(db)

    referenced = {locator for _id, locator in rows}

    results: dict[str, Any] = {
        "orphans_deleted": [],
        "orphans_skipped_recent": 0,
        "missing_blobs": [],
        "total_errors": 0,
    }

    for locator in await storage.list_locators():
        if locator in referenced:
            continue
        try:
            if await storage.modified_at(locator) > cutoff:
                results["orphans_skipped_recent"] += 1
                continue
            await storage.delete(locator)
            results["orphans_deleted"].append(locator)
            logger.warning(f"Deleted orphaned blob {locator}")
        except OSError as e:
            logger.error(f"Error deleting orphaned blob {locator}: {e}", exc_info=True)
            results["total_errors"] += 1

    for document_id, locator in rows:
        if not await storage.exists(locator):
            logger.critical(f"Document {document_id} references missing blob {locator}")
            results["missing_blobs"].append(str(document_id))

    logger.info(
        f"Orphan sweep completed. "
        f"Deleted: {len(results['orphans_deleted'])}, "
        f"Missing: {len(results['missing_blobs'])}, "
        f"Errors: {results['total_errors']}"
    )

    return results


def register_document_jobs() -> None:
    """
    Register document custody background jobs with the scheduler.

    Call during application startup, before the scheduler is started.
    """
    interval = settings.orphan_sweep_interval_minutes
    register_job(
        job_id=JOB_ID_SWEEP_ORPHAN_BLOBS,
        func=sweep_orphan_blobs,
        trigger=IntervalTrigger(minutes=interval),
    )
    logger.info(f"Registered job: {JOB_ID_SWEEP_ORPHAN_BLOBS} (interval: {interval} minutes)")
