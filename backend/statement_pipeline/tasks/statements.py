"""Celery task for statement processing."""

import asyncio
import logging

from statement_pipeline.celery_app import celery_app
from statement_pipeline.enums import StatementStatus
from statement_pipeline.services.document import ocr
from statement_pipeline.services.statements import ProcessUploadResult, process_uploaded_file
from statement_pipeline.tasks.base import LoggedTask

logger = logging.getLogger(__name__)


async def _process_async(source: str, mime_type: str, processor_id: str | None) -> ProcessUploadResult:
    try:
        return await process_uploaded_file(source, mime_type, processor_id)
    finally:
        # The OCR client is bound to this task's event loop
        await ocr.close_client()


def build_task_result(result: ProcessUploadResult) -> dict:
    """Map a processing result to the task payload; incomplete data counts as failed."""
    if not result.success or result.data is None:
        return {"status": str(StatementStatus.FAILED), "error": result.error or "Processing failed"}

    missing = result.data.missing_fields()
    if missing:
        return {
            "status": str(StatementStatus.FAILED),
            "error": f"Incomplete statement data: missing {', '.join(missing)}",
            "data": result.data.to_dict(),
        }

    return {"status": str(StatementStatus.COMPLETED), "data": result.data.to_dict()}


@celery_app.task(
    base=LoggedTask,
    bind=True,
    soft_time_limit=840,  # Raise SoftTimeLimitExceeded at 14 min
    time_limit=900,  # Hard kill after 15 min
)
def process_statement_task(self, source: str, mime_type: str, processor_id: str | None = None):
    """
    Process one uploaded statement.

    No retries: an OCR failure is terminal for the attempt, and a resubmitted
    document is served from the OCR cache where possible.
    """
    logger.info(f"Task {self.request.id}: processing {source}")
    result = asyncio.run(_process_async(source, mime_type, processor_id))

    payload = build_task_result(result)
    if payload["status"] == StatementStatus.FAILED:
        logger.warning(f"Task {self.request.id}: {payload['error']}")
    return payload
