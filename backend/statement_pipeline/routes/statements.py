import logging

from celery.result import AsyncResult
from fastapi import APIRouter
from pydantic import BaseModel

from statement_pipeline.celery_app import celery_app
from statement_pipeline.tasks.statements import process_statement_task

logger = logging.getLogger(__name__)

router = APIRouter()


class StatementCreate(BaseModel):
    source: str  # Local path or http(s) URL
    mime_type: str = "application/pdf"
    processor_id: str | None = None


class StatementTaskResponse(BaseModel):
    task_id: str


class StatementTaskStatus(BaseModel):
    task_id: str
    state: str
    result: dict | None = None


@router.post("", response_model=StatementTaskResponse, status_code=202)
async def create_statement(body: StatementCreate):
    """Queue a statement for background processing."""
    task = process_statement_task.delay(body.source, body.mime_type, body.processor_id)
    logger.info(f"Queued statement {body.source} as task {task.id}")
    return StatementTaskResponse(task_id=task.id)


@router.get("/{task_id}", response_model=StatementTaskStatus)
async def get_statement(task_id: str):
    """Celery state of a processing task, with its payload once finished."""
    result = AsyncResult(task_id, app=celery_app)

    payload = None
    if result.successful():
        payload = result.result
    elif result.failed():
        payload = {"status": "failed", "error": str(result.result)}

    return StatementTaskStatus(task_id=task_id, state=result.state, result=payload)
