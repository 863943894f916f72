# officehours/routes/v1/admin_sync_outbox.py
"""
Sync outbox operator routes - API v1

Surface for tasks parked in ``failed`` after exhausting their retries.

Endpoints:
    GET / - List tasks by status (default failed)
    GET /stats - Task counts per status
    POST /replay - Return failed tasks to the queue
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import get_sync_outbox_service
from ...core.enums import OutboxStatus
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.sync_outbox import (
    OutboxReplayRequest,
    OutboxReplayResponse,
    OutboxStatsResponse,
    OutboxTaskListResponse,
    OutboxTaskResponse,
)
from ...services.sync_outbox_service import SyncOutboxService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-sync-outbox-v1"])


@router.get("", response_model=OutboxTaskListResponse)
async def list_outbox_tasks(
    status: OutboxStatus = Query(OutboxStatus.FAILED),
    limit: int = Query(100, ge=1, le=500),
    outbox_service: SyncOutboxService = Depends(get_sync_outbox_service),
) -> OutboxTaskListResponse:
    """List sync tasks in a given status, most recently updated first."""
    tasks = await asyncio.to_thread(outbox_service.list_by_status, status, limit)
    items = [OutboxTaskResponse.model_validate(task) for task in tasks]
    return OutboxTaskListResponse(items=items, total=len(items))


@router.get("/stats", response_model=OutboxStatsResponse)
async def outbox_stats(
    outbox_service: SyncOutboxService = Depends(get_sync_outbox_service),
) -> OutboxStatsResponse:
    """Count sync tasks per status."""
    counts = await asyncio.to_thread(outbox_service.count_by_status)
    return OutboxStatsResponse(counts=counts)


@router.post("/replay", response_model=OutboxReplayResponse)
async def replay_failed_tasks(
    payload: OutboxReplayRequest = Body(...),
    outbox_service: SyncOutboxService = Depends(get_sync_outbox_service),
) -> OutboxReplayResponse:
    """Move failed tasks back to pending. Tasks in other states are left alone."""
    try:
        replayed = await asyncio.to_thread(outbox_service.replay_failed, payload.task_ids)
    except DomainException as e:
        handle_domain_exception(e)
    logger.info("Replayed %s of %s failed sync tasks", replayed, len(payload.task_ids))
    return OutboxReplayResponse(requested=len(payload.task_ids), replayed=replayed)
