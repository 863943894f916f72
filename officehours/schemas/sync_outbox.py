# officehours/schemas/sync_outbox.py
"""Operator-facing schemas for the sync outbox."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from ._strict_base import ORMResponseModel, StrictModel, StrictRequestModel


class OutboxTaskResponse(ORMResponseModel):
    id: str
    entity_type: str
    entity_id: str
    action: str
    payload: Dict[str, Any]
    status: str
    attempts: int
    error_message: Optional[str] = None
    claimed_by: Optional[str] = None
    claimed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class OutboxTaskListResponse(StrictModel):
    items: List[OutboxTaskResponse]
    total: int


class OutboxReplayRequest(StrictRequestModel):
    """Failed task ids to return to the queue."""

    task_ids: List[str] = Field(..., min_length=1, max_length=500)


class OutboxReplayResponse(StrictModel):
    requested: int
    replayed: int


class OutboxStatsResponse(StrictModel):
    counts: Dict[str, int]
