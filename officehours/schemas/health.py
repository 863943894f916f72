"""Health check response schema."""

from datetime import datetime

from ._strict_base import StrictModel


class HealthResponse(StrictModel):
    status: str
    service: str
    environment: str
    timestamp: datetime
    database: str
