"""Integrations with external services."""

from .airtable_client import (
    AirtableSyncClient,
    FakeSyncTargetClient,
    SyncTargetClient,
    SyncTargetError,
    get_sync_client,
)

__all__ = [
    "AirtableSyncClient",
    "FakeSyncTargetClient",
    "SyncTargetClient",
    "SyncTargetError",
    "get_sync_client",
]
