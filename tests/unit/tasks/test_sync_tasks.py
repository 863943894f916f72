"""Tests for the sync outbox Celery tasks (executed eagerly, in-process)."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from officehours.core.enums import OutboxEntityType, OutboxStatus
from officehours.integrations.airtable_client import FakeSyncTargetClient
from officehours.models import OutboxTask
from officehours.services.sync_outbox_service import SyncOutboxService
from officehours.tasks import sync_tasks
from officehours.tasks.beat_schedule import get_beat_schedule
from officehours.tasks.celery_app import celery_app


@pytest.fixture
def task_session_factory(db_engine, monkeypatch):
    factory = sessionmaker(
        bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    monkeypatch.setattr(sync_tasks, "SessionLocal", factory)
    return factory


@pytest.fixture
def fake_client(monkeypatch) -> FakeSyncTargetClient:
    client = FakeSyncTargetClient()
    monkeypatch.setattr(sync_tasks, "get_sync_client", lambda config: client)
    return client


class TestDispatchPending:
    def test_delivers_pending_tasks(self, db, mentor, task_session_factory, fake_client):
        SyncOutboxService(db).enqueue(OutboxEntityType.MENTOR, mentor.id)
        db.commit()

        summary = sync_tasks.dispatch_pending()

        assert summary["processed"] == 1
        assert summary["succeeded"] == 1
        assert ("upsert", "mentor", mentor.id) in fake_client.calls
        db.expire_all()
        assert db.query(OutboxTask).one().status == OutboxStatus.COMPLETED.value

    def test_empty_queue(self, task_session_factory, fake_client):
        summary = sync_tasks.dispatch_pending(limit=10)

        assert summary == {
            "processed": 0,
            "succeeded": 0,
            "failed": 0,
            "retried": 0,
            "skipped": 0,
            "errors": [],
        }


class TestReleaseStale:
    def test_returns_abandoned_claims_to_queue(self, db, mentor, task_session_factory):
        service = SyncOutboxService(db, worker_id="crashed-worker")
        task = service.enqueue(OutboxEntityType.MENTOR, mentor.id)
        db.commit()
        service.claim(task.id)
        task.claimed_at = datetime.now(timezone.utc) - timedelta(hours=2)
        db.commit()

        released = sync_tasks.release_stale(older_than_seconds=600)

        assert released == 1
        db.expire_all()
        assert db.get(OutboxTask, task.id).status == OutboxStatus.PENDING.value


class TestCeleryWiring:
    def test_tasks_registered_by_name(self):
        assert "sync_outbox.dispatch_pending" in celery_app.tasks
        assert "sync_outbox.release_stale" in celery_app.tasks

    def test_beat_schedule_entries(self):
        schedule = get_beat_schedule()

        assert schedule["sync-outbox-dispatch"]["task"] == "sync_outbox.dispatch_pending"
        assert schedule["sync-outbox-release-stale"]["task"] == "sync_outbox.release_stale"
        assert schedule["sync-outbox-release-stale"]["schedule"] >= timedelta(seconds=30)

    def test_sync_tasks_routed_to_sync_queue(self):
        assert celery_app.conf.task_routes == {"sync_outbox.*": {"queue": "sync"}}
