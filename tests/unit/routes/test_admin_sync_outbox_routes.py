"""Tests for /api/v1/admin/sync-outbox."""

from fastapi import status

from officehours.core.enums import OutboxEntityType
from officehours.integrations.airtable_client import FakeSyncTargetClient
from officehours.services.sync_outbox_service import SyncOutboxService


def _failed_task(db, mentor):
    service = SyncOutboxService(db, max_attempts=1)
    task = service.enqueue(OutboxEntityType.MENTOR, mentor.id)
    db.commit()
    service.process_pending(FakeSyncTargetClient(always_fail=True))
    return task


class TestAdminSyncOutboxRoutes:
    def test_lists_failed_tasks_by_default(self, client, db, mentor):
        task = _failed_task(db, mentor)

        response = client.get("/api/v1/admin/sync-outbox")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["total"] == 1
        item = body["items"][0]
        assert item["id"] == task.id
        assert item["status"] == "failed"
        assert item["attempts"] == 1

    def test_stats(self, client, db, mentor):
        _failed_task(db, mentor)

        response = client.get("/api/v1/admin/sync-outbox/stats")

        assert response.json()["counts"] == {
            "pending": 0,
            "processing": 0,
            "completed": 0,
            "failed": 1,
        }

    def test_replay(self, client, db, mentor):
        task = _failed_task(db, mentor)

        response = client.post(
            "/api/v1/admin/sync-outbox/replay", json={"task_ids": [task.id, "unknown"]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"requested": 2, "replayed": 1}
        pending = client.get("/api/v1/admin/sync-outbox", params={"status": "pending"}).json()
        assert [item["id"] for item in pending["items"]] == [task.id]

    def test_replay_requires_ids(self, client):
        response = client.post("/api/v1/admin/sync-outbox/replay", json={"task_ids": []})

        assert response.status_code == 422
