"""
Tests for SyncOutboxService.

Dispatcher passes run against the in-memory FakeSyncTargetClient so the
retry/terminal transitions can be driven deterministically.
"""

from datetime import datetime, timedelta, timezone

from celery.exceptions import SoftTimeLimitExceeded
import pytest
from sqlalchemy import update

from officehours.core.enums import (
    OutboxAction,
    OutboxEntityType,
    OutboxStatus,
    SessionStatus,
)
from officehours.integrations.airtable_client import FakeSyncTargetClient, SyncTargetError
from officehours.models import MentorProfile, OutboxTask
from officehours.services.sync_outbox_service import SyncOutboxService


@pytest.fixture
def service(db) -> SyncOutboxService:
    return SyncOutboxService(db, max_attempts=3, worker_id="worker-test")


def _reload(db, task_id: str) -> OutboxTask:
    db.expire_all()
    return db.get(OutboxTask, task_id)


def _enqueue(db, service, entity_type, entity_id, action=OutboxAction.UPSERT, payload=None):
    task = service.enqueue(entity_type, entity_id, action, payload)
    db.commit()
    return task


class TestEnqueue:
    def test_returns_pending_task(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)

        assert task is not None
        assert _reload(db, task.id).status == OutboxStatus.PENDING.value

    def test_failure_is_swallowed_and_outer_work_survives(self, db, service, mocker):
        mocker.patch.object(
            service.repository, "enqueue", side_effect=RuntimeError("insert failed")
        )
        db.add(MentorProfile(display_name="Kept Mentor"))

        result = service.enqueue(OutboxEntityType.MENTOR, "m-1")
        db.commit()

        assert result is None
        assert db.query(MentorProfile).filter_by(display_name="Kept Mentor").count() == 1
        assert db.query(OutboxTask).count() == 0


class TestProcessPending:
    def test_successful_mentor_upsert(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        client = FakeSyncTargetClient()

        result = service.process_pending(client)

        assert (result.processed, result.succeeded, result.failed) == (1, 1, 0)
        assert _reload(db, task.id).status == OutboxStatus.COMPLETED.value
        fields = client.records[("mentor", mentor.id)]
        assert fields["Name"] == mentor.display_name
        assert fields["Industry"] == ["Fintech"]
        assert fields["External ID"] == mentor.id
        assert db.get(MentorProfile, mentor.id).external_record_id == client.record_ids[
            ("mentor", mentor.id)
        ]

    def test_mentor_upsert_uses_current_row_not_stale_payload(self, db, service, mentor):
        _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id, payload={"name": "Old Name"})
        mentor.display_name = "New Name"
        db.commit()
        client = FakeSyncTargetClient()

        service.process_pending(client)

        assert client.records[("mentor", mentor.id)]["Name"] == "New Name"

    def test_mentee_upsert_uses_payload(self, db, service, mentee):
        _enqueue(
            db,
            service,
            OutboxEntityType.MENTEE,
            mentee.id,
            payload={"name": "Snapshot Name", "email": "snap@example.com", "goals": ""},
        )
        client = FakeSyncTargetClient()

        service.process_pending(client)

        assert client.records[("mentee", mentee.id)] == {
            "Name": "Snapshot Name",
            "Email": "snap@example.com",
            "External ID": mentee.id,
        }

    def test_delete_action(self, db, service):
        task = _enqueue(db, service, OutboxEntityType.MENTEE, "gone-1", OutboxAction.DELETE)
        client = FakeSyncTargetClient()

        service.process_pending(client)

        assert client.calls == [("delete", "mentee", "gone-1")]
        assert _reload(db, task.id).status == OutboxStatus.COMPLETED.value

    def test_three_failures_mark_task_failed(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        client = FakeSyncTargetClient(always_fail=True)

        passes = [service.process_pending(client) for _ in range(3)]

        assert [(p.retried, p.failed) for p in passes] == [(1, 0), (1, 0), (0, 1)]
        stored = _reload(db, task.id)
        assert stored.status == OutboxStatus.FAILED.value
        assert stored.attempts == 3
        assert "unavailable" in stored.error_message
        assert passes[-1].errors[0]["task_id"] == task.id

        # Failed tasks are no longer picked up
        assert service.process_pending(client).processed == 0

    def test_transient_failure_is_retried_then_succeeds(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        client = FakeSyncTargetClient(fail_times=1)

        first = service.process_pending(client)
        second = service.process_pending(client)

        assert (first.retried, second.succeeded) == (1, 1)
        stored = _reload(db, task.id)
        assert stored.status == OutboxStatus.COMPLETED.value
        assert stored.attempts == 1

    def test_missing_mentor_counts_as_failed_attempt(self, db, service):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, "01J0000000000000000000000X")

        result = service.process_pending(FakeSyncTargetClient())

        assert result.retried == 1
        assert "not found" in _reload(db, task.id).error_message

    def test_lost_claims_are_skipped(self, db, service, mentor, mocker):
        _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        mocker.patch.object(service.repository, "claim", return_value=False)
        client = FakeSyncTargetClient()

        result = service.process_pending(client)

        assert (result.processed, result.skipped) == (0, 1)
        assert client.calls == []

    def test_failure_after_claim_moved_to_another_worker_is_not_recorded(
        self, db, service, mentee, mocker
    ):
        task = _enqueue(db, service, OutboxEntityType.MENTEE, mentee.id, payload={"name": "G"})
        client = FakeSyncTargetClient()

        def reclaimed_elsewhere(*args):
            db.execute(
                update(OutboxTask)
                .where(OutboxTask.id == task.id)
                .values(claimed_by="worker-other")
            )
            db.commit()
            raise SyncTargetError("late failure", 503)

        mocker.patch.object(client, "upsert", side_effect=reclaimed_elsewhere)

        result = service.process_pending(client)

        assert (result.processed, result.retried, result.skipped) == (1, 0, 1)
        assert result.errors == []
        stored = _reload(db, task.id)
        assert stored.status == OutboxStatus.PROCESSING.value
        assert stored.claimed_by == "worker-other"
        assert stored.attempts == 0

    def test_success_after_claim_moved_to_another_worker_is_skipped(
        self, db, service, mentee, mocker
    ):
        task = _enqueue(db, service, OutboxEntityType.MENTEE, mentee.id, payload={"name": "G"})
        client = FakeSyncTargetClient()

        def reclaimed_elsewhere(*args):
            db.execute(
                update(OutboxTask)
                .where(OutboxTask.id == task.id)
                .values(claimed_by="worker-other")
            )
            db.commit()
            return "rec_1"

        mocker.patch.object(client, "upsert", side_effect=reclaimed_elsewhere)

        result = service.process_pending(client)

        assert (result.succeeded, result.skipped) == (0, 1)
        assert _reload(db, task.id).status == OutboxStatus.PROCESSING.value

    def test_soft_time_limit_stops_the_batch(self, db, service, mentee, mocker):
        first = _enqueue(db, service, OutboxEntityType.MENTEE, mentee.id, payload={"name": "A"})
        second = _enqueue(db, service, OutboxEntityType.MENTEE, "other", payload={"name": "B"})
        client = FakeSyncTargetClient()
        mocker.patch.object(client, "upsert", side_effect=SoftTimeLimitExceeded())

        with pytest.raises(SoftTimeLimitExceeded):
            service.process_pending(client)

        assert client.upsert.call_count == 1
        for task in (first, second):
            stored = _reload(db, task.id)
            assert stored.status == OutboxStatus.PROCESSING.value
            assert stored.attempts == 0

    def test_one_bad_task_does_not_block_the_batch(self, db, service, mentor, mentee):
        bad = _enqueue(db, service, OutboxEntityType.MENTOR, "01J0000000000000000000000X")
        good = _enqueue(db, service, OutboxEntityType.MENTEE, mentee.id, payload={"name": "G"})

        result = service.process_pending(FakeSyncTargetClient())

        assert (result.processed, result.succeeded, result.retried) == (2, 1, 1)
        assert _reload(db, good.id).status == OutboxStatus.COMPLETED.value
        assert _reload(db, bad.id).status == OutboxStatus.PENDING.value


class TestMentorUtilization:
    def _sync(self, db, service, mentor):
        _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        client = FakeSyncTargetClient()
        service.process_pending(client)
        return client.records[("mentor", mentor.id)]

    def test_booked_share_of_offered_minutes_in_last_thirty_days(
        self, db, service, mentor, mentee, create_block, create_session
    ):
        now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        hour = timedelta(hours=1)
        create_block(mentor.id, now - timedelta(days=3), now - timedelta(days=3) + hour)
        create_block(mentor.id, now - timedelta(days=40), now - timedelta(days=40) + hour)
        create_session(
            mentor.id,
            mentee.id,
            now - timedelta(days=2),
            now - timedelta(days=2) + hour,
            status=SessionStatus.COMPLETED,
        )
        create_session(
            mentor.id,
            mentee.id,
            now - timedelta(days=1),
            now - timedelta(days=1) + hour,
            status=SessionStatus.CANCELLED,
        )
        tomorrow = now + timedelta(days=1)
        create_session(mentor.id, mentee.id, tomorrow, tomorrow + hour)

        fields = self._sync(db, service, mentor)

        assert fields["Utilization"] == 50.0

    def test_no_offered_time_is_zero(self, db, service, mentor):
        fields = self._sync(db, service, mentor)

        assert fields["Utilization"] == 0.0

    def test_last_synced_is_a_utc_timestamp(self, db, service, mentor):
        before = datetime.now(timezone.utc)

        fields = self._sync(db, service, mentor)

        synced_at = datetime.fromisoformat(fields["Last Synced"])
        assert synced_at.tzinfo is not None
        assert before <= synced_at <= datetime.now(timezone.utc)


class TestAdmin:
    def test_release_stale_claims(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        assert service.claim(task.id)
        stored = _reload(db, task.id)
        stored.claimed_at = datetime.now(timezone.utc) - timedelta(hours=1)
        db.commit()

        released = service.release_stale_claims(older_than_seconds=300)

        assert released == 1
        assert _reload(db, task.id).status == OutboxStatus.PENDING.value

    def test_recent_claims_are_not_released(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        service.claim(task.id)

        assert service.release_stale_claims(older_than_seconds=300) == 0

    def test_replay_failed_returns_tasks_to_queue(self, db, service, mentor):
        task = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        for _ in range(3):
            service.process_pending(FakeSyncTargetClient(always_fail=True))

        assert service.replay_failed([task.id, task.id]) == 1

        stored = _reload(db, task.id)
        assert stored.status == OutboxStatus.PENDING.value
        assert stored.attempts == 3
        assert service.process_pending(FakeSyncTargetClient()).succeeded == 1

    def test_counts_and_listing(self, db, service, mentor, mentee):
        failed = _enqueue(db, service, OutboxEntityType.MENTOR, mentor.id)
        for _ in range(3):
            service.process_pending(FakeSyncTargetClient(always_fail=True))
        _enqueue(db, service, OutboxEntityType.MENTEE, mentee.id, payload={"name": "G"})

        counts = service.count_by_status()
        listed = service.list_by_status(OutboxStatus.FAILED)

        assert counts["failed"] == 1
        assert counts["pending"] == 1
        assert [task.id for task in listed] == [failed.id]
