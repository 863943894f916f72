"""Tests for the per-mentor critical section."""

import threading
from unittest.mock import MagicMock

import pytest

from officehours.core import mentor_lock as mentor_lock_module
from officehours.core.config import settings
from officehours.core.exceptions import MentorBusyException
from officehours.core.mentor_lock import mentor_lock


class TestLocalMentorLock:
    def test_lock_is_released_after_block(self):
        with mentor_lock("mentor-a", wait_s=0):
            pass
        with mentor_lock("mentor-a", wait_s=0):
            pass

    def test_second_holder_is_refused_while_lock_is_held(self):
        held = threading.Event()
        release = threading.Event()

        def holder():
            with mentor_lock("mentor-b", wait_s=0):
                held.set()
                release.wait(timeout=5)

        thread = threading.Thread(target=holder)
        thread.start()
        try:
            assert held.wait(timeout=5)
            with pytest.raises(MentorBusyException) as exc_info:
                with mentor_lock("mentor-b", wait_s=0):
                    pass
            assert exc_info.value.details == {"mentor_id": "mentor-b"}
        finally:
            release.set()
            thread.join(timeout=5)

    def test_different_mentors_do_not_block_each_other(self):
        with mentor_lock("mentor-c", wait_s=0):
            with mentor_lock("mentor-d", wait_s=0):
                pass

    def test_waiter_gets_lock_once_holder_releases(self):
        acquired_order = []
        first_in = threading.Event()

        def first():
            with mentor_lock("mentor-e", wait_s=0):
                acquired_order.append("first")
                first_in.set()
                threading.Event().wait(0.1)

        thread = threading.Thread(target=first)
        thread.start()
        assert first_in.wait(timeout=5)
        with mentor_lock("mentor-e", wait_s=5):
            acquired_order.append("second")
        thread.join(timeout=5)

        assert acquired_order == ["first", "second"]

    def test_lock_released_when_body_raises(self):
        with pytest.raises(ValueError):
            with mentor_lock("mentor-f", wait_s=0):
                raise ValueError("boom")
        with mentor_lock("mentor-f", wait_s=0):
            pass


class TestRedisMentorLock:
    @pytest.fixture(autouse=True)
    def redis_backend(self, monkeypatch):
        monkeypatch.setattr(settings, "mentor_lock_backend", "redis")

    def test_acquires_with_set_nx_and_releases_own_token(self, monkeypatch):
        client = MagicMock()
        client.set.return_value = True
        client.eval.return_value = 1
        monkeypatch.setattr(mentor_lock_module, "_get_sync_redis", lambda: client)

        with mentor_lock("mentor-r", ttl_s=15, wait_s=0):
            pass

        key, token = client.set.call_args.args
        assert key == "officehours:lock:mentor:mentor-r:calendar"
        assert client.set.call_args.kwargs == {"nx": True, "ex": 15}
        client.eval.assert_called_once_with(mentor_lock_module.RELEASE_LUA, 1, key, token)
        client.delete.assert_not_called()

    def test_each_acquisition_uses_a_fresh_token(self, monkeypatch):
        client = MagicMock()
        client.set.return_value = True
        client.eval.return_value = 1
        monkeypatch.setattr(mentor_lock_module, "_get_sync_redis", lambda: client)

        with mentor_lock("mentor-r", wait_s=0):
            pass
        with mentor_lock("mentor-r", wait_s=0):
            pass

        first, second = (call.args[1] for call in client.set.call_args_list)
        assert first != second

    def test_expired_lock_taken_by_another_holder_is_left_alone(self, monkeypatch):
        store = {}

        def fake_set(key, value, nx, ex):
            if nx and key in store:
                return None
            store[key] = value
            return True

        def fake_eval(script, numkeys, key, token):
            if store.get(key) == token:
                del store[key]
                return 1
            return 0

        client = MagicMock()
        client.set.side_effect = fake_set
        client.eval.side_effect = fake_eval
        monkeypatch.setattr(mentor_lock_module, "_get_sync_redis", lambda: client)
        key = "officehours:lock:mentor:mentor-r:calendar"

        with mentor_lock("mentor-r", wait_s=0):
            # TTL lapses and a second holder takes the key
            store[key] = "other-holder"

        assert store == {key: "other-holder"}
        client.delete.assert_not_called()

    def test_busy_when_key_already_held(self, monkeypatch):
        client = MagicMock()
        client.set.return_value = None
        monkeypatch.setattr(mentor_lock_module, "_get_sync_redis", lambda: client)

        with pytest.raises(MentorBusyException):
            with mentor_lock("mentor-r", wait_s=0):
                pass
        client.eval.assert_not_called()

    def test_unavailable_redis_refuses_writes(self, monkeypatch):
        monkeypatch.setattr(mentor_lock_module, "_get_sync_redis", lambda: None)

        with pytest.raises(MentorBusyException):
            with mentor_lock("mentor-r", wait_s=0):
                pass

    def test_redis_error_during_acquire_is_busy(self, monkeypatch):
        client = MagicMock()
        client.set.side_effect = ConnectionError("redis down")
        monkeypatch.setattr(mentor_lock_module, "_get_sync_redis", lambda: client)

        with pytest.raises(MentorBusyException):
            with mentor_lock("mentor-r", wait_s=0):
                pass
