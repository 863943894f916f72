from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional
from uuid import uuid4

from redis import Redis

from officehours.core.config import settings
from officehours.core.exceptions import MentorBusyException
from officehours.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

LOCK_NAMESPACE = "officehours:lock"
_POLL_INTERVAL_SECONDS = 0.05

# Delete only while the key still holds our token
RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, threading.Lock] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()


def _lock_key(mentor_id: str) -> str:
    return f"{LOCK_NAMESPACE}:mentor:{mentor_id}:calendar"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("mentor_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def _get_local_lock(mentor_id: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(mentor_id)
        if lock is None:
            lock = threading.Lock()
            _LOCAL_LOCKS[mentor_id] = lock
        return lock


def _acquire_local(mentor_id: str, wait_s: float) -> bool:
    lock = _get_local_lock(mentor_id)
    acquired = lock.acquire(timeout=wait_s) if wait_s > 0 else lock.acquire(blocking=False)
    prometheus_metrics.record_mentor_lock("acquire", "success" if acquired else "blocked")
    return acquired


def _release_local(mentor_id: str) -> None:
    lock = _get_local_lock(mentor_id)
    try:
        lock.release()
        prometheus_metrics.record_mentor_lock("release", "success")
    except RuntimeError:
        prometheus_metrics.record_mentor_lock("release", "not_found")


def _acquire_redis(client: Redis, mentor_id: str, ttl_s: int, wait_s: float) -> Optional[str]:
    """Return the ownership token on success, None when blocked or on error."""
    deadline = time.monotonic() + wait_s
    key = _lock_key(mentor_id)
    token = uuid4().hex
    while True:
        try:
            acquired = bool(client.set(key, token, nx=True, ex=ttl_s))
        except Exception as exc:
            prometheus_metrics.record_mentor_lock("acquire", "error")
            logger.warning(
                "mentor_lock_redis_failed",
                extra={
                    "mentor_id": mentor_id,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return None
        if acquired:
            prometheus_metrics.record_mentor_lock("acquire", "success")
            return token
        if time.monotonic() >= deadline:
            prometheus_metrics.record_mentor_lock("acquire", "blocked")
            return None
        time.sleep(_POLL_INTERVAL_SECONDS)


def _release_redis(client: Redis, mentor_id: str, token: str) -> None:
    try:
        deleted = client.eval(RELEASE_LUA, 1, _lock_key(mentor_id), token)
        if deleted:
            prometheus_metrics.record_mentor_lock("release", "success")
            return
        # TTL expired, possibly re-acquired by another holder
        prometheus_metrics.record_mentor_lock("release", "not_owner")
        logger.warning("mentor_lock_redis_not_owner", extra={"mentor_id": mentor_id})
    except Exception as exc:
        prometheus_metrics.record_mentor_lock("release", "error")
        logger.warning(
            "mentor_lock_redis_release_failed",
            extra={
                "mentor_id": mentor_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def mentor_lock(
    mentor_id: str,
    *,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> Iterator[None]:
    """
    Serialise calendar writes for one mentor.

    Uses Redis ``SET NX EX`` when ``mentor_lock_backend`` is ``redis`` and a
    process-local keyed lock otherwise. Raises MentorBusyException when the
    lock cannot be taken within ``wait_s``. A Redis outage is treated the
    same way: writes are refused rather than run unserialised.
    """
    ttl = ttl_s if ttl_s is not None else settings.mentor_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.mentor_lock_wait_seconds

    if settings.mentor_lock_backend == "redis":
        client = _get_sync_redis()
        if client is None:
            prometheus_metrics.record_mentor_lock("acquire", "redis_unavailable")
            raise MentorBusyException(mentor_id)
        token = _acquire_redis(client, mentor_id, ttl, wait)
        if token is None:
            raise MentorBusyException(mentor_id)
        try:
            yield
        finally:
            _release_redis(client, mentor_id, token)
        return

    if not _acquire_local(mentor_id, wait):
        logger.info("mentor_lock_blocked", extra={"mentor_id": mentor_id})
        raise MentorBusyException(mentor_id)
    try:
        yield
    finally:
        _release_local(mentor_id)
