"""Minimal Airtable client used as the outbound sync target."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple, cast
from uuid import uuid4

import httpx
from pydantic import SecretStr

from ..core.config import Settings
from .airtable_mappings import EXTERNAL_ID_FIELD

logger = logging.getLogger(__name__)

# Airtable allows 5 requests per second per base
MIN_REQUEST_INTERVAL_SECONDS = 0.2


class SyncTargetError(RuntimeError):
    """Raised when the external sync target rejects or cannot serve a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_type: str | None = None,
        error_body: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type
        self.error_body = error_body


class SyncTargetClient(Protocol):
    """Upsert/delete contract keyed by ``(entity_type, entity_id)``."""

    def upsert(self, entity_type: str, entity_id: str, fields: Mapping[str, Any]) -> str:
        ...

    def delete(self, entity_type: str, entity_id: str) -> None:
        ...


class _RateLimiter:
    """Spaces calls at least ``interval`` seconds apart (thread-safe)."""

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last: Optional[float] = None

    def wait(self) -> None:
        with self._lock:
            now = self._clock()
            if self._last is not None:
                remaining = self._interval - (now - self._last)
                if remaining > 0:
                    self._sleep(remaining)
                    now = self._clock()
            self._last = now


def _formula_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class AirtableSyncClient:
    """Thin client for the Airtable REST API."""

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        base_id: str,
        tables: Mapping[str, str],
        base_url: str = "https://api.airtable.com/v0",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
        min_interval: float = MIN_REQUEST_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        secret_value = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        if not secret_value:
            raise ValueError("Airtable API key must be provided")
        if not base_id:
            raise ValueError("Airtable base id must be provided")

        self._api_key = secret_value
        self._base_url = f"{base_url.rstrip('/')}/{base_id}"
        self._tables = dict(tables)
        self._timeout = timeout
        self._transport = transport
        self._rate_limiter = _RateLimiter(min_interval, sleep=sleep)

    def table_for(self, entity_type: str) -> str:
        try:
            return self._tables[entity_type]
        except KeyError:
            raise SyncTargetError(f"No Airtable table configured for {entity_type}") from None

    def upsert(self, entity_type: str, entity_id: str, fields: Mapping[str, Any]) -> str:
        """
        Create or update the record whose ``External ID`` equals ``entity_id``.

        Returns the Airtable record id.
        """
        table = self.table_for(entity_type)
        body = {
            "performUpsert": {"fieldsToMergeOn": [EXTERNAL_ID_FIELD]},
            "records": [{"fields": {**fields, EXTERNAL_ID_FIELD: entity_id}}],
            "typecast": True,
        }
        payload = self.request("PATCH", f"/{table}", json_body=body)
        records = cast(List[Dict[str, Any]], payload.get("records") or [])
        if not records or not records[0].get("id"):
            raise SyncTargetError("Airtable upsert returned no record id", error_body=payload)
        return cast(str, records[0]["id"])

    def find_record_id(self, entity_type: str, entity_id: str) -> Optional[str]:
        table = self.table_for(entity_type)
        payload = self.request(
            "GET",
            f"/{table}",
            params={
                "filterByFormula": f"{{{EXTERNAL_ID_FIELD}}}={_formula_literal(entity_id)}",
                "maxRecords": 1,
            },
        )
        records = cast(List[Dict[str, Any]], payload.get("records") or [])
        return cast(Optional[str], records[0].get("id")) if records else None

    def delete(self, entity_type: str, entity_id: str) -> None:
        """Delete the record for ``entity_id``. A record that is already gone counts as success."""
        record_id = self.find_record_id(entity_type, entity_id)
        if record_id is None:
            logger.info(
                "Airtable record already absent",
                extra={"entity_type": entity_type, "entity_id": entity_id},
            )
            return
        table = self.table_for(entity_type)
        try:
            self.request("DELETE", f"/{table}/{record_id}")
        except SyncTargetError as exc:
            if exc.status_code == 404:
                return
            raise

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Perform a raw Airtable request and return the parsed JSON payload."""

        self._rate_limiter.wait()
        url = f"{self._base_url}{path}"
        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Accept": "application/json",
            },
        ) as client:
            try:
                response = client.request(method, url, json=json_body, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                error_payload: Any | None = None
                error_type: str | None = None
                try:
                    error_payload = exc.response.json()
                    if isinstance(error_payload, dict):
                        error = error_payload.get("error")
                        error_type = error.get("type") if isinstance(error, dict) else error
                except json.JSONDecodeError:
                    error_payload = exc.response.text

                logger.error(
                    "Airtable API error %s for %s %s: %s",
                    status,
                    method,
                    path,
                    exc.response.text[:500],
                )
                raise SyncTargetError(
                    message=f"Airtable API responded with status {status}",
                    status_code=status,
                    error_type=error_type,
                    error_body=error_payload,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("Airtable request failure for %s %s: %s", method, path, str(exc))
                raise SyncTargetError("Failed to reach Airtable API") from exc

        try:
            return cast(Dict[str, Any], response.json())
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON from Airtable for %s %s: %s", method, path, response.text)
            raise SyncTargetError("Received malformed JSON from Airtable") from exc


class FakeSyncTargetClient:
    """In-memory stand-in for the sync target in local and test environments."""

    def __init__(self, *, fail_times: int = 0, always_fail: bool = False) -> None:
        self.records: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.record_ids: Dict[Tuple[str, str], str] = {}
        self.calls: List[Tuple[str, str, str]] = []
        self.fail_times = fail_times
        self.always_fail = always_fail
        self._logger = logging.getLogger(self.__class__.__name__)

    def _maybe_fail(self, action: str, entity_type: str, entity_id: str) -> None:
        self.calls.append((action, entity_type, entity_id))
        if self.always_fail:
            raise SyncTargetError("Fake sync target unavailable", status_code=503)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise SyncTargetError("Fake sync target unavailable", status_code=503)

    def upsert(self, entity_type: str, entity_id: str, fields: Mapping[str, Any]) -> str:
        self._maybe_fail("upsert", entity_type, entity_id)
        key = (entity_type, entity_id)
        self.records[key] = {**fields, EXTERNAL_ID_FIELD: entity_id}
        record_id = self.record_ids.setdefault(key, f"rec_fake_{uuid4().hex[:14]}")
        self._logger.debug("Fake record upserted", extra={"record_id": record_id})
        return record_id

    def delete(self, entity_type: str, entity_id: str) -> None:
        self._maybe_fail("delete", entity_type, entity_id)
        key = (entity_type, entity_id)
        self.records.pop(key, None)
        self.record_ids.pop(key, None)


def get_sync_client(config: Settings) -> SyncTargetClient:
    """Build the sync client selected by ``config.sync_target``."""
    if config.sync_target == "airtable":
        if config.airtable_api_key is None:
            raise ValueError("airtable_api_key is required when sync_target is 'airtable'")
        return AirtableSyncClient(
            api_key=config.airtable_api_key,
            base_id=config.airtable_base_id,
            tables={
                "mentor": config.airtable_mentors_table,
                "mentee": config.airtable_mentees_table,
            },
            timeout=config.airtable_timeout_seconds,
        )
    return FakeSyncTargetClient()
