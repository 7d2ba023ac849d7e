"""Client for the spreadsheet-backed remote store."""

from __future__ import annotations

import enum
import time
from typing import Any, Callable, Mapping

import orjson
import requests

from doc_registry.core.config import Settings
from doc_registry.core.errors import SyncError
from doc_registry.core.logging import get_logger
from doc_registry.core.metrics import REMOTE_LATENCY, REMOTE_REQUESTS, REMOTE_RETRIES

logger = get_logger(__name__)

TRANSPORT_ERRORS = (requests.ConnectionError, requests.Timeout)

UNKNOWN_REMOTE_ERROR = "The remote store reported an unknown error"
INVALID_RESPONSE = "Received an invalid response from the remote store"
CONNECTIVITY_HINT = (
    "Could not reach the remote store. Check the internet connection and make sure "
    "the spreadsheet web app is deployed with access for \"Anyone\"."
)


class RemoteAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"


class RemoteStoreClient:
    """Issue ``{action, payload}`` envelopes against a single POST endpoint.

    Only transport failures (no connection, timeout) are retried, with the
    delay doubling after each attempt. An HTTP error status, a body that is
    not JSON, or ``success: false`` fail immediately.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 60.0,
        max_retries: int = 2,
        base_delay: float = 1.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.session = session or requests.Session()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "RemoteStoreClient":
        return cls(
            settings.remote_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            **kwargs,
        )

    def execute(self, action: RemoteAction | str, payload: Mapping[str, Any] | None = None) -> Any:
        action = RemoteAction(action)
        if not self.url:
            raise SyncError("Remote store URL is not configured")
        body = orjson.dumps({"action": action.value, "payload": dict(payload or {})})
        start = time.perf_counter()
        try:
            result = self._send_with_retry(action, body)
        except SyncError:
            REMOTE_REQUESTS.labels(action=action.value, outcome="error").inc()
            raise
        finally:
            REMOTE_LATENCY.labels(action=action.value).observe(time.perf_counter() - start)
        REMOTE_REQUESTS.labels(action=action.value, outcome="ok").inc()
        return result

    def _send_with_retry(self, action: RemoteAction, body: bytes) -> Any:
        attempts = self.max_retries + 1
        delay = self.base_delay
        for attempt in range(1, attempts + 1):
            try:
                response = self.session.post(
                    self.url,
                    data=body,
                    headers={"Content-Type": "text/plain;charset=utf-8"},
                    timeout=self.timeout,
                    allow_redirects=True,
                )
            except TRANSPORT_ERRORS as exc:
                if attempt == attempts:
                    logger.error(
                        "Remote %s failed after %s attempts: %s",
                        action.value,
                        attempt,
                        exc,
                        extra={"ctx_action": action.value, "ctx_attempt": attempt},
                    )
                    raise SyncError(CONNECTIVITY_HINT) from exc
                logger.warning(
                    "Remote %s failed, retrying in %.1fs (%s retries left)",
                    action.value,
                    delay,
                    attempts - attempt,
                    extra={"ctx_action": action.value, "ctx_attempt": attempt},
                )
                REMOTE_RETRIES.labels(action=action.value).inc()
                self._sleep(delay)
                delay *= 2
                continue
            return self._parse(action, response)
        raise SyncError(CONNECTIVITY_HINT)  # pragma: no cover - loop always returns or raises

    def _parse(self, action: RemoteAction, response: requests.Response) -> Any:
        if not response.ok:
            logger.error("Remote %s returned HTTP %s", action.value, response.status_code)
            raise SyncError(f"Remote store returned HTTP {response.status_code}")
        text = response.text
        try:
            result = orjson.loads(text)
        except orjson.JSONDecodeError as exc:
            logger.error("Unparsable response for %s: %.200s", action.value, text)
            raise SyncError(INVALID_RESPONSE) from exc
        if not isinstance(result, dict):
            logger.error("Unexpected response shape for %s: %.200s", action.value, text)
            raise SyncError(INVALID_RESPONSE)
        if result.get("success") is False:
            raise SyncError(str(result.get("error") or UNKNOWN_REMOTE_ERROR))
        logger.debug("Remote %s committed", action.value)
        return result.get("data")


__all__ = ["RemoteAction", "RemoteStoreClient", "TRANSPORT_ERRORS"]
