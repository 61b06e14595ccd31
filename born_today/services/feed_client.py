from __future__ import annotations

import asyncio
from http import HTTPStatus
import logging
from typing import Any, Literal
from uuid import uuid4

import httpx

from born_today.core.config import Settings, get_settings
from born_today.core.dates import FeedDate
from born_today.core.telemetry import DISABLED_TELEMETRY, TelemetryRuntime, instrument_http_client

logger = logging.getLogger(__name__)

BIRTHS_PATH = "feed/v1/wikipedia/{language}/onthisday/births/{month}/{day}"
CACHE_BUSTER_PARAM = "cachebust"
USER_AGENT_HEADER = "Api-User-Agent"

ErrorCategory = Literal["transport", "contract"]


class FeedError(Exception):
    """Base feed error."""

    retryable: bool = True
    category: ErrorCategory = "transport"


class FeedTimeoutError(FeedError):
    """Raised when the feed does not answer within the configured timeout."""


class FeedCancelledError(FeedError, asyncio.CancelledError):
    """Raised when the caller cancels an outstanding fetch.

    Still an ``asyncio.CancelledError``, so the cancelled task reports
    ``cancelled()`` and ``asyncio.timeout`` converts it to ``TimeoutError``.
    """


class FeedNetworkError(FeedError):
    """Raised when no response was received at all (DNS, connect, socket faults)."""


class FeedUnexpectedStatusError(FeedError):
    """Raised for a non-2xx status with no more specific meaning."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"feed returned unexpected HTTP status {status_code}")
        self.status_code = status_code


class FeedInvalidParameterError(FeedError):
    """Raised on HTTP 400: the month/day path parameters were rejected."""

    retryable = False
    category = "contract"


class FeedUnsupportedLanguageError(FeedError):
    """Raised on HTTP 501: the configured wiki language is not served."""

    retryable = False
    category = "contract"


class FeedMalformedPayloadError(FeedError):
    """Raised when a 2xx body lacks the births collection.

    Treated as a transient upstream defect, so a later retry may succeed.
    """

    category = "contract"


class FeedClient:
    """Fetches raw birth records for one calendar date.

    One request per ``fetch`` call and no internal retries; retry policy
    belongs to the caller. Callers must not start a second fetch while one is
    outstanding.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        telemetry: TelemetryRuntime | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = settings.feed_base_url.rstrip("/")
        self.language = settings.feed_language
        self.timeout_seconds = settings.feed_timeout_seconds
        self.headers = {USER_AGENT_HEADER: settings.api_user_agent}
        self._telemetry = telemetry or DISABLED_TELEMETRY
        self._tracer = self._telemetry.tracer(__name__)
        self._client = client
        if client is not None:
            instrument_http_client(client, self._telemetry)

    def births_url(self, date: FeedDate) -> str:
        path = BIRTHS_PATH.format(language=self.language, month=date.month, day=date.day)
        return f"{self.base_url}/{path}"

    async def fetch(self, date: FeedDate) -> list[dict[str, Any]]:
        with self._tracer.start_as_current_span("feed.fetch") as span:
            span.set_attribute("feed.month", date.month)
            span.set_attribute("feed.day", date.day)
            response = await self._get(date)
            span.set_attribute("http.status_code", response.status_code)
            items = _births_from_response(response, date)
            span.set_attribute("feed.item_count", len(items))
            logger.info("feed fetch date=%s status=%s items=%s", date, response.status_code, len(items))
            return items

    async def _get(self, date: FeedDate) -> httpx.Response:
        url = self.births_url(date)
        # The upstream cache has been seen to hand one client's response to
        # another client behind the same IP; a unique parameter keeps every
        # request distinct.
        params = {CACHE_BUSTER_PARAM: uuid4().hex}
        try:
            if self._client is not None:
                return await self._client.get(url, params=params, headers=self.headers)
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as temp_client:
                instrument_http_client(temp_client, self._telemetry)
                return await temp_client.get(url, params=params, headers=self.headers)
        except asyncio.CancelledError as exc:
            logger.info("feed fetch cancelled date=%s", date)
            raise FeedCancelledError("feed request cancelled") from exc
        except httpx.TimeoutException as exc:
            logger.warning("feed fetch timed out date=%s timeout_s=%.1f", date, self.timeout_seconds)
            raise FeedTimeoutError("feed request failed due to timeout") from exc
        except httpx.TransportError as exc:
            logger.warning("feed fetch network failure date=%s error=%s", date, exc)
            raise FeedNetworkError("feed request failed due to network error") from exc


def _births_from_response(response: httpx.Response, date: FeedDate) -> list[dict[str, Any]]:
    status_code = response.status_code
    if status_code == HTTPStatus.NOT_FOUND:
        logger.info("feed has no records date=%s", date)
        return []
    if status_code == HTTPStatus.BAD_REQUEST:
        raise FeedInvalidParameterError(f"feed rejected date parameters {date}")
    if status_code == HTTPStatus.NOT_IMPLEMENTED:
        raise FeedUnsupportedLanguageError("feed does not support the configured language")
    if not response.is_success:
        raise FeedUnexpectedStatusError(status_code)

    try:
        payload = response.json()
    except ValueError as exc:
        raise FeedMalformedPayloadError("feed response body is not JSON") from exc

    births = payload.get("births") if isinstance(payload, dict) else None
    if not isinstance(births, list):
        raise FeedMalformedPayloadError("feed response is missing the births collection")
    return births
