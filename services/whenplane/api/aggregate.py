"""
WhenPlane aggregate status client.

Responsibilities:
- Fetch the aggregate status document (YouTube / Floatplane / Twitch +
  notable people) with a hard timeout
- Validate its structure before anything downstream sees it
- Keep a short-lived cache so bursts of callers cost one request
- Fall back to the last good snapshot on any failure

fetch() never raises; `None` means "no snapshot has ever been fetched".
fetch_raw() is the uncached network call and reports failures as FetchError.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx
from jsonschema import Draft7Validator

from services.whenplane.models.status import IsThereWan
from shared.logging.logger import get_logger

log = get_logger("whenplane.api.aggregate")

AGGREGATE_URL = "https://whenplane.com/api/aggregate"
IS_THERE_WAN_URL = "https://whenplane.com/api/isThereWan"
USER_AGENT = "WANWatch-Discord-Bot (github.com/whenplane)"

FETCH_TIMEOUT_SECONDS = 10.0
CACHE_SECONDS = 10.0

AGGREGATE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["youtube", "floatplane", "twitch", "notablePeople"],
    "properties": {
        "youtube": {"type": "object"},
        "floatplane": {"type": "object"},
        "twitch": {"type": "object"},
        "notablePeople": {"type": "object"},
    },
}

IS_THERE_WAN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["text", "image"],
    "properties": {
        "text": {"type": ["string", "null"]},
        "image": {"type": ["string", "null"]},
    },
}

_AGGREGATE_VALIDATOR = Draft7Validator(AGGREGATE_SCHEMA)
_IS_THERE_WAN_VALIDATOR = Draft7Validator(IS_THERE_WAN_SCHEMA)


def _validation_errors(validator: Draft7Validator, payload: Any) -> List[str]:
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    messages = []
    for err in errors:
        loc = "/".join(str(p) for p in err.path) or "<root>"
        messages.append(f"{loc}: {err.message}")
    return messages


def validate_aggregate(payload: Any) -> List[str]:
    """Return structural problems with an aggregate payload (empty if valid)."""
    return _validation_errors(_AGGREGATE_VALIDATOR, payload)


class FetchFailure(Enum):
    TIMEOUT = "timeout"
    HTTP = "http"
    INVALID = "invalid"


class FetchError(Exception):
    def __init__(self, cause: FetchFailure, message: str):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class CacheEntry:
    snapshot: Dict[str, Any]
    fetched_at: float


class AggregateAPI:
    def __init__(
        self,
        *,
        url: str = AGGREGATE_URL,
        is_there_wan_url: str = IS_THERE_WAN_URL,
        user_agent: str = USER_AGENT,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        cache_seconds: float = CACHE_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.is_there_wan_url = is_there_wan_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.cache_seconds = cache_seconds

        self._transport = transport
        self._clock = clock
        self._cache: Optional[CacheEntry] = None
        self._inflight: Optional[asyncio.Future] = None

    # ------------------------------------------------------------

    @property
    def cache(self) -> Optional[CacheEntry]:
        return self._cache

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    def _fresh_entry(self) -> Optional[CacheEntry]:
        entry = self._cache
        if entry is None:
            return None
        if self._clock() - entry.fetched_at < self.cache_seconds:
            return entry
        return None

    # ------------------------------------------------------------
    # Uncached network call
    # ------------------------------------------------------------

    async def fetch_raw(self, force_fresh: bool = False) -> Dict[str, Any]:
        params = {"fast": "true" if force_fresh else "false"}

        try:
            async with self._client() as client:
                r = await client.get(self.url, params=params)
                r.raise_for_status()
                data = r.json()
        except httpx.TimeoutException as e:
            raise FetchError(FetchFailure.TIMEOUT, "request timed out") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                FetchFailure.HTTP,
                f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(FetchFailure.HTTP, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise FetchError(FetchFailure.INVALID, "response body is not JSON") from e

        problems = validate_aggregate(data)
        if problems:
            raise FetchError(FetchFailure.INVALID, "; ".join(problems))

        return data

    # ------------------------------------------------------------
    # Cached, failure-tolerant fetch
    # ------------------------------------------------------------

    async def fetch(self, force_fresh: bool = False) -> Optional[Dict[str, Any]]:
        if force_fresh:
            return await self._refresh(force_fresh=True)

        entry = self._fresh_entry()
        if entry is not None:
            return entry.snapshot

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._refresh(force_fresh=False))

        inflight = self._inflight
        try:
            # Shielded so a cancelled caller never aborts a shared request
            return await asyncio.shield(inflight)
        finally:
            if self._inflight is inflight and inflight.done():
                self._inflight = None

    async def _refresh(self, *, force_fresh: bool) -> Optional[Dict[str, Any]]:
        previous = self._cache.snapshot if self._cache else None

        try:
            data = await self.fetch_raw(force_fresh)
        except FetchError as e:
            if e.cause is FetchFailure.TIMEOUT:
                log.error("Aggregate API request timed out")
            elif e.cause is FetchFailure.INVALID:
                log.error(f"Invalid aggregate response structure received: {e}")
            else:
                log.error(f"Error fetching aggregate status: {e}")

            if previous is not None:
                log.debug("Falling back to last cached aggregate snapshot")
            return previous

        self._cache = CacheEntry(snapshot=data, fetched_at=self._clock())
        return data

    # ------------------------------------------------------------
    # Announcement endpoint
    # ------------------------------------------------------------

    async def fetch_is_there_wan(self) -> Optional[IsThereWan]:
        try:
            async with self._client() as client:
                r = await client.get(self.is_there_wan_url)
                if not r.is_success:
                    return None
                data = r.json()
        except httpx.TimeoutException:
            log.error("is-there-wan API request timed out")
            return None
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Error fetching is-there-wan: {e}")
            return None

        if _validation_errors(_IS_THERE_WAN_VALIDATOR, data):
            log.error("Invalid is-there-wan response structure received")
            return None

        timestamp = data.get("timestamp")
        return IsThereWan(
            text=data.get("text"),
            image=data.get("image"),
            timestamp=timestamp if isinstance(timestamp, int) else None,
        )
