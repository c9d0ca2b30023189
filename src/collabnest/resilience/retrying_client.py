from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from collabnest.core.errors import (
    Cancelled,
    ClientRequestError,
    MalformedResponse,
    NetworkError,
    TransientExhausted,
)
from collabnest.core.request import RequestLike, extract_text, serialize_request

log = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY_MS = 1000
_DETAIL_LIMIT = 500

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class RetryState:
    """Per-call bookkeeping. Created fresh by every generate() and dropped when it returns."""
    max_retries: int
    attempt: int = 0
    delay_ms: int = DEFAULT_BASE_DELAY_MS

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt >= self.max_retries - 1

    def advance(self) -> None:
        # plain doubling: no jitter, no cap
        self.delay_ms *= 2
        self.attempt += 1


class OutcomeKind(str, Enum):
    OK = "ok"
    MALFORMED = "malformed"
    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class AttemptOutcome:
    kind: OutcomeKind
    text: Optional[str] = None
    status: Optional[int] = None
    detail: str = ""
    error: Optional[Exception] = None


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def _error_detail(resp: httpx.Response) -> str:
    """
    Best-effort description of an error body, for logs and ClientRequestError.detail.
    Falls back to raw text when the body isn't JSON, and to the reason phrase when empty.
    """
    try:
        body = resp.json()
    except ValueError:
        raw = resp.text.strip()
        return raw[:_DETAIL_LIMIT] if raw else resp.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        msg = body["error"].get("message")
        if msg:
            return str(msg)[:_DETAIL_LIMIT]
    return json.dumps(body, ensure_ascii=False)[:_DETAIL_LIMIT]


class RetryingCompletionClient:
    """
    One logical "generate text" call against a generateContent-style endpoint.

    - 429 and 5xx wait and retry; the delay starts at base_delay_ms and doubles.
    - Any other non-OK status raises ClientRequestError straight away.
    - OK without extractable text raises MalformedResponse straight away.
    - Transport errors are retried, except on the last attempt (NetworkError).
    - max_retries counts total attempts.

    Endpoint, key and timeouts are fixed at construction; calls share nothing else.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        *,
        model: str = "unknown",
        timeout: Optional[float] = 60.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self._api_key = api_key
        self._transport = transport
        self._sleep = sleep

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-goog-api-key"] = self._api_key
        return headers

    async def _attempt(self, http: httpx.AsyncClient, payload: Dict[str, Any]) -> AttemptOutcome:
        try:
            resp = await http.post(self.endpoint, json=payload, headers=self._headers())
        except httpx.DecodingError as e:
            # body arrived but could not be decoded (bad gzip, bad charset)
            return AttemptOutcome(OutcomeKind.MALFORMED, error=e, detail=str(e) or type(e).__name__)
        except httpx.RequestError as e:
            return AttemptOutcome(OutcomeKind.NETWORK_ERROR, error=e, detail=str(e) or type(e).__name__)

        status = resp.status_code
        if resp.is_success:
            try:
                body = resp.json()
            except ValueError:
                body = None
            text = extract_text(body)
            if text:
                return AttemptOutcome(OutcomeKind.OK, text=text, status=status)
            return AttemptOutcome(OutcomeKind.MALFORMED, status=status, detail=resp.text[:_DETAIL_LIMIT])

        if is_retryable_status(status):
            return AttemptOutcome(OutcomeKind.TRANSIENT, status=status)
        return AttemptOutcome(OutcomeKind.CLIENT_ERROR, status=status, detail=_error_detail(resp))

    async def _until_cancelled(self, aw: Awaitable[Any], cancel: Optional[asyncio.Event]) -> Any:
        """Await `aw`, aborting it early if `cancel` gets set."""
        if cancel is None:
            return await aw
        task = asyncio.ensure_future(aw)
        if cancel.is_set():
            task.cancel()
            raise Cancelled("Generation cancelled")

        waiter = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise Cancelled("Generation cancelled")

    async def generate(
        self,
        request: RequestLike,
        max_retries: Optional[int] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        limit = self.max_retries if max_retries is None else max_retries
        if limit < 1:
            raise ValueError("max_retries must be >= 1")

        payload = serialize_request(request)
        state = RetryState(max_retries=limit, delay_ms=self.base_delay_ms)
        last_status: Optional[int] = None

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as http:
            while state.attempt < state.max_retries:
                outcome: AttemptOutcome = await self._until_cancelled(self._attempt(http, payload), cancel)

                if outcome.kind is OutcomeKind.OK:
                    return outcome.text  # type: ignore[return-value]

                if outcome.kind is OutcomeKind.MALFORMED:
                    log.error("Generation API error: no text in response: %s", outcome.detail)
                    raise MalformedResponse("Invalid response from API: no text in candidates") from outcome.error

                if outcome.kind is OutcomeKind.CLIENT_ERROR:
                    log.error("Generation API error (status %s): %s", outcome.status, outcome.detail)
                    raise ClientRequestError(outcome.status or 0, outcome.detail)

                if outcome.kind is OutcomeKind.NETWORK_ERROR:
                    if state.is_last_attempt:
                        log.error("Network error calling generation API: %s", outcome.detail)
                        raise NetworkError(outcome.detail) from outcome.error
                    log.warning("Network error: %s. Retrying in %dms...", outcome.detail, state.delay_ms)
                else:
                    last_status = outcome.status
                    log.warning("Generation API status %s. Retrying in %dms...", outcome.status, state.delay_ms)

                await self._until_cancelled(self._sleep(state.delay_ms / 1000.0), cancel)
                state.advance()

        log.error("Generation API call failed after %d attempts", state.attempt)
        raise TransientExhausted(state.attempt, last_status)
