from __future__ import annotations
from typing import Optional


class GenerationError(Exception):
    """Base class for every terminal failure surfaced by the completion client."""


class NetworkError(GenerationError):
    """
    Transport-level failure (connection refused, DNS, timeout) on the final
    permitted attempt. The underlying httpx exception is chained as __cause__.
    """


class ClientRequestError(GenerationError):
    """
    Non-retryable: the endpoint answered with a non-OK status other than 429/5xx
    (bad request, auth, unknown model...). The fix is change input/config, not retry.
    """

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        self.detail = detail
        msg = f"API request failed with status {status}"
        super().__init__(f"{msg}: {detail}" if detail else msg)


class MalformedResponse(GenerationError):
    """OK status, but no usable text at candidates[0].content.parts[0].text."""


class TransientExhausted(GenerationError):
    """Every permitted attempt hit a retryable status (429 or 5xx) or a network hiccup."""

    def __init__(self, attempts: int, last_status: Optional[int] = None):
        self.attempts = attempts
        self.last_status = last_status
        tail = f" (last status {last_status})" if last_status is not None else ""
        super().__init__(f"Generation failed after {attempts} attempts{tail}")


class Cancelled(GenerationError):
    """The caller's cancel signal fired during an attempt or a backoff wait."""
