from __future__ import annotations
import asyncio
from typing import Optional, Protocol

from .request import RequestLike


class TextGenerator(Protocol):
    """
    Interface the feature services use to talk to a generative-text backend.
    """

    # Optional: surface the model name for logging/headers
    model: str

    async def generate(
        self,
        request: RequestLike,
        max_retries: Optional[int] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Returns the generated text, or raises one of the GenerationError subclasses.
        """
        ...
