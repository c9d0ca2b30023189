from __future__ import annotations
import asyncio
import uuid
from typing import List, Optional

from .ports import TextGenerator
from .request import GenerationRequest, Turn

GREETING = "Hello! I'm CollabBot. How can I help you with your projects or collaborations today?"

SYSTEM_PROMPT = (
    "You are 'CollabBot,' a helpful AI assistant for the CollabNest college portal. "
    "Your goal is to help students connect, find collaborators, and get tips on their projects. "
    "Be friendly, encouraging, and concise. Your name is CollabBot. "
    "If users need administrative help or support, they can contact collabnest.iilm@gmail.com."
)


class CollabBotSession:
    """
    One CollabBot conversation. History is kept in generateContent turn format and
    sent in full on every turn. A failed turn leaves the history as it was.
    """

    def __init__(
        self,
        client: TextGenerator,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        greeting: Optional[str] = GREETING,
        session_id: Optional[str] = None,
    ):
        self.client = client
        self.system_prompt = system_prompt
        self.session_id = session_id or uuid.uuid4().hex
        self._history: List[Turn] = [Turn("model", greeting)] if greeting else []
        self._lock = asyncio.Lock()

    @property
    def history(self) -> List[Turn]:
        return list(self._history)

    def _request(self) -> GenerationRequest:
        return GenerationRequest(contents=list(self._history), system_instruction=self.system_prompt)

    async def send(self, text: str, *, cancel: Optional[asyncio.Event] = None) -> str:
        if not text or not text.strip():
            raise ValueError("Empty message")

        async with self._lock:
            mark = len(self._history)
            self._history.append(Turn("user", text))
            try:
                reply = await self.client.generate(self._request(), cancel=cancel)
            except BaseException:
                # any failed turn, task cancellation included, leaves no trace
                del self._history[mark:]
                raise
            self._history.append(Turn("model", reply))
            return reply
