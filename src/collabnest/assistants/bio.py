from __future__ import annotations
import asyncio
from typing import Optional

from collabnest.core.ports import TextGenerator
from collabnest.core.request import GenerationRequest

SYSTEM_PROMPT = (
    "You are a helpful assistant writing a professional, first-person bio for a student's profile "
    "on a college collaboration portal. The bio should be 2-3 sentences long. "
    "Be friendly but professional."
)


def build_bio_request(keywords: str) -> GenerationRequest:
    return GenerationRequest.from_prompt(
        f'Generate a bio based on these keywords: "{keywords}"',
        system=SYSTEM_PROMPT,
    )


async def generate_bio(client: TextGenerator, keywords: str, *, cancel: Optional[asyncio.Event] = None) -> str:
    if not keywords or not keywords.strip():
        raise ValueError("Please enter a few keywords for the AI to write your bio")
    text = await client.generate(build_bio_request(keywords), cancel=cancel)
    return text.strip()
