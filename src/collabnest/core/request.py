from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

Role = Literal["user", "model"]


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass(frozen=True)
class GenerationRequest:
    """
    Payload for one generateContent call.
    The client never interprets these fields; to_payload() is sent verbatim.
    """
    contents: List[Turn]
    system_instruction: Optional[str] = None
    response_mime_type: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None
    extra_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_prompt(cls, prompt: str, *, system: Optional[str] = None, **kwargs: Any) -> "GenerationRequest":
        return cls(contents=[Turn("user", prompt)], system_instruction=system, **kwargs)

    def to_payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"contents": [t.to_payload() for t in self.contents]}
        if self.system_instruction:
            body["systemInstruction"] = {"role": "system", "parts": [{"text": self.system_instruction}]}

        config: Dict[str, Any] = dict(self.extra_config)
        if self.response_mime_type:
            config["responseMimeType"] = self.response_mime_type
        if self.response_schema is not None:
            config["responseSchema"] = self.response_schema
        if config:
            body["generationConfig"] = config
        return body


# Raw dicts are accepted too and forwarded untouched
RequestLike = Union[GenerationRequest, Dict[str, Any]]


def serialize_request(request: RequestLike) -> Dict[str, Any]:
    if isinstance(request, GenerationRequest):
        return request.to_payload()
    if isinstance(request, dict):
        return request
    raise TypeError(f"Unsupported request type: {type(request).__name__}")


def extract_text(body: Any) -> Optional[str]:
    """Return candidates[0].content.parts[0].text, or None when any hop is missing."""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None
