from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from collabnest.core.errors import MalformedResponse
from collabnest.core.ports import TextGenerator
from collabnest.core.request import GenerationRequest

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an AI assistant helping a student find project collaborators from a university directory. "
    "Your task is to analyze a project description and a list of user profiles. "
    "Return a JSON array of the top 3-5 best matches. For each match, provide their `userId`, "
    "a brief `reason` (1-2 sentences) why they are a good match, and their `name`. "
    "Do not match the user with themselves. If no good matches are found, return an empty array."
)

MATCH_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "userId": {"type": "STRING"},
            "name": {"type": "STRING"},
            "reason": {"type": "STRING"},
        },
    },
}


class MatcherResponseError(MalformedResponse):
    """The model answered, but not with the JSON array the schema asked for."""


@dataclass(frozen=True)
class UserProfile:
    uid: str
    name: str
    role: str = ""
    bio: str = ""
    skills: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UserProfile":
        uid = d.get("uid") or d.get("userId") or d.get("id")
        if not uid:
            raise ValueError(f"User profile without uid: {d!r}")
        skills = d.get("skills") or []
        if isinstance(skills, str):
            skills = [s.strip() for s in skills.split(",") if s.strip()]
        return cls(
            uid=str(uid),
            name=str(d.get("name") or ""),
            role=str(d.get("role") or ""),
            bio=str(d.get("bio") or ""),
            skills=[str(s) for s in skills],
        )

    def summary(self) -> str:
        return (
            f"User ID: {self.uid}\n"
            f"Name: {self.name}\n"
            f"Role: {self.role}\n"
            f"Bio: {self.bio or 'N/A'}\n"
            f"Skills: {', '.join(self.skills)}\n"
        )


@dataclass(frozen=True)
class Match:
    user_id: str
    name: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"userId": self.user_id, "name": self.name, "reason": self.reason}


def load_profiles(path: Path) -> List[UserProfile]:
    """Read a YAML or JSON list of user profiles (a top-level `users:` key is accepted too)."""
    if not path.exists():
        raise FileNotFoundError(f"Users file not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    if isinstance(raw, dict):
        raw = raw.get("users") or []
    if not isinstance(raw, list):
        raise ValueError(f"Users file must hold a list of profiles: {path}")
    return [UserProfile.from_dict(d) for d in raw]


def summarize_profiles(users: Iterable[UserProfile]) -> str:
    return "\n---\n".join(u.summary() for u in users)


def build_match_request(project_description: str, users: List[UserProfile]) -> GenerationRequest:
    prompt = (
        f'Here is my project description:\n"{project_description}"\n\n'
        f"Here is the list of available users:\n{summarize_profiles(users)}\n\n"
        "Return the JSON array of top matches."
    )
    return GenerationRequest.from_prompt(
        prompt,
        system=SYSTEM_PROMPT,
        response_mime_type="application/json",
        response_schema=MATCH_SCHEMA,
    )


def parse_matches(text: str, exclude_user_id: Optional[str] = None) -> List[Match]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise MatcherResponseError(f"Matcher response is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise MatcherResponseError("Matcher response is not a JSON array")

    matches: List[Match] = []
    for item in data:
        if not isinstance(item, dict) or not item.get("userId"):
            log.warning("Skipping malformed match entry: %r", item)
            continue
        user_id = str(item["userId"])
        if user_id == exclude_user_id:
            continue
        matches.append(Match(user_id=user_id, name=str(item.get("name") or ""), reason=str(item.get("reason") or "")))
    return matches


class ProjectMatcher:
    """Ranks directory users against a project description via a schema-constrained call."""

    def __init__(self, client: TextGenerator):
        self.client = client

    async def find_matches(
        self,
        project_description: str,
        users: Iterable[UserProfile],
        current_user_id: Optional[str] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[Match]:
        if not project_description or not project_description.strip():
            raise ValueError("Please describe your project to find matches")

        candidates = [u for u in users if u.uid != current_user_id]
        if not candidates:
            log.info("No other users in the directory to match with")
            return []

        text = await self.client.generate(build_match_request(project_description, candidates), cancel=cancel)
        return parse_matches(text, exclude_user_id=current_user_id)
