from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from collabnest.bootstrap import build_app
from collabnest.core.chat_session import CollabBotSession
from collabnest.core.errors import (
    Cancelled,
    ClientRequestError,
    GenerationError,
    NetworkError,
    TransientExhausted,
)
from collabnest.assistants.bio import generate_bio
from collabnest.assistants.matcher import ProjectMatcher, UserProfile


class ChatRequest(BaseModel):
    session_id: Optional[str] = None
    message: str


class ProfileIn(BaseModel):
    uid: str
    name: str = ""
    role: str = ""
    bio: str = ""
    skills: List[str] = Field(default_factory=list)


class MatchRequest(BaseModel):
    project_description: str
    users: List[ProfileIn]
    current_user_id: Optional[str] = None


class BioRequest(BaseModel):
    keywords: str


def _http_error(e: GenerationError) -> HTTPException:
    if isinstance(e, ClientRequestError):
        return HTTPException(status_code=502, detail=f"Upstream rejected the request ({e.status}): {e.detail}")
    if isinstance(e, (TransientExhausted, NetworkError, Cancelled)):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


def create_app(config_path: Path, *, client: Any = None) -> FastAPI:
    """
    JSON API over the three AI features. `client` overrides the configured one (tests).
    """
    config_path = Path(config_path)
    ctx = build_app(config_path, with_client=client is None)
    cfg = ctx["cfg"]
    client = client if client is not None else ctx["client"]

    app = FastAPI(title="CollabNest AI")
    app.state.cfg = cfg
    app.state.client = client
    app.state.sessions: Dict[str, CollabBotSession] = {}
    app.state.lock = asyncio.Lock()

    @app.exception_handler(RequestValidationError)
    async def _bad_request(_request: Request, exc: RequestValidationError):
        # malformed bodies are plain bad input here, not 422
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    async def _get_session(session_id: Optional[str]) -> CollabBotSession:
        async with app.state.lock:
            session = app.state.sessions.get(session_id) if session_id else None
            if session is None:
                # Unknown or missing id: start a fresh conversation
                session = CollabBotSession(app.state.client)
                app.state.sessions[session.session_id] = session
            return session

    @app.get("/api/config")
    async def api_config():
        return JSONResponse(
            {
                "provider": cfg["model"]["provider"],
                "model": cfg["model"]["name"],
                "max_retries": getattr(client, "max_retries", None),
            }
        )

    @app.post("/api/chat")
    async def api_chat(req: ChatRequest):
        if not req.message.strip():
            raise HTTPException(status_code=400, detail="Empty message")
        session = await _get_session(req.session_id)
        try:
            reply = await session.send(req.message)
        except GenerationError as e:
            raise _http_error(e)
        return JSONResponse({"session_id": session.session_id, "reply": reply})

    @app.post("/api/match")
    async def api_match(req: MatchRequest):
        users = [UserProfile(uid=u.uid, name=u.name, role=u.role, bio=u.bio, skills=list(u.skills)) for u in req.users]
        try:
            matches = await ProjectMatcher(app.state.client).find_matches(
                req.project_description, users, current_user_id=req.current_user_id
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except GenerationError as e:
            raise _http_error(e)
        return JSONResponse({"matches": [m.to_dict() for m in matches]})

    @app.post("/api/bio")
    async def api_bio(req: BioRequest):
        try:
            text = await generate_bio(app.state.client, req.keywords)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except GenerationError as e:
            raise _http_error(e)
        return JSONResponse({"bio": text})

    return app


def run(
    *,
    config: Path,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    import uvicorn

    app = create_app(config)
    uvicorn.run(app, host=host, port=port)
