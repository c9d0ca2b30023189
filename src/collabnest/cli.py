from __future__ import annotations
import asyncio
import json
from pathlib import Path
from typing import NoReturn, Optional

import typer

from .bootstrap import build_app
from .config_loader import ConfigError
from .core.chat_session import CollabBotSession
from .core.errors import GenerationError
from .assistants.bio import generate_bio
from .assistants.matcher import ProjectMatcher, load_profiles

app = typer.Typer(add_completion=False, help="CollabNest AI helpers: CollabBot chat, project matcher, bio writer.")

DEFAULT_CONFIG = Path("config/default.yaml")


def _client(config: Path, log_level: Optional[str]):
    try:
        return build_app(config, log_level=log_level)["client"]
    except (ConfigError, FileNotFoundError) as e:
        typer.echo(f"[config] {e}", err=True)
        raise typer.Exit(code=2)


def _fail(e: Exception) -> NoReturn:
    typer.echo(f"[error] {e}", err=True)
    raise typer.Exit(code=1)


async def _repl(session: CollabBotSession) -> None:
    print(session.history[0].text if session.history else "CollabBot ready.")
    print("Type /help for commands. Ctrl+C to quit.")
    while True:
        try:
            user_input = input("You> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            return

        if user_input in ("/exit", "/quit"):
            print("Bye.")
            return
        if user_input == "/help":
            print("Commands: /help, /id, /exit, /quit")
            continue
        if user_input == "/id":
            print(session.session_id)
            continue
        if not user_input:
            continue

        try:
            reply = await session.send(user_input)
        except GenerationError as e:
            # turn was rolled back; the conversation can go on
            print(f"[error] Sorry, I couldn't get a response from the assistant. {e}")
            continue
        print(f"CollabBot> {reply}")


@app.command()
def chat(
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    """Talk to CollabBot."""
    client = _client(config, log_level)
    asyncio.run(_repl(CollabBotSession(client)))


@app.command()
def match(
    project: str = typer.Option(..., "--project", "-p", help="Project description"),
    users: Path = typer.Option(..., "--users", "-u", help="YAML/JSON list of user profiles"),
    me: Optional[str] = typer.Option(None, "--me", help="Your user id; never matched with yourself"),
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    """Find collaborators for a project among the given user profiles."""
    client = _client(config, log_level)
    try:
        profiles = load_profiles(users)
        matches = asyncio.run(ProjectMatcher(client).find_matches(project, profiles, current_user_id=me))
    except (GenerationError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if not matches:
        print("No matches found.")
        return
    print(json.dumps([m.to_dict() for m in matches], indent=2, ensure_ascii=False))


@app.command()
def bio(
    keywords: str = typer.Argument(..., help="A few keywords describing you"),
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    """Write a short first-person profile bio from keywords."""
    client = _client(config, log_level)
    try:
        print(asyncio.run(generate_bio(client, keywords)))
    except (GenerationError, ValueError) as e:
        _fail(e)


@app.command()
def serve(
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Serve the JSON API."""
    from .web.app import run

    run(config=config, host=host, port=port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
