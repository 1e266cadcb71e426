"""
StyleChat CLI

Command-line interface for the StyleChat API.

Usage:
    stylechat serve                               # Run the API server
    stylechat chat --user-id u1                   # Interactive REPL mode
    stylechat ask "Beach wedding outfit?" -u u1   # Single message mode
    stylechat ask -u u1 --image look.jpg          # Outfit feedback on an image
    stylechat history -u u1                       # Show the stored transcript
"""

import base64
import logging
import mimetypes
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import click
import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from stylechat import __version__

console = Console()
API_BASE_URL = os.getenv("STYLECHAT_API_URL", "http://localhost:3000")
REQUEST_TIMEOUT = 120.0
IMAGE_COMMAND = "/image"


def configure_cli_logging() -> None:
    logging.disable(logging.CRITICAL)
    for logger_name in ("stylechat", "httpx"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def _should_exit_chat(text: str) -> bool:
    return text.strip().lower() in {"exit", "quit", "q", "bye", "goodbye"}


def _guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def _parse_repl_input(text: str) -> tuple[str | None, Path | None]:
    """
    Split a REPL line into message and optional image path.

    ``/image path/to/look.jpg optional message`` attaches an image.
    """
    stripped = text.strip()
    if not stripped.startswith(IMAGE_COMMAND):
        return stripped, None
    remainder = stripped[len(IMAGE_COMMAND):].strip()
    if not remainder:
        raise click.ClickException(f"Usage: {IMAGE_COMMAND} PATH [message]")
    path_text, _, message = remainder.partition(" ")
    return (message.strip() or None), Path(path_text).expanduser()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)


def send_message(user_id: str, message: str | None, image_path: Path | None = None) -> str:
    """Send one interaction to the API and return the reply text."""
    data: dict[str, Any] = {"userId": user_id}
    if message:
        data["message"] = message

    files = None
    if image_path is not None:
        if not image_path.is_file():
            raise click.ClickException(f"Image not found: {image_path}")
        files = {
            "image": (image_path.name, image_path.read_bytes(), _guess_mime_type(image_path))
        }

    response = httpx.post(
        f"{API_BASE_URL}/api/v1/chat",
        data=data,
        files=files,
        timeout=REQUEST_TIMEOUT,
    )
    if response.status_code != 200:
        raise click.ClickException(_error_message(response))
    return response.json()["response"]


def _print_reply(reply: str) -> None:
    console.print(Panel(Markdown(reply), title="[bold magenta]Stylist[/bold magenta]"))


def _describe_part(part: dict[str, Any]) -> str:
    if "text" in part:
        return part["text"]
    size = len(base64.b64decode(part.get("data", "")))
    return f"[image: {part.get('mimeType', 'unknown')}, {size} bytes]"


@click.group()
@click.version_option(version=__version__, prog_name="StyleChat")
def cli():
    """StyleChat - Virtual fashion designer with persistent conversations."""
    configure_cli_logging()


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind host.")
@click.option("--port", default=3000, show_default=True, type=int, help="Bind port.")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API server with uvicorn."""
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "stylechat.api.main:app",
        "--host",
        host,
        "--port",
        str(port),
    ]
    if reload:
        cmd.append("--reload")
    console.print(f"[cyan]Starting API:[/cyan] {' '.join(cmd)}")
    raise SystemExit(subprocess.call(cmd))


@cli.command()
@click.option("--user-id", "-u", required=True, help="Conversation owner id.")
@click.option(
    "--image",
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Outfit photo attached to the first message.",
)
def chat(user_id: str, image_path: Path | None):
    """Interactive REPL mode for conversations."""
    console.print(
        Panel.fit(
            "[bold magenta]StyleChat Interactive Mode[/bold magenta]\n"
            f"Ask for style advice. Use '{IMAGE_COMMAND} PATH \\[message]' to attach an outfit photo.\n"
            "Type 'exit' or 'quit' to leave.",
            border_style="magenta",
        )
    )

    while True:
        try:
            text = console.input("[bold cyan]You:[/bold cyan] ")
        except (KeyboardInterrupt, EOFError):
            console.print("\n[yellow]Goodbye![/yellow]")
            break

        if not text.strip():
            continue
        if _should_exit_chat(text):
            console.print("\n[yellow]Goodbye![/yellow]")
            break

        try:
            message, attached = _parse_repl_input(text)
            attached = attached or image_path
            with console.status("[cyan]Styling...[/cyan]", spinner="dots"):
                reply = send_message(user_id, message, attached)
        except click.ClickException as e:
            console.print(f"[red]Error: {e.message}[/red]")
            continue
        except httpx.HTTPError as e:
            console.print(f"[red]Error contacting API: {e}[/red]")
            continue

        image_path = None
        _print_reply(reply)


@cli.command()
@click.argument("message", required=False)
@click.option("--user-id", "-u", required=True, help="Conversation owner id.")
@click.option(
    "--image",
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Outfit photo to attach.",
)
def ask(message: str | None, user_id: str, image_path: Path | None):
    """Send a single message (and/or image) and exit."""
    if not message and image_path is None:
        raise click.UsageError("Provide a MESSAGE, an --image, or both.")
    try:
        reply = send_message(user_id, message, image_path)
    except httpx.HTTPError as e:
        console.print(f"[red]Error contacting API: {e}[/red]")
        sys.exit(1)
    _print_reply(reply)


@cli.command()
@click.option("--user-id", "-u", required=True, help="Conversation owner id.")
def history(user_id: str):
    """Show the stored conversation transcript."""
    try:
        response = httpx.get(
            f"{API_BASE_URL}/api/v1/conversations/{user_id}", timeout=15.0
        )
    except httpx.HTTPError as e:
        console.print(f"[red]Error contacting API: {e}[/red]")
        sys.exit(1)

    if response.status_code == 404:
        console.print(f"[yellow]No conversation stored for {user_id}.[/yellow]")
        return
    if response.status_code != 200:
        console.print(f"[red]Failed to fetch history: {_error_message(response)}[/red]")
        sys.exit(1)

    data = response.json()
    for index, turn in enumerate(data.get("history", [])):
        body = "\n".join(_describe_part(part) for part in turn.get("parts", []))
        if index == 0:
            title = "[dim]persona[/dim]"
        elif turn.get("role") == "model":
            title = "[bold magenta]stylist[/bold magenta]"
        else:
            title = "[bold cyan]you[/bold cyan]"
        console.print(Panel(Text(body), title=title))
    console.print(f"[dim]{data.get('turnCount', 0)} turns, updated {data.get('updatedAt')}[/dim]")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
