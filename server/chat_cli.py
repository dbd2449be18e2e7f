#!/usr/bin/env python3
"""
File Q&A Chat

Ask questions about a local text file, answered by the chat backend.

Usage:
    python chat_cli.py serve                      # Run the backend
    python chat_cli.py ask notes.txt "Question?"  # Ask one question
    python chat_cli.py chat notes.txt             # Interactive session
    python chat_cli.py chunks notes.txt           # Show how the file is chunked
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from config import settings
from functions.client import ChatSession
from functions.exceptions import ChatClientError
from functions.logging_config import get_logger, setup_logging
from functions.util import chunk_file_content

console = Console()

SUPPORTED_SUFFIXES = {".txt", ".md"}
EXIT_WORDS = {"exit", "quit", ":q"}


def setup_environment():
    """Initialize logging."""
    setup_logging(level=settings.log_level, log_file=settings.log_file)
    return get_logger("cli")


def read_document(path: Path) -> str:
    """Read a plain-text file the way a browser FileReader would."""
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise click.BadParameter(
            f"Only {', '.join(sorted(SUPPORTED_SUFFIXES))} files are supported",
            param_hint="FILE",
        )
    return path.read_text(encoding="utf-8", errors="replace")


def open_session(path: Path, backend_url: Optional[str]) -> ChatSession:
    session = ChatSession(base_url=backend_url)
    session.load_document(path.name, read_document(path))
    return session


def print_message(role: str, text: str) -> None:
    if role == "user":
        console.print(f"[bold blue]You:[/bold blue] {text}")
    else:
        console.print("[bold green]Assistant:[/bold green]")
        console.print(Markdown(text))


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """File Q&A Chat: ask questions about a text file."""
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default: HOST)")
@click.option("--port", default=None, type=int, help="Port to listen on (default: PORT)")
def serve(host: Optional[str], port: Optional[int]):
    """Run the chat backend."""
    import uvicorn

    logger = setup_environment()
    host = host or settings.host
    port = port or settings.port
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("main:app", host=host, port=port, log_level=settings.log_level.lower())


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("question")
@click.option("--backend", "backend_url", default=None, help="Backend base URL")
def ask(file: Path, question: str, backend_url: Optional[str]):
    """Ask a single QUESTION about FILE."""
    setup_environment()
    session = open_session(file, backend_url)

    try:
        answer = session.ask(question)
    except ChatClientError:
        console.print(f"[bold red]{session.last_error}[/bold red]")
        sys.exit(1)

    if answer is None:
        console.print("[bold red]Nothing to ask: the question or the file is empty.[/bold red]")
        sys.exit(1)
    console.print(Markdown(answer))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--backend", "backend_url", default=None, help="Backend base URL")
def chat(file: Path, backend_url: Optional[str]):
    """Chat about FILE until you type 'exit'."""
    setup_environment()
    session = open_session(file, backend_url)

    if not session.has_document:
        console.print("[bold red]The file is empty.[/bold red]")
        sys.exit(1)

    print_message("assistant", session.history[-1].text)
    while True:
        try:
            question = click.prompt("You", prompt_suffix="> ", default="", show_default=False)
        except (EOFError, click.Abort):
            break
        if question.strip().lower() in EXIT_WORDS:
            break
        try:
            answer = session.ask(question)
        except ChatClientError:
            console.print(f"[bold red]Error: {session.last_error}[/bold red]")
            continue
        if answer is not None:
            print_message("assistant", answer)

    console.print(f"\n[dim]{len(session.history)} messages in this session.[/dim]")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--max-size", default=None, type=click.IntRange(min=1), help="Soft maximum chunk length"
)
def chunks(file: Path, max_size: Optional[int]):
    """Show how FILE is split into chunks."""
    text = read_document(file)
    if max_size is None:
        max_size = settings.max_chunk_size
    file_chunks = chunk_file_content(text, max_size)

    table = Table(title=f"{file.name}: {len(file_chunks)} chunks")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Chars", style="green", justify="right")
    table.add_column("Text")
    for index, chunk in enumerate(file_chunks):
        table.add_row(str(index), str(len(chunk)), chunk)

    console.print(table)


if __name__ == "__main__":
    cli()
