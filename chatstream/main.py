# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chatstream.adapters.streaming import (
    FileChunkReader,
    StreamingAdapter,
    StreamState,
    read_chunks,
)
from chatstream.config import ProcessorConfig, load_config
from chatstream.core.exceptions import ConfigurationError, HistoryLoadError
from chatstream.history.loader import load_history_file
from chatstream.logging import configure_logging
from chatstream.messages.models import (
    AbortMessage,
    ChatMessage,
    ErrorMessage,
    Message,
    PlanMessage,
    ResultMessage,
    SystemMessage,
    ThinkingMessage,
    TodoMessage,
    ToolMessage,
    ToolResultMessage,
    message_to_dict,
)


console = Console()

app = typer.Typer(help="Replay assistant chat streams and history as UI messages.")

_TODO_MARKS = {"pending": "[ ]", "in_progress": "[~]", "completed": "[x]"}


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML configuration file"),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Minimum log level (overrides configuration)"),
    ] = None,
) -> None:
    """
    chatstream: message conversion for assistant chat streams.
    """
    config = _safe_load_config(config_path)
    configure_logging(log_level or config.log_level)
    ctx.obj = config


def _safe_load_config(config_path: Path | None) -> ProcessorConfig:
    """Load configuration, exiting with an error message on failure.

    Raises:
        typer.Exit: If the configuration file is missing or invalid.
    """
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    except (yaml.YAMLError, ConfigurationError, ValidationError) as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        raise typer.Exit(code=1) from None


def _describe(message: Message) -> tuple[str, str]:
    """Return a (label, detail) pair in rich markup for one message."""
    if isinstance(message, ChatMessage):
        style = "cyan" if message.role == "user" else "white"
        return f"[{style}]{message.role}[/{style}]", escape(message.content)
    if isinstance(message, ToolMessage):
        return "[yellow]tool[/yellow]", escape(message.content)
    if isinstance(message, ToolResultMessage):
        return (
            "[green]result[/green]",
            f"{escape(message.tool_name)}: {escape(message.summary)}",
        )
    if isinstance(message, ThinkingMessage):
        return "[dim]thinking[/dim]", f"[dim]{escape(message.content)}[/dim]"
    if isinstance(message, TodoMessage):
        items = "\n".join(
            f"{_TODO_MARKS[todo.status]} {escape(todo.content)}" for todo in message.todos
        )
        return "[magenta]todo[/magenta]", items
    if isinstance(message, PlanMessage):
        return "[magenta]plan[/magenta]", escape(message.plan)
    if isinstance(message, ErrorMessage):
        return "[red]error[/red]", escape(message.message)
    if isinstance(message, AbortMessage):
        return "[red]abort[/red]", escape(message.message)
    if isinstance(message, SystemMessage):
        model = getattr(message, "model", None)
        detail = message.subtype or ""
        if model:
            detail = f"{detail} ({model})"
        return "[blue]system[/blue]", escape(detail)
    if isinstance(message, ResultMessage):
        cost = getattr(message, "total_cost_usd", None)
        detail = message.subtype or ""
        if isinstance(cost, int | float):
            detail = f"{detail} ${cost:.4f}"
        return "[blue]result[/blue]", escape(detail)
    return message.type, ""


def _print_messages(messages: list[Message], json_output: bool, title: str) -> None:
    if json_output:
        for message in messages:
            typer.echo(json.dumps(message_to_dict(message), ensure_ascii=False))
        return

    if not messages:
        console.print("[yellow]No messages.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type")
    table.add_column("Content")
    for index, message in enumerate(messages, start=1):
        label, detail = _describe(message)
        table.add_row(str(index), label, detail)
    console.print(table)


async def _consume_file(adapter: StreamingAdapter, path: Path, chunk_size: int) -> list[Message]:
    with open(path, "rb") as f:
        return await adapter.consume(read_chunks(FileChunkReader(f), chunk_size))


@app.command()
def replay(
    ctx: typer.Context,
    history_file: Annotated[Path, typer.Argument(help="JSONL conversation history file")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print messages as JSON lines"),
    ] = False,
) -> None:
    """Convert a persisted conversation into display messages."""
    config: ProcessorConfig = ctx.obj
    try:
        history = load_history_file(history_file)
    except HistoryLoadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    messages = history.to_messages(config)
    _print_messages(messages, json_output, title=f"Session {history.session_id}")


@app.command()
def stream(
    ctx: typer.Context,
    frames_file: Annotated[Path, typer.Argument(help="NDJSON file of stream frames")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print messages as JSON lines"),
    ] = False,
) -> None:
    """Feed recorded stream frames through the live-stream adapter."""
    config: ProcessorConfig = ctx.obj
    if not frames_file.exists():
        typer.echo(f"Error: Stream file not found at {frames_file}", err=True)
        raise typer.Exit(code=1)

    session_ids: list[str] = []
    denials: list[tuple[str, list[str], str]] = []

    adapter = StreamingAdapter(
        config=config,
        on_session_id=session_ids.append,
        on_permission_error=lambda tool_name, patterns, tool_use_id: denials.append(
            (tool_name, patterns, tool_use_id)
        ),
    )
    messages = asyncio.run(_consume_file(adapter, frames_file, config.read_chunk_size))

    title = f"Session {session_ids[-1]}" if session_ids else "Stream"
    _print_messages(messages, json_output, title=title)

    if json_output:
        for tool_name, patterns, tool_use_id in denials:
            typer.echo(
                json.dumps(
                    {
                        "type": "permission_request",
                        "tool_name": tool_name,
                        "patterns": patterns,
                        "tool_use_id": tool_use_id,
                    }
                )
            )
        return

    for tool_name, patterns, tool_use_id in denials:
        console.print(
            f"[red]Permission needed[/red] for {escape(tool_name)} "
            f"([dim]{escape(tool_use_id)}[/dim]): {escape(', '.join(patterns))}"
        )
    if adapter.state == StreamState.ABORTED:
        console.print("[yellow]Request aborted.[/yellow]")
