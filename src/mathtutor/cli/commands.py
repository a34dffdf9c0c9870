"""CLI commands for mathtutor.

Commands:
- ask: Ask the math tutor a question (streamed by default)
- modes: List prompt modes
- nodes: List knowledge nodes with completion marks
- progress status|mark|unmark|reset|export|import: Manage lesson progress
"""

import os
from pathlib import Path

import httpx
import typer
from openai import APIConnectionError
from rich.console import Console

from mathtutor.config.app_config import AppConfig, load_app_config
from mathtutor.knowledge import build_context, find_node, load_knowledge_nodes
from mathtutor.llm.client import (
    ChatClient,
    ChatConfig,
    ConfigurationError,
    Message,
    ServiceError,
)
from mathtutor.progress import ProgressStore, SqliteStorage
from mathtutor.prompts.registry import (
    DEFAULT_MODE,
    UnknownPromptModeError,
    list_prompt_modes,
    register_prompt_mode,
)

app = typer.Typer(
    name="mathtutor",
    help="Math tutoring assistant: AI chat and lesson progress tracking.",
    no_args_is_help=True,
)

progress_app = typer.Typer(
    help="Track completed knowledge nodes.",
    no_args_is_help=True,
)
app.add_typer(progress_app, name="progress")

console = Console()


def _data_dir() -> Path:
    return Path(os.environ.get("MATHTUTOR_DATA_DIR", "data"))


def _load_config() -> AppConfig:
    """Load config from the data dir and register any configured modes."""
    config = load_app_config(
        _data_dir() / "config" / "app_config_v1.yaml",
        force_reload=True,
    )
    for mode, template in config.chat.prompt_modes.items():
        register_prompt_mode(mode, template, replace=True)
    return config


def _open_store(config: AppConfig) -> ProgressStore:
    """Create the progress store and load persisted state."""
    storage = SqliteStorage(_data_dir() / config.paths["state_db"])
    store = ProgressStore(
        storage,
        storage_key=config.progress.storage_key,
        total_nodes=config.progress.total_nodes,
    )
    result = store.load()
    if not result.success:
        console.print(f"[yellow]⚠ Could not load saved progress: {result.error}[/yellow]")
    return store


def _knowledge_file(config: AppConfig) -> Path:
    return _data_dir() / config.paths["knowledge_file"]


# =============================================================================
# CHAT COMMANDS
# =============================================================================


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the tutor"),
    mode: str = typer.Option(DEFAULT_MODE, "--mode", "-m", help="Prompt mode"),
    node_id: str | None = typer.Option(
        None, "--node", "-n", help="Knowledge node id to use as context"
    ),
    no_stream: bool = typer.Option(
        False, "--no-stream", help="Wait for the full reply instead of streaming"
    ),
) -> None:
    """Ask the math tutor a question."""
    config = _load_config()

    context = None
    if node_id:
        nodes = load_knowledge_nodes(_knowledge_file(config))
        node = find_node(nodes, node_id)
        if node is None:
            console.print(f"[red]✗ Knowledge node not found: {node_id}[/red]")
            raise typer.Exit(code=1)
        context = build_context(node, nodes)

    client = ChatClient(ChatConfig.from_settings(config.chat))
    messages = [Message(role="user", content=question)]

    try:
        if no_stream:
            reply = client.complete(messages, mode=mode, context=context)
            console.print(reply, markup=False, highlight=False)
        else:
            client.complete_streaming(
                messages,
                mode=mode,
                context=context,
                on_fragment=lambda f: console.print(
                    f, end="", markup=False, highlight=False
                ),
            )
            console.print()

    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        if config.chat.api_key_env:
            console.print(f"  [dim]Set the {config.chat.api_key_env} environment variable[/dim]")
        raise typer.Exit(code=1)

    except UnknownPromptModeError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    except ServiceError as e:
        console.print(f"[red]✗ Service error: {e}[/red]")
        raise typer.Exit(code=1)

    except (APIConnectionError, httpx.TransportError) as e:
        console.print(f"[red]✗ Could not reach {config.chat.base_url}: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def modes() -> None:
    """List available prompt modes."""
    _load_config()
    for mode in list_prompt_modes():
        marker = " [dim](default)[/dim]" if mode == DEFAULT_MODE else ""
        console.print(f"  [bold]{mode}[/bold]{marker}")


@app.command()
def nodes() -> None:
    """List knowledge nodes and their completion status."""
    config = _load_config()
    all_nodes = load_knowledge_nodes(_knowledge_file(config))

    if not all_nodes:
        console.print("[yellow]No knowledge nodes found[/yellow]")
        console.print(f"  [dim]Expected file:[/dim] {_knowledge_file(config)}")
        return

    store = _open_store(config)
    console.print(f"\n[bold]Knowledge nodes ({len(all_nodes)}):[/bold]\n")
    for node in all_nodes:
        mark = "[green]✓[/green]" if store.is_completed(node.id) else " "
        console.print(f"  {mark} [bold]{node.id}[/bold]  {node.name}")


# =============================================================================
# PROGRESS COMMANDS
# =============================================================================


@progress_app.command()
def status() -> None:
    """Show completion count and percentage."""
    store = _open_store(_load_config())

    console.print(
        f"\n[bold]Progress:[/bold] {store.completed_count}/{store.total_nodes} "
        f"({store.progress_percent}%)"
    )
    for node_id, record in sorted(store.node_progress.items()):
        console.print(f"  [green]✓[/green] {node_id}  [dim]{record.completed_at}[/dim]")


@progress_app.command()
def mark(node_id: str = typer.Argument(..., help="Knowledge node id")) -> None:
    """Mark a knowledge node as completed."""
    store = _open_store(_load_config())
    result = store.mark_completed(node_id)

    console.print(f"[green]✓ Completed:[/green] {node_id}")
    if not result.success:
        console.print(f"[yellow]⚠ Progress not saved: {result.error}[/yellow]")


@progress_app.command()
def unmark(node_id: str = typer.Argument(..., help="Knowledge node id")) -> None:
    """Clear completion for a knowledge node."""
    store = _open_store(_load_config())
    result = store.unmark_completed(node_id)

    console.print(f"[green]✓ Cleared:[/green] {node_id}")
    if not result.success:
        console.print(f"[yellow]⚠ Progress not saved: {result.error}[/yellow]")


@progress_app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete all recorded progress."""
    store = _open_store(_load_config())

    if not yes:
        confirm = typer.confirm(f"Delete progress for {store.completed_count} nodes?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(code=0)

    result = store.reset()
    if not result.success:
        console.print(f"[red]✗ Progress not saved: {result.error}[/red]")
        raise typer.Exit(code=1)
    console.print("[green]✓ Progress reset[/green]")


@progress_app.command(name="export")
def export_progress(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write snapshot to file instead of stdout"
    ),
) -> None:
    """Export progress as a JSON snapshot."""
    store = _open_store(_load_config())
    snapshot = store.export_snapshot()

    if output is None:
        typer.echo(snapshot)
        return

    output.write_text(snapshot + "\n", encoding="utf-8")
    console.print(f"[green]✓ Exported {store.completed_count} nodes to {output}[/green]")


@progress_app.command(name="import")
def import_progress(
    file: Path = typer.Argument(..., help="Snapshot file produced by export"),
) -> None:
    """Replace progress with a JSON snapshot."""
    if not file.exists():
        console.print(f"[red]✗ File not found: {file}[/red]")
        raise typer.Exit(code=1)

    store = _open_store(_load_config())
    if not store.import_snapshot(file.read_text(encoding="utf-8")):
        console.print(f"[red]✗ Invalid progress snapshot: {file}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓ Imported {store.completed_count} nodes "
        f"({store.progress_percent}%)[/green]"
    )


if __name__ == "__main__":
    app()
