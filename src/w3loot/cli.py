"""
w3loot CLI - Command Line Interface for Warcraft III replays

Provides commands for:
- Parsing replays and listing container loot
- Showing configuration and reference data status
- Serving the upload API
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from w3loot import __version__
from w3loot.core.config import config_to_dict, configure_logging, get_config
from w3loot.infra.parallel import analyze_batch
from w3loot.infra.reference import ReferenceData, load_reference_data

app = typer.Typer(
    name="w3loot",
    help="Warcraft III replay loot viewer - container loot, chat and map checks",
    add_completion=False,
)
console = Console()

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]w3loot[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output"
    )
) -> None:
    """w3loot - Warcraft III Replay Loot Viewer"""
    configure_logging(get_config().logging)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _load_reference() -> ReferenceData:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Loading item catalog and map allowlist...", total=None)
        reference = load_reference_data()

    if not reference.catalog.available:
        console.print(
            f"[yellow]Warning:[/yellow] item catalog unavailable ({reference.catalog.error}); "
            "loot lines cannot be resolved"
        )
    return reference


def _colored(name: str, hex_color: str) -> str:
    return f"[{hex_color}]{escape(name)}[/]" if hex_color else escape(name)


def _display_result(name: str, result: dict[str, Any], show_chat: bool) -> None:
    """Print one replay from its JSON form."""
    game = result["gameData"]
    players = result["playerData"]

    info_table = Table(title=name, show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    info_table.add_row("Game", escape(game["gameName"]))
    info_table.add_row("Map", escape(game["map"]))
    info_table.add_row("Host", escape(game["host"]))
    info_table.add_row("Version", game["version"])
    info_table.add_row("Length", game["length"])
    info_table.add_row("Valid Map", "[green]yes[/green]" if game["validMap"] else "[red]no[/red]")
    names = ", ".join(p["convertedName"] or p["playerName"] for p in players)
    info_table.add_row("Players", escape(names))
    console.print(info_table)

    loot_table = Table(title=f"Loot ({len(result['loots'])})")
    loot_table.add_column("Time", style="cyan")
    loot_table.add_column("Player")
    loot_table.add_column("Item", style="green")
    for loot in result["loots"]:
        loot_table.add_row(
            loot["time"], _colored(loot["player"], loot["color"]), escape(loot["item"])
        )
    console.print(loot_table)

    if show_chat:
        chat_table = Table(title=f"Chat ({len(result['chatData'])})")
        chat_table.add_column("Time", style="cyan")
        chat_table.add_column("Mode", style="dim")
        chat_table.add_column("Player")
        chat_table.add_column("Message")
        for line in result["chatData"]:
            chat_table.add_row(
                line["time"],
                line["mode"],
                _colored(line["player"], line["color"]),
                escape(line["message"]),
            )
        console.print(chat_table)

    console.print()


@app.command()
def parse(
    replays: list[Path] = typer.Argument(
        ...,
        help="One or more .w3g replay files",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    player: Optional[str] = typer.Option(
        None,
        "--player",
        "-p",
        help="Only show loot of players whose name contains this text"
    ),
    map_name: Optional[str] = typer.Option(
        None,
        "--map",
        "-m",
        help="Only show replays whose map path contains this text"
    ),
    message: Optional[str] = typer.Option(
        None,
        "--message",
        help="Only show replays with a chat message containing this text"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write results as JSON to this file instead of printing tables"
    ),
    chat: bool = typer.Option(
        False,
        "--chat",
        "-c",
        help="Also print the chat transcript"
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Worker threads for several replays (default from config)"
    ),
) -> None:
    """
    Parse replays and list the items looted from containers.
    """
    reference = _load_reference()
    max_workers = workers or get_config().parallel.max_workers

    batch = analyze_batch(
        replays,
        reference,
        username=player,
        map_name=map_name,
        message=message,
        max_workers=max_workers,
    )

    if output:
        if len(replays) == 1 and batch.matched_results:
            payload = batch.results[0].analysis_data
        else:
            payload = batch.to_dict()
        with open(output, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        console.print(f"[green]Results exported to:[/green] {output}")
    else:
        for entry in batch.matched_results:
            _display_result(Path(entry.replay_path).name, entry.analysis_data, chat)

    skipped = batch.successful - len(batch.matched_results)
    if skipped:
        console.print(f"[dim]{skipped} replay(s) did not match the map or message filter[/dim]")

    for entry in batch.results:
        if not entry.success:
            console.print(
                f"[red]Error parsing {escape(entry.replay_path)}:[/red] "
                f"{escape(entry.error_message or '')}"
            )

    if batch.failed:
        raise typer.Exit(1)


@app.command()
def info() -> None:
    """Show configuration and reference data status."""
    config = get_config()

    config_table = Table(title="Configuration", show_header=False)
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")
    for section, values in config_to_dict(config).items():
        if isinstance(values, dict):
            for key, value in values.items():
                config_table.add_row(f"{section}.{key}", str(value))
        else:
            config_table.add_row(section, str(values))
    console.print(config_table)

    status = _load_reference().status()
    ref_table = Table(title="Reference Data")
    ref_table.add_column("Source", style="cyan")
    ref_table.add_column("Available")
    ref_table.add_column("Entries")
    ref_table.add_column("Error", style="red")
    for name, key in (("Item catalog", "catalog"), ("Map allowlist", "allowlist")):
        entry = status[key]
        count = entry.get("items", entry.get("entries", 0))
        available = "[green]yes[/green]" if entry["available"] else "[red]no[/red]"
        ref_table.add_row(name, available, str(count), entry["error"] or "")
    console.print(ref_table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker processes"),
) -> None:
    """Start the replay upload web server."""
    from w3loot.server import run_server

    run_server(host=host, port=port, reload=reload, workers=workers)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
