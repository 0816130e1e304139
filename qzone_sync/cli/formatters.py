"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from qzone_sync.models.config import SyncConfig
from qzone_sync.models.stats import SyncStats
from qzone_sync.models.track import AlbumTrackRecord
from qzone_sync.utils.formatting import format_duration, format_size, format_timestamp

SENSITIVE_KEYS = ("cookie",)


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Copy a fresh cookie from a logged-in browser session.",
            "• Run `qzone-sync init` again with the new cookie.",
        ],
        "ConfigurationError": [
            "• Run `qzone-sync init <COOKIE> --save-path <DIR>` to create a config.",
            "• Or set QZONE_COOKIE and QZONE_SAVE_PATH in the environment.",
        ],
        "RemoteAPIError": [
            "• Your cookie may have expired. Run `qzone-sync init` again.",
            "• The album may be private or deleted.",
        ],
        "SyncStalledError": [
            "• The service kept returning the same page of photos.",
            "• Try again later; progress for the album was not recorded.",
        ],
        "TrackStoreError": [
            "• Check permissions on the save directory.",
            "• If track.json is corrupt, move it aside to resync from scratch.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The QZone service might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
        "TimeoutError": [
            "• A download timed out, which may indicate network throttling.",
            "• Try reducing the number of `--workers`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key in SENSITIVE_KEYS:
            value = "[hidden]" if value else ""
        elif isinstance(value, list):
            value = ", ".join(value)
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: SyncConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    selection = ", ".join(config.albums + config.album_ids) or "[dim]all albums[/dim]"

    table.add_row("Account:", f"[green]{config.credentials.uin}[/green]")
    table.add_row("Save Root:", str(config.save_root))
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row("Page Size:", str(config.page_size))
    table.add_row("Max Retries:", str(config.max_retries))
    table.add_row("Albums:", selection)

    console.print(
        Panel(
            table,
            title="[bold green]✓ Configuration is Valid[/bold green]",
            border_style="green",
            expand=False,
        )
    )


def print_track_table(track_path: Path, records: list[tuple[str, AlbumTrackRecord]]):
    """Displays the per-album checkpoints stored in the track file."""
    console = Console()
    if not records:
        console.print(f"[yellow]No albums have been synced yet ({track_path}).[/yellow]")
        return

    table = Table(
        title=f"Synced Albums ([dim]{track_path}[/dim])",
        box=box.ROUNDED,
        header_style="bold cyan",
    )
    table.add_column("Album ID", style="dim")
    table.add_column("Name")
    table.add_column("Last Synced Upload", justify="right")

    for album_id, record in sorted(records, key=lambda r: r[1].name):
        table.add_row(album_id, record.name, format_timestamp(record.last_synced_at))

    console.print(table)


def print_summary_panel(stats: SyncStats, duration: float):
    """Prints the end-of-run summary."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")

    table.add_row("Albums synced", f"[green]{stats.albums_synced}[/green]")
    table.add_row("Albums unchanged", f"[dim]{stats.albums_unchanged}[/dim]")
    table.add_row(
        "Albums failed",
        f"[red]{stats.albums_failed}[/red]" if stats.albums_failed else "0",
    )
    table.add_row("Items downloaded", f"[green]{stats.items_downloaded}[/green]")
    table.add_row(
        "Items failed",
        f"[red]{stats.items_failed}[/red]" if stats.items_failed else "0",
    )
    table.add_row("Downloaded size", format_size(stats.bytes_downloaded))
    table.add_row("Duration", format_duration(duration))

    if stats.failed_albums:
        table.add_row()
        table.add_row("[red]Failed albums[/red]", ", ".join(stats.failed_albums))

    border = "red" if stats.albums_failed or stats.items_failed else "green"
    console.print(
        Panel(table, title="[bold]Sync Summary[/bold]", border_style=border, expand=False)
    )
