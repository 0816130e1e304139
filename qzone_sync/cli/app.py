"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from qzone_sync import __version__
from qzone_sync.api.auth import CookieCredentials
from qzone_sync.api.client import QzoneAPIClient
from qzone_sync.core.album_sync import AlbumSyncEngine
from qzone_sync.core.sync_driver import SyncDriver
from qzone_sync.exceptions import AuthenticationError, QzoneSyncError
from qzone_sync.media.store import LocalMediaStore
from qzone_sync.models.config import SyncConfig
from qzone_sync.models.stats import SyncStats
from qzone_sync.storage.config_manager import ConfigManager
from qzone_sync.storage.track_store import TrackStore

from .formatters import (
    print_config,
    print_summary_panel,
    print_track_table,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("qzone_sync")

app = typer.Typer(
    name="qzone-sync",
    help=(
        "Incrementally mirror your QZone photo albums to a local folder. Use"
        " 'qzone-sync <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "qzone-sync"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"

EXIT_INTERRUPTED = 130
INTERRUPTED_MESSAGE = (
    "\n[yellow]⚠️  Sync interrupted.[/yellow] Albums that finished were recorded "
    "in track.json; run `qzone-sync sync` again to resume the rest."
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """QZone Album Sync CLI"""
    if version:
        console.print(f"[bold]qzone-sync[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("qzone_sync").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]qzone-sync init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_data = ConfigManager(CONFIG_FILE).read_config_dict()
        print_config(CONFIG_FILE, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    cookie: str = typer.Argument(
        ...,
        help="The Cookie header of a logged-in user.qzone.qq.com session.",
        metavar="<COOKIE>",
    ),
    save_path: Path = typer.Option(  # noqa: B008
        ..., "--save-path", "-p", help="Directory the albums are mirrored into."
    ),
    workers: int = typer.Option(
        8, "--workers", "-w", help="Number of simultaneous downloads."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Initialize configuration with a QZone cookie and save path."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        uin = CookieCredentials.from_cookie_header(cookie).uin
    except AuthenticationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    config_manager = ConfigManager(CONFIG_FILE)
    config_manager.save_new_config(
        {
            "cookie": cookie,
            "save_path": str(save_path.expanduser().resolve()),
            "max_workers": workers,
        }
    )
    console.print(f"[green]✓ Cookie accepted for account {uin}.[/green]")
    console.print(
        f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]"
    )
    console.print("Ready to sync! Try: [cyan]qzone-sync sync[/cyan]")


async def run_sync(config: SyncConfig) -> SyncStats:
    """Builds the collaborators from ``config`` and runs one full sync."""
    track_store = TrackStore(config.track_file_path)
    track_store.load()
    log.debug(f"Loaded {len(track_store)} album records from {track_store.path}")

    async with QzoneAPIClient(
        config.credentials, config.max_workers, config.max_retries
    ) as api_client:
        engine = AlbumSyncEngine(
            api_client,
            LocalMediaStore(),
            track_store,
            config.save_root,
            max_workers=config.max_workers,
            page_size=config.page_size,
        )
        driver = SyncDriver.from_config(config, api_client, engine, track_store)
        return await driver.run()


@app.command(name="sync")
def sync_command(
    albums: list[str] | None = typer.Option(  # noqa: B008
        None, "--album", "-a", help="Sync only the album with this exact name."
    ),
    album_ids: list[str] | None = typer.Option(  # noqa: B008
        None, "--album-id", help="Sync only the album with this id."
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous downloads (default 8, override default in config).",
    ),
):
    """Download new photos and videos from your albums."""
    cli_options = {
        key: value
        for key, value in {
            "albums": albums,
            "album_ids": album_ids,
            "max_workers": workers,
        }.items()
        if value
    }

    config = ConfigManager(CONFIG_FILE).load_config(cli_options)
    console.print(
        f"[bold cyan]📷 Syncing albums of {config.credentials.uin} into "
        f"{config.save_root}...[/bold cyan]"
    )

    start_time = time.monotonic()
    try:
        stats = asyncio.run(run_sync(config))
    except KeyboardInterrupt:
        console.print(INTERRUPTED_MESSAGE)
        raise typer.Exit(code=EXIT_INTERRUPTED) from None
    print_summary_panel(stats, time.monotonic() - start_time)

    if stats.albums_failed:
        raise typer.Exit(code=1)


@app.command()
def status():
    """Show the albums recorded in the track file."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        track_store = TrackStore(config.track_file_path)
        track_store.load()
    except QzoneSyncError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    print_track_table(config.track_file_path, track_store.items())


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        print_validation_table(config)
    except QzoneSyncError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
