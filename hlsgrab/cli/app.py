"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import sys
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from hlsgrab import __version__
from hlsgrab.api.fetcher import close_connection_pool
from hlsgrab.core.download_manager import DownloadManager
from hlsgrab.exceptions import HlsGrabError
from hlsgrab.storage.config_manager import ConfigManager

from .formatters import print_config, print_summary_panel, print_validation_table
from .progress_manager import ProgressManager

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
log = logging.getLogger("hlsgrab")

app = typer.Typer(
    name="hlsgrab",
    help=(
        "Download byte-ranged HLS (fMP4) videos into a single MP4 file. Use"
        " 'hlsgrab <command> --help' for more info."
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
    return base_dir.expanduser() / "hlsgrab"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


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
    """hlsgrab: segmented video downloader"""
    if version:
        console.print(f"[bold]hlsgrab[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "DEBUG" if verbose >= 2 else "INFO"
    logging.getLogger("hlsgrab").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]hlsgrab init[/cyan] first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        print_config(CONFIG_FILE, config_manager.get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
    output_dir: str | None = typer.Option(
        None, "-o", "--output-dir", help="Default directory for finished videos."
    ),
    referer: str | None = typer.Option(
        None, "--referer", help="Referer header sent with every request."
    ),
):
    """Write a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        key: value
        for key, value in {"output_dir": output_dir, "referer": referer}.items()
        if value is not None
    }
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except HlsGrabError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready to download! Try: [cyan]hlsgrab download <URL>[/cyan]")


def _read_sources_from_stdin() -> list[str]:
    """Reads sources from stdin, one per line."""
    if sys.stdin.isatty():
        console.print(
            "[yellow]⚠️  No input detected on stdin. Please pipe URLs or redirect"
            " a file.[/yellow]"
        )
        raise typer.Exit(code=1)

    sources = [
        line.strip()
        for line in sys.stdin
        if line.strip() and not line.strip().startswith("#")
    ]
    if not sources:
        console.print("[yellow]⚠️  No valid sources found in stdin.[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Read {len(sources)} sources from stdin.[/green]")
    return sources


@app.command(name="download")
def download_command(
    sources: list[str] | None = typer.Argument(  # noqa: B008
        None,
        help=(
            "Watch URLs, .m3u8 URLs, local .m3u8 files, video IDs, or text files"
            " listing any of these."
        ),
    ),
    output_dir: str | None = typer.Option(
        None, "-o", "--output-dir", help="Directory for finished videos."
    ),
    output_template: str | None = typer.Option(
        None,
        "-t",
        "--template",
        help="File name template; must contain {id}.",
    ),
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of videos downloaded at the same time."
    ),
    retries: int | None = typer.Option(
        None, "--retries", help="Attempts per segment before giving up."
    ),
    overwrite: bool | None = typer.Option(
        None, "--overwrite/--no-overwrite", help="Replace existing output files."
    ),
    no_progress: bool = typer.Option(
        False, "--no-progress", help="Disable the live progress display."
    ),
    stdin: bool = typer.Option(
        False, "--stdin", help="Read sources from standard input, one per line."
    ),
):
    """Download one or more videos."""
    if stdin:
        if sources:
            console.print(
                "[yellow]⚠️  Both sources and --stdin provided. Using --stdin only."
                "[/yellow]"
            )
        sources = _read_sources_from_stdin()
    elif not sources:
        console.print(
            "[red]✗ No sources provided.[/red] "
            "Use: [cyan]hlsgrab download <URL>[/cyan] or [cyan]--stdin[/cyan]"
        )
        raise typer.Exit(code=1)

    cli_options = {
        key: value
        for key, value in {
            "source_urls": sources,
            "output_dir": output_dir,
            "output_template": output_template,
            "max_workers": workers,
            "max_attempts": retries,
            "overwrite": overwrite,
        }.items()
        if value is not None
    }

    async def _download_async():
        manager = None
        duration = 0.0
        progress_stats = None

        try:
            config = ConfigManager(CONFIG_FILE).load_config(cli_options)
        except HlsGrabError as e:
            console.print(f"[bold red]Error: {e}[/bold red]")
            raise typer.Exit(code=1) from e

        async with ProgressManager(
            console=console, enabled=not no_progress
        ) as progress_manager:
            try:
                manager = DownloadManager(config, progress_manager)
                console.print("[bold cyan]🎬 Starting download session...[/bold cyan]")
                start_time = time.monotonic()
                await manager.execute_downloads()
                duration = time.monotonic() - start_time
                progress_stats = progress_manager.get_statistics()
            except Exception as e:
                console.print(f"[bold red]Unexpected error: {e}[/bold red]")
                log.debug("Full traceback:", exc_info=True)
                raise typer.Exit(code=1) from e
            finally:
                await close_connection_pool()

        print_summary_panel(manager.stats, duration, progress_stats)
        if manager.stats.videos_failed:
            raise typer.Exit(code=1)

    asyncio.run(_download_async())


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config(require_file=True)
        print_validation_table(config)
    except HlsGrabError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
