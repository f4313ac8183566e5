"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hlsgrab.models.config import DownloadConfig
from hlsgrab.models.stats import DownloadStats
from hlsgrab.utils.formatting import (
    format_duration,
    format_fragment_count,
    format_playtime,
    format_size,
)

SUGGESTIONS = {
    "NoFragmentsError": [
        "• The manifest contained no media segments.",
        "• The video may have been removed or be image-only.",
    ],
    "ParseError": [
        "• The response was not a text playlist.",
        "• Check that the URL points to an .m3u8 file.",
    ],
    "InvalidByteRangeError": [
        "• The manifest holds a byte range that is not a number.",
        "• The server may have returned an error page instead of a playlist.",
    ],
    "RetryExhaustedError": [
        "• A segment could not be fetched after several attempts.",
        "• Check your internet connection.",
        "• Raise `--retries` or `fragment_timeout` for slow connections.",
    ],
    "FetchError": [
        "• The server rejected the request.",
        "• Some hosts require a `referer` setting in the configuration.",
    ],
    "UnsupportedSourceError": [
        "• Pass a watch URL, a .m3u8 URL, a local .m3u8 file, or a video ID.",
    ],
    "PersistenceError": [
        "• Check that the output directory is writable.",
        "• Use `--overwrite` to replace existing files.",
    ],
    "ConfigurationError": [
        "• Run `hlsgrab init --force` to write a fresh configuration file.",
        "• Run `hlsgrab validate` to see which value is rejected.",
    ],
    "TimeoutError": [
        "• A request timed out, which may indicate network throttling.",
        "• Try reducing the number of `--workers`.",
    ],
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    suggestions = SUGGESTIONS.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(str(error))

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
    """Displays the raw configuration file values."""
    console = Console()
    content = "\n".join(
        f"{key} = {escape(str(value))}" for key, value in config_data.items()
    )
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: DownloadConfig):
    """Displays a summary of the validated settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Output Directory:", f"[dim]{config.output_dir}[/dim]")
    table.add_row("Output Template:", f"[dim]{config.output_template}[/dim]")
    table.add_row("Manifest URL:", f"[dim]{config.manifest_url_template}[/dim]")
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row(
        "Retries:",
        f"{config.max_attempts} attempts, {config.base_delay:g}s base delay",
    )
    table.add_row(
        "Timeouts:",
        f"manifest {config.manifest_timeout:g}s, "
        f"fragment {config.fragment_timeout:g}s",
    )
    table.add_row("Overwrite:", "✓ Enabled" if config.overwrite else "✗ Disabled")
    table.add_row("Referer:", config.referer or "[dim](none)[/dim]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(
    stats: DownloadStats, duration_s: float, progress_stats: dict | None = None
):
    """Displays the final summary of the download session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Downloaded:", f"[bold green]{stats.videos_downloaded}[/bold green]"
    )
    if stats.videos_skipped_exists > 0:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.videos_skipped_exists} (exists)[/yellow]"
        )
    if stats.videos_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.videos_failed}[/bold red]")
    if stats.integrity_warnings > 0:
        stats_table.add_row(
            "⚠ Integrity:", f"[yellow]{stats.integrity_warnings} warnings[/yellow]"
        )

    stats_table.add_row("", "")
    stats_table.add_row(
        "Fragments:", f"[cyan]{format_fragment_count(stats.fragments_fetched)}[/cyan]"
    )
    stats_table.add_row(
        "Playtime:", f"[cyan]{format_playtime(stats.total_media_duration)}[/cyan]"
    )
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_size_downloaded)}[/cyan]"
    )
    avg_speed = stats.total_size_downloaded / duration_s if duration_s > 0 else 0
    stats_table.add_row(
        "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if progress_stats:
        stats_table.add_row(
            "Peak Concurrent:",
            f"[green]{progress_stats.get('peak_concurrent', 0)}[/green]",
        )

    border_color = "green" if stats.videos_failed == 0 else "yellow"
    console.print()
    console.print(
        Panel(
            stats_table,
            title="🎬 [bold]Download Complete![/bold]",
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )

    for source, message in stats.failures.items():
        console.print(f"[red]✗ {escape(source)}[/red]: [dim]{escape(message)}[/dim]")
    console.print()
