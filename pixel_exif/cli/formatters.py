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

from pixel_exif.models.config import ExtractorConfig
from pixel_exif.models.record import MetadataRecord
from pixel_exif.models.stats import ExtractionStats
from pixel_exif.utils.export import group_tags
from pixel_exif.utils.formatting import format_duration, format_size, truncate

RECORD_FIELDS = [
    ("Dimensions", "dimensions"),
    ("Make", "make"),
    ("Model", "model"),
    ("Lens", "lens"),
    ("Aperture", "f_number"),
    ("Shutter", "exposure_time"),
    ("ISO", "iso"),
    ("Focal Length", "focal_length"),
    ("Captured", "date_time_original"),
    ("Software", "software"),
    ("Color Space", "color_space"),
    ("Flash", "flash"),
    ("White Balance", "white_balance"),
    ("Orientation", "orientation"),
]

MAP_URL = "https://www.google.com/maps?q={latitude},{longitude}"


def map_url(latitude: float, longitude: float) -> str:
    return MAP_URL.format(latitude=latitude, longitude=longitude)


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "MetadataExtractionError": [
            "• Check that the file is a complete, uncorrupted image.",
            "• Supported containers include JPEG, TIFF, PNG, WebP, GIF and BMP.",
        ],
        "ImageDecodeError": [
            "• The preview image could not be decoded.",
            "• Metadata and digests are still available for this file.",
        ],
        "ResourceUnavailable": [
            "• The file buffer was released before all digests were computed.",
            "• Re-run the command on the original file.",
        ],
        "ConfigurationError": [
            "• Inspect the file with `pixel-exif --show-config`.",
            "• Run `pixel-exif init --force` to write a fresh default config.",
        ],
        "FileNotFoundError": [
            "• Check the path and try again.",
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
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if isinstance(value, list):
            value = ", ".join(value)
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: ExtractorConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("ASCII Width:", str(config.ascii_width))
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row("Digests:", ", ".join(config.digest_algorithms))
    table.add_row("Log Directory:", f"[dim]{config.log_dir or '(none)'}[/dim]")
    table.add_row("JSON Logs:", "✓ Enabled" if config.json_logs else "✗ Disabled")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_record(record: MetadataRecord, show_raw: bool = False):
    """Displays the normalized fields of a record, optionally with all raw tags."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    table.add_row("Size:", record.file_size)
    table.add_row("Type:", record.mime_type)
    for label, attr in RECORD_FIELDS:
        if value := getattr(record, attr):
            table.add_row(f"{label}:", escape(value))
    if record.gps:
        position = f"{record.gps.latitude:.6f}, {record.gps.longitude:.6f}"
        if record.gps.altitude is not None:
            position += f" ({record.gps.altitude:.1f} m)"
        url = map_url(record.gps.latitude, record.gps.longitude)
        table.add_row("GPS:", f"[green]{position}[/green] [link={url}]Open map[/link]")
    if record.checksum:
        table.add_row("SHA-256:", f"[dim]{record.checksum}[/dim]")

    console.print(
        Panel(
            table,
            title=f"[bold]{escape(record.filename)}[/bold]",
            border_style="cyan",
            expand=False,
        )
    )

    if show_raw and record.all_tags:
        raw = Table(box=box.SIMPLE, title="Raw Tags", title_style="bold")
        raw.add_column("Tag", style="magenta")
        raw.add_column("Value")
        for group_name, tags in sorted(group_tags(record.all_tags).items()):
            raw.add_section()
            raw.add_row(f"[bold]-- {escape(group_name)} --[/bold]", "")
            for tag, value in tags:
                raw.add_row(escape(tag), escape(truncate(value)))
        console.print(raw)


def print_digest_table(filename: str, digests: dict[str, str]):
    """Displays computed digests for one file."""
    console = Console()
    table = Table(title=f"Integrity: {escape(filename)}", box=box.ROUNDED)
    table.add_column("Algorithm", style="bold cyan", no_wrap=True)
    table.add_column("Digest", style="green")
    for algorithm, value in digests.items():
        table.add_row(algorithm, value)
    console.print(table)


def print_summary_panel(stats: ExtractionStats, duration_s: float):
    """Displays the final summary of an extraction session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Extracted:", f"[bold green]{stats.files_extracted}[/bold green]"
    )
    if stats.files_failed > 0:
        failed = ", ".join(escape(name) for name in stats.failed_files)
        stats_table.add_row(
            "✗ Failed:", f"[bold red]{stats.files_failed}[/bold red] [dim]({failed})[/dim]"
        )
    if stats.gps_tagged > 0:
        stats_table.add_row("⌖ GPS Tagged:", f"[green]{stats.gps_tagged}[/green]")

    stats_table.add_row("", "")
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_bytes_processed)}[/cyan]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    border_color = "green" if stats.files_failed == 0 else "yellow"
    console.print()
    console.print(
        Panel(
            stats_table,
            title="🔍 [bold]Extraction Complete[/bold]",
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
