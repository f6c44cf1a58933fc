"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import json
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from pixel_exif import __version__
from pixel_exif.core.extraction_manager import BatchItemResult, ExtractionManager
from pixel_exif.core.inspector import RecordInspector
from pixel_exif.exceptions import PixelExifError
from pixel_exif.media import DigestEngine
from pixel_exif.models.config import ExtractorConfig
from pixel_exif.models.digests import DigestAlgorithm
from pixel_exif.models.source import SourceFile
from pixel_exif.storage.config_manager import ConfigManager
from pixel_exif.utils.export import build_rename_script, record_to_dict, records_to_csv
from pixel_exif.utils.structured_logger import create_structured_logger

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_digest_table,
    print_record,
    print_summary_panel,
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
log = logging.getLogger("pixel_exif")

app = typer.Typer(
    name="pixel-exif",
    help=(
        "Extract, normalize and verify image metadata. Use 'pixel-exif"
        " <command> --help' for more info."
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
    return base_dir.expanduser() / "pixel-exif"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(cli_options: dict | None = None) -> ExtractorConfig:
    """Loads the config, turning configuration errors into a clean exit."""
    options = {k: v for k, v in (cli_options or {}).items() if v is not None}
    try:
        return ConfigManager(CONFIG_FILE).load_config(options)
    except PixelExifError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


async def _run_extraction(
    config: ExtractorConfig, files: list[Path]
) -> tuple[ExtractionManager, list[BatchItemResult], float]:
    """Extracts all files with structured logging wired in."""
    log_dir = Path(config.log_dir).expanduser() if config.log_dir else None
    base, events, session_events = create_structured_logger(
        log_dir=log_dir, enable_json=config.json_logs
    )
    base.set_session_context(files=len(files))
    with base:
        manager = ExtractionManager(
            config, events=events, session_events=session_events
        )
        start_time = time.monotonic()
        results = await manager.extract_paths(files)
        duration = time.monotonic() - start_time
    return manager, results, duration


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
    """Image Metadata Extraction CLI"""
    if version:
        console.print(f"[bold]pixel-exif[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("pixel_exif").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]pixel-exif init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.load_config()
        print_config(CONFIG_FILE, config_manager.get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config without asking."
    ),
):
    """Write a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_new_config()
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready to go! Try: [cyan]pixel-exif inspect <FILE>[/cyan]")


@app.command(name="inspect")
def inspect_command(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., help="One or more image files to inspect."
    ),
    raw: bool = typer.Option(
        False, "--raw", "-r", help="Also list every raw tag, grouped."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print records as JSON instead of panels."
    ),
    digests: bool = typer.Option(
        False, "--digests", "-d", help="Compute all configured digests per file."
    ),
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of files processed concurrently."
    ),
):
    """Extract and display metadata for one or more images."""
    config = _load_config({"max_workers": workers})

    async def _inspect_async():
        manager, results, duration = await _run_extraction(config, files)
        inspector = RecordInspector()
        payload = []
        for result in results:
            if not result.ok:
                if not as_json:
                    console.print(format_error_with_suggestions(result.error))
                continue
            record = result.record
            report = None
            if digests:
                report = await inspector.compute_all_digests(record, config.algorithms)
            if as_json:
                payload.append(record_to_dict(record))
            else:
                print_record(record, show_raw=raw)
                if report:
                    print_digest_table(record.filename, report)
            record.release()
        return manager, duration, payload

    manager, duration, payload = asyncio.run(_inspect_async())
    if as_json:
        console.print_json(json.dumps(payload, ensure_ascii=False))
    else:
        print_summary_panel(manager.stats, duration)
    if manager.stats.files_failed:
        raise typer.Exit(code=1)


@app.command(name="hash")
def hash_command(
    file: Path = typer.Argument(..., help="File to hash."),  # noqa: B008
    algorithms: list[str] | None = typer.Option(  # noqa: B008
        None,
        "-a",
        "--algorithm",
        help="Digest to compute (SHA-256, SHA-512, MD5, CRC32). Repeatable.",
    ),
):
    """Compute integrity digests for a file."""
    if algorithms:
        try:
            selected = list(dict.fromkeys(DigestAlgorithm.parse(a) for a in algorithms))
        except ValueError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1) from e
    else:
        selected = _load_config().algorithms

    async def _hash_async():
        source = await SourceFile.from_path(file)
        return await DigestEngine.digest_all(source.data, selected)

    digest_set = asyncio.run(_hash_async())
    print_digest_table(file.name, digest_set.as_dict())


@app.command(name="ascii")
def ascii_command(
    file: Path = typer.Argument(..., help="Image to preview."),  # noqa: B008
    width: int | None = typer.Option(
        None, "-w", "--width", help="Width of the preview in characters."
    ),
):
    """Render an ASCII preview of an image or its embedded thumbnail."""
    config = _load_config({"ascii_width": width})

    async def _ascii_async():
        _, results, _ = await _run_extraction(config, [file])
        result = results[0]
        if not result.ok:
            raise result.error
        try:
            return await RecordInspector().render_ascii(
                result.record, config.ascii_width
            )
        finally:
            result.record.release()

    console.print(escape(asyncio.run(_ascii_async())), highlight=False)


@app.command(name="export")
def export_command(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., help="Images to include in the CSV."
    ),
    output: Path = typer.Option(  # noqa: B008
        Path("metadata.csv"), "-o", "--output", help="Destination CSV file."
    ),
):
    """Export a CSV summary of the extracted metadata."""
    config = _load_config()
    manager, results, duration = asyncio.run(_run_extraction(config, files))
    records = [r.record for r in results if r.ok]
    output.write_text(records_to_csv(records), encoding="utf-8")
    for record in records:
        record.release()
    console.print(
        f"[green]✓ Exported {len(records)} records to '{escape(str(output))}'.[/green]"
    )
    print_summary_panel(manager.stats, duration)


@app.command(name="rename-script")
def rename_script_command(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., help="Images to build rename commands for."
    ),
    output: Path = typer.Option(  # noqa: B008
        Path("rename.sh"), "-o", "--output", help="Destination script file."
    ),
):
    """Write a bash script that renames images after their capture date."""
    config = _load_config()
    _, results, _ = asyncio.run(_run_extraction(config, files))
    records = [r.record for r in results if r.ok]
    script = build_rename_script(records)
    output.write_text(script, encoding="utf-8")
    for record in records:
        record.release()
    commands = script.count("\nmv ")
    console.print(
        f"[green]✓ Wrote {commands} rename commands to '{escape(str(output))}'.[/green]"
    )
    skipped = len(records) - commands
    if skipped:
        console.print(f"[yellow]⚠️  {skipped} files have no capture date.[/yellow]")


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        print_validation_table(config)
    except PixelExifError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
