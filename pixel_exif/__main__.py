"""
Main entry point for the pixel-exif application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from pixel_exif.cli.app import app
from pixel_exif.cli.formatters import format_error_with_suggestions
from pixel_exif.exceptions import MetadataExtractionError, PixelExifError


def main() -> None:
    """Main entry point function."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("pixel_exif")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except MetadataExtractionError as e:
        console.print(f"\n{format_error_with_suggestions(e, {'file': e.filename})}")
        log.debug("Extraction failure cause:", exc_info=e.cause)
        sys.exit(1)
    except (PixelExifError, OSError) as e:
        # Unreadable input files surface here as well
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
