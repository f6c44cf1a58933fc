"""
Structured event logging for extraction sessions.
Emits `event: key=value` lines through the standard logger and, optionally,
one JSON object per line into a session log file.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO


class StructuredLogger:
    """
    Logs named events with keyword context.

    Usage:
        logger = StructuredLogger("pixel_exif", log_dir=Path("logs"))
        logger.info("file_extracted", filename="IMG_0001.jpg", tags=42)
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
    ):
        """
        Args:
            name: Name of the underlying standard logger.
            log_dir: Directory for JSONL session files (None disables them).
            enable_json: Write JSONL entries when a log_dir is given.
        """
        self._logger = logging.getLogger(name)
        self._json_file: TextIO | None = None
        if enable_json and log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_path = log_dir / f"pixel_exif_{timestamp}.jsonl"
            self._json_file = open(self.json_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    @property
    def json_enabled(self) -> bool:
        return self._json_file is not None and not self._json_file.closed

    def set_session_context(self, **kwargs) -> None:
        """Adds fields that appear in every JSON entry of this session."""
        self._session_context.update(kwargs)

    @staticmethod
    def format_message(event: str, **context) -> str:
        parts = [f"{event}:"]
        parts.extend(f"{key}={value}" for key, value in context.items())
        return " ".join(parts)

    def _write_json(self, level: str, event: str, context: dict[str, Any]) -> None:
        if not self.json_enabled:
            return
        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }
        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except OSError as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def log(self, level: int, event: str, **context) -> None:
        self._logger.log(level, self.format_message(event, **context))
        self._write_json(logging.getLevelName(level), event, context)

    def debug(self, event: str, **context) -> None:
        self.log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self.log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self.log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self.log(logging.ERROR, event, **context)

    def close(self) -> None:
        if self.json_enabled:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ExtractionLogger:
    """Events emitted while processing individual files."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def file_started(self, filename: str, size_bytes: int, mime_type: str):
        self.logger.debug(
            "file_extraction_started",
            filename=filename,
            size_bytes=size_bytes,
            mime_type=mime_type,
        )

    def file_completed(self, filename: str, tag_count: int, has_gps: bool, duration_s: float):
        self.logger.debug(
            "file_extraction_completed",
            filename=filename,
            tag_count=tag_count,
            has_gps=has_gps,
            duration_s=round(duration_s, 3),
        )

    def file_failed(self, filename: str, error: str):
        self.logger.error("file_extraction_failed", filename=filename, error=error)

    def digest_computed(self, filename: str, algorithm: str, duration_s: float):
        self.logger.debug(
            "digest_computed",
            filename=filename,
            algorithm=algorithm,
            duration_s=round(duration_s, 3),
        )

    def digest_unavailable(self, filename: str, algorithm: str):
        self.logger.warning(
            "digest_unavailable", filename=filename, algorithm=algorithm
        )

    def ascii_failed(self, filename: str, error: str):
        self.logger.warning("ascii_render_failed", filename=filename, error=error)


class SessionLogger:
    """Events that describe a whole batch."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def session_started(self, total_files: int, max_workers: int):
        self.logger.debug(
            "session_started", total_files=total_files, max_workers=max_workers
        )

    def session_completed(
        self,
        duration_s: float,
        files_extracted: int,
        files_failed: int,
        total_bytes: int,
    ):
        self.logger.debug(
            "session_completed",
            duration_s=round(duration_s, 2),
            files_extracted=files_extracted,
            files_failed=files_failed,
            total_size_mb=round(total_bytes / (1024 * 1024), 2),
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, ExtractionLogger, SessionLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, extraction_logger, session_logger)
    """
    base = StructuredLogger("pixel_exif", log_dir=log_dir, enable_json=enable_json)
    return base, ExtractionLogger(base), SessionLogger(base)
