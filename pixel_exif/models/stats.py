"""
Dataclass for tracking extraction session statistics.
"""

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class ExtractionStats:
    """Tracks statistics for an extraction session."""

    files_extracted: int = 0
    files_failed: int = 0
    total_bytes_processed: int = 0
    gps_tagged: int = 0
    failed_files: list[str] = field(default_factory=list)

    _started_at: float = field(default=0.0, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self):
        self._started_at = time.monotonic()

    @property
    def elapsed_s(self) -> float:
        return time.monotonic() - self._started_at

    @property
    def files_total(self) -> int:
        return self.files_extracted + self.files_failed

    async def record_success(self, size_bytes: int, has_gps: bool) -> None:
        """Counts a completed file. Async-safe across concurrent assemblies."""
        async with self._lock:
            self.files_extracted += 1
            self.total_bytes_processed += size_bytes
            if has_gps:
                self.gps_tagged += 1

    async def record_failure(self, filename: str) -> None:
        """Counts a failed file and remembers its name for the summary."""
        async with self._lock:
            self.files_failed += 1
            self.failed_files.append(filename)
