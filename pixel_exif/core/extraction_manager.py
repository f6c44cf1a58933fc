"""
The main orchestrator for extracting metadata from a batch of files.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from pixel_exif.exceptions import MetadataExtractionError
from pixel_exif.models.config import ExtractorConfig
from pixel_exif.models.record import MetadataRecord
from pixel_exif.models.source import SourceFile
from pixel_exif.models.stats import ExtractionStats
from pixel_exif.utils.structured_logger import ExtractionLogger, SessionLogger

from .assembler import MetadataAssembler

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome for one submitted file: either a record or the error it raised."""

    filename: str
    record: Optional[MetadataRecord] = None
    error: Optional[MetadataExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


class ExtractionManager:
    """Runs per-file assembly concurrently and collects results in submission order."""

    def __init__(
        self,
        config: ExtractorConfig | None = None,
        assembler: MetadataAssembler | None = None,
        events: ExtractionLogger | None = None,
        session_events: SessionLogger | None = None,
    ):
        self.config = config or ExtractorConfig()
        self.assembler = assembler or MetadataAssembler(events=events)
        self.session_events = session_events
        self.stats = ExtractionStats()
        self.semaphore = asyncio.Semaphore(self.config.max_workers)

    async def _extract_one(
        self, source: SourceFile, tag_tree: Mapping[str, Any] | None
    ) -> BatchItemResult:
        async with self.semaphore:
            try:
                record = await self.assembler.assemble(source, tag_tree)
            except MetadataExtractionError as e:
                # With structured events the assembler has already reported it
                if self.assembler.events is None:
                    log.error(f"[red]✗ {e}[/red]")
                await self.stats.record_failure(source.name)
                return BatchItemResult(source.name, error=e)
        await self.stats.record_success(source.size, record.gps is not None)
        return BatchItemResult(source.name, record=record)

    async def extract_batch(
        self,
        sources: Sequence[SourceFile],
        tag_trees: Sequence[Mapping[str, Any] | None] | None = None,
    ) -> List[BatchItemResult]:
        """
        Assembles all files concurrently.

        Args:
            sources: Files to process.
            tag_trees: Optional pre-decoded tag trees, aligned with `sources`.

        Returns:
            One result per source, in the order the sources were given. A failed
            file yields a result carrying its MetadataExtractionError; the other
            files are unaffected.
        """
        if tag_trees is not None and len(tag_trees) != len(sources):
            raise ValueError("tag_trees must have one entry per source file.")
        if not sources:
            log.info("No files provided. Nothing to do.")
            return []

        if self.session_events:
            self.session_events.session_started(len(sources), self.config.max_workers)

        trees = tag_trees or [None] * len(sources)
        results = await asyncio.gather(
            *(self._extract_one(s, t) for s, t in zip(sources, trees))
        )

        if self.session_events:
            self.session_events.session_completed(
                self.stats.elapsed_s,
                self.stats.files_extracted,
                self.stats.files_failed,
                self.stats.total_bytes_processed,
            )
        return list(results)

    async def extract_paths(self, paths: Sequence[str | Path]) -> List[BatchItemResult]:
        """
        Reads files from disk and extracts them. Files that cannot be read are
        reported as failed results, in their submission position.
        """
        unique_paths = list(dict.fromkeys(str(p) for p in paths))
        if len(unique_paths) < len(paths):
            log.info(f"Removed {len(paths) - len(unique_paths)} duplicate paths.")

        loaded = await asyncio.gather(
            *(SourceFile.from_path(p) for p in unique_paths), return_exceptions=True
        )

        readable: List[SourceFile] = []
        slots: List[Optional[BatchItemResult]] = []
        for path, item in zip(unique_paths, loaded):
            if isinstance(item, OSError):
                name = Path(path).name
                log.error(f"[red]Could not read file {path}: {item}[/red]")
                await self.stats.record_failure(name)
                slots.append(BatchItemResult(name, error=MetadataExtractionError(name, item)))
            elif isinstance(item, BaseException):
                raise item
            else:
                readable.append(item)
                slots.append(None)

        extracted = iter(await self.extract_batch(readable)) if readable else iter(())
        return [slot if slot is not None else next(extracted) for slot in slots]
