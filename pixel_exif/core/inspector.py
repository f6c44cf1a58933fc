"""
On-demand operations on an extracted record: further digests and the ASCII
preview. Both read the buffers the record still holds.
"""

import asyncio
import logging
import time

from pixel_exif.exceptions import ImageDecodeError, ResourceUnavailable
from pixel_exif.media import AsciiRenderer, DigestEngine
from pixel_exif.models.digests import DigestAlgorithm
from pixel_exif.models.record import MetadataRecord
from pixel_exif.utils.structured_logger import ExtractionLogger

log = logging.getLogger(__name__)

ASCII_PLACEHOLDER = "ASCII GENERATION FAILED"
DIGEST_PLACEHOLDER = "UNAVAILABLE"


class RecordInspector:
    """Computes derived values for records, caching digests on the record."""

    def __init__(
        self,
        renderer: AsciiRenderer | None = None,
        events: ExtractionLogger | None = None,
    ):
        self.renderer = renderer or AsciiRenderer()
        self.events = events

    async def compute_digest(
        self, record: MetadataRecord, algorithm: DigestAlgorithm | str
    ) -> str:
        """
        Returns a digest of the record's file, computing it at most once.

        Raises:
            ResourceUnavailable: If the digest is not cached and the record's
                buffer has been released.
        """
        algorithm = DigestAlgorithm.parse(algorithm)
        if record.digests.is_computed(algorithm):
            return record.digests.get(algorithm)
        if record.blob is None:
            raise ResourceUnavailable(f"No file buffer is attached to '{record.filename}'.")

        start = time.monotonic()
        value = await DigestEngine.digest_async(record.blob.get(), algorithm)
        if self.events:
            self.events.digest_computed(
                record.filename, algorithm.value, time.monotonic() - start
            )
        return record.digests.store(algorithm, value)

    async def compute_all_digests(
        self,
        record: MetadataRecord,
        algorithms: list[DigestAlgorithm] | None = None,
    ) -> dict[str, str]:
        """
        Computes the requested digests concurrently.

        Digests that cannot be computed because the buffer was released are
        reported as a placeholder instead of raising.
        """
        algorithms = algorithms or list(DigestAlgorithm)
        results = await asyncio.gather(
            *(self.compute_digest(record, a) for a in algorithms),
            return_exceptions=True,
        )

        report = {}
        for algorithm, result in zip(algorithms, results):
            if isinstance(result, ResourceUnavailable):
                if self.events:
                    self.events.digest_unavailable(record.filename, algorithm.value)
                else:
                    log.warning(f"{algorithm.value} unavailable for '{record.filename}': {result}")
                report[algorithm.value] = DIGEST_PLACEHOLDER
            elif isinstance(result, BaseException):
                raise result
            else:
                report[algorithm.value] = result
        return report

    async def render_ascii(self, record: MetadataRecord, width: int = 60) -> str:
        """
        Renders the record's thumbnail as ASCII art.

        Returns the placeholder text when there is nothing to render or the
        image cannot be decoded.
        """
        try:
            if record.thumbnail is None:
                raise ImageDecodeError("No previewable image data.")
            try:
                data = record.thumbnail.data
            except ResourceUnavailable as e:
                raise ImageDecodeError(str(e)) from e
            return await self.renderer.render(data, width)
        except ImageDecodeError as e:
            if self.events:
                self.events.ascii_failed(record.filename, str(e))
            else:
                log.warning(f"ASCII preview failed for '{record.filename}': {e}")
            return ASCII_PLACEHOLDER
