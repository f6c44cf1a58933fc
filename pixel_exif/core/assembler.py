"""
Handles the extraction of a single file, from raw bytes to a finished record.
"""

import asyncio
import logging
import re
import time
from collections.abc import Mapping
from typing import Any, Optional

from pixel_exif.exceptions import MetadataExtractionError
from pixel_exif.media import DigestEngine, TagTreeDecoder
from pixel_exif.models.digests import DigestAlgorithm, DigestSet
from pixel_exif.models.record import (
    BlobHandle,
    MetadataRecord,
    Thumbnail,
    ThumbnailSource,
)
from pixel_exif.models.source import SourceFile
from pixel_exif.models.tag_tree import TagTree
from pixel_exif.utils.formatting import format_file_size
from pixel_exif.utils.structured_logger import ExtractionLogger

from .normalizer import TagNormalizer

log = logging.getLogger(__name__)

# Formats that image viewers rasterize natively, so the file itself is a preview
NATIVE_PREVIEW_MIME = re.compile(r"image/(jpeg|png|webp|gif|bmp)")


def resolve_thumbnail(
    tree: TagTree, source: SourceFile, blob: BlobHandle
) -> Optional[Thumbnail]:
    """Prefers the embedded thumbnail, then the original file when it is viewable."""
    if tree.thumbnail:
        return Thumbnail(BlobHandle(tree.thumbnail), ThumbnailSource.EMBEDDED)
    if NATIVE_PREVIEW_MIME.match(source.mime_type):
        return Thumbnail(blob, ThumbnailSource.ORIGINAL)
    return None


class MetadataAssembler:
    """
    Orchestrates decoding, normalization and the primary digest for one file.
    """

    def __init__(
        self,
        decoder: TagTreeDecoder | None = None,
        normalizer: TagNormalizer | None = None,
        events: ExtractionLogger | None = None,
    ):
        self.decoder = decoder or TagTreeDecoder()
        self.normalizer = normalizer or TagNormalizer()
        self.events = events

    async def _decode_and_normalize(
        self, source: SourceFile, tag_tree: Mapping[str, Any] | None
    ):
        if tag_tree is None:
            tag_tree = await self.decoder.decode_async(source.data, source.name)
        tree = TagTree.from_raw(tag_tree)
        all_tags, fields = self.normalizer.normalize(tree)
        return tree, all_tags, fields

    async def assemble(
        self, source: SourceFile, tag_tree: Mapping[str, Any] | None = None
    ) -> MetadataRecord:
        """
        Builds the normalized record for a file.

        Args:
            source: The file name, bytes and MIME type.
            tag_tree: An already decoded raw tag tree. When omitted, the
                bytes are decoded with the configured decoder.

        Returns:
            The complete record, with its SHA-256 checksum already computed.

        Raises:
            MetadataExtractionError: If decoding fails. No partial record is
                returned.
        """
        start = time.monotonic()
        if self.events:
            self.events.file_started(source.name, source.size, source.mime_type)

        checksum_task = asyncio.create_task(
            DigestEngine.digest_async(source.data, DigestAlgorithm.SHA256)
        )
        try:
            tree, all_tags, fields = await self._decode_and_normalize(source, tag_tree)
        except asyncio.CancelledError:
            checksum_task.cancel()
            raise
        except Exception as e:
            checksum_task.cancel()
            log.debug(f"Decoding '{source.name}' failed: {e}", exc_info=True)
            if self.events:
                self.events.file_failed(source.name, str(e))
            raise MetadataExtractionError(source.name, e) from e
        checksum = await checksum_task

        digests = DigestSet()
        digests.store(DigestAlgorithm.SHA256, checksum)
        blob = BlobHandle(source.data)

        record = MetadataRecord(
            filename=source.name,
            file_size=format_file_size(source.size),
            mime_type=source.mime_type,
            all_tags=all_tags,
            dimensions=fields.dimensions,
            make=fields.make,
            model=fields.model,
            lens=fields.lens,
            f_number=fields.f_number,
            exposure_time=fields.exposure_time,
            iso=fields.iso,
            focal_length=fields.focal_length,
            date_time_original=fields.date_time_original,
            software=fields.software,
            color_space=fields.color_space,
            flash=fields.flash,
            white_balance=fields.white_balance,
            orientation=fields.orientation,
            gps=fields.gps,
            thumbnail=resolve_thumbnail(tree, source, blob),
            blob=blob,
            digests=digests,
        )

        if self.events:
            self.events.file_completed(
                source.name, len(all_tags), record.gps is not None, time.monotonic() - start
            )
        return record
