"""
The normalized metadata record handed to presentation layers.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from pixel_exif.exceptions import ResourceUnavailable
from pixel_exif.models.digests import DigestAlgorithm, DigestSet


def generate_record_id() -> str:
    """Returns an identifier unique within the running process."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class GpsCoordinates:
    """Decimal-degree position; both coordinates are always populated."""

    latitude: float
    longitude: float
    altitude: float | None = None


class ThumbnailSource(str, Enum):
    EMBEDDED = "embedded"
    ORIGINAL = "original"


class BlobHandle:
    """
    Holds a record's raw bytes until released.

    The buffer is shared, never copied or mutated; `release()` drops the
    reference so later digest requests fail with ResourceUnavailable.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes):
        self._data: bytes | None = data

    @property
    def is_released(self) -> bool:
        return self._data is None

    @property
    def size(self) -> int:
        return len(self._data) if self._data is not None else 0

    def get(self) -> bytes:
        if self._data is None:
            raise ResourceUnavailable(
                "The file buffer has been released; re-read the original file "
                "to compute further digests."
            )
        return self._data

    def release(self) -> None:
        self._data = None

    def __repr__(self) -> str:
        state = "released" if self.is_released else f"{self.size} bytes"
        return f"BlobHandle({state})"


@dataclass(frozen=True)
class Thumbnail:
    """
    Image data usable for previews. An `original` thumbnail shares the
    record's blob handle, so it becomes unavailable once the record is released.
    """

    handle: BlobHandle = field(repr=False)
    source: ThumbnailSource

    @property
    def data(self) -> bytes:
        return self.handle.get()

    @property
    def is_available(self) -> bool:
        return not self.handle.is_released


@dataclass(frozen=True)
class MetadataRecord:
    """
    Normalized metadata for one image file.

    Core fields are immutable. Digests are held in `digests`, a cache that
    is filled at most once per algorithm; the primary SHA-256 is exposed as
    `checksum`.
    """

    filename: str
    file_size: str
    mime_type: str
    all_tags: dict[str, str] = field(default_factory=dict, repr=False)
    dimensions: str | None = None

    make: str | None = None
    model: str | None = None
    lens: str | None = None
    f_number: str | None = None
    exposure_time: str | None = None
    iso: str | None = None
    focal_length: str | None = None
    date_time_original: str | None = None
    software: str | None = None
    color_space: str | None = None
    flash: str | None = None
    white_balance: str | None = None
    orientation: str | None = None

    gps: GpsCoordinates | None = None
    thumbnail: Thumbnail | None = field(default=None, repr=False)

    id: str = field(default_factory=generate_record_id)
    blob: BlobHandle | None = field(default=None, repr=False, compare=False)
    digests: DigestSet = field(default_factory=DigestSet, repr=False, compare=False)

    @property
    def checksum(self) -> str | None:
        """Primary SHA-256 digest, once computed."""
        return self.digests.get(DigestAlgorithm.SHA256)

    @property
    def camera(self) -> str:
        return f"{self.make or ''} {self.model or ''}".strip()

    def release(self) -> None:
        """Drops the raw byte buffer (and any thumbnail that points at it)."""
        if self.blob is not None:
            self.blob.release()
