"""
Data Models Layer.

This package contains the dataclasses and Pydantic models that define the core
data structures used throughout the application: configuration, the decoded
tag tree, the normalized record and its digests, and session statistics.
"""

from .config import ExtractorConfig
from .digests import DigestAlgorithm, DigestSet
from .record import (
    BlobHandle,
    GpsCoordinates,
    MetadataRecord,
    Thumbnail,
    ThumbnailSource,
)
from .source import SourceFile
from .stats import ExtractionStats
from .tag_tree import TagTree

__all__ = [
    "BlobHandle",
    "DigestAlgorithm",
    "DigestSet",
    "ExtractionStats",
    "ExtractorConfig",
    "GpsCoordinates",
    "MetadataRecord",
    "SourceFile",
    "TagTree",
    "Thumbnail",
    "ThumbnailSource",
]
