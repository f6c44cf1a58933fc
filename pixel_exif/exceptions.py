"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class PixelExifError(Exception):
    """Base exception for all application-specific errors."""


class MetadataExtractionError(PixelExifError):
    """
    Raised when the tag decoder cannot read a file (corrupt or unsupported).
    Carries the filename so batch callers can report failures per file.
    """

    def __init__(self, filename: str, cause: Exception | None = None):
        self.filename = filename
        self.cause = cause
        super().__init__(
            f"Failed to extract metadata from {filename}. "
            "The file might be corrupted or format not supported."
        )


class ImageDecodeError(PixelExifError):
    """Raised when a thumbnail or image cannot be decoded for ASCII rendering."""


class ResourceUnavailable(PixelExifError):
    """Raised when a digest is requested after the backing buffer was released."""


class ConfigurationError(PixelExifError):
    """Raised for issues related to configuration loading or validation."""
