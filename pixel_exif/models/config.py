"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator

from pixel_exif.models.digests import DigestAlgorithm

# Bounds for the ASCII preview width
MIN_ASCII_WIDTH = 1
MAX_ASCII_WIDTH = 400


class ExtractorConfig(BaseModel):
    """A validated configuration model for the application."""

    # Preview Settings
    ascii_width: int = 60

    # Processing Settings
    max_workers: int = 8
    digest_algorithms: list[str] = Field(
        default_factory=lambda: [a.value for a in DigestAlgorithm]
    )

    # Logging
    log_dir: str = ""
    json_logs: bool = False

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("ascii_width")
    @classmethod
    def validate_ascii_width(cls, v: int) -> int:
        """Keeps the preview within a sensible terminal width."""
        if v < MIN_ASCII_WIDTH or v > MAX_ASCII_WIDTH:
            raise ValueError(
                f"ASCII width must be between {MIN_ASCII_WIDTH} and {MAX_ASCII_WIDTH}."
            )
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("digest_algorithms")
    @classmethod
    def validate_algorithms(cls, v: list[str]) -> list[str]:
        """
        Normalizes algorithm names (case-insensitive, 'sha256' or 'SHA-256')
        and rejects unknown ones.
        """
        if not v:
            raise ValueError("At least one digest algorithm must be configured.")
        normalized = []
        for name in v:
            algorithm = DigestAlgorithm.parse(name)
            if algorithm.value not in normalized:
                normalized.append(algorithm.value)
        return normalized

    @property
    def algorithms(self) -> list[DigestAlgorithm]:
        return [DigestAlgorithm(name) for name in self.digest_algorithms]

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
