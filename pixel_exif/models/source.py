"""
The in-memory input for one extraction: a filename, its bytes and MIME type.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(filename: str) -> str:
    """Guesses a MIME type from the file extension."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class SourceFile:
    """A user-supplied file held entirely in memory."""

    name: str
    data: bytes = field(repr=False)
    mime_type: str = ""

    def __post_init__(self):
        if not self.mime_type:
            object.__setattr__(self, "mime_type", guess_mime_type(self.name))

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    async def from_path(cls, path: str | Path) -> "SourceFile":
        """Reads a file from disk without blocking the event loop."""
        path = Path(path)
        async with aiofiles.open(path, "rb") as f:
            data = await f.read()
        return cls(name=path.name, data=data)
