"""
Renders a decoded image as a block of ASCII characters.
"""

import asyncio
import io
import logging
import math

from PIL import Image, UnidentifiedImageError

from pixel_exif.exceptions import ImageDecodeError

log = logging.getLogger(__name__)

# Ascending density: index 0 is the sparsest cell, the last the densest
ASCII_RAMP = " .:-=+*#%@"
# Character cells are roughly twice as tall as they are wide
CELL_ASPECT = 0.5


def target_height(target_width: int, source_width: int, source_height: int) -> int:
    """Number of character rows for a given width, keeping the aspect ratio."""
    return math.floor(target_width * (source_height / source_width) * CELL_ASPECT)


def luminance_to_char(r: int, g: int, b: int, ramp: str = ASCII_RAMP) -> str:
    """Maps a pixel to a ramp character using the mean of its color channels."""
    brightness = (r + g + b) / 3
    return ramp[math.floor((brightness / 255) * (len(ramp) - 1))]


class AsciiRenderer:
    """Converts image bytes into an ASCII preview."""

    def __init__(self, ramp: str = ASCII_RAMP):
        if len(ramp) < 2:
            raise ValueError("The character ramp needs at least two characters.")
        self.ramp = ramp

    async def render(self, image_data: bytes, target_width: int = 60) -> str:
        """
        Decodes and renders an image without blocking the event loop.

        Args:
            image_data: Encoded image bytes (JPEG, PNG, ...).
            target_width: Number of characters per row.

        Returns:
            The rows of the preview, each terminated by a newline.

        Raises:
            ImageDecodeError: If the image cannot be decoded.
            ValueError: If `target_width` is smaller than 1.
        """
        if target_width < 1:
            raise ValueError("Target width must be at least 1 character.")
        return await asyncio.to_thread(self.render_sync, image_data, target_width)

    def render_sync(self, image_data: bytes, target_width: int = 60) -> str:
        try:
            with Image.open(io.BytesIO(image_data)) as img:
                img.load()
                width, height = img.size
                rows = target_height(target_width, width, height)
                if rows < 1:
                    log.debug(
                        f"Image {width}x{height} is too flat for {target_width} columns."
                    )
                    return ""
                # Drops alpha; the color channels keep their stored values
                rgb = img.convert("RGB")
                sampled = rgb.resize((target_width, rows), Image.Resampling.BOX)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as e:
            raise ImageDecodeError(f"Could not decode image for ASCII preview: {e}") from e

        pixels = sampled.load()
        art = []
        for y in range(rows):
            for x in range(target_width):
                r, g, b = pixels[x, y]
                art.append(luminance_to_char(r, g, b, self.ramp))
            art.append("\n")
        return "".join(art)
