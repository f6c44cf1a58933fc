"""
Media Processing Layer.

This package is responsible for all byte- and pixel-level work: decoding tag
trees from image containers, computing integrity digests and rendering ASCII
previews.
"""

from .ascii_art import AsciiRenderer
from .decoder import TagTreeDecoder
from .integrity import DigestEngine

__all__ = ["AsciiRenderer", "DigestEngine", "TagTreeDecoder"]
