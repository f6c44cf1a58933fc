"""
pixel-exif: extract, normalize and verify image metadata.
"""

__version__ = "0.1.0"
