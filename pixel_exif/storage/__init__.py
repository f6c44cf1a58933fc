"""
Storage Layer.

This package handles the persisted configuration file. Extracted records and
their buffers are never written to disk.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
