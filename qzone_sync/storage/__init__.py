"""
Storage Layer.

This package handles data persistence: the INI configuration file and the
JSON track file of per-album sync checkpoints.
"""

from .config_manager import ConfigManager
from .track_store import TrackStore

__all__ = ["ConfigManager", "TrackStore"]
