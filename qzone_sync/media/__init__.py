"""
Media Layer.

Handles the local storage of downloaded photos and videos.
"""

from .store import LocalMediaStore

__all__ = ["LocalMediaStore"]
