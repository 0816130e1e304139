"""
QZone API Layer.

This package handles all communication with the QZone photo service.
"""

from .auth import CookieCredentials
from .client import QzoneAPIClient
from .source import MediaStream, RemoteAlbumSource

__all__ = ["CookieCredentials", "MediaStream", "QzoneAPIClient", "RemoteAlbumSource"]
