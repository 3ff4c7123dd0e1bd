"""
Fetch Layer.

This package is responsible for downloading binaries over HTTP into the cache
directory and expanding zip archives in place.
"""

from .archive import extract_archive
from .downloader import Downloader

__all__ = ["Downloader", "extract_archive"]
