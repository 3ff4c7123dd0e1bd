"""
Utilities for handling file paths and deriving cache filenames from URLs.
"""

import posixpath
from pathlib import Path
from urllib.parse import unquote, urlsplit


def filename_from_url(url: str) -> str:
    """
    Returns the last path segment of a URL, percent-decoded.

    Query strings and fragments are ignored. Returns an empty string when the
    URL path has no usable final segment (e.g. it ends with a slash).
    """
    path = urlsplit(url).path
    name = unquote(posixpath.basename(path))
    # A decoded segment could still smuggle a separator; keep only the tail.
    name = name.replace("\\", "/").rsplit("/", 1)[-1]
    return "" if name in (".", "..") else name


def extension_of(filename: str) -> str:
    """Returns the case-folded extension of a filename, without the leading dot."""
    suffix = Path(filename).suffix
    return suffix[1:].casefold() if suffix else ""


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def remove_quietly(path: Path) -> bool:
    """
    Deletes a file if present, ignoring filesystem errors.

    Returns True if the file is gone afterwards.
    """
    try:
        path.unlink(missing_ok=True)
    except OSError:
        return False
    return True
