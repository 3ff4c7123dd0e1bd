"""
Discovers KAPE module files and extracts the `BinaryUrl` declarations they contain.
"""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from kape_bins.models.config import DEFAULT_MODULE_EXTENSION, DEFAULT_URL_PREFIX
from kape_bins.models.report import DownloadReference
from kape_bins.utils.path import extension_of, filename_from_url

log = logging.getLogger(__name__)


def find_module_files(
    root: Path, extension: str = DEFAULT_MODULE_EXTENSION
) -> Iterator[Path]:
    """
    Recursively yields module files below `root` in filesystem traversal order.

    Matching is on the file suffix, case-insensitively, so `Foo.MKAPE` is found
    on case-sensitive filesystems too.
    """
    wanted = extension.casefold()
    for path in root.rglob("*"):
        if path.suffix.casefold() == wanted and path.is_file():
            yield path


def extract_binary_urls(
    lines: str | Iterable[str], prefix: str = DEFAULT_URL_PREFIX
) -> Iterator[str]:
    """
    Yields the URL token of every line that declares a binary download.

    A declaration is a line whose trimmed content starts with `prefix`
    (case-sensitive), followed by whitespace and a non-whitespace token. The
    token is passed through as-is; anything after it on the line is ignored.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(prefix):
            continue
        rest = stripped[len(prefix):]
        if not rest or not rest[0].isspace():
            continue
        tokens = rest.split()
        if tokens:
            yield tokens[0]


def make_reference(url: str, module_path: Path | None = None) -> DownloadReference:
    """Builds a download reference, deriving the cache filename from the URL."""
    filename = filename_from_url(url)
    return DownloadReference(
        url=url,
        filename=filename,
        extension=extension_of(filename),
        module_path=module_path,
    )


def read_module_references(
    module_path: Path, prefix: str = DEFAULT_URL_PREFIX
) -> list[DownloadReference]:
    """
    Returns the download references declared in one module file.

    A module that cannot be read is logged and contributes no references.
    """
    try:
        text = module_path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        log.warning(f"[yellow]Could not read module {module_path}: {e}[/yellow]")
        return []

    references = []
    for url in extract_binary_urls(text, prefix):
        log.debug(f"Found URL in {module_path.name}: {url}")
        references.append(make_reference(url, module_path))
    return references
