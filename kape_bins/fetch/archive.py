"""
Zip expansion into the cache directory.
"""

import logging
import zipfile
from pathlib import Path

from kape_bins.exceptions import ExtractError
from kape_bins.utils.path import remove_quietly

log = logging.getLogger(__name__)


def extract_archive(archive_path: Path, destination_dir: Path) -> list[str]:
    """
    Expands a zip archive into `destination_dir`, overwriting same-named entries.

    Every member name is checked before anything is written; an entry whose
    path would land outside `destination_dir` fails the whole archive. If
    extraction fails part-way, the files and directories created by this call
    (including parent directories created implicitly) are removed again on a
    best-effort basis. Entries that existed beforehand are left as they are.

    Args:
        archive_path: The zip file to expand.
        destination_dir: The directory to expand into.

    Returns:
        The names of the archive members that were extracted.

    Raises:
        ExtractError: If the archive is corrupt, unreadable or unsafe.
    """
    root = destination_dir.resolve()
    created: list[Path] = []
    extracted: list[str] = []

    try:
        with zipfile.ZipFile(archive_path) as zf:
            members = zf.infolist()
            targets = [_member_target(archive_path, root, m) for m in members]

            for member, target in zip(members, targets):
                created.extend(_missing_parents(root, target))
                existed = target.exists()
                zf.extract(member, root)
                if not existed:
                    created.append(target)
                extracted.append(member.filename)
    except ExtractError:
        _rollback(created)
        raise
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        NotImplementedError,
        RuntimeError,
        EOFError,
        OSError,
    ) as e:
        _rollback(created)
        raise ExtractError(str(archive_path), str(e) or type(e).__name__) from e

    return extracted


def _member_target(archive_path: Path, root: Path, member: zipfile.ZipInfo) -> Path:
    """Resolves where a member lands, refusing paths outside `root`."""
    target = (root / member.filename).resolve()
    if target != root and not target.is_relative_to(root):
        raise ExtractError(
            str(archive_path),
            f"Archive entry escapes the cache directory: '{member.filename}'",
        )
    return target


def _missing_parents(root: Path, target: Path) -> list[Path]:
    """Lists the missing directories between `root` and `target`, outermost first."""
    missing = []
    parent = target.parent
    while parent != root and parent.is_relative_to(root) and not parent.exists():
        missing.append(parent)
        parent = parent.parent
    return list(reversed(missing))


def _rollback(created: list[Path]) -> None:
    """Removes entries created by a failed extraction, deepest first."""
    for path in reversed(created):
        if path.is_dir():
            try:
                path.rmdir()
            except OSError:
                log.debug(f"Left non-empty directory after failed extraction: {path}")
        elif not remove_quietly(path):
            log.debug(f"Could not remove partially extracted file: {path}")
