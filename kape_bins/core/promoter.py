"""
Promotes known executables from nested extraction folders to the cache root.
"""

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from kape_bins.exceptions import CopyError
from kape_bins.models.config import DEFAULT_COPY_MAPPINGS, CopyMapping
from kape_bins.models.report import ItemResult, ItemStatus

log = logging.getLogger(__name__)


def copy_binary(source: Path, destination_dir: Path) -> Path:
    """
    Copies `source` into `destination_dir`, replacing a same-named file.

    Raises:
        CopyError: If the copy fails.
    """
    target = destination_dir / source.name
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
    except (OSError, shutil.Error) as e:
        raise CopyError(f"Could not copy {source} to {destination_dir}: {e}") from e
    return target


def promote_binaries(
    cache_dir: Path, mappings: Iterable[CopyMapping] = DEFAULT_COPY_MAPPINGS
) -> list[ItemResult]:
    """
    Applies each copy mapping against the cache directory.

    A missing source is an expected outcome, reported as `NOT_FOUND`. Copy
    failures are reported as `FAILED` and do not stop the remaining mappings.
    Sources are only read, never moved or deleted.
    """
    results = []
    for mapping in mappings:
        source = mapping.source_path(cache_dir)
        if not source.is_file():
            log.info(f"[dim]↷ Skipped {mapping.source} (not found)[/dim]")
            results.append(ItemResult(mapping.source, ItemStatus.NOT_FOUND))
            continue

        try:
            target = copy_binary(source, mapping.destination_path(cache_dir))
        except CopyError as e:
            log.warning(f"[yellow]⚠️  {e}[/yellow]")
            results.append(ItemResult(mapping.source, ItemStatus.FAILED, str(e)))
            continue

        log.info(f"[green]✓ Copied[/green] {mapping.source} → {target.name}")
        results.append(ItemResult(mapping.source, ItemStatus.COPIED, str(target)))
    return results
