"""
The main orchestrator: scans module files, downloads their binaries, and promotes
known executables.
"""

import logging
from pathlib import Path

from kape_bins.fetch import Downloader
from kape_bins.models.config import SyncConfig
from kape_bins.models.report import DownloadReference, ItemResult, ItemStatus, RunReport
from kape_bins.utils.path import create_dir

from .promoter import promote_binaries
from .scanner import find_module_files, read_module_references

log = logging.getLogger(__name__)


class SyncManager:
    """Orchestrates an entire sync run, one reference at a time."""

    def __init__(self, config: SyncConfig, downloader: Downloader | None = None):
        self.config = config
        self.downloader = downloader or Downloader(
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )
        self.report = RunReport(dry_run=config.dry_run)

    @property
    def cache_dir(self) -> Path:
        return self.config.cache_dir

    def collect_references(self) -> list[DownloadReference]:
        """Scans the root directory and returns every declared reference."""
        references = []
        for module_path in find_module_files(
            self.config.root_dir, self.config.module_extension
        ):
            self.report.module_files += 1
            for reference in read_module_references(
                module_path, self.config.url_prefix
            ):
                log.info(
                    f"Found URL in [dim]{module_path.name}[/dim]: {reference.url}"
                )
                references.append(reference)
        return references

    async def execute(self) -> RunReport:
        """Runs the full pipeline and returns the collected report."""
        try:
            if not self.config.dry_run:
                create_dir(self.cache_dir)

            references = self.collect_references()
            if not references:
                log.info("No binary references found. Nothing to download.")

            for reference in references:
                self.report.downloads.append(await self._process_reference(reference))

            if self.config.promote and not self.config.dry_run:
                self.report.promotions.extend(
                    promote_binaries(self.cache_dir, self.config.copy_mappings)
                )
        finally:
            await self.downloader.close()
            self.report.finish()

        return self.report

    async def _process_reference(self, reference: DownloadReference) -> ItemResult:
        if not self.config.dry_run:
            return await self.downloader.fetch(reference, self.cache_dir)

        if reference.filename and (self.cache_dir / reference.filename).exists():
            return ItemResult(reference.url, ItemStatus.SKIPPED, "already present")
        log.info(f"[cyan]Would download[/cyan] {reference.url}")
        return ItemResult(reference.url, ItemStatus.PLANNED)
