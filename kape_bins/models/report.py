"""
Dataclasses describing download references and the outcome of a sync run.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ItemStatus(str, Enum):
    """Terminal state of a single download reference or copy mapping."""

    DOWNLOADED = "downloaded"
    EXTRACTED = "extracted"
    SKIPPED = "skipped"
    PLANNED = "planned"
    COPIED = "copied"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadReference:
    """A `BinaryUrl` declaration found in a module file."""

    url: str
    filename: str
    extension: str
    module_path: Path | None = None

    @property
    def is_archive(self) -> bool:
        return self.extension == "zip"


@dataclass
class ItemResult:
    """Outcome of processing one reference or one copy mapping."""

    subject: str
    status: ItemStatus
    message: str = ""
    size: int = 0

    @property
    def ok(self) -> bool:
        return self.status is not ItemStatus.FAILED


@dataclass
class RunReport:
    """Collects the per-item results of a run, in processing order."""

    downloads: list[ItemResult] = field(default_factory=list)
    promotions: list[ItemResult] = field(default_factory=list)
    module_files: int = 0
    dry_run: bool = False
    _started: float = field(default_factory=time.monotonic, repr=False)
    duration: float = 0.0

    def finish(self) -> None:
        self.duration = time.monotonic() - self._started

    def count(self, status: ItemStatus, promotions: bool = False) -> int:
        """Counts the results with the given status in one phase of the run."""
        items = self.promotions if promotions else self.downloads
        return sum(1 for item in items if item.status is status)

    @property
    def failures(self) -> list[ItemResult]:
        return [
            item for item in self.downloads + self.promotions if not item.ok
        ]

    @property
    def total_size_downloaded(self) -> int:
        return sum(item.size for item in self.downloads)
