"""
Handles the low-level downloading of binaries over HTTP into the cache directory.
"""

import asyncio
import logging
from pathlib import Path

import aiofiles
import aiohttp

from kape_bins import __version__
from kape_bins.exceptions import ExtractError, FetchError
from kape_bins.models.report import DownloadReference, ItemResult, ItemStatus
from kape_bins.utils.formatting import format_size
from kape_bins.utils.path import remove_quietly

from .archive import extract_archive

log = logging.getLogger(__name__)


def create_session(
    connect_timeout: float = 15.0, read_timeout: float = 90.0
) -> aiohttp.ClientSession:
    """
    Creates the aiohttp ClientSession used for a run.

    Downloads run one at a time, so a single connection per host is enough.
    """
    connector = aiohttp.TCPConnector(
        limit=1,
        ttl_dns_cache=600,  # 10 minutes
        enable_cleanup_closed=True,
    )
    timeout = aiohttp.ClientTimeout(
        total=None, sock_connect=connect_timeout, sock_read=read_timeout
    )
    return aiohttp.ClientSession(
        connector=connector,
        timeout=timeout,
        headers={"User-Agent": f"kape-bins/{__version__}"},
    )


class Downloader:
    """
    Fetches download references into a destination directory.

    Every reference is attempted exactly once. Failures are reported as
    `ItemResult`s rather than raised, so a run always proceeds to the next
    reference.
    """

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        connect_timeout: float = 15.0,
        read_timeout: float = 90.0,
        session: aiohttp.ClientSession | None = None,
    ):
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "Downloader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_session(self.connect_timeout, self.read_timeout)
            self._owns_session = True
            log.debug("Created download session.")
        return self._session

    async def close(self) -> None:
        """Closes the session if this downloader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.debug("Download session closed.")
        self._session = None

    async def fetch(
        self, reference: DownloadReference, destination_dir: Path
    ) -> ItemResult:
        """
        Brings one reference into `destination_dir`.

        Skips the download if a file of the same name is already present.
        Zip archives are expanded into `destination_dir` and then deleted.
        """
        url = reference.url
        if not reference.filename:
            log.warning(f"[yellow]⚠️  Cannot derive a file name from URL:[/] {url}")
            return ItemResult(url, ItemStatus.FAILED, "URL has no file name")

        destination = destination_dir / reference.filename
        if destination.exists():
            log.info(
                f"[yellow]↷ Skipped[/yellow] {reference.filename} "
                "[dim](already present)[/dim]"
            )
            return ItemResult(url, ItemStatus.SKIPPED, "already present")

        log.info(f"[cyan]↓ Downloading[/cyan] {url}")
        try:
            size = await self.download_file(url, destination)
        except FetchError as e:
            log.warning(f"[yellow]⚠️  Download failed for {url}:[/] {e.reason}")
            if not remove_quietly(destination):
                log.debug(f"Could not remove partial download: {destination}")
            return ItemResult(url, ItemStatus.FAILED, e.reason)
        except asyncio.CancelledError:
            # A truncated file would pass the presence check on every later run.
            remove_quietly(destination)
            raise

        log.info(
            f"[green]✓ Downloaded[/green] {reference.filename} "
            f"[dim]({format_size(size)})[/dim]"
        )
        if not reference.is_archive:
            return ItemResult(url, ItemStatus.DOWNLOADED, size=size)

        try:
            members = await asyncio.to_thread(
                extract_archive, destination, destination_dir
            )
        except ExtractError as e:
            log.warning(
                f"[yellow]⚠️  Extraction failed for {destination}:[/] {e.reason}"
            )
            if not remove_quietly(destination):
                log.debug(f"Could not remove archive: {destination}")
            return ItemResult(url, ItemStatus.FAILED, e.reason, size=size)
        except asyncio.CancelledError:
            remove_quietly(destination)
            raise

        if not remove_quietly(destination):
            log.warning(f"[yellow]⚠️  Could not delete archive:[/] {destination}")
        log.info(
            f"[green]✓ Extracted[/green] {reference.filename} "
            f"[dim]({len(members)} entries)[/dim]"
        )
        return ItemResult(
            url, ItemStatus.EXTRACTED, f"{len(members)} entries", size=size
        )

    async def download_file(self, url: str, destination_path: Path) -> int:
        """
        Streams a URL to a file.

        Returns:
            The number of bytes written.

        Raises:
            FetchError: On any network, HTTP or write failure.
        """
        bytes_downloaded = 0
        try:
            async with self.session.get(url, allow_redirects=True) as response:
                response.raise_for_status()
                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
        except aiohttp.ClientResponseError as e:
            raise FetchError(url, f"HTTP {e.status} {e.message}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            raise FetchError(url, str(e) or type(e).__name__) from e
        return bytes_downloaded
