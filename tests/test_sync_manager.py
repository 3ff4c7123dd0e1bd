"""
End-to-end tests for SyncManager against a local server.
"""

from pathlib import Path

import pytest

from kape_bins.core.sync_manager import SyncManager
from kape_bins.models.config import SyncConfig
from kape_bins.models.report import ItemStatus
from tests.conftest import EXE_BYTES, UNREACHABLE_URL, url_for


def write_module(root: Path, name: str, *urls: str) -> Path:
    module = root / "Modules" / name
    module.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"Description: {name}", "Category: Test"]
    lines += [f"BinaryUrl: {url}" for url in urls]
    module.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return module


@pytest.mark.asyncio
async def test_full_run_downloads_extracts_and_promotes(binary_server, tmp_path):
    write_module(tmp_path, "EvtxECmd.mkape", url_for(binary_server, "/tools.zip"))
    write_module(tmp_path, "Tool.mkape", url_for(binary_server, "/tool.exe"))

    report = await SyncManager(SyncConfig(root_dir=tmp_path)).execute()

    cache = tmp_path / "bin"
    assert report.module_files == 2
    assert sorted(r.status.value for r in report.downloads) == [
        "downloaded",
        "extracted",
    ]
    assert not (cache / "tools.zip").exists()
    assert (cache / "tool.exe").read_bytes() == EXE_BYTES
    assert (cache / "EvtxExplorer" / "EvtxECmd.exe").is_file()
    assert (cache / "EvtxECmd.exe").read_bytes() == EXE_BYTES
    assert report.count(ItemStatus.COPIED, promotions=True) == 1
    assert report.failures == []


@pytest.mark.asyncio
async def test_second_run_downloads_nothing(binary_server, tmp_path):
    write_module(tmp_path, "Tool.mkape", url_for(binary_server, "/tool.exe"))
    config = SyncConfig(root_dir=tmp_path)

    await SyncManager(config).execute()
    second = await SyncManager(config).execute()

    assert binary_server.hits["/tool.exe"] == 1
    assert [r.status for r in second.downloads] == [ItemStatus.SKIPPED]


@pytest.mark.asyncio
async def test_failures_do_not_abort_the_run(binary_server, tmp_path):
    write_module(
        tmp_path,
        "Mixed.mkape",
        UNREACHABLE_URL,
        url_for(binary_server, "/broken.zip"),
        url_for(binary_server, "/tool.exe"),
    )

    report = await SyncManager(SyncConfig(root_dir=tmp_path)).execute()

    assert [r.status for r in report.downloads] == [
        ItemStatus.FAILED,
        ItemStatus.FAILED,
        ItemStatus.DOWNLOADED,
    ]
    assert len(report.failures) == 2
    cache = tmp_path / "bin"
    assert not (cache / "unreachable.exe").exists()
    assert not (cache / "broken.zip").exists()
    assert (cache / "tool.exe").is_file()


@pytest.mark.asyncio
async def test_dry_run_touches_nothing(binary_server, tmp_path):
    write_module(tmp_path, "Tool.mkape", url_for(binary_server, "/tool.exe"))

    report = await SyncManager(SyncConfig(root_dir=tmp_path, dry_run=True)).execute()

    assert [r.status for r in report.downloads] == [ItemStatus.PLANNED]
    assert report.promotions == []
    assert binary_server.hits["/tool.exe"] == 0
    assert not (tmp_path / "bin").exists()


@pytest.mark.asyncio
async def test_no_modules_still_creates_cache_and_promotes(tmp_path):
    report = await SyncManager(SyncConfig(root_dir=tmp_path)).execute()

    assert (tmp_path / "bin").is_dir()
    assert report.downloads == []
    assert all(r.status is ItemStatus.NOT_FOUND for r in report.promotions)


@pytest.mark.asyncio
async def test_promotion_can_be_disabled(tmp_path):
    nested = tmp_path / "bin" / "EvtxExplorer" / "EvtxECmd.exe"
    nested.parent.mkdir(parents=True)
    nested.write_bytes(b"x")

    report = await SyncManager(SyncConfig(root_dir=tmp_path, promote=False)).execute()

    assert report.promotions == []
    assert not (tmp_path / "bin" / "EvtxECmd.exe").exists()


@pytest.mark.asyncio
async def test_custom_cache_dir_name(binary_server, tmp_path):
    write_module(tmp_path, "Tool.mkape", url_for(binary_server, "/tool.exe"))

    await SyncManager(SyncConfig(root_dir=tmp_path, cache_dir_name="tools")).execute()

    assert (tmp_path / "tools" / "tool.exe").is_file()
    assert not (tmp_path / "bin").exists()


@pytest.mark.asyncio
async def test_zip_is_fetched_again_on_every_run(binary_server, tmp_path):
    write_module(tmp_path, "EvtxECmd.mkape", url_for(binary_server, "/tools.zip"))
    config = SyncConfig(root_dir=tmp_path)

    await SyncManager(config).execute()
    second = await SyncManager(config).execute()

    # The archive is deleted after extraction, so the presence check never matches.
    assert binary_server.hits["/tools.zip"] == 2
    assert [r.status for r in second.downloads] == [ItemStatus.EXTRACTED]
