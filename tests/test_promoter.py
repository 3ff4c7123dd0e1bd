"""
Tests for promoting known executables to the cache root.
"""

from pathlib import Path

import pytest

from kape_bins.core.promoter import copy_binary, promote_binaries
from kape_bins.exceptions import CopyError
from kape_bins.models.config import DEFAULT_COPY_MAPPINGS, CopyMapping
from kape_bins.models.report import ItemStatus


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


def snapshot(directory: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(directory)): p.read_bytes()
        for p in directory.rglob("*")
        if p.is_file()
    }


class TestPromoteBinaries:
    """Tests for promote_binaries."""

    def test_copies_nested_executable_to_root(self, cache_dir: Path):
        nested = cache_dir / "EvtxExplorer" / "EvtxECmd.exe"
        nested.parent.mkdir()
        nested.write_bytes(b"evtx")

        results = promote_binaries(cache_dir)

        assert (cache_dir / "EvtxECmd.exe").read_bytes() == b"evtx"
        assert nested.read_bytes() == b"evtx"
        statuses = {r.subject: r.status for r in results}
        assert statuses["EvtxExplorer/EvtxECmd.exe"] is ItemStatus.COPIED
        assert statuses["RegistryExplorer/RECmd.exe"] is ItemStatus.NOT_FOUND

    def test_overwrites_existing_root_copy(self, cache_dir: Path):
        nested = cache_dir / "EvtxExplorer" / "EvtxECmd.exe"
        nested.parent.mkdir()
        nested.write_bytes(b"new build")
        (cache_dir / "EvtxECmd.exe").write_bytes(b"old build")

        promote_binaries(cache_dir)

        assert (cache_dir / "EvtxECmd.exe").read_bytes() == b"new build"

    def test_missing_sources_leave_cache_untouched(self, cache_dir: Path):
        (cache_dir / "unrelated.exe").write_bytes(b"x")
        before = snapshot(cache_dir)

        results = promote_binaries(cache_dir)

        assert snapshot(cache_dir) == before
        assert len(results) == len(DEFAULT_COPY_MAPPINGS)
        assert all(r.status is ItemStatus.NOT_FOUND for r in results)

    def test_all_default_mappings(self, cache_dir: Path):
        for mapping in DEFAULT_COPY_MAPPINGS:
            source = mapping.source_path(cache_dir)
            source.parent.mkdir(parents=True, exist_ok=True)
            source.write_bytes(mapping.source.encode())

        results = promote_binaries(cache_dir)

        assert all(r.status is ItemStatus.COPIED for r in results)
        for name in (
            "densityscout.exe",
            "EvtxECmd.exe",
            "RECmd.exe",
            "SBECmd.exe",
            "sqlite3.exe",
        ):
            assert (cache_dir / name).is_file()

    def test_copy_failure_does_not_stop_other_mappings(self, cache_dir: Path):
        (cache_dir / "a").mkdir()
        (cache_dir / "a" / "one.exe").write_bytes(b"1")
        (cache_dir / "b").mkdir()
        (cache_dir / "b" / "two.exe").write_bytes(b"2")
        # A regular file where the destination directory should be.
        (cache_dir / "blocked").write_bytes(b"")
        mappings = [
            CopyMapping(source="a/one.exe", destination="blocked"),
            CopyMapping(source="b/two.exe"),
        ]

        results = promote_binaries(cache_dir, mappings)

        assert [r.status for r in results] == [ItemStatus.FAILED, ItemStatus.COPIED]
        assert "one.exe" in results[0].message
        assert (cache_dir / "two.exe").read_bytes() == b"2"

    def test_directory_at_source_path_is_not_found(self, cache_dir: Path):
        (cache_dir / "win64" / "densityscout.exe").mkdir(parents=True)

        results = promote_binaries(cache_dir, [DEFAULT_COPY_MAPPINGS[0]])

        assert results[0].status is ItemStatus.NOT_FOUND


def test_copy_binary_raises_copy_error(tmp_path: Path):
    with pytest.raises(CopyError):
        copy_binary(tmp_path / "absent.exe", tmp_path / "out")
