"""Tests for the repo scanner."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from ai_grader.errors import DirectoryNotFoundError, ScanError
from ai_grader.models import ScanOptions
from ai_grader.repo.fs import EntryKind, FileStat, LocalFileSystem
from ai_grader.repo.scanner import (
    RepoScanner,
    get_file_summary,
    is_code_file,
    is_ignored_directory,
)


@pytest.mark.asyncio
async def test_default_scan_scenario(tmp_path: Path, write_tree) -> None:
    write_tree(
        tmp_path,
        {
            "src/a.ts": "a" * 200,
            "src/b.ts": "b" * 51_000,
            "node_modules/dep.js": "module.exports = {}",
            "package-lock.json": "{}",
            "package.json": '{"name": "demo"}',
        },
    )

    snapshot = await RepoScanner().scan_project(str(tmp_path))

    rel_paths = [f.relative_path for f in snapshot.files]
    assert "src/a.ts" in rel_paths
    assert "package.json" in rel_paths
    assert "src/b.ts" not in rel_paths
    assert not any("node_modules" in p for p in rel_paths)
    assert snapshot.total_files == 3  # package.json, a.ts, b.ts
    assert snapshot.skipped_files == 1
    assert snapshot.skipped_reasons == {"ignored-file": 1, "file-too-large": 1}


@pytest.mark.asyncio
async def test_scanned_file_fields(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"src/index.ts": "export {}\n"})

    snapshot = await RepoScanner().scan_project(str(tmp_path))

    (f,) = snapshot.files
    assert f.path == str(tmp_path / "src" / "index.ts")
    assert f.relative_path == "src/index.ts"
    assert f.content == "export {}\n"
    assert f.extension == ".ts"
    assert f.size_bytes == 10


@pytest.mark.asyncio
async def test_ignored_directories_never_descended(tmp_path: Path, write_tree) -> None:
    write_tree(
        tmp_path,
        {
            "src/ok.ts": "ok",
            "src/deep/dist/nested/build.js": "x",
            "a/b/c/node_modules/d/e.js": "x",
            ".git/hooks/pre-commit.js": "x",
            "coverage/lcov.json": "{}",
        },
    )

    snapshot = await RepoScanner().scan_project(str(tmp_path))

    assert [f.relative_path for f in snapshot.files] == ["src/ok.ts"]
    assert snapshot.total_files == 1
    assert snapshot.skipped_reasons == {}


@pytest.mark.asyncio
async def test_max_file_bytes_boundary(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"exact.js": "x" * 100, "over.js": "x" * 101})

    snapshot = await RepoScanner().scan_project(str(tmp_path), ScanOptions(max_file_bytes=100))

    assert [f.relative_path for f in snapshot.files] == ["exact.js"]
    assert snapshot.skipped_reasons == {"file-too-large": 1}


@pytest.mark.asyncio
async def test_filter_order_and_reasons(tmp_path: Path, write_tree) -> None:
    write_tree(
        tmp_path,
        {
            "yarn.lock": "",
            "src/generated/api.ts": "x",
            "README.md": "# hi",
            "src/main.ts": "x",
        },
    )

    snapshot = await RepoScanner().scan_project(
        str(tmp_path), ScanOptions(ignore_patterns=("generated", "README"))
    )

    assert [f.relative_path for f in snapshot.files] == ["src/main.ts"]
    # README.md matches an ignore pattern before its extension is checked
    assert snapshot.skipped_reasons == {"ignored-file": 1, "ignore-pattern": 2}


@pytest.mark.asyncio
async def test_non_code_extension(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"logo.png": b"\x89PNG", "Makefile": "all:", "app.mjs": "x"})

    snapshot = await RepoScanner().scan_project(str(tmp_path))

    assert [f.relative_path for f in snapshot.files] == ["app.mjs"]
    assert snapshot.skipped_reasons == {"non-code-extension": 2}


@pytest.mark.asyncio
async def test_max_files_records_exact_overflow(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {f"f{i:02d}.js": "x" for i in range(12)})

    snapshot = await RepoScanner().scan_project(str(tmp_path), ScanOptions(max_files=5))

    assert [f.relative_path for f in snapshot.files] == [f"f{i:02d}.js" for i in range(5)]
    assert snapshot.total_files == 12
    assert snapshot.skipped_files == 7
    assert snapshot.skipped_reasons == {"max-files-limit": 7}


@pytest.mark.asyncio
async def test_accounting_invariant(tmp_path: Path, write_tree) -> None:
    write_tree(
        tmp_path,
        {
            **{f"src/m{i}.ts": "x" * (10 if i % 2 else 500) for i in range(10)},
            "pnpm-lock.yaml": "",
            "notes.txt": "",
        },
    )

    snapshot = await RepoScanner().scan_project(
        str(tmp_path), ScanOptions(max_files=8, max_file_bytes=100)
    )

    reasons = snapshot.skipped_reasons
    assert snapshot.skipped_files == snapshot.total_files - len(snapshot.files)
    assert (
        len(snapshot.files) + reasons.get("max-files-limit", 0) + reasons.get("file-too-large", 0)
        == snapshot.total_files
    )
    assert sum(reasons.values()) >= snapshot.skipped_files


@pytest.mark.asyncio
async def test_traversal_order_is_depth_first_sorted(tmp_path: Path, write_tree) -> None:
    write_tree(
        tmp_path,
        {"b.js": "x", "a/z.js": "x", "a/b/c.js": "x", "c.js": "x"},
    )

    snapshot = await RepoScanner().scan_project(str(tmp_path), ScanOptions(concurrency=2))

    assert [f.relative_path for f in snapshot.files] == ["a/b/c.js", "a/z.js", "b.js", "c.js"]


@pytest.mark.asyncio
async def test_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(DirectoryNotFoundError):
        await RepoScanner().scan_project(str(tmp_path / "nope"))


@pytest.mark.asyncio
async def test_file_instead_of_directory(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"a.js": "x"})
    with pytest.raises(DirectoryNotFoundError):
        await RepoScanner().scan_project(str(tmp_path / "a.js"))


@pytest.mark.asyncio
async def test_non_utf8_file_aborts_scan(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"good.js": "x", "bad.js": b"\xff\xfe\x00garbage"})

    with pytest.raises(ScanError) as exc_info:
        await RepoScanner().scan_project(str(tmp_path))
    assert exc_info.value.path.endswith("bad.js")


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
@pytest.mark.asyncio
async def test_broken_symlink_aborts_scan(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"ok.js": "x"})
    os.symlink(tmp_path / "missing.js", tmp_path / "dangling.js")

    with pytest.raises(ScanError) as exc_info:
        await RepoScanner().scan_project(str(tmp_path))
    assert isinstance(exc_info.value.__cause__, OSError)


class VanishingFileSystem(LocalFileSystem):
    """Reports a file during traversal, then fails to read it."""

    def __init__(self, victim: str) -> None:
        self.victim = victim

    def read_text(self, path: str) -> str:
        if path.endswith(self.victim):
            raise FileNotFoundError(path)
        return super().read_text(path)


@pytest.mark.asyncio
async def test_read_error_is_not_a_partial_snapshot(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"a.js": "x", "b.js": "x"})

    with pytest.raises(ScanError):
        await RepoScanner(VanishingFileSystem("b.js")).scan_project(str(tmp_path))


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
@pytest.mark.asyncio
async def test_symlink_cycle_is_walked_once(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"src/index.ts": "x", "src/lib/util.ts": "x"})
    os.symlink("..", tmp_path / "src" / "lib" / "up", target_is_directory=True)

    snapshot = await RepoScanner().scan_project(str(tmp_path))

    assert [f.relative_path for f in snapshot.files] == ["src/index.ts", "src/lib/util.ts"]
    assert snapshot.skipped_files == 0


class FailFirstFileSystem(LocalFileSystem):
    """Fails the first read and records every read attempt."""

    def __init__(self) -> None:
        self.reads: list[str] = []

    def read_text(self, path: str) -> str:
        self.reads.append(os.path.basename(path))
        if len(self.reads) == 1:
            raise PermissionError(path)
        return super().read_text(path)


@pytest.mark.asyncio
async def test_read_failure_cancels_pending_reads(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {f"f{i}.js": "x" for i in range(8)})
    fs = FailFirstFileSystem()

    with pytest.raises(ScanError):
        await RepoScanner(fs).scan_project(str(tmp_path), ScanOptions(concurrency=1))

    assert fs.reads[0] == "f0.js"
    assert len(fs.reads) <= 2


class CountingFileSystem(LocalFileSystem):
    """Tracks the peak number of concurrent reads."""

    def __init__(self) -> None:
        import threading

        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def read_text(self, path: str) -> str:
        import time

        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(0.01)
            return super().read_text(path)
        finally:
            with self._lock:
                self.active -= 1


@pytest.mark.asyncio
async def test_reads_respect_concurrency(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {f"f{i}.js": "x" for i in range(10)})
    fs = CountingFileSystem()

    snapshot = await RepoScanner(fs).scan_project(str(tmp_path), ScanOptions(concurrency=2))

    assert len(snapshot.files) == 10
    assert 1 <= fs.peak <= 2


class TestHelpers:
    def test_is_code_file(self) -> None:
        assert is_code_file(".ts")
        assert is_code_file(".yml")
        assert not is_code_file(".py")
        assert not is_code_file("")

    def test_is_ignored_directory(self) -> None:
        assert is_ignored_directory("node_modules")
        assert is_ignored_directory(".direnv")
        assert not is_ignored_directory("src")

    def test_file_summary_empty(self) -> None:
        assert get_file_summary([]) == {}

    def test_file_summary_same_extension(self, make_file) -> None:
        files = [make_file(f"src/{i}.ts") for i in range(4)]
        assert get_file_summary(files) == {".ts": 4}

    def test_file_summary_mixed(self, make_file) -> None:
        files = [make_file("a.ts"), make_file("b.json"), make_file("c.ts"), make_file("LICENSE")]
        assert get_file_summary(files) == {".ts": 2, ".json": 1, "no-extension": 1}


class TestLocalFileSystem:
    def test_stat_kinds(self, tmp_path: Path, write_tree) -> None:
        write_tree(tmp_path, {"d/f.txt": "abc"})
        fs = LocalFileSystem()
        assert fs.stat(str(tmp_path / "d")).kind == EntryKind.DIRECTORY
        file_stat = fs.stat(str(tmp_path / "d" / "f.txt"))
        assert (file_stat.kind, file_stat.size) == (EntryKind.FILE, 3)

    def test_stat_identity_follows_symlinks(self, tmp_path: Path, write_tree) -> None:
        write_tree(tmp_path, {"d/f.txt": "abc"})
        if not hasattr(os, "symlink"):
            pytest.skip("symlinks unavailable")
        os.symlink(tmp_path / "d", tmp_path / "link", target_is_directory=True)
        fs = LocalFileSystem()
        assert fs.stat(str(tmp_path / "link")).identity == fs.stat(str(tmp_path / "d")).identity
        assert fs.stat(str(tmp_path / "d")).identity is not None

    def test_custom_backend_without_identity(self) -> None:
        assert FileStat(kind=EntryKind.OTHER, size=0).identity is None

    def test_list_dir_sorted(self, tmp_path: Path, write_tree) -> None:
        write_tree(tmp_path, {"b": "", "a": "", "c": ""})
        assert LocalFileSystem().list_dir(str(tmp_path)) == ["a", "b", "c"]
