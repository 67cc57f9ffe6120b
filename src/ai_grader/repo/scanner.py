"""Directory scanning: ignore rules, limits, and bounded-concurrency reads."""

from __future__ import annotations

import asyncio
import os
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from ai_grader.errors import DirectoryNotFoundError, ScanError
from ai_grader.log import get_logger
from ai_grader.models import RepoSnapshot, ScannedFile, ScanOptions, SkipReason
from ai_grader.repo.fs import EntryKind, FileSystem, LocalFileSystem

logger = get_logger("scanner")

CODE_EXTENSIONS = frozenset(
    {
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".mjs",
        ".cjs",
        ".json",
        ".yaml",
        ".yml",
    }
)

# Pruned during traversal, never descended into
IGNORE_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".direnv",
        "dist",
        "build",
        ".next",
        "coverage",
        ".turbo",
        ".cache",
        ".output",
        ".nuxt",
        ".vercel",
        ".netlify",
        "__pycache__",
        ".venv",
        "vendor",
    }
)

IGNORE_FILES = frozenset(
    {
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "bun.lockb",
        "bun.lock",
    }
)


def is_code_file(extension: str) -> bool:
    return extension in CODE_EXTENSIONS


def is_ignored_directory(name: str) -> bool:
    return name in IGNORE_DIRS


def get_file_summary(files: Iterable[ScannedFile]) -> dict[str, int]:
    """Count files per extension; files without one go under 'no-extension'."""
    summary: dict[str, int] = {}
    for f in files:
        ext = f.extension or "no-extension"
        summary[ext] = summary.get(ext, 0) + 1
    return summary


@dataclass(frozen=True)
class _Candidate:
    full_path: str
    relative_path: str
    extension: str


class RepoScanner:
    """Walks a project directory and reads the code files in it."""

    def __init__(self, fs: FileSystem | None = None) -> None:
        self._fs = fs or LocalFileSystem()

    async def scan_project(
        self, directory: str, options: ScanOptions | None = None
    ) -> RepoSnapshot:
        """Scan ``directory`` and return the files that pass every filter.

        Any filesystem error aborts the scan with ScanError; no partial
        snapshot is returned.
        """
        options = options or ScanOptions()
        root = os.path.abspath(directory)
        if not await self._is_directory(root):
            raise DirectoryNotFoundError(directory)

        skipped: Counter[str] = Counter()
        candidates = await asyncio.to_thread(self._collect, root, options, skipped)

        total_files = len(candidates)
        limited = candidates[: options.max_files]
        if total_files > options.max_files:
            skipped[SkipReason.MAX_FILES_LIMIT.value] = total_files - options.max_files

        semaphore = asyncio.Semaphore(options.concurrency)

        async def read(candidate: _Candidate) -> ScannedFile | None:
            async with semaphore:
                return await asyncio.to_thread(self._read, candidate, options.max_file_bytes)

        # gather preserves input order, so results follow traversal order
        tasks = [asyncio.create_task(read(c)) for c in limited]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        files = tuple(f for f in results if f is not None)

        too_large = len(limited) - len(files)
        if too_large:
            skipped[SkipReason.FILE_TOO_LARGE.value] += too_large

        logger.debug(
            "Scanned %s: %d candidates, %d read, %d skipped",
            root,
            total_files,
            len(files),
            total_files - len(files),
        )
        return RepoSnapshot(
            files=files,
            total_files=total_files,
            skipped_files=total_files - len(files),
            skipped_reasons=dict(skipped),
        )

    async def _is_directory(self, path: str) -> bool:
        try:
            st = await asyncio.to_thread(self._fs.stat, path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ScanError(path, str(e)) from e
        return st.kind == EntryKind.DIRECTORY

    def _collect(
        self, root: str, options: ScanOptions, skipped: Counter[str]
    ) -> list[_Candidate]:
        """Depth-first walk applying the name, pattern and extension filters."""
        candidates: list[_Candidate] = []
        # Resolved directories already walked, so symlink cycles are entered once
        visited: set[tuple[int, int]] = set()

        def walk(directory: str) -> None:
            try:
                entries = self._fs.list_dir(directory)
            except OSError as e:
                raise ScanError(directory, str(e)) from e

            for entry in entries:
                full_path = os.path.join(directory, entry)
                try:
                    st = self._fs.stat(full_path)
                except OSError as e:
                    raise ScanError(full_path, str(e)) from e

                if st.kind == EntryKind.DIRECTORY:
                    if is_ignored_directory(entry):
                        continue
                    if st.identity is not None:
                        if st.identity in visited:
                            logger.debug("Skipping %s (already visited)", full_path)
                            continue
                        visited.add(st.identity)
                    walk(full_path)
                    continue
                if st.kind != EntryKind.FILE:
                    continue

                relative_path = os.path.relpath(full_path, root).replace(os.sep, "/")

                if entry in IGNORE_FILES:
                    skipped[SkipReason.IGNORED_FILE.value] += 1
                    continue
                if any(pattern in relative_path for pattern in options.ignore_patterns):
                    skipped[SkipReason.IGNORE_PATTERN.value] += 1
                    continue
                extension = os.path.splitext(entry)[1]
                if not is_code_file(extension):
                    skipped[SkipReason.NON_CODE_EXTENSION.value] += 1
                    continue

                candidates.append(_Candidate(full_path, relative_path, extension))

        try:
            root_identity = self._fs.stat(root).identity
        except OSError as e:
            raise ScanError(root, str(e)) from e
        if root_identity is not None:
            visited.add(root_identity)

        walk(root)
        return candidates

    def _read(self, candidate: _Candidate, max_file_bytes: int) -> ScannedFile | None:
        try:
            size = self._fs.stat(candidate.full_path).size
            if size > max_file_bytes:
                logger.debug("Skipping %s (%d bytes)", candidate.relative_path, size)
                return None
            content = self._fs.read_text(candidate.full_path)
        except OSError as e:
            raise ScanError(candidate.full_path, str(e)) from e
        except UnicodeDecodeError as e:
            raise ScanError(candidate.full_path, f"not valid UTF-8 text ({e.reason})") from e

        return ScannedFile(
            path=candidate.full_path,
            relative_path=candidate.relative_path,
            content=content,
            extension=candidate.extension,
            size_bytes=size,
        )
