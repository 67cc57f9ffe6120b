"""Repo detection from package.json and lockfiles."""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Iterable
from typing import Any

from ai_grader.errors import DirectoryNotFoundError, ScanError
from ai_grader.log import get_logger
from ai_grader.models import Framework, PackageManager, RepoInfo
from ai_grader.repo.fs import EntryKind, FileSystem, LocalFileSystem

logger = get_logger("detector")

MANIFEST_FILE = "package.json"
TSCONFIG_FILE = "tsconfig.json"

# Checked in order; the first lockfile found wins
LOCKFILE_TO_MANAGER: tuple[tuple[str, PackageManager], ...] = (
    ("package-lock.json", PackageManager.NPM),
    ("yarn.lock", PackageManager.YARN),
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("bun.lockb", PackageManager.BUN),
    ("bun.lock", PackageManager.BUN),
)

FRAMEWORK_PACKAGES: dict[str, Framework] = {
    "express": Framework.EXPRESS,
    "fastify": Framework.FASTIFY,
    "@nestjs/core": Framework.NEST,
    "koa": Framework.KOA,
    "@hapi/hapi": Framework.HAPI,
    "next": Framework.NEXT,
    "nuxt": Framework.NUXT,
    "@remix-run/node": Framework.REMIX,
    "astro": Framework.ASTRO,
    "effect": Framework.EFFECT,
}


def detect_frameworks(dependencies: Iterable[str]) -> list[Framework]:
    """Map dependency names to frameworks, first-seen order, no duplicates."""
    frameworks: list[Framework] = []
    for dep in dependencies:
        framework = FRAMEWORK_PACKAGES.get(dep)
        if framework is not None and framework not in frameworks:
            frameworks.append(framework)
    return frameworks


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class RepoDetector:
    """Reads manifest metadata for the project being reviewed."""

    def __init__(self, fs: FileSystem | None = None) -> None:
        self._fs = fs or LocalFileSystem()

    async def detect_repo(self, directory: str) -> RepoInfo:
        root = os.path.abspath(directory)
        return await asyncio.to_thread(self._detect, directory, root)

    def _detect(self, directory: str, root: str) -> RepoInfo:
        try:
            if self._fs.stat(root).kind != EntryKind.DIRECTORY:
                raise DirectoryNotFoundError(directory)
        except FileNotFoundError as e:
            raise DirectoryNotFoundError(directory) from e
        except OSError as e:
            raise ScanError(root, str(e)) from e

        package_manager = self._detect_package_manager(root)
        manifest = self._read_manifest(root)

        dependencies = _string_map(manifest.get("dependencies"))
        dev_dependencies = _string_map(manifest.get("devDependencies"))
        all_deps = [*dependencies, *dev_dependencies]

        has_typescript = (
            self._exists(os.path.join(root, TSCONFIG_FILE)) or "typescript" in all_deps
        )

        return RepoInfo(
            name=_optional_str(manifest.get("name")),
            version=_optional_str(manifest.get("version")),
            description=_optional_str(manifest.get("description")),
            package_manager=package_manager,
            has_typescript=has_typescript,
            frameworks=tuple(detect_frameworks(all_deps)),
            scripts=_string_map(manifest.get("scripts")),
            dependencies=tuple(dependencies),
            dev_dependencies=tuple(dev_dependencies),
        )

    def _exists(self, path: str) -> bool:
        try:
            return self._fs.exists(path)
        except OSError as e:
            raise ScanError(path, str(e)) from e

    def _detect_package_manager(self, root: str) -> PackageManager | None:
        for lockfile, manager in LOCKFILE_TO_MANAGER:
            if self._exists(os.path.join(root, lockfile)):
                return manager
        return None

    def _read_manifest(self, root: str) -> dict[str, Any]:
        path = os.path.join(root, MANIFEST_FILE)
        if not self._exists(path):
            return {}
        try:
            content = self._fs.read_text(path)
        except OSError as e:
            raise ScanError(path, str(e)) from e
        except UnicodeDecodeError:
            logger.warning("%s is not valid UTF-8, ignoring it", MANIFEST_FILE)
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("%s could not be parsed, ignoring it", MANIFEST_FILE)
            return {}
        return data if isinstance(data, dict) else {}


def format_repo_info(info: RepoInfo) -> str:
    """Plain-text summary of detected repo metadata."""
    lines: list[str] = []

    name = info.name or "Unknown"
    lines.append(f"{name} (v{info.version})" if info.version else name)

    if info.description:
        lines.append(info.description)

    lines.append("")

    if info.package_manager:
        lines.append(f"Package Manager: {info.package_manager.value}")

    lines.append(f"TypeScript: {'Yes' if info.has_typescript else 'No'}")

    if info.frameworks:
        lines.append(f"Frameworks: {', '.join(f.value for f in info.frameworks)}")

    if info.scripts:
        lines.append(f"Scripts: {len(info.scripts)} defined")

    lines.append(
        f"Dependencies: {len(info.dependencies)} prod, {len(info.dev_dependencies)} dev"
    )
    return "\n".join(lines)
