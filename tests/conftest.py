"""Shared test fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel

from ai_grader.errors import AIInvocationError
from ai_grader.models import (
    Category,
    FileReview,
    FileReviewResponse,
    Issue,
    ProjectReview,
    ProjectSummaryResponse,
    ReviewedIssue,
    ScannedFile,
    Severity,
    SummaryIssue,
)
from ai_grader.providers.base import ModelBackend


class FakeBackend(ModelBackend):
    """Scripted backend that records every request."""

    def __init__(self, *, fail_on_call: int | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_on_call = fail_on_call

    @property
    def model_id(self) -> str:
        return "fake-model"

    async def generate_object(
        self,
        *,
        system: str,
        prompt: str,
        schema: type[BaseModel],
        object_name: str,
    ) -> Any:
        self.calls.append(
            {"system": system, "prompt": prompt, "schema": schema, "object_name": object_name}
        )
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise AIInvocationError(object_name, "ThrottlingException: rate exceeded")

        if schema is FileReviewResponse:
            return FileReviewResponse(
                summary=f"Reviewed call {len(self.calls)}",
                issues=[
                    ReviewedIssue(
                        severity=Severity.WARNING,
                        category=Category.ERROR_HANDLING,
                        line=3,
                        description="Promise rejection is not handled",
                        recommendation="Add a catch handler",
                    )
                ],
                positives=["Clear naming"],
            )
        return ProjectSummaryResponse(
            overall_score=7,
            summary="Solid project with a few gaps.",
            top_issues=[
                SummaryIssue(
                    severity=Severity.CRITICAL,
                    category=Category.SECURITY,
                    file="src/a.ts",
                    description="Secrets are logged",
                    recommendation="Redact secrets before logging",
                )
            ],
            recommendations=["Add error handling", "Enable strict mode"],
        )

    @property
    def file_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["object_name"] == "FileReview"]


@pytest.fixture(autouse=True)
def reset_grader_logger() -> Iterator[None]:
    """Undo configure_logging so caplog sees ai_grader records."""
    yield
    logger = logging.getLogger("ai_grader")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


def _make_file(relative_path: str, content: str = "export const x = 1\n") -> ScannedFile:
    extension = Path(relative_path).suffix
    return ScannedFile(
        path=f"/project/{relative_path}",
        relative_path=relative_path,
        content=content,
        extension=extension,
        size_bytes=len(content.encode("utf-8")),
    )


def _write_tree(root: Path, files: dict[str, str | bytes]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def sample_review() -> ProjectReview:
    """A review touching every renderer branch."""
    return ProjectReview(
        overall_score=6,
        summary="Reasonable structure, weak error handling.",
        file_reviews=(
            FileReview(
                file="src/server.ts",
                summary="HTTP server setup.",
                issues=(
                    Issue(
                        severity=Severity.CRITICAL,
                        category=Category.SECURITY,
                        file="src/server.ts",
                        line=12,
                        description="User input is concatenated into SQL",
                        recommendation="Use parameterized queries",
                        code_snippet="db.query('SELECT * FROM t WHERE id=' + id)",
                    ),
                    Issue(
                        severity=Severity.SUGGESTION,
                        category=Category.TYPE_SAFETY,
                        file="src/server.ts",
                        description="Handler uses any",
                        recommendation="Type the request body",
                    ),
                ),
                positives=("Small functions",),
            ),
            FileReview(
                file="src/util.ts",
                summary="Helpers.",
                issues=(
                    Issue(
                        severity=Severity.WARNING,
                        category=Category.PERFORMANCE,
                        file="src/util.ts",
                        line=4,
                        description="Synchronous file read in a request path",
                        recommendation="Use fs.promises",
                    ),
                ),
            ),
            FileReview(file="package.json", summary="Manifest.", positives=("Pinned deps",)),
        ),
        top_issues=(
            Issue(
                severity=Severity.CRITICAL,
                category=Category.SECURITY,
                file="src/server.ts",
                description="SQL injection in the user lookup",
                recommendation="Use parameterized queries",
            ),
        ),
        recommendations=("Adopt a query builder", "Turn on strict TypeScript"),
    )


@pytest.fixture
def make_file() -> Callable[..., ScannedFile]:
    """Build a ScannedFile without touching the disk."""
    return _make_file


@pytest.fixture
def write_tree() -> Callable[[Path, dict[str, str | bytes]], None]:
    """Create files (and parent dirs) under a root."""
    return _write_tree
