"""Two-phase project review: one model call per file, then one summary call."""

from __future__ import annotations

from collections.abc import Sequence

from ai_grader.log import get_logger
from ai_grader.models import (
    FileReview,
    FileReviewResponse,
    Issue,
    ProjectReview,
    ProjectSummaryResponse,
    ScannedFile,
)
from ai_grader.providers.base import ModelBackend
from ai_grader.review.prompts import (
    SYSTEM_PROMPT,
    build_file_prompt,
    build_project_context,
    build_summary_prompt,
)

logger = get_logger("review")

MAX_FILE_SIZE = 15_000  # characters
MAX_FILES_PER_BATCH = 20


def select_batch(files: Sequence[ScannedFile]) -> list[ScannedFile]:
    """Drop oversized files, then cap the batch, keeping scan order."""
    return [f for f in files if len(f.content) <= MAX_FILE_SIZE][:MAX_FILES_PER_BATCH]


class ReviewOrchestrator:
    """Reviews scanned files with a model backend and aggregates the results."""

    def __init__(self, backend: ModelBackend) -> None:
        self._backend = backend

    async def analyze_file(
        self, file: ScannedFile, project_context: str | None = None
    ) -> FileReview:
        """Review a single file. Issues are tagged with the file's relative path."""
        response = await self._backend.generate_object(
            system=SYSTEM_PROMPT,
            prompt=build_file_prompt(file, project_context),
            schema=FileReviewResponse,
            object_name="FileReview",
        )
        return FileReview(
            file=file.relative_path,
            summary=response.summary,
            issues=tuple(
                Issue(
                    severity=issue.severity,
                    category=issue.category,
                    file=file.relative_path,
                    line=issue.line,
                    description=issue.description,
                    recommendation=issue.recommendation,
                    code_snippet=issue.code_snippet,
                )
                for issue in response.issues
            ),
            positives=tuple(response.positives),
        )

    async def analyze_project(self, files: Sequence[ScannedFile]) -> ProjectReview:
        """Review up to MAX_FILES_PER_BATCH files in order, then summarize the project.

        Files are reviewed one at a time. Any failed model call raises
        AIInvocationError and nothing partial is returned.
        """
        batch = select_batch(files)
        skipped = len(files) - len(batch)
        if skipped > 0:
            logger.warning("Skipping %d files (too large or exceeds batch limit)", skipped)

        project_context = build_project_context(files)

        logger.info("Analyzing %d files with %s...", len(batch), self._backend.model_id)
        file_reviews: list[FileReview] = []
        for file in batch:
            logger.debug("Analyzing: %s", file.relative_path)
            file_reviews.append(await self.analyze_file(file, project_context))

        logger.info("Generating project summary...")
        summary = await self._backend.generate_object(
            system=SYSTEM_PROMPT,
            prompt=build_summary_prompt(file_reviews),
            schema=ProjectSummaryResponse,
            object_name="ProjectSummary",
        )

        return ProjectReview(
            overall_score=summary.overall_score,
            summary=summary.summary,
            file_reviews=tuple(file_reviews),
            top_issues=tuple(
                Issue(
                    severity=issue.severity,
                    category=issue.category,
                    file=issue.file,
                    description=issue.description,
                    recommendation=issue.recommendation,
                )
                for issue in summary.top_issues
            ),
            recommendations=tuple(summary.recommendations),
        )

