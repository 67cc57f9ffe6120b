"""Data models for scans, repo detection and AI reviews."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SkipReason(StrEnum):
    """Why a candidate file was left out of a scan."""

    IGNORED_FILE = "ignored-file"
    IGNORE_PATTERN = "ignore-pattern"
    NON_CODE_EXTENSION = "non-code-extension"
    MAX_FILES_LIMIT = "max-files-limit"
    FILE_TOO_LARGE = "file-too-large"


class PackageManager(StrEnum):
    """Package managers recognised from lockfiles."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"


class Framework(StrEnum):
    """Frameworks recognised from manifest dependencies."""

    EXPRESS = "express"
    FASTIFY = "fastify"
    NEST = "nest"
    KOA = "koa"
    HAPI = "hapi"
    NEXT = "next"
    NUXT = "nuxt"
    REMIX = "remix"
    ASTRO = "astro"
    EFFECT = "effect"


class Severity(StrEnum):
    """Issue severity."""

    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class Category(StrEnum):
    """Issue category, matching the reviewer rubric."""

    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    ERROR_HANDLING = "error-handling"
    BEST_PRACTICES = "best-practices"
    TYPE_SAFETY = "type-safety"


# ---------- Scanning ----------


class ScannedFile(BaseModel):
    """A code file read during a scan."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Absolute path")
    relative_path: str = Field(description="Path relative to the scan root, POSIX separators")
    content: str = Field(description="Full text content")
    extension: str = Field(description="Extension including the dot, empty if none")
    size_bytes: int = Field(description="Size on disk when the file was read")


class ScanOptions(BaseModel):
    """Limits and filters applied by the scanner."""

    model_config = ConfigDict(frozen=True)

    max_files: int = Field(default=50, ge=1, description="Candidates kept after filtering")
    max_file_bytes: int = Field(default=50_000, ge=0, description="Largest file read, in bytes")
    ignore_patterns: tuple[str, ...] = Field(
        default=(), description="Substrings matched against relative paths"
    )
    concurrency: int = Field(default=5, ge=1, description="Simultaneous file reads")


class RepoSnapshot(BaseModel):
    """Result of scanning a directory."""

    model_config = ConfigDict(frozen=True)

    files: tuple[ScannedFile, ...] = Field(default=(), description="Files read, traversal order")
    total_files: int = Field(description="Candidates that passed the name/extension filters")
    skipped_files: int = Field(description="total_files - len(files)")
    skipped_reasons: dict[str, int] = Field(
        default_factory=dict, description="Skip counts keyed by SkipReason value"
    )


# ---------- Repo detection ----------


class RepoInfo(BaseModel):
    """Metadata derived from the project manifest and lockfiles."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    version: str | None = None
    description: str | None = None
    package_manager: PackageManager | None = None
    has_typescript: bool = False
    frameworks: tuple[Framework, ...] = ()
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()


# ---------- Reviews ----------


class Issue(BaseModel):
    """A single problem found in a file."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    category: Category
    file: str = Field(description="Relative path of the file the issue belongs to")
    line: int | None = Field(default=None, description="1-based line number, if known")
    description: str
    recommendation: str
    code_snippet: str | None = None


class FileReview(BaseModel):
    """Review of one file."""

    model_config = ConfigDict(frozen=True)

    file: str
    summary: str
    issues: tuple[Issue, ...] = ()
    positives: tuple[str, ...] = ()

    @property
    def has_critical(self) -> bool:
        return any(i.severity == Severity.CRITICAL for i in self.issues)


class ReviewStats(BaseModel):
    """Issue counts across all file reviews."""

    files_analyzed: int = 0
    total_issues: int = 0
    critical_count: int = 0
    warning_count: int = 0
    suggestion_count: int = 0


class ProjectReview(BaseModel):
    """Aggregate review of a project."""

    model_config = ConfigDict(frozen=True)

    overall_score: int = Field(ge=1, le=10, description="Overall quality score")
    summary: str
    file_reviews: tuple[FileReview, ...] = ()
    top_issues: tuple[Issue, ...] = ()
    recommendations: tuple[str, ...] = ()

    def stats(self) -> ReviewStats:
        """Count issues by severity over every file review."""
        issues = [issue for review in self.file_reviews for issue in review.issues]
        return ReviewStats(
            files_analyzed=len(self.file_reviews),
            total_issues=len(issues),
            critical_count=sum(1 for i in issues if i.severity == Severity.CRITICAL),
            warning_count=sum(1 for i in issues if i.severity == Severity.WARNING),
            suggestion_count=sum(1 for i in issues if i.severity == Severity.SUGGESTION),
        )


# ---------- Structured-output schemas ----------


class ReviewedIssue(BaseModel):
    """Issue as returned by the model for a single file (no file path)."""

    severity: Severity
    category: Category
    line: int | None = Field(default=None, description="Line number where the issue occurs")
    description: str = Field(description="What is wrong and why it matters")
    recommendation: str = Field(description="How to fix it")
    code_snippet: str | None = Field(default=None, description="The offending code, if short")


class FileReviewResponse(BaseModel):
    """Schema the model must fill for a file review."""

    summary: str = Field(description="One or two sentence summary of the file")
    issues: list[ReviewedIssue] = Field(default_factory=list)
    positives: list[str] = Field(default_factory=list, description="Good practices observed")


class SummaryIssue(BaseModel):
    """Cross-file issue as returned by the project summary call."""

    severity: Severity
    category: Category
    file: str
    description: str
    recommendation: str


class ProjectSummaryResponse(BaseModel):
    """Schema the model must fill for the project summary."""

    overall_score: int = Field(ge=1, le=10, description="Overall score from 1 to 10")
    summary: str = Field(description="Two or three sentence assessment")
    top_issues: list[SummaryIssue] = Field(
        default_factory=list, description="The five most important issues across files"
    )
    recommendations: list[str] = Field(
        default_factory=list, description="Three to five actionable recommendations"
    )
