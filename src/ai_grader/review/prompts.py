"""Prompt text for file reviews and the project summary."""

from __future__ import annotations

from collections.abc import Sequence

from ai_grader.models import FileReview, ScannedFile, Severity

SYSTEM_PROMPT = """\
You are an expert code reviewer specializing in Node.js and TypeScript applications.
Your task is to analyze code for:

1. **Security vulnerabilities**: SQL injection, XSS, authentication issues, sensitive data exposure, insecure dependencies
2. **Performance issues**: N+1 queries, memory leaks, inefficient algorithms, blocking operations
3. **Maintainability concerns**: Code complexity, poor naming, lack of documentation, tight coupling
4. **Error handling**: Uncaught exceptions, missing error boundaries, improper async error handling
5. **Best practices**: Idiomatic framework usage, functional patterns, proper typing, SOLID principles
6. **Type safety**: Any types, type assertions, missing type annotations, unsafe casts

Guidelines:
- Be constructive and specific with your feedback
- Prioritize the most impactful issues
- Provide actionable recommendations with code examples where helpful
- Acknowledge good patterns and practices when you see them
- Focus on issues that would improve code quality, not stylistic preferences"""

PROJECT_CONTEXT_LIMIT = 2000
SAMPLE_ISSUES = 3
SAMPLE_POSITIVES = 2


def build_project_context(files: Sequence[ScannedFile]) -> str | None:
    """Describe the project from its package.json, if it was scanned."""
    manifest = next((f for f in files if f.relative_path == "package.json"), None)
    if manifest is None:
        return None
    return (
        "This is a Node.js project. Here's the package.json:\n"
        f"{manifest.content[:PROJECT_CONTEXT_LIMIT]}"
    )


def build_file_prompt(file: ScannedFile, project_context: str | None = None) -> str:
    context_section = f"\n\nProject Context:\n{project_context}" if project_context else ""
    language = file.extension.removeprefix(".")
    return (
        f"Review the following file: {file.relative_path}{context_section}\n\n"
        f"```{language}\n{file.content}\n```\n\n"
        "Analyze this code and provide a structured review. Focus on the most important "
        "issues and be specific with your recommendations."
    )


def _digest(review: FileReview) -> str:
    critical = sum(1 for i in review.issues if i.severity == Severity.CRITICAL)
    warnings = sum(1 for i in review.issues if i.severity == Severity.WARNING)

    lines = [
        f"### {review.file}",
        f"Summary: {review.summary}",
        f"Issues: {len(review.issues)} total ({critical} critical, {warnings} warnings)",
    ]
    if review.issues:
        lines.append("Top issues:")
        lines.extend(
            f"- [{i.severity.value}] {i.description}" for i in review.issues[:SAMPLE_ISSUES]
        )
    else:
        lines.append("No issues found.")
    positives = ", ".join(review.positives[:SAMPLE_POSITIVES]) or "None noted"
    lines.append(f"Positives: {positives}")
    return "\n".join(lines)


def build_summary_prompt(file_reviews: Sequence[FileReview]) -> str:
    """Digest every file review into the project summary request."""
    digests = "\n\n".join(_digest(r) for r in file_reviews)
    return (
        "Based on the following individual file reviews, provide an overall project "
        "assessment.\n\n"
        "## File Reviews\n\n"
        f"{digests}\n\n"
        "## Your Task\n\n"
        "Provide a comprehensive project review including:\n"
        "1. An overall score from 1-10 (where 10 is excellent)\n"
        "2. A summary of the project's overall code quality (2-3 sentences)\n"
        "3. The top 5 most critical issues across all files (prioritize security and bugs)\n"
        "4. Key recommendations for improving the project (3-5 actionable items)\n\n"
        "Be honest but constructive in your assessment."
    )
