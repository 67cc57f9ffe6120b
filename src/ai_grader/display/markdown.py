"""Markdown report for a project review."""

from __future__ import annotations

from ai_grader.display.terminal import (
    CATEGORY_EMOJI,
    SEVERITY_EMOJI,
    file_status_icon,
    score_emoji,
)
from ai_grader.models import Issue, ProjectReview


def _line_info(issue: Issue) -> str:
    return f" (line {issue.line})" if issue.line else ""


def _format_issue(issue: Issue) -> str:
    lines = [
        f"### {SEVERITY_EMOJI[issue.severity]} {CATEGORY_EMOJI[issue.category]} "
        f"{issue.severity.value.upper()} - {issue.category.value}",
        "",
        f"**File:** `{issue.file}`{_line_info(issue)}",
        "",
        issue.description,
        "",
        f"**Recommendation:** {issue.recommendation}",
    ]
    if issue.code_snippet:
        lines.extend(["", "```", issue.code_snippet, "```"])
    return "\n".join(lines)


def generate_markdown_report(review: ProjectReview) -> str:
    """Render ``review`` as a Markdown document."""
    stats = review.stats()
    sections: list[str] = []

    sections.append("# 📊 AI Grader Code Review Report")
    sections.append("")
    sections.append(
        f"## {score_emoji(review.overall_score)} Overall Score: {review.overall_score}/10"
    )
    sections.append("")
    sections.append(review.summary)
    sections.append("")

    sections.append("## 📈 Statistics")
    sections.append("")
    sections.append("| Metric | Value |")
    sections.append("|--------|-------|")
    sections.append(f"| Files Analyzed | {stats.files_analyzed} |")
    sections.append(f"| Total Issues | {stats.total_issues} |")
    sections.append(f"| Critical | {stats.critical_count} |")
    sections.append(f"| Warnings | {stats.warning_count} |")
    sections.append(f"| Suggestions | {stats.suggestion_count} |")
    sections.append("")

    if review.top_issues:
        sections.append("## 🚨 Top Issues")
        sections.append("")
        for issue in review.top_issues:
            sections.append(_format_issue(issue))
            sections.append("")

    sections.append("## 📁 File Reviews")
    sections.append("")
    for file_review in review.file_reviews:
        sections.append(f"### {file_status_icon(file_review)} `{file_review.file}`")
        sections.append("")
        sections.append(file_review.summary)
        sections.append("")

        if file_review.issues:
            sections.append("**Issues:**")
            sections.append("")
            for issue in file_review.issues:
                sections.append(
                    f"- {SEVERITY_EMOJI[issue.severity]} **{issue.category.value}**"
                    f"{_line_info(issue)}: {issue.description}"
                )
            sections.append("")

        if file_review.positives:
            sections.append("**Positives:**")
            sections.append("")
            for positive in file_review.positives:
                sections.append(f"- ✅ {positive}")
            sections.append("")

    if review.recommendations:
        sections.append("## 💡 Recommendations")
        sections.append("")
        for rec in review.recommendations:
            sections.append(f"- {rec}")
        sections.append("")

    sections.append("---")
    sections.append("*Generated by AI Grader*")

    return "\n".join(sections)
