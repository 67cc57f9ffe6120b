"""Rich console report for a project review."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from ai_grader.models import Category, FileReview, Issue, ProjectReview, Severity

SEVERITY_EMOJI: dict[Severity, str] = {
    Severity.CRITICAL: "🔴",
    Severity.WARNING: "🟡",
    Severity.SUGGESTION: "🟢",
}

SEVERITY_COLORS: dict[Severity, str] = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.SUGGESTION: "green",
}

CATEGORY_EMOJI: dict[Category, str] = {
    Category.SECURITY: "🔒",
    Category.PERFORMANCE: "⚡",
    Category.MAINTAINABILITY: "🔧",
    Category.ERROR_HANDLING: "⚠️",
    Category.BEST_PRACTICES: "✨",
    Category.TYPE_SAFETY: "📝",
}

SNIPPET_PREVIEW = 100


def score_color(score: int) -> str:
    if score >= 8:
        return "green"
    if score >= 5:
        return "yellow"
    return "red"


def score_emoji(score: int) -> str:
    if score >= 8:
        return "🟢"
    if score >= 5:
        return "🟡"
    return "🔴"


def score_bar(score: int) -> str:
    """Ten-segment bar with ``score`` filled segments."""
    score = max(0, min(10, score))
    return "█" * score + "░" * (10 - score)


def file_status_icon(review: FileReview) -> str:
    if review.has_critical:
        return "🔴"
    if review.issues:
        return "🟡"
    return "🟢"


def _section(console: Console, title: str, style: str) -> None:
    console.print(f"[bold {style}]{title}[/bold {style}]")
    console.print(Rule(style="dim", align="left"), width=40)


def _print_issue(console: Console, issue: Issue) -> None:
    color = SEVERITY_COLORS[issue.severity]
    header = Text()
    header.append(f"{SEVERITY_EMOJI[issue.severity]} {CATEGORY_EMOJI[issue.category]} ")
    header.append(f"[{issue.severity.value.upper()}]", style=color)
    header.append(" ")
    header.append(issue.file, style="dim")
    console.print(header)
    console.print(Text("   " + issue.description))
    console.print(Text.assemble("   ", ("→", "cyan"), " ", issue.recommendation))
    if issue.code_snippet:
        preview = issue.code_snippet[:SNIPPET_PREVIEW]
        console.print(Text(f"   Code: {preview}...", style="dim"))


def generate_console_report(review: ProjectReview, console: Console) -> None:
    """Print the full review to ``console``."""
    stats = review.stats()
    color = score_color(review.overall_score)

    console.print()
    console.print(Panel("[bold cyan]📊 AI GRADER CODE REVIEW REPORT[/bold cyan]"), width=60)
    console.print()

    console.print(
        f"[bold]Overall Score:[/bold] [{color}]"
        f"{escape('[' + score_bar(review.overall_score) + ']')} "
        f"{review.overall_score}/10[/{color}]"
    )
    console.print()

    _section(console, "📋 Summary", "blue")
    console.print(Text(review.summary))
    console.print()

    _section(console, "📈 Statistics", "blue")
    console.print(f"Files analyzed: {stats.files_analyzed}")
    console.print(
        f"Total issues: {stats.total_issues} "
        f"([red]{stats.critical_count} critical[/red], "
        f"[yellow]{stats.warning_count} warnings[/yellow], "
        f"[green]{stats.suggestion_count} suggestions[/green])"
    )
    console.print()

    if review.top_issues:
        _section(console, "🚨 Top Issues", "red")
        for issue in review.top_issues:
            _print_issue(console, issue)
            console.print()

    _section(console, "📁 File Reviews", "blue")
    for file_review in review.file_reviews:
        console.print(
            Text.assemble(f"{file_status_icon(file_review)} ", (file_review.file, "bold"))
        )
        console.print(Text("   " + file_review.summary, style="dim"))
        console.print(
            f"   Issues: {len(file_review.issues)} | Positives: {len(file_review.positives)}"
        )
    console.print()

    if review.recommendations:
        _section(console, "💡 Recommendations", "green")
        for rec in review.recommendations:
            console.print(Text.assemble(("•", "cyan"), " ", rec))
        console.print()

    console.print(Rule(style="bold"), width=60)
