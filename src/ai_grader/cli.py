"""Click CLI for the grader."""

from __future__ import annotations

import asyncio
import os
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ai_grader import __version__
from ai_grader.config import BedrockCredentials, GraderConfig
from ai_grader.errors import ConfigError, GraderError
from ai_grader.log import configure_logging
from ai_grader.models import RepoSnapshot, ScanOptions
from ai_grader.providers.base import ModelBackend
from ai_grader.providers.bedrock import BedrockBackend

FILE_LIST_LIMIT = 50


def _build_backend(config: GraderConfig) -> ModelBackend:
    """Create the Bedrock backend from AWS_* env vars."""
    try:
        credentials = BedrockCredentials()
    except ValidationError as e:
        missing = ", ".join(
            f"AWS_{str(err['loc'][0]).upper()}" for err in e.errors() if err.get("loc")
        )
        raise ConfigError(f"Missing or invalid AWS credentials: {missing}") from e

    return BedrockBackend(
        credentials,
        config.model,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
    )


@click.command(name="ai-grader")
@click.version_option(version=__version__)
@click.argument(
    "directory",
    default=".",
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
)
@click.option(
    "--format",
    "-f",
    "fmt",
    default="console",
    type=click.Choice(["console", "markdown"]),
    show_default=True,
    help="Output format for the report",
)
@click.option("--out", "-o", default=None, help="Write the Markdown report to this file")
@click.option("--model", "-m", default=None, help="Bedrock model ID to use")
@click.option(
    "--concurrency",
    "-c",
    default=None,
    type=click.IntRange(min=1),
    help="Number of files to read concurrently (default: 5)",
)
@click.option(
    "--ignore", "-i", multiple=True, help="Skip paths containing this text (repeatable)"
)
@click.option("--max-files", default=None, type=click.IntRange(min=1), help="Max files to read")
@click.option(
    "--max-file-bytes", default=None, type=click.IntRange(min=0), help="Skip larger files"
)
@click.option(
    "--ai/--no-ai",
    default=True,
    show_default=True,
    help="Run the AI review, or stop after repo detection",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Verbose output")
def cli(
    directory: str,
    fmt: str,
    out: str | None,
    model: str | None,
    concurrency: int | None,
    ignore: tuple[str, ...],
    max_files: int | None,
    max_file_bytes: int | None,
    ai: bool,
    verbose: bool,
) -> None:
    """AI Grader - review a JavaScript/TypeScript project with an LLM."""
    # Build config from CLI overrides (env vars handled by pydantic-settings)
    overrides: dict[str, Any] = {}
    if model is not None:
        overrides["model"] = model
    if concurrency is not None:
        overrides["concurrency"] = concurrency
    if max_files is not None:
        overrides["max_files"] = max_files
    if max_file_bytes is not None:
        overrides["max_file_bytes"] = max_file_bytes
    if verbose:
        overrides["verbose"] = True

    console = Console()
    err_console = Console(stderr=True)

    try:
        config = GraderConfig(**overrides)
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    configure_logging(verbose=config.verbose, console=err_console)

    # Keep stdout clean when it carries the Markdown report
    progress = err_console if fmt == "markdown" and out is None else console
    try:
        asyncio.run(_run(progress, config, directory, fmt, out, ignore, ai))
    except GraderError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1) from e


async def _run(
    console: Console,
    config: GraderConfig,
    directory: str,
    fmt: str,
    out: str | None,
    ignore: tuple[str, ...],
    ai: bool,
) -> None:
    from ai_grader.display.markdown import generate_markdown_report
    from ai_grader.display.terminal import generate_console_report
    from ai_grader.repo.detector import RepoDetector, format_repo_info
    from ai_grader.repo.scanner import RepoScanner
    from ai_grader.review.orchestrator import ReviewOrchestrator

    console.print(
        f"\n[bold]Running AI Grader on:[/bold] {escape(os.path.abspath(directory))}",
        soft_wrap=True,
    )

    repo_info = await RepoDetector().detect_repo(directory)
    console.print()
    console.print(escape(format_repo_info(repo_info)))
    console.print()

    snapshot = await RepoScanner().scan_project(
        directory,
        ScanOptions(
            max_files=config.max_files,
            max_file_bytes=config.max_file_bytes,
            ignore_patterns=ignore,
            concurrency=config.concurrency,
        ),
    )

    if not snapshot.files:
        console.print("[yellow]No code files found in the specified directory.[/yellow]")
        return

    _print_snapshot(console, snapshot)

    if not ai:
        console.print("[green]Repo detection complete (AI analysis skipped)[/green]")
        return

    backend = _build_backend(config)
    console.print(f"Analyzing code with AI (model: {escape(backend.model_id)})...")
    review = await ReviewOrchestrator(backend).analyze_project(snapshot.files)

    if fmt == "markdown":
        markdown = generate_markdown_report(review)
        if out is None:
            click.echo(markdown)
    else:
        generate_console_report(review, console)
        markdown = generate_markdown_report(review) if out else ""

    if out:
        try:
            with open(out, "w", encoding="utf-8") as f:
                f.write(markdown)
        except OSError as e:
            raise GraderError(f"Could not write report to {out}: {e}") from e
        console.print(f"Report written to {escape(out)}", soft_wrap=True)

    console.print("[bold green]Analysis complete![/bold green]")


def _print_snapshot(console: Console, snapshot: RepoSnapshot) -> None:
    """Print skip reasons, the per-extension breakdown and the file list."""
    from ai_grader.repo.scanner import get_file_summary

    if snapshot.skipped_reasons:
        console.print(f"Skipped {sum(snapshot.skipped_reasons.values())} files")
        for reason, count in snapshot.skipped_reasons.items():
            console.print(f"  - {reason}: {count}")

    console.print("File breakdown:")
    for ext, count in get_file_summary(snapshot.files).items():
        console.print(f"  {ext}: {count} files")
    console.print()

    console.print("Files to analyze:")
    for f in snapshot.files[:FILE_LIST_LIMIT]:
        console.print(f"  - {escape(f.relative_path)}", soft_wrap=True)
    if len(snapshot.files) > FILE_LIST_LIMIT:
        console.print(f"  ... and {len(snapshot.files) - FILE_LIST_LIMIT} more")
    console.print()
