"""tutorgate CLI: Typer + Rich terminal interface.

Commands: explain, ask, feedback, course, analyze, providers, serve.
All output is Rich-powered panels and tables.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from tutorgate import __version__
from tutorgate.analysis.analyzer import analyze as analyze_source
from tutorgate.errors import CourseGenerationError, UnknownProviderError
from tutorgate.keys import load_keys_env
from tutorgate.orchestrator import AUTO, CompletionOrchestrator
from tutorgate.schemas.completion import CompletionResult, TeachingMode
from tutorgate.schemas.course import Difficulty

# Load API keys from ~/.tutorgate/keys.env and .env on startup
load_keys_env()

console = Console()

T = TypeVar("T")

app = typer.Typer(
    name="tutorgate",
    help="Programming-tutor answers from whichever AI provider responds first.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"tutorgate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log provider selection and retries.",
    ),
) -> None:
    """tutorgate: multi-provider completion gateway for a programming tutor."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# ── Helpers ──────────────────────────────────────────────────────


def _load_orchestrator() -> CompletionOrchestrator:
    """Build the orchestrator from the packaged config, exit on error."""
    try:
        return CompletionOrchestrator()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1) from None


def _run(orchestrator: CompletionOrchestrator, operation: Coroutine[Any, Any, T]) -> T:
    """Run one orchestrator operation, then wait for stragglers to finish."""

    async def _go() -> T:
        try:
            return await operation
        finally:
            await orchestrator.drain()

    try:
        return asyncio.run(_go())
    except (UnknownProviderError, CourseGenerationError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(1) from None


def _display_result(result: CompletionResult, title: str) -> None:
    """Render a completion result as a panel plus any fallback details."""
    style = "yellow" if result.is_fallback else "green"
    console.print(Panel(
        Markdown(result.explanation),
        title=f"[bold]{title}[/bold]",
        subtitle=f"via {result.provider}",
        border_style=style,
    ))

    if result.concepts:
        console.print(f"[bold]Concepts:[/bold] {', '.join(result.concepts)}")
    if result.errors:
        console.print("[yellow]Providers that failed:[/yellow]")
        for error in result.errors:
            console.print(f"  [dim]- {error}[/dim]")


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def explain(
    file: Path = typer.Argument(..., help="Source file to explain", exists=True, dir_okay=False),
    language: str = typer.Option("python", "--language", "-l", help="Programming language"),
    provider: str = typer.Option(AUTO, "--provider", "-p", help="Provider name, or 'auto'"),
    mode: TeachingMode = typer.Option(TeachingMode.DEFAULT, "--mode", "-m", help="Teaching mode"),
) -> None:
    """Explain a source file, or diagnose it when it has mistakes."""
    code = _read_source(file)
    orchestrator = _load_orchestrator()
    result = _run(orchestrator, orchestrator.explain_code(code, language, provider, mode))
    title = "Error Analysis" if result.is_error_analysis else "Explanation"
    _display_result(result, f"{title}: {file.name}")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Programming question"),
    language: str = typer.Option("python", "--language", "-l", help="Programming language"),
    provider: str = typer.Option(AUTO, "--provider", "-p", help="Provider name, or 'auto'"),
    mode: TeachingMode = typer.Option(TeachingMode.DEFAULT, "--mode", "-m", help="Teaching mode"),
) -> None:
    """Ask a programming question."""
    orchestrator = _load_orchestrator()
    result = _run(orchestrator, orchestrator.answer_question(question, language, provider, mode))
    _display_result(result, "Answer")


@app.command()
def feedback(
    file: Path = typer.Argument(..., help="Source file that was run", exists=True, dir_okay=False),
    error: str | None = typer.Option(None, "--error", "-e", help="Console error it produced"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output it printed"),
    provider: str = typer.Option(AUTO, "--provider", "-p", help="Provider name, or 'auto'"),
) -> None:
    """Get feedback on code you ran, optionally with the error it raised."""
    code = _read_source(file)
    orchestrator = _load_orchestrator()
    text = _run(orchestrator, orchestrator.generate_feedback(code, output, error, provider))
    console.print(Panel(
        Markdown(text),
        title=f"[bold]Feedback: {file.name}[/bold]",
        border_style="blue",
    ))


@app.command()
def course(
    topic: str = typer.Argument(..., help="Programming topic to build a course around"),
    difficulty: Difficulty = typer.Option(
        Difficulty.BEGINNER, "--difficulty", "-d", help="Target level",
    ),
    provider: str = typer.Option(AUTO, "--provider", "-p", help="Provider name, or 'auto'"),
) -> None:
    """Generate a course outline for a topic."""
    orchestrator = _load_orchestrator()
    outline = _run(
        orchestrator, orchestrator.generate_course_content(topic, difficulty, provider),
    )

    body = outline.description
    if outline.objectives:
        body += "\n\n[bold]Objectives:[/bold]\n" + "\n".join(f"- {o}" for o in outline.objectives)
    console.print(Panel(
        body,
        title=f"[bold blue]{outline.title}[/bold blue]",
        subtitle=f"[dim]via {outline.provider}[/dim]",
        border_style="blue",
    ))

    table = Table(title="Lessons", show_lines=True)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Lesson", style="cyan")
    table.add_column("Description")
    table.add_column("Concepts", style="dim")
    for lesson in sorted(outline.lessons, key=lambda item: item.order):
        table.add_row(
            str(lesson.order), lesson.title, lesson.description, ", ".join(lesson.concepts),
        )
    console.print(table)


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Source file to check", exists=True, dir_okay=False),
    language: str = typer.Option("python", "--language", "-l", help="Programming language"),
) -> None:
    """Check a file for common beginner mistakes without calling any provider.

    Exits with status 1 when issues are found.
    """
    result = analyze_source(_read_source(file), language)

    if not result.has_issues:
        console.print(f"[green]No issues found in {file.name}[/green]")
        return

    table = Table(title=f"Issues in {file.name}", show_lines=True)
    table.add_column("Line", justify="right", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Message")
    for issue in result.issues:
        table.add_row(str(issue.line), issue.type.value, issue.message)
    console.print(table)

    for suggestion in result.suggestions:
        console.print(f"[yellow]Suggestion (line {suggestion.line}):[/yellow] {suggestion.message}")
        for alt in suggestion.alternatives:
            console.print(f"  [dim]- {alt}[/dim]")

    raise typer.Exit(1)


@app.command()
def providers() -> None:
    """Show every provider with its configuration and health."""
    orchestrator = _load_orchestrator()
    adapters = orchestrator.adapters

    table = Table(title="Providers", show_lines=True)
    table.add_column("Name", style="bold cyan")
    table.add_column("Display Name")
    table.add_column("Model", style="dim")
    table.add_column("Priority", justify="right")
    table.add_column("Configured")
    table.add_column("Healthy")

    for status in orchestrator.get_available_providers():
        adapter = adapters[status.name]
        table.add_row(
            status.name,
            adapter.display_name,
            adapter.config.model,
            str(adapter.priority),
            "[green]yes[/green]" if status.configured else "[red]no[/red]",
            "[green]yes[/green]" if status.healthy else "[red]no[/red]",
        )

    console.print(table)
    console.print("\n[dim]Fallback answers are always available when no provider responds.[/dim]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
) -> None:
    """Serve the HTTP API."""
    import uvicorn

    from tutorgate.server import create_app

    console.print(Panel(
        f"[bold]URL:[/bold] http://{host}:{port}/api/ai/providers",
        title="[bold blue]tutorgate[/bold blue]",
        border_style="blue",
    ))
    uvicorn.run(create_app(_load_orchestrator()), host=host, port=port, log_level="warning")


# ── Entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    app()
